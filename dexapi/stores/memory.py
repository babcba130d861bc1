from typing import Hashable, Optional

from dexapi.models import Type
from dexapi.stores.base import GenerationStore, PokemonStore, TypeStore


class _InMemoryRecords:
    """Dict-backed storage keyed by natural key.

    Copies go in and out so a caller only changes persisted state through `save`.
    """

    def __init__(self):
        self._records = {}
        self._next_id = 1

    async def find_by_natural_key(self, key: Hashable):
        record = self._records.get(key)
        return record.model_copy(deep=True) if record is not None else None

    async def save(self, record):
        if record.id is None:
            record = record.model_copy(update={"id": self._next_id})
            self._next_id += 1
        self._records[self.natural_key(record)] = record.model_copy(deep=True)
        return record.model_copy(deep=True)

    async def find_all(self):
        return [self._records[key].model_copy(deep=True) for key in sorted(self._records)]

    def __len__(self):
        return len(self._records)


class InMemoryGenerationStore(_InMemoryRecords, GenerationStore):
    pass


class InMemoryTypeStore(_InMemoryRecords, TypeStore):
    async def find_by_source_id(self, source_id: int) -> Optional[Type]:
        for record in self._records.values():
            if record.source_id == source_id:
                return record.model_copy(deep=True)
        return None


class InMemoryPokemonStore(_InMemoryRecords, PokemonStore):
    pass
