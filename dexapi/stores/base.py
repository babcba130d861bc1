from abc import ABC, abstractmethod
from typing import Generic, Hashable, Optional, TypeVar

from dexapi.models import Generation, Pokemon, Type

RecordT = TypeVar("RecordT", Generation, Type, Pokemon)


class EntityStore(ABC, Generic[RecordT]):
    """Keyed persistence for one aggregate.

    Records are addressed by their natural key. `save` assigns the surrogate
    `id` the first time a record is persisted and upserts afterwards; it
    returns the stored copy.
    """

    kind: str

    @staticmethod
    @abstractmethod
    def natural_key(record: RecordT) -> Hashable:
        ...

    @abstractmethod
    async def find_by_natural_key(self, key: Hashable) -> Optional[RecordT]:
        ...

    @abstractmethod
    async def save(self, record: RecordT) -> RecordT:
        ...

    @abstractmethod
    async def find_all(self) -> list[RecordT]:
        ...

    async def exists(self, key: Hashable) -> bool:
        return await self.find_by_natural_key(key) is not None


class GenerationStore(EntityStore[Generation]):
    kind = "generation"

    @staticmethod
    def natural_key(record: Generation) -> int:
        return record.number

    async def find_by_number(self, number: int) -> Optional[Generation]:
        return await self.find_by_natural_key(number)


class TypeStore(EntityStore[Type]):
    kind = "type"

    @staticmethod
    def natural_key(record: Type) -> str:
        return record.identifier

    async def find_by_identifier(self, identifier: str) -> Optional[Type]:
        return await self.find_by_natural_key(identifier)

    @abstractmethod
    async def find_by_source_id(self, source_id: int) -> Optional[Type]:
        ...


class PokemonStore(EntityStore[Pokemon]):
    kind = "pokemon"

    @staticmethod
    def natural_key(record: Pokemon) -> int:
        return record.national_dex_number

    async def find_by_national_dex_number(self, number: int) -> Optional[Pokemon]:
        return await self.find_by_natural_key(number)
