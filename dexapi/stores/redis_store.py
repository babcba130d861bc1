import logging
from typing import Hashable, Optional

import redis.asyncio as aioredis

from dexapi.models import Generation, Pokemon, Type
from dexapi.stores.base import GenerationStore, PokemonStore, TypeStore

logger = logging.getLogger(__name__)


class _RedisRecords:
    """One JSON document per record under `<prefix>:<kind>:<natural key>`."""

    model = None

    def __init__(self, redis: aioredis.Redis, prefix: str = "dexapi"):
        self.redis = redis
        self.prefix = prefix

    def _record_key(self, natural_key: Hashable) -> str:
        return f"{self.prefix}:{self.kind}:{natural_key}"

    @property
    def _index_key(self) -> str:
        return f"{self.prefix}:{self.kind}:index"

    @property
    def _id_sequence_key(self) -> str:
        return f"{self.prefix}:{self.kind}:id_seq"

    async def find_by_natural_key(self, key: Hashable):
        raw = await self.redis.get(self._record_key(key))
        if raw is None:
            return None
        return self.model.model_validate_json(raw)

    async def save(self, record):
        if record.id is None:
            new_id = await self.redis.incr(self._id_sequence_key)
            record = record.model_copy(update={"id": int(new_id)})
        record_key = self._record_key(self.natural_key(record))
        await self.redis.set(record_key, record.model_dump_json())
        await self.redis.sadd(self._index_key, record_key)
        logger.debug(f"Stored {record_key} (id={record.id})")
        return record

    async def find_all(self):
        record_keys = await self.redis.smembers(self._index_key)
        if not record_keys:
            return []
        raw_records = await self.redis.mget(sorted(record_keys))
        records = [self.model.model_validate_json(raw) for raw in raw_records if raw is not None]
        return sorted(records, key=self.natural_key)

    async def clear(self):
        """Drop every record of this kind. Useful for testing."""
        keys = await self.redis.keys(f"{self.prefix}:{self.kind}:*")
        if keys:
            await self.redis.delete(*keys)


class RedisGenerationStore(_RedisRecords, GenerationStore):
    model = Generation


class RedisTypeStore(_RedisRecords, TypeStore):
    model = Type

    def _source_key(self, source_id: int) -> str:
        return f"{self.prefix}:{self.kind}:source:{source_id}"

    async def save(self, record: Type) -> Type:
        saved = await super().save(record)
        if saved.source_id is not None:
            await self.redis.set(self._source_key(saved.source_id), saved.identifier)
        return saved

    async def find_by_source_id(self, source_id: int) -> Optional[Type]:
        identifier = await self.redis.get(self._source_key(source_id))
        if identifier is None:
            return None
        if isinstance(identifier, bytes):
            identifier = identifier.decode("utf-8")
        return await self.find_by_identifier(identifier)


class RedisPokemonStore(_RedisRecords, PokemonStore):
    model = Pokemon
