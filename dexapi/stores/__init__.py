"""Entity Store implementations for generations, types and pokemon."""
from dataclasses import dataclass

from .base import EntityStore, GenerationStore, PokemonStore, TypeStore
from .memory import InMemoryGenerationStore, InMemoryPokemonStore, InMemoryTypeStore
from .redis_store import RedisGenerationStore, RedisPokemonStore, RedisTypeStore


@dataclass
class EntityStores:
    generations: GenerationStore
    types: TypeStore
    pokemon: PokemonStore


def in_memory_stores() -> EntityStores:
    return EntityStores(
        generations=InMemoryGenerationStore(),
        types=InMemoryTypeStore(),
        pokemon=InMemoryPokemonStore(),
    )


def redis_stores(redis, prefix: str = "dexapi") -> EntityStores:
    return EntityStores(
        generations=RedisGenerationStore(redis, prefix),
        types=RedisTypeStore(redis, prefix),
        pokemon=RedisPokemonStore(redis, prefix),
    )


__all__ = [
    'EntityStore',
    'EntityStores',
    'GenerationStore',
    'TypeStore',
    'PokemonStore',
    'in_memory_stores',
    'redis_stores',
]
