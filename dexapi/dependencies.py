import redis.asyncio as aioredis
from dexapi.clients import PokeAPIClient
from dexapi.config import ImportSettings, get_settings
from dexapi.importer import (
    DataImporter,
    GenerationImportStrategy,
    PokemonImportStrategy,
    TypeImportStrategy,
)
from dexapi.services import ImportJobManager, ImportService
from dexapi.stores import EntityStores, in_memory_stores, redis_stores
from fastapi import Depends

_poke_client = None
_entity_stores = None
_import_service = None
_job_manager = None

def create_entity_stores(settings: ImportSettings) -> EntityStores:
    if settings.store_backend == "redis":
        return redis_stores(aioredis.from_url(settings.redis_url, decode_responses=True))
    return in_memory_stores()

def build_import_service(
    client: PokeAPIClient,
    stores: EntityStores,
    settings: ImportSettings,
) -> ImportService:
    """Wires one importer per entity kind around a shared client and store set."""
    def importer(strategy):
        return DataImporter(strategy, client, settings)

    return ImportService(
        pokemon_importers=[importer(PokemonImportStrategy(client, stores.pokemon, stores.types, stores.generations))],
        type_importers=[importer(TypeImportStrategy(client, stores.types, stores.generations))],
        generation_importers=[importer(GenerationImportStrategy(client, stores.generations))],
        batch_delay=settings.batch_delay_seconds,
        default_batch_size=settings.default_batch_size,
    )

def get_poke_client() -> PokeAPIClient:
    global _poke_client
    if _poke_client is None:
        _poke_client = PokeAPIClient(get_settings())
    return _poke_client

def get_entity_stores() -> EntityStores:
    global _entity_stores
    if _entity_stores is None:
        _entity_stores = create_entity_stores(get_settings())
    return _entity_stores

def get_import_service(
    poke_client: PokeAPIClient = Depends(get_poke_client),
    stores: EntityStores = Depends(get_entity_stores),
) -> ImportService:
    global _import_service
    if _import_service is None:
        _import_service = build_import_service(poke_client, stores, get_settings())
    return _import_service

def get_job_manager(
    import_service: ImportService = Depends(get_import_service),
) -> ImportJobManager:
    # Job results must outlive a single request
    global _job_manager
    if _job_manager is None:
        _job_manager = ImportJobManager(import_service)
    return _job_manager

async def close_clients():
    global _poke_client
    if _poke_client is not None:
        await _poke_client.close()
        _poke_client = None
