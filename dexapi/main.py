from contextlib import asynccontextmanager
from fastapi import APIRouter, FastAPI, Depends, Query, status, HTTPException
from dexapi.config import get_settings, setup_logging
from dexapi.dependencies import close_clients, get_import_service, get_job_manager
from dexapi.models import ImporterHealthResponse, ImportStartResponse, ImportStatusResponse
from dexapi.services import ImportJobManager, ImportService

MAX_IMPORT_LIMIT = 1000

@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(get_settings().log_level)
    yield
    await close_clients()

app = FastAPI(
    title="DexAPI Importer",
    description="Imports multilingual Pokemon, Type and Generation records from PokeAPI.",
    lifespan=lifespan,
)

router = APIRouter(prefix="/admin/import", tags=["admin"])

def _validate_limit(limit: int):
    if limit < 1 or limit > MAX_IMPORT_LIMIT:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Limit must be between 1 and {MAX_IMPORT_LIMIT}",
        )

# Endpoint 1: Start a batched Pokemon import in the background
@router.post(
    "/start",
    response_model=ImportStartResponse,
    summary="Starts a background Pokemon import",
)
async def start_import(
    source: str,
    limit: int,
    batch_size: int = Query(20, alias="batchSize", ge=1),
    service: ImportService = Depends(get_import_service),
    jobs: ImportJobManager = Depends(get_job_manager),
):
    """Validates the request, then runs importPokemonBatch on a background task."""
    _validate_limit(limit)
    if source not in service.available_importers():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown import source: {source}")
    if source not in await service.healthy_importer_names():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Import source is not healthy: {source}")

    import_id = jobs.start_batch(source, limit, batch_size)
    return ImportStartResponse(success=True, import_id=import_id, message="Import started successfully")


# Endpoint 2: Start the full Generations -> Types -> Pokemon sequence
@router.post(
    "/full",
    response_model=ImportStartResponse,
    summary="Starts the full coordinated import",
)
async def start_full_import(
    pokemon_limit: int = Query(..., alias="pokemonLimit"),
    batch_size: int = Query(20, alias="batchSize", ge=1),
    jobs: ImportJobManager = Depends(get_job_manager),
):
    _validate_limit(pokemon_limit)
    import_id = jobs.start_full(pokemon_limit, batch_size)
    return ImportStartResponse(success=True, import_id=import_id, message="Full import started successfully")


# Endpoint 3: Poll an import
@router.get(
    "/status/{import_id}",
    response_model=ImportStatusResponse,
    response_model_exclude_none=True,
    summary="Returns the progress or the final result of an import",
)
async def get_import_status(
    import_id: str,
    jobs: ImportJobManager = Depends(get_job_manager),
):
    if not jobs.is_known(import_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown import id: {import_id}")

    result = jobs.result(import_id)
    if result is None:
        progress = jobs.progress(import_id)
        return ImportStatusResponse(
            status="running",
            message="Import in progress...",
            progress=progress.snapshot() if progress is not None else None,
        )
    return ImportStatusResponse(status="completed", result=result)


# Endpoint 4: Cooperative cancellation
@router.post(
    "/cancel/{import_id}",
    summary="Asks a running import to stop at its next rate-limit pause",
)
async def cancel_import(
    import_id: str,
    jobs: ImportJobManager = Depends(get_job_manager),
):
    if not jobs.cancel(import_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No running import with id: {import_id}")
    return {"success": True, "importId": import_id, "message": "Cancellation requested"}


# Endpoint 5: Importer health
@router.get(
    "/health",
    response_model=ImporterHealthResponse,
    summary="Reports which import sources are reachable",
)
async def get_importer_health(
    service: ImportService = Depends(get_import_service),
):
    importers = {
        name: await importer.is_healthy()
        for name, importer in service.available_importers().items()
    }
    return ImporterHealthResponse(importers=importers, healthy=await service.healthy_importer_names())


if get_settings().enable_web_interface:
    app.include_router(router)
