import logging
from typing import Optional

from dexapi.importer import DataImporter, ImportProgress, Interrupt
from dexapi.importer.strategies import KNOWN_GENERATIONS, KNOWN_TYPES, POKEMON_SOURCE
from dexapi.models import ImportResult, utcnow

logger = logging.getLogger(__name__)

FULL_IMPORT_SOURCE = "Full Import"


class ImportService:
    # Importers are injected per entity kind so the service never builds its own clients
    def __init__(
        self,
        pokemon_importers: list[DataImporter],
        type_importers: list[DataImporter],
        generation_importers: list[DataImporter],
        batch_delay: float = 0.5,
        default_batch_size: int = 20,
    ):
        self._pokemon_importers = pokemon_importers
        self._type_importers = type_importers
        self._generation_importers = generation_importers
        self.batch_delay = batch_delay
        self.default_batch_size = default_batch_size

    def available_importers(self) -> dict[str, DataImporter]:
        return {importer.source_name: importer for importer in self._pokemon_importers}

    async def healthy_importer_names(self) -> list[str]:
        healthy = []
        for importer in self._pokemon_importers + self._type_importers + self._generation_importers:
            if await importer.is_healthy():
                healthy.append(importer.source_name)
        return healthy

    async def import_generations(
        self,
        limit: int = KNOWN_GENERATIONS,
        offset: int = 0,
        progress: Optional[ImportProgress] = None,
        interrupt: Optional[Interrupt] = None,
    ) -> ImportResult:
        importer = next((i for i in self._generation_importers if "Generation" in i.source_name), None)
        if importer is None:
            return ImportResult.failure("Generation Import", "No Generation importer available")
        return await self._execute_import(importer, limit, offset, "Generations", progress, interrupt)

    async def import_types(
        self,
        limit: int = KNOWN_TYPES,
        offset: int = 0,
        progress: Optional[ImportProgress] = None,
        interrupt: Optional[Interrupt] = None,
    ) -> ImportResult:
        importer = next((i for i in self._type_importers if "Type" in i.source_name), None)
        if importer is None:
            return ImportResult.failure("Type Import", "No Type importer available")
        return await self._execute_import(importer, limit, offset, "Types", progress, interrupt)

    async def import_pokemon(
        self,
        source_name: str,
        limit: int,
        offset: int = 0,
        progress: Optional[ImportProgress] = None,
        interrupt: Optional[Interrupt] = None,
    ) -> ImportResult:
        importer = self.available_importers().get(source_name)
        if importer is None:
            return ImportResult.failure(source_name, f"Unknown import source: {source_name}")
        return await self._execute_import(importer, limit, offset, "Pokemon", progress, interrupt)

    async def import_pokemon_batch(
        self,
        source_name: str,
        total_limit: int,
        batch_size: Optional[int] = None,
        progress: Optional[ImportProgress] = None,
        interrupt: Optional[Interrupt] = None,
    ) -> ImportResult:
        """Imports `total_limit` pokemon in consecutive sub-batches of `batch_size`."""
        batch_size = batch_size or self.default_batch_size
        if batch_size < 1:
            return ImportResult.failure(source_name, "Batch size must be at least 1")
        importer = self.available_importers().get(source_name)
        if importer is None:
            return ImportResult.failure(source_name, f"Unknown import source: {source_name}")
        if not await importer.is_healthy():
            return ImportResult.failure(source_name, "Pokemon importer is not healthy")
        interrupt = interrupt or Interrupt()
        overall_start = utcnow()
        batch_results = []

        for offset in range(0, total_limit, batch_size):
            if offset > 0 and not await interrupt.pause(self.batch_delay):
                logger.info(f"Pokemon batch import interrupted at offset {offset}")
                break

            current_batch = min(batch_size, total_limit - offset)
            logger.info(f"Processing Pokemon batch: offset={offset}, size={current_batch}")
            batch_results.append(
                await self._run_import(importer, current_batch, offset, "Pokemon", progress, interrupt)
            )

        combined = ImportResult.combine(batch_results, source=source_name)
        return combined.model_copy(update={"start_time": overall_start, "end_time": utcnow()})

    async def run_full_import(
        self,
        pokemon_limit: int,
        batch_size: Optional[int] = None,
        progress: Optional[ImportProgress] = None,
        interrupt: Optional[Interrupt] = None,
    ) -> ImportResult:
        """Generations, then types, then pokemon.

        A failed stage ends the sequence with its own result. An interrupt
        ends it after the current stage with the stages completed so far.
        """
        interrupt = interrupt or Interrupt()

        logger.info("=== Step 1: Importing Generations ===")
        generation_result = await self.import_generations(KNOWN_GENERATIONS, 0, progress, interrupt)
        if not generation_result.success:
            logger.error("Generation import failed. Stopping...")
            return generation_result
        if interrupt.is_set():
            logger.info("Full import interrupted after generations")
            return self._combine_stages([generation_result])

        logger.info("=== Step 2: Importing Types ===")
        type_result = await self.import_types(KNOWN_TYPES, 0, progress, interrupt)
        if not type_result.success:
            logger.error("Type import failed. Stopping...")
            return type_result
        if interrupt.is_set():
            logger.info("Full import interrupted after types")
            return self._combine_stages([generation_result, type_result])

        logger.info("=== Step 3: Importing Pokemon ===")
        pokemon_result = await self.import_pokemon_batch(
            POKEMON_SOURCE, pokemon_limit, batch_size, progress, interrupt
        )
        if not pokemon_result.success:
            logger.error("Pokemon import failed.")
            return pokemon_result

        logger.info(
            f"Full import complete: {generation_result.successful_imports} generations, "
            f"{type_result.successful_imports} types, {pokemon_result.successful_imports} pokemon"
        )
        return self._combine_stages([generation_result, type_result, pokemon_result])

    @staticmethod
    def _combine_stages(stage_results: list[ImportResult]) -> ImportResult:
        combined = ImportResult.combine(stage_results, source=FULL_IMPORT_SOURCE)
        return combined.model_copy(
            update={"start_time": stage_results[0].start_time, "end_time": stage_results[-1].end_time}
        )

    async def _execute_import(
        self,
        importer: DataImporter,
        limit: int,
        offset: int,
        entity_type: str,
        progress: Optional[ImportProgress],
        interrupt: Optional[Interrupt],
    ) -> ImportResult:
        if not await importer.is_healthy():
            return ImportResult.failure(importer.source_name, f"{entity_type} importer is not healthy")
        return await self._run_import(importer, limit, offset, entity_type, progress, interrupt)

    async def _run_import(
        self,
        importer: DataImporter,
        limit: int,
        offset: int,
        entity_type: str,
        progress: Optional[ImportProgress],
        interrupt: Optional[Interrupt],
    ) -> ImportResult:
        start_time = utcnow()
        logger.info(f"Starting {entity_type} import - limit: {limit}, offset: {offset}")

        try:
            report = await importer.import_data(limit, offset, progress, interrupt)
            end_time = utcnow()
            validation = importer.validate_data(report.records)

            return ImportResult(
                success=validation.success,
                total_records=validation.total_records,
                successful_imports=validation.successful_imports,
                failed_imports=validation.failed_imports,
                augmented_imports=report.augmented,
                errors=validation.errors,
                source=importer.source_name,
                start_time=start_time,
                end_time=end_time,
            )

        except Exception as e:
            logger.exception(f"{entity_type} import failed: {e}")
            return ImportResult(
                success=False,
                failed_imports=1,
                errors=(f"{entity_type} import failed: {e}",),
                source=importer.source_name,
                start_time=start_time,
                end_time=utcnow(),
            )
