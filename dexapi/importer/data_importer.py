from typing import Optional

from dexapi.clients.pokeapi_client import PokeAPIClient
from dexapi.config import ImportSettings
from dexapi.importer.batch import BatchDriver, RangeReport
from dexapi.importer.progress import ImportProgress, Interrupt
from dexapi.importer.reconciler import ImportStrategy
from dexapi.models import ImportResult


class DataImporter:
    """One importable source: a reconcile strategy driven over key ranges."""

    def __init__(
        self,
        strategy: ImportStrategy,
        client: PokeAPIClient,
        settings: ImportSettings,
        driver: Optional[BatchDriver] = None,
    ):
        self.strategy = strategy
        self.client = client
        self.settings = settings
        self.driver = driver or BatchDriver(record_delay=settings.record_delay_seconds)

    @property
    def source_name(self) -> str:
        return self.strategy.source_name

    async def is_healthy(self) -> bool:
        return self.settings.pokeapi_enabled and await self.client.is_healthy()

    async def import_data(
        self,
        limit: int,
        offset: int,
        progress: Optional[ImportProgress] = None,
        interrupt: Optional[Interrupt] = None,
    ) -> RangeReport:
        return await self.driver.import_range(self.strategy, limit, offset, progress, interrupt)

    def validate_data(self, records: list) -> ImportResult:
        """Structural check of fetched records; says nothing about persistence."""
        errors = []
        for record in records:
            error = self.strategy.validate(record)
            if error is not None:
                errors.append(error)
        valid = len(records) - len(errors)

        return ImportResult(
            success=not errors,
            total_records=len(records),
            successful_imports=valid,
            failed_imports=len(records) - valid,
            errors=tuple(errors),
            source=self.source_name,
        )
