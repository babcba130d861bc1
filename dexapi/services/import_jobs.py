import asyncio
import logging
import random
import threading
import time
from typing import Awaitable, Callable, Optional

from dexapi.importer import ImportProgress, Interrupt
from dexapi.models import ImportResult, ImportStatus
from dexapi.services.import_service import FULL_IMPORT_SOURCE, ImportService

logger = logging.getLogger(__name__)


def generate_import_id() -> str:
    return f"import_{int(time.time() * 1000)}_{random.randrange(0x1000):x}"


class ImportJobManager:
    """Runs imports as background tasks and keeps their terminal results.

    A missing result means the import is still running. Results are written
    once, by the task that produced them.
    """

    def __init__(self, import_service: ImportService):
        self.import_service = import_service
        self._results: dict[str, ImportResult] = {}
        self._progress: dict[str, ImportProgress] = {}
        self._interrupts: dict[str, Interrupt] = {}
        self._tasks: dict[str, asyncio.Task] = {}
        self._lock = threading.Lock()

    def start_batch(self, source: str, limit: int, batch_size: int) -> str:
        async def run(progress: ImportProgress, interrupt: Interrupt) -> ImportResult:
            return await self.import_service.import_pokemon_batch(
                source, limit, batch_size, progress=progress, interrupt=interrupt
            )

        return self._launch(source, limit, run)

    def start_full(self, pokemon_limit: int, batch_size: int) -> str:
        async def run(progress: ImportProgress, interrupt: Interrupt) -> ImportResult:
            return await self.import_service.run_full_import(
                pokemon_limit, batch_size, progress=progress, interrupt=interrupt
            )

        return self._launch(FULL_IMPORT_SOURCE, pokemon_limit, run)

    def _launch(
        self,
        source: str,
        total_count: int,
        run: Callable[[ImportProgress, Interrupt], Awaitable[ImportResult]],
    ) -> str:
        import_id = generate_import_id()
        progress = ImportProgress(import_id, source, total_count)
        interrupt = Interrupt()
        with self._lock:
            self._progress[import_id] = progress
            self._interrupts[import_id] = interrupt
        self._tasks[import_id] = asyncio.create_task(
            self._run(import_id, source, progress, interrupt, run)
        )
        return import_id

    async def _run(self, import_id, source, progress, interrupt, run) -> ImportResult:
        progress.set_status(ImportStatus.RUNNING)
        progress.add_log(f"Import started for {source}")
        try:
            result = await run(progress, interrupt)
        except Exception as e:
            logger.exception(f"Async import {import_id} failed")
            result = ImportResult.failure(source, f"Import failed: {e}")

        progress.set_status(ImportStatus.COMPLETED if result.success else ImportStatus.FAILED)
        with self._lock:
            self._results[import_id] = result
            # The final result supersedes the live progress
            self._progress.pop(import_id, None)
            self._interrupts.pop(import_id, None)
        self._tasks.pop(import_id, None)
        logger.info(
            f"Import {import_id} completed: {result.successful_imports} successful, "
            f"{result.failed_imports} failed"
        )
        return result

    def result(self, import_id: str) -> Optional[ImportResult]:
        with self._lock:
            return self._results.get(import_id)

    def progress(self, import_id: str) -> Optional[ImportProgress]:
        with self._lock:
            return self._progress.get(import_id)

    def is_known(self, import_id: str) -> bool:
        with self._lock:
            return import_id in self._results or import_id in self._progress

    def cancel(self, import_id: str) -> bool:
        """Asks a running import to stop at its next rate-limit wait."""
        with self._lock:
            interrupt = self._interrupts.get(import_id)
        if interrupt is None:
            return False
        interrupt.set()
        progress = self.progress(import_id)
        if progress is not None:
            progress.add_log("Cancellation requested")
        return True

    async def wait(self, import_id: str) -> Optional[ImportResult]:
        """Waits for a running import to finish. Useful for testing and the CLI."""
        task = self._tasks.get(import_id)
        if task is not None:
            return await task
        return self.result(import_id)
