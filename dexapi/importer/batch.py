import logging
from dataclasses import dataclass, field
from typing import Optional

from dexapi.importer.progress import ImportProgress, Interrupt
from dexapi.importer.reconciler import (
    ImportStrategy,
    ReconcileOutcome,
    RecordOutcome,
    reconcile,
)

logger = logging.getLogger(__name__)


@dataclass
class RangeReport:
    """What one pass over a key range produced."""

    records: list = field(default_factory=list)
    created: int = 0
    augmented: int = 0
    skipped: int = 0
    not_found: int = 0
    failures: list[str] = field(default_factory=list)
    interrupted: bool = False


class BatchDriver:
    """Walks a natural-key range one record at a time.

    A failing record is logged and left out of the result list; it never
    aborts the range. Records are spaced by `record_delay` seconds, and an
    interruption during that wait ends the range with what it has so far.
    """

    def __init__(self, record_delay: float = 0.15):
        self.record_delay = record_delay

    def keys_for(self, strategy: ImportStrategy, limit: int, offset: int) -> range:
        last = offset + limit
        if strategy.max_count is not None:
            last = min(last, strategy.max_count)
        return range(offset + 1, last + 1)

    async def import_range(
        self,
        strategy: ImportStrategy,
        limit: int,
        offset: int,
        progress: Optional[ImportProgress] = None,
        interrupt: Optional[Interrupt] = None,
    ) -> RangeReport:
        interrupt = interrupt or Interrupt()
        report = RangeReport()

        for position, key in enumerate(self.keys_for(strategy, limit, offset)):
            # An interrupt set before the range starts stops it before the first fetch
            ready = await interrupt.pause(self.record_delay) if position > 0 else not interrupt.is_set()
            if not ready:
                logger.info(f"{strategy.entity_label} import interrupted before #{key}")
                report.interrupted = True
                break

            if progress is not None:
                progress.set_operation(f"Importing {strategy.entity_label} #{key}")
            outcome = await self._attempt(strategy, key)
            self._record(report, outcome, strategy, progress)

        return report

    async def _attempt(self, strategy: ImportStrategy, key: int) -> RecordOutcome:
        try:
            return await reconcile(strategy, key)
        except Exception as e:
            logger.error(f"Failed to import {strategy.entity_label} #{key}: {e}")
            return RecordOutcome(key=key, outcome=ReconcileOutcome.FAILED, error=str(e))

    def _record(
        self,
        report: RangeReport,
        outcome: RecordOutcome,
        strategy: ImportStrategy,
        progress: Optional[ImportProgress],
    ):
        label = f"{strategy.entity_label} #{outcome.key}"

        if outcome.outcome is ReconcileOutcome.FAILED:
            message = f"Failed to import {label}: {outcome.error}"
            report.failures.append(message)
            if progress is not None:
                progress.record_error(message)
            return

        if outcome.outcome is ReconcileOutcome.SKIPPED:
            report.skipped += 1
        elif outcome.outcome is ReconcileOutcome.NOT_FOUND:
            report.not_found += 1
        elif outcome.outcome is ReconcileOutcome.CREATED:
            report.created += 1
        elif outcome.outcome is ReconcileOutcome.AUGMENTED:
            report.augmented += 1

        if outcome.counted:
            report.records.append(outcome.record)
            if progress is not None:
                progress.record_success(f"Imported {label} ({outcome.outcome.value})")
        elif progress is not None:
            progress.record_skip(f"{label} {outcome.outcome.value.replace('_', ' ')}")
