"""
Per-record reconciliation.

For one natural key the engine decides between three paths:

* absent            -> fetch, map, save the base record, then attach
                       associations and save again (CREATED)
* present, complete -> nothing is fetched (SKIPPED)
* present, partial  -> fetch and attach only what is missing (AUGMENTED)

A record counts as complete once it carries at least one translation.
Exceptions raised while fetching, mapping or persisting propagate to the
caller; isolating them is the batch driver's job.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Generic, Iterable, Optional, TypeVar

from dexapi.importer.mappers import map_language
from dexapi.models import Language, LocalizedName

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT")
PayloadT = TypeVar("PayloadT")
TranslationT = TypeVar("TranslationT")


class ReconcileOutcome(str, Enum):
    CREATED = "created"
    AUGMENTED = "augmented"
    SKIPPED = "skipped"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass(frozen=True)
class RecordOutcome(Generic[RecordT]):
    key: int
    outcome: ReconcileOutcome
    record: Optional[RecordT] = None
    error: Optional[str] = None

    @property
    def counted(self) -> bool:
        """Only created and augmented records reach the batch's result list."""
        return self.record is not None


class ImportStrategy(ABC, Generic[RecordT, PayloadT]):
    """Kind-specific pieces plugged into the generic reconcile routine."""

    source_name: str
    entity_label: str
    # Closed-size resources (types, generations) stop at this key
    max_count: Optional[int] = None

    @abstractmethod
    async def find_existing(self, key: int) -> Optional[RecordT]:
        ...

    @abstractmethod
    async def fetch(self, key: int) -> Optional[PayloadT]:
        ...

    @abstractmethod
    async def create(self, payload: PayloadT) -> RecordT:
        """Maps the payload into a new record carrying base fields only."""

    @abstractmethod
    async def attach_associations(self, record: RecordT, payload: PayloadT) -> RecordT:
        """Adds whatever associations the record is missing. Never drops existing ones."""

    @abstractmethod
    async def save(self, record: RecordT) -> RecordT:
        ...

    @abstractmethod
    def validate(self, record: RecordT) -> Optional[str]:
        """Returns an error message for a structurally invalid record."""

    @abstractmethod
    def describe(self, record: RecordT) -> str:
        """Short human label for log lines."""

    def is_complete(self, record: RecordT) -> bool:
        return bool(record.translations)


async def reconcile(strategy: ImportStrategy, key: int) -> RecordOutcome:
    label = strategy.entity_label
    logger.debug(f"Importing {label} #{key}")

    existing = await strategy.find_existing(key)
    if existing is not None and strategy.is_complete(existing):
        logger.debug(f"{label} #{key} already exists with translations, skipping")
        return RecordOutcome(key=key, outcome=ReconcileOutcome.SKIPPED)
    if existing is not None:
        logger.debug(f"{label} #{key} exists but has no translations, will add them")

    payload = await strategy.fetch(key)
    if payload is None:
        logger.warning(f"No data received for {label} #{key}")
        return RecordOutcome(key=key, outcome=ReconcileOutcome.NOT_FOUND)

    if existing is not None:
        record = await strategy.attach_associations(existing, payload)
        record = await strategy.save(record)
        outcome = ReconcileOutcome.AUGMENTED
    else:
        # Associations reference the record's identity, so persist the base first
        record = await strategy.save(await strategy.create(payload))
        record = await strategy.attach_associations(record, payload)
        record = await strategy.save(record)
        outcome = ReconcileOutcome.CREATED

    logger.info(f"Successfully imported {label} #{key}: {strategy.describe(record)} ({outcome.value})")
    return RecordOutcome(key=key, outcome=outcome, record=record)


def merge_translations(
    existing: Iterable[TranslationT],
    names: Iterable[LocalizedName],
    build: Callable[[Language, LocalizedName], TranslationT],
    english_fallback: Callable[[], TranslationT],
) -> list[TranslationT]:
    """Merges source names into the persisted translations.

    At most one translation per language: a language already present is
    kept as-is, and a missing English entry is synthesized.
    """
    merged = {translation.language: translation for translation in existing}

    for entry in names:
        language = map_language(entry.language.name)
        if language is None:
            logger.debug(f"Skipping unsupported language: {entry.language.name}")
            continue
        if language in merged:
            logger.debug(f"Translation for language {language.code} already present, skipping")
            continue
        merged[language] = build(language, entry)

    if Language.EN not in merged:
        merged[Language.EN] = english_fallback()

    return list(merged.values())
