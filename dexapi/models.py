from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


class Language(str, Enum):
    EN = "en"
    FR = "fr"
    JA = "ja"
    ES = "es"
    DE = "de"
    IT = "it"
    KO = "ko"
    ZH = "zh"

    @property
    def code(self) -> str:
        return self.value

    @property
    def native_name(self) -> str:
        return _LANGUAGE_NAMES[self][0]

    @property
    def english_name(self) -> str:
        return _LANGUAGE_NAMES[self][1]

    @classmethod
    def from_code(cls, code: Optional[str]) -> "Language":
        """Lenient lookup: matches the full code or its two-letter prefix, EN otherwise."""
        if code is None or not code.strip():
            return cls.EN
        normalized = code.strip().lower()
        for language in cls:
            if language.value == normalized or language.value == normalized[:2]:
                return language
        return cls.EN

    @classmethod
    def from_code_strict(cls, code: str) -> "Language":
        for language in cls:
            if language.value == (code or "").lower():
                return language
        raise ValueError(f"Unsupported language code: {code}")


_LANGUAGE_NAMES = {
    Language.EN: ("English", "English"),
    Language.FR: ("Français", "French"),
    Language.JA: ("日本語", "Japanese"),
    Language.ES: ("Español", "Spanish"),
    Language.DE: ("Deutsch", "German"),
    Language.IT: ("Italiano", "Italian"),
    Language.KO: ("한국어", "Korean"),
    Language.ZH: ("中文", "Chinese"),
}


class ImportStatus(str, Enum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


# --- Domain records (what the Entity Store persists) ---

class GenerationTranslation(BaseModel):
    language: Language
    name: str


class TypeTranslation(BaseModel):
    language: Language
    name: str


class PokemonTranslation(BaseModel):
    language: Language
    name: str
    species: Optional[str] = None
    description: Optional[str] = None
    habitat: Optional[str] = None


class _TranslatedRecord(BaseModel):
    def translation_for(self, language: Language):
        """Returns the translation for `language`, falling back to English."""
        by_language = {t.language: t for t in self.translations}
        return by_language.get(language) or by_language.get(Language.EN)

    def languages(self) -> set[Language]:
        return {t.language for t in self.translations}


class Generation(_TranslatedRecord):
    id: Optional[int] = None
    number: int
    name: str
    region: Optional[str] = None
    release_year: Optional[int] = None
    games: list[str] = Field(default_factory=list)
    translations: list[GenerationTranslation] = Field(default_factory=list)


class Type(_TranslatedRecord):
    id: Optional[int] = None
    identifier: str
    # PokeAPI's numeric id for the type, used to reconcile before fetching
    source_id: Optional[int] = None
    color: str
    generation_id: Optional[int] = None
    generation_number: Optional[int] = None
    translations: list[TypeTranslation] = Field(default_factory=list)


class PokemonTypeLink(BaseModel):
    type_id: Optional[int] = None
    type_identifier: str
    slot: int


class Pokemon(_TranslatedRecord):
    id: Optional[int] = None
    national_dex_number: int
    identifier: str
    hp: Optional[int] = None
    attack: Optional[int] = None
    defense: Optional[int] = None
    special_attack: Optional[int] = None
    special_defense: Optional[int] = None
    speed: Optional[int] = None
    height: Optional[Decimal] = None  # meters
    weight: Optional[Decimal] = None  # kilograms
    capture_rate: Optional[int] = None
    base_experience: Optional[int] = None
    growth_rate: Optional[str] = None
    gender_ratio: Optional[str] = None
    egg_cycles: Optional[int] = None
    color: Optional[str] = None
    shape: Optional[str] = None
    generation_id: Optional[int] = None
    generation_number: Optional[int] = None
    types: list[PokemonTypeLink] = Field(default_factory=list)
    translations: list[PokemonTranslation] = Field(default_factory=list)


# --- Raw PokeAPI payloads (Internal Contract) ---

class NamedResource(BaseModel):
    name: str
    url: Optional[str] = None

    def extract_id(self) -> Optional[int]:
        """Reads the trailing numeric segment of a resource URL."""
        if not self.url:
            return None
        for part in reversed(self.url.split("/")):
            if part.isdigit():
                return int(part)
        return None


class LocalizedName(BaseModel):
    name: str
    language: NamedResource


class Genus(BaseModel):
    genus: str
    language: NamedResource


class FlavorTextEntry(BaseModel):
    flavor_text: str
    language: NamedResource
    version: Optional[NamedResource] = None


class GenerationPayload(BaseModel):
    id: int
    name: str
    main_region: Optional[NamedResource] = None
    names: list[LocalizedName] = Field(default_factory=list)
    version_groups: list[NamedResource] = Field(default_factory=list)


class PokemonStatSlot(BaseModel):
    base_stat: Optional[int] = None
    effort: Optional[int] = None
    stat: NamedResource


class PokemonTypeSlot(BaseModel):
    slot: int
    type: NamedResource


class PokemonPayload(BaseModel):
    id: int
    name: str
    height: Optional[int] = None  # decimeters
    weight: Optional[int] = None  # hectograms
    base_experience: Optional[int] = None
    stats: list[PokemonStatSlot] = Field(default_factory=list)
    types: list[PokemonTypeSlot] = Field(default_factory=list)


class SpeciesPayload(BaseModel):
    id: int
    name: str
    gender_rate: Optional[int] = None
    capture_rate: Optional[int] = None
    hatch_counter: Optional[int] = None
    is_legendary: bool = False
    is_mythical: bool = False
    growth_rate: Optional[NamedResource] = None
    color: Optional[NamedResource] = None
    shape: Optional[NamedResource] = None
    habitat: Optional[NamedResource] = None
    generation: Optional[NamedResource] = None
    names: list[LocalizedName] = Field(default_factory=list)
    genera: list[Genus] = Field(default_factory=list)
    flavor_text_entries: list[FlavorTextEntry] = Field(default_factory=list)


class TypePayload(BaseModel):
    id: int
    name: str
    names: list[LocalizedName] = Field(default_factory=list)
    generation: Optional[NamedResource] = None


# --- Import results (public contract for CLI and HTTP callers) ---

def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ImportResult(BaseModel):
    """Immutable summary of one import operation."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    success: bool
    total_records: int = 0
    successful_imports: int = 0
    failed_imports: int = 0
    # Records that already existed and only gained missing associations.
    # Counted inside successful_imports as well.
    augmented_imports: int = 0
    errors: tuple[str, ...] = ()
    source: str
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @computed_field(alias="durationMs")
    @property
    def duration_ms(self) -> int:
        if self.start_time is None or self.end_time is None:
            return 0
        return int((self.end_time - self.start_time).total_seconds() * 1000)

    @classmethod
    def failure(cls, source: str, error: str, failed_imports: int = 0) -> "ImportResult":
        now = utcnow()
        return cls(
            success=False,
            failed_imports=failed_imports,
            errors=(error,),
            source=source,
            start_time=now,
            end_time=now,
        )

    @classmethod
    def combine(cls, results: Iterable["ImportResult"], source: str) -> "ImportResult":
        """Sums counts, concatenates errors and spans the earliest start to the latest end."""
        results = list(results)
        starts = [r.start_time for r in results if r.start_time is not None]
        ends = [r.end_time for r in results if r.end_time is not None]
        return cls(
            success=all(r.success for r in results),
            total_records=sum(r.total_records for r in results),
            successful_imports=sum(r.successful_imports for r in results),
            failed_imports=sum(r.failed_imports for r in results),
            augmented_imports=sum(r.augmented_imports for r in results),
            errors=tuple(e for r in results for e in r.errors),
            source=source,
            start_time=min(starts) if starts else None,
            end_time=max(ends) if ends else None,
        )


# --- Admin API responses ---

class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ImportStartResponse(_CamelModel):
    success: bool
    import_id: str
    message: str


class ImportStatusResponse(_CamelModel):
    status: str  # "running" until the terminal result is recorded, then "completed"
    message: Optional[str] = None
    progress: Optional[dict] = None
    result: Optional[ImportResult] = None


class ImporterHealthResponse(_CamelModel):
    importers: dict[str, bool]
    healthy: list[str]
