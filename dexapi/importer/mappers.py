"""
Pure transforms from PokeAPI payloads into domain field values.

Nothing in this module touches the network or the Entity Store.
"""

import re
from decimal import Decimal
from types import MappingProxyType
from typing import Optional

from dexapi.models import (
    Generation,
    GenerationPayload,
    Language,
    Pokemon,
    PokemonPayload,
    SpeciesPayload,
    Type,
    TypePayload,
)

# Floor value for stats PokeAPI did not report; downstream columns are non-null.
DEFAULT_STAT = 1

STAT_FIELDS = MappingProxyType({
    "hp": "hp",
    "attack": "attack",
    "defense": "defense",
    "special-attack": "special_attack",
    "special-defense": "special_defense",
    "speed": "speed",
})

RELEASE_YEARS = MappingProxyType({
    1: 1996,
    2: 1999,
    3: 2002,
    4: 2006,
    5: 2010,
    6: 2013,
    7: 2016,
    8: 2019,
    9: 2022,
})

TYPE_COLORS = MappingProxyType({
    "normal": "#A8A878",
    "fire": "#F08030",
    "water": "#6890F0",
    "electric": "#F8D030",
    "grass": "#78C850",
    "ice": "#98D8D8",
    "fighting": "#C03028",
    "poison": "#A040A0",
    "ground": "#E0C068",
    "flying": "#A890F0",
    "psychic": "#F85888",
    "bug": "#A8B820",
    "rock": "#B8A038",
    "ghost": "#705898",
    "dragon": "#7038F8",
    "dark": "#705848",
    "steel": "#B8B8D0",
    "fairy": "#EE99AC",
})
UNKNOWN_TYPE_COLOR = "#68A090"

TYPE_INTRODUCED_IN = MappingProxyType({
    **{name: 1 for name in (
        "normal", "fire", "water", "electric", "grass", "ice", "fighting", "poison",
        "ground", "flying", "psychic", "bug", "rock", "ghost", "dragon",
    )},
    "dark": 2,
    "steel": 2,
    "shadow": 3,
    "fairy": 6,
})

LANGUAGE_CODES = MappingProxyType({
    "en": Language.EN,
    "fr": Language.FR,
    "ja": Language.JA,
    "ja-Hrkt": Language.JA,
    "es": Language.ES,
    "de": Language.DE,
    "it": Language.IT,
    "ko": Language.KO,
    "zh": Language.ZH,
    "zh-Hant": Language.ZH,
    "zh-Hans": Language.ZH,
})

# Last national-dex number of each generation; anything above belongs to gen 9.
GENERATION_DEX_BOUNDARIES = (151, 251, 386, 493, 649, 721, 809, 905)


def map_language(code: Optional[str]) -> Optional[Language]:
    """PokeAPI locale code -> Language, or None for locales we do not carry."""
    return LANGUAGE_CODES.get(code)


def capitalize_first(value: Optional[str]) -> Optional[str]:
    if not value:
        return value
    return value[0].upper() + value[1:]


def humanize(slug: str) -> str:
    return capitalize_first(slug.replace("-", " "))


def clean_flavor_text(text: Optional[str]) -> Optional[str]:
    if text is None:
        return None
    return re.sub(r"\s+", " ", text.replace("\f", " ").replace("\n", " ")).strip()


def scale_tenths(value: Optional[int]) -> Optional[Decimal]:
    """Decimeters -> meters, hectograms -> kilograms."""
    if value is None:
        return None
    return Decimal(value) / Decimal(10)


def gender_ratio(gender_rate: Optional[int]) -> Optional[str]:
    """`gender_rate` is -1 for genderless, otherwise the female share in eighths."""
    if gender_rate is None:
        return None
    if gender_rate == -1:
        return "genderless"
    female = gender_rate / 8.0 * 100
    male = 100 - female
    return f"{male:.1f}% male, {female:.1f}% female"


def release_year(generation_number: Optional[int]) -> Optional[int]:
    return RELEASE_YEARS.get(generation_number)


def type_color(identifier: str) -> str:
    return TYPE_COLORS.get(identifier.lower(), UNKNOWN_TYPE_COLOR)


def type_generation_number(payload: TypePayload) -> int:
    """Generation a type belongs to: the payload's own reference first, then the static table."""
    if payload.generation is not None:
        generation_number = payload.generation.extract_id()
        if generation_number is not None:
            return generation_number
    return TYPE_INTRODUCED_IN.get(payload.name.lower(), 1)


def generation_by_dex_number(national_dex_number: int) -> int:
    for generation_number, last_dex_number in enumerate(GENERATION_DEX_BOUNDARIES, start=1):
        if national_dex_number <= last_dex_number:
            return generation_number
    return len(GENERATION_DEX_BOUNDARIES) + 1


def pokemon_generation_number(pokemon: PokemonPayload, species: Optional[SpeciesPayload]) -> int:
    if species is not None and species.generation is not None:
        generation_number = species.generation.extract_id()
        if generation_number is not None:
            return generation_number
    return generation_by_dex_number(pokemon.id)


def map_generation(payload: GenerationPayload) -> Generation:
    return Generation(
        number=payload.id,
        name=humanize(payload.name),
        region=capitalize_first(payload.main_region.name) if payload.main_region else None,
        games=[humanize(vg.name) for vg in payload.version_groups],
        release_year=release_year(payload.id),
    )


def map_type(payload: TypePayload) -> Type:
    return Type(
        identifier=payload.name,
        source_id=payload.id,
        color=type_color(payload.name),
    )


def map_pokemon(pokemon: PokemonPayload, species: Optional[SpeciesPayload]) -> Pokemon:
    stats = {field: DEFAULT_STAT for field in STAT_FIELDS.values()}
    for slot in pokemon.stats:
        field = STAT_FIELDS.get(slot.stat.name)
        if field is not None and slot.base_stat is not None:
            stats[field] = slot.base_stat

    record = Pokemon(
        national_dex_number=pokemon.id,
        identifier=pokemon.name,
        base_experience=pokemon.base_experience,
        height=scale_tenths(pokemon.height),
        weight=scale_tenths(pokemon.weight),
        **stats,
    )

    if species is not None:
        record.capture_rate = species.capture_rate
        record.growth_rate = species.growth_rate.name if species.growth_rate else None
        record.egg_cycles = species.hatch_counter
        record.color = species.color.name if species.color else None
        record.shape = species.shape.name if species.shape else None
        record.gender_ratio = gender_ratio(species.gender_rate)

    return record
