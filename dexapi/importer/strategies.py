import logging
from typing import Optional

from dexapi.clients.pokeapi_client import PokeAPIClient
from dexapi.importer import mappers
from dexapi.importer.reconciler import ImportStrategy, merge_translations
from dexapi.models import (
    Generation,
    GenerationPayload,
    GenerationTranslation,
    Language,
    LocalizedName,
    Pokemon,
    PokemonPayload,
    PokemonTranslation,
    PokemonTypeLink,
    SpeciesPayload,
    Type,
    TypePayload,
    TypeTranslation,
)
from dexapi.stores import GenerationStore, PokemonStore, TypeStore

logger = logging.getLogger(__name__)

GENERATION_SOURCE = "PokeAPI v2 - Generations"
TYPE_SOURCE = "PokeAPI v2 - Types"
POKEMON_SOURCE = "PokeAPI v2 - Pokemon"

KNOWN_GENERATIONS = 9
KNOWN_TYPES = 18


class GenerationImportStrategy(ImportStrategy[Generation, GenerationPayload]):
    source_name = GENERATION_SOURCE
    entity_label = "Generation"
    max_count = KNOWN_GENERATIONS

    def __init__(self, client: PokeAPIClient, generations: GenerationStore):
        self.client = client
        self.generations = generations

    async def find_existing(self, key: int) -> Optional[Generation]:
        return await self.generations.find_by_number(key)

    async def fetch(self, key: int) -> Optional[GenerationPayload]:
        return await self.client.get_generation(key)

    async def create(self, payload: GenerationPayload) -> Generation:
        return mappers.map_generation(payload)

    async def attach_associations(self, record: Generation, payload: GenerationPayload) -> Generation:
        record.translations = merge_translations(
            record.translations,
            payload.names,
            build=lambda language, entry: GenerationTranslation(language=language, name=entry.name),
            english_fallback=lambda: GenerationTranslation(language=Language.EN, name=record.name),
        )
        return record

    async def save(self, record: Generation) -> Generation:
        return await self.generations.save(record)

    def validate(self, record: Generation) -> Optional[str]:
        if record.number is None or record.number <= 0:
            return f"Invalid generation number for: {record.name}"
        if not record.name or not record.name.strip():
            return f"Missing name for Generation #{record.number}"
        return None

    def describe(self, record: Generation) -> str:
        return record.name


class TypeImportStrategy(ImportStrategy[Type, TypePayload]):
    source_name = TYPE_SOURCE
    entity_label = "Type"
    max_count = KNOWN_TYPES

    def __init__(self, client: PokeAPIClient, types: TypeStore, generations: GenerationStore):
        self.client = client
        self.types = types
        self.generations = generations

    async def find_existing(self, key: int) -> Optional[Type]:
        return await self.types.find_by_source_id(key)

    async def fetch(self, key: int) -> Optional[TypePayload]:
        return await self.client.get_type(key)

    async def create(self, payload: TypePayload) -> Type:
        record = mappers.map_type(payload)
        generation_number = mappers.type_generation_number(payload)
        generation = await self.generations.find_by_number(generation_number)
        if generation is None:
            logger.warning(f"Generation {generation_number} not found for type {payload.name}")
        else:
            record.generation_id = generation.id
            record.generation_number = generation.number
        return record

    async def attach_associations(self, record: Type, payload: TypePayload) -> Type:
        record.translations = merge_translations(
            record.translations,
            payload.names,
            build=lambda language, entry: TypeTranslation(language=language, name=entry.name),
            english_fallback=lambda: TypeTranslation(
                language=Language.EN, name=mappers.capitalize_first(payload.name)
            ),
        )
        logger.debug(f"Type {payload.name} now has {len(record.translations)} translations")
        return record

    async def save(self, record: Type) -> Type:
        return await self.types.save(record)

    def validate(self, record: Type) -> Optional[str]:
        if not record.identifier or not record.identifier.strip():
            return f"Missing identifier for Type #{record.source_id}"
        return None

    def describe(self, record: Type) -> str:
        return record.identifier


class PokemonImportStrategy(ImportStrategy[Pokemon, tuple[PokemonPayload, Optional[SpeciesPayload]]]):
    """Pokemon need two upstream calls: the pokemon detail and its species."""

    source_name = POKEMON_SOURCE
    entity_label = "Pokemon"

    def __init__(
        self,
        client: PokeAPIClient,
        pokemon: PokemonStore,
        types: TypeStore,
        generations: GenerationStore,
    ):
        self.client = client
        self.pokemon = pokemon
        self.types = types
        self.generations = generations

    async def find_existing(self, key: int) -> Optional[Pokemon]:
        return await self.pokemon.find_by_national_dex_number(key)

    async def fetch(self, key: int):
        pokemon_data = await self.client.get_pokemon(key)
        if pokemon_data is None:
            return None
        species_data = await self.client.get_species(key)
        return pokemon_data, species_data

    async def create(self, payload) -> Pokemon:
        pokemon_data, species_data = payload
        record = mappers.map_pokemon(pokemon_data, species_data)
        generation_number = mappers.pokemon_generation_number(pokemon_data, species_data)
        generation = await self.generations.find_by_number(generation_number)
        if generation is None:
            logger.warning(f"Generation {generation_number} not found for Pokemon #{pokemon_data.id}")
        else:
            record.generation_id = generation.id
            record.generation_number = generation.number
        return record

    async def attach_associations(self, record: Pokemon, payload) -> Pokemon:
        pokemon_data, species_data = payload
        if not record.types:
            record.types = await self._type_links(pokemon_data)
        record.translations = self._merge_translations(record, pokemon_data, species_data)
        logger.debug(f"Pokemon #{record.national_dex_number} now has {len(record.translations)} translations")
        return record

    async def _type_links(self, pokemon_data: PokemonPayload) -> list[PokemonTypeLink]:
        links = []
        for slot in pokemon_data.types:
            stored_type = await self.types.find_by_identifier(slot.type.name)
            if stored_type is None:
                logger.warning(f"Type {slot.type.name} not found for Pokemon #{pokemon_data.id}")
                continue
            links.append(PokemonTypeLink(type_id=stored_type.id, type_identifier=stored_type.identifier, slot=slot.slot))
        return links

    def _merge_translations(
        self,
        record: Pokemon,
        pokemon_data: PokemonPayload,
        species_data: Optional[SpeciesPayload],
    ) -> list[PokemonTranslation]:
        def build(language: Language, entry: LocalizedName) -> PokemonTranslation:
            # Genus and flavor text are matched on the source locale tag, not the collapsed Language
            tag = entry.language.name
            genus = next((g.genus for g in species_data.genera if g.language.name == tag), None)
            flavor = next(
                (f.flavor_text for f in species_data.flavor_text_entries if f.language.name == tag),
                None,
            )
            return PokemonTranslation(
                language=language,
                name=entry.name,
                species=genus,
                description=mappers.clean_flavor_text(flavor),
            )

        return merge_translations(
            record.translations,
            species_data.names if species_data is not None else [],
            build=build,
            english_fallback=lambda: PokemonTranslation(
                language=Language.EN, name=mappers.capitalize_first(pokemon_data.name)
            ),
        )

    async def save(self, record: Pokemon) -> Pokemon:
        return await self.pokemon.save(record)

    def validate(self, record: Pokemon) -> Optional[str]:
        if record.national_dex_number is None or record.national_dex_number <= 0:
            return f"Invalid national dex number for: {record.identifier}"
        if not record.identifier or not record.identifier.strip():
            return f"Missing identifier for Pokemon #{record.national_dex_number}"
        stats = (
            record.hp,
            record.attack,
            record.defense,
            record.special_attack,
            record.special_defense,
            record.speed,
        )
        if any(stat is None for stat in stats):
            return f"Missing stats for: {record.identifier}"
        return None

    def describe(self, record: Pokemon) -> str:
        return record.identifier
