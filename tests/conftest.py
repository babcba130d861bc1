import pytest
from unittest.mock import AsyncMock
from dexapi.clients.pokeapi_client import PokeAPIClient
from dexapi.config import ImportSettings
from dexapi.dependencies import build_import_service
from dexapi.models import GenerationPayload, PokemonPayload, SpeciesPayload, TypePayload
from dexapi.stores import in_memory_stores

STAT_NAMES = ("hp", "attack", "defense", "special-attack", "special-defense", "speed")


def _localized(entries):
    return [{"name": name, "language": {"name": tag}} for tag, name in entries]


def pokemon_data(dex, name, stats=None, types=(("grass", 1),), height=7, weight=69):
    """Raw /pokemon/{id} JSON. `stats` maps stat name -> base stat; None means all six at 45."""
    if stats is None:
        stats = {stat: 45 for stat in STAT_NAMES}
    return {
        "id": dex,
        "name": name,
        "height": height,
        "weight": weight,
        "base_experience": 64,
        "stats": [
            {"base_stat": value, "effort": 0, "stat": {"name": stat, "url": f"https://pokeapi.co/api/v2/stat/{stat}/"}}
            for stat, value in stats.items()
        ],
        "types": [
            {"slot": slot, "type": {"name": type_name, "url": f"https://pokeapi.co/api/v2/type/{type_name}/"}}
            for type_name, slot in types
        ],
    }


def species_data(dex, names=(), genera=(), flavor=(), gender_rate=1, generation=1):
    return {
        "id": dex,
        "name": f"species-{dex}",
        "gender_rate": gender_rate,
        "capture_rate": 45,
        "hatch_counter": 20,
        "growth_rate": {"name": "medium-slow", "url": "https://pokeapi.co/api/v2/growth-rate/4/"},
        "color": {"name": "green", "url": "https://pokeapi.co/api/v2/pokemon-color/5/"},
        "shape": {"name": "quadruped", "url": "https://pokeapi.co/api/v2/pokemon-shape/8/"},
        "generation": (
            {"name": "generation-i", "url": f"https://pokeapi.co/api/v2/generation/{generation}/"}
            if generation is not None else None
        ),
        "names": _localized(names),
        "genera": [{"genus": genus, "language": {"name": tag}} for tag, genus in genera],
        "flavor_text_entries": [
            {"flavor_text": text, "language": {"name": tag}} for tag, text in flavor
        ],
    }


def type_data(type_id, name, names=(), generation=1):
    return {
        "id": type_id,
        "name": name,
        "names": _localized(names),
        "generation": (
            {"name": "generation-i", "url": f"https://pokeapi.co/api/v2/generation/{generation}/"}
            if generation is not None else None
        ),
    }


def generation_data(number, names=()):
    roman = ("i", "ii", "iii", "iv", "v", "vi", "vii", "viii", "ix")[number - 1]
    return {
        "id": number,
        "name": f"generation-{roman}",
        "main_region": {"name": "kanto", "url": "https://pokeapi.co/api/v2/region/1/"},
        "names": _localized(names),
        "version_groups": [{"name": "red-blue", "url": "https://pokeapi.co/api/v2/version-group/1/"}],
    }


class FakePokeAPI:
    """Serves canned payloads through an AsyncMock shaped like PokeAPIClient."""

    def __init__(self):
        self.generations, self.types, self.pokemon, self.species = {}, {}, {}, {}
        self.failing = set()
        self.client = AsyncMock(spec=PokeAPIClient)
        self.client.is_healthy.return_value = True
        self.client.get_generation.side_effect = self._serve(self.generations, GenerationPayload, "generation")
        self.client.get_type.side_effect = self._serve(self.types, TypePayload, "type")
        self.client.get_pokemon.side_effect = self._serve(self.pokemon, PokemonPayload, "pokemon")
        self.client.get_species.side_effect = self._serve(self.species, SpeciesPayload, "species")

    def _serve(self, table, model, kind):
        def serve(key):
            if (kind, key) in self.failing:
                raise RuntimeError(f"PokeAPI network error for {kind} {key}")
            data = table.get(key)
            return model.model_validate(data) if data is not None else None
        return serve

    def add_pokemon(self, dex, name, pokemon_kwargs=None, **species_kwargs):
        self.pokemon[dex] = pokemon_data(dex, name, **(pokemon_kwargs or {}))
        self.species[dex] = species_data(dex, **species_kwargs)

    def add_type(self, type_id, name, **kwargs):
        self.types[type_id] = type_data(type_id, name, **kwargs)

    def add_generation(self, number, **kwargs):
        self.generations[number] = generation_data(number, **kwargs)

    def calls(self, kind):
        method = {
            "generation": self.client.get_generation,
            "type": self.client.get_type,
            "pokemon": self.client.get_pokemon,
            "species": self.client.get_species,
        }[kind]
        return [call.args[0] for call in method.await_args_list]

    def fail(self, kind, key):
        self.failing.add((kind, key))


@pytest.fixture
def settings():
    return ImportSettings(_env_file=None, record_delay_ms=0, batch_delay_ms=0)


@pytest.fixture
def fake_api():
    return FakePokeAPI()


@pytest.fixture
def stores():
    return in_memory_stores()


@pytest.fixture
def import_service(fake_api, stores, settings):
    return build_import_service(fake_api.client, stores, settings)
