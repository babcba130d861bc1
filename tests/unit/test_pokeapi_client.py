import pytest
import httpx
from dexapi.clients.pokeapi_client import PokeAPIClient, APIClientError
from dexapi.config import ImportSettings
from dexapi.models import PokemonPayload, SpeciesPayload, TypePayload


MOCK_POKEMON = {
    "id": 1,
    "name": "bulbasaur",
    "height": 7,
    "weight": 69,
    "base_experience": 64,
    "order": 1,  # Unknown keys are ignored
    "stats": [
        {"base_stat": 45, "effort": 0, "stat": {"name": "hp", "url": "https://pokeapi.co/api/v2/stat/1/"}}
    ],
    "types": [
        {"slot": 1, "type": {"name": "grass", "url": "https://pokeapi.co/api/v2/type/12/"}},
        {"slot": 2, "type": {"name": "poison", "url": "https://pokeapi.co/api/v2/type/4/"}},
    ],
}

MOCK_SPECIES = {
    "id": 1,
    "name": "bulbasaur",
    "gender_rate": 1,
    "generation": {"name": "generation-i", "url": "https://pokeapi.co/api/v2/generation/1/"},
    "names": [
        {"name": "Bulbizarre", "language": {"name": "fr"}},
        {"name": "Bulbasaur", "language": {"name": "en"}},
    ],
    "genera": [{"genus": "Seed Pokémon", "language": {"name": "en"}}],
    "flavor_text_entries": [],
}

@pytest.fixture
def poke_client():
    """Provides a PokeAPIClient with a short timeout."""
    return PokeAPIClient(ImportSettings(_env_file=None, pokeapi_timeout_ms=2000))

@pytest.mark.asyncio
async def test_successful_pokemon_fetch(httpx_mock, poke_client):
    """Verifies the client parses the pokemon detail into its payload model."""
    # ARRANGE
    httpx_mock.add_response(
        url="https://pokeapi.co/api/v2/pokemon/1",
        json=MOCK_POKEMON,
        status_code=200
    )

    # ACT
    result = await poke_client.get_pokemon(1)

    # ASSERT
    assert isinstance(result, PokemonPayload)
    assert result.name == "bulbasaur"
    assert result.height == 7
    assert [slot.type.name for slot in result.types] == ["grass", "poison"]

@pytest.mark.asyncio
async def test_species_generation_reference_is_resolvable(httpx_mock, poke_client):
    httpx_mock.add_response(
        url="https://pokeapi.co/api/v2/pokemon-species/1",
        json=MOCK_SPECIES,
    )

    result = await poke_client.get_species(1)

    assert isinstance(result, SpeciesPayload)
    assert result.generation.extract_id() == 1
    assert {n.language.name for n in result.names} == {"fr", "en"}

@pytest.mark.asyncio
async def test_type_fetch_uses_type_endpoint(httpx_mock, poke_client):
    httpx_mock.add_response(
        url="https://pokeapi.co/api/v2/type/10",
        json={"id": 10, "name": "fire", "names": []},
    )

    result = await poke_client.get_type(10)

    assert isinstance(result, TypePayload)
    assert result.name == "fire"
    assert result.generation is None

@pytest.mark.asyncio
async def test_not_found_returns_none(httpx_mock, poke_client):
    """A 404 from PokeAPI means the resource does not exist; it is not a failure."""
    # ARRANGE
    httpx_mock.add_response(
        url="https://pokeapi.co/api/v2/generation/42",
        status_code=404
    )

    # ACT & ASSERT
    assert await poke_client.get_generation(42) is None

@pytest.mark.asyncio
async def test_pokeapi_internal_error_raises_503(httpx_mock, poke_client):
    """Test that a 500 from PokeAPI is re-mapped to our retryable APIClientError."""
    # ARRANGE
    httpx_mock.add_response(
        url="https://pokeapi.co/api/v2/pokemon/3",
        status_code=500
    )

    # ACT & ASSERT
    with pytest.raises(APIClientError) as excinfo:
        await poke_client.get_pokemon(3)

    assert excinfo.value.status_code == 503
    assert "500" in excinfo.value.detail

@pytest.mark.asyncio
async def test_network_error_raises_503(httpx_mock, poke_client):
    httpx_mock.add_exception(
        httpx.ReadTimeout("timed out"),
        url="https://pokeapi.co/api/v2/pokemon/4",
    )

    with pytest.raises(APIClientError) as excinfo:
        await poke_client.get_pokemon(4)

    assert "network error" in excinfo.value.detail

@pytest.mark.asyncio
async def test_health_check_uses_head_request(httpx_mock, poke_client):
    httpx_mock.add_response(method="HEAD", url="https://pokeapi.co/api/v2/pokemon/1", status_code=200)

    assert await poke_client.is_healthy() is True

@pytest.mark.asyncio
async def test_health_check_never_raises(httpx_mock, poke_client):
    """Any failure during the check is reported as unhealthy."""
    httpx_mock.add_exception(
        httpx.ConnectError("connection refused"),
        method="HEAD",
        url="https://pokeapi.co/api/v2/pokemon/1",
    )

    assert await poke_client.is_healthy() is False

@pytest.mark.asyncio
async def test_health_check_reports_server_errors_as_unhealthy(httpx_mock, poke_client):
    httpx_mock.add_response(method="HEAD", url="https://pokeapi.co/api/v2/pokemon/1", status_code=503)

    assert await poke_client.is_healthy() is False

@pytest.mark.asyncio
async def test_custom_base_url_is_honoured(httpx_mock):
    client = PokeAPIClient(ImportSettings(_env_file=None, pokeapi_base_url="http://mirror.local/api/v2"))
    httpx_mock.add_response(url="http://mirror.local/api/v2/type/1", json={"id": 1, "name": "normal"})

    result = await client.get_type(1)

    assert result.name == "normal"
    await client.close()
