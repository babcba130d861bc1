import httpx
import logging
from typing import Optional
from fastapi import HTTPException
from dexapi.config import ImportSettings, get_settings
from dexapi.models import GenerationPayload, PokemonPayload, SpeciesPayload, TypePayload

logger = logging.getLogger(__name__)

# Retryable fetch failure (transport errors, timeouts, non-404 HTTP errors)
class APIClientError(HTTPException):
    def __init__(self, status_code: int, detail: str):
        super().__init__(status_code=status_code, detail=f"External API Error: {detail}")

class PokeAPIClient:
    # Known-good resource requested by the health check
    HEALTH_CHECK_PATH = "/pokemon/1"

    def __init__(self, settings: Optional[ImportSettings] = None):
        self.settings = settings or get_settings()
        self.client = httpx.AsyncClient(
            base_url=self.settings.pokeapi_base_url,
            timeout=self.settings.pokeapi_timeout_seconds,
        )

    async def _fetch(self, path: str) -> Optional[dict]:
        """Fetches one raw resource. Returns None when PokeAPI answers 404."""
        try:
            response = await self.client.get(path)
            if response.status_code == 404:
                logger.warning(f"PokeAPI has no resource at {path}")
                return None
            response.raise_for_status()  # Raises for the remaining 4xx/5xx codes
            return response.json()

        except httpx.HTTPStatusError as e:
            logger.error(f"Failed to fetch {path}: status {e.response.status_code}")
            raise APIClientError(status_code=503, detail=f"PokeAPI failed with status {e.response.status_code}")
        except httpx.RequestError as e:
            # Network failures/timeouts
            logger.error(f"Failed to fetch {path}: {e}")
            raise APIClientError(status_code=503, detail=f"PokeAPI network error: {str(e)}")
        except ValueError as e:
            logger.error(f"Failed to decode {path}: {e}")
            raise APIClientError(status_code=503, detail="PokeAPI returned an unexpected response format.")

    async def get_generation(self, generation_id: int) -> Optional[GenerationPayload]:
        data = await self._fetch(f"/generation/{generation_id}")
        return GenerationPayload.model_validate(data) if data is not None else None

    async def get_pokemon(self, pokemon_id: int) -> Optional[PokemonPayload]:
        data = await self._fetch(f"/pokemon/{pokemon_id}")
        return PokemonPayload.model_validate(data) if data is not None else None

    async def get_species(self, species_id: int) -> Optional[SpeciesPayload]:
        data = await self._fetch(f"/pokemon-species/{species_id}")
        return SpeciesPayload.model_validate(data) if data is not None else None

    async def get_type(self, type_id: int) -> Optional[TypePayload]:
        data = await self._fetch(f"/type/{type_id}")
        return TypePayload.model_validate(data) if data is not None else None

    async def is_healthy(self) -> bool:
        """Metadata-only HEAD request; never raises."""
        try:
            response = await self.client.head(self.HEALTH_CHECK_PATH)
            response.raise_for_status()
            return True
        except Exception as e:
            logger.warning(f"PokeAPI health check failed: {e}")
            return False

    async def close(self):
        """Close the HTTP connection pool (call on app shutdown)."""
        await self.client.aclose()
