"""Client modules for external API communication."""
from .pokeapi_client import PokeAPIClient, APIClientError

__all__ = [
    'PokeAPIClient',
    'APIClientError'
]
