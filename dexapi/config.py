import logging
import sys
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class ImportSettings(BaseSettings):
    """Importer configuration, read from DEXAPI_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="DEXAPI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # PokeAPI
    pokeapi_base_url: str = "https://pokeapi.co/api/v2"
    pokeapi_timeout_ms: int = 30000
    pokeapi_enabled: bool = True

    # Batching
    default_batch_size: int = 20
    record_delay_ms: int = 150
    batch_delay_ms: int = 500

    # Declared for operators, not read by the import pipeline yet
    max_retries: int = 3
    retry_delay_ms: int = 1000

    enable_web_interface: bool = True

    # Persistence
    store_backend: Literal["memory", "redis"] = "memory"
    redis_url: str = "redis://localhost:6379"

    log_level: str = "INFO"

    @property
    def pokeapi_timeout_seconds(self) -> float:
        return self.pokeapi_timeout_ms / 1000

    @property
    def record_delay_seconds(self) -> float:
        return self.record_delay_ms / 1000

    @property
    def batch_delay_seconds(self) -> float:
        return self.batch_delay_ms / 1000


@lru_cache
def get_settings() -> ImportSettings:
    return ImportSettings()


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger once for the CLI and the web app."""
    log_level = getattr(logging, level.upper(), logging.INFO)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)-8s %(name)s: %(message)s")
    )
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [handler]

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
