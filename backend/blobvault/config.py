"""Application settings and configuration helpers."""
from functools import lru_cache
import os
from typing import Optional

from pydantic import BaseModel, Field
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseModel):
    """Runtime configuration loaded from environment variables."""

    database_url: str = Field(
        default="sqlite+aiosqlite:///./data.db", alias="DATABASE_URL"
    )
    host: str = Field(default="localhost", alias="BLOBVAULT_HOST")
    port: int = Field(default=3200, alias="BLOBVAULT_PORT")
    hash_scheme: str = Field(default="pbkdf2_sha256", alias="BLOBVAULT_HASH_SCHEME")
    hash_rounds: Optional[int] = Field(default=None, alias="BLOBVAULT_HASH_ROUNDS")
    log_level: str = Field(default="INFO", alias="BLOBVAULT_LOG_LEVEL")

    model_config = {
        "populate_by_name": True,
        "extra": "ignore",
    }


def _env_values() -> dict[str, str]:
    aliases = [field.alias for field in Settings.model_fields.values() if field.alias]
    return {alias: os.environ[alias] for alias in aliases if os.environ.get(alias)}


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    return Settings(**_env_values())
