# settings.py
# Runtime configuration, read from GAME_* environment variables.

import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field, field_validator

class Settings(BaseModel):
    """Settings shared by the API and the CLI front ends."""
    win_tile: int = Field(
        default=2048,
        gt=0,
        description="Tile value that wins the game. Lower it (e.g. 32) to test the win flow."
    )
    best_score_path: str = Field(
        default="~/.2048/best_score.json",
        description="JSON file the best score is persisted to."
    )
    rate_limit: str = Field(
        default="100/minute",
        description="slowapi rate limit applied to every API endpoint."
    )
    log_level: str = Field(default="INFO", description="Logging level name.")

    @field_validator("win_tile")
    @classmethod
    def _power_of_two(cls, value: int) -> int:
        if value < 2 or value & (value - 1):
            raise ValueError("win_tile must be a power of two >= 2")
        return value

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        value = value.upper()
        if value not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
        return value

ENV_PREFIX = "GAME_"

def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Builds Settings from the environment. Unset variables keep their defaults.
    Raises pydantic.ValidationError on bad values.
    """
    environ = os.environ if environ is None else environ
    values = {}
    for name in Settings.model_fields:
        env_name = ENV_PREFIX + name.upper()
        if env_name in environ:
            values[name] = environ[env_name]
    return Settings(**values)
