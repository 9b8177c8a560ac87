"""Engine settings.

Values come from the environment (optionally a ``.env`` file) so deployments
can tune limits without code changes.
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()

DEFAULT_MAX_ROWS = 2000
DEFAULT_SANKEY_MAX_NODES = 50
DEFAULT_FILL = "#8884d8"
DEFAULT_CACHE_SIZE = 512


class ConfigError(RuntimeError):
    """Raised when an environment setting cannot be parsed."""


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(key)
    if value is None:
        return default
    return value.strip() or default


def _env_int(key: str, default: int) -> int:
    raw = _env(key)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise ConfigError(f"{key} must be positive, got {value}")
    return value


class Settings(BaseModel):
    max_rows: int = DEFAULT_MAX_ROWS
    sankey_max_nodes: int = DEFAULT_SANKEY_MAX_NODES
    default_fill: str = DEFAULT_FILL
    cache_size: int = DEFAULT_CACHE_SIZE
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])


def load_settings() -> Settings:
    """Build settings from the current environment."""
    origins = _env("WORKSHEET_CORS_ORIGINS", "*") or "*"
    return Settings(
        max_rows=_env_int("WORKSHEET_MAX_ROWS", DEFAULT_MAX_ROWS),
        sankey_max_nodes=_env_int("WORKSHEET_SANKEY_MAX_NODES", DEFAULT_SANKEY_MAX_NODES),
        default_fill=_env("WORKSHEET_DEFAULT_FILL", DEFAULT_FILL) or DEFAULT_FILL,
        cache_size=_env_int("WORKSHEET_CACHE_SIZE", DEFAULT_CACHE_SIZE),
        cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
    )


@lru_cache
def get_settings() -> Settings:
    return load_settings()
