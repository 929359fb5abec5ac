"""
Environment override loading (process environment plus a project ``.env``).
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field


def _load_dotenv() -> None:
    cwd_env = Path.cwd() / ".env"
    if cwd_env.exists():
        load_dotenv(dotenv_path=cwd_env, override=True)


_load_dotenv()


class EnvOverrides(BaseModel):
    """
    Values read from ``GZERO_*`` environment variables.

    Attributes:
        config_path: Path to a TOML config file used when ``--config`` is omitted.
        debounce_ms: Replaces the configured template debounce window.
    """
    config_path: Optional[Path] = Field(default=None, alias="GZERO_CONFIG")
    debounce_ms: Optional[int] = Field(default=None, alias="GZERO_DEBOUNCE_MS", ge=0)

    model_config = {
        "populate_by_name": True,
    }


@lru_cache(maxsize=1)
def get_overrides() -> EnvOverrides:
    """
    Read overrides from the environment exactly once.
    """
    values = {field.alias: os.getenv(field.alias) for field in EnvOverrides.model_fields.values()}
    return EnvOverrides(**{key: value for key, value in values.items() if value not in (None, "")})
