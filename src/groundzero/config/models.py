"""
Pydantic models for validating the site layout configuration.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..util.text import to_posix

CONFIG_FILENAME = "groundzero.toml"
DEFAULT_TEMPLATE_EXTENSION = ".ejs"
DEFAULT_OUTPUT_EXTENSION = ".html"


class ConfigError(RuntimeError):
    """Raised when configuration files cannot be loaded or validated."""


class SiteConfig(BaseModel):
    """
    Layout and tunables for one site project.

    Attributes:
        project_root: Directory every relative path below is resolved against.
        pages_dir: Documents root; every template here produces one output file.
        partials_dir: Fragments root; templates here are only ever included.
        out_dir: Output root mirroring the structure of pages_dir.
        icons_dir: Source SVG icons aggregated into the sprite fragment.
        sprite_partial: Fragment file the icon sprite is written to.
        entry_module: Client-side entry script referenced by rendered pages.
        module_entry: Explicit reference string injected as ``module_entry``;
            derived from entry_module when unset.
        template_extension: Extension identifying template files.
        output_extension: Extension given to rendered documents.
        debounce_ms: Quiescence window used to batch template changes.
        icons_debounce_ms: Quiescence window used to batch icon changes.
    """

    project_root: Path = Field(default_factory=Path.cwd)
    pages_dir: Path = Path("src/pages")
    partials_dir: Path = Path("src/partials")
    out_dir: Path = Path("dev-html")
    icons_dir: Path = Path("src/assets/icons")
    sprite_partial: Path = Path("src/partials/svg-sprite.ejs")
    entry_module: Path = Path("src/assets/js/main.js")
    module_entry: Optional[str] = None
    template_extension: str = DEFAULT_TEMPLATE_EXTENSION
    output_extension: str = DEFAULT_OUTPUT_EXTENSION
    debounce_ms: int = Field(default=25, ge=0)
    icons_debounce_ms: int = Field(default=20, ge=0)

    model_config = {
        "extra": "forbid",
        "frozen": True,
    }

    @field_validator("template_extension", "output_extension")
    @classmethod
    def _check_extension(cls, value: str) -> str:
        if not value.startswith(".") or len(value) < 2:
            raise ValueError(f"extensions must start with '.', got {value!r}")
        return value

    @field_validator("project_root")
    @classmethod
    def _absolute_root(cls, value: Path) -> Path:
        return Path(os.path.abspath(value.expanduser()))

    def resolve(self, path: Path) -> Path:
        """Return path as an absolute, lexically normalised path under project_root."""
        return Path(os.path.abspath(self.project_root / path.expanduser()))

    @property
    def pages_root(self) -> Path:
        return self.resolve(self.pages_dir)

    @property
    def partials_root(self) -> Path:
        return self.resolve(self.partials_dir)

    @property
    def out_root(self) -> Path:
        return self.resolve(self.out_dir)

    @property
    def icons_root(self) -> Path:
        return self.resolve(self.icons_dir)

    @property
    def sprite_path(self) -> Path:
        return self.resolve(self.sprite_partial)

    @property
    def resolved_module_entry(self) -> str:
        """
        Reference string for the client entry module.

        Defaults to the dev server's ``/@fs/`` form of the absolute entry path so
        it can be served from outside the output root.
        """
        if self.module_entry:
            return self.module_entry
        return f"/@fs/{to_posix(str(self.resolve(self.entry_module)))}"

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000

    @property
    def icons_debounce_seconds(self) -> float:
        return self.icons_debounce_ms / 1000

    def is_template(self, path: Path | str) -> bool:
        return str(path).endswith(self.template_extension)


def load_config(path: Path | str | None = None, *, project_root: Path | str | None = None) -> SiteConfig:
    """
    Load and validate a TOML config file into a SiteConfig instance.

    When no path is given, ``groundzero.toml`` in the project root is used if it
    exists; otherwise the defaults apply.

    Raises:
        ConfigError: If an explicit file is missing, unreadable, or invalid.
    """
    root = Path(project_root).expanduser().resolve() if project_root else Path.cwd()
    if path is None:
        candidate = root / CONFIG_FILENAME
        if not candidate.exists():
            return _validate({"project_root": root})
        config_path = candidate
    else:
        config_path = Path(path).expanduser().resolve()
        if not config_path.exists():
            raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with config_path.open("rb") as handle:
            raw_data: Dict[str, Any] = tomllib.load(handle)
    except OSError as exc:
        raise ConfigError(f"Unable to read configuration file: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in configuration file: {exc}") from exc

    if "project_root" in raw_data:
        raise ConfigError("project_root is taken from the working directory and cannot be set in the file.")
    raw_data["project_root"] = root
    return _validate(raw_data)


def _validate(raw_data: Dict[str, Any]) -> SiteConfig:
    try:
        return SiteConfig.model_validate(raw_data)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc
