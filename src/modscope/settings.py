"""Runtime configuration for :mod:`modscope`, loaded with `pydantic-settings`.

Values are merged from, highest precedence first:

- keyword arguments (``Settings(...)``, ``Settings.load(...)``, CLI flags),
- ``MODSCOPE_*`` environment variables,
- a ``.env`` file in the working directory,
- a flat ``settings.toml`` in the working directory (keys are field names),
- the field defaults below.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from pydantic_settings.sources import PydanticBaseSettingsSource, TomlConfigSettingsSource

ENV_PREFIX = "MODSCOPE_"
DEFAULT_MANIFEST_ENTRY = "META-INF/MANIFEST.MF"
SETTINGS_FILE = "settings.toml"
_TOML_FILES_KEY = "_modscope_toml_files"


def level_from_name(value: Any) -> int:
    """Accept ``20``, ``"20"`` or ``"info"``; reject booleans and unknown names."""

    if isinstance(value, bool):
        raise TypeError("log_level must be an int or a log level name")
    if isinstance(value, int):
        return value
    name = str(value).strip()
    if name.isdigit():
        return int(name)
    level = logging.getLevelNamesMapping().get(name.upper(), logging.INFO if not name else None)
    if level is None:
        raise ValueError(f"Invalid log_level: {value!r}")
    return level


def split_paths(value: Any) -> tuple[str, ...]:
    """Normalise a list of paths or a comma-separated string into a tuple."""

    if value is None:
        return ()
    if isinstance(value, (str, Path)):
        items = str(value).split(",")
    elif isinstance(value, (list, tuple)):
        items = [str(item) for item in value]
    else:
        raise TypeError("search_path must be a list/tuple of paths or a comma-separated string")
    return tuple(item.strip() for item in items if item.strip())


class Settings(BaseSettings):
    """Runtime settings for scope resolution and archive building."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        extra="ignore",
    )

    search_path: Annotated[tuple[Path, ...], NoDecode] = Field(
        default=(),
        description="Extra import-path entries searched before sys.path.",
    )
    include_sys_path: bool = Field(default=True, description="Append sys.path to the default scope.")

    staging_root: Path | None = Field(
        default=None,
        description="Parent directory for staging trees (defaults to the platform temp dir).",
    )
    manifest_entry: str = Field(default=DEFAULT_MANIFEST_ENTRY)
    compression: Literal["stored", "deflated"] = "deflated"

    log_format: Literal["text", "ndjson"] = "text"
    log_level: int = logging.INFO

    @field_validator("log_level", mode="before")
    @classmethod
    def _validate_log_level(cls, value: Any) -> int:
        return level_from_name(value)

    @field_validator("search_path", mode="before")
    @classmethod
    def _validate_search_path(cls, value: Any) -> tuple[str, ...]:
        return split_paths(value)

    @field_validator("manifest_entry")
    @classmethod
    def _ensure_manifest_entry(cls, value: str) -> str:
        entry = value.strip().lstrip("/")
        if not entry or entry.endswith("/"):
            raise ValueError("manifest_entry must name a file inside the archive")
        return entry

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        init_kwargs = getattr(init_settings, "init_kwargs", {}) or {}
        toml_files = init_kwargs.get(_TOML_FILES_KEY) or [Path.cwd() / SETTINGS_FILE]
        toml_source = TomlConfigSettingsSource(settings_cls, toml_file=toml_files)
        return init_settings, env_settings, dotenv_settings, toml_source, file_secret_settings

    @classmethod
    def load(cls, *, cwd: Path | None = None, **overrides: Any) -> "Settings":
        """Build settings reading ``settings.toml`` and ``.env`` from ``cwd``."""

        base = Path(cwd or Path.cwd()).expanduser().resolve()
        options: dict[str, Any] = {_TOML_FILES_KEY: [base / SETTINGS_FILE], "_env_file": base / ".env"}
        return cls(**options, **overrides)


__all__ = ["DEFAULT_MANIFEST_ENTRY", "ENV_PREFIX", "Settings"]
