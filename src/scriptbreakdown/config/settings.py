"""scriptbreakdown configuration settings."""

from __future__ import annotations

import json
import os
import tomllib
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from scriptbreakdown.exceptions import ConfigurationError, check_config_keys


class VfxLevel(BaseModel):
    """A recognized VFX difficulty level."""

    id: str = Field(pattern=r"^[a-z][a-z0-9_]*$")
    label: str
    color: str | None = None


DEFAULT_VFX_LEVEL_CONFIG: list[dict[str, str]] = [
    {"id": "easy", "label": "Easy", "color": "#4CAF50"},
    {"id": "mid", "label": "Medium", "color": "#FFC107"},
    {"id": "hard", "label": "Hard", "color": "#F44336"},
    {"id": "epic", "label": "Epic", "color": "#9C27B0"},
]


class BreakdownSettings(BaseSettings):
    """scriptbreakdown configuration settings.

    Settings are loaded with the following precedence (highest to lowest):
    1. CLI arguments (when provided via command flags)
    2. Config file values (YAML, TOML, or JSON)
    3. Environment variables (prefixed with BREAKDOWN_)
       Example: export BREAKDOWN_INDENT_THRESHOLD=3
    4. .env file (in current directory)
    5. Default values (defined in field declarations below)
    """

    model_config = SettingsConfigDict(
        env_prefix="BREAKDOWN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Annotation settings
    vfx_levels: list[VfxLevel] = Field(
        default_factory=lambda: [VfxLevel(**lvl) for lvl in DEFAULT_VFX_LEVEL_CONFIG],
        description="Recognized VFX difficulty levels, in display order",
        min_length=1,
    )

    # Parser settings
    indent_threshold: int = Field(
        default=4,
        description="Columns of indentation change that count as an indent jump",
        ge=1,
    )

    # Metrics settings
    shots_per_page: list[int] = Field(
        default_factory=lambda: [14, 20, 24],
        description="Shots-per-page assumptions used for shot count estimates",
        min_length=1,
    )

    # Conversion settings
    conversion_timeout: float = Field(
        default=30.0,
        description="Timeout in seconds for document conversion",
        gt=0,
    )

    # Export settings
    entity_group_size: int = Field(
        default=5,
        description="Entity names per declaration line in annotated raw exports",
        ge=1,
    )
    export_dir: Path = Field(
        default_factory=lambda: Path.cwd() / "exports",
        description="Directory for export bundles",
    )

    # Debug settings
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    # Logging settings
    log_level: str = Field(
        default="WARNING",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
    )
    log_format: str = Field(
        default="console",
        description="Log output format (console, json, structured)",
        pattern="^(console|json|structured)$",
    )
    log_file: Path | None = Field(
        default=None,
        description="Optional log file path",
    )

    @field_validator("vfx_levels")
    @classmethod
    def unique_level_ids(cls, v: list[VfxLevel]) -> list[VfxLevel]:
        """Reject duplicate level ids."""
        ids = [level.id for level in v]
        if len(ids) != len(set(ids)):
            raise ValueError(f"VFX level ids must be unique, got: {ids}")
        return v

    @field_validator("shots_per_page")
    @classmethod
    def positive_unique_shots(cls, v: list[int]) -> list[int]:
        """Shots-per-page values must be positive and unique."""
        if any(n < 1 for n in v):
            raise ValueError("shots_per_page values must be >= 1")
        if len(v) != len(set(v)):
            raise ValueError(f"shots_per_page values must be unique, got: {v}")
        return v

    @field_validator("export_dir", "log_file", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Path | None:
        """Expand environment variables and ~, then resolve the path."""
        if v is None:
            return None
        if isinstance(v, str):
            expanded = os.path.expandvars(v)
            return Path(expanded).expanduser().resolve()
        if isinstance(v, Path):
            return v.expanduser().resolve()
        raise ValueError(
            f"Path fields must be str or Path, got {type(v).__name__}: {v!r}"
        )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> str:
        """Normalize log level to uppercase for case-insensitive handling."""
        if isinstance(v, str):
            return v.upper()
        raise ValueError(f"log_level must be a string, got {type(v).__name__}")

    @field_validator("log_format", mode="before")
    @classmethod
    def normalize_log_format(cls, v: Any) -> str:
        """Normalize log format to lowercase for case-insensitive handling."""
        if isinstance(v, str):
            return v.lower()
        raise ValueError(f"log_format must be a string, got {type(v).__name__}")

    @property
    def vfx_level_ids(self) -> tuple[str, ...]:
        """Level ids in configured order, as consumed by the parser core."""
        return tuple(level.id for level in self.vfx_levels)

    @classmethod
    def from_env(cls) -> BreakdownSettings:
        """Create settings from environment variables."""
        return cls()

    @classmethod
    def from_file(cls, config_path: Path | str) -> BreakdownSettings:
        """Load settings from a configuration file.

        Args:
            config_path: Path to configuration file (YAML, TOML, or JSON).

        Returns:
            Settings loaded from the file.

        Raises:
            ConfigurationError: If file format is not supported.
            FileNotFoundError: If config file doesn't exist.
        """
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        suffix = config_path.suffix.lower()

        if suffix in {".yml", ".yaml"}:
            with config_path.open(encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        elif suffix == ".toml":
            with config_path.open("rb") as f:
                data = tomllib.load(f)
        elif suffix == ".json":
            with config_path.open(encoding="utf-8") as f:
                data = json.load(f)
        else:
            raise ConfigurationError(
                message=f"Unsupported configuration file format: {suffix}",
                hint="Use one of the supported formats: .yml, .yaml, .toml, or .json",
                details={
                    "file": str(config_path),
                    "detected_format": suffix,
                    "supported_formats": [".yml", ".yaml", ".toml", ".json"],
                },
            )

        check_config_keys(data)

        return cls(**data)

    @classmethod
    def from_multiple_sources(
        cls,
        config_files: list[Path | str] | None = None,
        cli_args: dict[str, Any] | None = None,
    ) -> BreakdownSettings:
        """Load settings with proper precedence from multiple sources.

        Precedence (highest to lowest): CLI arguments, config files (last
        file wins), environment variables, .env file, defaults.

        Args:
            config_files: List of config files to load.
            cli_args: Dictionary of CLI arguments; None values are ignored.

        Returns:
            Merged settings from all sources.
        """
        data: dict[str, Any] = {}

        for config_file in config_files or []:
            try:
                file_settings = cls.from_file(config_file)
            except FileNotFoundError:
                from scriptbreakdown.config.logging import get_logger as _get_logger

                _get_logger(__name__).warning(
                    "Configuration file not found, using defaults",
                    config_file=str(config_file),
                )
                continue
            data.update(file_settings.model_dump(exclude_unset=True))

        settings = cls(**data)

        if cli_args:
            cli_data = {k: v for k, v in cli_args.items() if v is not None}
            if cli_data:
                updated = settings.model_dump()
                updated.update(cli_data)
                settings = cls(**updated)

        return settings


# Global settings instance
_settings: BreakdownSettings | None = None


def _get_config_paths() -> list[Path | str]:
    """Existing config files, lowest priority first."""
    potential_paths = [
        Path.home() / ".config" / "scriptbreakdown" / "config.yaml",
        Path.home() / ".config" / "scriptbreakdown" / "config.toml",
        Path.home() / ".config" / "scriptbreakdown" / "config.json",
        Path.cwd() / "breakdown.yaml",
        Path.cwd() / "breakdown.toml",
        Path.cwd() / "breakdown.json",
    ]

    existing_paths: list[Path | str] = []
    for path in potential_paths:
        try:
            if path.is_file():
                existing_paths.append(path)
        except OSError:
            continue
    return existing_paths


def get_settings() -> BreakdownSettings:
    """Get the global settings instance.

    Returns:
        Global BreakdownSettings instance, loaded on first use.
    """
    global _settings
    if _settings is None:
        config_paths = _get_config_paths()
        if config_paths:
            _settings = BreakdownSettings.from_multiple_sources(
                config_files=config_paths
            )
        else:
            _settings = BreakdownSettings.from_env()
    return _settings


def set_settings(settings: BreakdownSettings) -> None:
    """Set the global settings instance.

    Args:
        settings: Settings instance to use globally.
    """
    global _settings
    _settings = settings


def clear_settings_cache() -> None:
    """Clear the global settings so the next access re-reads all sources."""
    global _settings
    _settings = None


def reset_settings() -> None:
    """Reset the global settings instance.

    Forces recreation of settings on next call to get_settings(),
    useful for tests that modify environment variables.
    """
    clear_settings_cache()


def get_settings_for_cli(
    config_file: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> BreakdownSettings:
    """Get settings for CLI commands with consistent precedence.

    Args:
        config_file: Optional specific config file to load.
        cli_overrides: CLI argument overrides; only non-None values apply.

    Returns:
        BreakdownSettings instance with all sources merged.

    Raises:
        FileNotFoundError: If config_file is specified but doesn't exist.
    """
    if config_file:
        if not config_file.exists():
            raise FileNotFoundError(f"Config file not found: {config_file}")
        return BreakdownSettings.from_multiple_sources(
            config_files=[config_file],
            cli_args=cli_overrides,
        )

    settings = get_settings()
    filtered = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    if filtered:
        data = settings.model_dump()
        data.update(filtered)
        settings = BreakdownSettings(**data)
    return settings
