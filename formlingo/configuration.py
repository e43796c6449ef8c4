"""Layered configuration loader for formlingo."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Literal, Mapping, Sequence, Tuple

import yaml
from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .errors import ConfigurationError

APP_NAME = "formlingo"
LOCAL_CONFIG_NAME = "formlingo.yaml"


def normalise_language(code: str) -> str:
    """Lower-case a language code and use hyphens (``FR_fr`` -> ``fr-fr``)."""

    return code.strip().lower().replace("_", "-")


class FormlingoConfig(BaseModel):
    """Schema describing all supported configuration options."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    FORMLINGO_DATABASE: str = Field(
        default="translations.db",
        description="SQLite translation database path, or 'memory'.",
    )
    FORMLINGO_LANGUAGE: str = Field(default="en", description="Default target language.")
    FORMLINGO_SOURCE_LANGUAGE: str = Field(
        default="en",
        description="Language of the text captured as translation ids.",
    )
    FORMLINGO_IGNORE_FILE: str | None = Field(default=None)
    FORMLINGO_CASE_SENSITIVE_PATTERNS: bool = Field(default=False)
    FORMLINGO_LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING"
    )
    FORMLINGO_DEBUG_SQL: bool = Field(default=False)

    @model_validator(mode="before")
    @classmethod
    def _normalise_values(cls, data: Any) -> Any:
        if isinstance(data, dict):
            for key in ("FORMLINGO_LANGUAGE", "FORMLINGO_SOURCE_LANGUAGE"):
                raw_value = data.get(key)
                if isinstance(raw_value, str):
                    data[key] = normalise_language(raw_value)
            level = data.get("FORMLINGO_LOG_LEVEL")
            if isinstance(level, str):
                data["FORMLINGO_LOG_LEVEL"] = level.strip().upper()
            ignore_file = data.get("FORMLINGO_IGNORE_FILE")
            if isinstance(ignore_file, str) and not ignore_file.strip():
                data["FORMLINGO_IGNORE_FILE"] = None
        return data


@dataclass(frozen=True)
class ConfigInstance:
    """Validated settings plus the source each value came from."""

    model: FormlingoConfig
    provenance: Mapping[str, str]

    def source_of(self, key: str) -> str:
        return self.provenance.get(key, "default")


@lru_cache(maxsize=1)
def _load_config_instance(app_dir: Path | None = None) -> ConfigInstance:
    """Load configuration layers once and cache the immutable instance."""

    base_dir = app_dir or Path.cwd()
    provenance: Dict[str, str] = {}
    combined = _load_discovered_yaml(app_dir=base_dir, provenance=provenance)
    _merge_env_sources(combined, provenance=provenance, app_dir=base_dir)

    try:
        model = FormlingoConfig.model_validate(combined)
    except ValidationError as exc:
        raise ConfigurationError(
            _format_validation_errors(exc.errors(), provenance)
        ) from exc
    return ConfigInstance(model=model, provenance=dict(provenance))


def discover_config_files(app_dir: Path) -> List[Tuple[Path, str]]:
    """Return existing YAML files, lowest precedence first."""

    config_home = Path(os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config")
    candidates = [
        (config_home / APP_NAME / "config.yaml", "home"),
        (app_dir / LOCAL_CONFIG_NAME, "local"),
    ]
    return [(path, label) for path, label in candidates if path.is_file()]


def _load_discovered_yaml(
    *,
    app_dir: Path,
    provenance: Dict[str, str],
) -> Dict[str, Any]:
    """Load YAML configuration files in discovery order."""

    allowed = set(FormlingoConfig.model_fields)
    result: Dict[str, Any] = {}
    for path, label in discover_config_files(app_dir):
        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except UnicodeDecodeError as exc:
            raise ConfigurationError(
                f"Configuration file {path} is not valid UTF-8: {exc}"
            ) from exc
        except OSError as exc:
            raise ConfigurationError(
                f"Configuration file {path} could not be read: {exc}"
            ) from exc
        except yaml.YAMLError as exc:
            raise ConfigurationError(
                f"Configuration file {path} is not valid YAML: {exc}"
            ) from exc
        if parsed is None:
            continue
        if not isinstance(parsed, Mapping):
            raise ConfigurationError(
                f"Invalid configuration file {path}: expected a mapping at the root."
            )
        for key, value in parsed.items():
            if key in allowed:
                result[key] = value
                provenance[key] = f"file:{label}:{path}"
    return result


def _merge_env_sources(
    target: Dict[str, Any],
    *,
    provenance: Dict[str, str],
    app_dir: Path,
) -> None:
    """Merge .env and process environment variables into the target mapping."""

    allowed = set(FormlingoConfig.model_fields)

    def merge_values(values: Mapping[str, str | None], *, source_prefix: str) -> None:
        for key, value in sorted(values.items()):
            if value is None:
                continue
            if key not in allowed:
                continue
            target[key] = value
            provenance[key] = f"env:{source_prefix}:{key}"

    dotenv_path = app_dir / ".env"
    if dotenv_path.exists():
        try:
            values = dotenv_values(dotenv_path, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigurationError(f"Environment file {dotenv_path} could not be read: {exc}") from exc
        merge_values(values, source_prefix=".env")

    merge_values(dict(os.environ), source_prefix="process")


def _format_validation_errors(
    entries: Sequence[Mapping[str, Any]],
    provenance: Mapping[str, str],
) -> str:
    details: List[str] = []
    for entry in entries:
        path = entry.get("loc") or ()
        location = ".".join(str(part) for part in path if part not in {None, ""})
        message = str(entry.get("msg") or "Invalid value")
        source = provenance.get(str(path[0])) if path else None
        origin = f" (source: {source})" if source else ""
        prefix = f"{location}: " if location else ""
        details.append(f"- {prefix}{message}{origin}")
    return "Configuration validation errors detected:\n" + "\n".join(details)


def get_config(app_dir: Path | None = None) -> ConfigInstance:
    """Return the immutable configuration instance."""

    return _load_config_instance(app_dir=app_dir)


def get_settings(app_dir: Path | None = None) -> FormlingoConfig:
    """Return the validated schema model for typed access."""

    return get_config(app_dir=app_dir).model


def reset_config_cache() -> None:
    """Forget the cached instance so the next call reloads every layer."""

    _load_config_instance.cache_clear()
