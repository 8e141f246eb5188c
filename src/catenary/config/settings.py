# src/catenary/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/catenary/config/defaults.yaml`, then optionally overridden by:
- an external YAML file via `CATENARY_CONFIG_PATH`
- environment variables (a repo-local `.env` is loaded first, never overriding the process env)

Every tuning threshold can be overridden by an environment variable named after the
field in upper case (e.g. `MIN_SPEED_METERS_PER_SECOND=2.5`). A value that does not
validate is ignored with a warning and the default stays in place, so a typo never
prevents the server from starting.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from catenary.core.env import load_dotenv_if_present, resolve_project_path

logger = logging.getLogger(__name__)


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `catenary.config`."""
    text = resources.files("catenary.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


class AppSettings(BaseModel):
    name: str = "Catenary"
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = Field(3000, ge=1, le=65535)
    ingest_queue_size: int = Field(1000, ge=1)
    user_cookie_name: str = "user"


class TuningSettings(BaseModel):
    """Thresholds used by trace derivation, matching and the message store."""

    model_config = ConfigDict(frozen=True)

    # max. amount of messages held in memory
    max_messages_in_memory: int = Field(100_000, ge=1)
    # max. amount of characters in a message
    max_message_length: int = Field(144, ge=1)
    # max. message age in minutes before it is evicted
    max_message_age_minutes: int = 10

    # amount of locations a trace is derived from
    max_locations_in_history: int = Field(4, ge=2)
    # max. age of a location in seconds before it is dropped from history
    max_location_age_seconds: int = Field(60, ge=0)
    # min. seconds between earliest and latest location, below that there is no trace
    min_location_time_delta_seconds: float = Field(1.5, ge=0)
    # min. speed, below that there is no trace and no match
    min_speed_meters_per_second: float = Field(3.0, ge=0)

    # traces match if `other` is closer than the distance `self` covers in this many seconds
    trace_match_max_move_seconds: float = Field(180.0, ge=0)
    # max. heading difference between two matching traces
    trace_match_max_slope_diff_degrees: float = Field(32.0, ge=0)


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    app: AppSettings = Field(default_factory=AppSettings)
    tuning: TuningSettings = Field(default_factory=TuningSettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay environment variables onto the raw settings payload.

    Tuning fields are validated one at a time so a single bad value only loses that
    value, not the whole override set.
    """
    load_dotenv_if_present()
    data = dict(data)

    log_level = os.getenv("CATENARY_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    host = os.getenv("CATENARY_HOST")
    if host:
        data.setdefault("app", {})["host"] = host

    port = os.getenv("CATENARY_PORT")
    if port:
        try:
            data.setdefault("app", {})["port"] = TypeAdapter(int).validate_python(port)
        except ValidationError:
            logger.warning("Ignoring invalid CATENARY_PORT=%r", port)

    tuning = dict(data.get("tuning") or {})
    for name, field in TuningSettings.model_fields.items():
        raw = os.getenv(name.upper())
        if raw is None or not raw.strip():
            continue
        candidate = {**tuning, name: raw.strip()}
        try:
            TuningSettings.model_validate(candidate)
        except ValidationError:
            logger.warning(
                "Ignoring invalid %s=%r; keeping %r", name.upper(), raw, tuning.get(name, field.default)
            )
            continue
        tuning[name] = raw.strip()
    data["tuning"] = tuning
    return data


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Build a fresh Settings object (uncached; `get_settings` wraps this)."""
    load_dotenv_if_present()
    path = config_path or os.getenv("CATENARY_CONFIG_PATH")
    raw = _read_yaml_file(resolve_project_path(path)) if path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached for the process lifetime)."""
    settings = load_settings()
    logger.info("config: %s", settings.tuning.model_dump())
    return settings


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")
