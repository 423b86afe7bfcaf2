"""Analyzer configuration.

Settings are loaded from YAML defaults and overridden by environment variables
prefixed with `LINE_ANALYZER_`. Required values are checked by an explicit
`validate_settings` step at startup rather than per invocation.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from line_analyzer.core.errors import ConfigError

ENV_PREFIX = "LINE_ANALYZER_"
REQUIRED_FIELDS = ("project_id", "detection_region")


class AnalyzerSettings(BaseSettings):
    """Runtime configuration loaded from YAML defaults and env overrides."""

    # Analytics store project (BigQuery) and detection region (Rekognition).
    project_id: str | None = None
    detection_region: str | None = None

    dataset: str = "fast_lane"
    observation_table: str = "line_observation"
    customer_meta_table: str = "waiting_customer_meta"

    person_label: str = Field("Person", description="label counted as waiting people")
    person_min_confidence: float = 0.5
    # Issue label and face detection concurrently.
    concurrent_detection: bool = False

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX, validate_assignment=True)

    @field_validator("person_min_confidence")
    @classmethod
    def _validate_min_confidence(cls, v: float) -> float:
        if not 0.0 <= float(v) <= 1.0:
            raise ValueError("person_min_confidence must be in [0, 1]")
        return float(v)

    @field_validator("person_label", "dataset", "observation_table", "customer_meta_table")
    @classmethod
    def _validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v

    @field_validator("project_id", "detection_region")
    @classmethod
    def _blank_as_missing(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v2 = v.strip()
        return v2 or None


def _config_path() -> Path:
    """Return the YAML configuration path (defaults to config/analyzer.config.yml)."""

    return Path(os.getenv(f"{ENV_PREFIX}CONFIG", "config/analyzer.config.yml"))


def load_settings() -> AnalyzerSettings:
    """Load settings from YAML and environment variables.

    YAML provides defaults; environment variables override.
    """

    data: dict[str, Any] = {}
    path = _config_path()
    if path.exists():
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    try:
        env_settings = AnalyzerSettings()
        env_overrides: dict[str, Any] = {
            name: getattr(env_settings, name) for name in env_settings.model_fields_set
        }

        merged = {**data, **env_overrides}
        return AnalyzerSettings(**merged)
    except ValidationError as exc:
        raise ConfigError(message=f"invalid configuration: {exc}") from exc


def validate_settings(settings: AnalyzerSettings) -> AnalyzerSettings:
    """Return `settings` unchanged, or raise `ConfigError` naming missing fields."""

    missing = [f"{ENV_PREFIX}{name.upper()}" for name in REQUIRED_FIELDS if not getattr(settings, name)]
    if missing:
        raise ConfigError(missing)
    return settings


def load_validated_settings() -> AnalyzerSettings:
    """Load settings and fail with `ConfigError` when required values are absent."""

    return validate_settings(load_settings())
