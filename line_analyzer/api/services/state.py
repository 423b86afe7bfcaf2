"""In-process state for settings and the pipeline.

FastAPI routes use this module to access the singleton `LinePipeline`. The
pipeline itself holds only client factories; clients are created per event.
"""

from __future__ import annotations

from threading import RLock

from line_analyzer.core.config.settings import AnalyzerSettings, load_validated_settings
from line_analyzer.core.pipeline import LinePipeline

_settings: AnalyzerSettings | None = None
_pipeline: LinePipeline | None = None
_lock = RLock()


def get_settings() -> AnalyzerSettings:
    """Return cached settings, loading and validating them on first use.

    Raises:
        ConfigError: when required configuration is missing.
    """

    global _settings
    with _lock:
        if _settings is None:
            _settings = load_validated_settings()
    return _settings


def get_pipeline() -> LinePipeline:
    """Return the singleton pipeline, creating it from settings if needed."""

    global _pipeline
    with _lock:
        if _pipeline is None:
            _pipeline = LinePipeline.from_settings(get_settings())
    return _pipeline


def reset() -> None:
    """Drop cached settings and pipeline (used after configuration changes)."""

    global _settings, _pipeline
    with _lock:
        _settings = None
        _pipeline = None
