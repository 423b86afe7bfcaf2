"""Observation identifier generation."""

from __future__ import annotations

from collections.abc import Callable
from uuid import uuid4

from line_analyzer.core.types import ObservationID

IdProvider = Callable[[], ObservationID]


def new_observation_id() -> ObservationID:
    """Return a fresh, globally unique observation id."""

    return uuid4().hex
