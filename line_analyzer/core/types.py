"""Shared type definitions used across the analyzer.

This module centralizes the small, stable record types (object references,
detector outputs, and the two persisted analytics rows) so the parser,
detector, assembler, and store code can stay strongly typed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

ObservationID = str


@dataclass(frozen=True)
class ObjectReference:
    """Uploaded image identified by its container and object name."""

    bucket: str
    name: str
    content_type: str | None = None


@dataclass(frozen=True)
class ParsedMeta:
    """Shop identity and observation time derived from an object name."""

    shop_id: str
    observed_at: datetime


@dataclass(frozen=True)
class Label:
    """General object label reported by a detection capability.

    `confidence` is a fraction in [0, 1]; `instances` is the number of
    bounding-box instances attached to the label.
    """

    name: str
    confidence: float
    instances: int = 0


@dataclass(frozen=True)
class FaceAttributes:
    """Demographic estimate for one detected face (confidences in [0, 100])."""

    gender: str
    gender_confidence: float
    lowest_age: int
    highest_age: int
    confidence: float


@dataclass
class DetectionResult:
    """Crowd count and per-face attributes detected in one image."""

    waiting_people_num: int
    faces: list[FaceAttributes] = field(default_factory=list)


@dataclass(frozen=True)
class LineObservation:
    """One analyzed image of a shop's line."""

    id: ObservationID
    shop_id: str
    # Counted from person instances rather than faces; faces turned away
    # from the camera are not detected.
    waiting_people_num: int
    observed_at: datetime
    created_at: datetime

    def to_row(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "waiting_people_num": self.waiting_people_num,
            "observed_at": self.observed_at.isoformat(),
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class WaitingCustomerMeta:
    """Face attributes of one waiting customer, keyed by its observation."""

    line_observation_id: ObservationID
    gender: str
    gender_confidence: float
    lowest_age: int
    highest_age: int
    confidence: float

    def to_row(self) -> dict[str, Any]:
        return {
            "line_observation_id": self.line_observation_id,
            "gender": self.gender,
            "gender_confidence": self.gender_confidence,
            "lowest_age": self.lowest_age,
            "highest_age": self.highest_age,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class Ack:
    """Summary returned by a successful pipeline invocation."""

    observation_id: ObservationID
    shop_id: str
    waiting_people_num: int
    faces_written: int
