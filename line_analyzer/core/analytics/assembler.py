"""Observation assembly.

Combines parsed object metadata, a generated id, and detection results into
the two persisted record shapes. Every face maps to exactly one
`WaitingCustomerMeta` carrying the observation id.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from line_analyzer.core.types import (
    FaceAttributes,
    LineObservation,
    ObservationID,
    WaitingCustomerMeta,
)


def customer_meta_from_face(observation_id: ObservationID, face: FaceAttributes) -> WaitingCustomerMeta:
    """Return the meta record for one detected face."""

    return WaitingCustomerMeta(
        line_observation_id=observation_id,
        gender=face.gender,
        gender_confidence=face.gender_confidence,
        lowest_age=face.lowest_age,
        highest_age=face.highest_age,
        confidence=face.confidence,
    )


def assemble(
    observation_id: ObservationID,
    shop_id: str,
    observed_at: datetime,
    created_at: datetime,
    waiting_people_num: int,
    faces: Iterable[FaceAttributes],
) -> tuple[LineObservation, list[WaitingCustomerMeta]]:
    """Build the observation row and one customer meta row per face."""

    if waiting_people_num < 0:
        raise ValueError("waiting_people_num must be >= 0")
    observation = LineObservation(
        id=observation_id,
        shop_id=shop_id,
        waiting_people_num=waiting_people_num,
        observed_at=observed_at,
        created_at=created_at,
    )
    metas = [customer_meta_from_face(observation_id, face) for face in faces]
    return observation, metas
