"""AWS Rekognition detection capability.

Rekognition reports label confidences as percentages; they are normalized to
fractions here so thresholds stay provider-independent. Face confidences are
kept as percentages, which is what the analytics rows store.
"""

from __future__ import annotations

import logging
from typing import Any

import boto3

from line_analyzer.core.types import FaceAttributes, Label

logger = logging.getLogger(__name__)

ALL_FACE_ATTRIBUTES = ["ALL"]


def label_from_response(item: dict[str, Any]) -> Label:
    """Convert one `DetectLabels` label entry into a `Label`."""

    return Label(
        name=str(item.get("Name", "")),
        confidence=float(item.get("Confidence", 0.0)) / 100.0,
        instances=len(item.get("Instances") or []),
    )


def face_from_response(detail: dict[str, Any]) -> FaceAttributes:
    """Convert one `DetectFaces` face detail into `FaceAttributes`."""

    gender = detail["Gender"]
    age_range = detail["AgeRange"]
    return FaceAttributes(
        gender=str(gender["Value"]),
        gender_confidence=float(gender["Confidence"]),
        lowest_age=int(age_range["Low"]),
        highest_age=int(age_range["High"]),
        confidence=float(detail["Confidence"]),
    )


class RekognitionCapability:
    """`DetectionCapability` backed by a boto3 Rekognition client."""

    def __init__(self, client: Any | None = None, region: str | None = None) -> None:
        """Create the capability.

        Args:
            client: Preconfigured boto3 `rekognition` client. When omitted a new
                client is created for `region` using the default credential chain.
            region: AWS region used when `client` is not given.
        """

        if client is None:
            client = boto3.client("rekognition", region_name=region)
        self.client = client

    def detect_labels(self, image: bytes) -> list[Label]:
        response = self.client.detect_labels(Image={"Bytes": image})
        return [label_from_response(item) for item in response.get("Labels", [])]

    def detect_faces(self, image: bytes) -> list[FaceAttributes]:
        response = self.client.detect_faces(Image={"Bytes": image}, Attributes=ALL_FACE_ATTRIBUTES)
        return [face_from_response(detail) for detail in response.get("FaceDetails", [])]

    def close(self) -> None:
        """Close the underlying HTTP connections (botocore >= 1.28)."""

        close = getattr(self.client, "close", None)
        if callable(close):
            close()
