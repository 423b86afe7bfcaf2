"""Detection capability interface and the waiting-line detector.

The pipeline talks to vision providers through `DetectionCapability`, so a
backend can be swapped or faked without touching the orchestration code.
`WaitingLineDetector` turns the two raw capability calls into the crowd
count and the per-face attribute list the analytics rows need.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from typing import BinaryIO, Protocol

from line_analyzer.core.errors import DetectionError
from line_analyzer.core.types import DetectionResult, FaceAttributes, Label

logger = logging.getLogger(__name__)

PERSON_LABEL = "Person"
PERSON_MIN_CONFIDENCE = 0.5

LABELS_CALL = "detect labels"
FACES_CALL = "detect faces"


class DetectionCapability(Protocol):
    """Minimal vision interface expected by `WaitingLineDetector`."""

    def detect_labels(self, image: bytes) -> list[Label]:
        """Return general object labels found in the image."""

    def detect_faces(self, image: bytes) -> list[FaceAttributes]:
        """Return attributes for every face found in the image."""


def read_image(stream: BinaryIO) -> bytes:
    """Read an image stream fully; the buffer is reused for every call."""

    return stream.read()


def count_waiting_people(
    labels: Iterable[Label],
    label_name: str = PERSON_LABEL,
    min_confidence: float = PERSON_MIN_CONFIDENCE,
) -> int:
    """Return the instance count of the confident `label_name` label, or 0."""

    waiting = 0
    for label in labels:
        if label.confidence < min_confidence:
            continue
        if label.name == label_name:
            waiting = label.instances
    return waiting


class WaitingLineDetector:
    """Adapter from a `DetectionCapability` to a `DetectionResult`.

    Label and face detection are independent: both read the same immutable
    byte buffer. With `concurrent=True` they are issued on a small thread
    pool; otherwise labels are requested first.
    """

    def __init__(
        self,
        capability: DetectionCapability,
        *,
        label_name: str = PERSON_LABEL,
        min_confidence: float = PERSON_MIN_CONFIDENCE,
        concurrent: bool = False,
    ) -> None:
        self.capability = capability
        self.label_name = label_name
        self.min_confidence = min_confidence
        self.concurrent = concurrent

    def _labels(self, image: bytes) -> list[Label]:
        try:
            return list(self.capability.detect_labels(image))
        except Exception as exc:
            raise DetectionError(LABELS_CALL, exc) from exc

    def _faces(self, image: bytes) -> list[FaceAttributes]:
        try:
            return list(self.capability.detect_faces(image))
        except Exception as exc:
            raise DetectionError(FACES_CALL, exc) from exc

    def detect(self, image: bytes) -> DetectionResult:
        """Return the waiting people count and the detected faces.

        Raises:
            DetectionError: when either capability call fails.
        """

        if self.concurrent:
            with ThreadPoolExecutor(max_workers=2) as pool:
                labels_future = pool.submit(self._labels, image)
                faces_future = pool.submit(self._faces, image)
                labels = labels_future.result()
                faces = faces_future.result()
        else:
            labels = self._labels(image)
            faces = self._faces(image)

        waiting = count_waiting_people(labels, self.label_name, self.min_confidence)
        logger.debug("Detected %d labels, %d faces, %d waiting", len(labels), len(faces), waiting)
        return DetectionResult(waiting_people_num=waiting, faces=faces)


class NullCapability:
    """Capability that detects nothing; used for dry runs without a provider."""

    def detect_labels(self, image: bytes) -> list[Label]:
        return []

    def detect_faces(self, image: bytes) -> list[FaceAttributes]:
        return []
