"""Observation ingestion pipeline.

This module ties together object fetching, name parsing, detection, record
assembly, and persistence into a single per-image invocation. It performs no
business logic of its own beyond sequencing and error annotation: every stage
failure is raised as a `PipelineError` carrying the stage label and the
original cause. Nothing is retried here; redelivery is up to the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import ExitStack, contextmanager
from datetime import datetime
from typing import Any, TypeVar

from line_analyzer.core.analytics.assembler import assemble
from line_analyzer.core.config.settings import AnalyzerSettings
from line_analyzer.core.detectors.base import (
    PERSON_LABEL,
    PERSON_MIN_CONFIDENCE,
    DetectionCapability,
    WaitingLineDetector,
    read_image,
)
from line_analyzer.core.errors import FetchError, PipelineError
from line_analyzer.core.ids import IdProvider, new_observation_id
from line_analyzer.core.naming import parse_object_name
from line_analyzer.core.sources.base import ObjectSource
from line_analyzer.core.storage.base import (
    CUSTOMER_META_TABLE,
    OBSERVATION_TABLE,
    AnalyticsStore,
    ObservationWriter,
)
from line_analyzer.core.types import Ack, ObjectReference

logger = logging.getLogger(__name__)

STAGE_INIT = "init clients"
STAGE_FETCH = "fetch object"
STAGE_PARSE = "parse metadata"
STAGE_DETECT = "detect"
STAGE_ASSEMBLE = "assemble"
STAGE_PERSIST = "persist"

T = TypeVar("T")


def local_now() -> datetime:
    """Return the current time as an aware datetime in the local timezone."""

    return datetime.now().astimezone()


@contextmanager
def _stage(name: str, event: ObjectReference) -> Iterator[None]:
    """Re-raise any failure inside the block as a `PipelineError` for `name`."""

    try:
        yield
    except Exception as exc:
        logger.warning("Stage %r failed for gs://%s/%s: %s", name, event.bucket, event.name, exc)
        raise PipelineError(name, exc) from exc


def _close_client(client: Any, close: Callable[[], Any]) -> None:
    """Close a client; a failing close must not mask the invocation outcome."""

    try:
        close()
    except Exception as exc:
        logger.warning("Closing %s failed: %s", type(client).__name__, exc)


def _acquire(stack: ExitStack, factory: Callable[[], T]) -> T:
    """Create a client and register its `close()` (when present) on `stack`."""

    client = factory()
    close = getattr(client, "close", None)
    if callable(close):
        stack.callback(_close_client, client, close)
    return client


class LinePipeline:
    """End-to-end processing of one uploaded line image.

    Clients for the object source, the detection capability, and the store are
    created by the given factories at the start of every invocation and closed
    when it ends, so invocations share no mutable state.
    """

    def __init__(
        self,
        source_factory: Callable[[], ObjectSource],
        capability_factory: Callable[[], DetectionCapability],
        store_factory: Callable[[], AnalyticsStore],
        *,
        id_provider: IdProvider = new_observation_id,
        clock: Callable[[], datetime] = local_now,
        person_label: str = PERSON_LABEL,
        person_min_confidence: float = PERSON_MIN_CONFIDENCE,
        concurrent_detection: bool = False,
        observation_table: str = OBSERVATION_TABLE,
        customer_meta_table: str = CUSTOMER_META_TABLE,
    ) -> None:
        self.source_factory = source_factory
        self.capability_factory = capability_factory
        self.store_factory = store_factory
        self.id_provider = id_provider
        self.clock = clock
        self.person_label = person_label
        self.person_min_confidence = person_min_confidence
        self.concurrent_detection = concurrent_detection
        self.observation_table = observation_table
        self.customer_meta_table = customer_meta_table

    @classmethod
    def from_settings(cls, settings: AnalyzerSettings, **kwargs: Any) -> LinePipeline:
        """Wire the production collaborators: Cloud Storage, Rekognition, BigQuery."""

        from line_analyzer.core.detectors.rekognition import RekognitionCapability
        from line_analyzer.core.sources.gcs import GcsObjectSource
        from line_analyzer.core.storage.bigquery import BigQueryStore

        return cls(
            source_factory=lambda: GcsObjectSource(project_id=settings.project_id),
            capability_factory=lambda: RekognitionCapability(region=settings.detection_region),
            store_factory=lambda: BigQueryStore(
                project_id=settings.project_id, dataset=settings.dataset
            ),
            person_label=settings.person_label,
            person_min_confidence=settings.person_min_confidence,
            concurrent_detection=settings.concurrent_detection,
            observation_table=settings.observation_table,
            customer_meta_table=settings.customer_meta_table,
            **kwargs,
        )

    def run(self, event: ObjectReference) -> Ack:
        """Analyze the image referenced by `event` and persist its records.

        Raises:
            PipelineError: with `stage` naming the step that failed.
        """

        created_at = self.clock()
        with ExitStack() as stack:
            with _stage(STAGE_INIT, event):
                source = _acquire(stack, self.source_factory)
                capability = _acquire(stack, self.capability_factory)
                store = _acquire(stack, self.store_factory)

            with _stage(STAGE_FETCH, event):
                try:
                    with source.open(event.bucket, event.name) as stream:
                        image = read_image(stream)
                except Exception as exc:
                    raise FetchError(event.bucket, event.name, exc) from exc

            with _stage(STAGE_PARSE, event):
                meta = parse_object_name(event.name)

            observation_id = self.id_provider()

            with _stage(STAGE_DETECT, event):
                detector = WaitingLineDetector(
                    capability,
                    label_name=self.person_label,
                    min_confidence=self.person_min_confidence,
                    concurrent=self.concurrent_detection,
                )
                result = detector.detect(image)

            with _stage(STAGE_ASSEMBLE, event):
                observation, metas = assemble(
                    observation_id,
                    meta.shop_id,
                    meta.observed_at,
                    created_at,
                    result.waiting_people_num,
                    result.faces,
                )

            with _stage(STAGE_PERSIST, event):
                writer = ObservationWriter(store, self.observation_table, self.customer_meta_table)
                writer.persist(observation, metas)

        logger.info(
            "Analyzed gs://%s/%s as observation %s (shop=%s waiting=%d faces=%d)",
            event.bucket,
            event.name,
            observation.id,
            observation.shop_id,
            observation.waiting_people_num,
            len(metas),
        )
        return Ack(
            observation_id=observation.id,
            shop_id=observation.shop_id,
            waiting_people_num=observation.waiting_people_num,
            faces_written=len(metas),
        )
