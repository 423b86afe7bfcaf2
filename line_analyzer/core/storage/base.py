"""Analytics store interface and the observation writer.

The store offers append-only inserts per table and no multi-table
transaction. `ObservationWriter` therefore persists an observation in two
explicit phases: the observation row first, then its customer meta rows.
If the second phase fails the observation row stays written and the error
is raised to the caller; nothing is rolled back.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, Protocol

from line_analyzer.core.errors import StoreError
from line_analyzer.core.types import LineObservation, WaitingCustomerMeta

logger = logging.getLogger(__name__)

OBSERVATION_TABLE = "line_observation"
CUSTOMER_META_TABLE = "waiting_customer_meta"

Row = dict[str, Any]


class AnalyticsStore(Protocol):
    """Append-only tabular store."""

    def insert_rows(self, table: str, rows: Sequence[Row]) -> None:
        """Append `rows` to `table`; raise on any failure."""


class MemoryStore:
    """In-process store keeping inserted rows per table."""

    def __init__(self) -> None:
        self.tables: dict[str, list[Row]] = {}

    def insert_rows(self, table: str, rows: Sequence[Row]) -> None:
        self.tables.setdefault(table, []).extend(dict(r) for r in rows)


class ObservationWriter:
    """Writes one observation and its customer metas to two related tables."""

    def __init__(
        self,
        store: AnalyticsStore,
        observation_table: str = OBSERVATION_TABLE,
        customer_meta_table: str = CUSTOMER_META_TABLE,
    ) -> None:
        self.store = store
        self.observation_table = observation_table
        self.customer_meta_table = customer_meta_table

    def _insert(self, table: str, rows: list[Row]) -> None:
        try:
            self.store.insert_rows(table, rows)
        except StoreError:
            raise
        except Exception as exc:
            raise StoreError(table, exc) from exc

    def persist(self, observation: LineObservation, metas: Sequence[WaitingCustomerMeta]) -> None:
        """Append the observation, then its metas.

        An empty `metas` sequence skips the second table entirely.

        Raises:
            StoreError: naming the table whose insert failed.
        """

        self._insert(self.observation_table, [observation.to_row()])
        if not metas:
            return
        try:
            self._insert(self.customer_meta_table, [m.to_row() for m in metas])
        except StoreError:
            logger.warning(
                "Observation %s written to %s but its %d customer metas were not",
                observation.id,
                self.observation_table,
                len(metas),
            )
            raise
