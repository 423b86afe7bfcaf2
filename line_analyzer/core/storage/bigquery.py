"""BigQuery analytics store (streaming inserts)."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from google.api_core.exceptions import GoogleAPIError
from google.cloud import bigquery

from line_analyzer.core.errors import StoreError
from line_analyzer.core.storage.base import Row

logger = logging.getLogger(__name__)

DEFAULT_DATASET = "fast_lane"


class BigQueryStore:
    """`AnalyticsStore` appending rows to tables of one BigQuery dataset."""

    def __init__(
        self,
        client: Any | None = None,
        *,
        project_id: str | None = None,
        dataset: str = DEFAULT_DATASET,
    ) -> None:
        if client is None:
            client = bigquery.Client(project=project_id)
        self.client = client
        self.project_id = project_id or client.project
        self.dataset = dataset

    def table_id(self, table: str) -> str:
        """Return the fully-qualified `project.dataset.table` id."""

        return f"{self.project_id}.{self.dataset}.{table}"

    def insert_rows(self, table: str, rows: Sequence[Row]) -> None:
        if not rows:
            return
        table_id = self.table_id(table)
        try:
            errors = self.client.insert_rows_json(table_id, list(rows))
        except GoogleAPIError as exc:
            raise StoreError(table_id, exc) from exc
        if errors:
            raise StoreError(table_id, f"{len(errors)} rows rejected: {errors}")
        logger.debug("Inserted %d rows into %s", len(rows), table_id)

    def close(self) -> None:
        self.client.close()
