from datetime import datetime, timezone

import pytest
from google.api_core.exceptions import ServiceUnavailable

from line_analyzer.core.errors import StoreError
from line_analyzer.core.storage.base import MemoryStore, ObservationWriter
from line_analyzer.core.storage.bigquery import BigQueryStore
from line_analyzer.core.types import LineObservation, WaitingCustomerMeta

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)
OBSERVATION = LineObservation(
    id="obs-1", shop_id="shop42", waiting_people_num=2, observed_at=NOW, created_at=NOW
)
META = WaitingCustomerMeta("obs-1", "Female", 98.2, 20, 30, 99.1)


class FailingStore(MemoryStore):
    def __init__(self, fail_on):
        super().__init__()
        self.fail_on = fail_on
        self.attempts = []

    def insert_rows(self, table, rows):
        self.attempts.append(table)
        if table == self.fail_on:
            raise RuntimeError(f"{table} unavailable")
        super().insert_rows(table, rows)


def test_persist_writes_both_tables():
    store = MemoryStore()
    ObservationWriter(store).persist(OBSERVATION, [META, META])
    assert store.tables["line_observation"] == [OBSERVATION.to_row()]
    assert store.tables["waiting_customer_meta"] == [META.to_row(), META.to_row()]


def test_persist_without_faces_skips_meta_table():
    store = FailingStore(fail_on="waiting_customer_meta")
    ObservationWriter(store).persist(OBSERVATION, [])
    assert store.attempts == ["line_observation"]
    assert "waiting_customer_meta" not in store.tables


def test_observation_failure_skips_meta_write():
    store = FailingStore(fail_on="line_observation")
    with pytest.raises(StoreError) as info:
        ObservationWriter(store).persist(OBSERVATION, [META])
    assert info.value.table == "line_observation"
    assert store.attempts == ["line_observation"]


def test_meta_failure_is_reported_after_observation_write():
    store = FailingStore(fail_on="waiting_customer_meta")
    with pytest.raises(StoreError) as info:
        ObservationWriter(store).persist(OBSERVATION, [META])
    assert info.value.table == "waiting_customer_meta"
    # no compensation: the observation row stays written
    assert store.tables["line_observation"] == [OBSERVATION.to_row()]


def test_custom_table_names():
    store = MemoryStore()
    ObservationWriter(store, "obs", "metas").persist(OBSERVATION, [META])
    assert set(store.tables) == {"obs", "metas"}


class FakeBigQueryClient:
    project = "default-project"

    def __init__(self, errors=None, exc=None):
        self.errors = errors or []
        self.exc = exc
        self.inserted = []
        self.closed = False

    def insert_rows_json(self, table_id, rows):
        if self.exc:
            raise self.exc
        self.inserted.append((table_id, rows))
        return self.errors

    def close(self):
        self.closed = True


def test_bigquery_store_inserts_into_qualified_table():
    client = FakeBigQueryClient()
    store = BigQueryStore(client, project_id="proj")
    store.insert_rows("line_observation", [OBSERVATION.to_row()])
    assert client.inserted == [("proj.fast_lane.line_observation", [OBSERVATION.to_row()])]


def test_bigquery_store_defaults_to_client_project():
    store = BigQueryStore(FakeBigQueryClient(), dataset="analytics")
    assert store.table_id("t") == "default-project.analytics.t"


def test_bigquery_store_empty_rows_is_noop():
    client = FakeBigQueryClient(exc=AssertionError("must not be called"))
    BigQueryStore(client, project_id="proj").insert_rows("waiting_customer_meta", [])
    assert client.inserted == []


def test_bigquery_store_rejected_rows_raise():
    client = FakeBigQueryClient(errors=[{"index": 0, "errors": [{"reason": "invalid"}]}])
    with pytest.raises(StoreError) as info:
        BigQueryStore(client, project_id="proj").insert_rows("line_observation", [{"id": "x"}])
    assert info.value.table == "proj.fast_lane.line_observation"
    assert "1 rows rejected" in str(info.value)


def test_bigquery_store_api_errors_raise():
    client = FakeBigQueryClient(exc=ServiceUnavailable("backend down"))
    with pytest.raises(StoreError) as info:
        BigQueryStore(client, project_id="proj").insert_rows("line_observation", [{"id": "x"}])
    assert isinstance(info.value.cause, ServiceUnavailable)


def test_bigquery_store_close_closes_client():
    client = FakeBigQueryClient()
    BigQueryStore(client, project_id="proj").close()
    assert client.closed is True
