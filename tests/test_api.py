import pytest
from fastapi.testclient import TestClient

from line_analyzer.api.main import app
from line_analyzer.api.services import state
from line_analyzer.core.errors import (
    ConfigError,
    DetectionError,
    ParseError,
    PipelineError,
)
from line_analyzer.core.types import Ack


class DummyPipeline:
    def __init__(self, ack=None, error=None):
        self.ack = ack
        self.error = error
        self.events = []

    def run(self, event):
        self.events.append(event)
        if self.error:
            raise self.error
        return self.ack


@pytest.fixture
def client_with(monkeypatch):
    def _make(pipeline):
        monkeypatch.setattr(state, "_pipeline", pipeline)
        return TestClient(app)

    return _make


def test_health_endpoint():
    client = TestClient(app)
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json()["status"] == "ok"


def test_storage_event_runs_pipeline(client_with):
    pipeline = DummyPipeline(ack=Ack("obs-1", "shop42", 2, 1))
    client = client_with(pipeline)
    res = client.post(
        "/events/storage",
        json={
            "bucket": "line-images",
            "name": "shop42_1700000000.jpg",
            "contentType": "image/jpeg",
            "size": "1024",
        },
    )
    assert res.status_code == 200
    assert res.json() == {
        "observation_id": "obs-1",
        "shop_id": "shop42",
        "waiting_people_num": 2,
        "faces_written": 1,
    }
    [event] = pipeline.events
    assert event.bucket == "line-images"
    assert event.name == "shop42_1700000000.jpg"
    assert event.content_type == "image/jpeg"


def test_input_errors_answer_400(client_with):
    cause = ParseError("bad.jpg", "timestamp", "is missing")
    client = client_with(DummyPipeline(error=PipelineError("parse metadata", cause)))
    res = client.post("/events/storage", json={"bucket": "b", "name": "bad.jpg"})
    assert res.status_code == 400
    body = res.json()
    assert body["stage"] == "parse metadata"
    assert body["retryable"] is False
    assert "timestamp is missing" in body["error"]


def test_dependency_errors_answer_500(client_with):
    cause = DetectionError("detect faces", RuntimeError("throttled"))
    client = client_with(DummyPipeline(error=PipelineError("detect", cause)))
    res = client.post("/events/storage", json={"bucket": "b", "name": "shop_1.jpg"})
    assert res.status_code == 500
    assert res.json() == {"stage": "detect", "error": "detect faces: throttled", "retryable": True}


def test_invalid_payload_is_rejected(client_with):
    pipeline = DummyPipeline()
    client = client_with(pipeline)
    res = client.post("/events/storage", json={"bucket": "b"})
    assert res.status_code == 422
    assert pipeline.events == []


def test_startup_fails_without_configuration(monkeypatch, tmp_path):
    monkeypatch.setattr(state, "_settings", None)
    monkeypatch.delenv("LINE_ANALYZER_PROJECT_ID", raising=False)
    monkeypatch.delenv("LINE_ANALYZER_DETECTION_REGION", raising=False)
    monkeypatch.setenv("LINE_ANALYZER_CONFIG", str(tmp_path / "missing.yml"))
    with pytest.raises(ConfigError):
        with TestClient(app):
            pass
