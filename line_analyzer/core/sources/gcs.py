"""Google Cloud Storage object source."""

from __future__ import annotations

from typing import Any, BinaryIO

from google.cloud import storage


class GcsObjectSource:
    """`ObjectSource` reading blobs through a `google.cloud.storage.Client`."""

    def __init__(self, client: Any | None = None, project_id: str | None = None) -> None:
        if client is None:
            client = storage.Client(project=project_id)
        self.client = client

    def open(self, bucket: str, name: str) -> BinaryIO:
        return self.client.bucket(bucket).blob(name).open("rb")

    def close(self) -> None:
        self.client.close()
