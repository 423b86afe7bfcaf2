import io
from pathlib import Path

import pytest

from line_analyzer.core.sources.base import LocalDirectorySource, SingleFileSource
from line_analyzer.core.sources.gcs import GcsObjectSource


def test_local_source_reads_below_root(tmp_path: Path):
    (tmp_path / "uploads").mkdir()
    (tmp_path / "uploads" / "shop_1.jpg").write_bytes(b"abc")
    source = LocalDirectorySource(tmp_path)
    with source.open("ignored-bucket", "uploads/shop_1.jpg") as stream:
        assert stream.read() == b"abc"


def test_local_source_missing_object_raises(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        LocalDirectorySource(tmp_path).open("b", "nope.jpg")


class FakeBlob:
    def __init__(self, data):
        self.data = data
        self.modes = []

    def open(self, mode):
        self.modes.append(mode)
        return io.BytesIO(self.data)


class FakeBucket:
    def __init__(self, blobs):
        self.blobs = blobs

    def blob(self, name):
        return self.blobs[name]


class FakeStorageClient:
    def __init__(self, buckets):
        self.buckets = buckets
        self.closed = False

    def bucket(self, name):
        return self.buckets[name]

    def close(self):
        self.closed = True


def test_gcs_source_opens_blob_for_binary_read():
    blob = FakeBlob(b"jpeg")
    client = FakeStorageClient({"line-images": FakeBucket({"shop_1.jpg": blob})})
    source = GcsObjectSource(client)
    with source.open("line-images", "shop_1.jpg") as stream:
        assert stream.read() == b"jpeg"
    assert blob.modes == ["rb"]
    source.close()
    assert client.closed is True


def test_single_file_source_ignores_requested_name(tmp_path: Path):
    image = tmp_path / "IMG_0001.jpg"
    image.write_bytes(b"raw")
    with SingleFileSource(image).open("local", "shop7_1700000000.jpg") as stream:
        assert stream.read() == b"raw"
