"""Object source abstractions.

The pipeline reads uploaded images through a small interface (`ObjectSource`)
so the storage backend (Cloud Storage, a local directory) can be swapped
without affecting the pipeline.
"""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, Protocol


class ObjectSource(Protocol):
    """Anything that can open a readable byte stream for a stored object."""

    def open(self, bucket: str, name: str) -> BinaryIO:
        """Return a binary stream for `bucket`/`name`; raise when unavailable."""


class LocalDirectorySource:
    """Object source resolving object names below a local root directory.

    The bucket is ignored; this is meant for running the pipeline against
    images on disk.
    """

    def __init__(self, root: str | Path = ".") -> None:
        self.root = Path(root)

    def open(self, bucket: str, name: str) -> BinaryIO:
        return open(self.root / name, "rb")


class SingleFileSource:
    """Object source serving one local file under whatever name it is asked for."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def open(self, bucket: str, name: str) -> BinaryIO:
        return open(self.path, "rb")
