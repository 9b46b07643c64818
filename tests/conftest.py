"""
Shared fixtures: a writable upload directory and a factory for received files.
"""

import io
import itertools
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    path = tmp_path / "upload"
    path.mkdir()
    return path


@pytest.fixture
def make_upload(tmp_path: Path) -> Callable[..., dict[str, Any]]:
    """Write bytes to a temp file, as the HTTP layer would, and return the upload mapping."""
    incoming = tmp_path / "incoming"
    incoming.mkdir()
    counter = itertools.count()

    def _make(
        name: str = "Upload File 1.txt",
        content: bytes = b"upload file one",
        type: str = "text/plain",
        error: int = 0,
    ) -> dict[str, Any]:
        src = incoming / f"tmp{next(counter)}.part"
        src.write_bytes(content)
        return {"name": name, "type": type, "tmp_name": str(src), "error": error, "size": len(content)}

    return _make


class BrokenStream(io.RawIOBase):
    """Yields one chunk, then fails as a dropped connection would."""

    def __init__(self) -> None:
        self._reads = 0

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def seek(self, offset: int, whence: int = 0) -> int:
        return 0

    def readinto(self, buffer) -> int:
        self._reads += 1
        if self._reads > 1:
            raise OSError("connection reset")
        data = b"partial-bytes"
        buffer[: len(data)] = data
        return len(data)


@pytest.fixture
def broken_stream() -> Callable[[], BrokenStream]:
    return BrokenStream
