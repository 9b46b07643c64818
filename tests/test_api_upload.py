"""
Integration tests for the upload endpoint.

Overrides the Uploader dependency so files land in a per-test directory.
"""

from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from uploader.api.handlers import get_uploader
from uploader.main import app
from uploader.services.upload_service import Uploader


@pytest.fixture
def client(upload_dir: Path) -> Iterator[TestClient]:
    app.dependency_overrides[get_uploader] = lambda: Uploader(
        {"uploadDir": str(upload_dir), "multiple": True, "uniqueFilename": False}
    )
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"ok": True}


def test_upload_stores_files_and_reports_failures(client: TestClient, upload_dir: Path) -> None:
    """POST /upload returns per-file results in request order; invalid files carry upload_err."""
    response = client.post(
        "/upload",
        files=[
            ("files", ("Report 1.txt", b"hello", "text/plain")),
            ("files", ("empty.txt", b"", "text/plain")),
        ],
    )
    assert response.status_code == 200
    data = response.json()
    assert data["files_saved"] == 1
    assert data["paths"] == [str(upload_dir / "report_1.txt")]

    stored, failed = data["results"]
    assert stored["basename"] == "report_1.txt"
    assert stored["name"] == "Report 1.txt"
    assert stored["type"] == "text/plain"
    assert stored["size"] == 5
    assert failed["name"] == "empty.txt"
    assert failed["upload_err"] == "Minimum file size error"
    assert (upload_dir / "report_1.txt").read_bytes() == b"hello"


def test_upload_same_name_twice(client: TestClient, upload_dir: Path) -> None:
    for _ in range(2):
        response = client.post("/upload", files=[("files", ("a.txt", b"x", "text/plain"))])
        assert response.status_code == 200
    assert sorted(p.name for p in upload_dir.iterdir()) == ["a.txt", "a__1.txt"]


def test_upload_without_files_returns_422(client: TestClient) -> None:
    response = client.post("/upload")
    assert response.status_code == 422


def test_unknown_default_policy_is_server_error() -> None:
    with patch("uploader.api.handlers.UPLOAD_DEFAULT_POLICY", "missing"):
        with pytest.raises(HTTPException) as exc_info:
            get_uploader()
    assert exc_info.value.status_code == 500
    assert "missing" in exc_info.value.detail


def test_get_uploader_prepares_default_dir(tmp_path: Path) -> None:
    target = tmp_path / "uploads"
    with patch("uploader.services.upload_service.DEFAULT_UPLOAD_DIR", target):
        uploader = get_uploader()
    assert uploader.policy.multiple is True
    assert uploader.policy.upload_dir == target
    assert target.is_dir()
