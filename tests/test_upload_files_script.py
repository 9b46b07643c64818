"""
Tests for scripts/upload_files.py.
"""

from pathlib import Path

import pytest

import upload_files


def test_uploads_and_keeps_originals(tmp_path: Path, upload_dir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    src = tmp_path / "Quarterly Report.txt"
    src.write_bytes(b"numbers")

    code = upload_files.main([str(src), "--upload-dir", str(upload_dir)])

    assert code == 0
    assert src.exists()
    stored = list(upload_dir.iterdir())
    assert len(stored) == 1
    assert stored[0].name.startswith("quarterly_report_")
    assert stored[0].read_bytes() == b"numbers"
    assert "Stored 1 of 1 files" in capsys.readouterr().out


def test_reports_failures(tmp_path: Path, upload_dir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    good = tmp_path / "good.txt"
    good.write_bytes(b"ok")
    empty = tmp_path / "empty.txt"
    empty.write_bytes(b"")

    code = upload_files.main([str(good), str(empty), "--upload-dir", str(upload_dir)])

    out = capsys.readouterr().out
    assert code == 1
    assert f"failed: {empty}: Minimum file size error" in out
    assert "Stored 1 of 2 files" in out


def test_unreadable_file_is_reported_in_order(
    tmp_path: Path, upload_dir: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    good = tmp_path / "good.txt"
    good.write_bytes(b"ok")
    missing = tmp_path / "missing.txt"
    also_good = tmp_path / "also_good.txt"
    also_good.write_bytes(b"ok too")

    code = upload_files.main([str(good), str(missing), str(also_good), "--upload-dir", str(upload_dir)])

    lines = capsys.readouterr().out.splitlines()
    assert code == 1
    assert lines[0].startswith(f"  stored: {good} -> ")
    assert lines[1].startswith(f"  failed: {missing}: cannot read file")
    assert lines[2].startswith(f"  stored: {also_good} -> ")
    assert lines[3] == "Done. Stored 2 of 3 files."
    assert len(list(upload_dir.iterdir())) == 2


def test_only_unreadable_files(tmp_path: Path, upload_dir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = upload_files.main([str(tmp_path / "missing.txt"), "--upload-dir", str(upload_dir)])

    assert code == 1
    assert "Stored 0 of 1 files" in capsys.readouterr().out
    assert list(upload_dir.iterdir()) == []
