"""Schemas for incoming files, per-file results and the upload endpoint."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field

from uploader.core.errors import ErrorKind, UploadError


class IncomingFile(BaseModel):
    """
    One file as received by the HTTP layer. name and type are client-supplied and untrusted.

    The bytes are referenced either by tmp_name (a path, moved into place) or by
    file (a readable binary stream, copied into place).
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str = Field("", description="Client-supplied filename.")
    type: str = Field("", description="Client-declared MIME type.")
    size: int = Field(0, ge=0, description="Size in bytes.")
    error: int = Field(0, description="Transport status code, 0 = no error.")
    tmp_name: Path | None = Field(None, description="Path to the already received bytes.")
    file: Any = Field(None, exclude=True, description="Readable binary stream with the received bytes.")

    @property
    def has_source(self) -> bool:
        return self.tmp_name is not None or self.file is not None

    @classmethod
    def from_upload(cls, upload: Any) -> "IncomingFile":
        """Build from a FastAPI/Starlette UploadFile (spooled temp file already received)."""
        size = upload.size
        if size is None:
            stream = upload.file
            pos = stream.tell()
            stream.seek(0, 2)
            size = stream.tell()
            stream.seek(pos)
        return cls(
            name=upload.filename or "",
            type=upload.content_type or "",
            size=size,
            file=upload.file,
        )

    def to_dict(self) -> dict[str, Any]:
        data = self.model_dump(mode="json")
        if data.get("tmp_name") is None:
            data.pop("tmp_name", None)
        return data


class StoredFile(BaseModel):
    """Descriptor of a successfully stored file."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(..., description="Original client filename, e.g. file.txt")
    type: str = Field(..., description="Client-declared MIME type, e.g. text/plain")
    size: int = Field(..., description="Size in bytes.")
    path: Path = Field(..., description="Final absolute path.")
    basename: str = Field(..., description="Final basename, e.g. file.txt")
    filename: str = Field(..., description="Final stem, e.g. file")
    ext: str = Field(..., description="Extension without dot, e.g. txt")
    dot_ext: str = Field(..., alias="dotExt", description="Extension with dot, e.g. .txt")
    ts: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def ok(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class UploadFailure(BaseModel):
    """A file that could not be stored, with the input that produced it and the mapped message."""

    model_config = ConfigDict(frozen=True)

    upload: dict[str, Any] = Field(default_factory=dict, description="The input as received.")
    upload_err: str = Field(..., description="Mapped, human-readable error message.")
    error_code: int
    error_kind: ErrorKind

    @property
    def ok(self) -> bool:
        return False

    @classmethod
    def from_error(cls, upload: dict[str, Any], exc: UploadError) -> "UploadFailure":
        return cls(upload=upload, upload_err=exc.message, error_code=exc.code, error_kind=exc.kind)

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.upload,
            "upload_err": self.upload_err,
            "error_code": self.error_code,
            "error_kind": self.error_kind.value,
        }


UploadResult = Union[StoredFile, UploadFailure]


class UploadResponse(BaseModel):
    """Response after storing uploaded files in the upload directory."""

    files_saved: int = Field(..., description="Number of files successfully saved.")
    paths: list[str] = Field(..., description="Absolute paths of saved files.")
    results: list[dict[str, Any]] = Field(
        ..., description="Per-file results in request order: descriptors or records with upload_err."
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "files_saved": 1,
                    "paths": ["/tmp/uploads/report.pdf"],
                    "results": [
                        {
                            "name": "report.pdf",
                            "type": "application/pdf",
                            "size": 1024,
                            "path": "/tmp/uploads/report.pdf",
                            "basename": "report.pdf",
                            "filename": "report",
                            "ext": "pdf",
                            "dotExt": ".pdf",
                            "ts": "2024-01-01T00:00:00Z",
                        },
                        {"name": "big.iso", "type": "application/octet-stream", "size": 9999999, "error": 0,
                         "upload_err": "Maximum file size exceeded", "error_code": 101, "error_kind": "domain"},
                    ],
                }
            ]
        }
    }
