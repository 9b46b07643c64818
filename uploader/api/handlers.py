"""
API handlers: turn received UploadFiles into IncomingFiles, call the Uploader, map errors to HTTP.

Responsibility: Bridge HTTP types and the upload service. Request parsing and
multipart decoding are FastAPI's; the service stays free of FastAPI/HTTP types.
"""

import logging
from pathlib import Path

from fastapi import HTTPException, UploadFile

from uploader.core.config import UPLOAD_DEFAULT_POLICY
from uploader.core.errors import UploaderConfigError
from uploader.schemas.upload import IncomingFile, UploadResponse
from uploader.services.upload_service import Uploader

logger = logging.getLogger(__name__)


def get_uploader() -> Uploader:
    """Build the Uploader for the configured default policy, in batch mode. 500 if misconfigured."""
    try:
        uploader = Uploader(UPLOAD_DEFAULT_POLICY).enable_multiple(True)
        Path(uploader.policy.upload_dir).mkdir(parents=True, exist_ok=True)
    except UploaderConfigError as e:
        logger.exception("Uploader misconfigured")
        raise HTTPException(status_code=500, detail=e.message) from e
    except OSError as e:
        logger.exception("Upload directory unavailable")
        raise HTTPException(status_code=500, detail=f"Upload directory unavailable: {e!s}") from e
    return uploader


def handle_upload(files: list[UploadFile], uploader: Uploader) -> UploadResponse:
    """
    Store every received file; per-file failures are reported inline, not as HTTP errors.
    Returns 400 when no file was sent.
    """
    if not files:
        raise HTTPException(status_code=400, detail="At least one file is required.")

    items = [IncomingFile.from_upload(upload) for upload in files]
    results = uploader.upload(items)

    if not isinstance(results, list):
        results = [results]
    paths = [str(r.path) for r in results if r.ok]
    return UploadResponse(
        files_saved=len(paths),
        paths=paths,
        results=[r.to_dict() for r in results],
    )
