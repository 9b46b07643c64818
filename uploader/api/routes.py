"""
API route aggregator: register endpoints; no logic, only delegate to handlers.
"""

import logging

from fastapi import APIRouter, Depends, File, UploadFile

from uploader.api.handlers import get_uploader, handle_upload
from uploader.schemas.upload import UploadResponse
from uploader.services.upload_service import Uploader

logger = logging.getLogger(__name__)
router = APIRouter()


# --- System ---

@router.get("/health", tags=["system"])
def health():
    return {"ok": True}


# --- Upload ---

@router.post(
    "/upload",
    response_model=UploadResponse,
    tags=["upload"],
    summary="Validate and store uploaded files",
    description="Accept one or more files, validate them against the default upload policy and store them "
    "in the upload directory. Files that fail validation are reported per item with upload_err.",
)
def upload_files(
    files: list[UploadFile] = File(..., description="One or more files."),
    uploader: Uploader = Depends(get_uploader),
) -> UploadResponse:
    return handle_upload(files, uploader)
