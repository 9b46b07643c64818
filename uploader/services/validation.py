"""
Upload validation: check one incoming file against an upload policy.

Responsibility: Decide whether a file may be stored. Checks run in a fixed order and
the first failure wins, so callers always see the same error for the same input.
No filesystem writes happen here.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from uploader.core.errors import UploadError, UploadErrorCode
from uploader.schemas.policy import WILDCARD, UploadPolicy, is_writable_dir, normalize_allow_list
from uploader.schemas.upload import IncomingFile
from uploader.services.naming import client_basename, split_basename

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationOutcome:
    """Result of validate_upload: passed, or failed with an error code."""

    code: int | None = None

    @property
    def ok(self) -> bool:
        return self.code is None

    def raise_for_error(self) -> None:
        if self.code is not None:
            raise UploadError(self.code)


PASSED = ValidationOutcome()


def validate_mime_type(mime: str, allowed: str | Iterable[str]) -> bool:
    """
    True if mime matches an allowed entry.

    Entries match when the major types are equal and the minor types are equal or
    the entry's minor type is "*". An allow-list of "*" matches everything.
    """
    allowed = normalize_allow_list(allowed)
    if allowed == WILDCARD:
        return True

    major, _, minor = (mime or "").strip().lower().partition("/")
    for entry in allowed:
        entry_major, _, entry_minor = entry.partition("/")
        if major != entry_major:
            continue
        if entry_minor == WILDCARD or minor == entry_minor:
            return True
    return False


def validate_file_extension(ext: str, allowed: str | Iterable[str]) -> bool:
    """True if ext (without dot) is in the allow-list, case-insensitively. "*" allows all."""
    allowed = normalize_allow_list(allowed)
    if allowed == WILDCARD:
        return True
    return (ext or "").lower() in allowed


def validate_upload(file: IncomingFile | None, policy: UploadPolicy) -> ValidationOutcome:
    """
    Validate one file against policy. Returns the first failing check.

    Order: file present, transport error, source bytes present, upload dir writable,
    min size, max size, MIME type, extension.
    """
    if file is None:
        return ValidationOutcome(UploadErrorCode.NO_FILE)

    # The HTTP layer drops the bytes on transport errors, so report its code first.
    if file.error != UploadErrorCode.OK:
        return ValidationOutcome(file.error)

    if not file.has_source:
        return ValidationOutcome(UploadErrorCode.NO_FILE)

    # Checked on every upload: the directory may vanish or lose permissions between calls.
    if not is_writable_dir(policy.upload_dir):
        logger.critical("Uploader: Upload directory is not writable (%s)", policy.upload_dir)
        return ValidationOutcome(UploadErrorCode.CANT_WRITE)

    if file.size < policy.min_file_size:
        return ValidationOutcome(UploadErrorCode.MIN_FILE_SIZE)
    if file.size > policy.max_file_size:
        return ValidationOutcome(UploadErrorCode.MAX_FILE_SIZE)

    if not validate_mime_type(file.type, policy.mime_types):
        return ValidationOutcome(UploadErrorCode.MIME_TYPE)

    _, ext, _ = split_basename(client_basename(file.name.strip()))
    if not validate_file_extension(ext, policy.file_extensions):
        return ValidationOutcome(UploadErrorCode.FILE_EXT)

    return PASSED
