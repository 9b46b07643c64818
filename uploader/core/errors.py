"""
Upload errors: codes, kinds, exceptions and the code-to-message mapping.

Per-file problems raise UploadError, which the Uploader either propagates or turns
into an inline failure record. Configuration problems raise UploaderConfigError
subclasses and always propagate.
"""

from enum import Enum, IntEnum
from pathlib import Path


class UploadErrorCode(IntEnum):
    """Transport codes (0-8) as reported by the HTTP layer, plus domain codes (100+)."""

    OK = 0
    INI_SIZE = 1
    FORM_SIZE = 2
    PARTIAL = 3
    NO_FILE = 4
    NO_TMP_DIR = 6
    CANT_WRITE = 7
    EXTENSION = 8
    MIN_FILE_SIZE = 100
    MAX_FILE_SIZE = 101
    MIME_TYPE = 102
    FILE_EXT = 103
    FILE_EXISTS = 104
    STORE_UPLOAD = 105


class ErrorKind(str, Enum):
    TRANSPORT = "transport"
    DOMAIN = "domain"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


UNKNOWN_ERROR_MESSAGE = "Unknown upload error"

_MESSAGES: dict[int, str] = {
    UploadErrorCode.OK: "Upload successful",
    UploadErrorCode.INI_SIZE: "Maximum ini file size exceeded",
    UploadErrorCode.FORM_SIZE: "Maximum form file size exceeded",
    UploadErrorCode.PARTIAL: "File only partially uploaded",
    UploadErrorCode.NO_FILE: "No file uploaded",
    UploadErrorCode.NO_TMP_DIR: "Upload directory missing",
    UploadErrorCode.CANT_WRITE: "Cant write to upload directory",
    UploadErrorCode.EXTENSION: "Upload extension error",
    UploadErrorCode.FILE_EXISTS: "File already exists",
    UploadErrorCode.FILE_EXT: "Invalid file extension",
    UploadErrorCode.MIME_TYPE: "Invalid mime type",
    UploadErrorCode.MIN_FILE_SIZE: "Minimum file size error",
    UploadErrorCode.MAX_FILE_SIZE: "Maximum file size exceeded",
    UploadErrorCode.STORE_UPLOAD: "Failed to store uploaded file",
}


def message_for(code: int) -> str:
    """Return the human-readable message for an upload error code. Never raises."""
    return _MESSAGES.get(code, UNKNOWN_ERROR_MESSAGE)


def kind_for(code: int) -> ErrorKind:
    """Classify an error code as transport, domain or unknown."""
    if code not in _MESSAGES:
        return ErrorKind.UNKNOWN
    if code < UploadErrorCode.MIN_FILE_SIZE:
        return ErrorKind.TRANSPORT
    return ErrorKind.DOMAIN


class UploadError(Exception):
    """Raised when a single file cannot be validated or stored."""

    def __init__(self, code: int, message: str | None = None) -> None:
        self.code = code
        self.kind = kind_for(code)
        self.message = message or message_for(code)
        super().__init__(self.message)


class UploaderConfigError(Exception):
    """Raised when the uploader itself is misconfigured (operator error, never per-file)."""

    kind = ErrorKind.CONFIGURATION

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigurationNotFoundError(UploaderConfigError):
    """Raised when a named upload policy does not exist."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Invalid Upload Configuration: {name}")


class DirectoryNotWritableError(UploaderConfigError):
    """Raised when an explicitly set upload directory is missing or not writable."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        super().__init__(f"Upload directory not writable: {path}")
