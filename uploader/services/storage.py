"""
Upload persistence: the only place that writes into the upload directory.

Responsibility: Reserve a target name atomically and move (or copy) the received
bytes onto it. I/O failures surface as UploadError(STORE_UPLOAD).
"""

import logging
import os
import shutil
import tempfile
from pathlib import Path

from uploader.core.errors import UploadError, UploadErrorCode
from uploader.schemas.upload import IncomingFile

logger = logging.getLogger(__name__)

_CLAIM_FLAGS = os.O_CREAT | os.O_EXCL | os.O_WRONLY
# Mode of every stored file, whatever the mode of its source.
FILE_MODE = 0o644


def claim_target(path: Path) -> None:
    """
    Create an empty placeholder at path, failing with FileExistsError if the name is taken.

    Closes the gap between "name is free" and "bytes are written": two uploaders
    probing the same directory cannot both claim the same name.
    """
    fd = os.open(path, _CLAIM_FLAGS, FILE_MODE)
    os.close(fd)


def release_target(path: Path) -> None:
    """Remove a target claimed by claim_target after a failed store, whatever it holds by now."""
    _discard(path)


def _discard(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Failed to remove %s: %s", path, e)


def store_upload(file: IncomingFile, target: Path) -> Path:
    """
    Persist the received bytes of file at target and return target.

    A tmp_name source is moved (rename on the same filesystem, copy and delete
    across filesystems); a stream source is copied from its start. Either way the
    bytes land in a staging file beside target first and are renamed onto it, so
    a failed store leaves target as it was. The stored file gets FILE_MODE.
    """
    if file.tmp_name is None and file.file is None:
        raise UploadError(UploadErrorCode.NO_FILE)

    staging: Path | None = None
    try:
        if target.is_dir():
            raise IsADirectoryError(f"Target is a directory: {target}")
        fd, name = tempfile.mkstemp(prefix=".upload-", suffix=".part", dir=target.parent)
        staging = Path(name)
        if file.tmp_name is not None:
            os.close(fd)
            shutil.move(str(file.tmp_name), str(staging))
        else:
            stream = file.file
            if hasattr(stream, "seek"):
                stream.seek(0)
            with os.fdopen(fd, "wb") as out:
                shutil.copyfileobj(stream, out)
        os.chmod(staging, FILE_MODE)
        os.replace(staging, target)
        staging = None
    except OSError as e:
        logger.critical("Uploader: failed to store %r at %s: %s", file.name, target, e)
        raise UploadError(UploadErrorCode.STORE_UPLOAD) from e
    finally:
        if staging is not None:
            _discard(staging)

    logger.debug("Saved uploaded file to %s", target)
    return target
