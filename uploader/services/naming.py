"""
Target filename resolution.

Responsibility: Turn an untrusted client filename into a safe basename inside the
upload directory (slug, hash, unique token, or explicit save_as), and find a free
name when the target already exists.
"""

import hashlib
import logging
import os
import re
import unicodedata
from dataclasses import dataclass, replace
from pathlib import Path
from uuid import uuid4

from uploader.core.config import MAX_COLLISION_PROBES
from uploader.core.errors import UploadError, UploadErrorCode
from uploader.schemas.policy import UploadPolicy

logger = logging.getLogger(__name__)

_PATH_SEPARATORS_RE = re.compile(r"[\\/]")
_SLUG_UNSAFE_RE = re.compile(r"[^A-Za-z0-9]+")
FALLBACK_STEM = "upload"
COUNTER_SEPARATOR = "__"


@dataclass(frozen=True)
class ResolvedName:
    """Final naming of one upload. path is always directly inside the upload dir."""

    base_stem: str
    ext: str
    dot_ext: str
    directory: Path
    counter: int = 0

    @property
    def basename(self) -> str:
        return f"{self.filename}{self.dot_ext}"

    @property
    def filename(self) -> str:
        """Stem of the final basename, including any collision counter."""
        if self.counter:
            return f"{self.base_stem}{COUNTER_SEPARATOR}{self.counter}"
        return self.base_stem

    @property
    def path(self) -> Path:
        return self.directory / self.basename

    def with_counter(self, counter: int) -> "ResolvedName":
        return replace(self, counter=counter)


def client_basename(name: str) -> str:
    """Drop NUL bytes and any directory components (POSIX or Windows) from a client filename."""
    name = (name or "").replace("\x00", "")
    return _PATH_SEPARATORS_RE.split(name)[-1]


def split_basename(basename: str) -> tuple[str, str, str]:
    """
    Split a basename into (stem, ext, dot_ext) at the last dot.

    >>> split_basename("filename.ext")
    ('filename', 'ext', '.ext')
    >>> split_basename("filename")
    ('filename', '', '')
    >>> split_basename(".filename")
    ('', 'filename', '.filename')
    """
    if "." not in basename:
        return basename, "", ""
    stem, _, ext = basename.rpartition(".")
    return stem, ext, "." + ext


def slug_filename(stem: str, slug_char: str = "_") -> str:
    """Transliterate to ASCII, replace runs of unsafe characters with slug_char, lower-case."""
    text = unicodedata.normalize("NFKD", stem).encode("ascii", "ignore").decode("ascii")
    text = _SLUG_UNSAFE_RE.sub(slug_char, text)
    return text.strip(slug_char).lower()


def hash_filename(stem: str) -> str:
    return hashlib.sha256(stem.encode("utf-8")).hexdigest()


def unique_filename(stem: str, slug_char: str = "_") -> str:
    return f"{stem}{slug_char}{uuid4().hex}"


def resolve_name(client_filename: str, policy: UploadPolicy) -> ResolvedName:
    """
    Compute the target name for a client filename under policy.

    Transforms apply in order slug, hash, unique. A save_as override replaces the
    derived name entirely; the transforms are not applied to it.
    """
    if policy.upload_dir is None:
        raise ValueError("policy.upload_dir must be set before resolving names")

    if policy.save_as:
        filename, ext, dot_ext = split_basename(client_basename(policy.save_as))
    else:
        filename, ext, dot_ext = split_basename(client_basename(client_filename))
        ext, dot_ext = ext.lower(), dot_ext.lower()
        if policy.slug_filename:
            filename = slug_filename(filename, policy.slug_char)
        if policy.hash_filename:
            filename = hash_filename(filename)
        if policy.unique_filename:
            filename = unique_filename(filename, policy.slug_char)

    # Never produce an empty, "." or ".." basename.
    if not (filename + dot_ext).strip("."):
        filename, ext, dot_ext = FALLBACK_STEM, "", ""

    return ResolvedName(base_stem=filename, ext=ext, dot_ext=dot_ext, directory=Path(policy.upload_dir))


def resolve_collision(resolved: ResolvedName, *, overwrite: bool = False, start: int = 0) -> ResolvedName:
    """
    Return resolved, or the first "<stem>__N<ext>" variant that does not exist yet.

    With overwrite the name is returned unchanged. start skips counters below it, so
    a caller that lost a race for "__3" can continue probing at 4.
    """
    if overwrite:
        return resolved
    if start == 0 and not os.path.lexists(resolved.path):
        return resolved

    for counter in range(max(start, 1), MAX_COLLISION_PROBES + 1):
        candidate = resolved.with_counter(counter)
        if not os.path.lexists(candidate.path):
            logger.debug("Target %s exists, using %s", resolved.basename, candidate.basename)
            return candidate
    raise UploadError(UploadErrorCode.FILE_EXISTS)
