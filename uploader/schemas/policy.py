"""Upload policy: the immutable rule set an Uploader validates and names files with."""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from uploader.core.config import MAX_FILE_SIZE, MIN_FILE_SIZE
from uploader.core.errors import ConfigurationNotFoundError, DirectoryNotWritableError

WILDCARD = "*"

# "*" or a tuple of lower-cased entries
AllowList = Union[str, tuple[str, ...]]


def normalize_allow_list(value: Any) -> AllowList:
    """
    Normalize an allow-list option.

    "*" is kept as-is; a comma-separated string or a sequence becomes a tuple of
    stripped, lower-cased, non-empty entries.
    """
    if isinstance(value, str):
        if value.strip() == WILDCARD:
            return WILDCARD
        value = value.split(",")
    return tuple(str(item).strip().lower() for item in value if str(item).strip())


def is_writable_dir(path: str | Path | None) -> bool:
    return path is not None and os.path.isdir(path) and os.access(path, os.W_OK | os.X_OK)


class UploadPolicy(BaseModel):
    """
    Upload rules. Options may be given in snake_case or in the camelCase names of
    the config surface (uploadDir, maxFileSize, ...). Unknown options are rejected.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="forbid",
    )

    upload_dir: Path | None = Field(None, description="Absolute destination directory.")
    min_file_size: int = Field(MIN_FILE_SIZE, ge=0, description="Inclusive lower size bound in bytes.")
    max_file_size: int = Field(MAX_FILE_SIZE, ge=0, description="Inclusive upper size bound in bytes.")
    mime_types: AllowList = Field(WILDCARD, description='Allowed MIME types, "*" or e.g. "image/*,text/plain".')
    file_extensions: AllowList = Field(WILDCARD, description='Allowed extensions without dot, or "*".')
    multiple: bool = Field(False, description="Accept a batch of files instead of one.")
    slug_char: str = Field("_", min_length=1, description="Replacement character for unsafe filename characters.")
    slug_filename: bool = True
    hash_filename: bool = False
    unique_filename: bool = True
    overwrite: bool = Field(False, description="Skip collision probing and replace existing files.")
    save_as: str | None = Field(None, description="Explicit target basename; overrides derived names.")

    @field_validator("mime_types", "file_extensions", mode="before")
    @classmethod
    def _normalize_allow_list(cls, value: Any) -> AllowList:
        return normalize_allow_list(value)

    @field_validator("save_as", mode="before")
    @classmethod
    def _empty_save_as_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def _check_bounds(self) -> "UploadPolicy":
        if self.min_file_size > self.max_file_size:
            raise ValueError(
                f"min_file_size ({self.min_file_size}) must not exceed max_file_size ({self.max_file_size})"
            )
        if "/" in self.slug_char or "\\" in self.slug_char:
            raise ValueError("slug_char must not contain a path separator")
        return self

    def replace(self, **changes: Any) -> "UploadPolicy":
        """Return a revalidated copy with the given options changed."""
        return type(self).model_validate({**self.model_dump(), **changes})

    def with_upload_dir(self, path: str | Path) -> "UploadPolicy":
        """Return a copy targeting path, which must already exist and be writable."""
        if not is_writable_dir(path):
            raise DirectoryNotWritableError(path)
        return self.replace(upload_dir=Path(path))


def resolve_policy(policies: Mapping[str, Union[UploadPolicy, Mapping[str, Any]]], name: str) -> UploadPolicy:
    """Look up a named policy; raise ConfigurationNotFoundError if the name is unknown."""
    if name not in policies:
        raise ConfigurationNotFoundError(name)
    entry = policies[name]
    if isinstance(entry, UploadPolicy):
        return entry
    return UploadPolicy.model_validate(entry)
