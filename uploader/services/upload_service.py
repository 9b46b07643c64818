"""
Upload orchestration: validate, name and store one file or a batch.

Responsibility: Drive validation -> name resolution -> persistence per file, build
result descriptors, and apply the throw-vs-report error policy. No HTTP here.
"""

import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Union

from pydantic import ValidationError

from uploader.core.config import DEFAULT_UPLOAD_DIR, load_named_policies
from uploader.core.errors import UploadError, UploadErrorCode
from uploader.schemas.policy import UploadPolicy, resolve_policy
from uploader.schemas.upload import IncomingFile, StoredFile, UploadFailure, UploadResult
from uploader.services.naming import ResolvedName, resolve_collision, resolve_name
from uploader.services.storage import claim_target, release_target, store_upload
from uploader.services.validation import validate_upload

logger = logging.getLogger(__name__)

UploadInput = Union[IncomingFile, Mapping[str, Any]]


class Uploader:
    """
    Validates and stores uploaded files according to an UploadPolicy.

    The policy is given directly, as a mapping of options, or by name from a policy
    table (see core.config.load_named_policies). If it sets no upload_dir,
    default_upload_dir is used.
    """

    def __init__(
        self,
        policy: Union[UploadPolicy, Mapping[str, Any], str, None] = None,
        data: Union[UploadInput, Sequence[UploadInput], None] = None,
        *,
        policies: Mapping[str, Any] | None = None,
        default_upload_dir: str | Path | None = None,
    ) -> None:
        if isinstance(policy, str):
            policy = resolve_policy(policies if policies is not None else load_named_policies(), policy)
        elif policy is None:
            policy = UploadPolicy()
        elif not isinstance(policy, UploadPolicy):
            policy = UploadPolicy.model_validate(policy)

        if policy.upload_dir is None:
            policy = policy.replace(upload_dir=Path(default_upload_dir or DEFAULT_UPLOAD_DIR))

        self.policy: UploadPolicy = policy
        self._data = data
        self._result: Union[UploadResult, list[UploadResult], None] = None

    # --- Policy setters (fluent) ---

    def set_upload_data(self, data: Union[UploadInput, Sequence[UploadInput], None]) -> "Uploader":
        """Preset the data used by upload() when it is called without arguments."""
        self._data = data
        return self

    def set_upload_dir(self, path: str | Path) -> "Uploader":
        """Set the upload directory. Raises DirectoryNotWritableError if it is missing or read-only."""
        self.policy = self.policy.with_upload_dir(path)
        return self

    def set_min_file_size(self, size_in_bytes: int) -> "Uploader":
        return self._update(min_file_size=size_in_bytes)

    def set_max_file_size(self, size_in_bytes: int) -> "Uploader":
        return self._update(max_file_size=size_in_bytes)

    def set_mime_types(self, mime_types: str | Sequence[str]) -> "Uploader":
        return self._update(mime_types=mime_types)

    def set_file_extensions(self, extensions: str | Sequence[str]) -> "Uploader":
        return self._update(file_extensions=extensions)

    def set_save_as(self, basename: str | None) -> "Uploader":
        return self._update(save_as=basename)

    def enable_slug_filename(self, enable: bool = True) -> "Uploader":
        return self._update(slug_filename=enable)

    def enable_hash_filename(self, enable: bool = True) -> "Uploader":
        return self._update(hash_filename=enable)

    def enable_unique_filename(self, enable: bool = True) -> "Uploader":
        return self._update(unique_filename=enable)

    def enable_overwrite(self, enable: bool = True) -> "Uploader":
        return self._update(overwrite=enable)

    def enable_multiple(self, enable: bool = True) -> "Uploader":
        return self._update(multiple=enable)

    def _update(self, **changes: Any) -> "Uploader":
        self.policy = self.policy.replace(**changes)
        return self

    # --- Upload ---

    @property
    def result(self) -> Union[UploadResult, list[UploadResult], None]:
        """Result of the last upload() call."""
        return self._result

    def upload(
        self,
        data: Union[UploadInput, Sequence[UploadInput], None] = None,
        *,
        throw_on_error: bool = False,
    ) -> Union[UploadResult, list[UploadResult]]:
        """
        Upload one file, or a batch when the policy has multiple=True.

        Each file ends up as a StoredFile or, unless throw_on_error is set, an
        UploadFailure. Batch results keep input order and a failing file never stops
        its siblings. With throw_on_error the first UploadError propagates and aborts
        the rest of the batch.

        Raises:
            UploadError: No data at all, or any per-file error when throw_on_error.
        """
        self._result = None
        data = data if data else self._data
        if not data:
            raise UploadError(UploadErrorCode.NO_FILE)

        if self.policy.multiple:
            items = [data] if isinstance(data, (Mapping, IncomingFile)) else list(data)
            logger.info("[uploader:upload] IN  batch files=%d dir=%s", len(items), self.policy.upload_dir)
            results = [self._upload_one(item, throw_on_error) for item in items]
            logger.info(
                "[uploader:upload] OUT stored=%d failed=%d",
                sum(1 for r in results if r.ok),
                sum(1 for r in results if not r.ok),
            )
            self._result = results
            return results

        self._result = self._upload_one(data, throw_on_error)
        return self._result

    def _upload_one(self, item: Any, throw_on_error: bool) -> UploadResult:
        raw = _raw_input(item)
        try:
            file = _coerce_incoming(item)
            validate_upload(file, self.policy).raise_for_error()
            return self._store(file)
        except UploadError as e:
            if throw_on_error:
                raise
            logger.warning("[uploader:upload] failed name=%r code=%s: %s", raw.get("name"), e.code, e.message)
            return UploadFailure.from_error(raw, e)

    def _store(self, file: IncomingFile) -> StoredFile:
        policy = self.policy
        resolved = resolve_name(file.name, policy)
        logger.debug("Uploading file to %s", policy.upload_dir)

        target = self._reserve(resolved)
        try:
            store_upload(file, target.path)
        except UploadError:
            if not policy.overwrite:
                release_target(target.path)
            raise

        logger.info("[uploader:upload] stored name=%r path=%s", file.name, target.path)
        return StoredFile(
            name=file.name,
            type=file.type,
            size=file.size,
            path=target.path.absolute(),
            basename=target.basename,
            filename=target.filename,
            ext=target.ext,
            dot_ext=target.dot_ext,
        )

    def _reserve(self, resolved: ResolvedName) -> ResolvedName:
        """Pick a free target name and claim it, probing further if another writer wins the race."""
        if self.policy.overwrite:
            return resolved
        start = 0
        while True:
            target = resolve_collision(resolved, start=start)
            try:
                claim_target(target.path)
            except FileExistsError:
                logger.debug("Lost race for %s, probing on", target.basename)
                start = target.counter + 1
                continue
            except OSError as e:
                logger.critical("Uploader: failed to create %s: %s", target.path, e)
                raise UploadError(UploadErrorCode.STORE_UPLOAD) from e
            return target


def _coerce_incoming(item: Any) -> IncomingFile:
    if isinstance(item, IncomingFile):
        return item
    if not isinstance(item, Mapping):
        raise UploadError(UploadErrorCode.NO_FILE, "Invalid upload data")
    try:
        return IncomingFile.model_validate(dict(item))
    except ValidationError as e:
        raise UploadError(UploadErrorCode.NO_FILE, "Invalid upload data") from e


def _raw_input(item: Any) -> dict[str, Any]:
    """The input shape echoed back in failure records."""
    if isinstance(item, IncomingFile):
        return item.to_dict()
    if isinstance(item, Mapping):
        return dict(item)
    return {}
