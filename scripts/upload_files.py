#!/usr/bin/env python3
"""
Store local files in the upload directory through a named upload policy.

Files are copied (the originals stay in place), validated and named exactly as
HTTP uploads would be. Prints one line per file.

Run from project root:

    python scripts/upload_files.py report.pdf photo.jpg
    python scripts/upload_files.py --policy images --upload-dir /srv/uploads *.png
"""

import argparse
import mimetypes
import os
import sys
from contextlib import ExitStack
from pathlib import Path

# Project root on path so "uploader" resolves
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from uploader.core.config import UPLOAD_DEFAULT_POLICY
from uploader.schemas.upload import IncomingFile
from uploader.services.upload_service import Uploader


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Validate and store local files in the upload directory.")
    parser.add_argument("files", nargs="+", type=Path, help="Files to upload.")
    parser.add_argument(
        "--policy",
        default=UPLOAD_DEFAULT_POLICY,
        help="Named upload policy (default: %(default)s).",
    )
    parser.add_argument(
        "--upload-dir",
        type=Path,
        help="Override the policy's upload directory (must exist and be writable).",
    )
    args = parser.parse_args(argv)

    uploader = Uploader(args.policy).enable_multiple(True)
    if args.upload_dir is not None:
        uploader.set_upload_dir(args.upload_dir)

    # (path, IncomingFile) for readable files, (path, reason) for the rest
    entries: list[tuple[Path, IncomingFile | str]] = []
    with ExitStack() as stack:
        for path in args.files:
            try:
                fh = stack.enter_context(path.open("rb"))
                size = os.fstat(fh.fileno()).st_size
            except OSError as e:
                entries.append((path, f"cannot read file: {e.strerror or e}"))
                continue
            item = IncomingFile(
                name=path.name,
                type=mimetypes.guess_type(path.name)[0] or "application/octet-stream",
                size=size,
                file=fh,
            )
            entries.append((path, item))

        items = [entry for _, entry in entries if isinstance(entry, IncomingFile)]
        results = iter(uploader.upload(items) if items else [])

    failed = 0
    for path, entry in entries:
        if isinstance(entry, str):
            failed += 1
            print(f"  failed: {path}: {entry}")
            continue
        result = next(results)
        if result.ok:
            print(f"  stored: {path} -> {result.path}")
        else:
            failed += 1
            print(f"  failed: {path}: {result.upload_err}")

    print(f"Done. Stored {len(entries) - failed} of {len(entries)} files.")
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
