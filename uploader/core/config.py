"""
Application configuration (env, settings, constants).

Responsibility: Centralize config loading, environment variables, and the named
upload policy table. Keeps the rest of the app decoupled from how config is sourced.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

# Fallback upload directory, used when a policy does not set upload_dir
DEFAULT_UPLOAD_DIR: Path = Path(
    os.getenv("UPLOAD_DIR", "").strip() or Path(tempfile.gettempdir()) / "uploads"
)

# Optional JSON file with {name: {option: value}} policy overrides
UPLOAD_POLICIES_FILE: str = os.getenv("UPLOAD_POLICIES_FILE", "").strip()

# Policy used by the HTTP endpoint and the CLI
UPLOAD_DEFAULT_POLICY: str = os.getenv("UPLOAD_DEFAULT_POLICY", "default").strip() or "default"

# Upper bound for the "__N" collision suffix probing
MAX_COLLISION_PROBES: int = 10_000

# Size defaults (bytes)
MIN_FILE_SIZE: int = 1
MAX_FILE_SIZE: int = 2 * 1024 * 1024  # 2MB

# Built-in named policies. Keys use the camelCase option names of the config surface.
DEFAULT_POLICIES: dict[str, dict[str, Any]] = {
    "default": {
        "uploadDir": None,
        "minFileSize": MIN_FILE_SIZE,
        "maxFileSize": MAX_FILE_SIZE,
        "mimeTypes": "*",
        "fileExtensions": "*",
        "multiple": False,
        "slugChar": "_",
        "slugFilename": True,
        "hashFilename": False,
        "uniqueFilename": True,
        "overwrite": False,
        "saveAs": None,
    },
}


def load_named_policies(path: str | Path | None = None) -> dict[str, dict[str, Any]]:
    """
    Return the named policy table: built-in defaults merged with the JSON file.

    Entries in the file are merged over the built-in entry of the same name, so a
    file only has to list the options it changes. Unknown option names are not
    checked here; UploadPolicy rejects them when the entry is used.
    """
    policies = {name: dict(options) for name, options in DEFAULT_POLICIES.items()}
    source = path if path is not None else UPLOAD_POLICIES_FILE
    if not source:
        return policies

    file_path = Path(source)
    with file_path.open(encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, dict):
        raise ValueError(f"Upload policy file must contain a JSON object: {file_path}")

    for name, options in data.items():
        if not isinstance(options, dict):
            raise ValueError(f"Upload policy {name!r} must be a JSON object")
        base = policies.get(name, DEFAULT_POLICIES["default"])
        policies[name] = {**base, **options}
    logger.info("Loaded %d upload policies from %s", len(data), file_path)
    return policies
