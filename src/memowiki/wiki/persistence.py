"""Whole-file persistence helpers for the wiki directory.

Every write produces a complete snapshot in a sibling temporary file and
then renames it over the target, so readers see either the previous
version or the new one, never a torn file.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def atomic_write_text(path: Path, text: str) -> None:
    """Write text to path via a temporary file and an atomic rename.

    Args:
        path: Destination file. Parent directories are created as needed.
        text: Full file content.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    with open(tmp_path, "w", encoding="utf-8", newline="") as f:
        f.write(text)
        f.flush()
        os.fsync(f.fileno())
    tmp_path.replace(path)


def atomic_write_json(path: Path, payload: Any) -> None:
    """Serialize payload as indented JSON and write it atomically.

    Args:
        path: Destination file.
        payload: JSON-serializable value.
    """
    atomic_write_text(path, json.dumps(payload, indent=2) + "\n")


def read_json(path: Path) -> Any | None:
    """Read a JSON file, treating any failure as absence.

    Args:
        path: File to read.

    Returns:
        Decoded value, or None if the file is missing, unreadable or malformed.
    """
    if not path.exists():
        return None
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning(f"Failed to read {path}, starting fresh: {e}")
        return None
