"""
speakeval.io - Atomic JSON writes and temporary artifact handling.
"""

from __future__ import annotations

import json
import tempfile
from pathlib import Path
from typing import Any

from speakeval.logging import logger


def write_json(path: Path, data: dict[str, Any], indent: int = 2) -> None:
    """Write a batch report (or any mapping) as UTF-8 JSON.

    The data lands in a sibling ``.tmp`` file that is renamed over
    ``path`` once fully written, so readers never see a partial report.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        "w", encoding="utf-8", dir=path.parent, suffix=".tmp", delete=False
    ) as tmp:
        tmp_path = Path(tmp.name)
        try:
            json.dump(data, tmp, indent=indent, ensure_ascii=False)
        except Exception:
            tmp_path.unlink(missing_ok=True)
            raise
    tmp_path.replace(path)


def read_json(path: Path) -> dict[str, Any]:
    """Read JSON file with UTF-8 encoding."""
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def remove_artifact(path: Path) -> bool:
    """Delete a temporary file if present.

    Returns:
        True if a file was removed
    """
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    except OSError as e:
        logger.warning("Could not remove %s: %s", path, e)
        return False
    logger.debug("Removed %s", path)
    return True
