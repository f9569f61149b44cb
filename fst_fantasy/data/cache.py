"""TTL-based cache helpers for the local provider cache.

Provides helpers to check freshness and resolve cache file paths.
All cached files live under ``CACHE_DIR`` (see :mod:`fst_fantasy.paths`).
"""

from __future__ import annotations

import json
import os
import tempfile
import time
from pathlib import Path

from fst_fantasy.config import cache_cfg
from fst_fantasy.logging_config import get_logger
from fst_fantasy.paths import CACHE_DIR

logger = get_logger(__name__)


def cache_path(name: str, cache_dir: Path | None = None) -> Path:
    """Return the full path for a named cache file inside ``CACHE_DIR``."""
    return (cache_dir or CACHE_DIR) / name


def is_cache_fresh(path: Path, max_age: int | None = None) -> bool:
    """Return ``True`` if *path* exists and is younger than *max_age* seconds.

    Falls back to :pyattr:`CacheConfig.bootstrap_file` when *max_age* is None.
    """
    if not path.exists():
        return False
    age = time.time() - path.stat().st_mtime
    return age < (max_age if max_age is not None else cache_cfg.bootstrap_file)


def read_json_cache(path: Path) -> dict | list | None:
    """Read a JSON cache file, returning ``None`` when missing or corrupt."""
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.debug("Cache read failed for %s: %s", path.name, exc)
        return None


def write_json_cache(path: Path, data: dict | list) -> None:
    """Write *data* as JSON to *path* atomically, creating the directory first.

    Concurrent writers each rename a complete temp file into place, so a
    reader never sees a half-written snapshot; the last writer wins.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(data, fh, ensure_ascii=False)
        os.replace(tmp, path)
    except OSError:
        Path(tmp).unlink(missing_ok=True)
        raise
