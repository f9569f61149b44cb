"""Centralized path resolution for the cache directory and contest database."""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

CACHE_DIR = Path(os.environ.get("FST_CACHE_DIR", BASE_DIR / "cache"))
OUTPUT_DIR = Path(os.environ.get("FST_OUTPUT_DIR", BASE_DIR / "output"))
DB_PATH = OUTPUT_DIR / "contest.db"
