"""FPL API client — the contest's Player Data Provider.

``bootstrap-static`` (players, clubs, gameweeks) goes through a file cache.
A failed fetch always raises; the last payload on disk is offered
separately through :func:`read_cached_fpl_api` so the catalog can serve
it with a staleness warning. ``element-summary`` (per-gameweek history
for one player) is fetched live; :mod:`fst_fantasy.data.live_stats` caches it.
Every request has a bounded timeout and failures surface as
:class:`~fst_fantasy.errors.UpstreamError` subclasses.
"""

from __future__ import annotations

from pathlib import Path

import requests

from fst_fantasy.config import cache_cfg, data_cfg
from fst_fantasy.data.cache import (
    cache_path,
    is_cache_fresh,
    read_json_cache,
    write_json_cache,
)
from fst_fantasy.errors import ProviderTimeoutError, ProviderUnavailableError
from fst_fantasy.logging_config import get_logger

logger = get_logger(__name__)

# ── Internal constants ──────────────────────────────────────────────────

_API_BASE = data_cfg.fpl_api_base

_ENDPOINTS: dict[str, str] = {
    "bootstrap": f"{_API_BASE}/bootstrap-static/",
}

_HEADERS = {
    "User-Agent": data_cfg.user_agent,
    "Accept": "application/json",
}


# ── Low-level HTTP ──────────────────────────────────────────────────────

def _fetch_json(url: str, timeout: float | None = None) -> dict | list:
    """GET *url* and decode JSON, translating failures to upstream errors."""
    timeout = timeout if timeout is not None else data_cfg.request_timeout
    try:
        resp = requests.get(url, headers=_HEADERS, timeout=timeout)
        resp.raise_for_status()
        return resp.json()
    except requests.Timeout as exc:
        raise ProviderTimeoutError(f"FPL API timed out after {timeout}s", url=url) from exc
    except requests.HTTPError as exc:
        status = exc.response.status_code if exc.response is not None else None
        raise ProviderUnavailableError(f"FPL API returned {status}", url=url) from exc
    except (requests.RequestException, ValueError) as exc:
        raise ProviderUnavailableError(f"FPL API request failed: {exc}", url=url) from exc


# ── Public endpoints (file-cached) ──────────────────────────────────────

def fetch_fpl_api(
    endpoint: str,
    force: bool = False,
    cache_dir: Path | None = None,
) -> dict | list:
    """Fetch JSON from a public FPL API endpoint with file-based caching.

    Parameters
    ----------
    endpoint:
        Key into ``_ENDPOINTS`` (``"bootstrap"``).
    force:
        Bypass the cache and re-fetch.
    cache_dir:
        Override for ``CACHE_DIR`` (tests).
    """
    cp = cache_path(f"fpl_api_{endpoint}.json", cache_dir)
    if not force and is_cache_fresh(cp, max_age=cache_cfg.bootstrap_file):
        data = read_json_cache(cp)
        if data is not None:
            return data

    url = _ENDPOINTS[endpoint]
    logger.info("Fetching %s", url)
    data = _fetch_json(url)
    try:
        write_json_cache(cp, data)
    except OSError as exc:
        logger.warning("Could not write %s: %s", cp.name, exc)
    return data


def read_cached_fpl_api(
    endpoint: str,
    cache_dir: Path | None = None,
) -> tuple[dict | list, float] | None:
    """Last payload written for *endpoint*, whatever its age, with its mtime."""
    cp = cache_path(f"fpl_api_{endpoint}.json", cache_dir)
    if not cp.exists():
        return None
    data = read_json_cache(cp)
    if data is None:
        return None
    return data, cp.stat().st_mtime


def fetch_player_summary(player_id: int) -> dict:
    """Fetch element summary (per-GW history, upcoming fixtures) for one player."""
    return _fetch_json(f"{_API_BASE}/element-summary/{player_id}/")


# ── Provider facade ─────────────────────────────────────────────────────

class FplApiProvider:
    """Player Data Provider backed by the public FPL API.

    ``fetch_catalog`` returns the raw bootstrap payload (``elements``,
    ``teams``, ``events``); normalization happens in the catalog cache.
    ``cached_catalog`` returns the last payload saved to disk and its
    timestamp, or None.
    """

    def __init__(self, cache_dir: Path | None = None):
        self.cache_dir = cache_dir

    def fetch_catalog(self, force: bool = False) -> dict:
        return fetch_fpl_api("bootstrap", force=force, cache_dir=self.cache_dir)

    def cached_catalog(self) -> tuple[dict, float] | None:
        return read_cached_fpl_api("bootstrap", cache_dir=self.cache_dir)

    def fetch_gameweek_stats(self, player_id: int) -> list[dict]:
        summary = fetch_player_summary(player_id)
        return list(summary.get("history", []))
