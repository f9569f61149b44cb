"""Central configuration — every magic number in one place."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace


# ---------------------------------------------------------------------------
# Contest rules
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class RulesConfig:
    roster_size: int = 11
    club_cap: int | None = 2          # None disables the per-club rule
    budget_ceiling: int = 1000        # Tenths of a unit (1000 = 100.0)
    free_transfers_per_gameweek: int = 1
    transfer_penalty: int = 4         # Points booked per penalty transfer
    enforce_transfer_positions: bool = True
    enforce_formation: bool = False
    formation_limits: dict[str, tuple[int, int]] = field(default_factory=lambda: {
        "GK": (1, 1), "DEF": (3, 5), "MID": (2, 5), "FWD": (1, 3),
    })
    triple_captain_multiplier: int = 3
    display_name_max: int = 32


# ---------------------------------------------------------------------------
# Cache TTLs (seconds)
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class CacheConfig:
    catalog: int = 5 * 60            # 5 minutes
    bootstrap_file: int = 5 * 60     # same as catalog
    player_stats: int = 10 * 60      # 10 minutes
    max_stats_entries: int = 800


# ---------------------------------------------------------------------------
# Data source
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class DataConfig:
    fpl_api_base: str = "https://fantasy.premierleague.com/api"
    user_agent: str = "FST-Web3-App/1.0"
    request_timeout: float = 10.0    # seconds, per provider call
    fallback_cost: int = 45          # Display-only cost for unknown players
    stats_workers: int = 8


# ---------------------------------------------------------------------------
# Prize pool
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class PrizeConfig:
    fst_per_entry: int = 10
    leaderboard_size: int = 10


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 10000
    tick_interval: int = 300         # Scheduler period (seconds)
    telegram_bot_token: str | None = None
    init_data_max_age: int = 24 * 3600


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def rules_from_env(base: RulesConfig | None = None) -> RulesConfig:
    """Return *base* with ``FST_*`` environment overrides applied."""
    base = base or RulesConfig()
    overrides: dict = {}
    if os.environ.get("FST_BUDGET_CEILING"):
        overrides["budget_ceiling"] = int(os.environ["FST_BUDGET_CEILING"])
    if "FST_CLUB_CAP" in os.environ:
        cap = os.environ["FST_CLUB_CAP"].strip().lower()
        overrides["club_cap"] = None if cap in ("", "0", "none", "off") else int(cap)
    overrides["enforce_transfer_positions"] = _env_bool(
        "FST_ENFORCE_POSITIONS", base.enforce_transfer_positions,
    )
    overrides["enforce_formation"] = _env_bool(
        "FST_ENFORCE_FORMATION", base.enforce_formation,
    )
    return replace(base, **overrides)


def server_from_env() -> ServerConfig:
    """Build the server config from ``PORT`` / ``TELEGRAM_BOT_TOKEN`` etc."""
    base = ServerConfig()
    return replace(
        base,
        port=int(os.environ.get("PORT", base.port)),
        tick_interval=int(os.environ.get("FST_TICK_INTERVAL", base.tick_interval)),
        telegram_bot_token=os.environ.get("TELEGRAM_BOT_TOKEN") or None,
    )


# ---------------------------------------------------------------------------
# Singleton instances (importable as `from fst_fantasy.config import rules_cfg, ...`)
# ---------------------------------------------------------------------------
rules_cfg = rules_from_env()
cache_cfg = CacheConfig()
data_cfg = DataConfig()
prize_cfg = PrizeConfig()
server_cfg = server_from_env()
