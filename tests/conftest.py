"""Shared test fixtures for the FST Fantasy backend."""

import copy
import hashlib
import hmac
import json
import time
from urllib.parse import urlencode

import pytest

from fst_fantasy.config import RulesConfig
from fst_fantasy.data.catalog import PlayerCatalog, normalize_bootstrap
from fst_fantasy.db.memory import InMemoryUserStateStore
from fst_fantasy.errors import ProviderUnavailableError
from fst_fantasy.schemas.contest import UserContestState

# id, web_name, element_type, team, now_cost
#
# Players 1-11 form BASE_TEAM: 1 GK, 4 DEF, 4 MID, 2 FWD, two players each
# from clubs 1-5 and one from club 6, costing exactly 100.0.
_PLAYERS = [
    (1, "Keeper", 1, 1, 50),
    (2, "Back A", 2, 1, 60),
    (3, "Back B", 2, 2, 70),
    (4, "Back C", 2, 2, 80),
    (5, "Back D", 2, 3, 90),
    (6, "Mid A", 3, 3, 100),
    (7, "Mid B", 3, 4, 110),
    (8, "Mid C", 3, 4, 120),
    (9, "Mid D", 3, 5, 100),
    (10, "Striker A", 4, 5, 110),
    (11, "Striker B", 4, 6, 110),
    # Pool
    (12, "Spare Keeper", 1, 7, 40),
    (13, "Cheap Back", 2, 7, 50),
    (14, "Club One Back", 2, 1, 55),
    (15, "Star Back", 2, 8, 200),
    (16, "Pool Mid", 3, 8, 90),
    (17, "Other Mid", 3, 9, 100),
    (18, "Pool Striker", 4, 9, 100),
    (19, "Cheap Striker", 4, 10, 70),
    (20, "Club Six Striker", 4, 6, 60),
    (21, "Club One Mid", 3, 1, 80),
]

BASE_TEAM = list(range(1, 12))
CURRENT_GW = 2


def _element(pid, name, element_type, team, cost):
    return {
        "id": pid, "web_name": name, "element_type": element_type,
        "team": team, "team_code": team, "now_cost": cost,
        "total_points": pid * 3, "event_points": pid,
        "minutes": 180, "goals_scored": 0, "assists": 0, "clean_sheets": 1,
        "bonus": 0, "yellow_cards": 0, "red_cards": 0,
    }


def make_bootstrap(current_gw=CURRENT_GW):
    events = [
        {"id": gw, "is_current": gw == current_gw, "is_next": gw == current_gw + 1,
         "finished": gw < current_gw}
        for gw in range(1, 6)
    ]
    return {
        "events": events,
        "elements": [_element(*row) for row in _PLAYERS],
        "teams": [{"id": t, "code": t, "name": f"Club {t}", "short_name": f"C{t:02d}"}
                  for t in range(1, 11)],
    }


class FakeProvider:
    """In-memory Player Data Provider.

    ``history[pid]`` holds element-summary rows; players in ``failing``
    raise on stats lookups, and ``fail_catalog`` makes the catalog fetch
    raise. ``on_disk`` stands in for the last saved bootstrap payload.
    """

    def __init__(self, bootstrap):
        self.bootstrap = bootstrap
        self.history = {
            pid: [{"round": gw, "total_points": pid, "minutes": 90} for gw in range(1, 6)]
            for pid, *_ in _PLAYERS
        }
        self.failing = set()
        self.fail_catalog = False
        self.on_disk = None
        self.catalog_calls = 0
        self.forced_calls = 0
        self.stats_calls = 0

    def fetch_catalog(self, force=False):
        self.catalog_calls += 1
        self.forced_calls += int(force)
        if self.fail_catalog:
            raise ProviderUnavailableError("FPL API returned 503")
        return copy.deepcopy(self.bootstrap)

    def cached_catalog(self):
        if self.on_disk is None:
            return None
        return copy.deepcopy(self.on_disk), 0.0

    def fetch_gameweek_stats(self, player_id):
        self.stats_calls += 1
        if player_id in self.failing:
            raise ProviderUnavailableError("FPL API returned 503")
        return list(self.history.get(player_id, []))

    def set_current_gameweek(self, gw):
        for ev in self.bootstrap["events"]:
            ev["is_current"] = ev["id"] == gw
            ev["finished"] = ev["id"] < gw


@pytest.fixture
def bootstrap_data():
    """Synthetic FPL bootstrap-static response."""
    return make_bootstrap()


@pytest.fixture
def base_team():
    return list(BASE_TEAM)


@pytest.fixture
def rules():
    """Default contest rules, unaffected by FST_* environment overrides."""
    return RulesConfig()


@pytest.fixture
def snapshot(bootstrap_data):
    return normalize_bootstrap(bootstrap_data, fetched_at=0.0)


@pytest.fixture
def provider(bootstrap_data):
    return FakeProvider(bootstrap_data)


@pytest.fixture
def catalog(provider):
    return PlayerCatalog(provider)


@pytest.fixture
def memory_store():
    return InMemoryUserStateStore()


@pytest.fixture
def locked_state(base_team):
    """A user who locked BASE_TEAM in the current gameweek with no bank left."""
    return UserContestState(
        user_id="alice",
        display_name="Alice",
        wallet_address="0xalice",
        locked=True,
        roster=base_team,
        budget=0,
        free_transfers=1,
        current_gameweek=CURRENT_GW,
        last_transfer_gameweek=CURRENT_GW,
    )


@pytest.fixture
def tmp_db(tmp_path):
    """Temporary database path for DB tests."""
    return tmp_path / "test_contest.db"


@pytest.fixture
def signed_init_data():
    """Build Telegram WebApp initData for a user id, signed with *token*."""
    def _sign(user_id, token, auth_date=None):
        fields = {
            "auth_date": str(int(auth_date if auth_date is not None else time.time())),
            "query_id": "AAH",
            "user": json.dumps({"id": user_id, "first_name": "Test"}),
        }
        check = "\n".join(f"{k}={v}" for k, v in sorted(fields.items()))
        secret = hmac.new(b"WebAppData", token.encode(), hashlib.sha256).digest()
        digest = hmac.new(secret, check.encode(), hashlib.sha256).hexdigest()
        return urlencode({**fields, "hash": digest})
    return _sign
