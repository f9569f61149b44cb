"""Flask route tests for the contest API."""

import pytest

from fst_fantasy.api import create_app
from fst_fantasy.contest.manager import ContestManager


@pytest.fixture
def manager(memory_store, provider, rules):
    return ContestManager(store=memory_store, provider=provider, rules=rules)


@pytest.fixture
def app(manager):
    app = create_app(manager)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def joined_client(client, base_team):
    client.post("/connect-wallet", json={"userId": "alice"})
    resp = client.post("/save-team", json={"userId": "alice", "team": base_team})
    assert resp.status_code == 200
    return client


def test_app_creates(app):
    assert app is not None


def test_api_routes_exist(app):
    rules = {r.rule for r in app.url_map.iter_rules()}
    expected = [
        "/",
        "/connect-wallet",
        "/players",
        "/save-team",
        "/get-team",
        "/transfer",
        "/cards/<card>",
        "/refresh-points",
        "/profile",
        "/profile/name",
        "/leaderboard",
        "/prize-pool",
        "/health",
    ]
    for route in expected:
        assert route in rules, f"Missing route: {route}"


class TestConnectWallet:
    def test_connect(self, client):
        resp = client.post("/connect-wallet", json={"userId": "12345"})
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["success"] is True
        assert data["address"].startswith("0x12345aaa")
        assert len(data["address"]) == 42

    def test_missing_user_id(self, client):
        resp = client.post("/connect-wallet", json={})
        assert resp.status_code == 401
        assert resp.get_json()["kind"] == "auth_error"


class TestTeamRoutes:
    def test_players(self, client):
        data = client.get("/players").get_json()
        assert len(data["players"]) == 21
        assert {"id", "web_name", "team", "element_type", "cost"} <= set(data["players"][0])

    def test_save_team_requires_connect(self, client, base_team):
        resp = client.post("/save-team", json={"userId": "ghost", "team": base_team})
        assert resp.status_code == 404
        assert resp.get_json()["error"] == "User not found. Connect wallet first."

    def test_save_team_wrong_size(self, client, base_team):
        client.post("/connect-wallet", json={"userId": "bob"})
        resp = client.post("/save-team", json={"userId": "bob", "team": base_team[:10]})
        assert resp.status_code == 400
        assert resp.get_json()["kind"] == "size_error"

    def test_save_team_bad_payload(self, client):
        client.post("/connect-wallet", json={"userId": "bob"})
        resp = client.post("/save-team", json={"userId": "bob", "team": "1,2,3"})
        assert resp.status_code == 400

    def test_save_team_twice(self, joined_client, base_team):
        resp = joined_client.post("/save-team", json={"userId": "alice", "team": base_team})
        assert resp.status_code == 409
        assert resp.get_json()["kind"] == "already_locked"

    def test_get_team(self, joined_client, base_team):
        assert joined_client.get("/get-team?userId=alice").get_json() == base_team

    def test_get_team_requires_user(self, client):
        resp = client.get("/get-team")
        assert resp.status_code == 401
        assert resp.get_json()["kind"] == "auth_error"


class TestTransferRoute:
    def test_transfer(self, joined_client):
        resp = joined_client.post("/transfer", json={
            "userId": "alice", "playerOutId": 2, "playerInId": 13,
        })
        assert resp.status_code == 200
        assert resp.get_json()["freeTransfers"] == 0

    def test_budget_error_body(self, joined_client):
        resp = joined_client.post("/transfer", json={
            "userId": "alice", "playerOutId": 3, "playerInId": 15,
        })
        assert resp.status_code == 400
        data = resp.get_json()
        assert data["kind"] == "budget_exceeded"
        assert data["details"]["overage"] == 13.0

    def test_penalty_flow(self, joined_client):
        joined_client.post("/transfer", json={"userId": "alice", "playerOutId": 2, "playerInId": 13})
        resp = joined_client.post("/transfer", json={"userId": "alice", "playerOutId": 11, "playerInId": 19})
        assert resp.status_code == 400
        assert resp.get_json()["kind"] == "no_free_transfers"
        resp = joined_client.post("/transfer", json={
            "userId": "alice", "playerOutId": 11, "playerInId": 19, "acceptPenalty": True,
        })
        assert resp.get_json()["penalty"] == 4

    def test_missing_ids(self, joined_client):
        resp = joined_client.post("/transfer", json={"userId": "alice"})
        assert resp.status_code == 400


class TestCardRoutes:
    def test_triple_captain(self, joined_client):
        resp = joined_client.post("/cards/triple_captain", json={"userId": "alice", "playerId": 8})
        assert resp.status_code == 200
        assert resp.get_json()["card"] == "triple_captain"

    def test_card_twice(self, joined_client):
        joined_client.post("/cards/wildcard", json={"userId": "alice"})
        resp = joined_client.post("/cards/wildcard", json={"userId": "alice"})
        assert resp.status_code == 409
        assert resp.get_json()["kind"] == "card_already_used"

    def test_unknown_card(self, joined_client):
        resp = joined_client.post("/cards/free_hit", json={"userId": "alice"})
        assert resp.status_code == 400


class TestPointsAndRankings:
    def test_refresh_points(self, joined_client):
        data = joined_client.post("/refresh-points", json={"userId": "alice"}).get_json()
        assert data["points"] == 66

    def test_leaderboard(self, joined_client):
        joined_client.post("/refresh-points", json={"userId": "alice"})
        rows = joined_client.get("/leaderboard").get_json()
        assert rows == [{
            "rank": 1, "userId": "alice", "displayName": "alice",
            "points": 66, "gameweekPoints": 66,
        }]

    def test_leaderboard_bad_limit(self, client):
        assert client.get("/leaderboard?limit=abc").status_code == 400

    def test_prize_pool(self, joined_client):
        assert joined_client.get("/prize-pool").get_json() == {"fst": 10, "entries": 1}

    def test_profile_and_name(self, joined_client):
        resp = joined_client.post("/profile/name", json={"userId": "alice", "displayName": "Ally"})
        assert resp.status_code == 200
        profile = joined_client.get("/profile?userId=alice").get_json()
        assert profile["displayName"] == "Ally"
        assert profile["joined"] is True

    def test_status_page(self, joined_client):
        assert joined_client.get("/").get_json() == {
            "status": "running",
            "service": "FST Fantasy contest backend",
            "entries": 1,
        }

    def test_health(self, client):
        assert client.get("/health").get_json()["status"] == "ok"


class TestMiddleware:
    def test_no_cache_headers(self, joined_client):
        resp = joined_client.get("/get-team?userId=alice")
        assert resp.headers["Cache-Control"] == "no-store"

    def test_not_found(self, client):
        resp = client.get("/nope")
        assert resp.status_code == 404
        assert resp.get_json() == {"error": "Not found"}

    def test_upstream_outage(self, client, provider):
        provider.fail_catalog = True
        resp = client.get("/players")
        assert resp.status_code == 503
        assert resp.get_json()["kind"] == "provider_unavailable"


class TestTelegramAuth:
    BOT_TOKEN = "123456:TEST-TOKEN"

    @pytest.fixture
    def client(self, memory_store, provider, rules):
        manager = ContestManager(store=memory_store, provider=provider, rules=rules, bot_token=self.BOT_TOKEN)
        app = create_app(manager)
        app.config["TESTING"] = True
        return app.test_client()

    def test_init_data_drives_mutations(self, client, base_team, signed_init_data):
        init_data = signed_init_data(424242, self.BOT_TOKEN)
        assert client.post("/connect-wallet", json={"initData": init_data}).get_json()["userId"] == "424242"
        assert client.post("/save-team", json={"initData": init_data, "team": base_team}).status_code == 200
        resp = client.post("/transfer", json={"initData": init_data, "playerOutId": 2, "playerInId": 13})
        assert resp.status_code == 200
        assert client.get("/get-team", query_string={"initData": init_data}).get_json()[1] == 13

    def test_bare_user_id_rejected(self, client, base_team, signed_init_data):
        init_data = signed_init_data(424242, self.BOT_TOKEN)
        client.post("/connect-wallet", json={"initData": init_data})
        resp = client.post("/save-team", json={"userId": "424242", "team": base_team})
        assert resp.status_code == 401
        assert resp.get_json()["kind"] == "auth_error"

    def test_bare_connect_rejected(self, client):
        assert client.post("/connect-wallet", json={"userId": "424242"}).status_code == 401

    def test_forged_init_data_rejected(self, client, signed_init_data):
        forged = signed_init_data(424242, "999:OTHER-TOKEN")
        resp = client.post("/refresh-points", json={"initData": forged})
        assert resp.status_code == 401
