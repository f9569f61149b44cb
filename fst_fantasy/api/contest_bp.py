"""Contest blueprint — wallet connect, team, transfers, cards, points, rankings."""

from flask import Blueprint, jsonify, request

from fst_fantasy.api.helpers import get_manager, json_body, require_user_id
from fst_fantasy.errors import ValidationError
from fst_fantasy.logging_config import get_logger
from fst_fantasy.schemas.contest_rules import (
    CardRequest,
    DisplayNameRequest,
    TeamSubmission,
    TransferRequest,
)

log = get_logger(__name__)

contest_bp = Blueprint("contest", __name__)


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------

@contest_bp.route("/connect-wallet", methods=["POST"])
def api_connect_wallet():
    return jsonify(get_manager().connect_user(json_body()))


@contest_bp.route("/profile")
def api_profile():
    user_id = require_user_id(request.args)
    return jsonify(get_manager().get_profile(user_id))


@contest_bp.route("/profile/name", methods=["POST"])
def api_profile_name():
    body = json_body()
    user_id = require_user_id(body)
    req = DisplayNameRequest.model_validate({"display_name": body.get("displayName", "")})
    return jsonify(get_manager().set_display_name(user_id, req.display_name))


# ---------------------------------------------------------------------------
# Players and team
# ---------------------------------------------------------------------------

@contest_bp.route("/players")
def api_players():
    return jsonify(get_manager().list_players())


@contest_bp.route("/save-team", methods=["POST"])
def api_save_team():
    body = json_body()
    user_id = require_user_id(body)
    req = TeamSubmission.model_validate({"team": body.get("team")})
    return jsonify(get_manager().submit_team(user_id, req.team))


@contest_bp.route("/get-team")
def api_get_team():
    user_id = require_user_id(request.args)
    return jsonify(get_manager().get_team(user_id))


# ---------------------------------------------------------------------------
# Transfers and cards
# ---------------------------------------------------------------------------

@contest_bp.route("/transfer", methods=["POST"])
def api_transfer():
    body = json_body()
    user_id = require_user_id(body)
    req = TransferRequest.model_validate({
        "player_out_id": body.get("playerOutId", body.get("player_out_id")),
        "player_in_id": body.get("playerInId", body.get("player_in_id")),
        "wildcard": body.get("wildcard", False),
        "accept_penalty": body.get("acceptPenalty", body.get("accept_penalty", False)),
    })
    return jsonify(get_manager().make_transfer(
        user_id,
        req.player_out_id,
        req.player_in_id,
        wildcard=req.wildcard,
        accept_penalty=req.accept_penalty,
    ))


@contest_bp.route("/cards/<card>", methods=["POST"])
def api_play_card(card):
    body = json_body()
    user_id = require_user_id(body)
    req = CardRequest.model_validate({"player_id": body.get("playerId", body.get("player_id"))})
    return jsonify(get_manager().activate_card(user_id, card, req.player_id))


# ---------------------------------------------------------------------------
# Points and rankings
# ---------------------------------------------------------------------------

@contest_bp.route("/refresh-points", methods=["POST"])
def api_refresh_points():
    user_id = require_user_id(json_body())
    return jsonify(get_manager().refresh_points(user_id))


@contest_bp.route("/leaderboard")
def api_leaderboard():
    limit = request.args.get("limit")
    if limit is not None:
        try:
            limit = int(limit)
        except ValueError:
            raise ValidationError("limit must be an integer") from None
        if limit < 1:
            raise ValidationError("limit must be positive")
    return jsonify(get_manager().leaderboard(limit))


@contest_bp.route("/prize-pool")
def api_prize_pool():
    return jsonify(get_manager().prize_pool())


@contest_bp.route("/health")
def api_health():
    return jsonify({"status": "ok", "entries": get_manager().prize_pool()["entries"]})


@contest_bp.route("/")
def api_status():
    """Landing status: the server is up and how many teams are entered."""
    return jsonify({
        "status": "running",
        "service": "FST Fantasy contest backend",
        "entries": get_manager().store.count_entries(),
    })
