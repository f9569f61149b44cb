"""Identity resolution — Telegram user ids and simulated wallets.

Two credential shapes are accepted:

* ``{"userId": "..."}`` — a bare Telegram user id, as sent by the Mini
  App before init-data checking was wired in.
* ``{"initData": "..."}`` — the Telegram WebApp init-data query string,
  verified with HMAC-SHA256 against the bot token.

Once a bot token is configured the bare form is refused.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import time
from urllib.parse import parse_qsl

from fst_fantasy.config import server_cfg
from fst_fantasy.errors import AuthError
from fst_fantasy.schemas.contest_rules import check_user_id

WALLET_HEX_LEN = 40


def simulated_wallet_address(user_id: str) -> str:
    """``0x`` + *user_id* right-padded with ``a`` and cut to 40 chars."""
    return "0x" + user_id.ljust(WALLET_HEX_LEN, "a")[:WALLET_HEX_LEN]


def verify_init_data(
    init_data: str,
    bot_token: str,
    max_age: int | None = None,
    now: float | None = None,
) -> dict:
    """Check a Telegram WebApp init-data string and return its fields.

    Raises :class:`AuthError` when the hash is missing or wrong, or the
    ``auth_date`` is older than *max_age* seconds.
    """
    fields = dict(parse_qsl(init_data, keep_blank_values=True))
    received = fields.pop("hash", None)
    if not received:
        raise AuthError("initData has no hash")

    check_string = "\n".join(f"{k}={v}" for k, v in sorted(fields.items()))
    secret = hmac.new(b"WebAppData", bot_token.encode(), hashlib.sha256).digest()
    expected = hmac.new(secret, check_string.encode(), hashlib.sha256).hexdigest()
    if not hmac.compare_digest(expected, received):
        raise AuthError("initData signature mismatch")

    max_age = server_cfg.init_data_max_age if max_age is None else max_age
    if max_age:
        try:
            auth_date = int(fields.get("auth_date", "0"))
        except ValueError:
            raise AuthError("initData auth_date is not a timestamp") from None
        now = time.time() if now is None else now
        if now - auth_date > max_age:
            raise AuthError("initData has expired")
    return fields


def resolve_user_id(credential: dict | None, bot_token: str | None = None) -> str:
    """Return the stable user id behind *credential* or raise :class:`AuthError`.

    With a bot token configured only signed ``initData`` is accepted;
    without one a bare ``userId`` identifies the caller.
    """
    if not credential:
        raise AuthError("User ID required")

    token = bot_token if bot_token is not None else server_cfg.telegram_bot_token
    init_data = credential.get("initData")
    if init_data:
        if not token:
            raise AuthError("initData login is not enabled on this server")
        fields = verify_init_data(init_data, token)
        try:
            user = json.loads(fields.get("user", ""))
            raw_id = user["id"]
        except (ValueError, KeyError, TypeError):
            raise AuthError("initData carries no user id") from None
    elif token:
        raise AuthError("Signed Telegram initData required")
    else:
        raw_id = credential.get("userId", credential.get("user_id"))
        if raw_id is None or str(raw_id).strip() == "":
            raise AuthError("User ID required")

    try:
        return check_user_id(raw_id)
    except ValueError as exc:
        raise AuthError(str(exc)) from None
