# oauth_broker/providers/state.py
"""
State parameter round-tripped through the provider's consent screen.

By default the token is just URL-safe base64 of `{"user_id": ...}`; plain JSON
is accepted on decode too. It is NOT signed and NOT bound to a server-side
session: treat the decoded user id as advisory. Setting a signing key switches
to an HS256 JWT with a random nonce and an expiry, which callers can opt into
without changing the default.
"""
import base64
import binascii
import json
import secrets
import time
from typing import Callable, Optional

import structlog
from jose import JWTError, jwt

from oauth_broker.providers.errors import MalformedState

logger = structlog.get_logger(__name__)

UNKNOWN_USER = "unknown"
STATE_ALGORITHM = "HS256"


class StateCodec:
    def __init__(
        self,
        signing_key: Optional[str] = None,
        ttl_seconds: int = 600,
        clock: Callable[[], float] = time.time,
    ):
        self.signing_key = signing_key or None
        self.ttl_seconds = ttl_seconds
        self.clock = clock

    @property
    def signed(self) -> bool:
        return self.signing_key is not None

    def encode(self, user_id: str) -> str:
        if self.signed:
            now = int(self.clock())
            claims = {
                "user_id": user_id,
                "nonce": secrets.token_urlsafe(16),
                "iat": now,
                "exp": now + self.ttl_seconds,
            }
            return jwt.encode(claims, self.signing_key, algorithm=STATE_ALGORITHM)

        raw = json.dumps({"user_id": user_id}, separators=(",", ":")).encode()
        return base64.urlsafe_b64encode(raw).decode().rstrip("=")

    def decode(self, token: Optional[str]) -> str:
        if not token:
            raise MalformedState("state is missing")

        if self.signed:
            try:
                # exp is checked against our clock rather than jose's wall clock
                payload = jwt.decode(
                    token, self.signing_key, algorithms=[STATE_ALGORITHM], options={"verify_exp": False}
                )
            except JWTError as e:
                raise MalformedState(f"state signature invalid: {e}") from e
            exp = payload.get("exp")
            if not isinstance(exp, int) or exp < int(self.clock()):
                raise MalformedState("state expired")
        elif token.startswith("{"):
            # raw JSON states, as minted by earlier deployments
            try:
                payload = json.loads(token)
            except ValueError as e:
                raise MalformedState("state is not valid JSON") from e
        else:
            padded = token + "=" * (-len(token) % 4)
            try:
                raw = base64.urlsafe_b64decode(padded.encode("ascii"))
                payload = json.loads(raw)
            except (binascii.Error, UnicodeError, ValueError) as e:
                raise MalformedState("state is not valid encoded JSON") from e

        if not isinstance(payload, dict):
            raise MalformedState("state payload is not an object")
        user_id = payload.get("user_id")
        if not isinstance(user_id, str) or not user_id:
            raise MalformedState("state payload has no user_id")
        return user_id


def resolve_user_id(codec: StateCodec, token: Optional[str]) -> str:
    """Lenient decode for callbacks: an undecodable state falls back to the "unknown" user."""
    try:
        return codec.decode(token)
    except MalformedState as e:
        logger.warning("oauth_state_malformed", reason=str(e), state_present=bool(token))
        return UNKNOWN_USER
