"""Signed session tokens.

HS256 JWTs carrying the identity id and role. Expiry and issuer are always
checked on decode.
"""

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from jwt import InvalidTokenError

from .errors import AuthenticationError

ISSUER = "clubhub-api"
ALGORITHM = "HS256"


def encode_session(user_id: str, role: str, secret: str, ttl: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": user_id,
        "role": role,
        "iss": ISSUER,
        "iat": now,
        "exp": now + ttl,
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def decode_session(token: str, secret: str) -> dict[str, Any]:
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[ALGORITHM],
            issuer=ISSUER,
            options={"require": ["sub", "exp", "iat", "iss"]},
        )
    except InvalidTokenError as exc:
        raise AuthenticationError("Session expired or invalid") from exc
    return payload
