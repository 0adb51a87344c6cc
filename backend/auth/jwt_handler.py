from datetime import datetime, timedelta, timezone

import jwt

from backend.core import config

REQUIRED_CLAIMS = ["sub", "exp", "iat"]


def issue_token(user_id: int, role: str, expires_minutes: int | None = None) -> str:
    """Sign a bearer token for ``user_id``; ``role`` is informational only."""
    issued_at = datetime.now(timezone.utc)
    lifetime = timedelta(minutes=expires_minutes or config.JWT_EXPIRES_MINUTES)
    claims = {"sub": str(user_id), "role": role, "iat": issued_at, "exp": issued_at + lifetime}
    return jwt.encode(claims, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def read_token(token: str) -> dict:
    return jwt.decode(
        token,
        config.JWT_SECRET_KEY,
        algorithms=[config.JWT_ALGORITHM],
        options={"require": REQUIRED_CLAIMS},
    )


def token_user_id(claims: dict) -> int | None:
    subject = str(claims.get("sub") or "")
    return int(subject) if subject.isdigit() else None
