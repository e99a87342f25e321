"""Signed session tokens for studio accounts."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from config import settings
from models.user import User


SESSION_TOKEN_TYPE = "studio_session"


@dataclass
class SessionClaims:
    """What a token says about its account at issue time. The database stays authoritative."""

    user_id: int
    email: str
    role: str
    expires_at: int


def _lifetime(expires_hours: Optional[int]) -> timedelta:
    hours = int(expires_hours or settings.JWT_EXPIRATION_HOURS or 24)
    return timedelta(hours=max(hours, 1))


def issue_session_token(user: User, expires_hours: Optional[int] = None) -> Dict[str, Any]:
    """Sign a token for an account; returns {"token", "expires_at"} (unix seconds)."""
    issued_at = datetime.now(timezone.utc)
    expires_at = int((issued_at + _lifetime(expires_hours)).timestamp())
    claims = {
        "sub": str(user.id),
        "email": user.username,
        "role": user.role,
        "type": SESSION_TOKEN_TYPE,
        "iat": int(issued_at.timestamp()),
        "exp": expires_at,
    }
    return {
        "token": jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM),
        "expires_at": expires_at,
    }


def read_session_token(token: str) -> SessionClaims:
    """
    Verify signature, expiry and token type.

    Raises:
        ValueError: the token is not a valid studio session token.
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as exc:
        raise ValueError("Invalid or expired session token.") from exc

    if payload.get("type") != SESSION_TOKEN_TYPE:
        raise ValueError("Invalid session token type.")

    subject = str(payload.get("sub", "")).strip()
    if not subject.isdigit():
        raise ValueError("Session token has no account id.")

    return SessionClaims(
        user_id=int(subject),
        email=str(payload.get("email") or ""),
        role=str(payload.get("role") or "Basic"),
        expires_at=int(payload["exp"]),
    )
