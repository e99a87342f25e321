"""Authentication dependencies: bearer session tokens, content identity and admin role."""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_db
from models.user import User
from services.session_token import read_session_token


auth_scheme = HTTPBearer(auto_error=False)


@dataclass
class AuthContext:
    user_id: int
    email: Optional[str] = None
    role: str = "Basic"


async def _context_from_token(token: str, db: AsyncSession) -> AuthContext:
    """Verify the token, then take e-mail and role from the account row as it is now."""
    try:
        claims = read_session_token(token)
    except ValueError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc

    user = await db.get(User, claims.user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="Session user no longer exists.")

    return AuthContext(user_id=user.id, email=user.username, role=user.role)


async def get_auth_context(
    credentials: HTTPAuthorizationCredentials = Depends(auth_scheme),
    db: AsyncSession = Depends(get_db),
) -> AuthContext:
    """Resolve authenticated user from Bearer session token."""
    if not credentials or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=401, detail="Missing Bearer session token.")
    return await _context_from_token(credentials.credentials, db)


async def get_optional_auth_context(
    credentials: HTTPAuthorizationCredentials = Depends(auth_scheme),
    db: AsyncSession = Depends(get_db),
) -> Optional[AuthContext]:
    """Like get_auth_context, but anonymous callers get None. A bad token is still 401."""
    if not credentials or credentials.scheme.lower() != "bearer":
        return None
    return await _context_from_token(credentials.credentials, db)


def resolve_content_email(
    auth: Optional[AuthContext],
    supplied_email: Optional[str],
    *,
    required: bool = True,
) -> Optional[str]:
    """
    Pick the e-mail identity that content queries run under.

    The token's e-mail wins; a different `?email=` is rejected with 403.
    Without a token the query e-mail is accepted unless
    CONTENT_REQUIRE_SESSION_TOKEN is set.
    """
    supplied = str(supplied_email or "").strip() or None
    if auth is not None and auth.email:
        if supplied and supplied != auth.email:
            raise HTTPException(status_code=403, detail="email does not match authenticated session.")
        return auth.email

    if settings.CONTENT_REQUIRE_SESSION_TOKEN:
        raise HTTPException(status_code=401, detail="Missing Bearer session token.")
    if supplied is None and required:
        raise HTTPException(status_code=401, detail="Email is required")
    return supplied


async def require_admin(
    auth: AuthContext = Depends(get_auth_context),
) -> AuthContext:
    """Admit only callers whose account currently holds the Admin role."""
    if auth.role != "Admin":
        raise HTTPException(status_code=403, detail="Admin access required.")
    return auth
