"""
Authentication router: signup, login and current user profile.

Signup and login accept an optional anonymous `sessionId`; its live content is
claimed for the account in the same request.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import EmailStr, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from generation.models import CamelModel
from models.user import User
from routers.auth_scope import AuthContext, get_auth_context
from routers.session import claim_payload
from services.accounts import authenticate_user, create_user_service, serialize_user
from services.claim import associate_session_with_user
from services.session_token import issue_session_token

router = APIRouter()


class SignupRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    session_id: Optional[str] = None


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)
    session_id: Optional[str] = None


async def _session_response(
    user: User,
    db: AsyncSession,
    session_id: Optional[str],
) -> Dict[str, Any]:
    claim = None
    if session_id:
        result = await associate_session_with_user(
            session_id=session_id,
            email=user.username,
            first_name=user.first_name or None,
            last_name=user.last_name or None,
            db=db,
        )
        if result.found:
            claim = claim_payload(result)

    session = issue_session_token(user)
    return {
        "user": serialize_user(user),
        "sessionToken": session["token"],
        "sessionExpiresAt": session["expires_at"],
        "claim": claim,
    }


@router.post("/signup", status_code=201)
async def signup(
    request: SignupRequest,
    db: AsyncSession = Depends(get_db),
):
    user = await create_user_service(
        email=request.email,
        password=request.password,
        first_name=request.first_name,
        last_name=request.last_name,
        db=db,
    )
    return await _session_response(user, db, request.session_id)


@router.post("/login")
async def login(
    request: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    user = await authenticate_user(email=request.email, password=request.password, db=db)
    return await _session_response(user, db, request.session_id)


@router.get("/me")
async def get_current_user(
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Get current user profile."""
    user = await db.get(User, auth.user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return serialize_user(user)
