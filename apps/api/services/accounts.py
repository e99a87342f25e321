"""Account management: signup, login, admin CRUD and reconciliation from downloads."""

from __future__ import annotations

import logging
from datetime import timezone
from typing import Any, Dict, List, Optional

from fastapi import HTTPException
from pydantic import EmailStr, TypeAdapter, ValidationError
from sqlalchemy import delete, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from config import settings
from models.download import Download
from models.user import USER_ROLES, User
from services.passwords import hash_password, unusable_password_hash, verify_password

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8

_EMAIL_ADDRESS = TypeAdapter(EmailStr)


def serialize_user(user: User) -> Dict[str, Any]:
    created_at = user.created_at
    if created_at is not None and created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return {
        "id": user.id,
        "username": user.username,
        "email": user.username,
        "firstName": user.first_name or "",
        "lastName": user.last_name or "",
        "role": user.role,
        "createdAt": created_at.isoformat() if created_at else None,
    }


def _normalize_username(email: str) -> str:
    try:
        return _EMAIL_ADDRESS.validate_python(str(email or "").strip())
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail="A valid email address is required") from exc


def _check_role(role: str) -> str:
    if role not in USER_ROLES:
        raise HTTPException(status_code=400, detail=f"Invalid role. Must be one of: {', '.join(USER_ROLES)}")
    return role


def _check_password(password: str) -> str:
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
        )
    return password


async def get_user_by_username(username: str, db: AsyncSession) -> Optional[User]:
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def get_user_or_404(user_id: int, db: AsyncSession) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


async def _link_downloads(user: User, db: AsyncSession) -> None:
    await db.execute(
        update(Download)
        .where(Download.email == user.username, Download.user_id.is_(None))
        .values(user_id=user.id)
        .execution_options(synchronize_session=False)
    )


async def create_user_service(
    *,
    email: str,
    password: str,
    db: AsyncSession,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    role: Optional[str] = None,
) -> User:
    """
    Create an account. Addresses listed in ADMIN_EMAILS are created as Admin
    unless a role is given explicitly. Earlier downloads recorded for the same
    e-mail are linked to the new account.
    """
    username = _normalize_username(email)
    _check_password(password)
    if role is None:
        role = "Admin" if username in settings.ADMIN_EMAILS else "Basic"
    _check_role(role)

    if await get_user_by_username(username, db) is not None:
        raise HTTPException(status_code=409, detail="Username already exists")

    user = User(
        username=username,
        password_hash=hash_password(password),
        first_name=first_name or "",
        last_name=last_name or "",
        role=role,
    )
    db.add(user)
    await db.flush()
    await _link_downloads(user, db)
    await db.commit()
    await db.refresh(user)
    logger.info("user created id=%s username=%s role=%s", user.id, user.username, user.role)
    return user


async def authenticate_user(*, email: str, password: str, db: AsyncSession) -> User:
    user = await get_user_by_username(str(email or "").strip(), db)
    if user is None or not verify_password(password or "", user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    return user


async def list_users(db: AsyncSession) -> List[User]:
    result = await db.execute(select(User).order_by(User.created_at.desc(), User.id.desc()))
    return list(result.scalars().all())


async def update_user_service(*, user_id: int, changes: Dict[str, Any], db: AsyncSession) -> User:
    """Apply a partial admin update. `None` values are ignored."""
    user = await get_user_or_404(user_id, db)
    username = changes.get("username")
    if username is not None:
        username = _normalize_username(username)
        if username != user.username:
            clash = await get_user_by_username(username, db)
            if clash is not None:
                raise HTTPException(status_code=409, detail="Username already exists")
            user.username = username

    if changes.get("role") is not None:
        user.role = _check_role(changes["role"])
    if changes.get("first_name") is not None:
        user.first_name = changes["first_name"]
    if changes.get("last_name") is not None:
        user.last_name = changes["last_name"]
    if changes.get("password") is not None:
        user.password_hash = hash_password(_check_password(changes["password"]))

    await db.commit()
    await db.refresh(user)
    logger.info("user updated id=%s fields=%s", user.id, sorted(k for k, v in changes.items() if v is not None))
    return user


async def delete_user_service(*, user_id: int, db: AsyncSession) -> None:
    """Remove an account. Its downloads stay, still owned by their e-mail."""
    user = await get_user_or_404(user_id, db)
    await db.execute(
        update(Download)
        .where(Download.user_id == user.id)
        .values(user_id=None)
        .execution_options(synchronize_session=False)
    )
    await db.execute(delete(User).where(User.id == user.id).execution_options(synchronize_session=False))
    await db.commit()
    logger.info("user deleted id=%s", user_id)


async def sync_users_from_downloads(db: AsyncSession) -> int:
    """
    Create a Basic account for every download e-mail that has none.

    The accounts get an unusable password; the owner sets one through the
    admin console. Returns the number of accounts created.
    """
    emails_result = await db.execute(select(Download.email).distinct())
    emails = sorted({email for email in emails_result.scalars().all() if email})
    if not emails:
        return 0

    existing_result = await db.execute(select(User.username).where(User.username.in_(emails)))
    existing = set(existing_result.scalars().all())

    created: List[User] = []
    for email in emails:
        if email in existing:
            continue
        name_result = await db.execute(
            select(Download.first_name, Download.last_name)
            .where(Download.email == email)
            .order_by(Download.created_at.asc(), Download.id.asc())
            .limit(1)
        )
        first_name, last_name = name_result.one()
        user = User(
            username=email,
            password_hash=unusable_password_hash(),
            first_name=first_name or "",
            last_name=last_name or "",
            role="Basic",
        )
        db.add(user)
        created.append(user)

    if created:
        await db.flush()
        for user in created:
            await _link_downloads(user, db)
    await db.commit()
    if created:
        logger.info("created %d users from download records", len(created))
    return len(created)
