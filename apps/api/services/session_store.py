"""Anonymous session content store and its expiry sweep."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from config import settings
from database import async_session_maker
from models.session_content import SessionContent
from services.pipeline import pick_image

logger = logging.getLogger(__name__)

PLACEHOLDER_SEARCH_TERM = "Untitled search"
MERGEABLE_FIELDS = (
    "search_id",
    "article_title",
    "article_content",
    "footnotes",
    "featured_image_url",
    "images",
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def session_ttl() -> timedelta:
    return timedelta(hours=max(int(settings.SESSION_CONTENT_TTL_HOURS), 1))


def serialize_session_content(row: SessionContent) -> Dict[str, Any]:
    return {
        "id": row.id,
        "sessionId": row.session_id,
        "searchTerm": row.search_term,
        "searchId": row.search_id,
        "articleTitle": row.article_title,
        "articleContent": row.article_content,
        "footnotes": row.footnotes,
        "featuredImageUrl": row.featured_image_url,
        "images": row.images,
        "createdAt": _isoformat(row.created_at),
        "expiresAt": _isoformat(row.expires_at),
        "claimedAt": _isoformat(row.claimed_at),
        "claimedByEmail": row.claimed_by_email,
    }


async def get_session_content(
    session_id: str,
    db: AsyncSession,
    *,
    now: Optional[datetime] = None,
) -> Optional[SessionContent]:
    """Return the live row for a session id; expired rows are treated as absent."""
    current = now or _utcnow()
    result = await db.execute(
        select(SessionContent)
        .where(
            SessionContent.session_id == str(session_id or "").strip(),
            SessionContent.expires_at > current,
        )
        .order_by(SessionContent.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def save_session_content(
    session_id: str,
    partial: Dict[str, Any],
    db: AsyncSession,
    *,
    now: Optional[datetime] = None,
) -> Tuple[SessionContent, bool]:
    """
    Upsert the session's staging record.

    A live row is updated in place (supplied fields merged, expiry refreshed);
    otherwise a new row is inserted. Returns (row, created).
    """
    sid = str(session_id or "").strip()
    if not sid:
        raise HTTPException(status_code=400, detail="Session ID is required")

    current = now or _utcnow()
    expires_at = current + session_ttl()
    updates = {
        field: partial[field]
        for field in MERGEABLE_FIELDS
        if field in partial and partial[field] is not None
    }

    existing = await get_session_content(sid, db, now=current)
    if existing is not None:
        article_changed = any(
            field in updates and updates[field] != getattr(existing, field)
            for field in ("article_title", "article_content")
        )
        if existing.claimed_at is not None and article_changed:
            existing.claimed_at = None
            existing.claimed_by_email = None
        for field, value in updates.items():
            setattr(existing, field, value)
        existing.expires_at = expires_at
        await db.commit()
        await db.refresh(existing)
        logger.info("session_content updated session=%s fields=%s", sid, sorted(updates))
        return existing, False

    search_term = str(partial.get("search_term") or "").strip() or PLACEHOLDER_SEARCH_TERM
    row = SessionContent(
        session_id=sid,
        search_term=search_term,
        expires_at=expires_at,
        **updates,
    )
    db.add(row)
    await db.commit()
    await db.refresh(row)
    logger.info("session_content created session=%s expires_at=%s", sid, expires_at.isoformat())
    return row, True


async def select_session_feature_image(
    session_id: str,
    position: int,
    db: AsyncSession,
) -> SessionContent:
    """Store the generated image at a 1-based position as the session's feature image."""
    row = await get_session_content(session_id, db)
    if row is None:
        raise HTTPException(status_code=404, detail="No content found for this session")
    row.featured_image_url = pick_image(list(row.images or []), position)
    await db.commit()
    await db.refresh(row)
    return row


async def cleanup_expired_session_content(
    db: AsyncSession,
    *,
    now: Optional[datetime] = None,
) -> int:
    """Delete rows whose expiry is strictly in the past. Returns the number removed."""
    current = now or _utcnow()
    result = await db.execute(
        delete(SessionContent)
        .where(SessionContent.expires_at < current)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return int(result.rowcount or 0)


async def run_session_sweep() -> int:
    async with async_session_maker() as db:
        removed = await cleanup_expired_session_content(db)
    logger.info("Cleaned up %d expired session content items", removed)
    return removed
