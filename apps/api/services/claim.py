"""Claim workflow: migrate anonymous session content into user-owned records."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from models.search import Search
from models.session_content import SessionContent
from services.downloads import build_download, resolve_owner_user_id
from services.session_store import get_session_content

logger = logging.getLogger(__name__)

DEFAULT_FIRST_NAME = "Anonymous"
DEFAULT_LAST_NAME = "User"


@dataclass
class ClaimResult:
    found: bool
    download_id: Optional[int] = None
    already_claimed: bool = False

    @property
    def download_created(self) -> bool:
        return self.download_id is not None


async def associate_session_with_user(
    *,
    session_id: str,
    email: str,
    db: AsyncSession,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    now: Optional[datetime] = None,
) -> ClaimResult:
    """
    Tie a session's live content to an e-mail identity.

    Article-bearing content becomes a Download. The session row is marked
    claimed by a guarded update in the same transaction as the insert, so a
    repeated claim of the same article creates nothing. The row itself is
    left for the expiry sweep.
    """
    owner = str(email or "").strip()
    if not owner:
        raise HTTPException(status_code=400, detail="Email is required")

    current = now or datetime.now(timezone.utc)
    content = await get_session_content(session_id, db, now=current)
    if content is None:
        return ClaimResult(found=False)

    if content.search_id is not None:
        await db.execute(
            update(Search)
            .where(Search.id == content.search_id, Search.owner_email.is_(None))
            .values(owner_email=owner)
            .execution_options(synchronize_session=False)
        )

    if not (content.article_title and content.article_content):
        await db.commit()
        logger.info("claim session=%s email=%s: no article to migrate", content.session_id, owner)
        return ClaimResult(found=True)

    marked = await db.execute(
        update(SessionContent)
        .where(SessionContent.id == content.id, SessionContent.claimed_at.is_(None))
        .values(claimed_at=current, claimed_by_email=owner)
        .execution_options(synchronize_session=False)
    )
    if marked.rowcount != 1:
        await db.commit()
        logger.info("claim session=%s email=%s: already claimed", content.session_id, owner)
        return ClaimResult(found=True, already_claimed=True)

    set_committed_value(content, "claimed_at", current)
    set_committed_value(content, "claimed_by_email", owner)

    download = build_download(
        email=owner,
        first_name=first_name or DEFAULT_FIRST_NAME,
        last_name=last_name or DEFAULT_LAST_NAME,
        article_title=content.article_title,
        content=content.article_content,
        images=list(content.images or []),
        user_id=await resolve_owner_user_id(owner, db),
        search_term=content.search_term,
        footnotes=content.footnotes,
        featured_image_url=content.featured_image_url,
    )
    db.add(download)
    await db.commit()
    logger.info("claim session=%s email=%s: download=%s", content.session_id, owner, download.id)
    return ClaimResult(found=True, download_id=download.id)
