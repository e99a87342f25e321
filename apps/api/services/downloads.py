"""Download record helpers. Delivery (e-mail/ZIP) is not implemented."""

from __future__ import annotations

import logging
from datetime import timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from models.download import Download
from models.user import User

logger = logging.getLogger(__name__)

DOWNLOAD_QUEUED_MESSAGE = "Your article will be sent to your email shortly"


async def resolve_owner_user_id(email: str, db: AsyncSession) -> Optional[int]:
    """Owning account for an e-mail, by exact username match, if one exists."""
    result = await db.execute(select(User.id).where(User.username == email))
    return result.scalar_one_or_none()


def _footnotes_payload(footnotes: Any) -> Optional[List[Dict[str, Any]]]:
    if footnotes is None:
        return None
    if not isinstance(footnotes, list):
        return None
    return [
        item.model_dump() if hasattr(item, "model_dump") else dict(item)
        for item in footnotes
        if item is not None
    ]


def serialize_download(row: Download) -> Dict[str, Any]:
    created_at = row.created_at
    if created_at is not None and created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return {
        "id": row.id,
        "firstName": row.first_name,
        "lastName": row.last_name,
        "email": row.email,
        "userId": row.user_id,
        "searchTerm": row.search_term,
        "articleTitle": row.article_title,
        "content": row.content,
        "footnotes": row.footnotes or [],
        "featuredImageUrl": row.featured_image_url,
        "images": list(row.images or []),
        "createdAt": created_at.isoformat() if created_at else None,
        "downloadSent": bool(row.download_sent),
    }


def build_download(
    *,
    email: str,
    first_name: str,
    last_name: str,
    article_title: str,
    content: str,
    images: List[str],
    user_id: Optional[int] = None,
    search_term: Optional[str] = None,
    footnotes: Any = None,
    featured_image_url: Optional[str] = None,
) -> Download:
    return Download(
        first_name=first_name,
        last_name=last_name,
        email=email,
        user_id=user_id,
        search_term=search_term,
        article_title=article_title,
        content=content,
        footnotes=_footnotes_payload(footnotes),
        featured_image_url=featured_image_url,
        images=list(images or []),
        download_sent=False,
    )


async def create_download_service(*, payload: Dict[str, Any], db: AsyncSession) -> Download:
    """Persist an explicit download request. Nothing is sent; download_sent stays False."""
    email = str(payload["email"]).strip()
    download = build_download(
        email=email,
        first_name=payload["first_name"],
        last_name=payload["last_name"],
        article_title=payload["article_title"],
        content=payload["content"],
        images=payload["images"],
        user_id=await resolve_owner_user_id(email, db),
        search_term=payload.get("search_term"),
        footnotes=payload.get("footnotes"),
        featured_image_url=payload.get("featured_image_url"),
    )
    db.add(download)
    await db.commit()
    logger.info("download recorded id=%s email=%s images=%d", download.id, email, len(download.images or []))
    return download


async def list_downloads(db: AsyncSession, *, pending_only: bool = False) -> List[Download]:
    query = select(Download).order_by(Download.created_at.asc(), Download.id.asc())
    if pending_only:
        query = query.where(Download.download_sent.is_(False))
    result = await db.execute(query)
    return list(result.scalars().all())
