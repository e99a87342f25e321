"""User content queries: downloads, searches and still-pending session content."""

from __future__ import annotations

import html
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from config import settings
from models.download import Download
from models.search import Search
from models.session_content import SessionContent
from models.summary import Summary
from services.demo_content import demo_images, demo_preview, demo_user_contents
from services.session_store import get_session_content


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


async def get_downloads_by_email(email: str, db: AsyncSession) -> List[Download]:
    """Downloads whose e-mail equals `email` exactly (case-sensitive), newest first."""
    result = await db.execute(
        select(Download)
        .where(Download.email == email)
        .order_by(Download.created_at.desc(), Download.id.desc())
    )
    return list(result.scalars().all())


async def get_searches_with_summaries(
    db: AsyncSession,
    *,
    owner_email: Optional[str],
) -> List[Dict[str, Any]]:
    """Searches owned by `owner_email` that produced at least one summary, newest first."""
    query = (
        select(Search)
        .options(selectinload(Search.summaries))
        .order_by(Search.created_at.desc(), Search.id.desc())
    )
    if owner_email is None:
        query = query.where(Search.owner_email.is_(None))
    else:
        query = query.where(Search.owner_email == owner_email)
    result = await db.execute(query)
    return [
        {"search": search, "summaries": list(search.summaries)}
        for search in result.scalars().all()
        if search.summaries
    ]


async def get_all_user_content(email: str, db: AsyncSession) -> Dict[str, Any]:
    return {
        "downloads": await get_downloads_by_email(email, db),
        "searches": await get_searches_with_summaries(db, owner_email=email),
    }


def _download_entry(row: Download) -> Dict[str, Any]:
    return {
        "id": row.id,
        "contentType": "download",
        "title": row.article_title,
        "searchTerm": row.search_term or "",
        "createdAt": _isoformat(row.created_at),
        "downloadUrl": f"/api/user/content/{row.id}/download",
        "previewUrl": f"/api/user/content/{row.id}/preview",
        "thumbnailUrl": row.featured_image_url or "",
        "imageCount": len(row.images or []),
        "downloaded": True,
    }


def _pending_entry(row: SessionContent) -> Dict[str, Any]:
    images = list(row.images or [])
    return {
        "id": None,
        "contentType": "pending",
        "sessionId": row.session_id,
        "title": row.article_title,
        "searchTerm": row.search_term,
        "createdAt": _isoformat(row.created_at),
        "expiresAt": _isoformat(row.expires_at),
        "downloadUrl": None,
        "previewUrl": None,
        "thumbnailUrl": row.featured_image_url or (images[0] if images else ""),
        "imageCount": len(images),
        "downloaded": False,
    }


def _search_entry(item: Dict[str, Any]) -> Dict[str, Any]:
    search: Search = item["search"]
    return {
        "searchId": search.id,
        "searchTerm": search.search_term,
        "createdAt": _isoformat(search.created_at),
        "summaryCount": len(item["summaries"]),
    }


async def list_user_contents_service(
    *,
    email: str,
    db: AsyncSession,
    session_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Dashboard listing: owned downloads, the caller's unclaimed session article, demo samples."""
    content = await get_all_user_content(email, db)
    entries = [_download_entry(row) for row in content["downloads"]]

    if session_id:
        pending = await get_session_content(session_id, db)
        if (
            pending is not None
            and pending.claimed_at is None
            and pending.article_title
            and pending.article_content
        ):
            entries.insert(0, _pending_entry(pending))

    if settings.DEMO_MODE and not content["downloads"]:
        entries.extend(demo_user_contents())

    return {
        "contents": entries,
        "searches": [_search_entry(item) for item in content["searches"]],
    }


async def _load_owned_download(
    content_id: int,
    email: Optional[str],
    db: AsyncSession,
) -> Optional[Download]:
    row = await db.get(Download, content_id)
    if row is None:
        return None
    if email and row.email != email:
        raise HTTPException(status_code=403, detail="You don't have permission to access this content")
    return row


async def get_content_preview_service(
    *,
    content_id: int,
    email: Optional[str],
    db: AsyncSession,
) -> Dict[str, Any]:
    row = await _load_owned_download(content_id, email, db)
    if row is not None:
        return {
            "title": row.article_title,
            "content": row.content,
            "featureImage": row.featured_image_url,
            "footnotes": row.footnotes or [],
        }
    if settings.DEMO_MODE:
        sample = demo_preview(content_id)
        if sample is not None:
            return sample
    raise HTTPException(status_code=404, detail="Content not found")


async def get_content_images_service(
    *,
    content_id: int,
    email: Optional[str],
    db: AsyncSession,
) -> Dict[str, Any]:
    row = await _load_owned_download(content_id, email, db)
    if row is not None:
        return {"images": list(row.images or [])}
    if settings.DEMO_MODE:
        images = demo_images(content_id)
        if images is not None:
            return {"images": images}
    raise HTTPException(status_code=404, detail="Content not found")


def _slugify(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", (text or "").lower()).strip("-")


def render_article_html(
    title: str,
    content: str,
    *,
    featured_image_url: Optional[str] = None,
    footnotes: Optional[List[Dict[str, Any]]] = None,
    images: Optional[List[str]] = None,
) -> str:
    """Standalone HTML document with the article, its images and footnotes."""
    escaped_title = html.escape(title)
    parts = [
        "<!DOCTYPE html>",
        "<html><head><meta charset=\"utf-8\">",
        f"<title>{escaped_title}</title></head><body>",
    ]
    if featured_image_url:
        parts.append(f"<img class=\"feature-image\" src=\"{html.escape(featured_image_url, quote=True)}\" alt=\"{escaped_title}\">")
    parts.append(f"<article>{content}</article>")
    if footnotes:
        parts.append("<ol class=\"footnotes\">")
        for note in footnotes:
            source = html.escape(str(note.get("source") or ""))
            date = html.escape(str(note.get("date") or ""))
            parts.append(f"<li id=\"fn-{note.get('id')}\">{html.escape(str(note.get('text') or ''))} <cite>{source}</cite> {date}</li>")
        parts.append("</ol>")
    gallery = [url for url in (images or []) if url]
    if gallery:
        parts.append("<section class=\"images\">")
        parts.extend(f"<img src=\"{html.escape(url, quote=True)}\" alt=\"\">" for url in gallery)
        parts.append("</section>")
    parts.append("</body></html>")
    return "\n".join(parts)


async def build_download_package_service(
    *,
    content_id: int,
    email: Optional[str],
    db: AsyncSession,
) -> Tuple[str, str]:
    """Return (filename, html) for an owned download or a demo sample. download_sent is not touched."""
    row = await _load_owned_download(content_id, email, db)
    if row is not None:
        filename = f"{_slugify(row.article_title) or f'article-{row.id}'}.html"
        return filename, render_article_html(
            row.article_title,
            row.content,
            featured_image_url=row.featured_image_url,
            footnotes=row.footnotes,
            images=row.images,
        )

    sample = demo_preview(content_id) if settings.DEMO_MODE else None
    if sample is None:
        raise HTTPException(status_code=404, detail="Content not found")
    return f"{_slugify(sample['title'])}.html", render_article_html(
        sample["title"],
        sample["content"],
        featured_image_url=sample["featureImage"],
        footnotes=sample["footnotes"],
        images=demo_images(content_id),
    )


async def recent_searches_service(
    db: AsyncSession,
    *,
    owner_email: Optional[str] = None,
    limit: int = 10,
) -> List[Dict[str, Any]]:
    query = select(Search).order_by(Search.created_at.desc(), Search.id.desc()).limit(max(int(limit), 1))
    if owner_email is None:
        query = query.where(Search.owner_email.is_(None))
    else:
        query = query.where(Search.owner_email == owner_email)
    result = await db.execute(query)
    return [
        {
            "id": search.id,
            "searchTerm": search.search_term,
            "createdAt": _isoformat(search.created_at),
        }
        for search in result.scalars().all()
    ]


async def list_searches_with_counts(db: AsyncSession, *, limit: int = 100) -> List[Dict[str, Any]]:
    counts = (
        select(Summary.search_id, func.count(Summary.id).label("summary_count"))
        .group_by(Summary.search_id)
        .subquery()
    )
    result = await db.execute(
        select(Search, func.coalesce(counts.c.summary_count, 0))
        .outerjoin(counts, counts.c.search_id == Search.id)
        .order_by(Search.created_at.desc(), Search.id.desc())
        .limit(max(int(limit), 1))
    )
    return [
        {
            "id": search.id,
            "searchTerm": search.search_term,
            "ownerEmail": search.owner_email,
            "createdAt": _isoformat(search.created_at),
            "summariesCount": int(summary_count or 0),
        }
        for search, summary_count in result.all()
    ]


async def summary_preview_service(*, search_id: int, position: int, db: AsyncSession) -> Dict[str, Any]:
    search = await db.get(Search, search_id)
    if search is None:
        raise HTTPException(status_code=404, detail="Search not found")
    result = await db.execute(
        select(Summary).where(Summary.search_id == search_id, Summary.position == position)
    )
    summary = result.scalar_one_or_none()
    if summary is None:
        raise HTTPException(status_code=404, detail="Summary not found")
    return {
        "title": summary.title,
        "content": (
            "<div class=\"research-summary\">"
            f"<h2>{html.escape(summary.title)}</h2>"
            f"<p>{html.escape(summary.summary)}</p>"
            "<div class=\"meta-info\">"
            f"<p class=\"date\">Date: {html.escape(summary.date)}</p>"
            f"<p class=\"sources\">Sources: {summary.sources_count}</p>"
            "</div>"
            f"<div class=\"search-info\"><p>Based on research for: \"{html.escape(search.search_term)}\"</p></div>"
            "</div>"
        ),
        "featureImage": None,
    }
