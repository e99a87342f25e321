"""Generation pipeline: research, article synthesis and image synthesis."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Sequence, Tuple

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from generation.images import generate_images
from generation.llm import compose_article, research_summaries
from generation.models import BlogArticle, ResearchSummary
from models.search import Search
from models.summary import Summary

logger = logging.getLogger(__name__)

MIN_SELECTED_SUMMARIES = 1
MAX_SELECTED_SUMMARIES = 5


def _normalize_text(value: object) -> str:
    return str(value or "").strip()


def validate_selection(selected: Sequence[ResearchSummary]) -> None:
    """Reject selections outside 1..5 before any external call is made."""
    if len(selected) < MIN_SELECTED_SUMMARIES:
        raise HTTPException(status_code=400, detail="At least one summary must be selected")
    if len(selected) > MAX_SELECTED_SUMMARIES:
        raise HTTPException(
            status_code=400,
            detail=f"Maximum of {MAX_SELECTED_SUMMARIES} summaries can be selected",
        )


def pick_image(images: Sequence[str], position: int) -> str:
    """Return the generated image at a 1-based position."""
    if not images:
        raise HTTPException(status_code=400, detail="No generated images to choose from")
    if position < 1 or position > len(images):
        raise HTTPException(
            status_code=400,
            detail=f"Image position must be between 1 and {len(images)}",
        )
    return images[position - 1]


def select_feature_image(article: BlogArticle, images: Sequence[str], position: int) -> BlogArticle:
    """Set the article's feature image in place from the generated candidates."""
    article.feature_image = pick_image(images, position)
    return article


async def perform_research_service(
    *,
    search_term: str,
    db: AsyncSession,
    owner_email: Optional[str] = None,
) -> Tuple[int, List[ResearchSummary]]:
    """
    Run one research invocation and persist it as a Search with its summaries.

    Not idempotent: each call writes a new Search row, even for a repeated topic.
    """
    term = _normalize_text(search_term)
    if not term:
        raise HTTPException(status_code=400, detail="Search term is required")

    summaries = await asyncio.to_thread(research_summaries, term)

    search = Search(search_term=term, owner_email=owner_email)
    db.add(search)
    await db.flush()
    for item in summaries:
        db.add(
            Summary(
                search_id=search.id,
                position=item.id,
                title=item.title,
                summary=item.summary,
                date=item.date,
                sources_count=item.sources_count,
            )
        )
    await db.commit()
    logger.info("research search=%s term=%r summaries=%d", search.id, term, len(summaries))
    return search.id, summaries


async def synthesize_article_service(
    *,
    search_term: str,
    selected: Sequence[ResearchSummary],
) -> BlogArticle:
    validate_selection(selected)
    term = _normalize_text(search_term)
    if not term:
        raise HTTPException(status_code=400, detail="Search term is required")
    article = await asyncio.to_thread(compose_article, term, list(selected))
    logger.info("article generated term=%r sources=%d title=%r", term, len(selected), article.title)
    return article


async def synthesize_images_service(*, title: str, content: str) -> List[str]:
    if not _normalize_text(title):
        raise HTTPException(status_code=400, detail="Title is required")
    if not _normalize_text(content):
        raise HTTPException(status_code=400, detail="Content is required")
    return await generate_images(title, content)
