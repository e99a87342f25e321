"""Research router: topic research, recent searches and summary previews."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from generation.llm import GenerationError
from generation.models import CamelModel
from routers.auth_scope import AuthContext, get_optional_auth_context
from routers.rate_limit import rate_limit
from services.content import recent_searches_service, summary_preview_service
from services.pipeline import perform_research_service

router = APIRouter()
logger = logging.getLogger(__name__)


class ResearchRequest(CamelModel):
    search_term: str = Field(min_length=1)


@router.post("/research")
async def perform_research(
    request: ResearchRequest,
    _rate_limit: None = Depends(rate_limit("research")),
    auth: Optional[AuthContext] = Depends(get_optional_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Run research for a topic; signed-in callers own the resulting search."""
    try:
        search_id, summaries = await perform_research_service(
            search_term=request.search_term,
            db=db,
            owner_email=auth.email if auth else None,
        )
    except HTTPException:
        raise
    except GenerationError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception("Research request failed")
        raise HTTPException(status_code=500, detail="Failed to perform research") from exc

    return {
        "searchTerm": request.search_term.strip(),
        "searchId": search_id,
        "summaries": [item.model_dump(by_alias=True) for item in summaries],
    }


@router.get("/recent-searches")
async def recent_searches(
    limit: int = Query(default=10, ge=1, le=50),
    auth: Optional[AuthContext] = Depends(get_optional_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Caller's own searches when signed in, otherwise recent anonymous ones."""
    searches = await recent_searches_service(
        db,
        owner_email=auth.email if auth else None,
        limit=limit,
    )
    return {"searches": searches}


@router.get("/search/{search_id}/summary/{summary_id}")
async def summary_preview(
    search_id: int,
    summary_id: int,
    db: AsyncSession = Depends(get_db),
):
    return await summary_preview_service(search_id=search_id, position=summary_id, db=db)
