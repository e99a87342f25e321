"""Anonymous session content endpoints and the claim (associate) action."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import EmailStr, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from generation.models import CamelModel, Footnote
from services.claim import ClaimResult, associate_session_with_user
from services.session_store import (
    get_session_content,
    save_session_content,
    select_session_feature_image,
    serialize_session_content,
)

router = APIRouter()

NO_SESSION_CONTENT = "No content found for this session"


class SessionContentRequest(CamelModel):
    session_id: str = Field(min_length=1)
    search_term: str = Field(min_length=1)
    search_id: Optional[int] = None
    article_title: Optional[str] = None
    article_content: Optional[str] = None
    footnotes: Optional[List[Footnote]] = None
    featured_image_url: Optional[str] = None
    images: Optional[List[str]] = None


class FeatureImageRequest(CamelModel):
    position: int


class AssociateRequest(CamelModel):
    email: EmailStr
    first_name: Optional[str] = None
    last_name: Optional[str] = None


def claim_message(result: ClaimResult) -> str:
    if result.already_claimed:
        return "Content was already associated with a user"
    if result.download_created:
        return "Content associated with user successfully"
    return "Session associated with user"


def claim_payload(result: ClaimResult) -> dict:
    return {
        "message": claim_message(result),
        "downloadCreated": result.download_created,
        "alreadyClaimed": result.already_claimed,
        "downloadId": result.download_id,
    }


@router.post("/session/content")
async def save_content(
    request: SessionContentRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    """Create (201) or update (200) the live staging record for a session."""
    partial = request.model_dump(exclude={"session_id"}, exclude_none=True)
    row, created = await save_session_content(request.session_id, partial, db)
    response.status_code = 201 if created else 200
    return serialize_session_content(row)


@router.get("/session/{session_id}/content")
async def get_content(
    session_id: str,
    db: AsyncSession = Depends(get_db),
):
    row = await get_session_content(session_id, db)
    if row is None:
        raise HTTPException(status_code=404, detail=NO_SESSION_CONTENT)
    return serialize_session_content(row)


@router.post("/session/{session_id}/feature-image")
async def choose_feature_image(
    session_id: str,
    request: FeatureImageRequest,
    db: AsyncSession = Depends(get_db),
):
    row = await select_session_feature_image(session_id, request.position, db)
    return serialize_session_content(row)


@router.post("/session/{session_id}/associate")
async def associate_session(
    session_id: str,
    request: AssociateRequest,
    db: AsyncSession = Depends(get_db),
):
    result = await associate_session_with_user(
        session_id=session_id,
        email=request.email,
        first_name=request.first_name,
        last_name=request.last_name,
        db=db,
    )
    if not result.found:
        raise HTTPException(status_code=404, detail=NO_SESSION_CONTENT)
    return claim_payload(result)
