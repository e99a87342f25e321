"""Download request endpoint."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import EmailStr, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from generation.models import CamelModel, Footnote
from services.downloads import DOWNLOAD_QUEUED_MESSAGE, create_download_service

router = APIRouter()


class DownloadRequest(CamelModel):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: EmailStr
    article_title: str = Field(min_length=1)
    content: str = Field(min_length=1)
    images: List[str] = Field(min_length=1)
    search_term: Optional[str] = None
    footnotes: Optional[List[Footnote]] = None
    featured_image_url: Optional[str] = None


@router.post("/download")
async def request_download(
    request: DownloadRequest,
    db: AsyncSession = Depends(get_db),
):
    """Record the package for delivery. Delivery itself never happens here."""
    await create_download_service(payload=request.model_dump(), db=db)
    return {"success": True, "message": DOWNLOAD_QUEUED_MESSAGE}
