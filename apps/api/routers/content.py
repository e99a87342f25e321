"""User content dashboard endpoints."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from routers.auth_scope import AuthContext, get_optional_auth_context, resolve_content_email
from services.content import (
    build_download_package_service,
    get_content_images_service,
    get_content_preview_service,
    list_user_contents_service,
)

router = APIRouter()


@router.get("/user/content")
async def list_user_content(
    email: Optional[str] = Query(default=None),
    session_id: Optional[str] = Query(default=None, alias="sessionId"),
    auth: Optional[AuthContext] = Depends(get_optional_auth_context),
    db: AsyncSession = Depends(get_db),
):
    owner = resolve_content_email(auth, email)
    return await list_user_contents_service(email=owner, db=db, session_id=session_id)


@router.get("/user/content/{content_id}/preview")
async def preview_user_content(
    content_id: int,
    email: Optional[str] = Query(default=None),
    auth: Optional[AuthContext] = Depends(get_optional_auth_context),
    db: AsyncSession = Depends(get_db),
):
    owner = resolve_content_email(auth, email, required=False)
    return await get_content_preview_service(content_id=content_id, email=owner, db=db)


@router.get("/user/content/{content_id}/images")
async def list_user_content_images(
    content_id: int,
    email: Optional[str] = Query(default=None),
    auth: Optional[AuthContext] = Depends(get_optional_auth_context),
    db: AsyncSession = Depends(get_db),
):
    owner = resolve_content_email(auth, email, required=False)
    return await get_content_images_service(content_id=content_id, email=owner, db=db)


@router.get("/user/content/{content_id}/download", response_class=HTMLResponse)
async def download_user_content(
    content_id: int,
    email: Optional[str] = Query(default=None),
    auth: Optional[AuthContext] = Depends(get_optional_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """The stored article as a standalone HTML attachment."""
    owner = resolve_content_email(auth, email, required=False)
    filename, document = await build_download_package_service(content_id=content_id, email=owner, db=db)
    return HTMLResponse(
        content=document,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
