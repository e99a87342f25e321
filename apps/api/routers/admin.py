"""Admin console API. Every route requires a session token for an Admin account."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import EmailStr, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from generation.models import CamelModel
from routers.auth_scope import AuthContext, require_admin
from services.accounts import (
    create_user_service,
    delete_user_service,
    get_user_or_404,
    list_users,
    serialize_user,
    sync_users_from_downloads,
    update_user_service,
)
from services.content import get_all_user_content, list_searches_with_counts
from services.downloads import list_downloads, serialize_download

router = APIRouter()


class CreateUserRequest(CamelModel):
    username: EmailStr
    password: str = Field(min_length=1)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str = "Basic"


class UpdateUserRequest(CamelModel):
    username: Optional[EmailStr] = None
    password: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Optional[str] = None


@router.get("/users")
async def admin_list_users(
    _admin: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return {"users": [serialize_user(user) for user in await list_users(db)]}


@router.post("/users", status_code=201)
async def admin_create_user(
    request: CreateUserRequest,
    _admin: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await create_user_service(
        email=request.username,
        password=request.password,
        first_name=request.first_name,
        last_name=request.last_name,
        role=request.role,
        db=db,
    )
    return serialize_user(user)


@router.post("/users/sync")
async def admin_sync_users(
    _admin: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Create accounts for download e-mails that have none."""
    return {"created": await sync_users_from_downloads(db)}


@router.get("/users/{user_id}")
async def admin_get_user(
    user_id: int,
    _admin: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """One account with the downloads and searches owned by its e-mail."""
    user = await get_user_or_404(user_id, db)
    content = await get_all_user_content(user.username, db)
    return {
        "user": serialize_user(user),
        "downloads": [serialize_download(row) for row in content["downloads"]],
        "searches": [
            {
                "id": item["search"].id,
                "searchTerm": item["search"].search_term,
                "summaries": [
                    {"id": summary.position, "title": summary.title, "date": summary.date}
                    for summary in item["summaries"]
                ],
            }
            for item in content["searches"]
        ],
    }


@router.put("/users/{user_id}")
async def admin_update_user(
    user_id: int,
    request: UpdateUserRequest,
    _admin: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await update_user_service(user_id=user_id, changes=request.model_dump(), db=db)
    return serialize_user(user)


@router.delete("/users/{user_id}")
async def admin_delete_user(
    user_id: int,
    _admin: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await delete_user_service(user_id=user_id, db=db)
    return {"success": True}


@router.get("/downloads")
async def admin_list_downloads(
    pending: bool = Query(default=False),
    _admin: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    rows = await list_downloads(db, pending_only=pending)
    return {"downloads": [serialize_download(row) for row in rows]}


@router.get("/searches")
async def admin_list_searches(
    limit: int = Query(default=100, ge=1, le=500),
    _admin: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return {"searches": await list_searches_with_counts(db, limit=limit)}
