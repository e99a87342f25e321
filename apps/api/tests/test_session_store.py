from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from models.session_content import SessionContent
from services.session_store import (
    PLACEHOLDER_SEARCH_TERM,
    cleanup_expired_session_content,
    get_session_content,
    save_session_content,
    session_ttl,
)


T0 = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_save_twice_keeps_one_live_row_and_merges(db_session):
    first, created = await save_session_content(
        "sess-1",
        {"search_term": "solar panels", "search_id": 4},
        db_session,
        now=T0,
    )
    assert created is True

    second, created_again = await save_session_content(
        "sess-1",
        {"search_term": "wind turbines", "article_title": "Sun", "article_content": "<p>x</p>"},
        db_session,
        now=T0 + timedelta(minutes=30),
    )
    assert created_again is False
    assert second.id == first.id
    assert second.search_term == "solar panels"
    assert second.search_id == 4
    assert second.article_title == "Sun"

    count = (
        await db_session.execute(select(func.count(SessionContent.id)).where(SessionContent.session_id == "sess-1"))
    ).scalar_one()
    assert count == 1


@pytest.mark.asyncio
async def test_update_refreshes_expiry(db_session):
    await save_session_content("sess-2", {"search_term": "x"}, db_session, now=T0)
    later = T0 + timedelta(hours=1, minutes=30)
    await save_session_content("sess-2", {"images": ["a", "b", "c"]}, db_session, now=later)

    still_live = await get_session_content("sess-2", db_session, now=T0 + session_ttl() + timedelta(minutes=5))
    assert still_live is not None
    assert still_live.images == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_missing_search_term_uses_placeholder(db_session):
    row, _ = await save_session_content("sess-3", {"article_title": "Draft"}, db_session, now=T0)
    assert row.search_term == PLACEHOLDER_SEARCH_TERM


@pytest.mark.asyncio
async def test_expiry_boundary(db_session):
    await save_session_content("sess-4", {"search_term": "x"}, db_session, now=T0)
    expires = T0 + session_ttl()

    assert await get_session_content("sess-4", db_session, now=expires - timedelta(seconds=1)) is not None
    assert await get_session_content("sess-4", db_session, now=expires + timedelta(seconds=1)) is None
    assert await get_session_content("never-used", db_session, now=T0) is None


@pytest.mark.asyncio
async def test_save_after_expiry_creates_fresh_row(db_session):
    await save_session_content("sess-5", {"search_term": "old", "article_title": "Old"}, db_session, now=T0)
    row, created = await save_session_content(
        "sess-5",
        {"search_term": "new"},
        db_session,
        now=T0 + session_ttl() + timedelta(seconds=1),
    )
    assert created is True
    assert row.search_term == "new"
    assert row.article_title is None


@pytest.mark.asyncio
async def test_sweeper_removes_only_expired_rows(db_session):
    await save_session_content("old", {"search_term": "x"}, db_session, now=T0 - timedelta(hours=5))
    await save_session_content("fresh", {"search_term": "y"}, db_session, now=T0)

    removed = await cleanup_expired_session_content(db_session, now=T0 + timedelta(minutes=1))
    assert removed == 1

    remaining = (await db_session.execute(select(SessionContent.session_id))).scalars().all()
    assert remaining == ["fresh"]


@pytest.mark.asyncio
async def test_sweeper_boundary_one_second_each_side(db_session):
    ttl = session_ttl()
    await save_session_content("just-expired", {"search_term": "x"}, db_session, now=T0 - ttl - timedelta(seconds=1))
    await save_session_content("still-live", {"search_term": "y"}, db_session, now=T0 - ttl + timedelta(seconds=1))

    removed = await cleanup_expired_session_content(db_session, now=T0)
    assert removed == 1

    remaining = (await db_session.execute(select(SessionContent.session_id))).scalars().all()
    assert remaining == ["still-live"]
    assert await get_session_content("just-expired", db_session, now=T0) is None
    assert await get_session_content("still-live", db_session, now=T0) is not None


@pytest.mark.asyncio
async def test_session_content_routes(api_client):
    created = await api_client.post(
        "/api/session/content",
        json={"sessionId": "browser-1", "searchTerm": "solar panels", "searchId": 1},
    )
    assert created.status_code == 201
    assert created.json()["searchTerm"] == "solar panels"

    updated = await api_client.post(
        "/api/session/content",
        json={
            "sessionId": "browser-1",
            "searchTerm": "solar panels",
            "articleTitle": "Sun",
            "articleContent": "<p>x</p>",
            "images": ["https://img/1", "https://img/2", "https://img/3"],
        },
    )
    assert updated.status_code == 200
    assert updated.json()["id"] == created.json()["id"]

    fetched = await api_client.get("/api/session/browser-1/content")
    assert fetched.status_code == 200
    body = fetched.json()
    assert body["searchId"] == 1
    assert body["articleTitle"] == "Sun"

    chosen = await api_client.post("/api/session/browser-1/feature-image", json={"position": 3})
    assert chosen.status_code == 200
    assert chosen.json()["featuredImageUrl"] == "https://img/3"

    out_of_range = await api_client.post("/api/session/browser-1/feature-image", json={"position": 4})
    assert out_of_range.status_code == 400

    missing = await api_client.get("/api/session/nobody/content")
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_session_content_requires_session_id(api_client):
    response = await api_client.post("/api/session/content", json={"searchTerm": "x"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Validation error"


@pytest.mark.asyncio
async def test_session_content_requires_search_term_on_every_save(api_client):
    missing = await api_client.post("/api/session/content", json={"sessionId": "s-new", "articleTitle": "T"})
    assert missing.status_code == 400
    assert any(error["field"].endswith("searchTerm") for error in missing.json()["errors"])

    created = await api_client.post("/api/session/content", json={"sessionId": "s-new", "searchTerm": "tides"})
    assert created.status_code == 201

    update_without_term = await api_client.post(
        "/api/session/content",
        json={"sessionId": "s-new", "articleTitle": "T"},
    )
    assert update_without_term.status_code == 400
    assert (await api_client.get("/api/session/s-new/content")).json()["articleTitle"] is None
