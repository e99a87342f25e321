import html

import pytest

from config import settings
from models.download import Download
from models.search import Search
from models.summary import Summary
from services.content import get_all_user_content, get_downloads_by_email


def _download(email: str, title: str = "Article", **extra) -> Download:
    values = dict(
        first_name="A",
        last_name="B",
        email=email,
        article_title=title,
        content=f"<p>{title}</p>",
        images=["https://img/1", "https://img/2"],
        featured_image_url="https://img/1",
        search_term="solar panels",
        download_sent=False,
    )
    values.update(extra)
    return Download(**values)


async def _bearer(client, email: str) -> dict:
    signup = await client.post("/api/auth/signup", json={"email": email, "password": "correct-horse"})
    return {"Authorization": f"Bearer {signup.json()['sessionToken']}"}


@pytest.mark.asyncio
async def test_downloads_match_email_exactly(db_session):
    db_session.add_all([_download("Case@Test.com", "Upper"), _download("case@test.com", "Lower")])
    await db_session.commit()

    upper = await get_downloads_by_email("Case@Test.com", db_session)
    lower = await get_downloads_by_email("case@test.com", db_session)
    assert [row.article_title for row in upper] == ["Upper"]
    assert [row.article_title for row in lower] == ["Lower"]


@pytest.mark.asyncio
async def test_searches_are_scoped_to_owner_and_need_summaries(db_session):
    mine = Search(search_term="solar", owner_email="me@test.com")
    empty = Search(search_term="empty", owner_email="me@test.com")
    theirs = Search(search_term="wind", owner_email="you@test.com")
    db_session.add_all([mine, empty, theirs])
    await db_session.flush()
    db_session.add_all(
        [
            Summary(search_id=mine.id, position=1, title="t", summary="s", date="d", sources_count=1),
            Summary(search_id=theirs.id, position=1, title="t", summary="s", date="d", sources_count=1),
        ]
    )
    await db_session.commit()

    content = await get_all_user_content("me@test.com", db_session)
    assert [item["search"].search_term for item in content["searches"]] == ["solar"]
    assert len(content["searches"][0]["summaries"]) == 1


@pytest.mark.asyncio
async def test_user_content_lists_downloads_newest_first(api_client, session_maker):
    async with session_maker() as db:
        db.add(_download("u@test.com", "Older"))
        await db.commit()
        db.add(_download("u@test.com", "Newer"))
        db.add(_download("other@test.com", "Not mine"))
        await db.commit()

    response = await api_client.get("/api/user/content", params={"email": "u@test.com"})
    assert response.status_code == 200
    contents = response.json()["contents"]
    assert [item["title"] for item in contents] == ["Newer", "Older"]
    assert all(item["contentType"] == "download" for item in contents)
    assert contents[0]["imageCount"] == 2


@pytest.mark.asyncio
async def test_user_content_includes_pending_session_article(api_client):
    await api_client.post(
        "/api/session/content",
        json={
            "sessionId": "pending-1",
            "searchTerm": "solar panels",
            "articleTitle": "Draft",
            "articleContent": "<p>draft</p>",
            "images": ["https://img/9"],
        },
    )
    response = await api_client.get(
        "/api/user/content",
        params={"email": "u@test.com", "sessionId": "pending-1"},
    )
    contents = response.json()["contents"]
    assert len(contents) == 1
    assert contents[0]["contentType"] == "pending"
    assert contents[0]["thumbnailUrl"] == "https://img/9"

    await api_client.post("/api/session/pending-1/associate", json={"email": "u@test.com"})
    after = await api_client.get(
        "/api/user/content",
        params={"email": "u@test.com", "sessionId": "pending-1"},
    )
    assert [item["contentType"] for item in after.json()["contents"]] == ["download"]


@pytest.mark.asyncio
async def test_user_content_identity_rules(api_client, monkeypatch):
    no_identity = await api_client.get("/api/user/content")
    assert no_identity.status_code == 401

    headers = await _bearer(api_client, "me@test.com")
    mismatch = await api_client.get(
        "/api/user/content",
        params={"email": "else@test.com"},
        headers=headers,
    )
    assert mismatch.status_code == 403

    token_only = await api_client.get("/api/user/content", headers=headers)
    assert token_only.status_code == 200

    bad_token = await api_client.get("/api/user/content", headers={"Authorization": "Bearer nope"})
    assert bad_token.status_code == 401

    monkeypatch.setattr(settings, "CONTENT_REQUIRE_SESSION_TOKEN", True)
    query_only = await api_client.get("/api/user/content", params={"email": "me@test.com"})
    assert query_only.status_code == 401


@pytest.mark.asyncio
async def test_preview_images_and_download_ownership(api_client, session_maker):
    async with session_maker() as db:
        row = _download("owner@test.com", "Sun & Wind", footnotes=[{"id": 1, "text": "n", "source": "s", "date": "d"}])
        db.add(row)
        await db.commit()
        content_id = row.id

    preview = await api_client.get(f"/api/user/content/{content_id}/preview", params={"email": "owner@test.com"})
    assert preview.status_code == 200
    assert preview.json()["title"] == "Sun & Wind"
    assert preview.json()["featureImage"] == "https://img/1"

    images = await api_client.get(f"/api/user/content/{content_id}/images", params={"email": "owner@test.com"})
    assert images.json()["images"] == ["https://img/1", "https://img/2"]

    forbidden = await api_client.get(f"/api/user/content/{content_id}/preview", params={"email": "Owner@test.com"})
    assert forbidden.status_code == 403

    package = await api_client.get(f"/api/user/content/{content_id}/download", params={"email": "owner@test.com"})
    assert package.status_code == 200
    assert 'filename="sun-wind.html"' in package.headers["content-disposition"]
    assert "<title>Sun &amp; Wind</title>" in package.text
    assert "<p>Sun & Wind</p>" in package.text

    missing = await api_client.get("/api/user/content/9999/preview", params={"email": "owner@test.com"})
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_demo_samples_only_in_demo_mode(api_client, monkeypatch):
    monkeypatch.setattr(settings, "DEMO_MODE", False)
    plain = await api_client.get("/api/user/content", params={"email": "new@test.com"})
    assert plain.json()["contents"] == []
    assert (await api_client.get("/api/user/content/-101/preview")).status_code == 404
    assert (await api_client.get("/api/user/content/-101/download")).status_code == 404

    monkeypatch.setattr(settings, "DEMO_MODE", True)
    demo = await api_client.get("/api/user/content", params={"email": "new@test.com"})
    contents = demo.json()["contents"]
    assert {item["contentType"] for item in contents} == {"demo"}
    assert all(item["id"] < 0 for item in contents)
    sample = await api_client.get(f"/api/user/content/{contents[0]['id']}/images")
    assert len(sample.json()["images"]) == 3

    package = await api_client.get(contents[0]["downloadUrl"])
    assert package.status_code == 200
    assert package.headers["content-disposition"].endswith('.html"')
    assert f"<title>{html.escape(contents[0]['title'])}</title>" in package.text


@pytest.mark.asyncio
async def test_demo_samples_do_not_shadow_real_downloads(api_client, session_maker, monkeypatch):
    monkeypatch.setattr(settings, "DEMO_MODE", True)
    async with session_maker() as db:
        rows = [_download("owner@test.com", f"Real {index}") for index in range(3)]
        db.add_all(rows)
        await db.commit()
        ids = [row.id for row in rows]

    for content_id in ids:
        preview = await api_client.get(f"/api/user/content/{content_id}/preview", params={"email": "owner@test.com"})
        assert preview.json()["title"].startswith("Real ")

    listing = await api_client.get("/api/user/content", params={"email": "owner@test.com"})
    listed_ids = [item["id"] for item in listing.json()["contents"]]
    assert sorted(listed_ids) == sorted(ids)


@pytest.mark.asyncio
async def test_download_request_validation(api_client):
    body = {
        "firstName": "R",
        "lastName": "D",
        "email": "reader@test.com",
        "articleTitle": "T",
        "content": "<p>c</p>",
        "images": ["https://img/1"],
    }
    assert (await api_client.post("/api/download", json=body)).status_code == 200

    no_images = await api_client.post("/api/download", json={**body, "images": []})
    assert no_images.status_code == 400
    assert no_images.json()["errors"][0]["field"] == "images"

    missing_images = await api_client.post("/api/download", json={k: v for k, v in body.items() if k != "images"})
    assert missing_images.status_code == 400

    for email in ("u@@bad domain.com", "reader.test.com", "reader@"):
        bad_email = await api_client.post("/api/download", json={**body, "email": email})
        assert bad_email.status_code == 400
        assert bad_email.json()["errors"][0]["field"] == "email"

    listing = await api_client.get("/api/user/content", params={"email": "reader@test.com"})
    assert len(listing.json()["contents"]) == 1


@pytest.mark.asyncio
async def test_summary_preview_and_recent_searches(api_client, session_maker):
    async with session_maker() as db:
        search = Search(search_term="solar <panels>")
        db.add(search)
        await db.flush()
        db.add(Summary(search_id=search.id, position=2, title="Cells", summary="Better cells", date="Mar 01, 2025", sources_count=4))
        await db.commit()
        search_id = search.id

    preview = await api_client.get(f"/api/search/{search_id}/summary/2")
    assert preview.status_code == 200
    assert preview.json()["title"] == "Cells"
    assert "solar &lt;panels&gt;" in preview.json()["content"]

    assert (await api_client.get(f"/api/search/{search_id}/summary/3")).status_code == 404
    assert (await api_client.get("/api/search/9999/summary/1")).status_code == 404

    recent = await api_client.get("/api/recent-searches")
    assert [item["searchTerm"] for item in recent.json()["searches"]] == ["solar <panels>"]
