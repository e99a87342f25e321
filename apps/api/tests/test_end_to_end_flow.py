from unittest.mock import patch

import pytest
from sqlalchemy import select

from models.download import Download

from conftest import article_payload, build_openai_client, research_payload


@pytest.mark.asyncio
async def test_solar_panels_flow_end_to_end(api_client, session_maker):
    client = build_openai_client(
        chat_contents=[research_payload(10), article_payload()],
        image_results=["https://img/a.png", "https://img/b.png", "https://img/c.png"],
    )
    session_id = "browser-session-42"

    with patch("generation.llm.get_openai_client", return_value=client):
        research = await api_client.post("/api/research", json={"searchTerm": "solar panels"})
        assert research.status_code == 200
        research_body = research.json()
        summaries = research_body["summaries"]
        assert [item["id"] for item in summaries] == list(range(1, 11))
        assert all(item["searchTerm"] == "solar panels" for item in summaries)

        saved = await api_client.post(
            "/api/session/content",
            json={"sessionId": session_id, "searchTerm": "solar panels", "searchId": research_body["searchId"]},
        )
        assert saved.status_code == 201

        selected = [item for item in summaries if item["id"] in {2, 5, 7}]
        blog = await api_client.post(
            "/api/generate-blog",
            json={"searchTerm": "solar panels", "selectedSummaries": selected},
        )
        assert blog.status_code == 200
        article = blog.json()
        assert article["title"] == "Bright Future"
        assert article["footnotes"][0]["source"] == "Finding 2"

        images = await api_client.post(
            "/api/generate-images",
            json={"title": article["title"], "content": article["content"]},
        )
        assert images.status_code == 200
        urls = images.json()["images"]
        assert len(urls) == 3

    prompt = client.chat.completions.create.call_args_list[1].kwargs["messages"][0]["content"]
    for title in ("Finding 2", "Finding 5", "Finding 7"):
        assert title in prompt
    assert "Finding 3" not in prompt

    staged = await api_client.post(
        "/api/session/content",
        json={
            "sessionId": session_id,
            "searchTerm": "solar panels",
            "articleTitle": article["title"],
            "articleContent": article["content"],
            "footnotes": article["footnotes"],
            "images": urls,
        },
    )
    assert staged.status_code == 200
    chosen = await api_client.post(f"/api/session/{session_id}/feature-image", json={"position": 2})
    assert chosen.json()["featuredImageUrl"] == urls[1]

    download = await api_client.post(
        "/api/download",
        json={
            "firstName": "Sam",
            "lastName": "Sun",
            "email": "u@test.com",
            "articleTitle": article["title"],
            "content": article["content"],
            "images": urls,
            "searchTerm": "solar panels",
            "footnotes": article["footnotes"],
            "featuredImageUrl": urls[1],
        },
    )
    assert download.status_code == 200
    assert download.json() == {"success": True, "message": "Your article will be sent to your email shortly"}

    async with session_maker() as db:
        rows = (await db.execute(select(Download).where(Download.email == "u@test.com"))).scalars().all()
    assert len(rows) == 1
    assert rows[0].featured_image_url == urls[1]
    assert rows[0].images == urls
    assert rows[0].download_sent is False

    listing = await api_client.get("/api/user/content", params={"email": "u@test.com"})
    contents = listing.json()["contents"]
    assert len(contents) == 1
    assert contents[0]["title"] == "Bright Future"
    assert contents[0]["searchTerm"] == "solar panels"


@pytest.mark.asyncio
async def test_demo_mode_flow_without_key(api_client, monkeypatch):
    from config import settings

    monkeypatch.setattr(settings, "DEMO_MODE", True)
    with patch("generation.llm.get_openai_client", return_value=None):
        research = await api_client.post("/api/research", json={"searchTerm": "tidal power"})
        summaries = research.json()["summaries"]
        blog = await api_client.post(
            "/api/generate-blog",
            json={"searchTerm": "tidal power", "selectedSummaries": summaries[:2]},
        )
        images = await api_client.post(
            "/api/generate-images",
            json={"title": blog.json()["title"], "content": blog.json()["content"]},
        )

    assert len(summaries) == 10
    assert blog.status_code == 200
    assert len(images.json()["images"]) == 3
