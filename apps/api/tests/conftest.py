import json
from typing import Iterable, Optional, Union
from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from main import app
from database import Base, get_db
from routers import rate_limit


@pytest.fixture(autouse=True)
def reset_local_rate_limit_counters():
    """Keep in-memory rate-limit state isolated between tests."""
    previous = getattr(app.state, "disable_rate_limits", False)
    app.state.disable_rate_limits = True
    rate_limit.reset_local_counters()
    yield
    rate_limit.reset_local_counters()
    app.state.disable_rate_limits = previous


@pytest_asyncio.fixture
async def session_maker(tmp_path):
    db_path = tmp_path / "studio.db"
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}")
    maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield maker
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_maker):
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def api_client(session_maker):
    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.pop(get_db, None)


def research_payload(count: int = 10, prefix: str = "Finding") -> str:
    return json.dumps(
        {
            "summaries": [
                {
                    "title": f"{prefix} {index}",
                    "summary": f"Summary of {prefix.lower()} {index}.",
                    "date": "Mar 01, 2025",
                    "sourcesCount": index,
                }
                for index in range(1, count + 1)
            ]
        }
    )


def article_payload(title: str = "Bright Future", content: str = "<h1>Bright Future</h1><p>Body<sup>[1]</sup></p>") -> str:
    return json.dumps(
        {
            "title": title,
            "content": content,
            "footnotes": [{"id": 1, "text": "Panel output rose", "source": "Finding 2", "date": "Mar 01, 2025"}],
        }
    )


def image_response(url: Optional[str]) -> MagicMock:
    response = MagicMock()
    response.data = [MagicMock(url=url)] if url is not None else []
    return response


def build_openai_client(
    chat_contents: Iterable[Optional[str]] = (),
    image_results: Iterable[Union[str, Exception, None]] = (),
) -> MagicMock:
    """
    MagicMock shaped like the OpenAI client.

    Chat completions return `chat_contents` in order. Image calls consume
    `image_results`: a URL, None for a response without a URL, or an
    exception to raise.
    """
    client = MagicMock()

    def _completion(content):
        response = MagicMock()
        response.choices = [MagicMock(message=MagicMock(content=content))]
        return response

    client.chat.completions.create.side_effect = [_completion(content) for content in chat_contents]
    client.images.generate.side_effect = [
        result if isinstance(result, Exception) else image_response(result)
        for result in image_results
    ]
    return client
