import asyncio
import logging
from typing import List

from openai import OpenAI

from config import settings
from .fallback import demo_image_urls
from .llm import GenerationError, require_openai_client

logger = logging.getLogger(__name__)


def build_image_prompt(title: str) -> str:
    return (
        f"Create a hyper-realistic, professional-quality photograph depicting {title}. "
        "The scene should have exceptional lighting, sharp focus, and vivid details, closely "
        "representing a real-life scenario related to this topic. Do not include any text in the image."
    )


def generate_one_image(client: OpenAI, prompt: str) -> str:
    """One image request; the image model only supports n=1 per call."""
    response = client.images.generate(
        model=settings.OPENAI_IMAGE_MODEL,
        prompt=prompt,
        n=1,
        size=settings.OPENAI_IMAGE_SIZE,
        quality=settings.OPENAI_IMAGE_QUALITY,
    )
    url = response.data[0].url if response.data else None
    if not url:
        raise GenerationError("Missing image URL in OpenAI response")
    return url


async def generate_images(title: str, content: str) -> List[str]:
    """
    Generate the article illustrations concurrently, all or nothing.

    The requests run in worker threads and are awaited together; the first
    failure fails the whole set. Requests already in flight are not
    cancelled, their results are discarded.
    """
    count = max(int(settings.GENERATED_IMAGE_COUNT), 1)
    client = require_openai_client()
    if client is None:
        logger.warning("Using DEMO image URLs.")
        return demo_image_urls(count)

    prompt = build_image_prompt(title)
    try:
        urls = await asyncio.gather(
            *(asyncio.to_thread(generate_one_image, client, prompt) for _ in range(count))
        )
    except Exception as exc:
        logger.error("Error generating images for %r: %s", title, exc)
        raise GenerationError(f"OpenAI API error: {exc}") from exc
    return list(urls)
