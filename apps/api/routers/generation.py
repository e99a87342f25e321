"""Article and image generation endpoints."""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field

from generation.llm import GenerationError
from generation.models import CamelModel, ResearchSummary
from routers.rate_limit import rate_limit
from services.pipeline import synthesize_article_service, synthesize_images_service

router = APIRouter()
logger = logging.getLogger(__name__)


class GenerateBlogRequest(CamelModel):
    search_term: str = Field(min_length=1)
    selected_summaries: List[ResearchSummary]


class GenerateImagesRequest(CamelModel):
    title: str = Field(min_length=1)
    content: str = Field(min_length=1)


@router.post("/generate-blog")
async def generate_blog(
    request: GenerateBlogRequest,
    _rate_limit: None = Depends(rate_limit("generate_blog")),
):
    try:
        article = await synthesize_article_service(
            search_term=request.search_term,
            selected=request.selected_summaries,
        )
    except HTTPException:
        raise
    except GenerationError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception("Blog generation failed")
        raise HTTPException(status_code=500, detail="Failed to generate blog post") from exc
    return article.model_dump(by_alias=True)


@router.post("/generate-images")
async def generate_images(
    request: GenerateImagesRequest,
    _rate_limit: None = Depends(rate_limit("generate_images")),
):
    """Three illustrations for an article, or an error; never a partial set."""
    try:
        images = await synthesize_images_service(title=request.title, content=request.content)
    except HTTPException:
        raise
    except GenerationError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception("Image generation failed")
        raise HTTPException(status_code=500, detail="Failed to generate images") from exc
    return {"images": images}
