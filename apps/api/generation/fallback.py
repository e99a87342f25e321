"""Deterministic placeholder generations served when DEMO_MODE is on."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import List, Sequence

from .models import BlogArticle, Footnote, ResearchSummary

DEMO_IMAGE_URLS = [
    "https://images.unsplash.com/photo-1568585105565-e8e8f74183de?q=80&w=2000&auto=format&fit=crop",
    "https://images.unsplash.com/photo-1579546929518-9e396f3cc809?q=80&w=2000&auto=format&fit=crop",
    "https://images.unsplash.com/photo-1517649763962-0c623066013b?q=80&w=2000&auto=format&fit=crop",
]

_ANGLES = [
    "Market adoption",
    "New research findings",
    "Policy and regulation",
    "Cost trends",
    "Technology breakthroughs",
    "Industry partnerships",
    "Consumer sentiment",
    "Environmental impact",
    "Expert outlook",
    "Open challenges",
]


def demo_research_summaries(search_term: str) -> List[ResearchSummary]:
    today = datetime.now(timezone.utc)
    return [
        ResearchSummary(
            id=position,
            search_term=search_term,
            title=f"{angle} in {search_term}",
            summary=(
                f"Placeholder finding about {angle.lower()} for {search_term}. "
                "Configure OPENAI_API_KEY to replace demo research with live results."
            ),
            date=(today - timedelta(days=position * 7)).strftime("%b %d, %Y"),
            sources_count=(position % 5) + 1,
        )
        for position, angle in enumerate(_ANGLES, start=1)
    ]


def demo_article(search_term: str, selected: Sequence[ResearchSummary]) -> BlogArticle:
    paragraphs = "".join(
        f"<h2>{item.title}</h2><p>{item.summary}<sup>[{index}]</sup></p>"
        for index, item in enumerate(selected, start=1)
    )
    return BlogArticle(
        title=f"What's New in {search_term.title()}",
        content=f"<h1>What's New in {search_term.title()}</h1>{paragraphs}",
        footnotes=[
            Footnote(id=index, text=item.summary[:120], source=item.title, date=item.date)
            for index, item in enumerate(selected, start=1)
        ],
    )


def demo_image_urls(count: int) -> List[str]:
    return [DEMO_IMAGE_URLS[index % len(DEMO_IMAGE_URLS)] for index in range(count)]
