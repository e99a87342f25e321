import json
import logging
import re
from typing import Any, List, Optional, Sequence

from openai import OpenAI

from config import settings
from .fallback import demo_article, demo_research_summaries
from .models import BlogArticle, Footnote, ResearchSummary

logger = logging.getLogger(__name__)

MAX_RESEARCH_SUMMARIES = 10

_CODE_FENCE_RE = re.compile(r"^\s*```[A-Za-z0-9_-]*\s*\n?(.*?)\n?\s*```\s*$", re.DOTALL)


class GenerationError(RuntimeError):
    """An external generation call failed or returned unusable output."""


def get_openai_client(api_key: str) -> Optional[OpenAI]:
    """Get OpenAI client, handling placeholders."""
    if not api_key or "your_" in api_key or api_key == "test-key":
        return None
    return OpenAI(api_key=api_key)


def require_openai_client() -> Optional[OpenAI]:
    """
    Return a configured client, or None when demo mode may stand in for it.

    Raises:
        GenerationError: no usable key and demo mode is off.
    """
    client = get_openai_client(settings.OPENAI_API_KEY)
    if client is None and not settings.DEMO_MODE:
        raise GenerationError("OPENAI_API_KEY environment variable is not set")
    return client


def strip_code_fences(text: str) -> str:
    """Remove a markdown code fence wrapping the whole text, if any."""
    match = _CODE_FENCE_RE.match(text or "")
    if match:
        return match.group(1).strip()
    return (text or "").strip()


def _research_prompt(search_term: str) -> str:
    return f"""You are an AI Researcher tasked with identifying the most recent information about a given topic. Focus on developments, news, and discoveries from the most recent 90 days.

TOPIC: "{search_term}"

Your response MUST be in this exact JSON format:
{{
  "summaries": [
    {{
      "title": "Title of the first finding",
      "summary": "Detailed summary of the finding (100-150 words)",
      "date": "Mar 01, 2025",
      "sourcesCount": 5
    }}
  ]
}}

Create exactly 10 research summaries with these requirements:
1. Each summary must have a clear, descriptive title
2. Include a detailed explanation (100-150 words)
3. Use an approximate date within the last 90 days (format: "MMM DD, YYYY")
4. Include sourcesCount as a number representing estimated sources

Return ONLY valid JSON with the "summaries" array as the root property."""


def _article_prompt(search_term: str, selected: Sequence[ResearchSummary]) -> str:
    sources_text = "\n\n".join(
        f"SOURCE {index}:\nTitle: {item.title}\nSummary: {item.summary}\n"
        f"Date: {item.date}\nSources: {item.sources_count}"
        for index, item in enumerate(selected, start=1)
    )
    return f"""Write a compelling, engaging blog post utilizing the sources/summaries from the research results about "{search_term}" provided below:

{sources_text}

Follow these guidelines:
- Do not just list findings; write a natural, flowing article
- Use a conversational yet informative tone
- Introduce the topic with a strong hook and background context
- End with a conclusion that highlights key takeaways and future implications
- The content must be SEO friendly
- Add superscript references to the sources where appropriate (e.g., <sup>[1]</sup>)
- Create academic-style footnotes for each referenced source

Respond with a JSON object:
{{
  "title": "An engaging SEO-friendly title",
  "content": "The blog body as HTML (h1, h2, h3, p ...), including <sup>[n]</sup> references",
  "footnotes": [
    {{"id": 1, "text": "What came from this source", "source": "Source title", "date": "Source date"}}
  ]
}}"""


def _extract_summary_rows(parsed: Any) -> List[Any]:
    if isinstance(parsed, list):
        return parsed
    if isinstance(parsed, dict):
        if isinstance(parsed.get("summaries"), list):
            return parsed["summaries"]
        for value in parsed.values():
            if isinstance(value, list):
                return value
        if parsed.get("title") and parsed.get("summary"):
            return [parsed]
    return []


def _sources_count(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 1
    return int(value)


def parse_research_response(search_term: str, raw_content: Optional[str]) -> List[ResearchSummary]:
    """Validate a research completion and number the surviving summaries 1..n (n <= 10)."""
    if not raw_content:
        raise GenerationError("No content returned from OpenAI")
    try:
        parsed = json.loads(strip_code_fences(raw_content))
    except json.JSONDecodeError as exc:
        raise GenerationError("Invalid JSON response from OpenAI") from exc

    rows = [
        row
        for row in _extract_summary_rows(parsed)
        if isinstance(row, dict) and row.get("title") and row.get("summary") and row.get("date")
    ]
    if not rows:
        logger.error("No valid summaries could be extracted from research response for %r", search_term)
        raise GenerationError("Failed to extract research summaries from the AI response")

    return [
        ResearchSummary(
            id=position,
            search_term=search_term,
            title=str(row["title"]).strip(),
            summary=str(row["summary"]).strip(),
            date=str(row["date"]).strip(),
            sources_count=_sources_count(row.get("sourcesCount")),
        )
        for position, row in enumerate(rows[:MAX_RESEARCH_SUMMARIES], start=1)
    ]


def _coerce_footnotes(raw: Any) -> List[Footnote]:
    if not isinstance(raw, list):
        return []
    footnotes: List[Footnote] = []
    for index, item in enumerate(raw, start=1):
        if not isinstance(item, dict) or not item.get("text"):
            continue
        try:
            footnote_id = int(item.get("id", index))
        except (TypeError, ValueError):
            footnote_id = index
        footnotes.append(
            Footnote(
                id=footnote_id,
                text=str(item["text"]),
                source=str(item.get("source") or ""),
                date=str(item.get("date") or ""),
            )
        )
    return footnotes


def parse_article_response(raw_content: Optional[str]) -> BlogArticle:
    """Validate an article completion. No repair: missing title/content fails outright."""
    if not raw_content:
        raise GenerationError("No content returned from OpenAI")
    try:
        parsed = json.loads(strip_code_fences(raw_content))
    except json.JSONDecodeError as exc:
        raise GenerationError("Invalid JSON response from OpenAI for blog generation") from exc

    if not isinstance(parsed, dict) or not parsed.get("title") or not parsed.get("content"):
        raise GenerationError("Blog response missing required fields")

    return BlogArticle(
        title=str(parsed["title"]).strip(),
        content=strip_code_fences(str(parsed["content"])),
        footnotes=_coerce_footnotes(parsed.get("footnotes")),
    )


def _chat_json(client: OpenAI, prompt: str) -> Optional[str]:
    response = client.chat.completions.create(
        model=settings.OPENAI_CHAT_MODEL,
        messages=[{"role": "user", "content": prompt}],
        response_format={"type": "json_object"},
        temperature=settings.OPENAI_CHAT_TEMPERATURE,
    )
    return response.choices[0].message.content


def research_summaries(search_term: str) -> List[ResearchSummary]:
    """
    Ask the chat model for ten recent findings about a topic.

    Single attempt; any provider or parse failure raises GenerationError.
    """
    client = require_openai_client()
    if client is None:
        logger.warning("Using DEMO research summaries.")
        return demo_research_summaries(search_term)

    try:
        content = _chat_json(client, _research_prompt(search_term))
    except Exception as exc:
        logger.error("Error performing research: %s", exc)
        raise GenerationError(f"OpenAI API error: {exc}") from exc
    return parse_research_response(search_term, content)


def compose_article(search_term: str, selected: Sequence[ResearchSummary]) -> BlogArticle:
    """Ask the chat model for a blog article built from the selected summaries."""
    client = require_openai_client()
    if client is None:
        logger.warning("Using DEMO blog article.")
        return demo_article(search_term, selected)

    try:
        content = _chat_json(client, _article_prompt(search_term, selected))
    except Exception as exc:
        logger.error("Error generating blog article: %s", exc)
        raise GenerationError(f"OpenAI API error: {exc}") from exc
    logger.info("Blog article response received for %r (%d chars)", search_term, len(content or ""))
    return parse_article_response(content)
