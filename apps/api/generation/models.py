from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts camelCase or snake_case input and serializes as camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ResearchSummary(CamelModel):
    id: int              # 1-based position within its search
    search_term: str
    title: str
    summary: str
    date: str            # e.g. "Mar 01, 2025"
    sources_count: int = 1


class Footnote(CamelModel):
    id: int
    text: str
    source: str = ""
    date: str = ""


class BlogArticle(CamelModel):
    title: str
    content: str         # HTML body
    feature_image: Optional[str] = None
    footnotes: List[Footnote] = Field(default_factory=list)
