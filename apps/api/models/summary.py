"""Summary model for AI research findings."""

from sqlalchemy import Column, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from database import Base


class Summary(Base):
    """One research finding; `position` is its 1-based id within the search."""

    __tablename__ = "summaries"
    __table_args__ = (UniqueConstraint("search_id", "position", name="uq_summaries_search_position"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    search_id = Column(Integer, ForeignKey("searches.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    title = Column(String, nullable=False)
    summary = Column(Text, nullable=False)
    date = Column(String, nullable=False)
    sources_count = Column(Integer, nullable=False, default=1)

    search = relationship("Search", back_populates="summaries")
