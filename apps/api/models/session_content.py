"""SessionContent model for anonymous, time-boxed generation progress."""

from sqlalchemy import Column, DateTime, Integer, JSON, String, Text
from sqlalchemy.sql import func

from database import Base


class SessionContent(Base):
    """Staging record keyed by a client-generated session id."""

    __tablename__ = "temporary_content"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String, nullable=False, index=True)
    search_term = Column(String, nullable=False)
    search_id = Column(Integer, nullable=True)
    article_title = Column(String, nullable=True)
    article_content = Column(Text, nullable=True)
    footnotes = Column(JSON, nullable=True)
    featured_image_url = Column(String, nullable=True)
    images = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    claimed_at = Column(DateTime(timezone=True), nullable=True)
    claimed_by_email = Column(String, nullable=True)
