"""Download model for completed, user-owned article packages."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from database import Base


class Download(Base):
    """Durable article package; owned by whoever's e-mail matches exactly."""

    __tablename__ = "downloads"

    id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    email = Column(String, nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    search_term = Column(String, nullable=True)
    article_title = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    footnotes = Column(JSON, nullable=True)
    featured_image_url = Column(String, nullable=True)
    images = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    download_sent = Column(Boolean, nullable=False, default=False)

    user = relationship("User", back_populates="downloads")
