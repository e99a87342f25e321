"""Search model for research invocations."""

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from database import Base


class Search(Base):
    """One research invocation and the parent of its summary batch."""

    __tablename__ = "searches"

    id = Column(Integer, primary_key=True, autoincrement=True)
    search_term = Column(String, nullable=False)
    owner_email = Column(String, nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    summaries = relationship(
        "Summary",
        back_populates="search",
        cascade="all, delete-orphan",
        order_by="Summary.position",
    )
