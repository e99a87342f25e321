"""User model."""

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from database import Base


USER_ROLES = ("Basic", "Standard", "Admin")


class User(Base):
    """Account identity; the username is the user's e-mail address."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    first_name = Column(String, nullable=True, default="")
    last_name = Column(String, nullable=True, default="")
    role = Column(String, nullable=False, default="Basic")  # Basic, Standard, Admin
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    downloads = relationship("Download", back_populates="user")
