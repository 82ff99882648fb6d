"""
User model for authentication, profile and scan history.
"""
from sqlalchemy import Column, String
from sqlalchemy.orm import relationship
from app.db.base import BaseModel

DEFAULT_ROLE = "user"


class User(BaseModel):
    """User model with immutable username."""
    __tablename__ = "users"

    username = Column(String(50), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    display_name = Column(String(100), nullable=True)
    profile_picture = Column(String(500), nullable=True)
    email = Column(String(100), nullable=True)
    role = Column(String(20), default=DEFAULT_ROLE, nullable=False)

    # Relationships
    posts = relationship(
        "UserImage",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="UserImage.id"
    )
