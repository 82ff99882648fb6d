"""
Image models: the per-user scan history and the standalone upload log.
"""
from sqlalchemy import Column, String, Text, ForeignKey, Integer
from sqlalchemy.orm import relationship
from app.db.base import BaseModel

DEFAULT_PLANT_TYPE = "Unknown"


class UserImage(BaseModel):
    """Image owned by a user; the user's posts, in insertion order."""
    __tablename__ = "user_images"

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    url = Column(String(500), nullable=False)
    public_id = Column(String(255), nullable=False, index=True)
    plant_type = Column(String(100), default=DEFAULT_PLANT_TYPE, nullable=True)
    analysis = Column(Text, default="", nullable=False)

    # Relationships
    user = relationship("User", back_populates="posts")


class Upload(BaseModel):
    """Top-level record written for every successful storage upload."""
    __tablename__ = "uploads"

    url = Column(String(500), nullable=False)
    public_id = Column(String(255), nullable=False, index=True)
    plant_type = Column(String(100), default=DEFAULT_PLANT_TYPE, nullable=True)
    analysis = Column(Text, default="", nullable=False)
