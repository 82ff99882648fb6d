"""Models package - Import all models for SQLAlchemy registration."""
from app.models.user import User
from app.models.image import UserImage, Upload

__all__ = [
    "User",
    "UserImage",
    "Upload",
]
