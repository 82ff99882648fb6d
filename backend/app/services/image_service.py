"""
Image service for scan history business logic.
"""
import logging
from sqlalchemy.orm import Session
from typing import List, Optional
from app.core.exceptions import ImageNotFoundError
from app.models.image import UserImage, Upload, DEFAULT_PLANT_TYPE
from app.models.user import User
from app.services.storage_service import StoredImage

logger = logging.getLogger(__name__)


def add_uploaded_image(
    db: Session,
    user: User,
    stored: StoredImage,
    plant_type: Optional[str] = None,
    analysis: Optional[str] = None
) -> Upload:
    """Record a stored image: one standalone upload row plus one entry in the user's posts."""
    upload = Upload(url=stored.url, public_id=stored.public_id)
    db.add(upload)

    user.posts.append(UserImage(
        url=stored.url,
        public_id=stored.public_id,
        plant_type=plant_type or DEFAULT_PLANT_TYPE,
        analysis=analysis or ""
    ))
    db.commit()
    db.refresh(upload)

    logger.info(f"Added image {stored.public_id} to {user.username}'s posts")
    return upload


def rename_plant(db: Session, user: User, image_id: int, new_name: str) -> UserImage:
    """Set the plant label of one of the user's images."""
    image = db.query(UserImage).filter(
        UserImage.id == image_id,
        UserImage.user_id == user.id
    ).first()
    if not image:
        raise ImageNotFoundError(image_id)

    image.plant_type = new_name
    db.commit()
    db.refresh(image)
    return image


def find_images_by_public_id(user: User, public_id: str) -> List[UserImage]:
    return [image for image in user.posts if image.public_id == public_id]


def remove_images_by_public_id(db: Session, user: User, public_id: str) -> int:
    """Pull every entry of the user's posts with this public id. Returns the count removed."""
    matches = find_images_by_public_id(user, public_id)
    for image in matches:
        user.posts.remove(image)
    db.commit()

    if not matches:
        logger.warning(f"No image {public_id} in {user.username}'s posts")
    return len(matches)


def compute_user_stats(user: User) -> dict:
    """Statistics derived from a single read of the user's posts."""
    posts = list(user.posts)
    return {
        "totalScans": len(posts),
        "lastScan": posts[-1].created_at if posts else None,
        "uniquePlantTypes": len({post.plant_type for post in posts if post.plant_type is not None}),
    }
