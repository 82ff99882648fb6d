"""
Image routes: upload, scan history, rename, delete and statistics.
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from app.api.dependencies import get_current_user, get_storage
from app.core.config import settings
from app.core.exceptions import ImageNotFoundError, StorageError
from app.core.utils import format_error, format_response, timestamp_millis
from app.db.session import get_db
from app.models.user import User
from app.schemas.image import (
    DeleteImageRequest, ImageResponse, MessageResponse, MyImagesResponse,
    PlantRenameRequest, UploadResponse, UserStats
)
from app.services import image_service
from app.services.storage_service import CloudinaryStorage, SCAN_TRANSFORMATION
from app.services.upload_service import read_image_upload

logger = logging.getLogger(__name__)

router = APIRouter(tags=["images"])

NOT_AN_IMAGE = "Not an image! Please upload an image"


@router.post(
    "/upload1",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    responses={500: {"description": "Storage upload failed"}}
)
async def upload_image(
    image: UploadFile = File(...),
    plantType: Optional[str] = Form(None),
    analysis: Optional[str] = Form(None),
    current_user: User = Depends(get_current_user),
    storage: CloudinaryStorage = Depends(get_storage),
    db: Session = Depends(get_db)
):
    """Upload one image to storage and append it to the user's posts."""
    content = await read_image_upload(image, settings.MAX_UPLOAD_SIZE, NOT_AN_IMAGE)

    try:
        stored = await storage.upload_image(
            content,
            mime_type=image.content_type,
            folder=settings.UPLOAD_FOLDER,
            public_id=f"image_{timestamp_millis()}",
            transformation=SCAN_TRANSFORMATION,
            image_format="png"
        )
    except StorageError as e:
        logger.error(f"Error uploading image: {e}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=format_error("Error uploading image")
        )

    upload = image_service.add_uploaded_image(db, current_user, stored, plantType, analysis)
    return format_response(ImageResponse.model_validate(upload), "Image uploaded successfully!")


@router.get("/my-images", response_model=MyImagesResponse)
async def get_my_images(current_user: User = Depends(get_current_user)):
    """All images of the current user, oldest first."""
    return {"images": [ImageResponse.model_validate(image) for image in current_user.posts]}


@router.get("/user-stats", response_model=UserStats)
async def get_user_stats(current_user: User = Depends(get_current_user)):
    return image_service.compute_user_stats(current_user)


@router.post("/update-plant-name", response_model=MessageResponse)
async def update_plant_name(
    payload: PlantRenameRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Rename the plant label of one of the user's images."""
    new_name = payload.newName.strip()
    if not new_name:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Plant name cannot be empty"
        )

    try:
        image_service.rename_plant(db, current_user, payload.imageId, new_name)
    except ImageNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Image not found"
        )

    return {"success": True, "message": "Plant name updated successfully"}


@router.delete("/delete-image", response_model=MessageResponse)
async def delete_image(
    payload: DeleteImageRequest,
    current_user: User = Depends(get_current_user),
    storage: CloudinaryStorage = Depends(get_storage),
    db: Session = Depends(get_db)
):
    """
    Delete an image from storage, then from the user's posts.

    Only an image in the caller's own posts can be deleted. The two steps
    are not atomic. A storage failure keeps the local record.
    """
    if not image_service.find_images_by_public_id(current_user, payload.public_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Image not found"
        )

    try:
        await storage.destroy(payload.public_id)
    except StorageError as e:
        logger.error(f"Error deleting image: {e}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=format_error("Failed to delete image")
        )

    image_service.remove_images_by_public_id(db, current_user, payload.public_id)
    return {"message": "Image deleted successfully"}
