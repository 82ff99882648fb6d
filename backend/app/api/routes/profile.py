"""
User profile routes.
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from app.api.dependencies import get_current_user, get_session_user, get_storage
from app.core.config import settings
from app.core.exceptions import StorageError
from app.core.security import set_session_cookie
from app.core.utils import format_error
from app.db.session import get_db
from app.models.user import User
from app.schemas.user import (
    ProfileUpdateResponse, SessionUser, UserProfileData, UserProfileResponse
)
from app.services.storage_service import CloudinaryStorage, PROFILE_PICTURE_TRANSFORMATION
from app.services.upload_service import read_image_upload

logger = logging.getLogger(__name__)

router = APIRouter(tags=["profile"])

MIN_DISPLAY_NAME_LENGTH = 2


def _profile_data(user: User) -> UserProfileData:
    return UserProfileData(
        username=user.username,
        display_name=user.display_name or user.username,
        profile_picture=user.profile_picture or settings.DEFAULT_PROFILE_PICTURE
    )


@router.get("/user-profile", response_model=UserProfileResponse)
async def get_user_profile(current_user: User = Depends(get_current_user)):
    return {
        "username": current_user.username,
        "name": current_user.display_name or current_user.username,
        "email": current_user.email,
        "totalImages": len(current_user.posts),
    }


@router.get("/user-profile-data", response_model=UserProfileData)
async def get_user_profile_data(current_user: User = Depends(get_current_user)):
    """Display name and profile picture, with defaults filled in."""
    return _profile_data(current_user)


@router.post("/update-profile", response_model=ProfileUpdateResponse)
async def update_profile(
    displayName: Optional[str] = Form(None),
    profilePicture: Optional[UploadFile] = File(None),
    session_user: SessionUser = Depends(get_session_user),
    current_user: User = Depends(get_current_user),
    storage: CloudinaryStorage = Depends(get_storage),
    db: Session = Depends(get_db)
):
    """
    Update display name and, optionally, the profile picture.

    The session cookie is re-issued so it carries the new display name.
    """
    display_name = (displayName or "").strip()
    if len(display_name) < MIN_DISPLAY_NAME_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Display name must be at least 2 characters long"
        )

    updates = {"display_name": display_name}

    if profilePicture is not None and profilePicture.filename:
        content = await read_image_upload(
            profilePicture,
            settings.MAX_PROFILE_PICTURE_SIZE,
            "Only image files are allowed"
        )
        try:
            stored = await storage.upload_image(
                content,
                mime_type=profilePicture.content_type,
                folder=settings.PROFILE_PICTURE_FOLDER,
                transformation=PROFILE_PICTURE_TRANSFORMATION
            )
        except StorageError as e:
            logger.error(f"Error uploading profile picture: {e}", exc_info=True)
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=format_error("Error uploading profile picture")
            )
        updates["profile_picture"] = stored.url

    for field, value in updates.items():
        setattr(current_user, field, value)
    db.commit()
    db.refresh(current_user)

    logger.info(f"Profile updated for {current_user.username}")

    body = ProfileUpdateResponse(
        message="Profile updated successfully",
        user=_profile_data(current_user)
    )
    response = JSONResponse(content=jsonable_encoder(body, by_alias=True))
    set_session_cookie(response, {
        "username": session_user.username,
        "displayName": current_user.display_name,
        "role": session_user.role,
    })
    return response
