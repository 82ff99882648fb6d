"""
Plant analysis route.
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.responses import JSONResponse
from app.api.dependencies import get_analyzer, get_optional_session_user, get_storage
from app.core.config import settings
from app.core.exceptions import AnalysisError, StorageError
from app.core.utils import format_error, timestamp_millis
from app.schemas.report import AnalysisResponse
from app.schemas.user import SessionUser
from app.services.analysis_service import GeminiAnalyzer
from app.services.storage_service import CloudinaryStorage, SCAN_TRANSFORMATION
from app.services.upload_service import read_image_upload

logger = logging.getLogger(__name__)

router = APIRouter(tags=["analysis"])


@router.post("/analyze", response_model=AnalysisResponse)
async def analyze_plant(
    image: Optional[UploadFile] = File(None),
    session_user: Optional[SessionUser] = Depends(get_optional_session_user),
    storage: CloudinaryStorage = Depends(get_storage),
    analyzer: GeminiAnalyzer = Depends(get_analyzer)
):
    """
    Upload a plant photo and return the model's analysis with the image URL.

    The upload and the model call fail together; nothing is persisted.
    """
    if image is None or not image.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No image file uploaded"
        )

    content = await read_image_upload(image, settings.MAX_UPLOAD_SIZE, "Not an image! Please upload an image")
    requested_by = session_user.username if session_user else "anonymous"

    try:
        stored = await storage.upload_image(
            content,
            mime_type=image.content_type,
            folder=settings.UPLOAD_FOLDER,
            public_id=f"image_{timestamp_millis()}",
            transformation=SCAN_TRANSFORMATION,
            image_format="png"
        )
        result = await analyzer.analyze_image_url(stored.url, image.content_type)
    except (StorageError, AnalysisError) as e:
        logger.error(f"Error analyzing image for {requested_by}: {e}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=format_error("An error occurred while analyzing the image", str(e))
        )

    logger.info(f"Analysis completed for {requested_by}: {stored.url}")
    return {"result": result, "image": stored.url}
