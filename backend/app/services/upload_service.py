"""
Validation of multipart image uploads before they reach storage.
"""
from fastapi import HTTPException, UploadFile, status


async def read_image_upload(file: UploadFile, max_size: int, mime_error: str) -> bytes:
    """
    Check the MIME type and size of an uploaded image and return its bytes.
    Nothing is sent to storage when validation fails.
    """
    content_type = file.content_type or ""
    if not content_type.startswith("image/"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=mime_error
        )

    content = await file.read(max_size + 1)
    if len(content) > max_size:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File too large. Maximum size is {max_size // (1024 * 1024)}MB"
        )
    if not content:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded file is empty"
        )
    return content
