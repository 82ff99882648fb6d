"""
Cloudinary storage client for uploaded plant images and profile pictures.
"""
import base64
import logging
from dataclasses import dataclass
from typing import List, Optional
import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from fastapi.concurrency import run_in_threadpool

from app.core.exceptions import StorageError

logger = logging.getLogger(__name__)

# Bounding box applied to every scan upload
SCAN_TRANSFORMATION = [{"width": 800, "height": 600, "crop": "fill"}]
PROFILE_PICTURE_TRANSFORMATION = [
    {"width": 250, "height": 250, "crop": "fill"},
    {"quality": "auto"},
]


@dataclass
class StoredImage:
    """URL and identifier returned by the storage provider."""
    url: str
    public_id: str


class CloudinaryStorage:
    """
    Uploads image bytes to Cloudinary and deletes them by public id.

    The Cloudinary SDK is synchronous, so calls run in the threadpool.
    A single attempt is made per call; failures raise StorageError.
    """

    def __init__(self, cloud_name: str, api_key: str, api_secret: str):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.configured = False

    def connect(self) -> None:
        """Initialize Cloudinary with credentials."""
        if not self.cloud_name or not self.api_key or not self.api_secret:
            logger.warning("Cloudinary credentials missing; uploads will fail")
            self.configured = False
            return

        cloudinary.config(
            cloud_name=self.cloud_name,
            api_key=self.api_key,
            api_secret=self.api_secret,
            secure=True  # Always use HTTPS
        )
        self.configured = True

    def close(self) -> None:
        self.configured = False

    async def upload_image(
        self,
        data: bytes,
        *,
        mime_type: str,
        folder: str,
        public_id: Optional[str] = None,
        transformation: Optional[List[dict]] = None,
        image_format: Optional[str] = None
    ) -> StoredImage:
        """Upload image bytes and return the secure URL and public id."""
        if not self.configured:
            raise StorageError("Cloudinary is not configured")

        data_uri = f"data:{mime_type};base64,{base64.b64encode(data).decode('utf-8')}"
        options = {
            "folder": folder,
            "resource_type": "image",
        }
        if public_id:
            options["public_id"] = public_id
        if transformation:
            options["transformation"] = transformation
        if image_format:
            options["format"] = image_format

        try:
            result = await run_in_threadpool(cloudinary.uploader.upload, data_uri, **options)
        except CloudinaryError as e:
            raise StorageError(f"Cloudinary upload failed: {e}") from e

        url = result.get("secure_url") or result.get("url")
        stored_id = result.get("public_id")
        if not url or not stored_id:
            raise StorageError("Cloudinary response is missing url or public_id")

        logger.info(f"Uploaded image to Cloudinary: {stored_id}")
        return StoredImage(url=url, public_id=stored_id)

    async def destroy(self, public_id: str) -> None:
        """Delete a stored image. A 'not found' answer is logged, not raised."""
        if not self.configured:
            raise StorageError("Cloudinary is not configured")

        try:
            result = await run_in_threadpool(cloudinary.uploader.destroy, public_id)
        except CloudinaryError as e:
            raise StorageError(f"Cloudinary delete failed: {e}") from e

        outcome = result.get("result")
        if outcome != "ok":
            logger.warning(f"Cloudinary destroy for {public_id} returned {outcome!r}")
        else:
            logger.info(f"Deleted image from Cloudinary: {public_id}")
