"""
Pydantic schemas for uploaded images and scan history.
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime


class ImageResponse(BaseModel):
    """Schema for an image record, using the field names the frontend expects."""
    id: int = Field(serialization_alias="_id")
    url: str
    public_id: str
    plant_type: Optional[str] = Field(default=None, serialization_alias="plantType")
    analysis: str = ""
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")

    class Config:
        from_attributes = True


class UploadResponse(BaseModel):
    message: str
    data: ImageResponse


class MyImagesResponse(BaseModel):
    images: List[ImageResponse]


class UserStats(BaseModel):
    totalScans: int
    lastScan: Optional[datetime] = None
    uniquePlantTypes: int


class PlantRenameRequest(BaseModel):
    imageId: int
    newName: str = Field(min_length=1)


class DeleteImageRequest(BaseModel):
    public_id: str = Field(min_length=1)


class MessageResponse(BaseModel):
    message: str
    success: bool = True
