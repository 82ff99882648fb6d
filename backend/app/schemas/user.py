"""
Pydantic schemas for User entity and the session identity.
"""
from pydantic import BaseModel, Field
from typing import Optional


class SessionUser(BaseModel):
    """Identity carried by the session cookie."""
    username: str
    displayName: Optional[str] = None
    role: str = "user"


class UsernameResponse(BaseModel):
    username: str


class UserProfileResponse(BaseModel):
    """Schema for /user-profile."""
    username: str
    name: str
    email: Optional[str] = None
    totalImages: int


class UserProfileData(BaseModel):
    """Schema for /user-profile-data and the profile update result."""
    username: str
    display_name: str = Field(serialization_alias="displayName")
    profile_picture: str = Field(serialization_alias="profilePicture")


class ProfileUpdateResponse(BaseModel):
    message: str
    user: UserProfileData
