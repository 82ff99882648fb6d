"""
Application configuration and environment settings.
"""
from pydantic_settings import BaseSettings
from pydantic import field_validator
from typing import List, Union


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "PlantID"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./plantid.db"
    DB_ECHO: bool = False
    DB_CONNECT_RETRIES: int = 5
    DB_CONNECT_INTERVAL: float = 5.0  # seconds between startup attempts

    # Session cookie (signed JWT)
    SECRET_KEY: str = "your-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    SESSION_COOKIE_NAME: str = "userData"
    SESSION_EXPIRE_DAYS: int = 3
    COOKIE_SECURE: bool = False
    BCRYPT_ROUNDS: int = 10

    # CORS
    CORS_ORIGINS: Union[List[str], str] = ["http://localhost:3000"]

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS_ORIGINS from comma-separated string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    # File Upload
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10MB
    MAX_PROFILE_PICTURE_SIZE: int = 5 * 1024 * 1024  # 5MB
    DEFAULT_PROFILE_PICTURE: str = "/static/images/default-avatar.svg"

    # Cloudinary
    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: str = ""
    UPLOAD_FOLDER: str = "images-folder"
    PROFILE_PICTURE_FOLDER: str = "profile_pictures"

    # Gemini (plant analysis)
    GEMINI_API_KEY: str = ""  # Google AI Studio key (set via .env file)
    GEMINI_API_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    GEMINI_MODEL: str = "gemini-2.0-flash"
    HTTP_TIMEOUT: float = 60.0

    # Reports
    PDF_PAGE_COMPRESSION: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
