"""
Pydantic schemas for plant analysis and PDF reports.
"""
from pydantic import BaseModel
from typing import Optional


class AnalysisResponse(BaseModel):
    """Analysis text and the storage URL of the analyzed image."""
    result: str
    image: str


class ReportRequest(BaseModel):
    """Body of /download: analysis text plus an image URL or data URI."""
    result: str
    image: Optional[str] = None
