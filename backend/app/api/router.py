"""
Main API router that includes all route modules.
"""
from fastapi import APIRouter
from app.api.routes import auth, images, analysis, reports, profile

api_router = APIRouter()

# Include all route modules
api_router.include_router(auth.router)
api_router.include_router(images.router)
api_router.include_router(analysis.router)
api_router.include_router(reports.router)
api_router.include_router(profile.router)
