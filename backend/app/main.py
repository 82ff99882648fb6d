"""
FastAPI entrypoint for the PlantID backend application.
"""
import logging
import traceback
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional
import httpx
from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from app.core.config import settings
from app.core.exceptions import SessionError
from app.core.logging import setup_logging
from app.core.utils import format_error
from app.api.router import api_router
from app.db.session import Database
from app.services.analysis_service import GeminiAnalyzer
from app.services.storage_service import CloudinaryStorage

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect the service clients on startup and release them on shutdown."""
    await run_in_threadpool(
        app.state.db.connect,
        retries=settings.DB_CONNECT_RETRIES,
        interval=settings.DB_CONNECT_INTERVAL
    )
    app.state.storage.connect()
    logger.info(f"{settings.APP_NAME} started")
    try:
        yield
    finally:
        await app.state.http_client.aclose()
        app.state.storage.close()
        app.state.db.close()
        logger.info(f"{settings.APP_NAME} stopped")


def create_app(
    database: Optional[Database] = None,
    storage: Optional[CloudinaryStorage] = None,
    analyzer: Optional[GeminiAnalyzer] = None,
    http_client: Optional[httpx.AsyncClient] = None
) -> FastAPI:
    """Build the application. Any client left out is built from settings."""
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title="PlantID API",
        description="Plant identification, scan history and PDF reports",
        version="1.0.0",
        lifespan=lifespan
    )

    if http_client is None:
        http_client = httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT)
    app.state.http_client = http_client
    app.state.db = database or Database(settings.DATABASE_URL, echo=settings.DB_ECHO)
    app.state.storage = storage or CloudinaryStorage(
        cloud_name=settings.CLOUDINARY_CLOUD_NAME,
        api_key=settings.CLOUDINARY_API_KEY,
        api_secret=settings.CLOUDINARY_API_SECRET
    )
    app.state.analyzer = analyzer or GeminiAnalyzer(
        client=http_client,
        api_key=settings.GEMINI_API_KEY,
        api_url=settings.GEMINI_API_URL,
        model=settings.GEMINI_MODEL
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers[header] = value
        return response

    @app.exception_handler(SessionError)
    async def session_error_handler(request: Request, exc: SessionError):
        return PlainTextResponse(exc.detail, status_code=exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=format_error(str(exc.detail)),
            headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
        details = None
        if settings.DEBUG:
            details = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return JSONResponse(
            status_code=500,
            content=format_error("Internal Server Error", details)
        )

    # Mount static files directory (default avatar, styles)
    if STATIC_DIR.exists():
        app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

    # Include API routes
    app.include_router(api_router)

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()
