"""
PDF report download routes.
"""
import io
import logging
import os
import tempfile
import httpx
from fastapi import APIRouter, Depends, status
from fastapi.responses import FileResponse, JSONResponse, StreamingResponse
from starlette.background import BackgroundTask
from app.api.dependencies import get_current_user, get_http_client
from app.core.utils import format_error, timestamp_millis
from app.models.user import User
from app.schemas.report import ReportRequest
from app.services.report_service import (
    build_analysis_report, build_history_report, resolve_report_image
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["reports"])


def _remove_file(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass


@router.post("/download", response_class=StreamingResponse)
async def download_report(
    payload: ReportRequest,
    client: httpx.AsyncClient = Depends(get_http_client)
):
    """Stream a PDF report of one analysis, with the image when it can be resolved."""
    image_bytes = None
    image_failed = False
    try:
        image_bytes = await resolve_report_image(client, payload.image)
    except (httpx.HTTPError, ValueError) as e:
        logger.warning(f"Could not resolve report image: {e}")
        image_failed = True

    pdf = build_analysis_report(payload.result, image_bytes, image_failed)

    filename = f"plant_analysis_report_{timestamp_millis()}.pdf"
    return StreamingResponse(
        io.BytesIO(pdf),
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )


@router.get("/download-history", response_class=FileResponse)
async def download_history(current_user: User = Depends(get_current_user)):
    """
    PDF of the user's whole scan history.

    Written to a temporary file that is deleted once the response is sent.
    """
    fd, path = tempfile.mkstemp(prefix="plant_history_", suffix=".pdf")
    os.close(fd)
    try:
        build_history_report(current_user.username, list(current_user.posts), path)
    except Exception as e:
        logger.error(f"Error generating history: {e}", exc_info=True)
        _remove_file(path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=format_error("Error generating history")
        )

    return FileResponse(
        path,
        media_type="application/pdf",
        filename=f"plant_analysis_history_{timestamp_millis()}.pdf",
        background=BackgroundTask(_remove_file, path)
    )
