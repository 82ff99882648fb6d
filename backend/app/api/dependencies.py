"""
FastAPI dependencies for authentication and the shared service clients.
"""
from typing import Optional
import httpx
from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session
from app.core.config import settings
from app.core.exceptions import ForbiddenRoleError, NotAuthenticatedError
from app.core.security import decode_session_token
from app.db.session import get_db
from app.models.user import User, DEFAULT_ROLE
from app.schemas.user import SessionUser
from app.services.analysis_service import GeminiAnalyzer
from app.services.storage_service import CloudinaryStorage


def get_storage(request: Request) -> CloudinaryStorage:
    return request.app.state.storage


def get_analyzer(request: Request) -> GeminiAnalyzer:
    return request.app.state.analyzer


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


def get_optional_session_user(request: Request) -> Optional[SessionUser]:
    """Resolve the session cookie to its identity, or None."""
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token:
        return None

    claims = decode_session_token(token)
    if not claims or not claims.get("username"):
        return None

    return SessionUser(
        username=claims["username"],
        displayName=claims.get("displayName") or claims["username"],
        role=claims.get("role") or DEFAULT_ROLE
    )


def get_session_user(
    session_user: Optional[SessionUser] = Depends(get_optional_session_user)
) -> SessionUser:
    """Authentication gate: halt with 401 unless the session cookie is valid."""
    if session_user is None:
        raise NotAuthenticatedError()
    return session_user


def only_default_role_allowed(
    session_user: SessionUser = Depends(get_session_user)
) -> SessionUser:
    """
    Role gate for the dashboard: admits only the default "user" role.

    Any other role, including "admin", is refused. The check is kept exactly
    as deployed so the intended policy can be decided separately.
    """
    if session_user.role != DEFAULT_ROLE:
        raise ForbiddenRoleError()
    return session_user


def get_current_user(
    session_user: SessionUser = Depends(get_session_user),
    db: Session = Depends(get_db)
) -> User:
    """Load the database record of the session user."""
    user = db.query(User).filter(User.username == session_user.username).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return user
