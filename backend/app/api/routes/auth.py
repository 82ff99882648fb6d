"""
Authentication routes: login/register pages, session cookie, dashboard.
"""
import logging
from pathlib import Path
from fastapi import APIRouter, Depends, Form, HTTPException, Request, status
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from app.api.dependencies import get_session_user, only_default_role_allowed
from app.core.config import settings
from app.core.security import (
    clear_session_cookie, get_password_hash, set_session_cookie, verify_password_or_dummy
)
from app.db.session import get_db
from app.models.user import User, DEFAULT_ROLE
from app.schemas.user import SessionUser, UsernameResponse

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parents[2] / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

router = APIRouter(tags=["auth"])


@router.get("/", include_in_schema=False)
async def root():
    """Redirect root to the login page."""
    return RedirectResponse(url="/login", status_code=status.HTTP_303_SEE_OTHER)


@router.get("/login", response_class=HTMLResponse)
async def login_page(request: Request):
    return templates.TemplateResponse(request, "login.html", {})


@router.get("/register", response_class=HTMLResponse)
async def register_page(request: Request):
    return templates.TemplateResponse(request, "register.html", {})


@router.post("/register")
async def register(
    username: str = Form(...),
    password: str = Form(...),
    db: Session = Depends(get_db)
):
    """Register a new user and redirect to login."""
    username = username.strip()
    if not username or not password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username and password are required"
        )

    existing_user = db.query(User).filter(User.username == username).first()
    if existing_user:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Username already exists"
        )

    new_user = User(
        username=username,
        password_hash=get_password_hash(password),
        display_name=username,
        profile_picture=settings.DEFAULT_PROFILE_PICTURE,
        role=DEFAULT_ROLE
    )
    db.add(new_user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration of the same name
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Username already exists"
        )

    logger.info(f"Registered user {username}")
    return RedirectResponse(url="/login", status_code=status.HTTP_303_SEE_OTHER)


@router.post("/login")
async def login(
    username: str = Form(...),
    password: str = Form(...),
    db: Session = Depends(get_db)
):
    """Verify credentials, issue the session cookie and redirect to the dashboard."""
    username = username.strip()
    user = db.query(User).filter(User.username == username).first()
    stored_hash = user.password_hash if user else None

    if not verify_password_or_dummy(password, stored_hash):
        logger.info("Rejected login attempt")
        return PlainTextResponse(
            "Invalid login credentials",
            status_code=status.HTTP_401_UNAUTHORIZED
        )

    response = RedirectResponse(url="/dashboard", status_code=status.HTTP_303_SEE_OTHER)
    set_session_cookie(response, {
        "username": user.username,
        "displayName": user.display_name or user.username,
        "role": user.role,
    })
    logger.info(f"User {user.username} logged in")
    return response


@router.get("/dashboard", response_class=HTMLResponse)
async def dashboard(
    request: Request,
    session_user: SessionUser = Depends(only_default_role_allowed),
    db: Session = Depends(get_db)
):
    """Render the dashboard for the logged-in user."""
    user = db.query(User).filter(User.username == session_user.username).first()
    if not user:
        # Cookie outlived the account
        response = RedirectResponse(url="/login", status_code=status.HTTP_303_SEE_OTHER)
        clear_session_cookie(response)
        return response

    return templates.TemplateResponse(request, "dashboard.html", {
        "username": user.username,
        "displayName": user.display_name or user.username,
        "profilePicture": user.profile_picture or settings.DEFAULT_PROFILE_PICTURE,
    })


@router.get("/logout")
async def logout():
    """Clear the session cookie and redirect to login."""
    response = RedirectResponse(url="/login", status_code=status.HTTP_303_SEE_OTHER)
    clear_session_cookie(response)
    return response


@router.get("/username", response_model=UsernameResponse)
async def get_username(session_user: SessionUser = Depends(get_session_user)):
    return {"username": session_user.username}
