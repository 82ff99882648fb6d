"""
Security utilities for password hashing and the signed session cookie.
"""
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional
import hashlib
import bcrypt
from fastapi import Response
from jose import JWTError, jwt
from app.core.config import settings

SESSION_CLAIMS = ("username", "displayName", "role")


def _pre_hash_password(password: str) -> bytes:
    """
    Pre-hash password with SHA256 to support passwords longer than 72 bytes.
    Returns bytes (32 bytes) which is well under bcrypt's 72-byte limit.
    """
    return hashlib.sha256(password.encode('utf-8')).digest()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    pre_hashed = _pre_hash_password(plain_password)
    try:
        return bcrypt.checkpw(pre_hashed, hashed_password.encode('utf-8'))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def get_password_hash(password: str) -> str:
    """Hash a password with bcrypt at the configured cost factor."""
    pre_hashed = _pre_hash_password(password)
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(pre_hashed, salt)
    return hashed.decode('utf-8')


@lru_cache(maxsize=1)
def _dummy_password_hash() -> str:
    return get_password_hash("not-a-real-password")


def verify_password_or_dummy(plain_password: str, hashed_password: Optional[str]) -> bool:
    """
    Verify a password, spending the same bcrypt work when there is no stored hash.
    Unknown usernames and wrong passwords are indistinguishable to the caller.
    """
    if hashed_password is None:
        verify_password(plain_password, _dummy_password_hash())
        return False
    return verify_password(plain_password, hashed_password)


def create_session_token(claims: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed session token carrying username, displayName and role."""
    to_encode = {key: claims.get(key) for key in SESSION_CLAIMS}
    if expires_delta is None:
        expires_delta = timedelta(days=settings.SESSION_EXPIRE_DAYS)
    to_encode["exp"] = datetime.now(timezone.utc) + expires_delta
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_session_token(token: str) -> Optional[dict]:
    """Decode and verify a session token. Returns None when invalid or expired."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
    if not isinstance(payload, dict):
        return None
    return payload


def set_session_cookie(response: Response, claims: dict) -> None:
    """Attach the session cookie (http-only, same-site strict) to a response."""
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=create_session_token(claims),
        max_age=settings.SESSION_EXPIRE_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="strict",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="strict",
    )
