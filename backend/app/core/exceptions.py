"""
Application exceptions.
"""
from fastapi import HTTPException, status


class StorageError(Exception):
    """Object storage upload or deletion failed."""


class AnalysisError(Exception):
    """Plant analysis could not be produced (image fetch or model call failed)."""


class ImageNotFoundError(Exception):
    """No image with the given id belongs to the user."""


class SessionError(HTTPException):
    """
    Authentication or authorization failure.
    Rendered as a plain-text body rather than JSON.
    """


class NotAuthenticatedError(SessionError):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="You are not login"
        )


class ForbiddenRoleError(SessionError):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden: You do not have access, admin only"
        )
