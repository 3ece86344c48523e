"""Basic-auth guard for the newsletter publishing endpoint."""

from __future__ import annotations

import logging
import secrets

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from app.core.config import settings

logger = logging.getLogger(__name__)

_basic = HTTPBasic(auto_error=False)


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Authentication required",
        headers={"WWW-Authenticate": 'Basic realm="publish"'},
    )


def require_publisher(credentials: HTTPBasicCredentials | None = Depends(_basic)) -> str:
    """Return the authenticated publisher username or raise 401."""

    if credentials is None:
        raise _unauthorized()

    expected_username = settings.publisher_username
    expected_password = settings.publisher_password
    if not expected_username or not expected_password:
        logger.warning("Publish attempted but no publisher credentials are configured")
        raise _unauthorized()

    username_ok = secrets.compare_digest(credentials.username.encode(), expected_username.encode())
    password_ok = secrets.compare_digest(credentials.password.encode(), expected_password.encode())
    if not (username_ok and password_ok):
        logger.warning("Rejected publisher credentials", extra={"username": credentials.username})
        raise _unauthorized()

    return credentials.username
