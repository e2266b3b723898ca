"""FastAPI dependencies for authentication and services."""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from tasktracker.database import get_db
from tasktracker.models.user import User
from tasktracker.services.auth import (
    TokenError,
    TokenExpiredError,
    decode_access_token,
    get_user_by_id,
)
from tasktracker.services.task_service import TaskService

logger = logging.getLogger(__name__)

# auto_error is off so a missing header gets our own 401 instead of FastAPI's
security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> User:
    """Get the current authenticated user from the bearer token."""
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Not authorized to access this route. No token provided.")

    try:
        payload = decode_access_token(credentials.credentials)
    except TokenExpiredError:
        raise _unauthorized("Token expired. Please log in again.") from None
    except TokenError as e:
        logger.info(f"Rejected bearer token: {e}")
        raise _unauthorized("Invalid token. Please log in again.") from None

    user_id = payload.get("sub")
    try:
        user_id = int(user_id)
    except (TypeError, ValueError):
        raise _unauthorized("Invalid token. Please log in again.") from None

    user = get_user_by_id(db, user_id)
    if user is None:
        raise _unauthorized("User not found with this token.")
    if not user.is_active:
        raise _unauthorized("User account is deactivated.")

    return user


def get_task_service(
    db: Annotated[Session, Depends(get_db)],
) -> TaskService:
    """Get task service with dependencies."""
    return TaskService(db)
