"""Authentication API endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from tasktracker.api.dependencies import get_current_user
from tasktracker.database import get_db
from tasktracker.models.user import User
from tasktracker.schemas.auth import (
    AuthData,
    PasswordChange,
    ProfileUpdate,
    UserData,
    UserLogin,
    UserRegister,
    UserResponse,
)
from tasktracker.schemas.common import Envelope, MessageResponse
from tasktracker.services import auth as auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

INVALID_CREDENTIALS = "Invalid credentials"


def _auth_envelope(user: User, message: str) -> Envelope[AuthData]:
    return Envelope[AuthData](
        message=message,
        data=AuthData(
            user=UserResponse.model_validate(user),
            token=auth_service.create_access_token(user),
        ),
    )


@router.post(
    "/register",
    response_model=Envelope[AuthData],
    status_code=status.HTTP_201_CREATED,
)
def register(
    user_data: UserRegister,
    db: Annotated[Session, Depends(get_db)],
):
    """Register a new user."""
    if auth_service.get_user_by_email(db, user_data.email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User already exists with this email",
        )

    user = auth_service.create_user(db, user_data.name, user_data.email, user_data.password)
    return _auth_envelope(user, "User registered successfully")


@router.post("/login", response_model=Envelope[AuthData])
def login(
    credentials: UserLogin,
    db: Annotated[Session, Depends(get_db)],
):
    """Login with email and password."""
    user = auth_service.authenticate_user(db, credentials.email, credentials.password)

    # Same answer for unknown email and wrong password
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVALID_CREDENTIALS,
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User account is deactivated.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = auth_service.record_login(db, user)
    return _auth_envelope(user, "Login successful")


@router.get("/me", response_model=Envelope[UserData])
def get_me(
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Get current user information."""
    return Envelope[UserData](data=UserData(user=UserResponse.model_validate(current_user)))


@router.put("/profile", response_model=Envelope[UserData])
def update_profile(
    profile_data: ProfileUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Update name and avatar of the current user."""
    user = auth_service.update_profile(
        db, current_user, name=profile_data.name, avatar=profile_data.avatar
    )
    return Envelope[UserData](
        message="Profile updated successfully",
        data=UserData(user=UserResponse.model_validate(user)),
    )


@router.put("/password", response_model=MessageResponse)
def change_password(
    password_data: PasswordChange,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Change the current user's password."""
    changed = auth_service.change_password(
        db, current_user, password_data.current_password, password_data.new_password
    )
    if not changed:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect",
        )
    return MessageResponse(message="Password changed successfully")


@router.post("/logout", response_model=MessageResponse)
def logout(
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Logout (client should discard token)."""
    logger.info(f"User {current_user.id} logged out")
    return MessageResponse(message="Logged out successfully")
