"""Authentication router for all /api/v1/auth/* endpoints."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from portal.auth.dependencies import get_current_user
from portal.auth.jwt import create_access_token
from portal.auth.password import PasswordStrengthError
from portal.auth.schemas import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    UpdateDetailsRequest,
    UpdatePasswordRequest,
    UserResponse,
)
from portal.auth.service import authenticate_user, change_password, register_user, update_details
from portal.config import get_settings
from portal.database import get_session
from portal.db.models import User
from portal.errors import AuthorizationError, BadRequestError
from portal.schemas import MessageResponse

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_session),
) -> AuthResponse:
    """Create an account and return a token."""
    if body.role == "admin" and not get_settings().allow_admin_registration:
        msg = "Admin accounts cannot be self-registered"
        raise AuthorizationError(msg)

    try:
        user = await register_user(
            db,
            name=body.name,
            email=body.email,
            password=body.password,
            role=body.role,
            student_id=body.student_id,
            department=body.department,
            year=body.year,
        )
    except PasswordStrengthError as e:
        raise BadRequestError(str(e)) from e
    await db.commit()

    return AuthResponse(
        message="User registered successfully",
        token=create_access_token(user.id, user.role),
        user=UserResponse.model_validate(user),
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_session),
) -> AuthResponse:
    """Login with email + password."""
    user = await authenticate_user(db, body.email, body.password)
    await db.commit()
    logger.info("user_logged_in", user_id=user.id)

    return AuthResponse(
        message="Login successful",
        token=create_access_token(user.id, user.role),
        user=UserResponse.model_validate(user),
    )


@router.get("/me", response_model=AuthResponse)
async def me(user: User = Depends(get_current_user)) -> AuthResponse:
    """Return the authenticated user."""
    return AuthResponse(user=UserResponse.model_validate(user))


@router.put("/updatedetails", response_model=AuthResponse)
async def update_my_details(
    body: UpdateDetailsRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> AuthResponse:
    """Update name, email, department or year of the current user."""
    user = await update_details(
        db,
        user,
        name=body.name,
        email=body.email,
        department=body.department,
        year=body.year,
    )
    await db.commit()
    return AuthResponse(message="User details updated successfully", user=UserResponse.model_validate(user))


@router.put("/updatepassword", response_model=AuthResponse)
async def update_my_password(
    body: UpdatePasswordRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> AuthResponse:
    """Change password and issue a fresh token."""
    try:
        user = await change_password(db, user, body.current_password, body.new_password)
    except PasswordStrengthError as e:
        raise BadRequestError(str(e)) from e
    await db.commit()
    return AuthResponse(
        message="Password updated successfully",
        token=create_access_token(user.id, user.role),
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(user: User = Depends(get_current_user)) -> MessageResponse:
    """Tokens are stateless; the client discards its copy."""
    logger.info("user_logged_out", user_id=user.id)
    return MessageResponse(message="Logged out successfully")
