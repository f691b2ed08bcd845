"""
Authentication business logic.

Handles registration, credential checks, self-service profile updates and
password changes.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from portal.auth.password import (
    check_needs_rehash,
    hash_password,
    validate_password_strength,
    verify_password,
)
from portal.db.models import User
from portal.errors import AuthenticationError, ConflictError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


# ---------------------------------------------------------------------------
# User queries
# ---------------------------------------------------------------------------


def normalize_email(email: str) -> str:
    """Canonical stored form of an email address."""
    return email.strip().lower()


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    """Fetch a user by ID (active or not)."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Fetch a user by email (case-insensitive)."""
    result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
    return result.scalar_one_or_none()


async def get_user_by_student_id(db: AsyncSession, student_id: str) -> User | None:
    """Fetch a user by student ID."""
    result = await db.execute(select(User).where(User.student_id == student_id.upper()))
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


async def register_user(
    db: AsyncSession,
    *,
    name: str,
    email: str,
    password: str,
    role: str = "student",
    student_id: str | None = None,
    department: str | None = None,
    year: str | None = None,
) -> User:
    """
    Create a new account.

    Raises:
        PasswordStrengthError: If the password violates the length policy.
        ConflictError: If the email or student ID is already registered.
    """
    validate_password_strength(password)

    if await get_user_by_email(db, email) is not None:
        msg = "User already exists with this email"
        raise ConflictError(msg)

    if student_id and await get_user_by_student_id(db, student_id) is not None:
        msg = "Student ID already exists"
        raise ConflictError(msg)

    now = datetime.now(timezone.utc)
    user = User(
        name=name,
        email=normalize_email(email),
        password_hash=hash_password(password),
        role=role,
        student_id=student_id.upper() if student_id else None,
        department=department,
        year=year,
        total_points=0,
        level=1,
        is_active=True,
        created_at=now,
        updated_at=now,
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        msg = "User already exists with this email or student ID"
        raise ConflictError(msg) from e
    logger.info("user_registered", user_id=user.id, role=role)
    return user


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------


async def authenticate_user(db: AsyncSession, email: str, password: str) -> User:
    """
    Check credentials and record the login.

    Raises:
        AuthenticationError: Unknown email, wrong password, or deactivated account.
    """
    user = await get_user_by_email(db, email)
    if user is None:
        msg = "Invalid credentials"
        raise AuthenticationError(msg)

    if not user.is_active:
        msg = "Account has been deactivated"
        raise AuthenticationError(msg)

    if not verify_password(password, user.password_hash):
        logger.info("login_failed", user_id=user.id)
        msg = "Invalid credentials"
        raise AuthenticationError(msg)

    if check_needs_rehash(user.password_hash):
        user.password_hash = hash_password(password)

    user.last_login = datetime.now(timezone.utc)
    await db.flush()
    return user


# ---------------------------------------------------------------------------
# Self-service updates
# ---------------------------------------------------------------------------


async def update_details(
    db: AsyncSession,
    user: User,
    *,
    name: str | None = None,
    email: str | None = None,
    department: str | None = None,
    year: str | None = None,
) -> User:
    """
    Update the caller's own name, email, department or year.

    Raises:
        ConflictError: If the new email belongs to another account.
    """
    email = normalize_email(email) if email is not None else None
    if email is not None and email != user.email:
        existing = await get_user_by_email(db, email)
        if existing is not None and existing.id != user.id:
            msg = "Email is already in use"
            raise ConflictError(msg)
        user.email = email

    if name is not None:
        user.name = name.strip()
    if department is not None:
        user.department = department
    if year is not None:
        user.year = year

    user.updated_at = datetime.now(timezone.utc)
    await db.flush()
    return user


async def change_password(db: AsyncSession, user: User, current_password: str, new_password: str) -> User:
    """
    Replace the user's password after checking the current one.

    Raises:
        AuthenticationError: If the current password is wrong.
        PasswordStrengthError: If the new password violates the length policy.
    """
    if not verify_password(current_password, user.password_hash):
        msg = "Current password is incorrect"
        raise AuthenticationError(msg)

    validate_password_strength(new_password)
    user.password_hash = hash_password(new_password)
    user.updated_at = datetime.now(timezone.utc)
    await db.flush()
    logger.info("password_changed", user_id=user.id)
    return user
