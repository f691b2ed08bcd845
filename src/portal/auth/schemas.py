"""Request/response schemas for authentication endpoints."""

from __future__ import annotations

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from portal.db.models import DEPARTMENTS, ROLES, YEARS
from portal.schemas import check_choice

_STUDENT_ID_RE = re.compile(r"^[A-Z0-9]{3,20}$")


def _normalize_email(v: str) -> str:
    return v.lower().strip()


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Self-registration."""

    name: str = Field(..., min_length=2, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)
    role: str = "student"
    student_id: str | None = None
    department: str | None = None
    year: str | None = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            msg = "Name must be between 2 and 50 characters"
            raise ValueError(msg)
        return v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _normalize_email(v)

    @field_validator("role")
    @classmethod
    def check_role(cls, v: str) -> str:
        return check_choice(v, ROLES, "role")  # type: ignore[return-value]

    @field_validator("student_id")
    @classmethod
    def check_student_id(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip().upper()
        if not _STUDENT_ID_RE.match(v):
            msg = "Student ID must be 3-20 uppercase letters and numbers"
            raise ValueError(msg)
        return v

    @field_validator("department")
    @classmethod
    def check_department(cls, v: str | None) -> str | None:
        return check_choice(v, DEPARTMENTS, "department")

    @field_validator("year")
    @classmethod
    def check_year(cls, v: str | None) -> str | None:
        return check_choice(v, YEARS, "year")


class LoginRequest(BaseModel):
    """Login with email + password."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _normalize_email(v)


class UpdateDetailsRequest(BaseModel):
    """Self-service profile update. Omitted fields are left unchanged."""

    name: str | None = Field(None, min_length=2, max_length=50)
    email: EmailStr | None = None
    department: str | None = None
    year: str | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str | None) -> str | None:
        return _normalize_email(v) if v is not None else v

    @field_validator("department")
    @classmethod
    def check_department(cls, v: str | None) -> str | None:
        return check_choice(v, DEPARTMENTS, "department")

    @field_validator("year")
    @classmethod
    def check_year(cls, v: str | None) -> str | None:
        return check_choice(v, YEARS, "year")


class UpdatePasswordRequest(BaseModel):
    """Change password (requires current password)."""

    current_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=1, max_length=128)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """A user as returned to clients. Never includes the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    role: str
    student_id: str | None = None
    department: str | None = None
    year: str | None = None
    total_points: int
    level: int
    is_active: bool
    last_login: datetime | None = None
    created_at: datetime | None = None


class AuthResponse(BaseModel):
    success: bool = True
    message: str | None = None
    token: str | None = None
    user: UserResponse | None = None
