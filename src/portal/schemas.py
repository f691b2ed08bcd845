"""Response envelopes and validators shared by every router."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


def check_choice(value: str | None, allowed: Iterable[str], label: str) -> str | None:
    """Validate an optional enum-like string against its allowed values."""
    if value is None:
        return value
    allowed = tuple(allowed)
    if value not in allowed:
        msg = f"Invalid {label}. Must be one of: {', '.join(allowed)}"
        raise ValueError(msg)
    return value


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class DataResponse(BaseModel, Generic[T]):
    success: bool = True
    message: str | None = None
    data: T


class ListResponse(BaseModel, Generic[T]):
    success: bool = True
    count: int
    data: list[T]


class PageResponse(BaseModel, Generic[T]):
    success: bool = True
    count: int
    total: int
    page: int
    pages: int
    data: list[T]
