"""Pydantic schemas for request and response validation."""

from app.schemas.responses import (
    COMMON_RESPONSES,
    ProblemDetailResponse,
    create_responses,
)

__all__ = [
    "COMMON_RESPONSES",
    "ProblemDetailResponse",
    "create_responses",
]
