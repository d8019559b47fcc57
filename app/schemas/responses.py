"""
OpenAPI response schemas for RFC 9457 Problem Details.

Re-exports the fastapi-errors-rfc9457 helpers used by the routers.
"""

from fastapi_errors_rfc9457 import (
    COMMON_RESPONSES,
    ProblemDetailResponse,
    create_responses,
)

__all__ = [
    "COMMON_RESPONSES",
    "ProblemDetailResponse",
    "create_responses",
]
