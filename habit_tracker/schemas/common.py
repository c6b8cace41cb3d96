"""
Shared schema primitives used across the API.
"""
from typing import Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error envelope returned for all 4xx/5xx responses."""
    code: str
    message: str
    details: Optional[dict[str, Any]] = None


# Documented on every router; individual endpoints add their own 404 / 422.
COMMON_ERROR_RESPONSES = {
    401: {"model": ErrorResponse, "description": "Missing X-User-Id header."},
    503: {"model": ErrorResponse, "description": "Store unavailable."},
}
