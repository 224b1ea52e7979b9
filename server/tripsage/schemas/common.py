"""Common Pydantic schemas."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class Problem(BaseModel):
    """RFC 9457 Problem Details response."""

    type: str = Field(..., description="Problem type URI")
    title: str = Field(..., description="Short human-readable summary")
    status: int = Field(..., description="HTTP status code")
    detail: Optional[str] = Field(None, description="Human-readable explanation")
    instance: Optional[str] = Field(None, description="URI reference for this occurrence")
    code: str = Field(..., description="Application-specific error code")
    retryable: Optional[bool] = Field(None, description="Whether the operation can be retried")
    error_id: Optional[str] = Field(None, description="Opaque id for server-side correlation")
    conflicting_resource: Optional[Dict[str, Any]] = Field(None, description="State that caused a conflict")
    errors: Optional[Dict[str, Any]] = Field(None, description="Offending fields or keys")


_PROBLEM_DESCRIPTIONS = {
    400: "Constraint violation or invalid request",
    401: "Missing or invalid bearer token",
    403: "Administrator role required",
    404: "Target row not found",
    409: "Conflicting state; retry only when `retryable` is true",
    503: "No database connection available",
}


def problem_responses(*status_codes: int) -> Dict[int, Dict[str, Any]]:
    """OpenAPI ``responses`` entries documenting Problem Details bodies."""
    return {
        code: {
            "model": Problem,
            "description": _PROBLEM_DESCRIPTIONS[code],
            "content": {"application/problem+json": {}},
        }
        for code in status_codes
    }
