"""HTTP exceptions following RFC 9457 Problem Details, and the mapping from unit-of-work errors."""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

from .errors import (
    AlreadyDecided,
    ConstraintViolation,
    NotFound,
    OpenApprovalExists,
    PoolExhausted,
    SerializationConflict,
    TransactionError,
)

logger = logging.getLogger(__name__)

PROBLEM_BASE_URI = "https://tripsage.app/problems"


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class ProblemDetailsException(HTTPException):
    """
    Base exception class following RFC 9457 Problem Details for HTTP APIs.

    https://tools.ietf.org/rfc/rfc9457.txt
    """

    def __init__(
        self,
        status_code: int,
        title: str,
        detail: Optional[str] = None,
        type_uri: Optional[str] = None,
        instance: Optional[str] = None,
        extensions: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize Problem Details exception.

        Args:
            status_code: HTTP status code
            title: Short, human-readable summary of the problem type
            detail: Human-readable explanation specific to this occurrence
            type_uri: URI reference that identifies the problem type
            instance: URI reference that identifies the specific occurrence
            extensions: Additional problem-specific information
            headers: HTTP headers to include in response
        """
        self.status_code = status_code
        self.title = title
        self.type_uri = type_uri or f"about:blank#{status_code}"
        self.instance = instance
        self.extensions = extensions or {}

        self.problem_details = {
            "type": self.type_uri,
            "title": self.title,
            "status": self.status_code,
        }

        if detail:
            self.problem_details["detail"] = detail

        if self.instance:
            self.problem_details["instance"] = self.instance

        self.problem_details.update(self.extensions)

        super().__init__(
            status_code=status_code,
            detail=self.problem_details,
            headers=headers
        )


class ValidationError(ProblemDetailsException):
    """Exception for request validation errors."""

    def __init__(
        self,
        detail: str = "The request data failed validation",
        errors: Optional[Dict[str, Any]] = None,
        code: str = "VALIDATION_ERROR",
        instance: Optional[str] = None,
    ):
        extensions: Dict[str, Any] = {"code": code}
        if errors:
            extensions["errors"] = errors

        super().__init__(
            status_code=400,
            title="Validation Error",
            detail=detail,
            type_uri=f"{PROBLEM_BASE_URI}/validation-error",
            instance=instance,
            extensions=extensions,
        )


class AuthenticationError(ProblemDetailsException):
    """Exception for authentication errors."""

    def __init__(
        self,
        detail: str = "Authentication credentials are required",
        instance: Optional[str] = None,
    ):
        super().__init__(
            status_code=401,
            title="Authentication Required",
            detail=detail,
            type_uri=f"{PROBLEM_BASE_URI}/authentication-required",
            instance=instance,
            extensions={"code": "UNAUTHENTICATED"},
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthorizationError(ProblemDetailsException):
    """Exception for authorization errors."""

    def __init__(
        self,
        detail: str = "Insufficient permissions to access this resource",
        required_permissions: Optional[list] = None,
        instance: Optional[str] = None,
    ):
        extensions: Dict[str, Any] = {"code": "FORBIDDEN"}
        if required_permissions:
            extensions["required_permissions"] = required_permissions

        super().__init__(
            status_code=403,
            title="Access Forbidden",
            detail=detail,
            type_uri=f"{PROBLEM_BASE_URI}/access-forbidden",
            instance=instance,
            extensions=extensions,
        )


class NotFoundError(ProblemDetailsException):
    """Exception for resource not found errors."""

    def __init__(
        self,
        resource_type: str = "resource",
        resource_id: Optional[str] = None,
        detail: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        if not detail:
            detail = f"The requested {resource_type}"
            if resource_id:
                detail += f" with ID '{resource_id}'"
            detail += " could not be found"

        extensions = {
            "code": "NOT_FOUND",
            "resource_type": resource_type,
        }
        if resource_id:
            extensions["resource_id"] = resource_id

        super().__init__(
            status_code=404,
            title="Resource Not Found",
            detail=detail,
            type_uri=f"{PROBLEM_BASE_URI}/resource-not-found",
            instance=instance,
            extensions=extensions,
        )


class ConflictError(ProblemDetailsException):
    """Exception for resource conflict errors."""

    def __init__(
        self,
        detail: str = "The request conflicts with the current state of the resource",
        code: str = "CONFLICT",
        retryable: bool = False,
        conflicting_resource: Optional[Dict[str, Any]] = None,
        instance: Optional[str] = None,
    ):
        extensions: Dict[str, Any] = {"code": code, "retryable": retryable}
        if conflicting_resource:
            extensions["conflicting_resource"] = conflicting_resource

        super().__init__(
            status_code=409,
            title="Resource Conflict",
            detail=detail,
            type_uri=f"{PROBLEM_BASE_URI}/resource-conflict",
            instance=instance,
            extensions=extensions,
        )


class ServiceUnavailableError(ProblemDetailsException):
    """Exception when a backing resource is temporarily exhausted."""

    def __init__(
        self,
        detail: str = "The service is temporarily unable to handle the request",
        retry_after: int = 1,
        instance: Optional[str] = None,
    ):
        super().__init__(
            status_code=503,
            title="Service Unavailable",
            detail=detail,
            type_uri=f"{PROBLEM_BASE_URI}/service-unavailable",
            instance=instance,
            extensions={
                "code": "POOL_EXHAUSTED",
                "retryable": True,
                "retry_after_seconds": retry_after,
            },
            headers={"Retry-After": str(retry_after)},
        )


class InternalServerError(ProblemDetailsException):
    """Exception for internal server errors."""

    def __init__(
        self,
        detail: str = "An unexpected error occurred while processing the request",
        error_id: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        if not error_id:
            error_id = str(uuid.uuid4())

        extensions = {
            "code": "INTERNAL_ERROR",
            "error_id": error_id,
            "timestamp": _utc_timestamp(),
        }

        super().__init__(
            status_code=500,
            title="Internal Server Error",
            detail=detail,
            type_uri=f"{PROBLEM_BASE_URI}/internal-server-error",
            instance=instance,
            extensions=extensions,
        )


def problem_from_transaction_error(
    exc: TransactionError,
    instance: Optional[str] = None,
) -> ProblemDetailsException:
    """
    Translate a typed unit-of-work error into its HTTP problem.

    Only messages built by the error taxonomy itself are forwarded; driver
    text never reaches the response body.

    Args:
        exc: Classified error raised by a service
        instance: Request URI to report as the problem instance

    Returns:
        ProblemDetailsException: Problem to raise or render
    """
    if isinstance(exc, AlreadyDecided):
        return ConflictError(
            detail=exc.message,
            code="ALREADY_DECIDED",
            conflicting_resource={"approval_id": exc.approval_id, "status": exc.status},
            instance=instance,
        )
    if isinstance(exc, OpenApprovalExists):
        return ConflictError(
            detail=exc.message,
            code="OPEN_APPROVAL_EXISTS",
            conflicting_resource={
                "booking_type": exc.booking_type,
                "booking_id": exc.booking_id,
                "approval_id": exc.approval_id,
            },
            instance=instance,
        )
    if isinstance(exc, SerializationConflict):
        return ConflictError(
            detail=exc.message,
            code="SERIALIZATION_CONFLICT",
            retryable=True,
            instance=instance,
        )
    if isinstance(exc, NotFound):
        return NotFoundError(
            resource_type=exc.entity,
            resource_id=str(exc.entity_id),
            instance=instance,
        )
    if isinstance(exc, ConstraintViolation):
        errors = {"key": exc.key} if exc.key else None
        return ValidationError(
            detail=exc.message,
            errors=errors,
            code="CONSTRAINT_VIOLATION",
            instance=instance,
        )
    if isinstance(exc, PoolExhausted):
        return ServiceUnavailableError(instance=instance)
    return InternalServerError(instance=instance)


async def problem_details_handler(request: Request, exc: ProblemDetailsException) -> JSONResponse:
    """
    Exception handler for Problem Details exceptions.

    Args:
        request: FastAPI request object
        exc: Problem Details exception

    Returns:
        JSONResponse: Problem Details formatted response
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.problem_details,
        headers=exc.headers,
        media_type="application/problem+json",
    )


async def transaction_error_handler(request: Request, exc: TransactionError) -> JSONResponse:
    """Render a typed unit-of-work error that escaped the routers."""
    problem = problem_from_transaction_error(exc, instance=request.url.path)
    if problem.status_code >= 500:
        logger.error(
            "Unit of work failed",
            extra={"error_category": exc.category, "error_id": problem.problem_details.get("error_id")},
        )
    return await problem_details_handler(request, problem)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Generic exception handler that converts unhandled exceptions to Problem Details format.

    Args:
        request: FastAPI request object
        exc: Unhandled exception

    Returns:
        JSONResponse: Problem Details formatted response
    """
    problem = InternalServerError(instance=request.url.path)
    logger.error(
        "Unhandled exception",
        extra={"error_id": problem.problem_details["error_id"], "error_type": type(exc).__name__},
        exc_info=exc,
    )
    return await problem_details_handler(request, problem)
