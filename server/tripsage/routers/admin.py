"""Administrative router: booking approvals, user deletion, trip removal, audit log."""

import logging

from fastapi import APIRouter, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import AdminAuth, CurrentUser, DatabaseSession, Executor
from ..core.errors import TransactionError
from ..core.exceptions import ValidationError, problem_from_transaction_error
from ..core.transaction import TransactionExecutor
from ..schemas.admin import (
    AdminLog,
    AdminLogList,
    DeleteUserRequest,
    DeletionResult,
    ListAdminLogsRequest,
    RemoveTripRequest,
)
from ..schemas.approval import (
    BookingApproval,
    BookingApprovalForReview,
    BookingApprovalList,
    DecideRequest,
    ListApprovalsRequest,
    OpenApprovalRequest,
)
from ..schemas.common import problem_responses
from ..schemas.notification import CreateNotificationRequest, Notification
from ..services.approval_service import ApprovalService
from ..services.audit_service import AuditService
from ..services.notification_service import NotificationService
from ..services.trip_service import TripService
from ..services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/v1/admin",
    tags=["admin"],
    responses=problem_responses(401, 403, 503),
)


@router.post("/approvals/list", response_model=BookingApprovalList)
async def list_approvals(
    request: ListApprovalsRequest,
    admin: CurrentUser = AdminAuth,
    executor: TransactionExecutor = Executor,
) -> BookingApprovalList:
    """List booking approvals with their booking summaries, optionally only those in one status."""
    approvals = await ApprovalService(executor).get_booking_approvals_for_review(
        status=request.status, limit=request.limit
    )
    return BookingApprovalList(
        approvals=[BookingApprovalForReview.model_validate(approval) for approval in approvals],
        total=len(approvals),
    )


@router.post(
    "/approvals/open",
    response_model=BookingApproval,
    status_code=201,
    responses=problem_responses(404, 409),
)
async def open_approval(
    request: OpenApprovalRequest,
    http_request: Request,
    admin: CurrentUser = AdminAuth,
    executor: TransactionExecutor = Executor,
) -> BookingApproval:
    """Send an existing booking back for review."""
    try:
        approval = await ApprovalService(executor).open_approval(request.booking_type.value, request.booking_id)
    except TransactionError as e:
        raise problem_from_transaction_error(e, instance=http_request.url.path) from e
    return BookingApproval.model_validate(approval)


@router.post("/approvals/decide", response_model=BookingApproval, responses=problem_responses(404, 409))
async def decide_approval(
    request: DecideRequest,
    http_request: Request,
    admin: CurrentUser = AdminAuth,
    executor: TransactionExecutor = Executor,
) -> BookingApproval:
    """
    Approve or reject a pending booking.

    The approval, the booking status, the audit row and the owner's
    notification are committed together.
    """
    try:
        approval = await ApprovalService(executor).decide(
            approval_id=request.approval_id,
            decision=request.decision.value,
            admin_id=admin.user_id,
            notes=request.notes,
        )
    except TransactionError as e:
        logger.warning(
            "Booking decision rejected",
            extra={
                "approval_id": request.approval_id,
                "admin_id": admin.user_id,
                "error_category": e.category,
            }
        )
        raise problem_from_transaction_error(e, instance=http_request.url.path) from e
    return BookingApproval.model_validate(approval)


@router.post("/users/delete", response_model=DeletionResult, responses=problem_responses(400, 404))
async def delete_user(
    request: DeleteUserRequest,
    http_request: Request,
    admin: CurrentUser = AdminAuth,
    executor: TransactionExecutor = Executor,
) -> DeletionResult:
    """Delete a user together with every row the user owns."""
    if request.user_id == admin.user_id:
        raise ValidationError(
            detail="Administrators cannot delete their own account",
            code="SELF_DELETE",
            instance=http_request.url.path,
        )
    try:
        counts = await UserService(executor).delete_user(request.user_id, admin_id=admin.user_id)
    except TransactionError as e:
        raise problem_from_transaction_error(e, instance=http_request.url.path) from e
    return DeletionResult(deleted_rows=counts)


@router.post("/trips/remove", response_model=DeletionResult, responses=problem_responses(404))
async def remove_trip(
    request: RemoveTripRequest,
    http_request: Request,
    admin: CurrentUser = AdminAuth,
    executor: TransactionExecutor = Executor,
) -> DeletionResult:
    """Remove a trip and notify its owner."""
    try:
        counts = await TripService(executor).remove_trip(request.trip_id, admin.user_id, request.reason)
    except TransactionError as e:
        raise problem_from_transaction_error(e, instance=http_request.url.path) from e
    return DeletionResult(deleted_rows=counts)


@router.post("/logs/list", response_model=AdminLogList)
async def list_admin_logs(
    request: ListAdminLogsRequest,
    admin: CurrentUser = AdminAuth,
    db: AsyncSession = DatabaseSession,
) -> AdminLogList:
    """List audit rows for one admin, for one entity, or across all admins."""
    audit_service = AuditService(db)
    if request.entity_id is not None:
        logs = await audit_service.get_logs_for_entity(
            request.entity_type, request.entity_id, limit=request.limit
        )
    elif request.admin_id is not None:
        logs = await audit_service.get_admin_logs_by_admin_id(request.admin_id, limit=request.limit)
    else:
        logs = await audit_service.get_recent_admin_logs(limit=request.limit)
    return AdminLogList(logs=[AdminLog.model_validate(log) for log in logs], total=len(logs))


@router.post("/notifications/create", response_model=Notification, status_code=201)
async def create_notification(
    request: CreateNotificationRequest,
    http_request: Request,
    admin: CurrentUser = AdminAuth,
    executor: TransactionExecutor = Executor,
) -> Notification:
    """Send a notification to one user, or broadcast it when no user is given."""

    async def work(session: AsyncSession):
        return await NotificationService(session).create_notification(
            admin_id=admin.user_id,
            title=request.title,
            message=request.message,
            type=request.type.value,
            user_id=request.user_id,
            link=request.link,
        )

    try:
        notification = await executor.run_in_transaction(work, name="create_notification")
    except TransactionError as e:
        raise problem_from_transaction_error(e, instance=http_request.url.path) from e
    return Notification.model_validate(notification)
