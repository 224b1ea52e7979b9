"""Notification router for the calling user."""

from fastapi import APIRouter, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import CurrentUser, DatabaseSession, Executor, RequiredAuth
from ..core.errors import TransactionError
from ..core.exceptions import problem_from_transaction_error
from ..core.transaction import TransactionExecutor
from ..schemas.common import problem_responses
from ..schemas.notification import ListNotificationsRequest, MarkReadRequest, Notification, NotificationList
from ..services.notification_service import NotificationService

router = APIRouter(prefix="/v1/notifications", tags=["notifications"], responses=problem_responses(401))


@router.post("/list", response_model=NotificationList)
async def list_notifications(
    request: ListNotificationsRequest,
    user: CurrentUser = RequiredAuth,
    db: AsyncSession = DatabaseSession,
) -> NotificationList:
    """The caller's notifications plus broadcasts, newest first."""
    notifications = await NotificationService(db).get_user_notifications(user.user_id, limit=request.limit)
    return NotificationList(
        notifications=[Notification.model_validate(n) for n in notifications],
        unread=sum(1 for n in notifications if not n.is_read),
    )


@router.post("/read", response_model=Notification, responses=problem_responses(404))
async def mark_read(
    request: MarkReadRequest,
    http_request: Request,
    user: CurrentUser = RequiredAuth,
    executor: TransactionExecutor = Executor,
) -> Notification:
    """Mark one of the caller's notifications as read."""

    async def work(session: AsyncSession):
        return await NotificationService(session).mark_as_read(request.notification_id, user.user_id)

    try:
        notification = await executor.run_in_transaction(work, name="mark_notification_read")
    except TransactionError as e:
        raise problem_from_transaction_error(e, instance=http_request.url.path) from e
    return Notification.model_validate(notification)
