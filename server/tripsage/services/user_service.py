"""User removal as one atomic unit of work."""

import logging
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import NotFound
from ..core.observability import metrics_collector
from ..core.transaction import TransactionExecutor
from ..models import User
from .approval_service import close_open_approvals_for_owner
from .audit_service import AuditService
from .cascade import USER_OWNED, delete_collections

logger = logging.getLogger(__name__)


class UserService:
    """Service for administrative user removal."""

    def __init__(self, executor: TransactionExecutor):
        self.executor = executor

    async def delete_user(self, user_id: int, admin_id: Optional[int] = None) -> dict[str, int]:
        """
        Delete a user and every row the user owns.

        Open approvals on the user's bookings are rejected first and kept.
        Dependent tables are then emptied in registry order before the user row.
        If the user row itself is already gone the whole unit rolls back, so
        a concurrent deleter never leaves a half-deleted user behind.

        Args:
            user_id: User to delete
            admin_id: Acting administrator, audited when given

        Returns:
            Deleted row counts keyed by table name, plus ``closed_approvals``

        Raises:
            NotFound: If the user does not exist
            ConstraintViolation: If a row outside the user's own collections
                still references the user (e.g. audit rows the user authored)
        """

        async def work(session: AsyncSession) -> dict[str, int]:
            # Approvals carry no foreign key to the bookings they gate
            closed = await close_open_approvals_for_owner(session, user_id, admin_id)
            counts = await delete_collections(session, USER_OWNED, [user_id])
            counts["closed_approvals"] = closed

            deleted = await self._delete_user_row(session, user_id)
            if deleted == 0:
                raise NotFound("user", user_id)
            counts[User.__tablename__] = deleted

            if admin_id is not None:
                await AuditService(session).record(
                    admin_id=admin_id,
                    action="delete_user",
                    entity_type="user",
                    entity_id=user_id,
                    details={"deleted_rows": counts},
                )
            return counts

        counts = await self.executor.run_in_transaction(work, name=f"delete_user_{user_id}")

        metrics_collector.record_user_deleted()
        logger.info(
            "User deleted",
            extra={"user_id": user_id, "admin_id": admin_id, "deleted_rows": counts}
        )
        return counts

    async def _delete_user_row(self, session: AsyncSession, user_id: int) -> int:
        result = await session.execute(delete(User).where(User.id == user_id))
        return result.rowcount
