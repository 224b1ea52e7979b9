"""Administrative trip removal."""

import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import NotFound
from ..core.observability import metrics_collector
from ..core.transaction import TransactionExecutor
from ..models import NotificationType, Trip
from .audit_service import AuditService
from .cascade import TRIP_OWNED, delete_collections
from .notification_service import NotificationService

logger = logging.getLogger(__name__)


class TripService:
    """Service for trips removed by an administrator."""

    def __init__(self, executor: TransactionExecutor):
        self.executor = executor

    async def remove_trip(self, trip_id: int, admin_id: int, reason: str) -> dict[str, int]:
        """
        Remove a trip with its days, activities and bookings, then tell the owner.

        Args:
            trip_id: Trip to remove
            admin_id: Acting administrator
            reason: Reason quoted in the audit row and the owner's notification

        Returns:
            Deleted row counts keyed by table name

        Raises:
            NotFound: If the trip does not exist
        """

        async def work(session: AsyncSession) -> dict[str, int]:
            trip = (
                await session.execute(select(Trip).where(Trip.id == trip_id).with_for_update())
            ).scalar_one_or_none()
            if trip is None:
                raise NotFound("trip", trip_id)
            owner_id, title = trip.user_id, trip.title

            counts = await delete_collections(session, TRIP_OWNED, [trip_id])

            result = await session.execute(delete(Trip).where(Trip.id == trip_id))
            if result.rowcount == 0:
                raise NotFound("trip", trip_id)
            counts[Trip.__tablename__] = result.rowcount

            await AuditService(session).record(
                admin_id=admin_id,
                action="delete_trip",
                entity_type="trip",
                entity_id=trip_id,
                details=f"Trip deleted. Reason: {reason}",
            )
            await NotificationService(session).enqueue(
                user_id=owner_id,
                admin_id=admin_id,
                title="Trip Removed",
                message=(
                    f'Your trip "{title}" has been removed by an administrator. '
                    f"Reason: {reason}"
                ),
                type=NotificationType.WARNING,
            )
            return counts

        counts = await self.executor.run_in_transaction(work, name=f"remove_trip_{trip_id}")

        metrics_collector.record_trip_removed()
        logger.info(
            "Trip removed",
            extra={"trip_id": trip_id, "admin_id": admin_id, "deleted_rows": counts}
        )
        return counts
