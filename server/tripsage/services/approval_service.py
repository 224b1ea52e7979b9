"""Booking approval state machine and its read paths."""

import logging
from typing import Optional, Union

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.errors import AlreadyDecided, NotFound, OpenApprovalExists
from ..core.observability import metrics_collector
from ..core.transaction import IsolationLevel, TransactionExecutor
from ..models import (
    ApprovalDecision,
    ApprovalStatus,
    BookingApproval,
    BookingType,
    FlightBooking,
    HotelBooking,
    NotificationType,
    User,
)
from .audit_service import AuditService
from .booking_refs import BookingRef, BookingStatus, booking_ref_for
from .notification_service import NotificationService

logger = logging.getLogger(__name__)


async def open_approval_in(session: AsyncSession, ref: BookingRef) -> BookingApproval:
    """
    Open a PENDING approval for ``ref`` inside the caller's unit of work.

    Raises:
        OpenApprovalExists: If the booking already has a PENDING approval
    """
    existing = await session.scalar(
        select(BookingApproval.id).where(
            BookingApproval.booking_type == ref.booking_type.value,
            BookingApproval.booking_id == ref.booking_id,
            BookingApproval.status == ApprovalStatus.PENDING.value,
        )
    )
    if existing is not None:
        raise OpenApprovalExists(ref.booking_type, ref.booking_id, existing)

    approval = BookingApproval(
        booking_type=ref.booking_type.value,
        booking_id=ref.booking_id,
        status=ApprovalStatus.PENDING.value,
    )
    session.add(approval)
    await session.flush()
    await session.refresh(approval)
    return approval


OWNER_DELETED_NOTE = "Owner account deleted"


async def close_open_approvals_for_owner(
    session: AsyncSession,
    user_id: int,
    admin_id: Optional[int] = None,
) -> int:
    """
    Reject every PENDING approval on bookings owned by ``user_id``.

    Runs inside the caller's unit of work and must precede the deletion of
    the bookings themselves. The approval rows are kept as history.

    Returns:
        Number of approvals closed
    """
    owned = or_(
        and_(
            BookingApproval.booking_type == BookingType.FLIGHT.value,
            BookingApproval.booking_id.in_(select(FlightBooking.id).where(FlightBooking.user_id == user_id)),
        ),
        and_(
            BookingApproval.booking_type == BookingType.HOTEL.value,
            BookingApproval.booking_id.in_(select(HotelBooking.id).where(HotelBooking.user_id == user_id)),
        ),
    )
    result = await session.execute(
        update(BookingApproval)
        .where(BookingApproval.status == ApprovalStatus.PENDING.value, owned)
        .values(
            status=ApprovalStatus.REJECTED.value,
            admin_id=admin_id,
            admin_notes=OWNER_DELETED_NOTE,
            updated_at=func.now(),
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


class ApprovalService:
    """
    Service recording administrative decisions on pending bookings.

    ``decide`` is one unit of work: the approval transition, the booking
    status sync, the audit row and the owner notification commit together or
    not at all.
    """

    def __init__(self, executor: TransactionExecutor, max_attempts: Optional[int] = None):
        self.executor = executor
        self.max_attempts = max_attempts or settings.transaction_max_attempts

    async def decide(
        self,
        approval_id: int,
        decision: Union[ApprovalDecision, str],
        admin_id: int,
        notes: Optional[str] = None,
    ) -> BookingApproval:
        """
        Approve or reject a pending booking.

        Args:
            approval_id: Approval to decide
            decision: APPROVED or REJECTED
            admin_id: Deciding administrator
            notes: Optional admin notes (quoted in the rejection notice)

        Returns:
            The decided BookingApproval

        Raises:
            NotFound: If the approval or its booking does not exist
            AlreadyDecided: If the approval is no longer PENDING
            ConstraintViolation: If a referenced row vanished mid-flight
            SerializationConflict: If retries were exhausted
        """
        decision = ApprovalDecision(decision)

        async def work(session: AsyncSession) -> BookingApproval:
            approval = await self._lock(session, approval_id)
            if not approval.is_open:
                raise AlreadyDecided(approval_id, approval.status)

            ref = booking_ref_for(approval.booking_type, approval.booking_id)

            # The status predicate makes the transition single-writer even where
            # the store ignores FOR UPDATE
            result = await session.execute(
                update(BookingApproval)
                .where(
                    BookingApproval.id == approval_id,
                    BookingApproval.status == ApprovalStatus.PENDING.value,
                )
                .values(
                    status=decision.value,
                    admin_id=admin_id,
                    admin_notes=notes,
                    updated_at=func.now(),
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                current = await session.scalar(
                    select(BookingApproval.status).where(BookingApproval.id == approval_id)
                )
                raise AlreadyDecided(approval_id, current)

            booking = await ref.set_status(session, BookingStatus.for_decision(decision))

            await AuditService(session).record(
                admin_id=admin_id,
                action=f"booking_{decision.value.lower()}",
                entity_type=ref.entity_type,
                entity_id=ref.booking_id,
                details={
                    "approval_id": approval_id,
                    "status": decision.value,
                    "notes": notes,
                    "booking": ref.details(booking),
                },
            )

            await NotificationService(session).enqueue(
                user_id=booking.user_id,
                admin_id=admin_id,
                **self._notice(ref, booking, decision, notes),
            )

            await session.refresh(approval)
            return approval

        approval = await self.executor.run_in_transaction(
            work,
            name=f"decide_booking_approval_{approval_id}",
            isolation=IsolationLevel.READ_COMMITTED,
            max_attempts=self.max_attempts,
        )

        metrics_collector.record_booking_decision(approval.booking_type, decision.value)
        logger.info(
            "Booking approval decided",
            extra={
                "approval_id": approval_id,
                "booking_type": approval.booking_type,
                "booking_id": approval.booking_id,
                "decision": decision.value,
                "admin_id": admin_id,
            }
        )
        return approval

    def _notice(
        self,
        ref: BookingRef,
        booking,
        decision: ApprovalDecision,
        notes: Optional[str],
    ) -> dict:
        subject = ref.subject(booking)
        if decision == ApprovalDecision.APPROVED:
            return {
                "title": f"{ref.label} Booking Confirmed",
                "message": f"Your booking {subject} has been approved and confirmed.",
                "type": NotificationType.SUCCESS,
            }
        return {
            "title": f"{ref.label} Booking Rejected",
            "message": (
                f"Your booking {subject} has been rejected. "
                f"Reason: {notes or 'Not specified'}"
            ),
            "type": NotificationType(settings.rejection_notification_type),
        }

    async def _lock(self, session: AsyncSession, approval_id: int) -> BookingApproval:
        result = await session.execute(
            select(BookingApproval)
            .where(BookingApproval.id == approval_id)
            .with_for_update()
        )
        approval = result.scalar_one_or_none()
        if approval is None:
            raise NotFound("booking_approval", approval_id)
        return approval

    async def open_approval(self, booking_type: Union[BookingType, str], booking_id: int) -> BookingApproval:
        """
        Send an existing booking back for review.

        Raises:
            ValueError: If ``booking_type`` is unknown
            NotFound: If the booking does not exist
            OpenApprovalExists: If a PENDING approval already exists for it
        """
        ref = booking_ref_for(booking_type, booking_id)

        async def work(session: AsyncSession) -> BookingApproval:
            await ref.load(session)
            return await open_approval_in(session, ref)

        approval = await self.executor.run_in_transaction(
            work,
            name=f"open_booking_approval_{ref.entity_type}_{booking_id}",
            isolation=IsolationLevel.SERIALIZABLE,
            max_attempts=self.max_attempts,
        )
        logger.info(
            "Booking approval opened",
            extra={"approval_id": approval.id, "booking_type": ref.booking_type.value, "booking_id": booking_id}
        )
        return approval

    async def get_booking_approvals(
        self,
        status: Optional[Union[ApprovalStatus, str]] = None,
        limit: int = 100,
    ) -> list[BookingApproval]:
        """Approvals, optionally filtered by status, newest first."""
        stmt = select(BookingApproval).order_by(BookingApproval.created_at.desc(), BookingApproval.id.desc())
        if status is not None:
            stmt = stmt.where(BookingApproval.status == ApprovalStatus(status).value)
        async with self.executor.database.session_factory() as session:
            result = await session.execute(stmt.limit(limit))
            return list(result.scalars().all())

    async def get_booking_approvals_for_review(
        self,
        status: Optional[Union[ApprovalStatus, str]] = None,
        limit: int = 100,
    ) -> list[dict]:
        """
        Approvals with what an administrator needs to decide them.

        Each entry carries the approval columns plus a ``booking`` summary,
        the owner's id and username and the deciding admin's username.
        ``booking`` and the owner fields are None when the booking row no
        longer exists.
        """
        approvals = await self.get_booking_approvals(status=status, limit=limit)

        entries = []
        async with self.executor.database.session_factory() as session:
            for approval in approvals:
                ref = booking_ref_for(approval.booking_type, approval.booking_id)
                booking = await ref.get(session)
                owner = await session.get(User, booking.user_id) if booking is not None else None
                admin = await session.get(User, approval.admin_id) if approval.admin_id is not None else None

                entries.append({
                    "id": approval.id,
                    "booking_type": approval.booking_type,
                    "booking_id": approval.booking_id,
                    "status": approval.status,
                    "admin_id": approval.admin_id,
                    "admin_notes": approval.admin_notes,
                    "created_at": approval.created_at,
                    "updated_at": approval.updated_at,
                    "booking": self._summary(ref, booking) if booking is not None else None,
                    "owner_id": owner.id if owner is not None else None,
                    "owner_username": owner.username if owner is not None else None,
                    "admin_username": admin.username if admin is not None else None,
                })
        return entries

    def _summary(self, ref: BookingRef, booking) -> dict:
        return {
            **ref.details(booking),
            "price": str(booking.price),
            "currency": booking.currency,
            "status": booking.status,
        }

    async def get_approval(self, approval_id: int) -> BookingApproval:
        async with self.executor.database.session_factory() as session:
            approval = await session.get(BookingApproval, approval_id)
        if approval is None:
            raise NotFound("booking_approval", approval_id)
        return approval
