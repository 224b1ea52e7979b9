"""Booking placement: new bookings enter the approval workflow."""

import logging
import secrets
import string
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.observability import metrics_collector
from ..core.transaction import IsolationLevel, TransactionExecutor
from ..models import (
    BookingApproval,
    FlightBooking,
    FlightBookingStatus,
    HotelBooking,
    HotelBookingStatus,
    NotificationType,
)
from ..schemas.booking import PlaceFlightBookingRequest, PlaceHotelBookingRequest
from .approval_service import open_approval_in
from .booking_refs import BookingRef, FlightBookingRef, HotelBookingRef
from .notification_service import NotificationService

logger = logging.getLogger(__name__)


class BookingService:
    """Service placing flight and hotel bookings under review."""

    def __init__(self, executor: TransactionExecutor, max_attempts: Optional[int] = None):
        self.executor = executor
        self.max_attempts = max_attempts or settings.transaction_max_attempts

    def _generate_booking_reference(self, prefix: str, length: int = 8) -> str:
        """Generate a random booking reference code."""
        alphabet = string.ascii_uppercase + string.digits
        return prefix + ''.join(secrets.choice(alphabet) for _ in range(length))

    async def place_flight_booking(
        self,
        user_id: int,
        request: PlaceFlightBookingRequest,
    ) -> tuple[FlightBooking, BookingApproval]:
        """
        Insert a PENDING flight booking, open its approval and notify the owner.

        Args:
            user_id: Owning user
            request: Flight details

        Returns:
            The booking and its PENDING approval

        Raises:
            ConstraintViolation: If the user does not exist
        """

        def build() -> FlightBooking:
            return FlightBooking(
                user_id=user_id,
                flight_number=request.flight_number,
                airline=request.airline,
                departure_code=request.departure_code,
                arrival_code=request.arrival_code,
                departure_time=request.departure_time,
                arrival_time=request.arrival_time,
                cabin_class=request.cabin_class,
                passenger_name=request.passenger_name,
                booking_reference=self._generate_booking_reference("FL"),
                price=request.price,
                currency=request.currency,
                status=FlightBookingStatus.PENDING.value,
            )

        return await self._place(user_id, build, FlightBookingRef)

    async def place_hotel_booking(
        self,
        user_id: int,
        request: PlaceHotelBookingRequest,
    ) -> tuple[HotelBooking, BookingApproval]:
        """Insert a PENDING hotel booking, open its approval and notify the owner."""

        def build() -> HotelBooking:
            return HotelBooking(
                user_id=user_id,
                hotel_id=request.hotel_id,
                hotel_name=request.hotel_name,
                hotel_city=request.hotel_city,
                hotel_country=request.hotel_country,
                room_type=request.room_type,
                check_in_date=request.check_in_date,
                check_out_date=request.check_out_date,
                guests=request.guests,
                rooms=request.rooms,
                guest_name=request.guest_name,
                guest_email=request.guest_email,
                booking_reference=self._generate_booking_reference("HT"),
                price=request.price,
                currency=request.currency,
                status=HotelBookingStatus.PENDING.value,
            )

        return await self._place(user_id, build, HotelBookingRef)

    async def _place(self, user_id: int, build, ref_class: type[BookingRef]):
        async def work(session: AsyncSession):
            # A fresh row per attempt; a retried unit must not reuse a rolled-back instance
            booking = build()
            session.add(booking)
            await session.flush()

            ref = ref_class(booking.id)
            approval = await open_approval_in(session, ref)
            await NotificationService(session).enqueue(
                user_id=user_id,
                title=f"{ref.label} Booking Under Review",
                message=(
                    f"Your booking {ref.subject(booking)} has been received "
                    "and is awaiting administrator approval."
                ),
                type=NotificationType.INFO,
            )
            await session.refresh(booking)
            return booking, approval

        booking, approval = await self.executor.run_in_transaction(
            work,
            name=f"place_{ref_class.entity_type}_user_{user_id}",
            isolation=IsolationLevel.SERIALIZABLE,
            max_attempts=self.max_attempts,
        )

        metrics_collector.record_booking_placed(ref_class.booking_type.value)
        logger.info(
            "Booking placed for review",
            extra={
                "booking_type": ref_class.booking_type.value,
                "booking_id": booking.id,
                "approval_id": approval.id,
                "user_id": user_id,
            }
        )
        return booking, approval
