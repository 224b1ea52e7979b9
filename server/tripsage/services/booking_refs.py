"""Typed references to the two booking tables an approval can point at."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Optional, Union

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import NotFound
from ..models import (
    ApprovalDecision,
    BookingType,
    FlightBooking,
    FlightBookingStatus,
    HotelBooking,
    HotelBookingStatus,
)

Booking = Union[FlightBooking, HotelBooking]


class BookingStatus(str, Enum):
    """Entity-independent booking status used inside the services."""
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"

    @classmethod
    def for_decision(cls, decision: ApprovalDecision) -> "BookingStatus":
        if decision == ApprovalDecision.APPROVED:
            return cls.CONFIRMED
        return cls.CANCELLED


@dataclass(frozen=True)
class BookingRef(ABC):
    """
    Reference to one booking row, resolved from (booking_type, booking_id).

    Each variant owns its table, its status column casing and the wording
    used in audit rows and notifications, so callers never branch on the
    booking type themselves.
    """

    booking_id: int

    booking_type: ClassVar[BookingType]
    entity_type: ClassVar[str]
    label: ClassVar[str]

    @property
    @abstractmethod
    def model(self) -> type:
        """ORM class of the referenced table."""

    @abstractmethod
    def wire_status(self, status: BookingStatus) -> str:
        """Status value as stored in the referenced table."""

    @abstractmethod
    def subject(self, booking: Booking) -> str:
        """Phrase naming the booking in notification text ('for flight X')."""

    @abstractmethod
    def details(self, booking: Booking) -> dict:
        """Booking fields copied into audit details."""

    async def get(self, session: AsyncSession, *, for_update: bool = False) -> Optional[Booking]:
        stmt = select(self.model).where(self.model.id == self.booking_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def load(self, session: AsyncSession, *, for_update: bool = False) -> Booking:
        """Fetch the booking or raise NotFound."""
        booking = await self.get(session, for_update=for_update)
        if booking is None:
            raise NotFound(self.entity_type, self.booking_id)
        return booking

    async def set_status(self, session: AsyncSession, status: BookingStatus) -> Booking:
        """
        Write ``status`` to the booking row in the entity's own casing.

        Args:
            session: Transactional session of the calling unit of work
            status: Target status

        Returns:
            The updated booking

        Raises:
            NotFound: If the booking row no longer exists
        """
        result = await session.execute(
            update(self.model)
            .where(self.model.id == self.booking_id)
            .values(status=self.wire_status(status))
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFound(self.entity_type, self.booking_id)

        booking = await self.load(session)
        await session.refresh(booking)
        return booking


@dataclass(frozen=True)
class FlightBookingRef(BookingRef):
    booking_type: ClassVar[BookingType] = BookingType.FLIGHT
    entity_type: ClassVar[str] = "flight_booking"
    label: ClassVar[str] = "Flight"

    @property
    def model(self) -> type:
        return FlightBooking

    def wire_status(self, status: BookingStatus) -> str:
        return FlightBookingStatus[status.name].value

    def subject(self, booking: FlightBooking) -> str:
        return f"for flight {booking.flight_number}"

    def details(self, booking: FlightBooking) -> dict:
        return {
            "flight_number": booking.flight_number,
            "airline": booking.airline,
            "departure": booking.departure_code,
            "arrival": booking.arrival_code,
            "booking_reference": booking.booking_reference,
        }


@dataclass(frozen=True)
class HotelBookingRef(BookingRef):
    booking_type: ClassVar[BookingType] = BookingType.HOTEL
    entity_type: ClassVar[str] = "hotel_booking"
    label: ClassVar[str] = "Hotel"

    @property
    def model(self) -> type:
        return HotelBooking

    def wire_status(self, status: BookingStatus) -> str:
        return HotelBookingStatus[status.name].value

    def subject(self, booking: HotelBooking) -> str:
        return f"at {booking.hotel_name}"

    def details(self, booking: HotelBooking) -> dict:
        return {
            "hotel_name": booking.hotel_name,
            "hotel_city": booking.hotel_city,
            "check_in": booking.check_in_date.isoformat(),
            "check_out": booking.check_out_date.isoformat(),
            "booking_reference": booking.booking_reference,
        }


_REFS: dict[BookingType, type[BookingRef]] = {
    BookingType.FLIGHT: FlightBookingRef,
    BookingType.HOTEL: HotelBookingRef,
}


def booking_ref_for(booking_type: Union[BookingType, str], booking_id: int) -> BookingRef:
    """
    Resolve a stored (booking_type, booking_id) pair to its typed reference.

    Raises:
        ValueError: If ``booking_type`` is not a known booking type
    """
    try:
        ref_class = _REFS[BookingType(booking_type)]
    except (KeyError, ValueError):
        raise ValueError(f"Unknown booking type: {booking_type!r}")
    return ref_class(booking_id)
