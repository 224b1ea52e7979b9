"""Flight and hotel booking model definitions."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import CheckConstraint, Date, ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base


class FlightBookingStatus(str, Enum):
    """Flight booking status; stored lowercase."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class HotelBookingStatus(str, Enum):
    """Hotel booking status; stored uppercase."""
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


class FlightBooking(Base):
    """Flight reservation owned by a user."""

    __tablename__ = "flight_bookings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)

    # Flight details
    flight_number: Mapped[str] = mapped_column(String(16), nullable=False)
    airline: Mapped[str] = mapped_column(String(100), nullable=False)
    departure_code: Mapped[str] = mapped_column(String(8), nullable=False)
    arrival_code: Mapped[str] = mapped_column(String(8), nullable=False)
    departure_time: Mapped[datetime] = mapped_column(nullable=False)
    arrival_time: Mapped[datetime] = mapped_column(nullable=False)
    cabin_class: Mapped[str] = mapped_column(String(20), nullable=False, default="ECONOMY")
    passenger_name: Mapped[Optional[str]] = mapped_column(Text)

    booking_reference: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    status: Mapped[FlightBookingStatus] = mapped_column(
        String(20),
        nullable=False,
        default=FlightBookingStatus.PENDING.value,
        index=True
    )

    created_at: Mapped[datetime] = mapped_column(nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        nullable=False,
        server_default=func.now(),
        server_onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_flight_booking_price_non_negative"),
        CheckConstraint("arrival_time >= departure_time", name="ck_flight_booking_times_ordered"),
        # Never reuse ids: approvals reference bookings by id without a foreign key
        {"sqlite_autoincrement": True},
    )

    def __repr__(self) -> str:
        return (
            f"<FlightBooking(id={self.id}, user_id={self.user_id}, "
            f"flight_number='{self.flight_number}', status={self.status})>"
        )


class HotelBooking(Base):
    """Hotel reservation owned by a user."""

    __tablename__ = "hotel_bookings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)

    # Hotel details
    hotel_id: Mapped[str] = mapped_column(String(64), nullable=False)
    hotel_name: Mapped[str] = mapped_column(Text, nullable=False)
    hotel_city: Mapped[str] = mapped_column(String(100), nullable=False)
    hotel_country: Mapped[str] = mapped_column(String(100), nullable=False)
    room_type: Mapped[str] = mapped_column(String(64), nullable=False)
    check_in_date: Mapped[date] = mapped_column(Date, nullable=False)
    check_out_date: Mapped[date] = mapped_column(Date, nullable=False)
    guests: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    rooms: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    guest_name: Mapped[str] = mapped_column(Text, nullable=False)
    guest_email: Mapped[str] = mapped_column(String(255), nullable=False)

    booking_reference: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    status: Mapped[HotelBookingStatus] = mapped_column(
        String(20),
        nullable=False,
        default=HotelBookingStatus.PENDING.value,
        index=True
    )

    created_at: Mapped[datetime] = mapped_column(nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        nullable=False,
        server_default=func.now(),
        server_onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_hotel_booking_price_non_negative"),
        CheckConstraint("check_out_date > check_in_date", name="ck_hotel_booking_dates_ordered"),
        CheckConstraint("guests > 0 AND rooms > 0", name="ck_hotel_booking_occupancy_positive"),
        {"sqlite_autoincrement": True},
    )

    def __repr__(self) -> str:
        return (
            f"<HotelBooking(id={self.id}, user_id={self.user_id}, "
            f"hotel_name='{self.hotel_name}', status={self.status})>"
        )
