"""Booking approval model definitions."""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base


class BookingType(str, Enum):
    """Kind of booking an approval refers to."""
    FLIGHT = "FLIGHT"
    HOTEL = "HOTEL"


class ApprovalStatus(str, Enum):
    """Approval status enumeration. APPROVED and REJECTED are terminal."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ApprovalDecision(str, Enum):
    """Decisions an administrator can record on a pending approval."""
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class BookingApproval(Base):
    """
    Pending or recorded administrative decision on a flight or hotel booking.

    ``booking_id`` points into ``flight_bookings`` or ``hotel_bookings``
    depending on ``booking_type``, so it carries no foreign key. At most one
    PENDING row per (booking_type, booking_id) is kept by the services.
    """

    __tablename__ = "booking_approvals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    booking_type: Mapped[BookingType] = mapped_column(String(20), nullable=False)
    booking_id: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[ApprovalStatus] = mapped_column(
        String(20),
        nullable=False,
        default=ApprovalStatus.PENDING.value,
        index=True
    )
    admin_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"))
    admin_notes: Mapped[Optional[str]] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        nullable=False,
        server_default=func.now(),
        server_onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint("booking_type IN ('FLIGHT', 'HOTEL')", name="ck_approval_booking_type_valid"),
        CheckConstraint(
            "status IN ('PENDING', 'APPROVED', 'REJECTED')",
            name="ck_approval_status_valid"
        ),
        Index("ix_booking_approvals_booking", "booking_type", "booking_id"),
    )

    @property
    def is_open(self) -> bool:
        return self.status == ApprovalStatus.PENDING

    def __repr__(self) -> str:
        return (
            f"<BookingApproval(id={self.id}, booking_type={self.booking_type}, "
            f"booking_id={self.booking_id}, status={self.status})>"
        )
