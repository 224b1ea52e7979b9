"""Booking approval Pydantic schemas."""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class BookingType(str, Enum):
    """Booking type enumeration."""
    FLIGHT = "FLIGHT"
    HOTEL = "HOTEL"


class ApprovalStatus(str, Enum):
    """Approval status enumeration."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class Decision(str, Enum):
    """Decision enumeration."""
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ListApprovalsRequest(BaseModel):
    """Request schema for listing booking approvals."""

    status: Optional[ApprovalStatus] = Field(None, description="Only approvals in this status")
    limit: int = Field(100, ge=1, le=500, description="Maximum approvals to return")


class OpenApprovalRequest(BaseModel):
    """Request schema for sending a booking back for review."""

    booking_type: BookingType = Field(..., description="Kind of booking")
    booking_id: int = Field(..., ge=1, description="Booking to review")


class DecideRequest(BaseModel):
    """Request schema for deciding a pending approval."""

    approval_id: int = Field(..., ge=1, description="Approval to decide")
    decision: Decision = Field(..., description="APPROVED or REJECTED")
    notes: Optional[str] = Field(None, max_length=2000, description="Admin notes shown to the user on rejection")


class BookingApproval(BaseModel):
    """Booking approval response schema."""

    id: int = Field(..., description="Approval ID")
    booking_type: BookingType = Field(..., description="Kind of booking")
    booking_id: int = Field(..., description="Referenced booking")
    status: ApprovalStatus = Field(..., description="Approval status")
    admin_id: Optional[int] = Field(None, description="Deciding administrator")
    admin_notes: Optional[str] = Field(None, description="Admin notes")
    created_at: datetime = Field(..., description="Creation time (ISO 8601)")
    updated_at: datetime = Field(..., description="Last update time (ISO 8601)")

    model_config = ConfigDict(from_attributes=True)


class BookingApprovalForReview(BookingApproval):
    """Booking approval with the booking and people it concerns."""

    booking: Optional[dict[str, Any]] = Field(
        None, description="Booking summary (route or hotel, dates, price, status); null if the booking is gone"
    )
    owner_id: Optional[int] = Field(None, description="User who placed the booking")
    owner_username: Optional[str] = Field(None, description="Username of the booking owner")
    admin_username: Optional[str] = Field(None, description="Username of the deciding administrator")


class BookingApprovalList(BaseModel):
    """Booking approval list response."""

    approvals: list[BookingApprovalForReview] = Field(..., description="Approvals, newest first")
    total: int = Field(..., ge=0, description="Number of approvals returned")
