"""Business logic services."""

from .approval_service import ApprovalService
from .audit_service import AuditService
from .booking_refs import BookingRef, BookingStatus, FlightBookingRef, HotelBookingRef, booking_ref_for
from .booking_service import BookingService
from .cascade import TRIP_OWNED, USER_OWNED, OwnedCollection
from .notification_service import NotificationService
from .trip_service import TripService
from .user_service import UserService

__all__ = [
    "ApprovalService",
    "AuditService",
    "BookingRef",
    "BookingService",
    "BookingStatus",
    "FlightBookingRef",
    "HotelBookingRef",
    "NotificationService",
    "OwnedCollection",
    "TRIP_OWNED",
    "TripService",
    "USER_OWNED",
    "UserService",
    "booking_ref_for",
]
