"""Models module exporting all database models."""

from .approval import ApprovalDecision, ApprovalStatus, BookingApproval, BookingType
from .audit import AdminLog
from .booking import FlightBooking, FlightBookingStatus, HotelBooking, HotelBookingStatus
from .notification import Notification, NotificationType
from .trip import Activity, Trip, TripBooking, TripDay
from .user import (
    FlightSearch,
    HotelSearch,
    Review,
    SearchAnalytics,
    User,
    UserRole,
    UserSettings,
    WishlistItem,
)

__all__ = [
    # User aggregate
    "User",
    "UserRole",
    "UserSettings",
    "WishlistItem",
    "Review",
    "FlightSearch",
    "HotelSearch",
    "SearchAnalytics",

    # Booking entities
    "FlightBooking",
    "FlightBookingStatus",
    "HotelBooking",
    "HotelBookingStatus",

    # Trip aggregate
    "Trip",
    "TripDay",
    "TripBooking",
    "Activity",

    # Approval workflow
    "BookingApproval",
    "BookingType",
    "ApprovalStatus",
    "ApprovalDecision",

    # Audit and notifications
    "AdminLog",
    "Notification",
    "NotificationType",
]
