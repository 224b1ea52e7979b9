"""Booking router: callers place flight and hotel bookings for review."""

import logging

from fastapi import APIRouter, Request

from ..core.dependencies import CurrentUser, Executor, RequiredAuth
from ..core.errors import TransactionError
from ..core.exceptions import problem_from_transaction_error
from ..core.transaction import TransactionExecutor
from ..schemas.approval import BookingApproval
from ..schemas.booking import (
    FlightBooking,
    HotelBooking,
    PlacedFlightBooking,
    PlacedHotelBooking,
    PlaceFlightBookingRequest,
    PlaceHotelBookingRequest,
)
from ..schemas.common import problem_responses
from ..services.booking_service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/booking", tags=["booking"], responses=problem_responses(400, 401, 409, 503))


@router.post("/flight", response_model=PlacedFlightBooking, status_code=201)
async def place_flight_booking(
    request: PlaceFlightBookingRequest,
    http_request: Request,
    user: CurrentUser = RequiredAuth,
    executor: TransactionExecutor = Executor,
) -> PlacedFlightBooking:
    """Place a flight booking; it stays pending until an administrator decides."""
    try:
        booking, approval = await BookingService(executor).place_flight_booking(user.user_id, request)
    except TransactionError as e:
        raise problem_from_transaction_error(e, instance=http_request.url.path) from e
    return PlacedFlightBooking(
        booking=FlightBooking.model_validate(booking),
        approval=BookingApproval.model_validate(approval),
    )


@router.post("/hotel", response_model=PlacedHotelBooking, status_code=201)
async def place_hotel_booking(
    request: PlaceHotelBookingRequest,
    http_request: Request,
    user: CurrentUser = RequiredAuth,
    executor: TransactionExecutor = Executor,
) -> PlacedHotelBooking:
    """Place a hotel booking; it stays pending until an administrator decides."""
    try:
        booking, approval = await BookingService(executor).place_hotel_booking(user.user_id, request)
    except TransactionError as e:
        raise problem_from_transaction_error(e, instance=http_request.url.path) from e
    return PlacedHotelBooking(
        booking=HotelBooking.model_validate(booking),
        approval=BookingApproval.model_validate(approval),
    )
