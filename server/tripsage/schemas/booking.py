"""Booking placement Pydantic schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .approval import BookingApproval


class PlaceFlightBookingRequest(BaseModel):
    """Request schema for placing a flight booking for review."""

    flight_number: str = Field(..., min_length=1, max_length=16, description="Operating flight number")
    airline: str = Field(..., min_length=1, max_length=100, description="Airline name")
    departure_code: str = Field(..., min_length=3, max_length=8, description="Departure airport code")
    arrival_code: str = Field(..., min_length=3, max_length=8, description="Arrival airport code")
    departure_time: datetime = Field(..., description="Scheduled departure (ISO 8601)")
    arrival_time: datetime = Field(..., description="Scheduled arrival (ISO 8601)")
    cabin_class: str = Field("ECONOMY", max_length=20, description="Cabin class")
    passenger_name: Optional[str] = Field(None, description="Passenger full name")
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2, description="Total price")
    currency: str = Field("USD", pattern=r"^[A-Z]{3}$", description="ISO 4217 currency code")

    @model_validator(mode="after")
    def check_times(self) -> "PlaceFlightBookingRequest":
        if self.arrival_time < self.departure_time:
            raise ValueError("arrival_time must not be before departure_time")
        return self


class PlaceHotelBookingRequest(BaseModel):
    """Request schema for placing a hotel booking for review."""

    hotel_id: str = Field(..., min_length=1, max_length=64, description="Provider hotel id")
    hotel_name: str = Field(..., min_length=1, description="Hotel name")
    hotel_city: str = Field(..., min_length=1, max_length=100, description="Hotel city")
    hotel_country: str = Field(..., min_length=1, max_length=100, description="Hotel country")
    room_type: str = Field(..., min_length=1, max_length=64, description="Room type")
    check_in_date: date = Field(..., description="Check-in date")
    check_out_date: date = Field(..., description="Check-out date")
    guests: int = Field(1, ge=1, le=20, description="Number of guests")
    rooms: int = Field(1, ge=1, le=10, description="Number of rooms")
    guest_name: str = Field(..., min_length=1, description="Lead guest name")
    guest_email: str = Field(..., min_length=3, max_length=255, description="Lead guest email")
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2, description="Total price")
    currency: str = Field("USD", pattern=r"^[A-Z]{3}$", description="ISO 4217 currency code")

    @model_validator(mode="after")
    def check_dates(self) -> "PlaceHotelBookingRequest":
        if self.check_out_date <= self.check_in_date:
            raise ValueError("check_out_date must be after check_in_date")
        return self


class FlightBooking(BaseModel):
    """Flight booking response schema."""

    id: int = Field(..., description="Booking ID")
    user_id: int = Field(..., description="Owning user")
    flight_number: str
    airline: str
    departure_code: str
    arrival_code: str
    departure_time: datetime
    arrival_time: datetime
    booking_reference: str = Field(..., description="Booking reference code")
    price: Decimal
    currency: str
    status: str = Field(..., description="Booking status (lowercase)")

    model_config = ConfigDict(from_attributes=True)


class HotelBooking(BaseModel):
    """Hotel booking response schema."""

    id: int = Field(..., description="Booking ID")
    user_id: int = Field(..., description="Owning user")
    hotel_name: str
    hotel_city: str
    room_type: str
    check_in_date: date
    check_out_date: date
    booking_reference: str = Field(..., description="Booking reference code")
    price: Decimal
    currency: str
    status: str = Field(..., description="Booking status (uppercase)")

    model_config = ConfigDict(from_attributes=True)


class PlacedFlightBooking(BaseModel):
    """Flight booking together with the approval it is waiting on."""

    booking: FlightBooking
    approval: BookingApproval


class PlacedHotelBooking(BaseModel):
    """Hotel booking together with the approval it is waiting on."""

    booking: HotelBooking
    approval: BookingApproval
