"""Unit tests for cascading user deletion."""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from tripsage.core.errors import ConstraintViolation, NotFound
from tripsage.models import (
    Activity,
    AdminLog,
    ApprovalStatus,
    BookingApproval,
    FlightBooking,
    FlightSearch,
    HotelBooking,
    HotelSearch,
    Notification,
    Review,
    SearchAnalytics,
    Trip,
    TripBooking,
    TripDay,
    User,
    UserSettings,
    WishlistItem,
)
from tripsage.schemas.booking import PlaceFlightBookingRequest
from tripsage.services import USER_OWNED, BookingService, UserService

USER_TABLES = [
    Notification,
    SearchAnalytics,
    WishlistItem,
    UserSettings,
    FlightSearch,
    FlightBooking,
    HotelSearch,
    HotelBooking,
    Trip,
    Review,
]


async def _owned_rows(seed, user_id: int) -> dict[str, int]:
    counts = {model.__tablename__: await seed.count(model, model.user_id == user_id) for model in USER_TABLES}
    counts["users"] = await seed.count(User, User.id == user_id)
    return counts


def test_registry_covers_every_user_table():
    """Test that every table holding a users.id foreign key owned by the user is registered."""
    assert [collection.name for collection in USER_OWNED] == [m.__tablename__ for m in USER_TABLES]


@pytest.mark.asyncio
async def test_delete_user_removes_every_dependent_row(executor, seed):
    user = await seed.user()
    await seed.dependents(user.id)
    bystander = await seed.user()
    await seed.dependents(bystander.id)

    counts = await UserService(executor).delete_user(user.id)

    remaining = await _owned_rows(seed, user.id)
    assert all(count == 0 for count in remaining.values()), remaining
    assert counts["users"] == 1
    assert counts["trips"] == 1
    assert counts["trip_days"] == 2
    assert counts["activities"] == 2
    assert counts["bookings"] == 1

    # Other users keep their rows
    untouched = await _owned_rows(seed, bystander.id)
    assert all(count >= 1 for count in untouched.values()), untouched


@pytest.mark.asyncio
async def test_delete_user_without_dependents(executor, seed):
    user = await seed.user()

    counts = await UserService(executor).delete_user(user.id)

    assert counts["users"] == 1
    assert counts["notifications"] == 0
    assert await seed.get(User, user.id) is None


@pytest.mark.asyncio
async def test_delete_user_clears_trip_aggregate(executor, seed):
    user = await seed.user()
    trip = await seed.trip(user.id, days=3)

    await UserService(executor).delete_user(user.id)

    assert await seed.count(TripDay, TripDay.trip_id == trip.id) == 0
    assert await seed.count(TripBooking, TripBooking.trip_id == trip.id) == 0
    assert await seed.count(Activity) == 0


@pytest.mark.asyncio
async def test_delete_unknown_user(executor):
    with pytest.raises(NotFound) as exc_info:
        await UserService(executor).delete_user(404)

    assert exc_info.value.entity == "user"


@pytest.mark.asyncio
async def test_zero_row_final_delete_rolls_back_everything(executor, seed, monkeypatch):
    """Test that a user row vanishing under us leaves every dependent row in place."""
    user = await seed.user()
    await seed.dependents(user.id)
    before = await _owned_rows(seed, user.id)

    async def already_gone(self, session, user_id):
        return 0

    monkeypatch.setattr(UserService, "_delete_user_row", already_gone)

    with pytest.raises(NotFound):
        await UserService(executor).delete_user(user.id)

    # A separate reader sees no partial deletion
    assert await _owned_rows(seed, user.id) == before
    assert await seed.count(Activity) == 2


@pytest.mark.asyncio
async def test_delete_user_is_audited(executor, seed):
    admin = await seed.admin()
    user = await seed.user()

    await UserService(executor).delete_user(user.id, admin_id=admin.id)

    assert await seed.count(
        AdminLog,
        AdminLog.admin_id == admin.id,
        AdminLog.action == "delete_user",
        AdminLog.entity_id == user.id,
    ) == 1


@pytest.mark.asyncio
async def test_delete_admin_with_audit_history_is_refused(executor, seed):
    """Test that an admin who authored audit rows cannot be removed."""
    admin = await seed.admin()
    other_admin = await seed.admin()
    user = await seed.user()
    await UserService(executor).delete_user(user.id, admin_id=admin.id)

    with pytest.raises(ConstraintViolation):
        await UserService(executor).delete_user(admin.id, admin_id=other_admin.id)

    assert await seed.get(User, admin.id) is not None


def _flight_request() -> PlaceFlightBookingRequest:
    departure = datetime(2030, 5, 2, 9, 30)
    return PlaceFlightBookingRequest(
        flight_number="SK907",
        airline="SAS",
        departure_code="CPH",
        arrival_code="KEF",
        departure_time=departure,
        arrival_time=departure + timedelta(hours=3),
        price=Decimal("240.00"),
    )


@pytest.mark.asyncio
async def test_delete_user_closes_open_approvals(executor, seed):
    """Test that pending approvals on the user's bookings are rejected and kept."""
    admin = await seed.admin()
    user = await seed.user()
    _, flight_approval = await seed.pending_flight(user.id)
    _, hotel_approval = await seed.pending_hotel(user.id)
    bystander = await seed.user()
    _, other_approval = await seed.pending_flight(bystander.id)

    counts = await UserService(executor).delete_user(user.id, admin_id=admin.id)

    assert counts["closed_approvals"] == 2
    for approval_id in (flight_approval.id, hotel_approval.id):
        closed = await seed.get(BookingApproval, approval_id)
        assert closed.status == ApprovalStatus.REJECTED
        assert closed.admin_id == admin.id
        assert closed.admin_notes == "Owner account deleted"
    assert (await seed.get(BookingApproval, other_approval.id)).status == ApprovalStatus.PENDING


@pytest.mark.asyncio
async def test_placement_after_owner_deletion_gets_fresh_approval(executor, seed):
    """Test that a booking placed after a deletion never collides with the deleted owner's approval."""
    first = await seed.user()
    second = await seed.user()
    bookings = BookingService(executor)
    old_booking, old_approval = await bookings.place_flight_booking(first.id, _flight_request())

    await UserService(executor).delete_user(first.id)
    booking, approval = await bookings.place_flight_booking(second.id, _flight_request())

    assert booking.id != old_booking.id
    assert approval.id != old_approval.id
    assert approval.status == ApprovalStatus.PENDING
    assert await seed.count(BookingApproval, BookingApproval.status == ApprovalStatus.PENDING.value) == 1
