"""Unit tests for administrative trip removal."""

import pytest
from sqlalchemy import select

from tripsage.core.errors import NotFound
from tripsage.models import Activity, AdminLog, Notification, Trip, TripBooking, TripDay
from tripsage.services import NotificationService, TripService


@pytest.mark.asyncio
async def test_remove_trip_deletes_aggregate(executor, seed):
    admin = await seed.admin()
    owner = await seed.user()
    trip = await seed.trip(owner.id, days=3)
    other_trip = await seed.trip(owner.id, days=1, title="Weekend in Oslo")

    counts = await TripService(executor).remove_trip(trip.id, admin.id, "Violates content policy")

    assert counts == {"activities": 3, "trip_days": 3, "bookings": 1, "trips": 1}
    assert await seed.get(Trip, trip.id) is None
    assert await seed.count(TripDay, TripDay.trip_id == trip.id) == 0
    assert await seed.count(TripBooking, TripBooking.trip_id == trip.id) == 0
    # The owner's other trip is untouched
    assert await seed.count(TripDay, TripDay.trip_id == other_trip.id) == 1
    assert await seed.count(Activity) == 1


@pytest.mark.asyncio
async def test_remove_trip_audits_and_notifies(executor, seed):
    admin = await seed.admin()
    owner = await seed.user()
    trip = await seed.trip(owner.id, title="Iceland Ring Road")

    await TripService(executor).remove_trip(trip.id, admin.id, "Duplicate itinerary")

    async with seed.database.session_factory() as session:
        [notification] = await NotificationService(session).get_user_notifications(owner.id)
        [log] = (await session.scalars(select(AdminLog).where(AdminLog.action == "delete_trip"))).all()

    assert notification.title == "Trip Removed"
    assert notification.message == (
        'Your trip "Iceland Ring Road" has been removed by an administrator. Reason: Duplicate itinerary'
    )
    assert notification.type == "warning"
    assert log.entity_type == "trip"
    assert log.entity_id == trip.id
    assert log.details == "Trip deleted. Reason: Duplicate itinerary"


@pytest.mark.asyncio
async def test_remove_unknown_trip(executor, seed):
    admin = await seed.admin()

    with pytest.raises(NotFound) as exc_info:
        await TripService(executor).remove_trip(31337, admin.id, "Spam")

    assert exc_info.value.entity == "trip"
    assert await seed.count(AdminLog) == 0


@pytest.mark.asyncio
async def test_failed_notification_keeps_trip(executor, seed, monkeypatch):
    """Test that the trip survives when the owner notification cannot be written."""
    admin = await seed.admin()
    owner = await seed.user()
    trip = await seed.trip(owner.id)

    async def fail(*args, **kwargs):
        raise RuntimeError("notification store down")

    monkeypatch.setattr(NotificationService, "enqueue", fail)

    with pytest.raises(RuntimeError):
        await TripService(executor).remove_trip(trip.id, admin.id, "Spam")

    assert await seed.get(Trip, trip.id) is not None
    assert await seed.count(TripDay, TripDay.trip_id == trip.id) == 2
    assert await seed.count(AdminLog) == 0
    assert await seed.count(Notification) == 0
