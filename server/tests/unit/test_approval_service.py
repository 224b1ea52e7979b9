"""Unit tests for the booking approval state machine."""

import json

import pytest

from tripsage.core.errors import AlreadyDecided, NotFound, OpenApprovalExists
from tripsage.models import (
    AdminLog,
    ApprovalStatus,
    BookingApproval,
    BookingType,
    FlightBooking,
    HotelBooking,
    Notification,
)
from tripsage.services import ApprovalService, AuditService, BookingRef, NotificationService


async def _side_effect_counts(seed, approval_id: int, user_id: int) -> tuple[int, int]:
    logs = await seed.count(AdminLog, AdminLog.action.like("booking_%"))
    notifications = await seed.count(Notification, Notification.user_id == user_id)
    return logs, notifications


@pytest.mark.asyncio
async def test_approve_flight_confirms_booking(executor, seed):
    """Test that approving a flight booking sets its lowercase status to confirmed."""
    admin = await seed.admin()
    owner = await seed.user()
    booking, approval = await seed.pending_flight(owner.id)

    decided = await ApprovalService(executor).decide(approval.id, "APPROVED", admin.id, notes="Looks good")

    assert decided.status == ApprovalStatus.APPROVED
    assert decided.admin_id == admin.id
    assert decided.admin_notes == "Looks good"
    assert (await seed.get(FlightBooking, booking.id)).status == "confirmed"


@pytest.mark.asyncio
async def test_reject_flight_cancels_booking(executor, seed):
    admin = await seed.admin()
    owner = await seed.user()
    booking, approval = await seed.pending_flight(owner.id)

    decided = await ApprovalService(executor).decide(approval.id, "REJECTED", admin.id)

    assert decided.status == ApprovalStatus.REJECTED
    assert (await seed.get(FlightBooking, booking.id)).status == "cancelled"


@pytest.mark.asyncio
async def test_approve_hotel_uses_uppercase_status(executor, seed):
    """Test that hotel bookings keep their uppercase status casing."""
    admin = await seed.admin()
    owner = await seed.user()
    booking, approval = await seed.pending_hotel(owner.id)

    await ApprovalService(executor).decide(approval.id, "APPROVED", admin.id)

    assert (await seed.get(HotelBooking, booking.id)).status == "CONFIRMED"


@pytest.mark.asyncio
async def test_reject_hotel_uses_uppercase_status(executor, seed):
    admin = await seed.admin()
    owner = await seed.user()
    booking, approval = await seed.pending_hotel(owner.id)

    await ApprovalService(executor).decide(approval.id, "REJECTED", admin.id, notes="Overbooked")

    assert (await seed.get(HotelBooking, booking.id)).status == "CANCELLED"


@pytest.mark.asyncio
async def test_decision_writes_audit_row(executor, seed):
    """Test that the audit row names the action, the booking entity and the approval."""
    admin = await seed.admin()
    owner = await seed.user()
    booking, approval = await seed.pending_hotel(owner.id)

    await ApprovalService(executor).decide(approval.id, "REJECTED", admin.id, notes="Overbooked")

    async with seed.database.session_factory() as session:
        logs = await AuditService(session).get_admin_logs_by_admin_id(admin.id)

    assert len(logs) == 1
    log = logs[0]
    assert log.action == "booking_rejected"
    assert log.entity_type == "hotel_booking"
    assert log.entity_id == booking.id
    details = json.loads(log.details)
    assert details["approval_id"] == approval.id
    assert details["status"] == "REJECTED"
    assert details["notes"] == "Overbooked"
    assert details["booking"]["booking_reference"] == booking.booking_reference


@pytest.mark.asyncio
async def test_approval_notifies_owner(executor, seed):
    admin = await seed.admin()
    owner = await seed.user()
    booking, approval = await seed.pending_flight(owner.id)

    await ApprovalService(executor).decide(approval.id, "APPROVED", admin.id)

    async with seed.database.session_factory() as session:
        notifications = await NotificationService(session).get_user_notifications(owner.id)

    assert len(notifications) == 1
    notification = notifications[0]
    assert notification.title == "Flight Booking Confirmed"
    assert notification.message == (
        f"Your booking for flight {booking.flight_number} has been approved and confirmed."
    )
    assert notification.type == "success"
    assert notification.admin_id == admin.id
    assert notification.is_read is False


@pytest.mark.asyncio
async def test_rejection_notice_quotes_notes(executor, seed):
    admin = await seed.admin()
    owner = await seed.user()
    _, approval = await seed.pending_hotel(owner.id)

    await ApprovalService(executor).decide(approval.id, "REJECTED", admin.id, notes="No rooms left")

    async with seed.database.session_factory() as session:
        [notification] = await NotificationService(session).get_user_notifications(owner.id)

    assert notification.title == "Hotel Booking Rejected"
    assert notification.message == "Your booking at Hotel Aurora has been rejected. Reason: No rooms left"
    assert notification.type == "warning"


@pytest.mark.asyncio
async def test_rejection_without_notes(executor, seed):
    admin = await seed.admin()
    owner = await seed.user()
    _, approval = await seed.pending_hotel(owner.id)

    await ApprovalService(executor).decide(approval.id, "REJECTED", admin.id)

    async with seed.database.session_factory() as session:
        [notification] = await NotificationService(session).get_user_notifications(owner.id)

    assert notification.message.endswith("Reason: Not specified")


@pytest.mark.asyncio
async def test_rejection_notification_type_follows_settings(executor, seed, monkeypatch):
    from tripsage.core.config import settings

    monkeypatch.setattr(settings, "rejection_notification_type", "error")
    admin = await seed.admin()
    owner = await seed.user()
    _, approval = await seed.pending_flight(owner.id)

    await ApprovalService(executor).decide(approval.id, "REJECTED", admin.id)

    async with seed.database.session_factory() as session:
        [notification] = await NotificationService(session).get_user_notifications(owner.id)
    assert notification.type == "error"


@pytest.mark.asyncio
async def test_second_decision_is_rejected_and_changes_nothing(executor, seed):
    """Test that an already decided approval cannot be decided again."""
    admin = await seed.admin()
    other_admin = await seed.admin()
    owner = await seed.user()
    booking, approval = await seed.pending_flight(owner.id)
    service = ApprovalService(executor)

    await service.decide(approval.id, "APPROVED", admin.id, notes="first")
    before = await _side_effect_counts(seed, approval.id, owner.id)

    for decision in ("APPROVED", "REJECTED"):
        with pytest.raises(AlreadyDecided) as exc_info:
            await service.decide(approval.id, decision, other_admin.id, notes="second")
        assert exc_info.value.status == "APPROVED"

    stored = await seed.get(BookingApproval, approval.id)
    assert stored.status == ApprovalStatus.APPROVED
    assert stored.admin_id == admin.id
    assert stored.admin_notes == "first"
    assert (await seed.get(FlightBooking, booking.id)).status == "confirmed"
    assert await _side_effect_counts(seed, approval.id, owner.id) == before


@pytest.mark.asyncio
async def test_unknown_approval(executor, seed):
    admin = await seed.admin()

    with pytest.raises(NotFound) as exc_info:
        await ApprovalService(executor).decide(9999, "APPROVED", admin.id)

    assert exc_info.value.entity == "booking_approval"


@pytest.mark.asyncio
async def test_missing_booking_rolls_back_transition(executor, seed):
    """Test that an approval whose booking is gone stays PENDING."""
    admin = await seed.admin()
    approval = await seed.approval(BookingType.FLIGHT, 4242)

    with pytest.raises(NotFound) as exc_info:
        await ApprovalService(executor).decide(approval.id, "APPROVED", admin.id)

    assert exc_info.value.entity == "flight_booking"
    assert (await seed.get(BookingApproval, approval.id)).status == ApprovalStatus.PENDING


@pytest.mark.parametrize(
    "target, attribute",
    [
        (BookingRef, "set_status"),
        (AuditService, "record"),
        (NotificationService, "enqueue"),
    ],
)
@pytest.mark.asyncio
async def test_failure_mid_decision_leaves_no_trace(executor, seed, monkeypatch, target, attribute):
    """Test that a failure at the status sync, audit or notification step rolls back everything."""
    admin = await seed.admin()
    owner = await seed.user()
    booking, approval = await seed.pending_hotel(owner.id)

    async def fail(*args, **kwargs):
        raise RuntimeError(f"{attribute} failed")

    monkeypatch.setattr(target, attribute, fail)

    with pytest.raises(RuntimeError):
        await ApprovalService(executor).decide(approval.id, "APPROVED", admin.id)

    assert (await seed.get(BookingApproval, approval.id)).status == ApprovalStatus.PENDING
    assert (await seed.get(HotelBooking, booking.id)).status == "PENDING"
    assert await seed.count(AdminLog, AdminLog.entity_id == booking.id) == 0
    assert await seed.count(Notification, Notification.user_id == owner.id) == 0


@pytest.mark.asyncio
async def test_open_approval_for_existing_booking(executor, seed):
    owner = await seed.user()
    booking = await seed.hotel_booking(owner.id, status="CANCELLED")

    approval = await ApprovalService(executor).open_approval(BookingType.HOTEL, booking.id)

    assert approval.status == ApprovalStatus.PENDING
    assert approval.booking_type == "HOTEL"
    assert approval.booking_id == booking.id


@pytest.mark.asyncio
async def test_open_approval_refuses_second_pending(executor, seed):
    """Test that a booking never has two PENDING approvals at once."""
    owner = await seed.user()
    booking, approval = await seed.pending_flight(owner.id)

    with pytest.raises(OpenApprovalExists) as exc_info:
        await ApprovalService(executor).open_approval("FLIGHT", booking.id)

    assert exc_info.value.approval_id == approval.id
    assert await seed.count(BookingApproval, BookingApproval.booking_id == booking.id) == 1


@pytest.mark.asyncio
async def test_open_approval_after_decision(executor, seed):
    """Test that a decided booking can be sent back for review."""
    admin = await seed.admin()
    owner = await seed.user()
    booking, approval = await seed.pending_flight(owner.id)
    service = ApprovalService(executor)
    await service.decide(approval.id, "REJECTED", admin.id)

    reopened = await service.open_approval("FLIGHT", booking.id)

    assert reopened.id != approval.id
    assert reopened.status == ApprovalStatus.PENDING


@pytest.mark.asyncio
async def test_open_approval_unknown_booking(executor):
    with pytest.raises(NotFound):
        await ApprovalService(executor).open_approval("HOTEL", 777)


@pytest.mark.asyncio
async def test_open_approval_unknown_type(executor):
    with pytest.raises(ValueError):
        await ApprovalService(executor).open_approval("CRUISE", 1)


@pytest.mark.asyncio
async def test_list_and_get_approvals(executor, seed):
    admin = await seed.admin()
    owner = await seed.user()
    _, first = await seed.pending_flight(owner.id)
    _, second = await seed.pending_hotel(owner.id)
    service = ApprovalService(executor)
    await service.decide(first.id, "APPROVED", admin.id)

    everything = await service.get_booking_approvals()
    pending = await service.get_booking_approvals(status="PENDING")

    assert {a.id for a in everything} == {first.id, second.id}
    assert [a.id for a in pending] == [second.id]
    assert (await service.get_approval(first.id)).status == ApprovalStatus.APPROVED

    with pytest.raises(NotFound):
        await service.get_approval(9999)
