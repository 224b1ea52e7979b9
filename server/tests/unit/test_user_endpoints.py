"""Unit tests for the caller-facing booking and notification endpoints."""

import pytest

from tripsage.models import BookingApproval, HotelBooking

FLIGHT = {
    "flight_number": "SK901",
    "airline": "SAS",
    "departure_code": "CPH",
    "arrival_code": "EWR",
    "departure_time": "2030-05-01T10:00:00",
    "arrival_time": "2030-05-01T18:30:00",
    "price": "512.40",
}

HOTEL = {
    "hotel_id": "HX-9",
    "hotel_name": "Hotel Aurora",
    "hotel_city": "Reykjavik",
    "hotel_country": "Iceland",
    "room_type": "Double",
    "check_in_date": "2030-05-02",
    "check_out_date": "2030-05-05",
    "guest_name": "Ada Lovelace",
    "guest_email": "ada@example.com",
    "price": "610.50",
}


@pytest.mark.asyncio
async def test_place_flight_booking(test_client, seed, auth_headers):
    user = await seed.user()

    response = await test_client.post("/v1/booking/flight", json=FLIGHT, headers=auth_headers(user.id))

    assert response.status_code == 201
    body = response.json()
    assert body["booking"]["user_id"] == user.id
    assert body["booking"]["status"] == "pending"
    assert body["approval"]["booking_type"] == "FLIGHT"
    assert body["approval"]["booking_id"] == body["booking"]["id"]
    assert body["approval"]["status"] == "PENDING"


@pytest.mark.asyncio
async def test_place_hotel_booking_then_decide(test_client, seed, auth_headers):
    """Test the full review loop: placement, admin decision, owner notification."""
    user = await seed.user()
    admin = await seed.admin()

    placed = await test_client.post("/v1/booking/hotel", json=HOTEL, headers=auth_headers(user.id))
    approval_id = placed.json()["approval"]["id"]
    decided = await test_client.post(
        "/v1/admin/approvals/decide",
        json={"approval_id": approval_id, "decision": "APPROVED"},
        headers=auth_headers(admin.id, ["admin"]),
    )
    listed = await test_client.post("/v1/notifications/list", json={}, headers=auth_headers(user.id))

    assert placed.status_code == 201
    assert decided.status_code == 200
    booking_id = placed.json()["booking"]["id"]
    assert (await seed.get(HotelBooking, booking_id)).status == "CONFIRMED"
    titles = [n["title"] for n in listed.json()["notifications"]]
    assert set(titles) == {"Hotel Booking Under Review", "Hotel Booking Confirmed"}
    assert listed.json()["unread"] == 2


@pytest.mark.asyncio
async def test_booking_requires_authentication(test_client):
    response = await test_client.post("/v1/booking/flight", json=FLIGHT)

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_booking_for_unknown_user_is_constraint_violation(test_client, seed, auth_headers):
    response = await test_client.post("/v1/booking/hotel", json=HOTEL, headers=auth_headers(8888))

    assert response.status_code == 400
    assert response.json()["code"] == "CONSTRAINT_VIOLATION"
    assert await seed.count(BookingApproval) == 0


@pytest.mark.asyncio
async def test_invalid_stay_is_rejected(test_client, seed, auth_headers):
    user = await seed.user()

    response = await test_client.post(
        "/v1/booking/hotel",
        json={**HOTEL, "check_out_date": HOTEL["check_in_date"]},
        headers=auth_headers(user.id),
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_mark_notification_read(test_client, seed, auth_headers):
    user = await seed.user()
    other = await seed.user()
    await test_client.post("/v1/booking/flight", json=FLIGHT, headers=auth_headers(user.id))
    listed = await test_client.post("/v1/notifications/list", json={}, headers=auth_headers(user.id))
    notification_id = listed.json()["notifications"][0]["id"]

    forbidden = await test_client.post(
        "/v1/notifications/read", json={"notification_id": notification_id}, headers=auth_headers(other.id)
    )
    marked = await test_client.post(
        "/v1/notifications/read", json={"notification_id": notification_id}, headers=auth_headers(user.id)
    )
    relisted = await test_client.post("/v1/notifications/list", json={}, headers=auth_headers(user.id))

    assert forbidden.status_code == 404
    assert marked.status_code == 200
    assert marked.json()["is_read"] is True
    assert relisted.json()["unread"] == 0
