"""Test configuration and fixtures."""

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select

from tripsage.core.config import settings
from tripsage.core.database import Database
from tripsage.core.transaction import TransactionExecutor
from tripsage.models import (
    Activity,
    ApprovalStatus,
    BookingApproval,
    BookingType,
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
    UserRole,
    UserSettings,
    WishlistItem,
)


class Seeder:
    """Commits fixture rows through its own sessions, outside any unit of work under test."""

    def __init__(self, database: Database):
        self.database = database
        self._counter = 0

    def _next(self) -> int:
        self._counter += 1
        return self._counter

    async def _add(self, *rows):
        async with self.database.session_factory() as session:
            session.add_all(rows)
            await session.commit()
        return rows[0] if len(rows) == 1 else rows

    async def user(self, role: UserRole = UserRole.USER, username: Optional[str] = None) -> User:
        n = self._next()
        username = username or f"user{n}"
        return await self._add(
            User(username=username, email=f"{username}@example.com", role=role.value)
        )

    async def admin(self) -> User:
        return await self.user(role=UserRole.ADMIN, username=f"admin{self._next()}")

    async def flight_booking(self, user_id: int, status: str = "pending") -> FlightBooking:
        departure = datetime(2030, 6, 1, 9, 30)
        return await self._add(
            FlightBooking(
                user_id=user_id,
                flight_number=f"TS{100 + self._next()}",
                airline="TripSage Air",
                departure_code="LHR",
                arrival_code="JFK",
                departure_time=departure,
                arrival_time=departure + timedelta(hours=8),
                booking_reference=f"FLTEST{self._next():04d}",
                price=Decimal("420.00"),
                status=status,
            )
        )

    async def hotel_booking(self, user_id: int, status: str = "PENDING") -> HotelBooking:
        return await self._add(
            HotelBooking(
                user_id=user_id,
                hotel_id=f"H{self._next()}",
                hotel_name="Hotel Aurora",
                hotel_city="Reykjavik",
                hotel_country="Iceland",
                room_type="Double",
                check_in_date=date(2030, 6, 1),
                check_out_date=date(2030, 6, 4),
                guest_name="Ada Lovelace",
                guest_email="ada@example.com",
                booking_reference=f"HTTEST{self._next():04d}",
                price=Decimal("610.50"),
                status=status,
            )
        )

    async def approval(
        self,
        booking_type: BookingType,
        booking_id: int,
        status: ApprovalStatus = ApprovalStatus.PENDING,
    ) -> BookingApproval:
        return await self._add(
            BookingApproval(booking_type=booking_type.value, booking_id=booking_id, status=status.value)
        )

    async def pending_flight(self, user_id: int) -> tuple[FlightBooking, BookingApproval]:
        booking = await self.flight_booking(user_id)
        return booking, await self.approval(BookingType.FLIGHT, booking.id)

    async def pending_hotel(self, user_id: int) -> tuple[HotelBooking, BookingApproval]:
        booking = await self.hotel_booking(user_id)
        return booking, await self.approval(BookingType.HOTEL, booking.id)

    async def trip(self, user_id: int, days: int = 2, title: str = "Iceland Ring Road") -> Trip:
        """A trip with ``days`` days, one trip booking and one activity per day tied to it."""
        trip = await self._add(Trip(user_id=user_id, title=title, destination="Iceland"))
        booking = await self._add(TripBooking(trip_id=trip.id, type="hotel", title="Hotel Aurora"))
        for number in range(1, days + 1):
            day = await self._add(TripDay(trip_id=trip.id, day_number=number, title=f"Day {number}"))
            await self._add(
                Activity(trip_day_id=day.id, booking_id=booking.id, title=f"Check in, day {number}")
            )
        return trip

    async def dependents(self, user_id: int) -> None:
        """One row in every per-user collection, plus a trip and both booking kinds."""
        await self._add(
            UserSettings(user_id=user_id),
            WishlistItem(user_id=user_id, item_type="hotel", item_id="H1", item_name="Hotel Aurora"),
            Review(user_id=user_id, target_type="hotel", target_id="H1", title="Lovely", content="Great stay", rating=5),
            FlightSearch(
                user_id=user_id,
                origin_location_code="LHR",
                destination_location_code="KEF",
                departure_date=date(2030, 6, 1),
            ),
            HotelSearch(
                user_id=user_id,
                location="Reykjavik",
                check_in_date=date(2030, 6, 1),
                check_out_date=date(2030, 6, 4),
            ),
            SearchAnalytics(user_id=user_id, search_type="flight", query={"origin": "LHR"}, result_count=12),
            Notification(user_id=user_id, title="Welcome", message="Welcome to TripSage", type="info"),
        )
        await self.flight_booking(user_id)
        await self.hotel_booking(user_id)
        await self.trip(user_id)

    async def count(self, model, *criteria) -> int:
        async with self.database.session_factory() as session:
            return await session.scalar(select(func.count()).select_from(model).where(*criteria))

    async def get(self, model, row_id: int):
        async with self.database.session_factory() as session:
            return await session.get(model, row_id)


@pytest_asyncio.fixture(scope="function")
async def database(tmp_path):
    """File-backed SQLite store, so concurrent units of work get distinct connections."""
    database = Database(
        f"sqlite+aiosqlite:///{tmp_path / 'tripsage.db'}",
        pool_size=5,
        max_overflow=5,
        pool_timeout=5.0,
    )
    await database.create_all()

    yield database

    await database.dispose()


@pytest.fixture
def executor(database):
    """Transaction executor bound to the test store."""
    return TransactionExecutor(database)


@pytest.fixture
def seed(database):
    """Row factory for the test store."""
    return Seeder(database)


@pytest_asyncio.fixture(scope="function")
async def test_app(database):
    """Create a test FastAPI application around the test store."""
    from tripsage.main import create_app

    app = create_app(database)

    yield app

    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def test_client(test_app):
    """Create a test HTTP client."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def make_token(user_id: int, roles: Optional[list[str]] = None, expires_in: int = 3600) -> str:
    """Sign a bearer token the way the identity provider does."""
    payload = {
        "sub": str(user_id),
        "roles": roles or [],
        "exp": datetime.utcnow() + timedelta(seconds=expires_in),
    }
    return jwt.encode(payload, settings.bearer_token_secret, algorithm="HS256")


def bearer(user_id: int, roles: Optional[list[str]] = None) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id, roles)}"}


@pytest.fixture
def auth_headers():
    """Build Authorization headers for a user id and role list."""
    return bearer
