#!/usr/bin/env python3
"""Setup script for the TripSage booking API."""

import asyncio
import logging
import sys
from datetime import datetime, timedelta
from decimal import Decimal
from pathlib import Path

# Add the server directory to the Python path
server_dir = Path(__file__).parent.parent / "server"
sys.path.insert(0, str(server_dir))

from alembic import command
from alembic.config import Config
from sqlalchemy import func, select

from tripsage.core.config import settings
from tripsage.core.database import Database
from tripsage.core.transaction import TransactionExecutor
from tripsage.models import User, UserRole
from tripsage.schemas.booking import PlaceFlightBookingRequest
from tripsage.services import BookingService

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def setup_database():
    """Apply every Alembic migration up to head."""
    logger.info("Setting up database...")

    alembic_cfg = Config(str(server_dir / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(server_dir / "db" / "alembic"))

    logger.info("Running database migrations...")
    command.upgrade(alembic_cfg, "head")
    logger.info("Database migrations completed")


async def create_sample_data(database: Database):
    """Create an administrator, a traveller and one booking awaiting review."""
    logger.info("Creating sample data...")

    async with database.session_factory() as db:
        existing_users = await db.scalar(select(func.count()).select_from(User))
        if existing_users:
            logger.info("Sample data already exists, skipping...")
            return

        admin = User(username="admin", email="admin@tripsage.app", role=UserRole.ADMIN.value)
        traveller = User(
            username="traveller",
            email="traveller@tripsage.app",
            first_name="Ada",
            last_name="Lovelace",
        )
        db.add_all([admin, traveller])
        await db.commit()
        traveller_id = traveller.id

    departure = datetime.utcnow().replace(microsecond=0) + timedelta(days=30)
    booking, approval = await BookingService(TransactionExecutor(database)).place_flight_booking(
        traveller_id,
        PlaceFlightBookingRequest(
            flight_number="FI615",
            airline="Icelandair",
            departure_code="JFK",
            arrival_code="KEF",
            departure_time=departure,
            arrival_time=departure + timedelta(hours=6),
            passenger_name="Ada Lovelace",
            price=Decimal("499.00"),
        ),
    )
    logger.info(f"Sample flight booking {booking.id} awaiting approval {approval.id}")
    logger.info("Sample data created successfully!")


async def seed():
    database = Database.from_settings(settings)
    try:
        await create_sample_data(database)
    finally:
        await database.dispose()


def main():
    """Main setup function."""
    logger.info("Starting TripSage booking API setup...")

    # Migrations run their own event loop
    setup_database()

    asyncio.run(seed())

    logger.info("Setup completed successfully!")
    logger.info("You can now start the API server with: cd server && uvicorn tripsage.main:app --reload")


if __name__ == "__main__":
    main()
