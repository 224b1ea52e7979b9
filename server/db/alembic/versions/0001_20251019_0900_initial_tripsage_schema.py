"""Initial TripSage schema

Revision ID: 0001
Revises:
Create Date: 2025-10-19 09:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps(updated: bool = False) -> list[sa.Column]:
    columns = [sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False)]
    if updated:
        columns.append(sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False))
    return columns


def upgrade() -> None:
    """Upgrade database schema."""
    # Foreign keys carry no ON DELETE CASCADE; owners are removed by the services

    # Create users table
    op.create_table('users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password', sa.String(length=255), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(updated=True),
        sa.CheckConstraint('length(username) > 0', name='ck_user_username_not_empty'),
        sa.CheckConstraint("role IN ('user', 'admin')", name='ck_user_role_valid'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('username'),
        sa.UniqueConstraint('email')
    )

    # Create per-user collections
    op.create_table('user_settings',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('theme', sa.String(length=20), nullable=False),
        sa.Column('language', sa.String(length=10), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('email_notifications', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id')
    )

    op.create_table('wishlist_items',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('item_type', sa.String(length=32), nullable=False),
        sa.Column('item_id', sa.String(length=128), nullable=False),
        sa.Column('item_name', sa.Text(), nullable=False),
        sa.Column('additional_data', sa.JSON(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_wishlist_items_user_id'), 'wishlist_items', ['user_id'], unique=False)

    op.create_table('reviews',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('target_type', sa.String(length=32), nullable=False),
        sa.Column('target_id', sa.String(length=128), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('rating >= 1 AND rating <= 5', name='ck_review_rating_range'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_reviews_user_id'), 'reviews', ['user_id'], unique=False)

    op.create_table('flight_searches',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('origin_location_code', sa.String(length=8), nullable=False),
        sa.Column('destination_location_code', sa.String(length=8), nullable=False),
        sa.Column('departure_date', sa.Date(), nullable=False),
        sa.Column('return_date', sa.Date(), nullable=True),
        sa.Column('adults', sa.Integer(), nullable=False),
        sa.Column('travel_class', sa.String(length=20), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_flight_searches_user_id'), 'flight_searches', ['user_id'], unique=False)

    op.create_table('hotel_searches',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('location', sa.Text(), nullable=False),
        sa.Column('check_in_date', sa.Date(), nullable=False),
        sa.Column('check_out_date', sa.Date(), nullable=False),
        sa.Column('guests', sa.Integer(), nullable=False),
        sa.Column('rooms', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_hotel_searches_user_id'), 'hotel_searches', ['user_id'], unique=False)

    op.create_table('search_analytics',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('search_type', sa.String(length=32), nullable=False),
        sa.Column('query', sa.JSON(), nullable=True),
        sa.Column('result_count', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_search_analytics_user_id'), 'search_analytics', ['user_id'], unique=False)

    # Create booking tables
    op.create_table('flight_bookings',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('flight_number', sa.String(length=16), nullable=False),
        sa.Column('airline', sa.String(length=100), nullable=False),
        sa.Column('departure_code', sa.String(length=8), nullable=False),
        sa.Column('arrival_code', sa.String(length=8), nullable=False),
        sa.Column('departure_time', sa.DateTime(), nullable=False),
        sa.Column('arrival_time', sa.DateTime(), nullable=False),
        sa.Column('cabin_class', sa.String(length=20), nullable=False),
        sa.Column('passenger_name', sa.Text(), nullable=True),
        sa.Column('booking_reference', sa.String(length=32), nullable=False),
        sa.Column('price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        *_timestamps(updated=True),
        sa.CheckConstraint('price >= 0', name='ck_flight_booking_price_non_negative'),
        sa.CheckConstraint('arrival_time >= departure_time', name='ck_flight_booking_times_ordered'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('booking_reference'),
        sqlite_autoincrement=True,
    )
    op.create_index(op.f('ix_flight_bookings_user_id'), 'flight_bookings', ['user_id'], unique=False)
    op.create_index(op.f('ix_flight_bookings_status'), 'flight_bookings', ['status'], unique=False)

    op.create_table('hotel_bookings',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('hotel_id', sa.String(length=64), nullable=False),
        sa.Column('hotel_name', sa.Text(), nullable=False),
        sa.Column('hotel_city', sa.String(length=100), nullable=False),
        sa.Column('hotel_country', sa.String(length=100), nullable=False),
        sa.Column('room_type', sa.String(length=64), nullable=False),
        sa.Column('check_in_date', sa.Date(), nullable=False),
        sa.Column('check_out_date', sa.Date(), nullable=False),
        sa.Column('guests', sa.Integer(), nullable=False),
        sa.Column('rooms', sa.Integer(), nullable=False),
        sa.Column('guest_name', sa.Text(), nullable=False),
        sa.Column('guest_email', sa.String(length=255), nullable=False),
        sa.Column('booking_reference', sa.String(length=32), nullable=False),
        sa.Column('price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        *_timestamps(updated=True),
        sa.CheckConstraint('price >= 0', name='ck_hotel_booking_price_non_negative'),
        sa.CheckConstraint('check_out_date > check_in_date', name='ck_hotel_booking_dates_ordered'),
        sa.CheckConstraint('guests > 0 AND rooms > 0', name='ck_hotel_booking_occupancy_positive'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('booking_reference'),
        sqlite_autoincrement=True,
    )
    op.create_index(op.f('ix_hotel_bookings_user_id'), 'hotel_bookings', ['user_id'], unique=False)
    op.create_index(op.f('ix_hotel_bookings_status'), 'hotel_bookings', ['status'], unique=False)

    # Create trip aggregate
    op.create_table('trips',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('destination', sa.Text(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('budget', sa.String(length=64), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        *_timestamps(updated=True),
        sa.CheckConstraint('length(title) > 0', name='ck_trip_title_not_empty'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_trips_user_id'), 'trips', ['user_id'], unique=False)

    op.create_table('trip_days',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('trip_id', sa.Integer(), nullable=False),
        sa.Column('day_number', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=True),
        sa.Column('title', sa.Text(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('day_number > 0', name='ck_trip_day_number_positive'),
        sa.ForeignKeyConstraint(['trip_id'], ['trips.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_trip_days_trip_id'), 'trip_days', ['trip_id'], unique=False)

    op.create_table('bookings',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('trip_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=32), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('provider', sa.Text(), nullable=True),
        sa.Column('price', sa.String(length=64), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('confirmed', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['trip_id'], ['trips.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_bookings_trip_id'), 'bookings', ['trip_id'], unique=False)

    op.create_table('activities',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('trip_day_id', sa.Integer(), nullable=False),
        sa.Column('booking_id', sa.Integer(), nullable=True),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('time', sa.String(length=32), nullable=True),
        sa.Column('location', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['trip_day_id'], ['trip_days.id']),
        sa.ForeignKeyConstraint(['booking_id'], ['bookings.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_activities_trip_day_id'), 'activities', ['trip_day_id'], unique=False)

    # Create approval workflow, audit and notification tables
    op.create_table('booking_approvals',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('booking_type', sa.String(length=20), nullable=False),
        sa.Column('booking_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('admin_id', sa.Integer(), nullable=True),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        *_timestamps(updated=True),
        sa.CheckConstraint("booking_type IN ('FLIGHT', 'HOTEL')", name='ck_approval_booking_type_valid'),
        sa.CheckConstraint("status IN ('PENDING', 'APPROVED', 'REJECTED')", name='ck_approval_status_valid'),
        sa.ForeignKeyConstraint(['admin_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_booking_approvals_status'), 'booking_approvals', ['status'], unique=False)
    op.create_index('ix_booking_approvals_booking', 'booking_approvals', ['booking_type', 'booking_id'], unique=False)

    op.create_table('admin_logs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('admin_id', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(length=64), nullable=False),
        sa.Column('entity_type', sa.String(length=64), nullable=True),
        sa.Column('entity_id', sa.Integer(), nullable=True),
        sa.Column('details', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['admin_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_admin_logs_admin_id'), 'admin_logs', ['admin_id'], unique=False)
    op.create_index(op.f('ix_admin_logs_action'), 'admin_logs', ['action'], unique=False)
    op.create_index(op.f('ix_admin_logs_created_at'), 'admin_logs', ['created_at'], unique=False)

    op.create_table('notifications',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('admin_id', sa.Integer(), nullable=True),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('link', sa.Text(), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("type IN ('success', 'error', 'info', 'warning')", name='ck_notification_type_valid'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['admin_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_notifications_user_id'), 'notifications', ['user_id'], unique=False)
    op.create_index(op.f('ix_notifications_created_at'), 'notifications', ['created_at'], unique=False)


def downgrade() -> None:
    """Downgrade database schema."""
    for table in (
        'notifications',
        'admin_logs',
        'booking_approvals',
        'activities',
        'bookings',
        'trip_days',
        'trips',
        'hotel_bookings',
        'flight_bookings',
        'search_analytics',
        'hotel_searches',
        'flight_searches',
        'reviews',
        'wishlist_items',
        'user_settings',
        'users',
    ):
        op.drop_table(table)
