"""
Ordered owned-collection registry for application-level cascading deletes.

The schema declares plain foreign keys without ON DELETE CASCADE, so every
aggregate root lists the tables it owns here, leaves first. A new table that
references ``users.id`` or ``trips.id`` must be registered below or deleting
its owner will fail on the foreign key.
"""

from dataclasses import dataclass, field
from typing import Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.schema import Table

from ..models import (
    Activity,
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
    UserSettings,
    WishlistItem,
)


@dataclass(frozen=True)
class OwnedCollection:
    """
    One table owned by an aggregate root through ``owner_key``.

    ``owned`` lists the collections that in turn belong to rows of this
    table; they are deleted first.
    """

    table: Table
    owner_key: str
    owned: Sequence["OwnedCollection"] = field(default_factory=tuple)

    @property
    def name(self) -> str:
        return self.table.name

    async def delete_owned_by(self, session: AsyncSession, owner_ids: Sequence[int]) -> dict[str, int]:
        """
        Delete every row whose ``owner_key`` is in ``owner_ids``, children first.

        Args:
            session: Transactional session of the calling unit of work
            owner_ids: Ids of the owning rows

        Returns:
            Deleted row counts keyed by table name
        """
        counts: dict[str, int] = {}
        if not owner_ids:
            counts[self.name] = 0
            return counts

        owner_column = self.table.c[self.owner_key]

        if self.owned:
            ids = list(
                (await session.execute(select(self.table.c.id).where(owner_column.in_(owner_ids)))).scalars()
            )
            for child in self.owned:
                for name, count in (await child.delete_owned_by(session, ids)).items():
                    counts[name] = counts.get(name, 0) + count

        result = await session.execute(delete(self.table).where(owner_column.in_(owner_ids)))
        counts[self.name] = counts.get(self.name, 0) + result.rowcount
        return counts


async def delete_collections(
    session: AsyncSession,
    collections: Sequence[OwnedCollection],
    owner_ids: Sequence[int],
) -> dict[str, int]:
    """Delete ``collections`` in order for ``owner_ids`` and merge their counts."""
    counts: dict[str, int] = {}
    for collection in collections:
        for name, count in (await collection.delete_owned_by(session, owner_ids)).items():
            counts[name] = counts.get(name, 0) + count
    return counts


# Activities reference both trip days and trip bookings, so they go first
TRIP_OWNED: tuple[OwnedCollection, ...] = (
    OwnedCollection(
        TripDay.__table__,
        "trip_id",
        owned=(OwnedCollection(Activity.__table__, "trip_day_id"),),
    ),
    OwnedCollection(TripBooking.__table__, "trip_id"),
)

USER_OWNED: tuple[OwnedCollection, ...] = (
    OwnedCollection(Notification.__table__, "user_id"),
    OwnedCollection(SearchAnalytics.__table__, "user_id"),
    OwnedCollection(WishlistItem.__table__, "user_id"),
    OwnedCollection(UserSettings.__table__, "user_id"),
    OwnedCollection(FlightSearch.__table__, "user_id"),
    OwnedCollection(FlightBooking.__table__, "user_id"),
    OwnedCollection(HotelSearch.__table__, "user_id"),
    OwnedCollection(HotelBooking.__table__, "user_id"),
    OwnedCollection(Trip.__table__, "user_id", owned=TRIP_OWNED),
    OwnedCollection(Review.__table__, "user_id"),
)
