"""Audit log writes and read paths."""

import json
import logging
from typing import Any, Optional, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import AdminLog

logger = logging.getLogger(__name__)


class AuditService:
    """Service for the append-only admin audit trail."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def record(
        self,
        admin_id: int,
        action: str,
        entity_type: Optional[str] = None,
        entity_id: Optional[int] = None,
        details: Union[str, dict[str, Any], None] = None,
    ) -> AdminLog:
        """
        Append one audit row inside the caller's unit of work.

        The row is flushed, not committed; it becomes visible together with
        the mutation it describes.

        Args:
            admin_id: Acting administrator
            action: Verb describing the mutation (e.g. ``booking_approved``)
            entity_type: Kind of entity acted on
            entity_id: Id of the entity acted on
            details: Free text, or a dict stored as a JSON document

        Returns:
            The pending AdminLog row
        """
        if isinstance(details, dict):
            details = json.dumps(details, default=str, sort_keys=True)

        entry = AdminLog(
            admin_id=admin_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            details=details,
        )
        self.db.add(entry)
        await self.db.flush()
        await self.db.refresh(entry)

        logger.info(
            "Audit entry recorded",
            extra={
                "admin_id": admin_id,
                "action": action,
                "entity_type": entity_type,
                "entity_id": entity_id,
            }
        )
        return entry

    async def get_admin_logs_by_admin_id(self, admin_id: int, limit: int = 100) -> list[AdminLog]:
        """Audit rows written by one administrator, newest first."""
        result = await self.db.execute(
            select(AdminLog)
            .where(AdminLog.admin_id == admin_id)
            .order_by(AdminLog.created_at.desc(), AdminLog.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_recent_admin_logs(self, limit: int = 100) -> list[AdminLog]:
        result = await self.db.execute(
            select(AdminLog)
            .order_by(AdminLog.created_at.desc(), AdminLog.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_logs_for_entity(self, entity_type: str, entity_id: int, limit: int = 100) -> list[AdminLog]:
        """Audit rows describing one entity, oldest first."""
        result = await self.db.execute(
            select(AdminLog)
            .where(AdminLog.entity_type == entity_type, AdminLog.entity_id == entity_id)
            .order_by(AdminLog.created_at, AdminLog.id)
            .limit(limit)
        )
        return list(result.scalars().all())
