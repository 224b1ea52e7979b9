"""Administrative operation Pydantic schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class DeleteUserRequest(BaseModel):
    """Request schema for deleting a user."""

    user_id: int = Field(..., ge=1, description="User to delete")


class RemoveTripRequest(BaseModel):
    """Request schema for removing a trip."""

    trip_id: int = Field(..., ge=1, description="Trip to remove")
    reason: str = Field(..., min_length=1, max_length=1000, description="Reason shown to the trip owner")


class DeletionResult(BaseModel):
    """Rows removed by a cascading delete, keyed by table."""

    deleted: bool = Field(True, description="Whether the root row was deleted")
    deleted_rows: dict[str, int] = Field(..., description="Deleted row counts per table")


class ListAdminLogsRequest(BaseModel):
    """Request schema for listing audit rows."""

    admin_id: Optional[int] = Field(None, ge=1, description="Only rows written by this admin")
    entity_type: Optional[str] = Field(None, min_length=1, max_length=50, description="Only rows about this kind of entity")
    entity_id: Optional[int] = Field(None, ge=1, description="Only rows about this entity; requires entity_type")
    limit: int = Field(100, ge=1, le=500, description="Maximum rows to return")

    @model_validator(mode="after")
    def check_filters(self) -> "ListAdminLogsRequest":
        if (self.entity_type is None) != (self.entity_id is None):
            raise ValueError("entity_type and entity_id must be given together")
        if self.entity_id is not None and self.admin_id is not None:
            raise ValueError("filter by admin_id or by entity, not both")
        return self


class AdminLog(BaseModel):
    """Audit log row response schema."""

    id: int
    admin_id: int
    action: str
    entity_type: Optional[str] = None
    entity_id: Optional[int] = None
    details: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AdminLogList(BaseModel):
    """Audit log list response."""

    logs: list[AdminLog]
    total: int = Field(..., ge=0)
