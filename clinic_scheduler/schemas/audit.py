"""Audit log schemas."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import Field

from clinic_scheduler.schemas.common import CamelModel, Pagination


class AuditAction(str, Enum):
    """Audited action."""

    CREATE = "CREATE"
    READ = "READ"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class AuditLogEntry(CamelModel):
    """Entry to record."""

    action: AuditAction
    entity_type: str
    entity_id: str
    entity_name: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None


class AuditLogResponse(CamelModel):
    """Recorded audit entry."""

    id: UUID
    user_id: UUID
    user_name: str
    action: AuditAction
    entity_type: str
    entity_id: str
    entity_name: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    created_at: datetime


class AuditLogFilters(CamelModel):
    """Schema for audit log filtering."""

    user_id: UUID | None = None
    action: AuditAction | None = None
    entity_type: str | None = None
    entity_id: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=50, ge=1, le=200)


class AuditLogListResponse(CamelModel):
    """Paginated audit entries."""

    data: list[AuditLogResponse]
    pagination: Pagination
