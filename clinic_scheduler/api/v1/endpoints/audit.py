"""Audit log endpoints."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Query, status

from clinic_scheduler.dependencies import AuditTrail, CurrentClinic
from clinic_scheduler.schemas.audit import AuditAction, AuditLogFilters, AuditLogListResponse

router = APIRouter()


@router.get(
    "/",
    response_model=AuditLogListResponse,
    status_code=status.HTTP_200_OK,
    summary="List audit log entries",
)
async def list_audit_logs(
    member: CurrentClinic,
    audit: AuditTrail,
    user_id: UUID | None = Query(None, alias="userId"),
    action: AuditAction | None = Query(None),
    entity_type: str | None = Query(None, alias="entityType"),
    entity_id: str | None = Query(None, alias="entityId"),
    start_date: datetime | None = Query(None, alias="startDate"),
    end_date: datetime | None = Query(None, alias="endDate"),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200, alias="pageSize"),
) -> AuditLogListResponse:
    """
    List audit entries of the caller's clinic.

    Admins see all entries; other roles only see their own.
    """
    filters = AuditLogFilters(
        user_id=user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        start_date=start_date,
        end_date=end_date,
        page=page,
        page_size=page_size,
    )
    return await audit.list_logs(member, filters)
