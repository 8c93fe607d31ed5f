"""Audit trail recording and retrieval."""

import math

import structlog
from sqlalchemy import and_, func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_scheduler.models.audit_logs import audit_logs
from clinic_scheduler.models.users import users
from clinic_scheduler.schemas.audit import (
    AuditLogEntry,
    AuditLogFilters,
    AuditLogListResponse,
    AuditLogResponse,
)
from clinic_scheduler.schemas.clinics import ClinicContext, ClinicRole
from clinic_scheduler.schemas.common import Pagination

logger = structlog.get_logger()


class AuditService:
    """Service for the audit trail of clinic data mutations."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def log(self, context: ClinicContext, entry: AuditLogEntry) -> None:
        """
        Record an audit entry.

        Recording is best effort: failures are logged and never surface to
        the caller, whose operation has already been committed.
        """
        try:
            await self.db.execute(
                insert(audit_logs).values(
                    clinic_id=context.clinic_id,
                    user_id=context.user_id,
                    action=entry.action.value,
                    entity_type=entry.entity_type,
                    entity_id=entry.entity_id,
                    entity_name=entry.entity_name,
                    ip_address=entry.ip_address,
                    user_agent=entry.user_agent,
                )
            )
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.warning(
                "audit_log_failed",
                error=str(e),
                action=entry.action.value,
                entity_type=entry.entity_type,
                entity_id=entry.entity_id,
            )

    async def list_logs(
        self,
        context: ClinicContext,
        filters: AuditLogFilters,
    ) -> AuditLogListResponse:
        """
        List audit entries of the caller's clinic, newest first.

        Admins see every entry of the clinic (optionally narrowed to one
        user); other roles only see their own entries.
        """
        conditions = [audit_logs.c.clinic_id == context.clinic_id]

        if context.role != ClinicRole.ADMIN:
            conditions.append(audit_logs.c.user_id == context.user_id)
        elif filters.user_id:
            conditions.append(audit_logs.c.user_id == filters.user_id)

        if filters.action:
            conditions.append(audit_logs.c.action == filters.action.value)

        if filters.entity_type:
            conditions.append(audit_logs.c.entity_type == filters.entity_type)

        if filters.entity_id:
            conditions.append(audit_logs.c.entity_id == filters.entity_id)

        if filters.start_date:
            conditions.append(audit_logs.c.created_at >= filters.start_date)

        if filters.end_date:
            conditions.append(audit_logs.c.created_at <= filters.end_date)

        count_stmt = select(func.count()).select_from(audit_logs).where(and_(*conditions))
        total = (await self.db.execute(count_stmt)).scalar() or 0

        stmt = (
            select(audit_logs, users.c.name.label("user_name"))
            .select_from(audit_logs.join(users, users.c.id == audit_logs.c.user_id))
            .where(and_(*conditions))
            .order_by(audit_logs.c.created_at.desc())
            .limit(filters.page_size)
            .offset((filters.page - 1) * filters.page_size)
        )
        result = await self.db.execute(stmt)
        items = [AuditLogResponse.model_validate(dict(row)) for row in result.mappings().all()]

        return AuditLogListResponse(
            data=items,
            pagination=Pagination(
                page=filters.page,
                limit=filters.page_size,
                total=total,
                pages=math.ceil(total / filters.page_size),
            ),
        )
