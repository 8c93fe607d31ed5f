"""FastAPI dependencies."""

from collections.abc import Awaitable, Callable
from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_scheduler.core.security import decode_access_token
from clinic_scheduler.database import get_db
from clinic_scheduler.repositories.appointment_repository import (
    AppointmentRepository,
    SqlAppointmentRepository,
)
from clinic_scheduler.schemas.clinics import ClinicContext, ClinicRole
from clinic_scheduler.services.appointment_service import AppointmentService
from clinic_scheduler.services.audit_service import AuditService
from clinic_scheduler.services.clinic_service import ClinicService

# Roles allowed to book and edit appointments
SCHEDULING_ROLES = frozenset(
    {ClinicRole.ADMIN, ClinicRole.DOCTOR, ClinicRole.NURSE, ClinicRole.RECEPTIONIST}
)
# Roles allowed to cancel appointments
CANCELLATION_ROLES = frozenset({ClinicRole.ADMIN, ClinicRole.DOCTOR, ClinicRole.RECEPTIONIST})

# Security
security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> UUID:
    """
    Extract and validate user ID from JWT token.

    Args:
        credentials: Bearer token credentials

    Returns:
        User ID from token

    Raises:
        HTTPException: If token is missing, invalid or expired
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise _unauthorized("Could not validate credentials")

    user_id_str = payload.get("sub")
    if user_id_str is None or not isinstance(user_id_str, str):
        raise _unauthorized("Could not validate credentials")

    try:
        return UUID(user_id_str)
    except ValueError:
        raise _unauthorized("Invalid user ID format")


async def get_clinic_context(
    user_id: Annotated[UUID, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ClinicContext:
    """
    Resolve the clinic the current user acts in.

    Raises:
        HTTPException: If the user has no clinic assigned
    """
    context = await ClinicService.get_clinic_context(db, user_id)

    if context is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No clinic assigned",
        )

    return context


def require_roles(
    allowed: frozenset[ClinicRole],
) -> Callable[[ClinicContext], Awaitable[ClinicContext]]:
    """Build a dependency that only lets the given clinic roles through."""

    async def check_role(
        context: Annotated[ClinicContext, Depends(get_clinic_context)],
    ) -> ClinicContext:
        if context.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Forbidden",
            )
        return context

    return check_role


def get_appointment_repository(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> AppointmentRepository:
    """Get the appointment repository bound to the request session."""
    return SqlAppointmentRepository(db)


def get_appointment_service(
    repository: Annotated[AppointmentRepository, Depends(get_appointment_repository)],
) -> AppointmentService:
    """Get the appointment service."""
    return AppointmentService(repository)


def get_audit_service(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> AuditService:
    """Get the audit service."""
    return AuditService(db)


# Type aliases for dependency injection
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
CurrentClinic = Annotated[ClinicContext, Depends(get_clinic_context)]
SchedulingMember = Annotated[ClinicContext, Depends(require_roles(SCHEDULING_ROLES))]
CancellingMember = Annotated[ClinicContext, Depends(require_roles(CANCELLATION_ROLES))]
Appointments = Annotated[AppointmentService, Depends(get_appointment_service)]
AuditTrail = Annotated[AuditService, Depends(get_audit_service)]
