"""Appointment endpoints."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Query, Request, status

from clinic_scheduler.config import settings
from clinic_scheduler.core.exceptions import (
    BadRequestException,
    NotFoundException,
    exception_for,
)
from clinic_scheduler.dependencies import (
    Appointments,
    AuditTrail,
    CancellingMember,
    CurrentClinic,
    SchedulingMember,
)
from clinic_scheduler.schemas.appointments import (
    AppointmentCreate,
    AppointmentFilters,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentStatus,
    AppointmentStatusUpdate,
    AppointmentUpdate,
    CalendarEvent,
)
from clinic_scheduler.schemas.audit import AuditAction, AuditLogEntry
from clinic_scheduler.schemas.common import Pagination, ensure_utc
from clinic_scheduler.services.results import Failure

router = APIRouter()

ENTITY_TYPE = "Appointment"


def _audit_entry(
    request: Request,
    action: AuditAction,
    appointment_id: UUID,
    appointment: AppointmentResponse | None = None,
) -> AuditLogEntry:
    """Build an audit entry carrying the request origin."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        ip_address = forwarded.split(",")[0].strip()
    else:
        ip_address = request.headers.get("x-real-ip") or (
            request.client.host if request.client else None
        )

    return AuditLogEntry(
        action=action,
        entity_type=ENTITY_TYPE,
        entity_id=str(appointment_id),
        entity_name=f"Appointment - {appointment.patient.full_name}" if appointment else None,
        ip_address=ip_address,
        user_agent=request.headers.get("user-agent"),
    )


@router.post(
    "/",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Appointments"],
    summary="Create new appointment",
)
async def create_appointment(
    data: AppointmentCreate,
    request: Request,
    member: SchedulingMember,
    service: Appointments,
    audit: AuditTrail,
) -> AppointmentResponse:
    """
    Book an appointment in the caller's clinic.

    Returns 400 when the slot ends before it starts and 409 when the
    practitioner is already booked during the requested time.
    """
    result = await service.create(data, member.clinic_id, member.user_id)
    if isinstance(result, Failure):
        raise exception_for(result)

    appointment = result.value
    await audit.log(member, _audit_entry(request, AuditAction.CREATE, appointment.id, appointment))
    return appointment


@router.get(
    "/",
    response_model=AppointmentListResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="List appointments",
)
async def list_appointments(
    member: CurrentClinic,
    service: Appointments,
    status_filter: AppointmentStatus | None = Query(None, alias="status"),
    doctor_id: UUID | None = Query(None, alias="doctorId"),
    patient_id: UUID | None = Query(None, alias="patientId"),
    start_date: datetime | None = Query(None, alias="startDate"),
    end_date: datetime | None = Query(None, alias="endDate"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=500),
) -> AppointmentListResponse:
    """List the clinic's appointments ordered by start time."""
    filters = AppointmentFilters(
        clinic_id=member.clinic_id,
        doctor_id=doctor_id,
        patient_id=patient_id,
        status=status_filter,
        start_date=start_date,
        end_date=end_date,
    )

    result = await service.get_many(filters, page, limit)
    return AppointmentListResponse(
        data=result.items,
        pagination=Pagination(
            page=result.page,
            limit=result.limit,
            total=result.total,
            pages=result.pages,
        ),
    )


@router.get(
    "/calendar",
    response_model=list[CalendarEvent],
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Calendar events",
)
async def get_calendar_events(
    member: CurrentClinic,
    service: Appointments,
    start: datetime | None = Query(None),
    end: datetime | None = Query(None),
    doctor_id: UUID | None = Query(None, alias="doctorId"),
) -> list[CalendarEvent]:
    """Get calendar events for appointments starting within [start, end]."""
    if start is None or end is None:
        raise BadRequestException("Start and end dates are required")

    return await service.get_calendar_events(
        member.clinic_id,
        ensure_utc(start),
        ensure_utc(end),
        doctor_id,
    )


@router.get(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Get appointment by ID",
)
async def get_appointment(
    appointment_id: UUID,
    member: CurrentClinic,
    service: Appointments,
) -> AppointmentResponse:
    """Get a specific appointment by ID."""
    appointment = await service.get_by_id(appointment_id, member.clinic_id)
    if appointment is None:
        raise NotFoundException("Appointment not found")
    return appointment


@router.patch(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Update appointment",
)
async def update_appointment(
    appointment_id: UUID,
    data: AppointmentUpdate,
    request: Request,
    member: SchedulingMember,
    service: Appointments,
    audit: AuditTrail,
) -> AppointmentResponse:
    """
    Partially update an appointment.

    Changing the practitioner or the times re-checks the practitioner's
    calendar, ignoring the appointment being edited.
    """
    result = await service.update(appointment_id, member.clinic_id, data)
    if isinstance(result, Failure):
        raise exception_for(result)

    appointment = result.value
    await audit.log(member, _audit_entry(request, AuditAction.UPDATE, appointment_id, appointment))
    return appointment


@router.patch(
    "/{appointment_id}/status",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["Appointments"],
    summary="Update appointment status",
)
async def update_appointment_status(
    appointment_id: UUID,
    data: AppointmentStatusUpdate,
    request: Request,
    member: SchedulingMember,
    service: Appointments,
    audit: AuditTrail,
) -> None:
    """Set an appointment's status (e.g., confirm, start, complete)."""
    result = await service.update_status(appointment_id, member.clinic_id, data.status)
    if isinstance(result, Failure):
        raise exception_for(result)

    await audit.log(member, _audit_entry(request, AuditAction.UPDATE, appointment_id))


@router.delete(
    "/{appointment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["Appointments"],
    summary="Cancel appointment",
)
async def cancel_appointment(
    appointment_id: UUID,
    request: Request,
    member: CancellingMember,
    service: Appointments,
    audit: AuditTrail,
) -> None:
    """Cancel an appointment. The record is kept with status CANCELLED."""
    result = await service.cancel(appointment_id, member.clinic_id)
    if isinstance(result, Failure):
        raise exception_for(result)

    await audit.log(member, _audit_entry(request, AuditAction.DELETE, appointment_id))
