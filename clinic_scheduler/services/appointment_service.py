"""Appointment service for business logic."""

import math
from datetime import datetime, tzinfo
from uuid import UUID

import structlog

from clinic_scheduler.config import settings
from clinic_scheduler.repositories.appointment_repository import (
    AppointmentRepository,
    ConflictCheck,
    OverlappingAppointmentError,
)
from clinic_scheduler.scheduling.conflicts import build_conflict_message, is_valid_time_slot
from clinic_scheduler.schemas.appointments import (
    STATUS_COLORS,
    AppointmentCreate,
    AppointmentFilters,
    AppointmentPage,
    AppointmentResponse,
    AppointmentStatus,
    AppointmentUpdate,
    CalendarEvent,
    CalendarEventResource,
)
from clinic_scheduler.services.results import ErrorKind, Failure, Result, Success

logger = structlog.get_logger()

INVALID_SLOT_MESSAGE = "End time must be after start time"
NOT_FOUND_MESSAGE = "Appointment not found"
UNKNOWN_REFERENCE_MESSAGE = "Patient or practitioner not found in this clinic"
OVERLAP_MESSAGE = "The practitioner already has an appointment overlapping this time"


def to_calendar_event(appointment: AppointmentResponse) -> CalendarEvent:
    """Project an appointment into a calendar event."""
    patient_name = appointment.patient.full_name
    doctor_name = appointment.doctor.name
    color = STATUS_COLORS[appointment.status]

    return CalendarEvent(
        id=str(appointment.id),
        title=f"{patient_name} - Dr. {doctor_name}",
        start=appointment.start_time.isoformat(),
        end=appointment.end_time.isoformat(),
        background_color=color,
        border_color=color,
        resource=CalendarEventResource(
            appointment_id=str(appointment.id),
            patient_id=str(appointment.patient_id),
            patient_name=patient_name,
            doctor_id=str(appointment.doctor_id),
            doctor_name=doctor_name,
            status=appointment.status,
            reason=appointment.reason,
        ),
    )


class AppointmentService:
    """
    Service guarding practitioners' calendars against double-booking.

    Expected business-rule violations (invalid slot, overlap, missing
    appointment) come back as ``Failure`` values; storage errors propagate.
    """

    def __init__(self, repository: AppointmentRepository, display_tz: tzinfo | None = None):
        """Initialize service with a repository and the timezone used in messages."""
        self.repository = repository
        self.display_tz = display_tz or settings.display_tz

    async def create(
        self,
        data: AppointmentCreate,
        clinic_id: UUID,
        acting_user_id: UUID,
    ) -> Result[AppointmentResponse]:
        """
        Book a new appointment.

        Args:
            data: Appointment creation data
            clinic_id: Clinic the appointment belongs to
            acting_user_id: User performing the booking

        Returns:
            The created appointment, or a validation/conflict failure
        """
        if not is_valid_time_slot(data.start_time, data.end_time):
            return Failure(ErrorKind.VALIDATION, INVALID_SLOT_MESSAGE)

        if not await self.repository.references_exist(clinic_id, data.patient_id, data.doctor_id):
            return Failure(ErrorKind.VALIDATION, UNKNOWN_REFERENCE_MESSAGE)

        check = ConflictCheck(
            clinic_id=clinic_id,
            doctor_id=data.doctor_id,
            start_time=data.start_time,
            end_time=data.end_time,
        )

        try:
            async with self.repository.transaction():
                await self.repository.lock_practitioner(clinic_id, data.doctor_id)

                existing = await self.repository.find_conflicting(check)
                if existing:
                    return self._conflict(existing)

                appointment = await self.repository.create(clinic_id, data)
        except OverlappingAppointmentError:
            logger.warning("appointment_overlap_rejected_by_storage", doctor_id=str(data.doctor_id))
            return Failure(ErrorKind.CONFLICT, OVERLAP_MESSAGE)

        logger.info(
            "appointment_created",
            appointment_id=str(appointment.id),
            clinic_id=str(clinic_id),
            doctor_id=str(appointment.doctor_id),
            created_by=str(acting_user_id),
        )
        return Success(appointment)

    async def get_by_id(self, appointment_id: UUID, clinic_id: UUID) -> AppointmentResponse | None:
        """Get appointment by ID."""
        return await self.repository.find_by_id(appointment_id, clinic_id)

    async def get_many(
        self,
        filters: AppointmentFilters,
        page: int = 1,
        limit: int = 100,
    ) -> AppointmentPage:
        """List appointments with filtering and pagination."""
        items, total = await self.repository.find_many(filters, page, limit)
        return AppointmentPage(
            items=items,
            total=total,
            page=page,
            limit=limit,
            pages=math.ceil(total / limit),
        )

    async def get_calendar_events(
        self,
        clinic_id: UUID,
        start: datetime,
        end: datetime,
        doctor_id: UUID | None = None,
    ) -> list[CalendarEvent]:
        """Get calendar events for appointments starting within the range."""
        found = await self.repository.find_for_calendar(clinic_id, start, end, doctor_id)
        return [to_calendar_event(appointment) for appointment in found]

    async def update(
        self,
        appointment_id: UUID,
        clinic_id: UUID,
        data: AppointmentUpdate,
    ) -> Result[AppointmentResponse]:
        """
        Update an appointment, re-checking conflicts when it is rescheduled.

        Args:
            appointment_id: Appointment ID
            clinic_id: Clinic scope
            data: Partial update; only supplied fields are applied

        Returns:
            The updated appointment, or a not-found/validation/conflict failure
        """
        existing = await self.repository.find_by_id(appointment_id, clinic_id)
        if not existing:
            return Failure(ErrorKind.NOT_FOUND, NOT_FOUND_MESSAGE)

        new_start = data.start_time or existing.start_time
        new_end = data.end_time or existing.end_time

        if not is_valid_time_slot(new_start, new_end):
            return Failure(ErrorKind.VALIDATION, INVALID_SLOT_MESSAGE)

        if data.patient_id or data.doctor_id:
            references_ok = await self.repository.references_exist(
                clinic_id,
                data.patient_id or existing.patient_id,
                data.doctor_id or existing.doctor_id,
            )
            if not references_ok:
                return Failure(ErrorKind.VALIDATION, UNKNOWN_REFERENCE_MESSAGE)

        changes = data.changes()
        if not changes:
            return Success(existing)

        try:
            async with self.repository.transaction():
                if data.changes_schedule:
                    doctor_id = data.doctor_id or existing.doctor_id
                    await self.repository.lock_practitioner(clinic_id, doctor_id)

                    conflict = await self.repository.find_conflicting(
                        ConflictCheck(
                            clinic_id=clinic_id,
                            doctor_id=doctor_id,
                            start_time=new_start,
                            end_time=new_end,
                            exclude_appointment_id=appointment_id,
                        )
                    )
                    if conflict:
                        return self._conflict(conflict)

                updated = await self.repository.update(appointment_id, clinic_id, changes)
        except OverlappingAppointmentError:
            logger.warning(
                "appointment_overlap_rejected_by_storage",
                appointment_id=str(appointment_id),
            )
            return Failure(ErrorKind.CONFLICT, OVERLAP_MESSAGE)

        if updated is None:
            return Failure(ErrorKind.NOT_FOUND, NOT_FOUND_MESSAGE)

        logger.info(
            "appointment_updated",
            appointment_id=str(appointment_id),
            fields=sorted(changes),
        )
        return Success(updated)

    async def update_status(
        self,
        appointment_id: UUID,
        clinic_id: UUID,
        status: AppointmentStatus,
    ) -> Result[None]:
        """
        Set an appointment's status.

        Any status may follow any other. Re-activating a cancelled slot that
        has since been booked by someone else is rejected as a conflict by
        storage.
        """
        existing = await self.repository.find_by_id(appointment_id, clinic_id)
        if not existing:
            return Failure(ErrorKind.NOT_FOUND, NOT_FOUND_MESSAGE)

        try:
            async with self.repository.transaction():
                await self.repository.update_status(appointment_id, clinic_id, status)
        except OverlappingAppointmentError:
            logger.warning(
                "appointment_overlap_rejected_by_storage",
                appointment_id=str(appointment_id),
            )
            return Failure(ErrorKind.CONFLICT, OVERLAP_MESSAGE)

        logger.info(
            "appointment_status_updated",
            appointment_id=str(appointment_id),
            old_status=existing.status.value,
            new_status=status.value,
        )
        return Success(None)

    async def cancel(self, appointment_id: UUID, clinic_id: UUID) -> Result[None]:
        """Cancel an appointment; appointments are never physically deleted."""
        return await self.update_status(appointment_id, clinic_id, AppointmentStatus.CANCELLED)

    def _conflict(self, existing: AppointmentResponse) -> Failure:
        logger.info(
            "appointment_conflict",
            conflicting_appointment_id=str(existing.id),
            doctor_id=str(existing.doctor_id),
        )
        return Failure(ErrorKind.CONFLICT, build_conflict_message(existing, self.display_tz))
