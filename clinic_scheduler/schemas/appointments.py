"""Appointment schemas for request/response validation."""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import Field, field_validator, model_validator

from clinic_scheduler.schemas.common import CamelModel, Pagination, ensure_utc


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    SCHEDULED = "SCHEDULED"
    CONFIRMED = "CONFIRMED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"


STATUS_COLORS: dict[AppointmentStatus, str] = {
    AppointmentStatus.SCHEDULED: "#3b82f6",
    AppointmentStatus.CONFIRMED: "#10b981",
    AppointmentStatus.IN_PROGRESS: "#f59e0b",
    AppointmentStatus.COMPLETED: "#6b7280",
    AppointmentStatus.CANCELLED: "#ef4444",
    AppointmentStatus.NO_SHOW: "#dc2626",
}

# Fields that move an appointment on the practitioner's calendar
SCHEDULE_FIELDS = frozenset({"doctor_id", "start_time", "end_time"})


class PatientSummary(CamelModel):
    """Patient projection embedded in appointment responses."""

    id: UUID
    first_name: str
    last_name: str
    middle_name: str | None = None
    phone: str | None = None

    @property
    def full_name(self) -> str:
        """Full name including the middle name when present."""
        parts = [self.first_name, self.middle_name, self.last_name]
        return " ".join(part for part in parts if part)


class DoctorSummary(CamelModel):
    """Practitioner projection embedded in appointment responses."""

    id: UUID
    name: str
    specialty: str | None = None


class AppointmentCreate(CamelModel):
    """Schema for creating a new appointment."""

    patient_id: UUID
    doctor_id: UUID
    start_time: datetime
    end_time: datetime
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    reason: str | None = Field(None, max_length=500)
    notes: str | None = Field(None, max_length=2000)

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_timezone(cls, v: datetime) -> datetime:
        """Interpret naive timestamps as UTC."""
        return ensure_utc(v)


class AppointmentUpdate(CamelModel):
    """
    Schema for partially updating an appointment.

    Only fields present in the request body are applied. ``reason`` and
    ``notes`` may be cleared with an explicit null; the remaining fields
    may be omitted but never nulled.
    """

    patient_id: UUID | None = None
    doctor_id: UUID | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    status: AppointmentStatus | None = None
    reason: str | None = Field(None, max_length=500)
    notes: str | None = Field(None, max_length=2000)

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_timezone(cls, v: datetime | None) -> datetime | None:
        """Interpret naive timestamps as UTC."""
        return ensure_utc(v)

    @model_validator(mode="after")
    def reject_null_required_fields(self) -> "AppointmentUpdate":
        """Reject explicit nulls for fields that cannot be cleared."""
        for field in ("patient_id", "doctor_id", "start_time", "end_time", "status"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self

    @property
    def changes_schedule(self) -> bool:
        """Whether the update supplies a practitioner or time field."""
        return bool(SCHEDULE_FIELDS & self.model_fields_set)

    def changes(self) -> dict[str, Any]:
        """Return only the supplied fields."""
        return self.model_dump(exclude_unset=True)


class AppointmentStatusUpdate(CamelModel):
    """Schema for updating appointment status."""

    status: AppointmentStatus


class AppointmentResponse(CamelModel):
    """Schema for appointment response."""

    id: UUID
    clinic_id: UUID
    patient_id: UUID
    doctor_id: UUID
    start_time: datetime
    end_time: datetime
    status: AppointmentStatus
    reason: str | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime
    patient: PatientSummary
    doctor: DoctorSummary


class AppointmentFilters(CamelModel):
    """Schema for appointment filtering."""

    clinic_id: UUID
    doctor_id: UUID | None = None
    patient_id: UUID | None = None
    status: AppointmentStatus | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_timezone(cls, v: datetime | None) -> datetime | None:
        """Interpret naive timestamps as UTC."""
        return ensure_utc(v)


class AppointmentPage(CamelModel):
    """One page of appointments."""

    items: list[AppointmentResponse]
    total: int
    page: int
    limit: int
    pages: int


class AppointmentListResponse(CamelModel):
    """Schema for paginated appointment list response."""

    data: list[AppointmentResponse]
    pagination: Pagination


class CalendarEventResource(CamelModel):
    """Appointment details attached to a calendar event."""

    appointment_id: str
    patient_id: str
    patient_name: str
    doctor_id: str
    doctor_name: str
    status: AppointmentStatus
    reason: str | None = None


class CalendarEvent(CamelModel):
    """Calendar projection of an appointment."""

    id: str
    title: str
    start: str
    end: str
    background_color: str
    border_color: str
    resource: CalendarEventResource
