"""
Scheduling conflict detection.

Appointments occupy half-open intervals ``[start_time, end_time)``: an
appointment ending at 11:00 does not block another starting at 11:00.
Cancelled and no-show appointments never block a slot.
"""

from datetime import datetime, tzinfo
from typing import NamedTuple

from clinic_scheduler.schemas.appointments import AppointmentResponse, AppointmentStatus

EXCLUDED_STATUSES_FOR_CONFLICT = frozenset(
    {AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW}
)


class TimeSlot(NamedTuple):
    """A proposed or booked time range."""

    start_time: datetime
    end_time: datetime


def is_valid_time_slot(start_time: datetime, end_time: datetime) -> bool:
    """Return True when the slot ends strictly after it starts."""
    return end_time > start_time


def has_time_conflict(existing: TimeSlot, candidate: TimeSlot) -> bool:
    """
    Check whether a candidate slot overlaps an existing one.

    Args:
        existing: Slot already on the calendar
        candidate: Slot being requested

    Returns:
        True if the candidate starts during, ends during, or encompasses
        the existing slot
    """
    existing_start, existing_end = existing
    new_start, new_end = candidate

    starts_during_existing = existing_start <= new_start < existing_end
    ends_during_existing = existing_start < new_end <= existing_end
    encompasses_existing = new_start <= existing_start and new_end >= existing_end

    return starts_during_existing or ends_during_existing or encompasses_existing


def should_check_for_conflicts(status: AppointmentStatus | str) -> bool:
    """Return False for statuses that free up the slot."""
    return AppointmentStatus(status) not in EXCLUDED_STATUSES_FOR_CONFLICT


def build_conflict_message(appointment: AppointmentResponse, tz: tzinfo) -> str:
    """Describe the booking that blocks a requested slot."""
    patient_name = f"{appointment.patient.first_name} {appointment.patient.last_name}"
    start = appointment.start_time.astimezone(tz)
    return (
        f"The practitioner already has an appointment with {patient_name} "
        f"at {start:%d/%m/%Y %H:%M}"
    )
