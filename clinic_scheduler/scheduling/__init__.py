"""Scheduling rules shared by the appointment service and repository."""

from clinic_scheduler.scheduling.conflicts import (
    EXCLUDED_STATUSES_FOR_CONFLICT,
    TimeSlot,
    build_conflict_message,
    has_time_conflict,
    is_valid_time_slot,
    should_check_for_conflicts,
)

__all__ = [
    "EXCLUDED_STATUSES_FOR_CONFLICT",
    "TimeSlot",
    "build_conflict_message",
    "has_time_conflict",
    "is_valid_time_slot",
    "should_check_for_conflicts",
]
