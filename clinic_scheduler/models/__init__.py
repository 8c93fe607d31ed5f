"""Database models."""

from clinic_scheduler.models.appointments import appointments
from clinic_scheduler.models.audit_logs import audit_logs
from clinic_scheduler.models.clinics import clinics
from clinic_scheduler.models.metadata import metadata
from clinic_scheduler.models.patients import patients
from clinic_scheduler.models.user_clinics import user_clinics
from clinic_scheduler.models.users import users

__all__ = [
    "appointments",
    "audit_logs",
    "clinics",
    "metadata",
    "patients",
    "user_clinics",
    "users",
]
