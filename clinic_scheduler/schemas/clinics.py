"""Clinic membership schemas."""

from enum import Enum
from uuid import UUID

from pydantic import BaseModel


class ClinicRole(str, Enum):
    """Role a user holds inside a clinic."""

    ADMIN = "ADMIN"
    DOCTOR = "DOCTOR"
    NURSE = "NURSE"
    RECEPTIONIST = "RECEPTIONIST"


class ClinicContext(BaseModel):
    """Acting user and the clinic (tenant) their request is scoped to."""

    user_id: UUID
    clinic_id: UUID
    role: ClinicRole
