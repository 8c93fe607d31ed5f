"""Doctor schemas for response validation."""

from uuid import UUID

from clinic_scheduler.schemas.common import CamelModel


class DoctorListItem(CamelModel):
    """Practitioner available for booking in a clinic."""

    id: UUID
    name: str
    specialty: str | None = None
