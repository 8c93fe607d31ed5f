"""Doctor service for practitioner lookups."""

from uuid import UUID

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_scheduler.models.user_clinics import user_clinics
from clinic_scheduler.models.users import users
from clinic_scheduler.schemas.clinics import ClinicRole
from clinic_scheduler.schemas.doctors import DoctorListItem


class DoctorService:
    """Service for doctor operations."""

    @staticmethod
    async def list_doctors(db: AsyncSession, clinic_id: UUID) -> list[DoctorListItem]:
        """List active practitioners of a clinic ordered by name."""
        stmt = (
            select(users.c.id, users.c.name, users.c.specialty)
            .select_from(users.join(user_clinics, user_clinics.c.user_id == users.c.id))
            .where(
                and_(
                    user_clinics.c.clinic_id == clinic_id,
                    user_clinics.c.role == ClinicRole.DOCTOR.value,
                    users.c.is_active.is_(True),
                )
            )
            .order_by(users.c.name.asc())
        )
        result = await db.execute(stmt)
        return [DoctorListItem.model_validate(dict(row)) for row in result.mappings().all()]
