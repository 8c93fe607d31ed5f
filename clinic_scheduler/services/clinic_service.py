"""Clinic membership lookups."""

from uuid import UUID

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_scheduler.models.user_clinics import user_clinics
from clinic_scheduler.models.users import users
from clinic_scheduler.schemas.clinics import ClinicContext


class ClinicService:
    """Service resolving which clinic a user acts in."""

    @staticmethod
    async def get_clinic_context(db: AsyncSession, user_id: UUID) -> ClinicContext | None:
        """
        Get the clinic and role of an active user.

        A user belonging to several clinics acts in the one joined first.

        Args:
            db: Database session
            user_id: Authenticated user ID

        Returns:
            Clinic context, or None if the user is inactive or has no clinic
        """
        stmt = (
            select(user_clinics.c.clinic_id, user_clinics.c.role)
            .select_from(user_clinics.join(users, users.c.id == user_clinics.c.user_id))
            .where(
                and_(
                    user_clinics.c.user_id == user_id,
                    users.c.is_active.is_(True),
                )
            )
            .order_by(user_clinics.c.joined_at.asc())
            .limit(1)
        )
        result = await db.execute(stmt)
        row = result.mappings().first()

        if not row:
            return None

        return ClinicContext(user_id=user_id, clinic_id=row["clinic_id"], role=row["role"])
