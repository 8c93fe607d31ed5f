"""Appointment persistence: capability interface and PostgreSQL implementation."""

from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Protocol
from uuid import UUID

from sqlalchemy import Select, and_, func, insert, or_, select, update
from sqlalchemy.engine import Row
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_scheduler.models.appointments import NO_OVERLAP_CONSTRAINT, appointments
from clinic_scheduler.models.patients import patients
from clinic_scheduler.models.user_clinics import user_clinics
from clinic_scheduler.models.users import users
from clinic_scheduler.scheduling.conflicts import EXCLUDED_STATUSES_FOR_CONFLICT
from clinic_scheduler.schemas.appointments import (
    AppointmentCreate,
    AppointmentFilters,
    AppointmentResponse,
    AppointmentStatus,
)

# SQLSTATE for exclusion_violation
EXCLUSION_VIOLATION = "23P01"


class OverlappingAppointmentError(Exception):
    """Storage rejected a booking that overlaps an active appointment."""


@dataclass(frozen=True)
class ConflictCheck:
    """Parameters of an overlap lookup for one practitioner in one clinic."""

    clinic_id: UUID
    doctor_id: UUID
    start_time: datetime
    end_time: datetime
    exclude_appointment_id: UUID | None = None


class AppointmentRepository(Protocol):
    """
    Persistence operations the appointment service depends on.

    Every lookup and write is scoped by clinic. Writes issued inside
    ``transaction()`` are committed together when the block exits cleanly.
    """

    def transaction(self) -> AbstractAsyncContextManager[None]: ...

    async def lock_practitioner(self, clinic_id: UUID, doctor_id: UUID) -> None: ...

    async def references_exist(
        self, clinic_id: UUID, patient_id: UUID, doctor_id: UUID
    ) -> bool: ...

    async def find_by_id(
        self, appointment_id: UUID, clinic_id: UUID
    ) -> AppointmentResponse | None: ...

    async def find_many(
        self, filters: AppointmentFilters, page: int, limit: int
    ) -> tuple[list[AppointmentResponse], int]: ...

    async def find_for_calendar(
        self,
        clinic_id: UUID,
        start: datetime,
        end: datetime,
        doctor_id: UUID | None = None,
    ) -> list[AppointmentResponse]: ...

    async def find_conflicting(self, check: ConflictCheck) -> AppointmentResponse | None: ...

    async def create(self, clinic_id: UUID, data: AppointmentCreate) -> AppointmentResponse: ...

    async def update(
        self, appointment_id: UUID, clinic_id: UUID, values: dict[str, Any]
    ) -> AppointmentResponse | None: ...

    async def update_status(
        self, appointment_id: UUID, clinic_id: UUID, status: AppointmentStatus
    ) -> None: ...


def _select_with_relations() -> Select:
    """Select appointments joined with their patient and practitioner summaries."""
    return select(
        appointments,
        patients.c.first_name.label("patient_first_name"),
        patients.c.last_name.label("patient_last_name"),
        patients.c.middle_name.label("patient_middle_name"),
        patients.c.phone.label("patient_phone"),
        users.c.name.label("doctor_name"),
        users.c.specialty.label("doctor_specialty"),
    ).select_from(
        appointments.join(
            patients,
            and_(
                patients.c.id == appointments.c.patient_id,
                patients.c.clinic_id == appointments.c.clinic_id,
            ),
        ).join(users, users.c.id == appointments.c.doctor_id)
    )


def _to_response(row: Row) -> AppointmentResponse:
    m = row._mapping
    return AppointmentResponse.model_validate(
        {
            "id": m["id"],
            "clinic_id": m["clinic_id"],
            "patient_id": m["patient_id"],
            "doctor_id": m["doctor_id"],
            "start_time": m["start_time"],
            "end_time": m["end_time"],
            "status": m["status"],
            "reason": m["reason"],
            "notes": m["notes"],
            "created_at": m["created_at"],
            "updated_at": m["updated_at"],
            "patient": {
                "id": m["patient_id"],
                "first_name": m["patient_first_name"],
                "last_name": m["patient_last_name"],
                "middle_name": m["patient_middle_name"],
                "phone": m["patient_phone"],
            },
            "doctor": {
                "id": m["doctor_id"],
                "name": m["doctor_name"],
                "specialty": m["doctor_specialty"],
            },
        }
    )


def _is_overlap_violation(exc: IntegrityError) -> bool:
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    return sqlstate == EXCLUSION_VIOLATION or NO_OVERLAP_CONSTRAINT in str(orig)


class SqlAppointmentRepository:
    """Appointment repository backed by PostgreSQL through SQLAlchemy Core."""

    def __init__(self, db: AsyncSession):
        """Initialize repository with database session."""
        self.db = db

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Commit the enclosed writes together, rolling back on any error."""
        try:
            yield
        except Exception:
            await self.db.rollback()
            raise
        await self.db.commit()

    async def lock_practitioner(self, clinic_id: UUID, doctor_id: UUID) -> None:
        """
        Serialize scheduling for one practitioner until the transaction ends.

        Uses a transaction-scoped advisory lock, so concurrent check-then-write
        sequences for the same practitioner run one after another.
        """
        key = f"{clinic_id}:{doctor_id}"
        await self.db.execute(
            select(func.pg_advisory_xact_lock(func.hashtextextended(key, 0)))
        )

    async def references_exist(self, clinic_id: UUID, patient_id: UUID, doctor_id: UUID) -> bool:
        """Check that the patient and the practitioner both belong to the clinic."""
        patient_in_clinic = select(patients.c.id).where(
            and_(
                patients.c.id == patient_id,
                patients.c.clinic_id == clinic_id,
                patients.c.deleted_at.is_(None),
            )
        )
        doctor_in_clinic = select(user_clinics.c.id).where(
            and_(
                user_clinics.c.user_id == doctor_id,
                user_clinics.c.clinic_id == clinic_id,
            )
        )
        result = await self.db.execute(
            select(patient_in_clinic.exists(), doctor_in_clinic.exists())
        )
        patient_found, doctor_found = result.one()
        return bool(patient_found and doctor_found)

    async def find_by_id(self, appointment_id: UUID, clinic_id: UUID) -> AppointmentResponse | None:
        """Get an appointment by ID within a clinic."""
        stmt = _select_with_relations().where(
            and_(
                appointments.c.id == appointment_id,
                appointments.c.clinic_id == clinic_id,
            )
        )
        result = await self.db.execute(stmt)
        row = result.first()
        return _to_response(row) if row else None

    async def find_many(
        self, filters: AppointmentFilters, page: int, limit: int
    ) -> tuple[list[AppointmentResponse], int]:
        """
        List appointments with filtering and pagination.

        Args:
            filters: Clinic scope and optional filters
            page: 1-based page number
            limit: Page size

        Returns:
            Tuple of (appointments on the page, total matching count)
        """
        conditions = [appointments.c.clinic_id == filters.clinic_id]

        if filters.doctor_id:
            conditions.append(appointments.c.doctor_id == filters.doctor_id)

        if filters.patient_id:
            conditions.append(appointments.c.patient_id == filters.patient_id)

        if filters.status:
            conditions.append(appointments.c.status == filters.status.value)

        if filters.start_date:
            conditions.append(appointments.c.start_time >= filters.start_date)

        if filters.end_date:
            conditions.append(appointments.c.start_time <= filters.end_date)

        # Count total
        count_stmt = select(func.count()).select_from(appointments).where(and_(*conditions))
        total_result = await self.db.execute(count_stmt)
        total = total_result.scalar() or 0

        stmt = (
            _select_with_relations()
            .where(and_(*conditions))
            .order_by(appointments.c.start_time.asc())
            .limit(limit)
            .offset((page - 1) * limit)
        )

        result = await self.db.execute(stmt)
        return [_to_response(row) for row in result.fetchall()], total

    async def find_for_calendar(
        self,
        clinic_id: UUID,
        start: datetime,
        end: datetime,
        doctor_id: UUID | None = None,
    ) -> list[AppointmentResponse]:
        """Get appointments starting within [start, end] for calendar rendering."""
        conditions = [
            appointments.c.clinic_id == clinic_id,
            appointments.c.start_time >= start,
            appointments.c.start_time <= end,
        ]
        if doctor_id:
            conditions.append(appointments.c.doctor_id == doctor_id)

        stmt = (
            _select_with_relations()
            .where(and_(*conditions))
            .order_by(appointments.c.start_time.asc())
        )
        result = await self.db.execute(stmt)
        return [_to_response(row) for row in result.fetchall()]

    async def find_conflicting(self, check: ConflictCheck) -> AppointmentResponse | None:
        """Find an active appointment of the practitioner overlapping the slot."""
        start, end = check.start_time, check.end_time
        conditions = [
            appointments.c.clinic_id == check.clinic_id,
            appointments.c.doctor_id == check.doctor_id,
            appointments.c.status.not_in([s.value for s in EXCLUDED_STATUSES_FOR_CONFLICT]),
            or_(
                # Starts during an existing appointment
                and_(appointments.c.start_time <= start, appointments.c.end_time > start),
                # Ends during an existing appointment
                and_(appointments.c.start_time < end, appointments.c.end_time >= end),
                # Encompasses an existing appointment
                and_(appointments.c.start_time >= start, appointments.c.end_time <= end),
            ),
        ]
        if check.exclude_appointment_id:
            conditions.append(appointments.c.id != check.exclude_appointment_id)

        stmt = (
            _select_with_relations()
            .where(and_(*conditions))
            .order_by(appointments.c.start_time.asc())
            .limit(1)
        )
        result = await self.db.execute(stmt)
        row = result.first()
        return _to_response(row) if row else None

    async def create(self, clinic_id: UUID, data: AppointmentCreate) -> AppointmentResponse:
        """Insert an appointment and return it with its relations."""
        stmt = (
            insert(appointments)
            .values(
                clinic_id=clinic_id,
                patient_id=data.patient_id,
                doctor_id=data.doctor_id,
                start_time=data.start_time,
                end_time=data.end_time,
                status=data.status.value,
                reason=data.reason,
                notes=data.notes,
            )
            .returning(appointments.c.id)
        )
        appointment_id = await self._execute_write(stmt)

        created = await self.find_by_id(appointment_id, clinic_id)
        if created is None:
            raise ValueError("Failed to create appointment")
        return created

    async def update(
        self, appointment_id: UUID, clinic_id: UUID, values: dict[str, Any]
    ) -> AppointmentResponse | None:
        """Apply the given column values and return the updated appointment."""
        update_values = {
            field: value.value if isinstance(value, AppointmentStatus) else value
            for field, value in values.items()
        }
        update_values["updated_at"] = datetime.now(UTC)

        stmt = (
            update(appointments)
            .where(
                and_(
                    appointments.c.id == appointment_id,
                    appointments.c.clinic_id == clinic_id,
                )
            )
            .values(**update_values)
            .returning(appointments.c.id)
        )
        if await self._execute_write(stmt) is None:
            return None
        return await self.find_by_id(appointment_id, clinic_id)

    async def update_status(
        self, appointment_id: UUID, clinic_id: UUID, status: AppointmentStatus
    ) -> None:
        """Set the status of an appointment."""
        stmt = (
            update(appointments)
            .where(
                and_(
                    appointments.c.id == appointment_id,
                    appointments.c.clinic_id == clinic_id,
                )
            )
            .values(status=status.value, updated_at=datetime.now(UTC))
            .returning(appointments.c.id)
        )
        await self._execute_write(stmt)

    async def _execute_write(self, stmt: Any) -> UUID | None:
        """Run a write returning the affected id, translating overlap violations."""
        try:
            result = await self.db.execute(stmt)
        except IntegrityError as exc:
            if _is_overlap_violation(exc):
                raise OverlappingAppointmentError(str(exc.orig)) from exc
            raise
        return result.scalar_one_or_none()
