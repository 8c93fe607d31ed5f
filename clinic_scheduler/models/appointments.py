"""Appointments table model using SQLAlchemy Core."""

from sqlalchemy import (
    DDL,
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Table,
    Text,
    event,
    text,
)
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID

from clinic_scheduler.models.metadata import metadata

NO_OVERLAP_CONSTRAINT = "appointments_no_overlap"

# Requires the btree_gist extension. Half-open ranges so back-to-back bookings pass.
NO_OVERLAP_DDL = (
    f"ALTER TABLE appointments ADD CONSTRAINT {NO_OVERLAP_CONSTRAINT} "
    "EXCLUDE USING gist ("
    "clinic_id WITH =, "
    "doctor_id WITH =, "
    "tstzrange(start_time, end_time, '[)') WITH &&"
    ") WHERE (status NOT IN ('CANCELLED', 'NO_SHOW'))"
)

appointments = Table(
    "appointments",
    metadata,
    Column(
        "id",
        UUID(as_uuid=True),
        primary_key=True,
        server_default=text("gen_random_uuid()"),
    ),
    # Tenant
    Column(
        "clinic_id",
        UUID(as_uuid=True),
        ForeignKey("clinics.id", ondelete="CASCADE"),
        nullable=False,
    ),
    # References
    Column(
        "patient_id",
        UUID(as_uuid=True),
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column(
        "doctor_id",
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    ),
    # Slot
    Column("start_time", TIMESTAMP(timezone=True), nullable=False),
    Column("end_time", TIMESTAMP(timezone=True), nullable=False),
    # Status management
    Column(
        "status",
        Text,
        nullable=False,
        server_default="SCHEDULED",
    ),
    Column("reason", Text, nullable=True),
    Column("notes", Text, nullable=True),
    # Audit fields
    Column("created_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
    Column("updated_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
    # Constraints
    CheckConstraint("end_time > start_time", name="appointments_time_range_check"),
    CheckConstraint(
        "status IN ('SCHEDULED', 'CONFIRMED', 'IN_PROGRESS', 'COMPLETED', 'CANCELLED', 'NO_SHOW')",
        name="appointments_status_check",
    ),
)

# Indexes for performance
Index(
    "idx_appointments_clinic_doctor_start",
    appointments.c.clinic_id,
    appointments.c.doctor_id,
    appointments.c.start_time,
)
Index("idx_appointments_clinic_start", appointments.c.clinic_id, appointments.c.start_time)

event.listen(
    appointments,
    "after_create",
    DDL(NO_OVERLAP_DDL).execute_if(dialect="postgresql"),
)
