"""Clinic membership table (user <-> clinic with a role)."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    String,
    Table,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import UUID

from clinic_scheduler.models.metadata import metadata

user_clinics = Table(
    "user_clinics",
    metadata,
    Column(
        "id",
        UUID(as_uuid=True),
        primary_key=True,
        server_default=text("gen_random_uuid()"),
    ),
    Column(
        "user_id",
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column(
        "clinic_id",
        UUID(as_uuid=True),
        ForeignKey("clinics.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("role", String(20), nullable=False),
    Column("joined_at", DateTime(timezone=True), nullable=False, server_default=text("NOW()")),
    UniqueConstraint("user_id", "clinic_id", name="uq_user_clinics_user_clinic"),
    CheckConstraint(
        "role IN ('ADMIN', 'DOCTOR', 'NURSE', 'RECEPTIONIST')",
        name="user_clinics_role_check",
    ),
)
