"""Clinic (tenant) model definition using SQLAlchemy Core."""

from sqlalchemy import Column, DateTime, String, Table, text
from sqlalchemy.dialects.postgresql import UUID

from clinic_scheduler.models.metadata import metadata

clinics = Table(
    "clinics",
    metadata,
    Column(
        "id",
        UUID(as_uuid=True),
        primary_key=True,
        server_default=text("gen_random_uuid()"),
    ),
    Column("name", String(255), nullable=False),
    Column("slug", String(255), unique=True, index=True),  # URL-friendly identifier
    # Metadata
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=text("NOW()")),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=text("NOW()")),
)
