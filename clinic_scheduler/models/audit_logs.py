"""Audit log table model using SQLAlchemy Core."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Table,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import UUID

from clinic_scheduler.models.metadata import metadata

audit_logs = Table(
    "audit_logs",
    metadata,
    Column("id", UUID(as_uuid=True), primary_key=True, server_default=text("gen_random_uuid()")),
    Column(
        "clinic_id",
        UUID(as_uuid=True),
        ForeignKey("clinics.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "user_id",
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("action", String(10), nullable=False),
    Column("entity_type", String(50), nullable=False),
    Column("entity_id", Text, nullable=False),
    Column("entity_name", Text),
    # Request origin
    Column("ip_address", String(64)),
    Column("user_agent", Text),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=text("NOW()")),
    CheckConstraint(
        "action IN ('CREATE', 'READ', 'UPDATE', 'DELETE')",
        name="audit_logs_action_check",
    ),
)

Index("idx_audit_logs_clinic_created", audit_logs.c.clinic_id, audit_logs.c.created_at)
Index("idx_audit_logs_entity", audit_logs.c.entity_type, audit_logs.c.entity_id)
