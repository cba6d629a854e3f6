"""Evidence ORM — a dossier record linked as support for an application field.

Invariants:
    - Always belongs to a MeerzorgApplication (cascade delete)
    - confidence_score in [0.0, 1.0], default 0.8
    - source_id references a note/measure/incident id without a FK: evidence text
      is a snapshot and stays readable when the record changes

Design Decisions:
    - Python attribute `meta` maps to column "metadata" (name reserved by DeclarativeBase)
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, Float, DateTime, JSON, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from zorgdossier.db.base import Base


class Evidence(Base):
    __tablename__ = "evidence"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    application_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("meerzorg_applications.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    field_name: Mapped[str] = mapped_column(String(100), nullable=False)
    field_label: Mapped[str | None] = mapped_column(String(200), nullable=True)
    source_type: Mapped[str] = mapped_column(String(20), nullable=False)
    source_id: Mapped[str] = mapped_column(String(64), nullable=False)
    evidence_text: Mapped[str] = mapped_column(Text, nullable=False)
    confidence_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.8)
    meta: Mapped[dict] = mapped_column("metadata", JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
