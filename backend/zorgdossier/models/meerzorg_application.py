"""MeerzorgApplication ORM — a supplemental care-funding application for one client.

Invariants:
    - Always belongs to a Client (client_id FK, cascade delete)
    - version is a framework version string ("2025" | "2026")
    - status transitions: draft -> submitted -> approved | rejected | needs_revision
    - submitted_at set exactly when status first becomes submitted

Design Decisions:
    - JSON column for form_data: form fields differ per framework version
    - cascade delete for form fields, evidence, checks and reviews
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, JSON, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from zorgdossier.db.base import Base


class MeerzorgApplication(Base):
    __tablename__ = "meerzorg_applications"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    client_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("clients.client_id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    version: Mapped[str] = mapped_column(String(10), nullable=False, default="2026")
    form_data: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft")
    submitted_by: Mapped[str | None] = mapped_column(String(200), nullable=True)
    submitted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    client: Mapped["Client"] = relationship("Client", back_populates="applications")
    form_fields: Mapped[list["MeerzorgFormField"]] = relationship(
        "MeerzorgFormField", cascade="all, delete-orphan", lazy="selectin",
    )
    evidence: Mapped[list["Evidence"]] = relationship(
        "Evidence", cascade="all, delete-orphan", lazy="selectin",
    )
    checks: Mapped[list["NormativeCheck"]] = relationship(
        "NormativeCheck", cascade="all, delete-orphan", lazy="selectin",
    )
    reviews: Mapped[list["ReviewWorkflow"]] = relationship(
        "ReviewWorkflow", cascade="all, delete-orphan", lazy="selectin",
    )
