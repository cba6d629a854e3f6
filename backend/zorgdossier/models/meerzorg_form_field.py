"""MeerzorgFormField ORM — one extracted form value with its best supporting source.

Invariants:
    - Always belongs to a MeerzorgApplication (cascade delete)
    - source_type is "unknown" and source_id empty when no evidence was found
"""

import uuid

from sqlalchemy import String, Text, Float, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from zorgdossier.db.base import Base


class MeerzorgFormField(Base):
    __tablename__ = "meerzorg_form_fields"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    application_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("meerzorg_applications.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    field_name: Mapped[str] = mapped_column(String(100), nullable=False)
    field_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    source_type: Mapped[str] = mapped_column(String(20), nullable=False, default="unknown")
    source_id: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    confidence: Mapped[float] = mapped_column(Float, nullable=False, default=0.5)
