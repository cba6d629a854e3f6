"""Measure ORM — a scored assessment (Katz-ADL, NPI, MMSE, ...).

Invariants:
    - Always belongs to a Client (client_id FK, cascade delete)
    - score kept as text: scales mix numbers ("4") and labels ("matig")

Design Decisions:
    - Numeric interpretation happens in core (MeasureRecord.numeric_score), not in SQL
"""

import uuid
import datetime

from sqlalchemy import String, Text, Date, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from zorgdossier.db.base import Base


class Measure(Base):
    __tablename__ = "measures"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    client_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("clients.client_id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    type: Mapped[str] = mapped_column(String(100), nullable=False, default="Unknown")
    score: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)

    client: Mapped["Client"] = relationship("Client", back_populates="measures")
