"""MdReview ORM — a multidisciplinary reviewer's clinical judgement on a client.

Invariants:
    - Always belongs to a Client (cascade delete)
    - reviewer_role in: physician, psychologist, ergo, physio, nurse
    - decision in: approve, observe, reject; observe carries observation_period_days
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, Integer, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from zorgdossier.db.base import Base


class MdReview(Base):
    __tablename__ = "md_reviews"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    client_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("clients.client_id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    reviewer_name: Mapped[str] = mapped_column(String(200), nullable=False)
    reviewer_role: Mapped[str] = mapped_column(String(20), nullable=False)
    clinical_notes: Mapped[str] = mapped_column(Text, nullable=False)
    decision: Mapped[str] = mapped_column(String(10), nullable=False)
    observation_period_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
