"""ReviewWorkflow ORM — a reviewer's decision on a Meerzorg application.

Invariants:
    - Always belongs to a MeerzorgApplication (cascade delete)
    - status in: pending, approved, rejected, needs_revision
    - comments required for rejected and needs_revision (enforced at the API)
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from zorgdossier.db.base import Base


class ReviewWorkflow(Base):
    __tablename__ = "review_workflows"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    application_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("meerzorg_applications.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    reviewer_role: Mapped[str] = mapped_column(String(50), nullable=False)
    reviewer_name: Mapped[str] = mapped_column(String(200), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    comments: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
