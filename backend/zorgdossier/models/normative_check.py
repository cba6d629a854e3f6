"""NormativeCheck ORM — persisted outcome of one rule evaluation.

Invariants:
    - client_id always set; application_id set when the check ran for an application
    - check_type in: required_field, toetsingskader_rule, completeness, consistency
    - status in: pass, fail, warning; severity in: low, medium, high, critical

Design Decisions:
    - Validating an application replaces its previous checks: the table holds
      the latest run only, history lives in the audit log
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from zorgdossier.db.base import Base


class NormativeCheck(Base):
    __tablename__ = "normative_checks"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    application_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("meerzorg_applications.id", ondelete="CASCADE"),
        nullable=True, index=True,
    )
    client_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("clients.client_id", ondelete="CASCADE"),
        nullable=False,
    )
    check_type: Mapped[str] = mapped_column(String(30), nullable=False)
    rule_id: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(String(10), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    severity: Mapped[str] = mapped_column(String(10), nullable=False)
    checked_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
