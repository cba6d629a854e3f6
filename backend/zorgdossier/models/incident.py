"""Incident ORM — a reported incident (fall, aggression, medication error, ...).

Invariants:
    - Always belongs to a Client (client_id FK, cascade delete)
    - severity is free text as reported (Laag/Medium/Hoog/Ernstig)
"""

import uuid
import datetime

from sqlalchemy import String, Text, Date, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from zorgdossier.db.base import Base


class Incident(Base):
    __tablename__ = "incidents"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    client_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("clients.client_id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    type: Mapped[str] = mapped_column(String(100), nullable=False, default="Unknown")
    severity: Mapped[str] = mapped_column(String(20), nullable=False, default="Medium")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    client: Mapped["Client"] = relationship("Client", back_populates="incidents")
