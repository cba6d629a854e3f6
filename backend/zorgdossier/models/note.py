"""Note ORM — a free-text care report line from the client's dossier.

Invariants:
    - Always belongs to a Client (client_id FK, cascade delete)
    - date has no time component
"""

import uuid
import datetime

from sqlalchemy import String, Text, Date, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from zorgdossier.db.base import Base


class Note(Base):
    __tablename__ = "notes"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    client_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("clients.client_id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    author: Mapped[str] = mapped_column(String(200), nullable=False, default="Unknown")
    section: Mapped[str] = mapped_column(String(100), nullable=False, default="General")
    text: Mapped[str] = mapped_column(Text, nullable=False)

    client: Mapped["Client"] = relationship("Client", back_populates="notes")
