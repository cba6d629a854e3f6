"""Client ORM — the aggregate root of a care dossier.

Invariants:
    - client_id is a user-supplied string primary key (care provider's own id)
    - Deleting a client deletes every record scoped to it (ORM cascade + FK ondelete)
    - client_id and created_at never change after creation

Design Decisions:
    - String PK over UUID: client ids come from the provider's ECD and appear in reports
    - bsn stored only in encrypted form; plaintext BSN never reaches this service
"""

from datetime import datetime, timezone

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from zorgdossier.db.base import Base


class Client(Base):
    """Client aggregate root — owns notes, measures, incidents and applications."""
    __tablename__ = "clients"

    client_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    dob: Mapped[str] = mapped_column(String(10), nullable=False, default="")
    bsn_encrypted: Mapped[str | None] = mapped_column(String(500), nullable=True)
    wlz_profile: Mapped[str] = mapped_column(String(20), nullable=False, default="")
    provider: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    notes: Mapped[list["Note"]] = relationship(
        "Note", back_populates="client",
        cascade="all, delete-orphan", lazy="selectin",
    )
    measures: Mapped[list["Measure"]] = relationship(
        "Measure", back_populates="client",
        cascade="all, delete-orphan", lazy="selectin",
    )
    incidents: Mapped[list["Incident"]] = relationship(
        "Incident", back_populates="client",
        cascade="all, delete-orphan", lazy="selectin",
    )
    applications: Mapped[list["MeerzorgApplication"]] = relationship(
        "MeerzorgApplication", back_populates="client",
        cascade="all, delete-orphan", lazy="selectin",
    )
    md_reviews: Mapped[list["MdReview"]] = relationship(
        "MdReview", cascade="all, delete-orphan", lazy="selectin",
    )
    trend_records: Mapped[list["TrendRecord"]] = relationship(
        "TrendRecord", cascade="all, delete-orphan", lazy="selectin",
    )
    risk_flags: Mapped[list["RiskFlag"]] = relationship(
        "RiskFlag", cascade="all, delete-orphan", lazy="selectin",
    )
