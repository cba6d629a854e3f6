"""Dossier Loader — reads one client's records from the database into a core Dossier.

Invariants:
    - Notes, measures and incidents are ordered date-descending (newest first)
    - Ties on date keep a stable order by record id
    - Missing client raises ResourceNotFoundError (404)

Design Decisions:
    - Queries the record tables directly instead of walking Client relationships:
      the identity map may hold a Client whose collections predate a fresh insert
    - ORM -> dataclass conversion lives here so core/ never imports SQLAlchemy
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from zorgdossier.core.dossier import (
    ClientRecord, Dossier, IncidentRecord, MeasureRecord, NoteRecord,
)
from zorgdossier.core.errors import ErrorContext, ResourceNotFoundError
from zorgdossier.models.client import Client
from zorgdossier.models.incident import Incident
from zorgdossier.models.measure import Measure
from zorgdossier.models.note import Note


async def load_client_or_404(db: AsyncSession, client_id: str) -> Client:
    result = await db.execute(select(Client).where(Client.client_id == client_id))
    client = result.scalar_one_or_none()
    if not client:
        raise ResourceNotFoundError(
            "Client", client_id, ErrorContext(client_id=client_id),
        )
    return client


async def fetch_notes(db: AsyncSession, client_id: str) -> list[Note]:
    result = await db.execute(
        select(Note).where(Note.client_id == client_id)
        .order_by(Note.date.desc(), Note.id),
    )
    return list(result.scalars().all())


async def fetch_measures(db: AsyncSession, client_id: str) -> list[Measure]:
    result = await db.execute(
        select(Measure).where(Measure.client_id == client_id)
        .order_by(Measure.date.desc(), Measure.id),
    )
    return list(result.scalars().all())


async def fetch_incidents(db: AsyncSession, client_id: str) -> list[Incident]:
    result = await db.execute(
        select(Incident).where(Incident.client_id == client_id)
        .order_by(Incident.date.desc(), Incident.id),
    )
    return list(result.scalars().all())


def to_client_record(client: Client) -> ClientRecord:
    return ClientRecord(
        client_id=client.client_id,
        name=client.name,
        dob=client.dob,
        wlz_profile=client.wlz_profile,
        provider=client.provider,
    )


def to_note_record(note: Note) -> NoteRecord:
    return NoteRecord(str(note.id), note.date, note.author, note.section, note.text)


def to_measure_record(measure: Measure) -> MeasureRecord:
    return MeasureRecord(
        str(measure.id), measure.date, measure.type, measure.score, measure.comment,
    )


def to_incident_record(incident: Incident) -> IncidentRecord:
    return IncidentRecord(
        str(incident.id), incident.date, incident.type,
        incident.severity, incident.description,
    )


async def load_dossier(db: AsyncSession, client_id: str) -> Dossier:
    """Snapshot of a client's dossier. Raises 404 when the client is unknown."""
    client = await load_client_or_404(db, client_id)
    return Dossier(
        client=to_client_record(client),
        notes=[to_note_record(n) for n in await fetch_notes(db, client_id)],
        measures=[to_measure_record(m) for m in await fetch_measures(db, client_id)],
        incidents=[to_incident_record(i) for i in await fetch_incidents(db, client_id)],
    )
