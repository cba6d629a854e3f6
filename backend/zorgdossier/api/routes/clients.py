"""Clients & Dossier Records — CRUD for clients and JSON ingestion of their records.

Invariants:
    - client_id is unique; creating an existing client returns 409
    - client_id and created_at are immutable through PUT
    - DELETE cascades to every record scoped to the client and reports counts
    - Every mutation writes one audit event (actor "user")

Design Decisions:
    - Records ingested as JSON instead of CSV/PDF uploads: parsing lives client-side
    - Record listings are date-descending, matching what core/ functions expect
"""

import logging
from collections import Counter

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from zorgdossier.core.errors import ErrorContext, ResourceConflictError
from zorgdossier.infrastructure.database import get_db
from zorgdossier.models.client import Client
from zorgdossier.models.incident import Incident
from zorgdossier.models.measure import Measure
from zorgdossier.models.note import Note
from zorgdossier.schemas.client import ClientCreate, ClientUpdate, RecordsIngest
from zorgdossier.services.audit_log import record_audit_event
from zorgdossier.services.dossier_loader import (
    fetch_incidents, fetch_measures, fetch_notes, load_client_or_404,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/uc1", tags=["clients"])


# ─── Serialization ───────────────────────────────────────────────

def client_to_dict(client: Client) -> dict:
    return {
        "client_id": client.client_id,
        "name": client.name,
        "dob": client.dob,
        "bsn_encrypted": client.bsn_encrypted,
        "wlz_profile": client.wlz_profile,
        "provider": client.provider,
        "created_at": client.created_at.isoformat(),
    }


def note_to_dict(note: Note) -> dict:
    return {
        "id": str(note.id),
        "client_id": note.client_id,
        "date": note.date.isoformat(),
        "author": note.author,
        "section": note.section,
        "text": note.text,
    }


def measure_to_dict(measure: Measure) -> dict:
    return {
        "id": str(measure.id),
        "client_id": measure.client_id,
        "date": measure.date.isoformat(),
        "type": measure.type,
        "score": measure.score,
        "comment": measure.comment,
    }


def incident_to_dict(incident: Incident) -> dict:
    return {
        "id": str(incident.id),
        "client_id": incident.client_id,
        "date": incident.date.isoformat(),
        "type": incident.type,
        "severity": incident.severity,
        "description": incident.description,
    }


# ─── Clients ─────────────────────────────────────────────────────

@router.get("/clients")
async def list_clients(
    provider: str | None = Query(None),
    wlz_profile: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """List clients, newest first, optionally filtered."""
    query = select(Client).order_by(Client.created_at.desc())
    if provider:
        query = query.where(Client.provider == provider)
    if wlz_profile:
        query = query.where(Client.wlz_profile == wlz_profile)
    result = await db.execute(query)
    clients = result.scalars().all()
    return {"clients": [client_to_dict(c) for c in clients], "total": len(clients)}


@router.post("/clients", status_code=status.HTTP_201_CREATED)
async def create_client(body: ClientCreate, db: AsyncSession = Depends(get_db)):
    """Create a client. 409 when the client_id is taken."""
    existing = await db.get(Client, body.client_id)
    if existing:
        raise ResourceConflictError(
            "Client", body.client_id, ErrorContext(client_id=body.client_id),
        )
    client = Client(
        client_id=body.client_id,
        name=body.name,
        dob=body.dob,
        bsn_encrypted=body.bsn_encrypted,
        wlz_profile=body.wlz_profile,
        provider=body.provider,
    )
    db.add(client)
    record_audit_event(
        db, "user", "create-client", body.client_id,
        {"wlz_profile": body.wlz_profile, "provider": body.provider},
    )
    await db.commit()
    await db.refresh(client)
    logger.info(f"Client created: {client.client_id}", extra={"client_id": client.client_id})
    return {"client": client_to_dict(client), "message": "Client created successfully"}


@router.get("/clients/{client_id}")
async def get_client(
    client_id: str,
    include_summary: bool = Query(False),
    db: AsyncSession = Depends(get_db),
):
    """Client details, optionally with record counts and latest dates."""
    client = await load_client_or_404(db, client_id)
    response: dict = {"client": client_to_dict(client)}
    if include_summary:
        notes = await fetch_notes(db, client_id)
        measures = await fetch_measures(db, client_id)
        incidents = await fetch_incidents(db, client_id)
        response["summary"] = {
            "notes_count": len(notes),
            "measures_count": len(measures),
            "incidents_count": len(incidents),
            "latest_note_date": notes[0].date.isoformat() if notes else None,
            "latest_measure_date": measures[0].date.isoformat() if measures else None,
            "latest_incident_date": incidents[0].date.isoformat() if incidents else None,
        }
    return response


@router.put("/clients/{client_id}")
async def update_client(
    client_id: str, body: ClientUpdate, db: AsyncSession = Depends(get_db),
):
    """Update mutable client fields."""
    client = await load_client_or_404(db, client_id)
    updates = body.model_dump(exclude_unset=True)
    for key, value in updates.items():
        setattr(client, key, value)
    record_audit_event(
        db, "user", "update-client", client_id,
        {"fields_updated": sorted(updates)},
    )
    await db.commit()
    await db.refresh(client)
    return {"client": client_to_dict(client), "message": "Client updated successfully"}


@router.delete("/clients/{client_id}")
async def delete_client(client_id: str, db: AsyncSession = Depends(get_db)):
    """Delete a client and all associated data."""
    client = await load_client_or_404(db, client_id)
    counts = {
        "notes": len(await fetch_notes(db, client_id)),
        "measures": len(await fetch_measures(db, client_id)),
        "incidents": len(await fetch_incidents(db, client_id)),
    }
    await db.delete(client)
    record_audit_event(
        db, "user", "delete-client", client_id,
        {f"{kind}_deleted": n for kind, n in counts.items()},
    )
    await db.commit()
    logger.info(f"Client deleted: {client_id}", extra={"client_id": client_id})
    return {
        "message": "Client and all associated data deleted successfully",
        "deleted": {"client_id": client_id, **counts},
    }


# ─── Records ─────────────────────────────────────────────────────

@router.post("/clients/{client_id}/records", status_code=status.HTTP_201_CREATED)
async def ingest_records(
    client_id: str, body: RecordsIngest, db: AsyncSession = Depends(get_db),
):
    """Add notes, measures and incidents to a client's dossier."""
    await load_client_or_404(db, client_id)
    for note in body.notes:
        db.add(Note(client_id=client_id, **note.model_dump()))
    for measure in body.measures:
        db.add(Measure(client_id=client_id, **measure.model_dump()))
    for incident in body.incidents:
        db.add(Incident(client_id=client_id, **incident.model_dump()))
    ingested = {
        "notes": len(body.notes),
        "measures": len(body.measures),
        "incidents": len(body.incidents),
    }
    record_audit_event(db, "user", "ingest-records", client_id, ingested)
    await db.commit()
    return {"client_id": client_id, "ingested": ingested}


@router.get("/clients/{client_id}/notes")
async def list_notes(client_id: str, db: AsyncSession = Depends(get_db)):
    await load_client_or_404(db, client_id)
    notes = await fetch_notes(db, client_id)
    return {"notes": [note_to_dict(n) for n in notes], "total": len(notes)}


@router.get("/clients/{client_id}/measures")
async def list_measures(client_id: str, db: AsyncSession = Depends(get_db)):
    await load_client_or_404(db, client_id)
    measures = await fetch_measures(db, client_id)
    return {"measures": [measure_to_dict(m) for m in measures], "total": len(measures)}


@router.get("/clients/{client_id}/incidents")
async def list_incidents(client_id: str, db: AsyncSession = Depends(get_db)):
    await load_client_or_404(db, client_id)
    incidents = await fetch_incidents(db, client_id)
    return {"incidents": [incident_to_dict(i) for i in incidents], "total": len(incidents)}


# ─── Statistics ──────────────────────────────────────────────────

async def _count(db: AsyncSession, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


def _average(total: int, clients: int) -> float:
    return round(total / clients, 1) if clients else 0.0


async def _global_stats(db: AsyncSession) -> dict:
    clients = (await db.execute(select(Client))).scalars().all()
    notes = await _count(db, Note)
    measures = await _count(db, Measure)
    incidents = await _count(db, Incident)
    return {
        "summary": {
            "total_clients": len(clients),
            "total_notes": notes,
            "total_measures": measures,
            "total_incidents": incidents,
        },
        "breakdown": {
            "by_profile": dict(Counter(c.wlz_profile for c in clients if c.wlz_profile)),
            "by_provider": dict(Counter(c.provider for c in clients if c.provider)),
        },
        "averages": {
            "notes_per_client": _average(notes, len(clients)),
            "measures_per_client": _average(measures, len(clients)),
            "incidents_per_client": _average(incidents, len(clients)),
        },
    }


async def _client_stats(db: AsyncSession, client_id: str) -> dict:
    await load_client_or_404(db, client_id)
    notes = await fetch_notes(db, client_id)
    measures = await fetch_measures(db, client_id)
    incidents = await fetch_incidents(db, client_id)
    return {
        "client_id": client_id,
        "summary": {
            "notes_count": len(notes),
            "measures_count": len(measures),
            "incidents_count": len(incidents),
        },
        "notes": {
            "by_section": dict(Counter(n.section for n in notes)),
            "by_author": dict(Counter(n.author for n in notes)),
            "date_range": {
                "earliest": notes[-1].date.isoformat() if notes else None,
                "latest": notes[0].date.isoformat() if notes else None,
            },
        },
        "measures": {"by_type": dict(Counter(m.type for m in measures))},
        "incidents": {
            "by_type": dict(Counter(i.type for i in incidents)),
            "by_severity": dict(Counter(i.severity for i in incidents)),
        },
    }


@router.get("/stats")
async def stats(
    client_id: str | None = Query(None), db: AsyncSession = Depends(get_db),
):
    """Store-wide statistics, or per-client when client_id is given."""
    if client_id:
        return await _client_stats(db, client_id)
    return await _global_stats(db)
