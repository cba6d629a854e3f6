"""Evidence Links — manual evidence for Meerzorg application fields.

Invariants:
    - Listing requires application_id; newest first
    - DELETE removes the row (404 when unknown)
    - field_label defaults to field_name
    - /chain resolves links against the current dossier; deleted records drop out
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from zorgdossier.api.routes.meerzorg import get_application_or_404
from zorgdossier.api.routes.meerzorg_workflow import evidence_to_dict
from zorgdossier.core.domain_types import SourceType
from zorgdossier.core.evidence_linking import build_evidence_chain, link_field_to_evidence
from zorgdossier.core.errors import ResourceNotFoundError
from zorgdossier.infrastructure.database import get_db
from zorgdossier.models.evidence import Evidence
from zorgdossier.schemas.evidence import EvidenceCreate
from zorgdossier.services.audit_log import record_audit_event
from zorgdossier.services.dossier_loader import load_dossier

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/evidence", tags=["evidence"])

_SOURCE_PREFIX = {
    SourceType.NOTE.value: "Notitie",
    SourceType.MEASURE.value: "Meting",
    SourceType.INCIDENT.value: "Incident",
}


def source_reference(source_type: str, source_id: str) -> str:
    """Human-readable pointer such as 'Notitie #1a2b3c4d'."""
    return f"{_SOURCE_PREFIX.get(source_type, 'Bron')} #{source_id[:8]}"


@router.get("")
async def list_evidence(
    application_id: UUID = Query(...), db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Evidence)
        .where(Evidence.application_id == application_id)
        .order_by(Evidence.created_at.desc())
    )
    evidence = result.scalars().all()
    return {
        "evidence": [
            {**evidence_to_dict(e), "source_reference": source_reference(e.source_type, e.source_id)}
            for e in evidence
        ],
        "count": len(evidence),
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_evidence(body: EvidenceCreate, db: AsyncSession = Depends(get_db)):
    """Link a dossier record to an application field."""
    application = await get_application_or_404(body.application_id, db)
    evidence = Evidence(
        application_id=application.id,
        field_name=body.field_name,
        field_label=body.field_label or body.field_name,
        source_type=body.source_type,
        source_id=body.source_id,
        evidence_text=body.evidence_text,
        confidence_score=body.confidence_score,
        meta=body.metadata,
    )
    db.add(evidence)
    await db.flush()
    record_audit_event(
        db, "system", "evidence_created", application.client_id,
        {
            "evidence_id": str(evidence.id),
            "application_id": str(application.id),
            "field_name": body.field_name,
        },
    )
    await db.commit()
    return {"id": str(evidence.id), "message": "Evidence linked successfully"}


@router.delete("")
async def delete_evidence(id: UUID = Query(...), db: AsyncSession = Depends(get_db)):
    evidence = await db.get(Evidence, id)
    if not evidence:
        raise ResourceNotFoundError("Evidence", str(id))
    application = await get_application_or_404(evidence.application_id, db)
    await db.delete(evidence)
    record_audit_event(
        db, "system", "evidence_deleted", application.client_id,
        {"evidence_id": str(id), "application_id": str(application.id)},
    )
    await db.commit()
    return {"message": "Evidence link removed"}


@router.get("/chain")
async def evidence_chain(
    application_id: UUID = Query(...),
    field_name: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
):
    """Provenance of one form value: supporting records, confidence and gaps."""
    application = await get_application_or_404(application_id, db)
    dossier = await load_dossier(db, application.client_id)
    value = (application.form_data or {}).get(field_name)
    links = link_field_to_evidence(dossier, field_name, value)
    chain = build_evidence_chain(
        f"meerzorg.{field_name}", f"{field_name} = {value}", links, dossier,
    )
    return {
        **chain,
        "evidence": [
            {
                **item,
                "source": {
                    "type": item["source"].type,
                    "id": item["source"].id,
                    "date": item["source"].date.isoformat(),
                    "text": item["source"].text,
                    "metadata": item["source"].metadata,
                },
            }
            for item in chain["evidence"]
        ],
    }
