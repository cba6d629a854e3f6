"""Herindicatie Advice — criteria evaluation, report text and DOCX export.

Invariants:
    - evaluate-criteria returns one result per criterion of the requested set
    - Each operation writes one audit event (evaluate/compose actor "ai", export "user")
    - Export filename: Herindicatie_<label>_<YYYY-MM-DD>.docx, label "CLIENT" when
      anonymized, else client_id with non-alphanumerics replaced by "_"

Design Decisions:
    - LLM client built per request from settings and closed afterwards
    - compose-report and export work on the caller's criteria payload; the
      dossier is not re-read
"""

import logging
import re
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from zorgdossier.config import Settings, get_settings
from zorgdossier.core.criteria import criteria_for_set
from zorgdossier.core.report_composer import compose_report
from zorgdossier.infrastructure.database import get_db
from zorgdossier.schemas.herindicatie import (
    ComposeReportRequest, EvaluateCriteriaRequest, ExportReportRequest,
)
from zorgdossier.services.audit_log import record_audit_event
from zorgdossier.services.criteria_evaluator import CriteriaEvaluator, build_llm_client
from zorgdossier.services.docx_report import render_herindicatie_docx
from zorgdossier.services.dossier_loader import load_dossier

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/uc2", tags=["herindicatie-advice"])

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9]")


def export_filename(client_id: str, anonymize: bool, on: datetime) -> str:
    label = "CLIENT" if anonymize else _UNSAFE_FILENAME_CHARS.sub("_", client_id)
    return f"Herindicatie_{label}_{on.strftime('%Y-%m-%d')}.docx"


@router.post("/evaluate-criteria")
async def evaluate_criteria(
    body: EvaluateCriteriaRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Evaluate every criterion of the set against the dossier within the period."""
    dossier = await load_dossier(db, body.client_id)
    criteria = criteria_for_set(body.criteria_set)

    llm = build_llm_client(settings)
    evaluator = CriteriaEvaluator(llm, settings.criteria_model, settings.criteria_max_tokens)
    try:
        results = await evaluator.evaluate_all(
            dossier, criteria, body.period.from_, body.period.to, body.max_evidence,
        )
    finally:
        if llm is not None:
            await llm.close()

    record_audit_event(
        db, "ai", "evaluate-criteria", body.client_id,
        {
            "criteria_set": body.criteria_set,
            "criteria_count": len(results),
            "period": {"from": body.period.from_, "to": body.period.to},
            "ai_enabled": llm is not None,
        },
    )
    await db.commit()
    logger.info(
        f"Criteria evaluated: {len(results)} ({body.criteria_set})",
        extra={"client_id": body.client_id},
    )
    return {"client_id": body.client_id, "criteria": results}


@router.post("/compose-report")
async def compose_herindicatie_report(
    body: ComposeReportRequest, db: AsyncSession = Depends(get_db),
):
    """Report sections with citations from evaluated criteria."""
    criteria = [c.model_dump() for c in body.criteria_payload]
    report = compose_report(body.client_id, criteria, body.sections, body.tone)
    record_audit_event(
        db, "ai", "compose-report", body.client_id,
        {
            "sections": body.sections,
            "tone": body.tone,
            "citations_count": len(report["citations"]),
        },
    )
    await db.commit()
    return report


@router.post("/export")
async def export_herindicatie_report(
    body: ExportReportRequest, db: AsyncSession = Depends(get_db),
):
    """Herindicatie advice as a Word document download."""
    now = datetime.now(timezone.utc)
    criteria = [c.model_dump() for c in body.criteria]
    content = render_herindicatie_docx(
        body.client_id,
        {"from": body.period.from_, "to": body.period.to},
        criteria,
        anonymize=body.options.anonymize,
        include_evidence_appendix=body.options.include_evidence_appendix,
        generated_at=now,
    )
    record_audit_event(
        db, "user", "export-report", body.client_id,
        {
            "format": "docx",
            "criteria_count": len(criteria),
            "anonymize": body.options.anonymize,
            "include_evidence": body.options.include_evidence_appendix,
        },
    )
    await db.commit()

    filename = export_filename(body.client_id, body.options.anonymize, now)
    return Response(
        content=content,
        media_type=DOCX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
