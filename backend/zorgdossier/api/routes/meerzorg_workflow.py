"""Meerzorg Workflow — analyze, validate, submit, migrate and export an application.

Invariants:
    - analyze replaces extracted form fields and auto-linked evidence; manual
      evidence links survive
    - validate replaces the stored checks with the latest run
    - submit requires submitted_by, a draft-like status and no failed critical checks
    - migrate only supports 2025 -> 2026 and is a preview unless confirmed
    - Every state change writes one audit event in the same transaction

Design Decisions:
    - Collections reassigned on the ORM relationship so delete-orphan removes
      stale rows (no manual DELETE statements)
    - form_data always replaced with a new dict so the JSON column is flushed
    - Failed checks carry the dossier records that mention the rule, so a reviewer
      sees where to add documentation
"""

import csv
import io
import logging
import time
from datetime import datetime, timezone
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from zorgdossier.api.routes.meerzorg import (
    application_to_dict, form_field_to_dict, get_application_or_404,
)
from zorgdossier.core.check_engine import (
    CheckContext, execute_checks, recommend, summarize_checks,
)
from zorgdossier.core.domain_types import (
    ApplicationStatus, CheckStatus, FrameworkType, ReviewStatus, Severity,
)
from zorgdossier.core.errors import (
    CriticalChecksFailedError, ErrorContext, RequestValidationFailed,
    UnsupportedFormatError, WorkflowStateError,
)
from zorgdossier.core.evidence_linking import (
    link_check_to_evidence, link_form_fields, validate_evidence_quality,
)
from zorgdossier.core.framework_versions import (
    compare_versions, determine_application_version, plan_migration,
    validate_against_version, version_timeline,
    version_transition,
)
from zorgdossier.core.meerzorg_extraction import (
    analysis_form_fields, analyze_dossier, confidence_summary, form_suggestions,
)
from zorgdossier.infrastructure.database import get_db
from zorgdossier.models.evidence import Evidence
from zorgdossier.models.meerzorg_form_field import MeerzorgFormField
from zorgdossier.models.normative_check import NormativeCheck
from zorgdossier.models.review_workflow import ReviewWorkflow
from zorgdossier.schemas.meerzorg import MigrateRequest, SubmitRequest
from zorgdossier.services.audit_log import record_audit_event
from zorgdossier.services.dossier_loader import load_dossier

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/meerzorg", tags=["meerzorg-workflow"])

EVIDENCE_PER_FIELD = 3
EXPORT_FORMATS = ["json", "csv"]


def evidence_to_dict(evidence: Evidence) -> dict:
    return {
        "id": str(evidence.id),
        "application_id": str(evidence.application_id),
        "field_name": evidence.field_name,
        "field_label": evidence.field_label,
        "source_type": evidence.source_type,
        "source_id": evidence.source_id,
        "evidence_text": evidence.evidence_text,
        "confidence_score": evidence.confidence_score,
        "metadata": evidence.meta,
        "created_at": evidence.created_at.isoformat() if evidence.created_at else None,
    }


def check_to_dict(check: NormativeCheck) -> dict:
    return {
        "id": str(check.id),
        "check_type": check.check_type,
        "rule_id": check.rule_id,
        "status": check.status,
        "message": check.message,
        "severity": check.severity,
        "checked_at": check.checked_at.isoformat() if check.checked_at else None,
    }


# ─── Analyze ─────────────────────────────────────────────────────

@router.post("/{application_id}/analyze")
async def analyze_application(
    application_id: UUID, db: AsyncSession = Depends(get_db),
):
    """Extract form values from the dossier and link supporting evidence."""
    application = await get_application_or_404(application_id, db)
    dossier = await load_dossier(db, application.client_id)

    analysis = analyze_dossier(dossier)
    fields = analysis_form_fields(analysis)
    links_by_field = link_form_fields(fields, dossier)

    form_fields: list[MeerzorgFormField] = []
    new_evidence: list[Evidence] = []
    for name, value in fields:
        links = links_by_field.get(name, [])[:EVIDENCE_PER_FIELD]
        best = links[0] if links else None
        form_fields.append(MeerzorgFormField(
            field_name=name,
            field_value=value,
            source_type=best.source_type if best else "unknown",
            source_id=best.source_id if best else "",
            confidence=best.confidence if best else 0.5,
        ))
        for link in links:
            new_evidence.append(Evidence(
                field_name=name,
                field_label=name,
                source_type=link.source_type,
                source_id=link.source_id,
                evidence_text=link.snippet,
                confidence_score=link.confidence,
                meta={"relevance": link.relevance, "reason": link.reason, "auto_linked": True},
            ))

    application.form_fields = form_fields
    application.evidence = [
        e for e in application.evidence if not (e.meta or {}).get("auto_linked")
    ] + new_evidence
    application.form_data = {**(application.form_data or {}), **dict(fields)}
    await db.commit()

    logger.info(
        f"Dossier analyzed: {len(fields)} fields, {len(new_evidence)} evidence links",
        extra={"client_id": application.client_id, "application_id": str(application.id)},
    )
    return {
        "analysis": analysis.to_dict(),
        "extracted_fields": [
            {
                **form_field_to_dict(field),
                "evidence": [
                    link.to_dict()
                    for link in links_by_field.get(field.field_name, [])[:EVIDENCE_PER_FIELD]
                ],
                "quality": validate_evidence_quality(links_by_field.get(field.field_name, [])),
            }
            for field in form_fields
        ],
        "suggestions": form_suggestions(analysis),
        "summary": confidence_summary([f.confidence for f in form_fields]),
    }


# ─── Validate ────────────────────────────────────────────────────

@router.post("/{application_id}/validate")
async def validate_application(
    application_id: UUID, db: AsyncSession = Depends(get_db),
):
    """Run the normative checks for the application's framework version."""
    application = await get_application_or_404(application_id, db)
    dossier = await load_dossier(db, application.client_id)

    ctx = CheckContext(
        dossier=dossier,
        form_data=application.form_data or {},
        application_id=str(application.id),
    )
    results = execute_checks(ctx, FrameworkType.MEERZORG.value, application.version)
    application.checks = [
        NormativeCheck(
            client_id=r.client_id,
            check_type=r.check_type,
            rule_id=r.rule_id,
            status=r.status,
            message=r.message,
            severity=r.severity,
            checked_at=r.checked_at,
        )
        for r in results
    ]
    await db.commit()

    summary = summarize_checks(results)
    logger.info(
        f"Application validated: {summary['passed']}/{summary['total']} passed",
        extra={"client_id": application.client_id, "application_id": str(application.id)},
    )
    checks = []
    for r in results:
        check = r.to_dict()
        if r.status == CheckStatus.FAIL.value:
            check["evidence"] = [
                link.to_dict()
                for link in link_check_to_evidence(r.rule_id, r.message, dossier)[:EVIDENCE_PER_FIELD]
            ]
        checks.append(check)
    return {
        "checks": checks,
        "summary": summary,
        "recommendation": recommend(summary),
    }


# ─── Submit ──────────────────────────────────────────────────────

_LOCKED_STATUSES = (ApplicationStatus.SUBMITTED.value, ApplicationStatus.APPROVED.value)


@router.post("/{application_id}/submit")
async def submit_application(
    application_id: UUID, body: SubmitRequest, db: AsyncSession = Depends(get_db),
):
    """Submit for review. Blocked by failed critical checks from the last validate."""
    application = await get_application_or_404(application_id, db)
    ctx = ErrorContext(client_id=application.client_id, application_id=str(application.id))

    submitted_by = (body.submitted_by or "").strip()
    if not submitted_by:
        raise RequestValidationFailed("submitted_by is required", "submitted_by", ctx)
    if application.status in _LOCKED_STATUSES:
        raise WorkflowStateError(f"Application is already {application.status}", ctx)

    critical = [
        {"rule_id": c.rule_id, "message": c.message}
        for c in application.checks
        if c.severity == Severity.CRITICAL.value and c.status == CheckStatus.FAIL.value
    ]
    if critical:
        raise CriticalChecksFailedError(critical, ctx)

    submitted_at = datetime.now(timezone.utc)
    application.status = ApplicationStatus.SUBMITTED.value
    application.submitted_by = submitted_by
    application.submitted_at = submitted_at
    application.reviews.append(ReviewWorkflow(
        reviewer_role=body.reviewer_role,
        reviewer_name=submitted_by,
        status=ReviewStatus.PENDING.value,
    ))
    record_audit_event(
        db, submitted_by, "meerzorg_application_submitted", application.client_id,
        {
            "application_id": str(application.id),
            "version": application.version,
            "submitted_at": submitted_at.isoformat(),
        },
    )
    await db.commit()
    await db.refresh(application)

    logger.info(
        f"Application submitted by {submitted_by}",
        extra={"client_id": application.client_id, "application_id": str(application.id)},
    )
    return {**application_to_dict(application), "message": "Application submitted successfully"}


# ─── Migrate ─────────────────────────────────────────────────────

@router.post("/{application_id}/migrate")
async def migrate_application(
    application_id: UUID, body: MigrateRequest, db: AsyncSession = Depends(get_db),
):
    """Move form data to a newer framework version. Preview unless confirmed."""
    application = await get_application_or_404(application_id, db)
    version_from = application.version
    plan = plan_migration(application.form_data or {}, version_from, body.target_version)

    if not body.confirm_changes:
        return {
            "success": False,
            "version_from": version_from,
            "version_to": body.target_version,
            "warnings": plan["warnings"],
            "changes_applied": plan["changes"],
            "preview": True,
            "message": (
                "Preview mode: geen wijzigingen toegepast. "
                "Stel confirm_changes in op true om te migreren."
            ),
        }

    application.version = body.target_version
    application.form_data = {**(application.form_data or {}), **plan["changes"]}
    record_audit_event(
        db, "system", "application_migrated", application.client_id,
        {
            "application_id": str(application.id),
            "version_from": version_from,
            "version_to": body.target_version,
            "changes": plan["changes"],
            "warnings_count": len(plan["warnings"]),
        },
    )
    await db.commit()

    logger.info(
        f"Application migrated {version_from} -> {body.target_version}",
        extra={"client_id": application.client_id, "application_id": str(application.id)},
    )
    return {
        "success": True,
        "version_from": version_from,
        "version_to": body.target_version,
        "warnings": plan["warnings"],
        "changes_applied": plan["changes"],
        "message": "Migratie succesvol voltooid",
    }


# ─── Export ──────────────────────────────────────────────────────

def _csv_export(application, evidence: list[Evidence], checks: list[NormativeCheck]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(["Field", "Value"])
    writer.writerow(["Status", application.status])
    writer.writerow(["Version", application.version])
    writer.writerow(["Created At", application.created_at.isoformat()])
    writer.writerow([
        "Submitted At",
        application.submitted_at.isoformat() if application.submitted_at else "N/A",
    ])
    for key, value in (application.form_data or {}).items():
        writer.writerow([key, "" if value is None else str(value)])

    if evidence:
        writer.writerow([])
        writer.writerow(["Evidence"])
        writer.writerow(["Field", "Source Type", "Evidence Text", "Confidence"])
        for e in evidence:
            writer.writerow([e.field_name, e.source_type, e.evidence_text, e.confidence_score])

    if checks:
        writer.writerow([])
        writer.writerow(["Validations"])
        writer.writerow(["Check Type", "Status", "Message"])
        for c in checks:
            writer.writerow([c.check_type, c.status, c.message])
    return buffer.getvalue()


@router.get("/{application_id}/export")
async def export_application(
    application_id: UUID,
    format: str = Query("json"),
    db: AsyncSession = Depends(get_db),
):
    """Application with evidence and stored checks as a JSON or CSV download."""
    application = await get_application_or_404(application_id, db)
    fmt = format.lower()
    if fmt not in EXPORT_FORMATS:
        raise UnsupportedFormatError(
            format, EXPORT_FORMATS,
            ErrorContext(client_id=application.client_id, application_id=str(application.id)),
        )

    evidence = list(application.evidence)
    checks = list(application.checks)
    record_audit_event(
        db, "system", "application_exported", application.client_id,
        {"application_id": str(application.id), "format": fmt},
    )
    await db.commit()

    filename = f"meerzorg-{application.id}-{int(time.time() * 1000)}.{fmt}"
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}
    if fmt == "csv":
        return Response(
            content=_csv_export(application, evidence, checks),
            media_type="text/csv",
            headers=headers,
        )
    return JSONResponse(
        content={
            "application": application_to_dict(application),
            "evidence": [evidence_to_dict(e) for e in evidence],
            "validations": [check_to_dict(c) for c in checks],
            "exported_at": datetime.now(timezone.utc).isoformat(),
        },
        headers=headers,
    )


# ─── Version Check ───────────────────────────────────────────────

@router.get("/{application_id}/version-check")
async def version_check(application_id: UUID, db: AsyncSession = Depends(get_db)):
    """Form data against its framework version, plus any pending version move."""
    application = await get_application_or_404(application_id, db)
    framework = FrameworkType.MEERZORG.value
    transition = version_transition(framework, application.version)
    return {
        "application_id": str(application.id),
        "version": application.version,
        "active_version": determine_application_version(framework),
        "validation": validate_against_version(
            application.form_data or {}, framework, application.version,
        ),
        "transition": transition,
        "comparison": (
            compare_versions(framework, application.version, transition["to_version"])
            if transition else None
        ),
        "timeline": version_timeline(framework),
    }
