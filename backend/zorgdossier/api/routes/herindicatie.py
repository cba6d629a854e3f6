"""Herindicatie Monitoring — overview, trends, risk flags, MD reviews and audit trail.

Invariants:
    - Every endpoint scoped to an existing client (404 otherwise)
    - Trend analysis stores at most one TrendRecord per analyzed metric with data
    - A risk flag is active while resolved_at is NULL; resolving twice is a 400
    - MD review "observe" decisions carry observation_period_days (schema-enforced)

Design Decisions:
    - Risk detection reads stored care-hour TrendRecords, so increased_care needs
      at least two earlier analyses with data
    - Recent windows: notes 6 months, incidents 3 months
"""

import logging
from collections import Counter
from datetime import date, datetime, time, timezone
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from zorgdossier.core.dossier import months_ago
from zorgdossier.core.errors import ErrorContext, ResourceNotFoundError, WorkflowStateError
from zorgdossier.core.risk_detection import TrendPoint, detect_risks, severity_summary
from zorgdossier.core.trend_analysis import analyze_trends, overall_assessment
from zorgdossier.infrastructure.database import get_db
from zorgdossier.models.md_review import MdReview
from zorgdossier.models.risk_flag import RiskFlag
from zorgdossier.models.trend_record import TrendRecord
from zorgdossier.schemas.herindicatie import (
    MdReviewCreate, RiskFlagRequest, TrendAnalyzeRequest,
)
from zorgdossier.services.audit_log import (
    audit_event_to_dict, list_audit_events, record_audit_event,
)
from zorgdossier.services.dossier_loader import load_client_or_404, load_dossier

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["herindicatie"])

RECENT_TRENDS_LIMIT = 20


# ─── Serialization ───────────────────────────────────────────────

def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def trend_record_to_dict(record: TrendRecord) -> dict:
    return {
        "id": str(record.id),
        "metric_type": record.metric_type,
        "metric_value": record.metric_value,
        "period_start": _iso(record.period_start),
        "period_end": _iso(record.period_end),
        "recorded_at": _iso(record.recorded_at),
    }


def risk_flag_to_dict(flag: RiskFlag) -> dict:
    return {
        "id": str(flag.id),
        "client_id": flag.client_id,
        "flag_type": flag.flag_type,
        "severity": flag.severity,
        "description": flag.description,
        "created_at": _iso(flag.created_at),
        "resolved_at": _iso(flag.resolved_at),
    }


def md_review_to_dict(review: MdReview) -> dict:
    return {
        "id": str(review.id),
        "client_id": review.client_id,
        "reviewer_name": review.reviewer_name,
        "reviewer_role": review.reviewer_role,
        "clinical_notes": review.clinical_notes,
        "decision": review.decision,
        "observation_period_days": review.observation_period_days,
        "created_at": _iso(review.created_at),
    }


def _start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


async def _trend_records(db: AsyncSession, client_id: str, limit: int | None = None) -> list[TrendRecord]:
    query = (
        select(TrendRecord)
        .where(TrendRecord.client_id == client_id)
        .order_by(TrendRecord.recorded_at.desc())
    )
    if limit:
        query = query.limit(limit)
    return list((await db.execute(query)).scalars().all())


async def _active_flags(db: AsyncSession, client_id: str) -> list[RiskFlag]:
    result = await db.execute(
        select(RiskFlag)
        .where(RiskFlag.client_id == client_id, RiskFlag.resolved_at.is_(None))
        .order_by(RiskFlag.created_at.desc())
    )
    return list(result.scalars().all())


async def _md_reviews(db: AsyncSession, client_id: str) -> list[MdReview]:
    result = await db.execute(
        select(MdReview)
        .where(MdReview.client_id == client_id)
        .order_by(MdReview.created_at.desc())
    )
    return list(result.scalars().all())


# ─── Overview ────────────────────────────────────────────────────

@router.get("/herindicatie")
async def herindicatie_overview(
    client_id: str = Query(..., min_length=1), db: AsyncSession = Depends(get_db),
):
    """Everything a reviewer needs before a herindicatie, in one call."""
    client = await load_client_or_404(db, client_id)
    dossier = await load_dossier(db, client_id)
    trends = await _trend_records(db, client_id, RECENT_TRENDS_LIMIT)
    flags = await _active_flags(db, client_id)
    md_reviews = await _md_reviews(db, client_id)

    today = date.today()
    notes_cutoff = months_ago(today, 6)
    incidents_cutoff = months_ago(today, 3)
    notes, measures, incidents = dossier.notes, dossier.measures, dossier.incidents

    return {
        "client": {
            "client_id": client.client_id,
            "name": client.name,
            "wlz_profile": client.wlz_profile,
            "provider": client.provider,
        },
        "statistics": {
            "total_notes": len(notes),
            "recent_notes": sum(1 for n in notes if n.date >= notes_cutoff),
            "total_measures": len(measures),
            "total_incidents": len(incidents),
            "recent_incidents": sum(1 for i in incidents if i.date >= incidents_cutoff),
            "active_risk_flags": len(flags),
            "md_reviews": len(md_reviews),
        },
        "trends": [trend_record_to_dict(t) for t in trends],
        "risk_flags": [risk_flag_to_dict(f) for f in flags],
        "md_reviews": [md_review_to_dict(r) for r in md_reviews],
        "latest_data": {
            "latest_note": notes[0].date.isoformat() if notes else None,
            "latest_measure": measures[0].date.isoformat() if measures else None,
            "latest_incident": incidents[0].date.isoformat() if incidents else None,
        },
    }


# ─── Trends ──────────────────────────────────────────────────────

@router.post("/trends/analyze")
async def analyze_client_trends(
    body: TrendAnalyzeRequest, db: AsyncSession = Depends(get_db),
):
    """Analyze metric trends over the last period_months and store the latest values."""
    dossier = await load_dossier(db, body.client_id)
    end = date.today()
    start = months_ago(end, body.period_months)

    analyses = analyze_trends(dossier, body.metric_types, start, end)
    for analysis in analyses:
        if not analysis.data_points:
            continue
        db.add(TrendRecord(
            client_id=body.client_id,
            metric_type=analysis.metric_type,
            metric_value=float(analysis.data_points[-1]["value"]),
            period_start=_start_of_day(start),
            period_end=_start_of_day(end),
        ))
    await db.commit()

    assessment = overall_assessment(analyses)
    logger.info(
        f"Trends analyzed: {len(analyses)} metrics, status {assessment['status']}",
        extra={"client_id": body.client_id},
    )
    return {
        "client_id": body.client_id,
        "period": {
            "start": start.isoformat(),
            "end": end.isoformat(),
            "months": body.period_months,
        },
        "trends": [a.to_dict() for a in analyses],
        "assessment": assessment,
    }


# ─── Risk Flags ──────────────────────────────────────────────────

@router.post("/risks/flag")
async def flag_risks(body: RiskFlagRequest, db: AsyncSession = Depends(get_db)):
    """Detect risks automatically and/or record manual flags."""
    dossier = await load_dossier(db, body.client_id)

    detected: list[dict] = []
    if body.auto_detect:
        points = [
            TrendPoint(r.metric_type, r.metric_value, r.recorded_at)
            for r in await _trend_records(db, body.client_id)
        ]
        detected = [risk.to_dict() for risk in detect_risks(dossier, points)]
    detected.extend(
        {**flag.model_dump(), "auto_detected": False} for flag in body.manual_flags
    )

    flags = []
    for risk in detected:
        auto = risk.pop("auto_detected", True)
        flag = RiskFlag(
            client_id=body.client_id,
            flag_type=risk["flag_type"],
            severity=risk["severity"],
            description=risk["description"],
        )
        db.add(flag)
        await db.flush()
        record_audit_event(
            db, "system", "risk_flag_created", body.client_id,
            {
                "flag_id": str(flag.id),
                "flag_type": flag.flag_type,
                "severity": flag.severity,
                "auto_detected": auto,
            },
        )
        flags.append({**risk_flag_to_dict(flag), **risk, "auto_detected": auto})
    await db.commit()

    logger.info(f"Risk flags created: {len(flags)}", extra={"client_id": body.client_id})
    return {
        "client_id": body.client_id,
        "risks_detected": len(flags),
        "flags": flags,
        "summary": severity_summary(flags),
    }


@router.post("/risks/{flag_id}/resolve")
async def resolve_risk_flag(flag_id: UUID, db: AsyncSession = Depends(get_db)):
    flag = await db.get(RiskFlag, flag_id)
    if not flag:
        raise ResourceNotFoundError("RiskFlag", str(flag_id))
    ctx = ErrorContext(client_id=flag.client_id)
    if flag.resolved_at is not None:
        raise WorkflowStateError("Risk flag is already resolved", ctx)
    flag.resolved_at = datetime.now(timezone.utc)
    record_audit_event(
        db, "user", "risk_flag_resolved", flag.client_id, {"flag_id": str(flag.id)},
    )
    await db.commit()
    return risk_flag_to_dict(flag)


# ─── MD Reviews ──────────────────────────────────────────────────

@router.post("/md-review", status_code=status.HTTP_201_CREATED)
async def create_md_review(body: MdReviewCreate, db: AsyncSession = Depends(get_db)):
    """Record a multidisciplinary reviewer's decision."""
    await load_client_or_404(db, body.client_id)
    review = MdReview(
        client_id=body.client_id,
        reviewer_name=body.reviewer_name,
        reviewer_role=body.reviewer_role,
        clinical_notes=body.clinical_notes,
        decision=body.decision,
        observation_period_days=body.observation_period_days,
    )
    db.add(review)
    await db.flush()
    record_audit_event(
        db, body.reviewer_name, "md_review_created", body.client_id,
        {
            "review_id": str(review.id),
            "decision": body.decision,
            "reviewer_role": body.reviewer_role,
        },
    )
    await db.commit()
    return {
        "id": str(review.id),
        "client_id": review.client_id,
        "reviewer_name": review.reviewer_name,
        "reviewer_role": review.reviewer_role,
        "decision": review.decision,
        "observation_period_days": review.observation_period_days,
        "created_at": _iso(review.created_at),
    }


@router.get("/md-review")
async def list_md_reviews(
    client_id: str = Query(..., min_length=1), db: AsyncSession = Depends(get_db),
):
    await load_client_or_404(db, client_id)
    reviews = await _md_reviews(db, client_id)
    decisions = Counter(r.decision for r in reviews)
    return {
        "client_id": client_id,
        "reviews": [md_review_to_dict(r) for r in reviews],
        "statistics": {
            "total": len(reviews),
            "by_decision": {
                key: decisions.get(key, 0) for key in ("approve", "observe", "reject")
            },
            "by_role": dict(Counter(r.reviewer_role for r in reviews)),
            "latest_review": md_review_to_dict(reviews[0]) if reviews else None,
        },
    }


# ─── Audit ───────────────────────────────────────────────────────

@router.get("/audit")
async def audit_trail(
    client_id: str | None = Query(None),
    actor: str | None = Query(None),
    limit: int = Query(100, gt=0, le=1000),
    db: AsyncSession = Depends(get_db),
):
    events = await list_audit_events(db, client_id, actor, limit)
    return {"events": [audit_event_to_dict(e) for e in events], "total": len(events)}
