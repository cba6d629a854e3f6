"""Route Tests: herindicatie overview, trends, risk flags, MD reviews and audit trail.

Invariants:
    - Trend analysis stores one record per metric that has data
    - Auto-detected and manual flags are persisted and audited
    - Resolving a flag twice is rejected
    - "observe" MD reviews need an observation period
"""

from datetime import date, timedelta
from uuid import uuid4

from sqlalchemy import select

from zorgdossier.models.trend_record import TrendRecord


async def _add_older_adl(client, score="24", days_ago=40):
    await client.post("/api/uc1/clients/C-001/records", json={
        "measures": [{
            "date": (date.today() - timedelta(days=days_ago)).isoformat(),
            "type": "Katz ADL",
            "score": score,
        }],
    })


def _md_review(**extra):
    return {
        "client_id": "C-001",
        "reviewer_name": "Dr. Visser",
        "reviewer_role": "physician",
        "clinical_notes": "Toename onrust in avonduren.",
        "decision": "approve",
        **extra,
    }


# ==============================================================================
# Overview
# ==============================================================================


async def test_overview_statistics(client, seed_client):
    data = (await client.get("/api/herindicatie", params={"client_id": "C-001"})).json()
    assert data["client"]["name"] == "Mevrouw Jansen"
    assert data["statistics"] == {
        "total_notes": 2,
        "recent_notes": 2,
        "total_measures": 1,
        "total_incidents": 1,
        "recent_incidents": 1,
        "active_risk_flags": 0,
        "md_reviews": 0,
    }
    assert data["latest_data"]["latest_note"] == (date.today() - timedelta(days=10)).isoformat()
    assert data["trends"] == []


async def test_overview_unknown_client_is_404(client):
    response = await client.get("/api/herindicatie", params={"client_id": "nope"})
    assert response.status_code == 404


# ==============================================================================
# Trends
# ==============================================================================


async def test_trend_analysis_stores_metrics_with_data(client, seed_client, test_db):
    response = await client.post("/api/trends/analyze", json={"client_id": "C-001"})
    assert response.status_code == 200
    data = response.json()
    assert data["period"]["months"] == 6
    assert data["period"]["end"] == date.today().isoformat()
    assert [t["metric_type"] for t in data["trends"]] == [
        "care_hours", "incident_count", "adl_score", "bpsd_score",
    ]
    assert data["assessment"]["status"] == "stable"

    stored = (await test_db.execute(select(TrendRecord.metric_type))).scalars().all()
    assert sorted(stored) == ["adl_score", "incident_count"]

    overview = (await client.get("/api/herindicatie", params={"client_id": "C-001"})).json()
    assert len(overview["trends"]) == 2


async def test_declining_adl_needs_attention(client, seed_client):
    await _add_older_adl(client)
    data = (await client.post("/api/trends/analyze", json={
        "client_id": "C-001", "metric_types": ["adl_score"],
    })).json()
    trend = data["trends"][0]
    assert trend["trend"] == "decreasing"
    assert trend["change_percentage"] == -25
    assert data["assessment"]["status"] == "needs_attention"


async def test_trend_analysis_unknown_client_is_404(client):
    response = await client.post("/api/trends/analyze", json={"client_id": "nope"})
    assert response.status_code == 404


# ==============================================================================
# Risk flags
# ==============================================================================


async def test_auto_detection_flags_adl_decline(client, seed_client):
    await _add_older_adl(client)
    data = (await client.post("/api/risks/flag", json={"client_id": "C-001"})).json()
    assert data["risks_detected"] == 1
    flag = data["flags"][0]
    assert flag["flag_type"] == "deteriorating_adl"
    assert flag["severity"] == "medium"
    assert flag["auto_detected"] is True
    assert flag["description"] == "ADL achteruitgang van 6.0 punten (25%)"
    assert data["summary"] == {"critical": 0, "high": 0, "medium": 1, "low": 0}


async def test_manual_flag_without_auto_detect(client, seed_client):
    data = (await client.post("/api/risks/flag", json={
        "client_id": "C-001",
        "auto_detect": False,
        "manual_flags": [
            {"flag_type": "other", "severity": "low", "description": "Familie bezorgd"},
        ],
    })).json()
    assert data["risks_detected"] == 1
    assert data["flags"][0]["auto_detected"] is False

    overview = (await client.get("/api/herindicatie", params={"client_id": "C-001"})).json()
    assert overview["statistics"]["active_risk_flags"] == 1


async def test_resolve_flag_once(client, seed_client):
    data = (await client.post("/api/risks/flag", json={
        "client_id": "C-001",
        "auto_detect": False,
        "manual_flags": [{"flag_type": "other", "severity": "low", "description": "X"}],
    })).json()
    flag_id = data["flags"][0]["id"]

    resolved = await client.post(f"/api/risks/{flag_id}/resolve")
    assert resolved.status_code == 200
    assert resolved.json()["resolved_at"] is not None

    again = await client.post(f"/api/risks/{flag_id}/resolve")
    assert again.status_code == 400
    assert again.json()["error"]["code"] == "INVALID_STATE"

    overview = (await client.get("/api/herindicatie", params={"client_id": "C-001"})).json()
    assert overview["risk_flags"] == []


async def test_resolve_unknown_flag_is_404(client):
    response = await client.post(f"/api/risks/{uuid4()}/resolve")
    assert response.status_code == 404


# ==============================================================================
# MD reviews & audit
# ==============================================================================


async def test_md_review_statistics(client, seed_client):
    created = await client.post("/api/md-review", json=_md_review())
    assert created.status_code == 201
    await client.post("/api/md-review", json=_md_review(
        reviewer_role="nurse", decision="observe", observation_period_days=30,
    ))

    data = (await client.get("/api/md-review", params={"client_id": "C-001"})).json()
    stats = data["statistics"]
    assert stats["total"] == 2
    assert stats["by_decision"] == {"approve": 1, "observe": 1, "reject": 0}
    assert stats["by_role"] == {"physician": 1, "nurse": 1}
    assert stats["latest_review"] is not None


async def test_observe_requires_period(client, seed_client):
    response = await client.post("/api/md-review", json=_md_review(decision="observe"))
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_audit_trail_filters(client, seed_client):
    await client.post("/api/md-review", json=_md_review())
    await client.post("/api/risks/flag", json={
        "client_id": "C-001",
        "auto_detect": False,
        "manual_flags": [{"flag_type": "other", "severity": "low", "description": "X"}],
    })

    by_client = (await client.get("/api/audit", params={"client_id": "C-001"})).json()
    assert by_client["total"] == 2
    by_actor = (await client.get("/api/audit", params={"actor": "Dr. Visser"})).json()
    assert [e["action"] for e in by_actor["events"]] == ["md_review_created"]
    limited = (await client.get("/api/audit", params={"limit": 1})).json()
    assert limited["total"] == 1
