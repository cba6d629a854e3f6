"""Route Tests: clients, record ingestion, statistics, search and health.

Invariants:
    - Duplicate client_id → 409; unknown client → 404 with error envelope
    - client_id is immutable through PUT
    - DELETE cascades records and reports counts
    - Every mutation leaves an audit event
"""

from datetime import date, timedelta

import pytest
from sqlalchemy import select

from zorgdossier.models.audit_event import AuditEvent
from zorgdossier.models.note import Note


async def _create(client, client_id="C-100", **extra):
    body = {"client_id": client_id, "name": "Meneer De Boer", "wlz_profile": "VV7", **extra}
    return await client.post("/api/uc1/clients", json=body)


# ==============================================================================
# Health
# ==============================================================================


async def test_liveness(client):
    response = await client.get("/api/health/")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


async def test_readiness_uses_test_engine(client):
    response = await client.get("/api/health/ready")
    assert response.status_code == 200
    assert response.json()["checks"]["database"] == "healthy"


# ==============================================================================
# Clients
# ==============================================================================


async def test_create_and_get_client(client):
    response = await _create(client, provider="Zorggroep Zuid")
    assert response.status_code == 201
    assert response.json()["client"]["client_id"] == "C-100"

    response = await client.get("/api/uc1/clients/C-100")
    assert response.status_code == 200
    assert response.json()["client"]["provider"] == "Zorggroep Zuid"
    assert "summary" not in response.json()


async def test_duplicate_client_is_conflict(client):
    await _create(client)
    response = await _create(client)
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "CONFLICT"


async def test_blank_name_is_validation_error(client):
    response = await client.post("/api/uc1/clients", json={"client_id": "C-1", "name": "  "})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_unknown_client_is_404(client):
    response = await client.get("/api/uc1/clients/nope")
    assert response.status_code == 404
    error = response.json()["error"]
    assert error["code"] == "RESOURCE_NOT_FOUND"
    assert error["context"]["client_id"] == "nope"


async def test_list_clients_filters_by_profile(client):
    await _create(client, "C-1")
    await _create(client, "C-2", wlz_profile="VV8")
    response = await client.get("/api/uc1/clients", params={"wlz_profile": "VV8"})
    assert response.json()["total"] == 1
    assert response.json()["clients"][0]["client_id"] == "C-2"


async def test_update_ignores_client_id(client):
    await _create(client)
    response = await client.put(
        "/api/uc1/clients/C-100", json={"client_id": "HACK", "wlz_profile": "VV9b"},
    )
    assert response.status_code == 200
    assert response.json()["client"]["client_id"] == "C-100"
    assert response.json()["client"]["wlz_profile"] == "VV9b"


@pytest.mark.parametrize("field", ["name", "dob"])
async def test_update_with_null_required_field_is_validation_error(client, field):
    await _create(client)
    response = await client.put("/api/uc1/clients/C-100", json={field: None})
    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["message"] == f"{field} cannot be null"

    stored = (await client.get("/api/uc1/clients/C-100")).json()
    assert stored["client"][field] is not None


async def test_update_can_clear_bsn(client):
    await _create(client)
    response = await client.put("/api/uc1/clients/C-100", json={"bsn_encrypted": None})
    assert response.status_code == 200
    assert response.json()["client"]["bsn_encrypted"] is None


async def test_summary_counts_records(client, seed_client):
    response = await client.get("/api/uc1/clients/C-001", params={"include_summary": True})
    summary = response.json()["summary"]
    assert summary["notes_count"] == 2
    assert summary["measures_count"] == 1
    assert summary["incidents_count"] == 1
    assert summary["latest_note_date"] == (date.today() - timedelta(days=10)).isoformat()


async def test_delete_cascades_and_reports_counts(client, seed_client, test_db):
    response = await client.delete("/api/uc1/clients/C-001")
    assert response.status_code == 200
    assert response.json()["deleted"] == {
        "client_id": "C-001", "notes": 2, "measures": 1, "incidents": 1,
    }
    remaining = (await test_db.execute(select(Note))).scalars().all()
    assert remaining == []
    assert (await client.get("/api/uc1/clients/C-001")).status_code == 404


# ==============================================================================
# Records
# ==============================================================================


async def test_ingest_records_applies_defaults(client):
    await _create(client)
    response = await client.post("/api/uc1/clients/C-100/records", json={
        "notes": [{"text": "Eerste notitie"}],
        "measures": [{"type": "Katz ADL", "score": 4.0}],
        "incidents": [{"description": "Val"}],
    })
    assert response.status_code == 201
    assert response.json()["ingested"] == {"notes": 1, "measures": 1, "incidents": 1}

    notes = (await client.get("/api/uc1/clients/C-100/notes")).json()["notes"]
    assert notes[0]["author"] == "Unknown"
    assert notes[0]["section"] == "General"
    assert notes[0]["date"] == date.today().isoformat()

    measures = (await client.get("/api/uc1/clients/C-100/measures")).json()["measures"]
    assert measures[0]["score"] == "4"

    incidents = (await client.get("/api/uc1/clients/C-100/incidents")).json()["incidents"]
    assert incidents[0]["severity"] == "Medium"


async def test_ingest_for_unknown_client_is_404(client):
    response = await client.post("/api/uc1/clients/nope/records", json={"notes": []})
    assert response.status_code == 404


async def test_notes_listed_newest_first(client, seed_client):
    notes = (await client.get("/api/uc1/clients/C-001/notes")).json()["notes"]
    assert [n["section"] for n in notes] == ["Observatie", "Zorgplan"]


async def test_mutations_are_audited(client, test_db):
    await _create(client)
    await client.put("/api/uc1/clients/C-100", json={"provider": "X"})
    actions = (await test_db.execute(
        select(AuditEvent.action).order_by(AuditEvent.ts)
    )).scalars().all()
    assert actions == ["create-client", "update-client"]


# ==============================================================================
# Statistics
# ==============================================================================


async def test_global_stats(client, seed_client):
    await _create(client)
    stats = (await client.get("/api/uc1/stats")).json()
    assert stats["summary"] == {
        "total_clients": 2, "total_notes": 2, "total_measures": 1, "total_incidents": 1,
    }
    assert stats["breakdown"]["by_profile"] == {"VV8": 1, "VV7": 1}
    assert stats["averages"]["notes_per_client"] == 1.0


async def test_client_stats(client, seed_client):
    stats = (await client.get("/api/uc1/stats", params={"client_id": "C-001"})).json()
    assert stats["notes"]["by_section"] == {"Observatie": 1, "Zorgplan": 1}
    assert stats["incidents"]["by_severity"] == {"Hoog": 1}


# ==============================================================================
# Search
# ==============================================================================


async def test_search_ranks_hits(client, seed_client):
    response = await client.post("/api/search", json={"client_id": "C-001", "query": "nacht"})
    assert response.status_code == 200
    hits = response.json()["hits"]
    assert hits[0]["source"] == "notes.csv"
    assert hits[0]["score"] == 100.0


async def test_search_reflects_deleted_records(client, seed_client, test_db):
    note = (await test_db.execute(select(Note).where(Note.section == "Observatie"))).scalar_one()
    await test_db.delete(note)
    await test_db.commit()
    response = await client.post("/api/search", json={"client_id": "C-001", "query": "dwaalt"})
    assert response.json()["hits"] == []


async def test_search_unknown_client_is_404(client):
    response = await client.post("/api/search", json={"client_id": "nope", "query": "x"})
    assert response.status_code == 404
