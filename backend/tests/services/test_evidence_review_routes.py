"""Route Tests: manual evidence links, evidence chains and reviewer decisions.

Invariants:
    - Evidence listing carries a readable source reference
    - DELETE removes the link; unknown ids are 404
    - Decisive reviews set the application status; rejections need comments
"""

from uuid import uuid4


async def _application(client, **body):
    response = await client.post("/api/meerzorg", json={"client_id": "C-001", **body})
    return response.json()


def _evidence_body(application_id, **extra):
    return {
        "application_id": application_id,
        "field_name": "gedragsproblematiek",
        "source_type": "measure",
        "source_id": "0123456789abcdef",
        "evidence_text": "Katz ADL 18",
        **extra,
    }


# ==============================================================================
# Evidence
# ==============================================================================


async def test_create_and_list_evidence(client, seed_client):
    app = await _application(client)
    response = await client.post("/api/evidence", json=_evidence_body(app["id"]))
    assert response.status_code == 201
    assert response.json()["message"] == "Evidence linked successfully"

    listing = (await client.get("/api/evidence", params={"application_id": app["id"]})).json()
    assert listing["count"] == 1
    item = listing["evidence"][0]
    assert item["field_label"] == "gedragsproblematiek"
    assert item["confidence_score"] == 0.8
    assert item["source_reference"] == "Meting #01234567"


async def test_evidence_for_unknown_application_is_404(client):
    response = await client.post("/api/evidence", json=_evidence_body(str(uuid4())))
    assert response.status_code == 404


async def test_confidence_out_of_range_is_rejected(client, seed_client):
    app = await _application(client)
    response = await client.post(
        "/api/evidence", json=_evidence_body(app["id"], confidence_score=1.5),
    )
    assert response.status_code == 400


async def test_delete_evidence(client, seed_client):
    app = await _application(client)
    created = (await client.post("/api/evidence", json=_evidence_body(app["id"]))).json()

    response = await client.delete("/api/evidence", params={"id": created["id"]})
    assert response.json() == {"message": "Evidence link removed"}
    listing = (await client.get("/api/evidence", params={"application_id": app["id"]})).json()
    assert listing["count"] == 0

    again = await client.delete("/api/evidence", params={"id": created["id"]})
    assert again.status_code == 404


async def test_evidence_chain_for_extracted_field(client, seed_client):
    app = await _application(client)
    await client.post(f"/api/meerzorg/{app['id']}/analyze")

    chain = (await client.get("/api/evidence/chain", params={
        "application_id": app["id"], "field_name": "adl_score",
    })).json()
    assert chain["target"] == "meerzorg.adl_score"
    assert chain["claim"] == "adl_score = 18"
    first = chain["evidence"][0]
    assert first["level"] == 1
    assert first["source"]["type"] == "measure"
    assert first["source"]["text"] == "Katz ADL: 18"
    assert chain["overall_confidence"] > 0


async def test_evidence_chain_without_support_reports_gap(client, seed_client):
    app = await _application(client)
    chain = (await client.get("/api/evidence/chain", params={
        "application_id": app["id"], "field_name": "xyz",
    })).json()
    assert chain["evidence"] == []
    assert chain["gaps"] == ["Geen ondersteunend bewijs gevonden"]


# ==============================================================================
# Reviews
# ==============================================================================


async def test_approval_sets_application_status(client, seed_client):
    app = await _application(client)
    response = await client.post("/api/reviews", json={
        "application_id": app["id"],
        "reviewer_role": "zorgkantoor",
        "reviewer_name": "Beoordelaar",
        "status": "approved",
    })
    assert response.status_code == 201
    assert response.json()["message"] == "Review submitted successfully"

    assert (await client.get(f"/api/meerzorg/{app['id']}")).json()["status"] == "approved"
    reviews = (await client.get("/api/reviews", params={"application_id": app["id"]})).json()
    assert reviews["count"] == 1
    assert reviews["reviews"][0]["reviewer_name"] == "Beoordelaar"


async def test_reviews_listed_across_applications_without_filter(client, seed_client):
    first = await _application(client)
    second = await _application(client)
    for app in (first, second):
        await client.post("/api/reviews", json={
            "application_id": app["id"],
            "reviewer_role": "professional",
            "reviewer_name": "Collega",
            "status": "pending",
        })

    response = await client.get("/api/reviews")
    assert response.status_code == 200
    assert response.json()["count"] == 2
    assert {r["application_id"] for r in response.json()["reviews"]} == {first["id"], second["id"]}

    filtered = (await client.get("/api/reviews", params={"application_id": first["id"]})).json()
    assert filtered["count"] == 1


async def test_pending_review_keeps_status(client, seed_client):
    app = await _application(client)
    await client.post("/api/reviews", json={
        "application_id": app["id"],
        "reviewer_role": "professional",
        "reviewer_name": "Collega",
        "status": "pending",
    })
    assert (await client.get(f"/api/meerzorg/{app['id']}")).json()["status"] == "draft"


async def test_rejection_requires_comments(client, seed_client):
    app = await _application(client)
    body = {
        "application_id": app["id"],
        "reviewer_role": "zorgkantoor",
        "reviewer_name": "Beoordelaar",
        "status": "rejected",
    }
    response = await client.post("/api/reviews", json=body)
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    response = await client.post("/api/reviews", json={**body, "comments": "Onvoldoende onderbouwd"})
    assert response.status_code == 201
    assert (await client.get(f"/api/meerzorg/{app['id']}")).json()["status"] == "rejected"
