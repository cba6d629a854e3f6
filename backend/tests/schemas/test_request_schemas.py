"""Request schema validation — field rules enforced before a route runs.

Invariants:
    - Required names are stripped and must not be blank
    - Rejections and needs_revision reviews carry comments
    - "observe" MD reviews carry an observation period
    - Measure scores are stored as text, integral floats without ".0"
"""

from datetime import date
from uuid import uuid4

import pytest
from pydantic import ValidationError

from zorgdossier.schemas.client import ClientCreate, ClientUpdate, MeasureIn, NoteIn
from zorgdossier.schemas.evidence import EvidenceCreate, ReviewCreate
from zorgdossier.schemas.herindicatie import (
    ComposeReportRequest, EvaluateCriteriaRequest, ManualRiskFlag, MdReviewCreate, Period,
)
from zorgdossier.schemas.meerzorg import ApplicationCreate, MigrateRequest


# --- Clients & records --------------------------------------------------------

def test_client_create_strips_names():
    client = ClientCreate(client_id="  C-1 ", name=" Jansen ")
    assert client.client_id == "C-1"
    assert client.name == "Jansen"
    assert client.wlz_profile == ""


def test_client_create_rejects_blank_name():
    with pytest.raises(ValidationError):
        ClientCreate(client_id="C-1", name="   ")


def test_client_update_ignores_immutable_fields():
    update = ClientUpdate(client_id="X", created_at="2020-01-01", provider="Zuid")
    assert update.model_dump(exclude_unset=True) == {"provider": "Zuid"}


def test_client_update_rejects_null_name_but_not_omission():
    with pytest.raises(ValidationError, match="name cannot be null"):
        ClientUpdate(name=None)
    assert ClientUpdate().model_dump(exclude_unset=True) == {}
    assert ClientUpdate(bsn_encrypted=None).model_dump(exclude_unset=True) == {"bsn_encrypted": None}


@pytest.mark.parametrize("score,expected", [
    (4.0, "4"),
    (4.5, "4.5"),
    (12, "12"),
    ("matig", "matig"),
])
def test_measure_score_as_text(score, expected):
    assert MeasureIn(type="Katz ADL", score=score).score == expected


def test_note_defaults():
    note = NoteIn(text="Observatie")
    assert note.date == date.today()
    assert note.author == "Unknown"
    assert note.section == "General"


# --- Evidence & reviews -------------------------------------------------------

def test_evidence_confidence_bounds():
    body = {
        "application_id": uuid4(), "field_name": "adl_score",
        "source_type": "measure", "source_id": "m1", "evidence_text": "Katz 18",
    }
    assert EvidenceCreate(**body).confidence_score == 0.8
    with pytest.raises(ValidationError):
        EvidenceCreate(**body, confidence_score=-0.1)


@pytest.mark.parametrize("status", ["rejected", "needs_revision"])
def test_review_requires_comments_for(status):
    with pytest.raises(ValidationError, match="Comments are required"):
        ReviewCreate(
            application_id=uuid4(), reviewer_role="zorgkantoor",
            reviewer_name="B", status=status,
        )


def test_review_approval_without_comments():
    review = ReviewCreate(
        application_id=uuid4(), reviewer_role="zorgkantoor", reviewer_name="B", status="approved",
    )
    assert review.comments is None


# --- Meerzorg -----------------------------------------------------------------

def test_application_version_defaults_to_2026():
    assert ApplicationCreate(client_id="C-1").version == "2026"
    assert ApplicationCreate(client_id="C-1", version="2025").version == "2025"


def test_application_version_is_constrained():
    with pytest.raises(ValidationError):
        ApplicationCreate(client_id="C-1", version="2024")


def test_migrate_is_preview_by_default():
    assert MigrateRequest(target_version="2026").confirm_changes is False


# --- Herindicatie -------------------------------------------------------------

def test_md_review_observe_requires_period():
    body = {
        "client_id": "C-1", "reviewer_name": "Dr. V", "reviewer_role": "physician",
        "clinical_notes": "Onrust", "decision": "observe",
    }
    with pytest.raises(ValidationError, match="observation_period_days"):
        MdReviewCreate(**body)
    assert MdReviewCreate(**body, observation_period_days=14).observation_period_days == 14


def test_manual_risk_flag_type_is_constrained():
    with pytest.raises(ValidationError):
        ManualRiskFlag(flag_type="fire", severity="low", description="x")


def test_period_accepts_from_alias_and_field_name():
    assert Period.model_validate({"from": "2026-01-01", "to": "2026-06-30"}).from_ == "2026-01-01"
    assert Period(from_="2026-01-01", to="2026-06-30").from_ == "2026-01-01"


def test_evaluate_request_defaults():
    request = EvaluateCriteriaRequest(
        client_id="C-1", period={"from": "2026-01-01", "to": "2026-06-30"},
    )
    assert request.criteria_set == "herindicatie.vv8.2026"
    assert request.max_evidence == 3


def test_compose_request_default_sections_in_order():
    request = ComposeReportRequest(client_id="C-1", criteria_payload=[])
    assert request.sections == ["aanleiding", "ontwikkelingen", "criteria", "conclusie"]
    assert request.tone == "zakelijk-beknopt"
