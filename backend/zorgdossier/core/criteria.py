"""Herindicatie Criteria — VV8 2026 criterion definitions, heuristic evaluation and LLM prompt I/O.

Invariants:
    - Criteria are evaluated independently; one result per criterion, in definition order
    - Heuristic confidence depends only on hit count: 0 -> 0.0, 1 -> 0.5, 2 -> 0.65, 3+ -> 0.75
    - Parsed LLM output is normalized: unknown statuses become "unknown",
      confidence clamped to [0, 1]

Design Decisions:
    - Prompt building and response parsing are pure so they are testable without the API
    - VV7 uses the VV8 criteria until a separate VV7 table is defined
    - Status, argument and uncertainty texts are Dutch: copied into the advice report
"""

import json
import re
from dataclasses import dataclass

from zorgdossier.core.domain_types import CriteriaSet, CriterionStatus


@dataclass(frozen=True)
class Criterion:
    id: str
    label: str
    description: str
    search_query: str


VV8_CRITERIA_2026: list[Criterion] = [
    Criterion(
        "ADL", "ADL-afhankelijkheid",
        "Beoordeel de mate van ADL-afhankelijkheid op basis van Katz-scores en observaties",
        "ADL Katz wassen aankleden eten",
    ),
    Criterion(
        "NACHT_TOEZICHT", "Nachtelijk toezicht",
        "Beoordeel de behoefte aan nachtzorg op basis van nachtelijke onrust, valgevaar en dwalen",
        "nacht toezicht slapen dwalen onrust",
    ),
    Criterion(
        "GEDRAG", "Gedragsproblematiek",
        "Beoordeel gedragsproblemen zoals agressie, onrust, of onbegrepen gedrag",
        "gedrag agressie onrust schreeuwen",
    ),
    Criterion(
        "COMMUNICATIE", "Communicatie",
        "Beoordeel communicatieve beperkingen en ondersteuningsbehoefte",
        "communicatie praten begrijpen taal",
    ),
    Criterion(
        "MOBILITEIT", "Mobiliteit",
        "Beoordeel mobiliteit, valrisico en ondersteuning bij verplaatsing",
        "mobiliteit lopen vallen rollator rolstoel",
    ),
    Criterion(
        "PSYCHISCH", "Psychisch welbevinden",
        "Beoordeel psychische klachten, depressie, angst en welbevinden",
        "depressie angst somber psychisch stemming",
    ),
    Criterion(
        "SOCIAAL", "Sociaal functioneren",
        "Beoordeel sociale contacten, participatie en isolatie",
        "sociaal contact bezoek isolatie eenzaam",
    ),
    Criterion(
        "ZELFSTANDIGHEID", "Zelfstandigheid",
        "Beoordeel mate van zelfstandigheid in dagelijkse activiteiten",
        "zelfstandig hulp ondersteuning begeleiding",
    ),
]

STATUS_LABELS = {
    CriterionStatus.UNKNOWN.value: "Onbekend",
    CriterionStatus.VOLDOET.value: "Voldoet",
    CriterionStatus.NIET_VOLDOET.value: "Voldoet niet",
    CriterionStatus.ONVOLDOENDE_BEWIJS.value: "Onvoldoende bewijs",
    CriterionStatus.TOEGENOMEN_BEHOEFTE.value: "Toegenomen behoefte",
    CriterionStatus.VERSLECHTERD.value: "Verslechterd",
}

NO_EVIDENCE_UNCERTAINTY = "Geen evidence gevonden in de periode"
AI_UNAVAILABLE_UNCERTAINTY = "AI-evaluatie niet beschikbaar, heuristiek gebruikt"
AI_DISABLED_UNCERTAINTY = "AI-evaluatie niet geconfigureerd, heuristiek gebruikt"

_INCREASED_NEED_KEYWORDS = ("toegenomen", "verslechterd", "meer", "vaker")
_IMPROVEMENT_KEYWORDS = ("afgenomen", "verbeterd", "stabiel")


def criteria_for_set(criteria_set: str) -> list[Criterion]:
    if criteria_set in (CriteriaSet.VV8_2026.value, CriteriaSet.VV7_2026.value):
        return list(VV8_CRITERIA_2026)
    return []


def find_criterion(criterion_id: str) -> Criterion | None:
    return next((c for c in VV8_CRITERIA_2026 if c.id == criterion_id), None)


def criterion_label(criterion_id: str) -> str:
    criterion = find_criterion(criterion_id)
    return criterion.label if criterion else criterion_id


def status_label(status: str) -> str:
    return STATUS_LABELS.get(status, status)


# ─── Heuristic Evaluation ────────────────────────────────────────

def heuristic_status(snippets: list[str]) -> str:
    """Infer status from wording in the evidence snippets."""
    if not snippets:
        return CriterionStatus.ONVOLDOENDE_BEWIJS.value
    text = " ".join(s.lower() for s in snippets)
    increased = any(kw in text for kw in _INCREASED_NEED_KEYWORDS)
    improved = any(kw in text for kw in _IMPROVEMENT_KEYWORDS)
    if increased and not improved:
        return CriterionStatus.TOEGENOMEN_BEHOEFTE.value
    if improved and not increased:
        return CriterionStatus.VOLDOET.value
    return CriterionStatus.VERSLECHTERD.value


def heuristic_argument(criterion: Criterion, snippets: list[str]) -> str:
    if not snippets:
        return f"Geen recente observaties gevonden voor {criterion.label}."
    return (
        f"Op basis van recente observaties: {'. '.join(snippets[:2])}. "
        f"Dit wijst op een verhoogde zorgbehoefte op dit gebied."
    )


def heuristic_confidence(hit_count: int) -> float:
    if hit_count == 0:
        return 0.0
    if hit_count == 1:
        return 0.5
    if hit_count >= 3:
        return 0.75
    return 0.65


def evaluate_heuristically(
    criterion: Criterion, evidence: list[dict], uncertainty: str,
) -> dict:
    """Criterion result from evidence hits ({source, row, snippet}) without an LLM."""
    snippets = [e["snippet"] for e in evidence]
    return {
        "id": criterion.id,
        "status": heuristic_status(snippets),
        "argument": heuristic_argument(criterion, snippets),
        "evidence": evidence,
        "confidence": heuristic_confidence(len(evidence)),
        "uncertainty": NO_EVIDENCE_UNCERTAINTY if not evidence else uncertainty,
    }


# ─── LLM Prompt I/O ──────────────────────────────────────────────

SYSTEM_PROMPT = (
    "Je bent een ervaren indicatieadviseur in de Nederlandse langdurige zorg (Wlz). "
    "Je beoordeelt één herindicatie-criterium op basis van dossierfragmenten. "
    "Baseer je uitsluitend op de aangeleverde fragmenten en verzin geen feiten. "
    "Antwoord met alleen een JSON-object met de velden "
    '"status" (een van: voldoet, niet_voldoet, onvoldoende_bewijs, '
    'toegenomen_behoefte, verslechterd), "argument" (zakelijke Nederlandse '
    'onderbouwing van maximaal vier zinnen) en "confidence" (getal tussen 0 en 1).'
)


def build_evaluation_prompt(
    criterion: Criterion,
    evidence: list[dict],
    client_id: str,
    period_from: str,
    period_to: str,
) -> str:
    lines = [
        f"Criterium: {criterion.label} ({criterion.id})",
        f"Toelichting: {criterion.description}",
        f"Cliënt: {client_id}, periode {period_from} t/m {period_to}",
        "",
        "Dossierfragmenten:",
    ]
    if evidence:
        for i, item in enumerate(evidence, 1):
            lines.append(f"[{i}] {item['source']} rij {item.get('row', '?')}: {item['snippet']}")
    else:
        lines.append("(geen fragmenten gevonden)")
    return "\n".join(lines)


_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def parse_evaluation_response(text: str) -> dict:
    """Extract {status, argument, confidence} from model text.

    Raises ValueError when no JSON object with an argument can be found.
    """
    match = _JSON_OBJECT.search(text)
    if not match:
        raise ValueError("No JSON object in model response")
    data = json.loads(match.group(0))
    if not isinstance(data, dict) or not str(data.get("argument", "")).strip():
        raise ValueError("Model response lacks an argument")

    status = str(data.get("status", "")).strip().lower()
    if status not in STATUS_LABELS:
        status = CriterionStatus.UNKNOWN.value
    try:
        confidence = float(data.get("confidence", 0.0))
    except (TypeError, ValueError):
        confidence = 0.0
    return {
        "status": status,
        "argument": str(data["argument"]).strip(),
        "confidence": min(1.0, max(0.0, confidence)),
    }
