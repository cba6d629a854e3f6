"""Evidence Linking — matches form fields and check outcomes to supporting dossier records.

Invariants:
    - Pure: dossier snapshot and `today` in, EvidenceLink lists out
    - Only matches with relevance > 0.3 are kept
    - Results ordered by relevance * confidence, best first
    - Confidence always clamped to [0.0, 1.0]

Design Decisions:
    - Keyword overlap over embeddings: explainable scores a reviewer can verify
      by reading the snippet (reason lists the matched keywords)
    - Measures matched structurally (type / ADL / equal score), not by text
    - Gap and quality messages are Dutch: rendered verbatim in the review UI
"""

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from zorgdossier.core.domain_types import SourceType
from zorgdossier.core.dossier import (
    Dossier, IncidentRecord, MeasureRecord, NoteRecord, days_between,
)

MIN_RELEVANCE = 0.3
SNIPPET_MAX_LENGTH = 200
SNIPPET_LEAD_IN = 50

_STOP_WORDS = frozenset({"de", "het", "een", "van", "is", "in", "op", "en", "met"})

_PROFESSIONAL_AUTHORS = ("arts", "verpleegkundige", "psycholoog", "specialist")
_CLINICAL_SECTIONS = ("medisch", "zorgplan", "beoordeling", "observatie")
_STANDARDIZED_MEASURES = ("katz", "adl", "barthel", "mmse", "npi", "cmai")
_ASSESSING_AUTHORS = ("arts", "specialist", "psycholoog")
_CLINICAL_TARGETS = ("adl", "bpsd", "medisch", "diagnose", "specialist")


@dataclass
class EvidenceLink:
    source_type: str
    source_id: str
    snippet: str
    relevance: float
    confidence: float
    reason: str | None = None

    @property
    def quality(self) -> float:
        return self.relevance * self.confidence

    def to_dict(self) -> dict:
        return {
            "source_type": self.source_type,
            "source_id": self.source_id,
            "snippet": self.snippet,
            "relevance": self.relevance,
            "confidence": self.confidence,
            "reason": self.reason,
        }


@dataclass
class EvidenceSource:
    type: str
    id: str
    date: date
    text: str
    metadata: dict = field(default_factory=dict)


# ─── Keywords ────────────────────────────────────────────────────

def _value_text(value: Any) -> str:
    """String form of a scalar value; integral floats drop the '.0'."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def domain_keywords(field_name: str) -> list[str]:
    """Extra vocabulary for well-known meerzorg field families."""
    name = field_name.lower()
    if "adl" in name or "zelfzorg" in name:
        return ["adl", "katz", "zelfzorg", "wassen", "aankleden", "toiletgang", "mobiliteit"]
    if "bpsd" in name or "gedrag" in name:
        return ["bpsd", "gedrag", "agressie", "dwalen", "onrust", "apathie", "agitatie"]
    if "nacht" in name:
        return ["nacht", "nachtzorg", "slapen", "insomnia", "nachtelijke", "toezicht"]
    if "zorg" in name and "uren" in name:
        return ["zorguren", "uren", "dagzorg", "nachtzorg", "begeleiding", "toezicht"]
    if "incident" in name:
        return ["incident", "val", "medicatie", "agressie", "dwaling", "ongeluk"]
    return []


def extract_keywords(field_name: str, value: Any = None) -> list[str]:
    keywords: list[str] = []
    if field_name:
        keywords.extend(re.split(r"[_\s-]+", field_name.lower()))
    if isinstance(value, str):
        keywords.extend(w for w in value.lower().split() if len(w) > 2)
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        keywords.append(_value_text(value))
    keywords.extend(domain_keywords(field_name))
    return [k for k in keywords if k not in _STOP_WORDS and len(k) > 1]


# ─── Matching ────────────────────────────────────────────────────

def match_text(text: str, keywords: list[str]) -> tuple[float, str | None]:
    """Fraction of keywords found in text, with up to three as the reason."""
    if not keywords:
        return 0.0, None
    lowered = text.lower()
    matched = [k for k in keywords if k in lowered]
    reason = f"Matched keywords: {', '.join(matched[:3])}" if matched else None
    return len(matched) / len(keywords), reason


def match_measure(
    measure: MeasureRecord, field_name: str, value: Any,
) -> tuple[float, str | None]:
    name = field_name.lower()
    measure_type = measure.type.lower()
    if name in measure_type or measure_type in name:
        return 1.0, f"Direct match: {measure.type}"
    if "adl" in name and ("adl" in measure_type or "katz" in measure_type):
        return 0.9, "ADL measurement match"
    if value is not None and str(measure.score) == _value_text(value):
        return 0.8, f"Score match: {measure.score}"
    return 0.0, None


def extract_snippet(
    text: str, keywords: list[str], max_length: int = SNIPPET_MAX_LENGTH,
) -> str:
    """Window around the first keyword hit; falls back to the text head."""
    lowered = text.lower()
    for keyword in keywords:
        index = lowered.find(keyword)
        if index == -1:
            continue
        start = max(0, index - SNIPPET_LEAD_IN)
        end = min(len(text), index + max_length - SNIPPET_LEAD_IN)
        snippet = text[start:end]
        if start > 0:
            snippet = "..." + snippet
        if end < len(text):
            snippet = snippet + "..."
        return snippet.strip()
    return text[:max_length] + ("..." if len(text) > max_length else "")


def measure_snippet(measure: MeasureRecord) -> str:
    comment = f" - {measure.comment}" if measure.comment else ""
    return f"{measure.type}: {measure.score} ({measure.date.isoformat()}){comment}"


# ─── Confidence ──────────────────────────────────────────────────

def _clamp(value: float) -> float:
    return min(1.0, max(0.0, value))


def note_confidence(note: NoteRecord, today: date) -> float:
    confidence = 0.8
    age = days_between(note.date, today)
    if age < 30:
        confidence += 0.15
    elif age < 90:
        confidence += 0.1
    elif age < 180:
        confidence += 0.05
    elif age > 365:
        confidence -= 0.2
    if any(role in note.author.lower() for role in _PROFESSIONAL_AUTHORS):
        confidence += 0.1
    if any(s in note.section.lower() for s in _CLINICAL_SECTIONS):
        confidence += 0.05
    return _clamp(confidence)


def measure_confidence(measure: MeasureRecord, today: date) -> float:
    confidence = 0.9
    age = days_between(measure.date, today)
    if age < 30:
        confidence += 0.1
    elif age < 90:
        confidence += 0.05
    elif age > 365:
        confidence -= 0.3
    elif age > 180:
        confidence -= 0.1
    if any(t in measure.type.lower() for t in _STANDARDIZED_MEASURES):
        confidence += 0.05
    return _clamp(confidence)


def incident_confidence(incident: IncidentRecord, today: date) -> float:
    confidence = 0.85
    age = days_between(incident.date, today)
    if age < 30:
        confidence += 0.1
    elif age < 90:
        confidence += 0.05
    elif age > 365:
        confidence -= 0.2
    if incident.severity.lower() in ("hoog", "ernstig"):
        confidence += 0.05
    return _clamp(confidence)


# ─── Linking ─────────────────────────────────────────────────────

def link_field_to_evidence(
    dossier: Dossier,
    field_name: str = "",
    value: Any = None,
    keywords: list[str] | None = None,
    today: date | None = None,
) -> list[EvidenceLink]:
    """All dossier records supporting a field value, best first."""
    today = today or date.today()
    if keywords is None:
        keywords = extract_keywords(field_name, value)
    links: list[EvidenceLink] = []

    for note in dossier.notes:
        score, reason = match_text(note.text, keywords)
        if score > MIN_RELEVANCE:
            links.append(EvidenceLink(
                SourceType.NOTE.value, note.id,
                extract_snippet(note.text, keywords),
                score, note_confidence(note, today), reason,
            ))

    for measure in dossier.measures:
        score, reason = match_measure(measure, field_name, value)
        if score > MIN_RELEVANCE:
            links.append(EvidenceLink(
                SourceType.MEASURE.value, measure.id,
                measure_snippet(measure),
                score, measure_confidence(measure, today), reason,
            ))

    for incident in dossier.incidents:
        score, reason = match_text(incident.description, keywords)
        if score > MIN_RELEVANCE:
            links.append(EvidenceLink(
                SourceType.INCIDENT.value, incident.id,
                extract_snippet(incident.description, keywords),
                score, incident_confidence(incident, today), reason,
            ))

    links.sort(key=lambda link: link.quality, reverse=True)
    return links


def link_form_fields(
    fields: list[tuple[str, Any]], dossier: Dossier, today: date | None = None,
) -> dict[str, list[EvidenceLink]]:
    """Evidence per (field_name, field_value) pair, keyed by field name."""
    return {
        name: link_field_to_evidence(dossier, name, value, today=today)
        for name, value in fields
    }


def link_check_to_evidence(
    rule_id: str, message: str, dossier: Dossier, today: date | None = None,
) -> list[EvidenceLink]:
    """Evidence for a check outcome, keyed on the rule id and its message."""
    keywords = extract_keywords(rule_id, message)
    return link_field_to_evidence(dossier, keywords=keywords, today=today)


# ─── Evidence Chains ─────────────────────────────────────────────

def _resolve_source(link: EvidenceLink, dossier: Dossier) -> EvidenceSource | None:
    if link.source_type == SourceType.NOTE.value:
        note = dossier.find_note(link.source_id)
        if note:
            return EvidenceSource(
                "note", note.id, note.date, note.text,
                {"author": note.author, "section": note.section},
            )
    elif link.source_type == SourceType.MEASURE.value:
        measure = dossier.find_measure(link.source_id)
        if measure:
            return EvidenceSource(
                "measure", measure.id, measure.date,
                f"{measure.type}: {measure.score}",
                {"type": measure.type, "score": measure.score},
            )
    elif link.source_type == SourceType.INCIDENT.value:
        incident = dossier.find_incident(link.source_id)
        if incident:
            return EvidenceSource(
                "incident", incident.id, incident.date, incident.description,
                {"type": incident.type, "severity": incident.severity},
            )
    return None


def identify_gaps(
    target: str, evidence: list[dict], today: date,
) -> list[str]:
    if not evidence:
        return ["Geen ondersteunend bewijs gevonden"]

    gaps = []
    if max(e["confidence"] for e in evidence) < 0.5:
        gaps.append("Bewijs heeft lage betrouwbaarheid")

    most_recent = max(e["source"].date for e in evidence)
    if days_between(most_recent, today) > 180:
        gaps.append("Recentste bewijs is ouder dan 6 maanden")

    if len(evidence) == 1:
        gaps.append("Slechts één bron van bewijs gevonden")

    def is_professional(source: EvidenceSource) -> bool:
        if source.type == "measure":
            return True
        if source.type == "note":
            author = source.metadata.get("author", "").lower()
            return any(role in author for role in _ASSESSING_AUTHORS)
        return False

    clinical = any(t in target.lower() for t in _CLINICAL_TARGETS)
    if clinical and not any(is_professional(e["source"]) for e in evidence):
        gaps.append("Geen professionele beoordeling gevonden voor klinische claim")
    return gaps


def build_evidence_chain(
    target: str,
    claim: str,
    links: list[EvidenceLink],
    dossier: Dossier,
    today: date | None = None,
) -> dict:
    """Provenance levels for a claim, with overall confidence and gaps.

    Links whose source record no longer exists are dropped; levels keep
    the original link position.
    """
    today = today or date.today()
    evidence = []
    for index, link in enumerate(links):
        source = _resolve_source(link, dossier)
        if source is None:
            continue
        evidence.append({
            "level": index + 1,
            "source": source,
            "relevance": link.relevance,
            "confidence": link.confidence,
            "snippet": link.snippet,
        })
    overall = max((e["confidence"] * e["relevance"] for e in evidence), default=0.0)
    return {
        "target": target,
        "claim": claim,
        "evidence": evidence,
        "overall_confidence": overall,
        "gaps": identify_gaps(target, evidence, today),
    }


# ─── Quality ─────────────────────────────────────────────────────

def validate_evidence_quality(
    links: list[EvidenceLink],
    required_confidence: float = 0.7,
    required_relevance: float = 0.6,
) -> dict:
    """Judge the best link against thresholds. Expects links sorted best first."""
    if not links:
        return {
            "sufficient": False,
            "score": 0.0,
            "issues": ["Geen bewijs gevonden"],
            "recommendations": [
                "Voeg notities, metingen of incidentmeldingen toe die deze claim ondersteunen",
            ],
        }

    issues: list[str] = []
    recommendations: list[str] = []
    best = links[0]

    if best.confidence < required_confidence:
        issues.append(
            f"Betrouwbaarheid van beste bewijs is te laag ({best.confidence * 100:.0f}%)"
        )
        recommendations.append("Voeg recentere of meer gedetailleerde documentatie toe")

    if best.relevance < required_relevance:
        issues.append(
            f"Relevantie van beste bewijs is te laag ({best.relevance * 100:.0f}%)"
        )
        recommendations.append("Zorg dat documentatie specifiek ingaat op deze claim")

    if len({link.source_type for link in links}) == 1 and len(links) < 3:
        recommendations.append(
            "Overweeg meerdere soorten bronnen toe te voegen (notities + metingen + incidenten)"
        )

    sufficient = (
        best.quality >= required_confidence * required_relevance and not issues
    )
    return {
        "sufficient": sufficient,
        "score": best.quality,
        "issues": issues,
        "recommendations": recommendations,
    }
