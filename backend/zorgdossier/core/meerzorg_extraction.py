"""Meerzorg Extraction — derives Meerzorg application fields from a client dossier.

Invariants:
    - Pure: Dossier in, DossierAnalysis out; never touches the DB
    - Care hours keep the highest value found across notes
    - Every extracted value records its source record id and a confidence
    - Incident trend needs at least 4 incidents; otherwise None

Design Decisions:
    - Regex and keyword tables over NLP: deterministic, reviewable by care staff
    - Incident trend compares counts before and after the midpoint date of the
      observed span, so the result does not depend on record ordering
    - Suggestions and analyze form fields derived from one analysis object
"""

import re
from dataclasses import asdict, dataclass, field

from zorgdossier.core.dossier import Dossier, IncidentRecord, MeasureRecord, NoteRecord

# ─── Pattern Tables ──────────────────────────────────────────────

CARE_HOUR_PATTERNS = {
    "day": [
        r"dagzorg.*?(\d+)\s*(uur|uren|hours?)",
        r"overdag.*?(\d+)\s*(uur|uren)",
        r"dagbesteding.*?(\d+)\s*(uur|uren)",
    ],
    "night": [
        r"nachtzorg.*?(\d+)\s*(uur|uren|hours?)",
        r"nacht.*?(\d+)\s*(uur|uren)",
        r"'s nachts.*?(\d+)\s*(uur|uren)",
    ],
    "one_on_one": [
        r"1[-\s]*op[-\s]*1.*?(\d+)\s*(uur|uren)",
        r"één op één.*?(\d+)\s*(uur|uren)",
        r"individuele.*?begeleiding.*?(\d+)\s*(uur|uren)",
    ],
}

_CARE_HOUR_FIELDS = {
    "day": ("day_care_hours", 0.8),
    "night": ("night_care_hours", 0.8),
    "one_on_one": ("one_on_one_hours", 0.75),
}

ADL_KEYWORDS = ["adl", "katz", "barthel", "dagelijkse.*leven", "zelfzorg"]
ADL_CATEGORIES = {
    "zelfstandig": ["zelfstandig", "independent", "onafhankelijk"],
    "beperkt": ["beperkt", "gedeeltelijk", "hulp.*nodig", "ondersteuning"],
    "volledig_afhankelijk": ["afhankelijk", "volledig.*hulp", "totale.*zorg", "dependent"],
}

BPSD_INDICATORS = [
    "bpsd", "gedragsproblematiek", "probleemgedrag", "agitatie", "agressie",
    "dwalen", "onrust", "apathie", "delusions", "hallucinaties",
]
BPSD_SEVERITY = {
    "mild": ["licht", "mild", "beperkt"],
    "moderate": ["matig", "moderate", "regelmatig"],
    "severe": ["ernstig", "severe", "frequent", "voortdurend"],
}

NIGHT_CARE_KEYWORDS = [
    "nacht.*toezicht", "nacht.*zorg", "nachtelijke.*hulp", "nachtzorg", "'s nachts",
]
NIGHT_CARE_FREQUENCY = {
    "incidental": ["incidenteel", "soms", "af en toe", "occasional"],
    "regular": ["regelmatig", "frequent", "meerdere", "regular"],
    "continuous": ["doorlopend", "voortdurend", "continu", "permanent", "continuous"],
}

HIGH_SEVERITY_INCIDENT = ["ernstig", "hoog", "critical", "acute"]

SPECIALIST_TYPES = [
    "psychiater", "geriater", "neuroloog", "specialist.*ouderengeneeskunde",
    "psycholoog", "psychiatrist", "geriatrician", "neurologist",
]

INTERVENTION_KEYWORDS = [
    "interventie", "behandeling", "therapie", "medicatie", "begeleiding",
    "intervention", "treatment",
]
_PLANNED_MARKERS = ("gepland", "voorstel", "planned")

_SENTENCE_SPLIT = re.compile(r"[.!?]+")


# ─── Analysis Types ──────────────────────────────────────────────

@dataclass
class ExtractedField:
    field_name: str
    field_value: str
    source_type: str
    source_id: str
    confidence: float
    snippet: str


@dataclass
class CareHours:
    day: int | None = None
    night: int | None = None
    one_on_one: int | None = None


@dataclass
class AdlDependency:
    score: float | None = None
    category: str | None = None
    details: list[str] = field(default_factory=list)


@dataclass
class BpsdIndicators:
    present: bool = False
    severity: str | None = None
    types: list[str] = field(default_factory=list)
    frequency: str | None = None


@dataclass
class NightCareNeeds:
    required: bool = False
    frequency: str | None = None
    reasons: list[str] = field(default_factory=list)


@dataclass
class IncidentPattern:
    count: int = 0
    high_severity_count: int = 0
    types: dict[str, int] = field(default_factory=dict)
    trend: str | None = None


@dataclass
class SpecialistReports:
    present: bool = False
    types: list[str] = field(default_factory=list)
    dates: list[str] = field(default_factory=list)


@dataclass
class Interventions:
    current: list[str] = field(default_factory=list)
    planned: list[str] = field(default_factory=list)


@dataclass
class DossierAnalysis:
    client_id: str
    extracted_fields: list[ExtractedField] = field(default_factory=list)
    care_hours: CareHours = field(default_factory=CareHours)
    adl_dependency: AdlDependency = field(default_factory=AdlDependency)
    bpsd_indicators: BpsdIndicators = field(default_factory=BpsdIndicators)
    night_care_needs: NightCareNeeds = field(default_factory=NightCareNeeds)
    incident_pattern: IncidentPattern = field(default_factory=IncidentPattern)
    specialist_reports: SpecialistReports = field(default_factory=SpecialistReports)
    interventions: Interventions = field(default_factory=Interventions)

    def sources_for(self, field_name: str) -> list[str]:
        return [f.source_id for f in self.extracted_fields if f.field_name == field_name]

    def to_dict(self) -> dict:
        """Analysis sections without the raw extracted fields."""
        data = asdict(self)
        data.pop("extracted_fields")
        data.pop("client_id")
        return data


# ─── Helpers ─────────────────────────────────────────────────────

def _matches(pattern: str, text: str) -> bool:
    return re.search(pattern, text, re.IGNORECASE) is not None


def _sentences(text: str) -> list[str]:
    return _SENTENCE_SPLIT.split(text)


def _first_matching_key(table: dict[str, list[str]], text: str) -> str | None:
    for key, keywords in table.items():
        if any(_matches(kw, text) for kw in keywords):
            return key
    return None


# ─── Measures ────────────────────────────────────────────────────

def _extract_from_measure(measure: MeasureRecord, analysis: DossierAnalysis) -> None:
    measure_type = measure.type.lower()
    score = measure.numeric_score()
    snippet = f"{measure.type}: {measure.score}"

    if "adl" in measure_type or "katz" in measure_type:
        if score is not None:
            # Katz 0-6, higher is more dependent. Measures arrive newest first.
            adl = analysis.adl_dependency
            if adl.score is None:
                adl.score = score
                if score <= 2:
                    adl.category = "zelfstandig"
                elif score <= 4:
                    adl.category = "beperkt"
                else:
                    adl.category = "volledig afhankelijk"
            analysis.extracted_fields.append(ExtractedField(
                "adl_score", str(measure.score), "measure", measure.id, 0.95, snippet,
            ))

    if "bpsd" in measure_type or "npi" in measure_type:
        bpsd = analysis.bpsd_indicators
        bpsd.present = True
        if score is not None:
            if bpsd.severity is None:
                bpsd.severity = "mild" if score < 10 else "moderate" if score < 30 else "severe"
            analysis.extracted_fields.append(ExtractedField(
                "bpsd_score", str(measure.score), "measure", measure.id, 0.9, snippet,
            ))


# ─── Notes ───────────────────────────────────────────────────────

def _extract_care_hours(note: NoteRecord, text: str, analysis: DossierAnalysis) -> None:
    hours_by_kind = analysis.care_hours
    for kind, patterns in CARE_HOUR_PATTERNS.items():
        field_name, confidence = _CARE_HOUR_FIELDS[kind]
        for pattern in patterns:
            match = re.search(pattern, text, re.IGNORECASE)
            if not match:
                continue
            hours = int(match.group(1))
            current = getattr(hours_by_kind, kind)
            if not current or hours > current:
                setattr(hours_by_kind, kind, hours)
                analysis.extracted_fields.append(ExtractedField(
                    field_name, str(hours), "note", note.id, confidence, match.group(0),
                ))


def _detect_bpsd(note: NoteRecord, text: str, analysis: DossierAnalysis) -> None:
    bpsd = analysis.bpsd_indicators
    for indicator in BPSD_INDICATORS:
        if indicator not in text:
            continue
        bpsd.present = True
        if indicator not in bpsd.types:
            bpsd.types.append(indicator)
        if not bpsd.severity:
            bpsd.severity = _first_matching_key(BPSD_SEVERITY, text)
        analysis.extracted_fields.append(ExtractedField(
            "bpsd_indicator", indicator, "note", note.id, 0.7, note.text[:100],
        ))


def _detect_night_care(note: NoteRecord, text: str, analysis: DossierAnalysis) -> None:
    needs = analysis.night_care_needs
    for keyword in NIGHT_CARE_KEYWORDS:
        if not _matches(keyword, text):
            continue
        needs.required = True
        needs.reasons.extend(
            s.strip() for s in _sentences(note.text) if _matches(keyword, s.lower())
        )
        if not needs.frequency:
            needs.frequency = _first_matching_key(NIGHT_CARE_FREQUENCY, text)
        analysis.extracted_fields.append(ExtractedField(
            "night_care_needs", "required", "note", note.id, 0.75, note.text[:100],
        ))
        break


def _detect_specialist_reports(
    note: NoteRecord, text: str, analysis: DossierAnalysis,
) -> None:
    reports = analysis.specialist_reports
    for specialist in SPECIALIST_TYPES:
        if not _matches(specialist, text):
            continue
        reports.present = True
        if specialist not in reports.types:
            reports.types.append(specialist)
        note_date = note.date.isoformat()
        if note_date not in reports.dates:
            reports.dates.append(note_date)
        analysis.extracted_fields.append(ExtractedField(
            "specialist_report", specialist, "note", note.id, 0.8, note.text[:150],
        ))


def _extract_interventions(note: NoteRecord, text: str, analysis: DossierAnalysis) -> None:
    for keyword in INTERVENTION_KEYWORDS:
        if not _matches(keyword, text):
            continue
        for sentence in _sentences(note.text):
            lowered = sentence.lower()
            if not _matches(keyword, lowered):
                continue
            if any(marker in lowered for marker in _PLANNED_MARKERS):
                analysis.interventions.planned.append(sentence.strip())
            else:
                analysis.interventions.current.append(sentence.strip())


def _extract_adl_details(note: NoteRecord, text: str, analysis: DossierAnalysis) -> None:
    adl = analysis.adl_dependency
    for keyword in ADL_KEYWORDS:
        if not _matches(keyword, text):
            continue
        for sentence in _sentences(note.text):
            if not _matches(keyword, sentence.lower()):
                continue
            detail = sentence.strip()
            if detail in adl.details:
                continue
            adl.details.append(detail)
            if not adl.category:
                category = _first_matching_key(ADL_CATEGORIES, sentence)
                if category:
                    adl.category = category.replace("_", " ")
        analysis.extracted_fields.append(ExtractedField(
            "adl_details", note.text[:150], "note", note.id, 0.65, note.text[:150],
        ))
        break


# ─── Incidents ───────────────────────────────────────────────────

def incident_trend(incidents: list[IncidentRecord]) -> str | None:
    """increasing / decreasing / stable from counts either side of the midpoint date."""
    if len(incidents) < 4:
        return None
    dates = sorted(i.date for i in incidents)
    midpoint = dates[0] + (dates[-1] - dates[0]) / 2
    first_half = sum(1 for d in dates if d < midpoint)
    second_half = len(dates) - first_half
    if second_half > first_half * 1.2:
        return "increasing"
    if second_half < first_half * 0.8:
        return "decreasing"
    return "stable"


def _analyze_incidents(incidents: list[IncidentRecord], analysis: DossierAnalysis) -> None:
    pattern = analysis.incident_pattern
    for incident in incidents:
        kind = incident.type.lower()
        pattern.types[kind] = pattern.types.get(kind, 0) + 1
        severity = incident.severity.lower()
        if any(kw in severity for kw in HIGH_SEVERITY_INCIDENT):
            pattern.high_severity_count += 1
    pattern.trend = incident_trend(incidents)


# ─── Public API ──────────────────────────────────────────────────

def analyze_dossier(dossier: Dossier) -> DossierAnalysis:
    analysis = DossierAnalysis(client_id=dossier.client.client_id)
    analysis.incident_pattern.count = len(dossier.incidents)

    for measure in dossier.measures:
        _extract_from_measure(measure, analysis)

    for note in dossier.notes:
        text = note.text.lower()
        _extract_care_hours(note, text, analysis)
        _detect_bpsd(note, text, analysis)
        _detect_night_care(note, text, analysis)
        _detect_specialist_reports(note, text, analysis)
        _extract_interventions(note, text, analysis)
        _extract_adl_details(note, text, analysis)

    _analyze_incidents(dossier.incidents, analysis)
    return analysis


def _number_text(value: float | int) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def form_suggestions(analysis: DossierAnalysis) -> dict[str, dict]:
    """Auto-fill suggestions keyed by form field: value, confidence, sources."""
    suggestions: dict[str, dict] = {}

    def suggest(name: str, value: str, confidence: float, sources: list[str]) -> None:
        suggestions[name] = {"value": value, "confidence": confidence, "sources": sources}

    hours = analysis.care_hours
    if hours.day is not None:
        suggest("dagzorg_uren", str(hours.day), 0.8, analysis.sources_for("day_care_hours"))
    if hours.night is not None:
        suggest("nachtzorg_uren", str(hours.night), 0.8, analysis.sources_for("night_care_hours"))
    if hours.one_on_one is not None:
        suggest(
            "een_op_een_uren", str(hours.one_on_one), 0.75,
            analysis.sources_for("one_on_one_hours"),
        )

    adl = analysis.adl_dependency
    if adl.score is not None:
        suggest("adl_score", _number_text(adl.score), 0.9, analysis.sources_for("adl_score"))
    if adl.category:
        suggest("adl_categorie", adl.category, 0.85, ["calculated"])

    bpsd = analysis.bpsd_indicators
    if bpsd.present:
        suggest("gedragsproblematiek", "ja", 0.8, analysis.sources_for("bpsd_indicator"))
        if bpsd.severity:
            suggest("gedragsproblematiek_ernst", bpsd.severity, 0.75, ["analyzed"])

    night = analysis.night_care_needs
    if night.required:
        suggest("nachtelijke_zorg", "ja", 0.8, analysis.sources_for("night_care_needs"))
        if night.frequency:
            suggest("nachtelijke_zorg_frequentie", night.frequency, 0.7, ["analyzed"])

    incidents = analysis.incident_pattern
    if incidents.count > 0:
        suggest("aantal_incidenten", str(incidents.count), 1.0, ["counted"])
    if incidents.high_severity_count > 0:
        suggest("ernstige_incidenten", str(incidents.high_severity_count), 1.0, ["counted"])

    reports = analysis.specialist_reports
    if reports.present:
        suggest(
            "specialist_rapportage", "ja", 0.85, analysis.sources_for("specialist_report"),
        )
        suggest("specialist_types", ", ".join(reports.types), 0.8, ["aggregated"])

    return suggestions


def analysis_form_fields(analysis: DossierAnalysis) -> list[tuple[str, str]]:
    """Ordered (field_name, field_value) pairs written to the application form."""
    fields: list[tuple[str, str]] = []
    hours = analysis.care_hours
    if hours.day is not None:
        fields.append(("dagzorg_uren", str(hours.day)))
    if hours.night is not None:
        fields.append(("nachtzorg_uren", str(hours.night)))
    if hours.one_on_one is not None:
        fields.append(("een_op_een_uren", str(hours.one_on_one)))

    adl = analysis.adl_dependency
    if adl.score is not None:
        fields.append(("adl_score", _number_text(adl.score)))
    if adl.category:
        fields.append(("adl_categorie", adl.category))

    bpsd = analysis.bpsd_indicators
    fields.append(("gedragsproblematiek", "ja" if bpsd.present else "nee"))
    if bpsd.severity:
        fields.append(("gedragsproblematiek_ernst", bpsd.severity))

    night = analysis.night_care_needs
    fields.append(("nachtzorg_nodig", "ja" if night.required else "nee"))
    if night.frequency:
        fields.append(("nachtzorg_frequentie", night.frequency))
    return fields


def confidence_summary(confidences: list[float]) -> dict:
    """Bucket counts used by the analyze response."""
    return {
        "total_fields": len(confidences),
        "high_confidence": sum(1 for c in confidences if c > 0.7),
        "medium_confidence": sum(1 for c in confidences if 0.5 <= c <= 0.7),
        "low_confidence": sum(1 for c in confidences if c < 0.5),
    }

