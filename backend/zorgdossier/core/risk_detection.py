"""Risk Detection — derives risk flags from incidents, ADL measures and care-hour trends.

Invariants:
    - Pure: dossier snapshot, trend history and `today` in; RiskDetection list out
    - high_incidents: >= 10 incidents in the last 3 months; critical when >= 3 are severe
    - deteriorating_adl: latest two ADL/Katz scores decline > 20%
    - increased_care: latest two care_hours trend records rise > 25%
"""

from dataclasses import dataclass, field
from datetime import date, datetime

from zorgdossier.core.domain_types import MetricType, RiskFlagType, Severity
from zorgdossier.core.dossier import Dossier, months_ago

_SEVERE_INCIDENT = ("hoog", "ernstig")


@dataclass
class RiskDetection:
    flag_type: str
    severity: str
    description: str
    evidence: list[str] = field(default_factory=list)
    recommended_actions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "flag_type": self.flag_type,
            "severity": self.severity,
            "description": self.description,
            "evidence": self.evidence,
            "recommended_actions": self.recommended_actions,
        }


@dataclass(frozen=True)
class TrendPoint:
    """A stored trend measurement, newest identified by recorded_at."""
    metric_type: str
    metric_value: float
    recorded_at: datetime


def _fmt(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def detect_high_incidents(dossier: Dossier, today: date) -> RiskDetection | None:
    cutoff = months_ago(today, 3)
    recent = [i for i in dossier.incidents if i.date >= cutoff]
    if len(recent) < 10:
        return None
    severe = sum(1 for i in recent if i.severity.lower() in _SEVERE_INCIDENT)
    return RiskDetection(
        RiskFlagType.HIGH_INCIDENTS.value,
        Severity.CRITICAL.value if severe >= 3 else Severity.HIGH.value,
        f"{len(recent)} incidenten in laatste 3 maanden ({severe} ernstig)",
        [
            f"Totaal: {len(recent)} incidenten",
            f"Ernstig: {severe} incidenten",
            f"Gemiddeld: {len(recent) / 3:.1f} per maand",
        ],
        [
            "Evalueer veiligheidsmaatregelen",
            "Overweeg aanpassing zorgplan",
            "Overleg met multidisciplinair team",
        ],
    )


def detect_deteriorating_adl(dossier: Dossier) -> RiskDetection | None:
    adl = sorted(
        (m for m in dossier.measures
         if "adl" in m.type.lower() or "katz" in m.type.lower()),
        key=lambda m: m.date,
        reverse=True,
    )
    if len(adl) < 2:
        return None
    latest, previous = adl[0], adl[1]
    latest_score = latest.numeric_score() or 0.0
    previous_score = previous.numeric_score() or 0.0
    decline = previous_score - latest_score
    decline_pct = decline / (previous_score or 1) * 100
    if decline_pct <= 20:
        return None

    if decline_pct > 40:
        severity = Severity.CRITICAL.value
    elif decline_pct > 30:
        severity = Severity.HIGH.value
    else:
        severity = Severity.MEDIUM.value
    return RiskDetection(
        RiskFlagType.DETERIORATING_ADL.value,
        severity,
        f"ADL achteruitgang van {decline:.1f} punten ({decline_pct:.0f}%)",
        [
            f"Vorige score: {_fmt(previous_score)} ({previous.date.isoformat()})",
            f"Huidige score: {_fmt(latest_score)} ({latest.date.isoformat()})",
            f"Achteruitgang: {decline_pct:.0f}%",
        ],
        [
            "Plan herindicatie in",
            "Overweeg aanpassing zorgintensiteit",
            "Multidisciplinaire evaluatie",
        ],
    )


def detect_increased_care(trends: list[TrendPoint]) -> RiskDetection | None:
    care = sorted(
        (t for t in trends if t.metric_type == MetricType.CARE_HOURS.value),
        key=lambda t: t.recorded_at,
        reverse=True,
    )
    if len(care) < 2:
        return None
    latest, previous = care[0], care[1]
    increase = latest.metric_value - previous.metric_value
    increase_pct = increase / (previous.metric_value or 1) * 100
    if increase_pct <= 25:
        return None
    return RiskDetection(
        RiskFlagType.INCREASED_CARE.value,
        Severity.HIGH.value if increase_pct > 50 else Severity.MEDIUM.value,
        f"Zorguren gestegen met {increase_pct:.0f}%",
        [
            f"Vorige periode: {_fmt(previous.metric_value)} uur",
            f"Huidige periode: {_fmt(latest.metric_value)} uur",
            f"Toename: {increase:.1f} uur ({increase_pct:.0f}%)",
        ],
        [
            "Analyseer oorzaak van toegenomen zorgbehoefte",
            "Overweeg Meerzorg aanvraag",
            "Evalueer zorgplan",
        ],
    )


def detect_risks(
    dossier: Dossier, trends: list[TrendPoint], today: date | None = None,
) -> list[RiskDetection]:
    today = today or date.today()
    found = [
        detect_high_incidents(dossier, today),
        detect_deteriorating_adl(dossier),
        detect_increased_care(trends),
    ]
    return [risk for risk in found if risk is not None]


def severity_summary(flags: list[dict]) -> dict:
    return {
        sev.value: sum(1 for f in flags if f["severity"] == sev.value)
        for sev in (Severity.CRITICAL, Severity.HIGH, Severity.MEDIUM, Severity.LOW)
    }
