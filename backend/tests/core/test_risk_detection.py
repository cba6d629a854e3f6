"""Tests for risk flag detection."""

from datetime import date, datetime, timedelta, timezone

from zorgdossier.core.dossier import ClientRecord, Dossier, IncidentRecord, MeasureRecord
from zorgdossier.core.risk_detection import (
    TrendPoint, detect_deteriorating_adl, detect_high_incidents,
    detect_increased_care, detect_risks, severity_summary,
)

TODAY = date(2026, 3, 1)


def _incidents(count, severe=0, days_ago=10):
    return [
        IncidentRecord(
            f"i{n}", TODAY - timedelta(days=days_ago), "Val",
            "Ernstig" if n < severe else "Laag", "",
        )
        for n in range(count)
    ]


def _dossier(incidents=(), measures=()):
    return Dossier(client=ClientRecord("C-1"), incidents=list(incidents), measures=list(measures))


def _care(value, day):
    return TrendPoint("care_hours", value, datetime(2026, 1, day, tzinfo=timezone.utc))


# ==============================================================================
# Incidents
# ==============================================================================


def test_nine_incidents_is_not_a_risk():
    assert detect_high_incidents(_dossier(_incidents(9)), TODAY) is None


def test_ten_recent_incidents_is_high():
    risk = detect_high_incidents(_dossier(_incidents(10)), TODAY)
    assert risk.flag_type == "high_incidents"
    assert risk.severity == "high"
    assert risk.description == "10 incidenten in laatste 3 maanden (0 ernstig)"
    assert risk.evidence[2] == "Gemiddeld: 3.3 per maand"


def test_three_severe_incidents_make_it_critical():
    risk = detect_high_incidents(_dossier(_incidents(10, severe=3)), TODAY)
    assert risk.severity == "critical"


def test_old_incidents_are_ignored():
    assert detect_high_incidents(_dossier(_incidents(12, days_ago=120)), TODAY) is None


# ==============================================================================
# ADL
# ==============================================================================


def _adl(previous, latest):
    return [
        MeasureRecord("old", date(2025, 12, 1), "Katz ADL", previous),
        MeasureRecord("new", date(2026, 2, 1), "Katz ADL", latest),
    ]


def test_adl_decline_thresholds():
    assert detect_deteriorating_adl(_dossier(measures=_adl("10", "8"))) is None
    assert detect_deteriorating_adl(_dossier(measures=_adl("10", "7.5"))).severity == "medium"
    assert detect_deteriorating_adl(_dossier(measures=_adl("10", "6.5"))).severity == "high"
    assert detect_deteriorating_adl(_dossier(measures=_adl("10", "5"))).severity == "critical"


def test_adl_evidence_mentions_both_scores():
    risk = detect_deteriorating_adl(_dossier(measures=_adl("10", "5")))
    assert risk.description == "ADL achteruitgang van 5.0 punten (50%)"
    assert risk.evidence[0] == "Vorige score: 10 (2025-12-01)"
    assert risk.evidence[1] == "Huidige score: 5 (2026-02-01)"


def test_single_adl_measure_is_not_enough():
    measures = [MeasureRecord("m", TODAY, "Katz ADL", "2")]
    assert detect_deteriorating_adl(_dossier(measures=measures)) is None


# ==============================================================================
# Care hours
# ==============================================================================


def test_care_increase_thresholds():
    assert detect_increased_care([_care(10, 1), _care(12, 2)]) is None
    assert detect_increased_care([_care(10, 1), _care(13, 2)]).severity == "medium"
    risk = detect_increased_care([_care(16, 2), _care(10, 1)])
    assert risk.severity == "high"
    assert risk.description == "Zorguren gestegen met 60%"


def test_other_metrics_are_ignored_for_care():
    points = [TrendPoint("adl_score", 1, datetime(2026, 1, 1)), _care(10, 2)]
    assert detect_increased_care(points) is None


# ==============================================================================
# Combined
# ==============================================================================


def test_detect_risks_combines_detectors():
    dossier = _dossier(_incidents(10), _adl("10", "5"))
    risks = detect_risks(dossier, [_care(10, 1), _care(20, 2)], today=TODAY)
    assert [r.flag_type for r in risks] == [
        "high_incidents", "deteriorating_adl", "increased_care",
    ]


def test_severity_summary_counts():
    flags = [{"severity": "high"}, {"severity": "high"}, {"severity": "low"}]
    assert severity_summary(flags) == {"critical": 0, "high": 2, "medium": 0, "low": 1}
