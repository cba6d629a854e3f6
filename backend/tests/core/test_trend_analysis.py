"""Tests for monitoring trends and the overall assessment."""

from datetime import date

from zorgdossier.core.dossier import ClientRecord, Dossier, IncidentRecord, MeasureRecord
from zorgdossier.core.trend_analysis import (
    TrendAnalysis, analyze_trends, change_percentage, overall_assessment,
)

START = date(2025, 9, 1)
END = date(2026, 3, 1)


def _incident(day, id):
    return IncidentRecord(id, day, "Val", "Laag", "")


def _dossier(incidents=(), measures=()):
    return Dossier(client=ClientRecord("C-1"), incidents=list(incidents), measures=list(measures))


def test_change_percentage_guards_zero_start():
    assert change_percentage(10, 15) == 50
    assert change_percentage(0, 3) == 300


def test_default_metrics_in_order():
    analyses = analyze_trends(_dossier(), None, START, END)
    assert [a.metric_type for a in analyses] == [
        "care_hours", "incident_count", "adl_score", "bpsd_score",
    ]
    assert all(a.trend == "insufficient_data" for a in analyses)


def test_unknown_metric_is_skipped():
    assert analyze_trends(_dossier(), ["gewicht"], START, END) == []


def test_care_hours_always_insufficient():
    [care] = analyze_trends(_dossier(), ["care_hours"], START, END)
    assert care.trend == "insufficient_data"
    assert care.recommendation == "Registreer zorguren consistent voor trend analyse."


def test_incidents_bucketed_per_month():
    incidents = [
        _incident(date(2026, 1, 5), "a"), _incident(date(2026, 1, 20), "b"),
        _incident(date(2026, 2, 1), "c"), _incident(date(2026, 2, 2), "d"),
        _incident(date(2026, 2, 3), "e"),
        _incident(date(2024, 1, 1), "outside"),
    ]
    [trend] = analyze_trends(_dossier(incidents=incidents), ["incident_count"], START, END)
    assert trend.data_points == [
        {"date": "2026-01", "value": 2}, {"date": "2026-02", "value": 3},
    ]
    assert trend.trend == "increasing"
    assert trend.change_percentage == 50
    assert trend.significance == "medium"
    assert trend.recommendation.startswith("Stijgend aantal incidenten")


def test_adl_decline_is_flagged():
    measures = [
        MeasureRecord("m2", date(2026, 2, 1), "Katz ADL", "7"),
        MeasureRecord("m1", date(2025, 10, 1), "Katz ADL", "10"),
    ]
    [trend] = analyze_trends(_dossier(measures=measures), ["adl_score"], START, END)
    assert [p["value"] for p in trend.data_points] == [10.0, 7.0]
    assert trend.trend == "decreasing"
    assert trend.change_percentage == -30
    assert trend.significance == "medium"
    assert trend.recommendation is not None


def test_stable_bpsd_scores():
    measures = [
        MeasureRecord("m1", date(2025, 10, 1), "NPI", "10"),
        MeasureRecord("m2", date(2026, 2, 1), "NPI", "11"),
    ]
    [trend] = analyze_trends(_dossier(measures=measures), ["bpsd_score"], START, END)
    assert trend.trend == "stable"
    assert trend.significance == "low"
    assert trend.recommendation is None


# ==============================================================================
# Overall assessment
# ==============================================================================


def test_overall_stable():
    assessment = overall_assessment([TrendAnalysis("adl_score", trend="stable")])
    assert assessment["status"] == "stable"
    assert assessment["recommendations"] == []


def test_one_negative_trend_needs_attention():
    assessment = overall_assessment([TrendAnalysis("incident_count", trend="increasing")])
    assert assessment["status"] == "needs_attention"


def test_high_significance_is_urgent_with_default_recommendation():
    assessment = overall_assessment([
        TrendAnalysis("bpsd_score", trend="stable", significance="high"),
    ])
    assert assessment["status"] == "urgent"
    assert assessment["recommendations"] == [
        "Overleg met behandelend team om multidisciplinaire evaluatie in te plannen."
    ]


def test_two_negative_trends_are_urgent():
    assessment = overall_assessment([
        TrendAnalysis("adl_score", trend="decreasing", recommendation="A"),
        TrendAnalysis("bpsd_score", trend="increasing"),
    ])
    assert assessment["status"] == "urgent"
    assert assessment["recommendations"] == ["A"]
