"""Trend Analysis — per-metric trends over a monitoring period and an overall assessment.

Invariants:
    - Fewer than 2 data points -> trend "insufficient_data", change 0, significance low
    - change_percentage = (last - first) / (first or 1) * 100, rounded to an integer
    - Only records dated inside [start, end] contribute

Design Decisions:
    - Incident counts bucketed per calendar month (YYYY-MM); scores used per measurement
    - Care hours are not logged as dossier records yet, so that metric always
      reports insufficient data with a registration recommendation
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import date

from zorgdossier.core.domain_types import MetricType, Severity, TrendDirection
from zorgdossier.core.dossier import Dossier, MeasureRecord

DEFAULT_METRICS = [
    MetricType.CARE_HOURS.value,
    MetricType.INCIDENT_COUNT.value,
    MetricType.ADL_SCORE.value,
    MetricType.BPSD_SCORE.value,
]

ADL_MEASURE_MARKERS = ("adl", "katz")
BPSD_MEASURE_MARKERS = ("npi", "cmai", "bpsd")


@dataclass
class TrendAnalysis:
    metric_type: str
    data_points: list[dict] = field(default_factory=list)
    trend: str = TrendDirection.INSUFFICIENT_DATA.value
    change_percentage: int = 0
    significance: str = Severity.LOW.value
    recommendation: str | None = None

    def to_dict(self) -> dict:
        return {
            "metric_type": self.metric_type,
            "data_points": self.data_points,
            "trend": self.trend,
            "change_percentage": self.change_percentage,
            "significance": self.significance,
            "recommendation": self.recommendation,
        }


def change_percentage(first: float, last: float) -> float:
    return (last - first) / (first or 1) * 100


def _classify(
    change: float, trend_threshold: float, high: float, medium: float,
) -> tuple[str, str]:
    trend = TrendDirection.STABLE.value
    if change > trend_threshold:
        trend = TrendDirection.INCREASING.value
    elif change < -trend_threshold:
        trend = TrendDirection.DECREASING.value
    significance = Severity.LOW.value
    if abs(change) > high:
        significance = Severity.HIGH.value
    elif abs(change) > medium:
        significance = Severity.MEDIUM.value
    return trend, significance


def _score_points(
    measures: list[MeasureRecord], markers: tuple[str, ...], start: date, end: date,
) -> list[dict]:
    selected = [
        m for m in measures
        if any(marker in m.type.lower() for marker in markers) and start <= m.date <= end
    ]
    selected.sort(key=lambda m: m.date)
    return [
        {"date": m.date.isoformat(), "value": m.numeric_score() or 0.0}
        for m in selected
    ]


def analyze_incident_trend(dossier: Dossier, start: date, end: date) -> TrendAnalysis:
    monthly = Counter(
        i.date.strftime("%Y-%m") for i in dossier.incidents if start <= i.date <= end
    )
    points = [{"date": month, "value": count} for month, count in sorted(monthly.items())]
    result = TrendAnalysis(MetricType.INCIDENT_COUNT.value, points)
    if len(points) < 2:
        return result

    change = change_percentage(points[0]["value"], points[-1]["value"])
    result.trend, result.significance = _classify(change, 20, 50, 30)
    result.change_percentage = round(change)
    if result.trend == TrendDirection.INCREASING.value and result.significance != Severity.LOW.value:
        result.recommendation = (
            "Stijgend aantal incidenten vereist aandacht. "
            "Overweeg aanvullende maatregelen of observatie."
        )
    return result


def analyze_adl_trend(dossier: Dossier, start: date, end: date) -> TrendAnalysis:
    points = _score_points(dossier.measures, ADL_MEASURE_MARKERS, start, end)
    result = TrendAnalysis(MetricType.ADL_SCORE.value, points)
    if len(points) < 2:
        return result

    change = change_percentage(points[0]["value"], points[-1]["value"])
    result.trend, result.significance = _classify(change, 15, 30, 20)
    result.change_percentage = round(change)
    if result.trend == TrendDirection.DECREASING.value and result.significance != Severity.LOW.value:
        result.recommendation = (
            "Dalende ADL score duidt op achteruitgang. "
            "Overweeg aanpassing zorgplan of herindicatie."
        )
    return result


def analyze_bpsd_trend(dossier: Dossier, start: date, end: date) -> TrendAnalysis:
    points = _score_points(dossier.measures, BPSD_MEASURE_MARKERS, start, end)
    result = TrendAnalysis(MetricType.BPSD_SCORE.value, points)
    if len(points) < 2:
        return result

    change = change_percentage(points[0]["value"], points[-1]["value"])
    result.trend, result.significance = _classify(change, 15, 30, 20)
    result.change_percentage = round(change)
    if result.trend == TrendDirection.INCREASING.value and result.significance != Severity.LOW.value:
        result.recommendation = (
            "Stijgende BPSD scores vereisen heroverweging van behandelplan "
            "en mogelijk specialistische consultatie."
        )
    return result


def analyze_care_hours_trend(dossier: Dossier, start: date, end: date) -> TrendAnalysis:
    return TrendAnalysis(
        MetricType.CARE_HOURS.value,
        recommendation="Registreer zorguren consistent voor trend analyse.",
    )


_ANALYZERS = {
    MetricType.INCIDENT_COUNT.value: analyze_incident_trend,
    MetricType.ADL_SCORE.value: analyze_adl_trend,
    MetricType.CARE_HOURS.value: analyze_care_hours_trend,
    MetricType.BPSD_SCORE.value: analyze_bpsd_trend,
}


def analyze_trends(
    dossier: Dossier, metric_types: list[str] | None, start: date, end: date,
) -> list[TrendAnalysis]:
    """One analysis per known metric type, in request order; unknown types skipped."""
    analyses = []
    for metric in metric_types or DEFAULT_METRICS:
        analyzer = _ANALYZERS.get(metric)
        if analyzer:
            analyses.append(analyzer(dossier, start, end))
    return analyses


def _is_negative(analysis: TrendAnalysis) -> bool:
    return (
        (analysis.metric_type == MetricType.ADL_SCORE.value
         and analysis.trend == TrendDirection.DECREASING.value)
        or (analysis.metric_type == MetricType.INCIDENT_COUNT.value
            and analysis.trend == TrendDirection.INCREASING.value)
        or (analysis.metric_type == MetricType.BPSD_SCORE.value
            and analysis.trend == TrendDirection.INCREASING.value)
    )


def overall_assessment(analyses: list[TrendAnalysis]) -> dict:
    high = sum(1 for a in analyses if a.significance == Severity.HIGH.value)
    medium = sum(1 for a in analyses if a.significance == Severity.MEDIUM.value)
    negative = sum(1 for a in analyses if _is_negative(a))

    status, summary = "stable", "Situatie is stabiel. Blijf monitoring voortzetten."
    if high > 0 or negative >= 2:
        status = "urgent"
        summary = "Meerdere zorgelijke trends gedetecteerd. Directe actie vereist."
    elif medium > 0 or negative >= 1:
        status = "needs_attention"
        summary = "Enkele trends vereisen aandacht. Plan evaluatie in."

    recommendations = [a.recommendation for a in analyses if a.recommendation]
    if status == "urgent" and not recommendations:
        recommendations.append(
            "Overleg met behandelend team om multidisciplinaire evaluatie in te plannen."
        )
    return {"status": status, "summary": summary, "recommendations": recommendations}
