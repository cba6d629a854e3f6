"""Framework Versions — registry, limits and migration planning for regulatory framework versions.

Invariants:
    - Exactly one version of a framework type is active on any date covered by the registry
    - Migration is only defined meerzorg 2025 -> 2026; anything else raises
      UnsupportedMigrationError
    - plan_migration never mutates the form data it receives

Design Decisions:
    - Static in-code registry: versions change yearly by regulation, not at runtime
    - Rule differences derived from the live rule tables (check_engine), so the
      comparison can never drift from what validation actually runs
    - Migration messages are Dutch: shown verbatim in the migration dialog
"""

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from zorgdossier.core.check_engine import default_rules
from zorgdossier.core.domain_types import FrameworkType
from zorgdossier.core.errors import UnsupportedMigrationError


@dataclass(frozen=True)
class FrameworkVersion:
    framework_type: str
    version: str
    effective_from: date
    effective_to: date | None = None

    def active_on(self, on: date) -> bool:
        return self.effective_from <= on and (
            self.effective_to is None or on <= self.effective_to
        )


@dataclass(frozen=True)
class VersionLimits:
    max_day_care_hours: int = 16
    max_night_care_hours: int = 12
    max_one_on_one_hours: int = 8
    min_assessment_recency_days: int = 90


@dataclass
class VersionConfig:
    version: str
    effective_from: date
    effective_to: date | None
    features: dict[str, bool]
    limits: VersionLimits
    rule_ids: list[str] = field(default_factory=list)


VERSIONS: list[FrameworkVersion] = [
    FrameworkVersion(FrameworkType.MEERZORG.value, "2025", date(2025, 1, 1), date(2025, 12, 31)),
    FrameworkVersion(FrameworkType.MEERZORG.value, "2026", date(2026, 1, 1)),
    FrameworkVersion(FrameworkType.VV8.value, "2026", date(2026, 1, 1)),
    FrameworkVersion(FrameworkType.TOETSINGSKADER.value, "2026", date(2026, 1, 1)),
]

_DEFAULT_FEATURES = {
    "sustainabilityRequired": False,
    "observationPeriod": False,
    "enhancedBPSDAssessment": False,
    "digitalSubmission": True,
}

_MEERZORG_FEATURES = {
    "2026": {
        "sustainabilityRequired": True,
        "observationPeriod": True,
        "enhancedBPSDAssessment": True,
        "digitalSubmission": True,
        "trendMonitoring": True,
        "riskFlagging": True,
    },
    "2025": {
        "sustainabilityRequired": False,
        "observationPeriod": False,
        "enhancedBPSDAssessment": False,
        "digitalSubmission": True,
        "trendMonitoring": False,
        "riskFlagging": False,
    },
}

_MEERZORG_LIMITS = {
    "2026": VersionLimits(16, 12, 8, 90),
    "2025": VersionLimits(18, 14, 10, 180),
}

# Per-field caps applied when moving a meerzorg application to 2026
_MIGRATION_CAPS = (
    ("dagzorg_uren", "Dagzorg uren", 16),
    ("nachtzorg_uren", "Nachtzorg uren", 12),
    ("een_op_een_uren", "1-op-1 begeleiding uren", 8),
)


# ─── Registry ────────────────────────────────────────────────────

def versions_for(framework_type: str) -> list[FrameworkVersion]:
    """Versions of a framework type, oldest first."""
    return sorted(
        (v for v in VERSIONS if v.framework_type == framework_type),
        key=lambda v: v.effective_from,
    )


def find_version(framework_type: str, version: str) -> FrameworkVersion | None:
    return next(
        (v for v in versions_for(framework_type) if v.version == version), None,
    )


def active_version(framework_type: str, on: date | None = None) -> FrameworkVersion | None:
    on = on or date.today()
    return next((v for v in versions_for(framework_type) if v.active_on(on)), None)


def determine_application_version(framework_type: str, on: date | None = None) -> str:
    """Active version on a date; latest known version otherwise; "2026" as last resort."""
    active = active_version(framework_type, on)
    if active:
        return active.version
    known = versions_for(framework_type)
    return known[-1].version if known else "2026"


def version_features(framework_type: str, version: str) -> dict[str, bool]:
    if framework_type == FrameworkType.MEERZORG.value and version in _MEERZORG_FEATURES:
        return dict(_MEERZORG_FEATURES[version])
    return dict(_DEFAULT_FEATURES)


def version_limits(framework_type: str, version: str) -> VersionLimits:
    if framework_type == FrameworkType.MEERZORG.value and version in _MEERZORG_LIMITS:
        return _MEERZORG_LIMITS[version]
    return VersionLimits()


def version_config(framework_type: str, version: str) -> VersionConfig | None:
    registered = find_version(framework_type, version)
    if registered is None:
        return None
    return VersionConfig(
        version=version,
        effective_from=registered.effective_from,
        effective_to=registered.effective_to,
        features=version_features(framework_type, version),
        limits=version_limits(framework_type, version),
        rule_ids=[r.id for r in default_rules(framework_type, version)],
    )


def version_timeline(framework_type: str, today: date | None = None) -> list[dict]:
    today = today or date.today()
    return [
        {
            "version": v.version,
            "effective_from": v.effective_from.isoformat(),
            "effective_to": v.effective_to.isoformat() if v.effective_to else None,
            "is_current": v.active_on(today),
            "is_upcoming": v.effective_from > today,
        }
        for v in versions_for(framework_type)
    ]


# ─── Changes & Comparison ────────────────────────────────────────

def version_changes(framework_type: str, from_version: str, to_version: str) -> list[dict]:
    if not (
        framework_type == FrameworkType.MEERZORG.value
        and from_version == "2025" and to_version == "2026"
    ):
        return []
    return [
        {
            "type": "field_added",
            "field": "sustainability_justification",
            "description": "Nieuw verplicht veld: onderbouwing duurzaamheid zorgbehoefte",
            "impact": "high",
        },
        {
            "type": "rule_added",
            "description": "Nieuwe validatieregel: specialistisch rapport bij ernstige problematiek",
            "impact": "medium",
        },
        {
            "type": "limit_changed",
            "description": "Dagzorg maximum verlaagd van 18 naar 16 uur",
            "impact": "medium",
        },
        {
            "type": "limit_changed",
            "description": "Nachtzorg maximum verlaagd van 14 naar 12 uur",
            "impact": "medium",
        },
        {
            "type": "field_added",
            "field": "observation_period",
            "description": "Observatieperiode optie toegevoegd voor grensgevallen",
            "impact": "low",
        },
        {
            "type": "rule_modified",
            "description": "Strengere eisen aan recentheid van metingen (6 maanden -> 3 maanden)",
            "impact": "medium",
        },
    ]


def version_transition(
    framework_type: str, current_version: str, on: date | None = None,
) -> dict | None:
    """Pending move to the version active on `on`; None when already current."""
    active = active_version(framework_type, on)
    if active is None or active.version == current_version:
        return None
    changes = version_changes(framework_type, current_version, active.version)
    return {
        "needed": True,
        "from_version": current_version,
        "to_version": active.version,
        "effective_date": active.effective_from.isoformat(),
        "changes": changes,
        "migration_required": any(c["impact"] == "high" for c in changes),
    }


def compare_versions(framework_type: str, version1: str, version2: str) -> dict | None:
    config1 = version_config(framework_type, version1)
    config2 = version_config(framework_type, version2)
    if config1 is None or config2 is None:
        return None

    limits1, limits2 = vars(config1.limits), vars(config2.limits)
    return {
        "version1": version1,
        "version2": version2,
        "differences": {
            "rules": {
                "added": [r for r in config2.rule_ids if r not in config1.rule_ids],
                "removed": [r for r in config1.rule_ids if r not in config2.rule_ids],
            },
            "features": {
                k: {"old": config1.features.get(k), "new": v}
                for k, v in config2.features.items()
                if config1.features.get(k) != v
            },
            "limits": {
                k: {"old": limits1[k], "new": v}
                for k, v in limits2.items()
                if limits1[k] != v
            },
        },
    }


# ─── Validation & Migration ──────────────────────────────────────

def _as_float(value: Any) -> float:
    if value is None or value == "":
        return 0.0
    try:
        return float(str(value).replace(",", "."))
    except ValueError:
        return 0.0


def _leading_int(value: Any) -> int | None:
    """Integer prefix of a value ("17.5 uur" -> 17); None when there is none."""
    match = re.match(r"\s*(-?\d+)", str(value))
    return int(match.group(1)) if match else None


def _format_number(value: float) -> str:
    return str(int(value)) if value.is_integer() else str(value)


def validate_against_version(
    form_data: dict,
    framework_type: str,
    version: str,
    today: date | None = None,
) -> dict:
    """Check form data against a version's limits and required fields."""
    today = today or date.today()
    config = version_config(framework_type, version)
    if config is None:
        return {
            "valid": False,
            "version": version,
            "issues": [{
                "type": "missing_field",
                "field": None,
                "message": f"Framework version {version} not found",
                "severity": "error",
            }],
        }

    issues = []
    day_hours = _as_float(form_data.get("dagzorg_uren"))
    if day_hours > config.limits.max_day_care_hours:
        issues.append({
            "type": "limit_exceeded",
            "field": "dagzorg_uren",
            "message": (
                f"Dagzorg uren ({_format_number(day_hours)}) overschrijdt maximum "
                f"({config.limits.max_day_care_hours})"
            ),
            "severity": "error",
        })

    night_hours = _as_float(form_data.get("nachtzorg_uren"))
    if night_hours > config.limits.max_night_care_hours:
        issues.append({
            "type": "limit_exceeded",
            "field": "nachtzorg_uren",
            "message": (
                f"Nachtzorg uren ({_format_number(night_hours)}) overschrijdt maximum "
                f"({config.limits.max_night_care_hours})"
            ),
            "severity": "error",
        })

    if config.features.get("sustainabilityRequired") and not form_data.get(
        "duurzaamheid_onderbouwing"
    ):
        issues.append({
            "type": "missing_field",
            "field": "duurzaamheid_onderbouwing",
            "message": f"Duurzaamheid onderbouwing is verplicht voor versie {version}",
            "severity": "error",
        })

    last_assessment = form_data.get("laatste_meting_datum")
    if last_assessment:
        try:
            assessed_on = date.fromisoformat(str(last_assessment)[:10])
        except ValueError:
            assessed_on = None
        if assessed_on is not None:
            age = (today - assessed_on).days
            if age > config.limits.min_assessment_recency_days:
                issues.append({
                    "type": "outdated_assessment",
                    "field": "laatste_meting_datum",
                    "message": (
                        f"Laatste beoordeling is {age} dagen oud (maximum "
                        f"{config.limits.min_assessment_recency_days} dagen)"
                    ),
                    "severity": "warning",
                })

    return {
        "valid": not any(i["severity"] == "error" for i in issues),
        "version": version,
        "issues": issues,
    }


def plan_migration(form_data: dict, from_version: str, to_version: str) -> dict:
    """Warnings and capped values for moving a meerzorg application between versions.

    Returns {"warnings": [...], "changes": {...}}; apply by merging
    `changes` over the existing form data.
    """
    if from_version != "2025" or to_version != "2026":
        raise UnsupportedMigrationError(from_version, to_version)

    warnings = []
    changes: dict[str, int] = {}

    for field_name, label, cap in _MIGRATION_CAPS:
        raw = form_data.get(field_name)
        if not raw:
            continue
        current = _leading_int(raw)
        if current is not None and current > cap:
            warnings.append({
                "field": field_name,
                "message": (
                    f"{label} ({current}) overschrijdt 2026 maximum van {cap}. "
                    f"Waarde wordt verlaagd naar {cap}."
                ),
                "severity": "warning",
                "action_required": True,
            })
            changes[field_name] = cap

    if not form_data.get("duurzaamheid_onderbouwing"):
        warnings.append({
            "field": "duurzaamheid_onderbouwing",
            "message": (
                "Duurzaamheid onderbouwing is verplicht in 2026 framework. "
                "Dit veld moet worden ingevuld na migratie."
            ),
            "severity": "error",
            "action_required": True,
        })
    else:
        warnings.append({
            "field": "duurzaamheid_onderbouwing",
            "message": (
                "Duurzaamheid onderbouwing aanwezig. "
                "Controleer of deze voldoet aan 2026 vereisten."
            ),
            "severity": "info",
            "action_required": False,
        })

    warnings.append({
        "field": "algemeen",
        "message": "Het 2026 framework hanteert strengere eisen voor onderbouwing en duurzaamheid.",
        "severity": "info",
        "action_required": False,
    })
    return {"warnings": warnings, "changes": changes}
