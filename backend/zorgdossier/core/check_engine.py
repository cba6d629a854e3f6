"""Normative Check Engine — evaluates regulatory rule tables against a dossier and form data.

Invariants:
    - Pure: no IO, no async, no DB; `today` is passed in via CheckContext
    - Every rule yields exactly one CheckResult (pass/fail), in rule-table order
    - A rule that raises is recorded as fail/consistency/medium with
      "Check execution error: <message>" — one broken rule never aborts the run
    - Unknown framework types yield an empty rule table

Design Decisions:
    - Rules are data (CheckRule with a check callable) so callers can pass custom tables
    - Rule messages are Dutch: they are shown verbatim to care professionals
    - Version-specific rules appended after the base table (meerzorg 2026 sustainability)
"""

import logging
import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Callable

from zorgdossier.core.domain_types import (
    CheckCategory, CheckStatus, FrameworkType, Recommendation, Severity,
)
from zorgdossier.core.dossier import Dossier, months_ago

logger = logging.getLogger(__name__)

VV8_FORM_CRITERIA = (
    "ADL",
    "NACHT_TOEZICHT",
    "GEDRAG",
    "COMMUNICATIE",
    "MOBILITEIT",
    "PSYCHOSOCIAAL",
    "SOCIALE_REDZAAMHEID",
    "ZELFSTANDIGHEID",
)

_HIGH_SEVERITY_INCIDENT = ("hoog", "ernstig")
_LEADING_NUMBER = re.compile(r"\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


@dataclass
class CheckContext:
    """Inputs a rule may inspect."""
    dossier: Dossier
    form_data: dict[str, Any] = field(default_factory=dict)
    application_id: str | None = None
    today: date = field(default_factory=date.today)


@dataclass(frozen=True)
class CheckRule:
    id: str
    name: str
    description: str
    category: CheckCategory
    severity: Severity
    check: Callable[[CheckContext], tuple[bool, str]]


@dataclass
class CheckResult:
    application_id: str | None
    client_id: str
    check_type: str
    rule_id: str
    status: str
    message: str
    severity: str
    checked_at: datetime
    name: str
    description: str

    def to_dict(self) -> dict:
        return {
            "rule_id": self.rule_id,
            "name": self.name,
            "description": self.description,
            "category": self.check_type,
            "status": self.status,
            "message": self.message,
            "severity": self.severity,
            "checked_at": self.checked_at.isoformat(),
        }


# ─── Helpers ─────────────────────────────────────────────────────

def _has(form_data: dict, key: str) -> bool:
    """Form field counts as documented when the key is present, even if null."""
    return key in form_data


def _as_float(value: Any) -> float:
    """Leading-number parse: "8 uur" is 8.0, empty is 0.0, no number is NaN.

    NaN is neither 0 nor greater than anything, so a non-numeric hours entry
    still has to be justified in the notes.
    """
    if isinstance(value, (int, float)):
        return float(value)
    if not value:
        return 0.0
    match = _LEADING_NUMBER.match(str(value))
    return float(match.group(0)) if match else math.nan


def _any_note_mentions(ctx: CheckContext, *terms: str) -> bool:
    return any(
        any(term in note.text.lower() for term in terms)
        for note in ctx.dossier.notes
    )


# ─── Meerzorg Rules ──────────────────────────────────────────────

def _client_info_complete(ctx: CheckContext) -> tuple[bool, str]:
    client = ctx.dossier.client
    missing = []
    if not client.name:
        missing.append("naam")
    if not client.dob:
        missing.append("geboortedatum")
    if not client.wlz_profile:
        missing.append("WLZ profiel")
    if missing:
        return False, f"Ontbrekende gegevens: {', '.join(missing)}"
    return True, "Cliëntgegevens compleet"


def _care_hours_documented(ctx: CheckContext) -> tuple[bool, str]:
    if _has(ctx.form_data, "dagzorg_uren") or _has(ctx.form_data, "nachtzorg_uren"):
        return True, "Zorguren gedocumenteerd"
    return False, "Geen dag- of nachtzorguren vastgelegd"


def _adl_assessment(ctx: CheckContext) -> tuple[bool, str]:
    has_measure = any(
        "adl" in m.type.lower() or "katz" in m.type.lower()
        for m in ctx.dossier.measures
    )
    if has_measure or _has(ctx.form_data, "adl_score"):
        return True, "ADL beoordeling aanwezig"
    return False, "Geen ADL beoordeling gevonden in metingen of formulier"


def _bpsd_documented(ctx: CheckContext) -> tuple[bool, str]:
    if ctx.form_data.get("gedragsproblematiek") != "ja":
        return True, "Geen gedragsproblematiek gemeld"
    if _any_note_mentions(ctx, "bpsd", "gedrag", "agressie"):
        return True, "Gedragsproblematiek gedocumenteerd"
    return False, (
        "Gedragsproblematiek gemeld maar onvoldoende gedocumenteerd in notities"
    )


def _night_care_justification(ctx: CheckContext) -> tuple[bool, str]:
    if _as_float(ctx.form_data.get("nachtzorg_uren")) == 0:
        return True, "Geen nachtzorg aangevraagd"
    if _any_note_mentions(ctx, "nacht"):
        return True, "Nachtzorg voldoende onderbouwd"
    return False, "Nachtzorg aangevraagd maar onvoldoende onderbouwd in notities"


def _incident_threshold(ctx: CheckContext) -> tuple[bool, str]:
    incidents = ctx.dossier.incidents
    total = len(incidents)
    severe = sum(
        1 for i in incidents if i.severity.lower() in _HIGH_SEVERITY_INCIDENT
    )
    if total < 10 and severe < 3:
        return True, "Incidentdruk binnen normale grenzen"
    if _has(ctx.form_data, "incident_onderbouwing"):
        return True, "Hoog aantal incidenten gedocumenteerd"
    return False, (
        f"Hoog aantal incidenten ({total} totaal, {severe} ernstig) "
        f"vereist extra onderbouwing"
    )


def _specialist_report(ctx: CheckContext) -> tuple[bool, str]:
    severe_bpsd = ctx.form_data.get("gedragsproblematiek_ernst") in ("ernstig", "severe")
    high_care_need = (
        _as_float(ctx.form_data.get("een_op_een_uren")) > 0
        or _as_float(ctx.form_data.get("nachtzorg_uren")) > 8
    )
    if not severe_bpsd and not high_care_need:
        return True, "Geen specialistisch rapport vereist"
    if _any_note_mentions(ctx, "psychiater", "geriater", "specialist"):
        return True, "Specialistisch rapport aanwezig"
    return False, (
        "Ernstige problematiek of hoge zorgbehoefte vereist specialistisch rapport"
    )


def _recent_assessment(ctx: CheckContext) -> tuple[bool, str]:
    if not ctx.dossier.measures:
        return False, "Geen metingen beschikbaar"
    cutoff = months_ago(ctx.today, 3)
    recent = [m for m in ctx.dossier.measures if m.date >= cutoff]
    if recent:
        return True, f"{len(recent)} recente meting(en) gevonden"
    return False, "Geen metingen van de laatste 3 maanden"


def _care_plan_present(ctx: CheckContext) -> tuple[bool, str]:
    for note in ctx.dossier.notes:
        section = note.section.lower()
        text = note.text.lower()
        if "plan" in section or "doel" in text or "interventie" in text:
            return True, "Zorgplan gedocumenteerd"
    return False, "Geen zorgplan of doelen/interventies gevonden"


def _sustainability_2026(ctx: CheckContext) -> tuple[bool, str]:
    if _any_note_mentions(ctx, "duurza", "blijvend", "structureel"):
        return True, "Duurzaamheid onderbouwd"
    return False, "2026 framework vereist onderbouwing van duurzame zorgbehoefte"


def meerzorg_rules(version: str) -> list[CheckRule]:
    rules = [
        CheckRule(
            "meerzorg_client_info_complete", "Cliëntgegevens compleet",
            "Controleer of basis cliëntgegevens aanwezig zijn",
            CheckCategory.REQUIRED_FIELD, Severity.CRITICAL, _client_info_complete,
        ),
        CheckRule(
            "meerzorg_care_hours_documented", "Zorguren gedocumenteerd",
            "Controleer of zorguren zijn vastgelegd",
            CheckCategory.REQUIRED_FIELD, Severity.HIGH, _care_hours_documented,
        ),
        CheckRule(
            "meerzorg_adl_assessment", "ADL beoordeling aanwezig",
            "Controleer of ADL beoordeling is uitgevoerd",
            CheckCategory.TOETSINGSKADER_RULE, Severity.HIGH, _adl_assessment,
        ),
        CheckRule(
            "meerzorg_bpsd_documented", "Gedragsproblematiek gedocumenteerd",
            "Bij gedragsproblematiek: documentatie vereist",
            CheckCategory.TOETSINGSKADER_RULE, Severity.MEDIUM, _bpsd_documented,
        ),
        CheckRule(
            "meerzorg_night_care_justification", "Nachtzorg onderbouwing",
            "Nachtzorg vereist specifieke onderbouwing",
            CheckCategory.TOETSINGSKADER_RULE, Severity.HIGH, _night_care_justification,
        ),
        CheckRule(
            "meerzorg_incident_threshold", "Incident drempelwaarde",
            "Hoog aantal incidenten vereist extra aandacht",
            CheckCategory.CONSISTENCY, Severity.MEDIUM, _incident_threshold,
        ),
        CheckRule(
            "meerzorg_specialist_report", "Specialistisch rapport",
            "Bij ernstige problematiek: specialistisch rapport vereist",
            CheckCategory.TOETSINGSKADER_RULE, Severity.HIGH, _specialist_report,
        ),
        CheckRule(
            "meerzorg_recent_assessment", "Recente beoordeling",
            "Metingen moeten recent zijn (< 3 maanden)",
            CheckCategory.COMPLETENESS, Severity.MEDIUM, _recent_assessment,
        ),
        CheckRule(
            "meerzorg_care_plan_present", "Zorgplan aanwezig",
            "Zorgplan met doelen en interventies moet aanwezig zijn",
            CheckCategory.COMPLETENESS, Severity.MEDIUM, _care_plan_present,
        ),
    ]
    if version == "2026":
        rules.append(CheckRule(
            "meerzorg_2026_sustainability", "Duurzaamheid aanvraag (2026)",
            "Voor 2026: onderbouwing duurzaamheid zorgbehoefte",
            CheckCategory.TOETSINGSKADER_RULE, Severity.MEDIUM, _sustainability_2026,
        ))
    return rules


# ─── VV8 / Toetsingskader Rules ──────────────────────────────────

def _vv8_criteria_complete(ctx: CheckContext) -> tuple[bool, str]:
    missing = [c for c in VV8_FORM_CRITERIA if not _has(ctx.form_data, c)]
    if missing:
        return False, f"Ontbrekende criteria: {', '.join(missing)}"
    return True, "Alle VV8 criteria beoordeeld"


def _vv8_evidence_present(ctx: CheckContext) -> tuple[bool, str]:
    if ctx.dossier.notes or ctx.dossier.measures:
        return True, "Bewijs aanwezig in notities en/of metingen"
    return False, "Geen bewijs (notities of metingen) gevonden"


def _data_quality(ctx: CheckContext) -> tuple[bool, str]:
    notes = ctx.dossier.notes
    cutoff = months_ago(ctx.today, 12)
    issues = []
    if notes and all(n.date < cutoff for n in notes):
        issues.append("alle notities zijn ouder dan 1 jaar")
    if issues:
        return False, f"Kwaliteitsissues: {'; '.join(issues)}"
    return True, "Data kwaliteit OK"


def vv8_rules(version: str) -> list[CheckRule]:
    return [
        CheckRule(
            "vv8_criteria_complete", "VV8 criteria compleet",
            "Alle 8 VV8 criteria moeten beoordeeld zijn",
            CheckCategory.COMPLETENESS, Severity.CRITICAL, _vv8_criteria_complete,
        ),
        CheckRule(
            "vv8_evidence_present", "Bewijs aanwezig",
            "Elke criterium moet onderbouwd zijn met bewijs",
            CheckCategory.TOETSINGSKADER_RULE, Severity.HIGH, _vv8_evidence_present,
        ),
    ]


def toetsingskader_rules(version: str) -> list[CheckRule]:
    return [
        CheckRule(
            "toets_data_quality", "Data kwaliteit",
            "Basiscontrole op data kwaliteit en consistentie",
            CheckCategory.CONSISTENCY, Severity.LOW, _data_quality,
        ),
    ]


_RULE_TABLES: dict[str, Callable[[str], list[CheckRule]]] = {
    FrameworkType.MEERZORG.value: meerzorg_rules,
    FrameworkType.VV8.value: vv8_rules,
    FrameworkType.TOETSINGSKADER.value: toetsingskader_rules,
}


def default_rules(framework_type: str, version: str) -> list[CheckRule]:
    """Rule table for a framework type and version; [] when unknown."""
    factory = _RULE_TABLES.get(framework_type)
    return factory(version) if factory else []


# ─── Execution & Summary ─────────────────────────────────────────

def execute_checks(
    ctx: CheckContext,
    framework_type: str,
    version: str,
    rules: list[CheckRule] | None = None,
) -> list[CheckResult]:
    """Run every rule against ctx. Rule exceptions become failed results."""
    table = rules if rules is not None else default_rules(framework_type, version)
    checked_at = datetime.now(timezone.utc)
    results = []
    for rule in table:
        try:
            passed, message = rule.check(ctx)
            status = CheckStatus.PASS if passed else CheckStatus.FAIL
            check_type, severity = rule.category, rule.severity
        except Exception as e:
            logger.warning(
                f"Rule {rule.id} raised during evaluation: {e}",
                extra={"client_id": ctx.dossier.client.client_id},
            )
            status = CheckStatus.FAIL
            message = f"Check execution error: {e}"
            check_type, severity = CheckCategory.CONSISTENCY, Severity.MEDIUM
        results.append(CheckResult(
            application_id=ctx.application_id,
            client_id=ctx.dossier.client.client_id,
            check_type=check_type.value,
            rule_id=rule.id,
            status=status.value,
            message=message,
            severity=severity.value,
            checked_at=checked_at,
            name=rule.name,
            description=rule.description,
        ))
    return results


def summarize_checks(results: list[CheckResult]) -> dict:
    """Totals, per-severity pass/fail counts and failed critical checks."""
    by_severity = {
        sev.value: {
            "passed": sum(
                1 for r in results
                if r.severity == sev.value and r.status == CheckStatus.PASS.value
            ),
            "failed": sum(
                1 for r in results
                if r.severity == sev.value and r.status == CheckStatus.FAIL.value
            ),
        }
        for sev in Severity
    }
    critical = [
        r for r in results
        if r.severity == Severity.CRITICAL.value and r.status == CheckStatus.FAIL.value
    ]
    return {
        "total": len(results),
        "passed": sum(1 for r in results if r.status == CheckStatus.PASS.value),
        "failed": sum(1 for r in results if r.status == CheckStatus.FAIL.value),
        "warnings": sum(1 for r in results if r.status == CheckStatus.WARNING.value),
        "by_severity": by_severity,
        "critical_issues": [
            {"rule_id": r.rule_id, "name": r.name, "message": r.message}
            for r in critical
        ],
    }


def recommend(summary: dict) -> dict:
    """Submission readiness: blocked > needs_revision (high, then any) > ready."""
    critical = len(summary["critical_issues"])
    if critical > 0:
        return {
            "status": Recommendation.BLOCKED.value,
            "message": (
                f"{critical} kritieke issue(s) moeten worden opgelost voordat "
                f"de aanvraag kan worden ingediend."
            ),
        }
    high_failed = summary["by_severity"][Severity.HIGH.value]["failed"]
    if high_failed > 0:
        return {
            "status": Recommendation.NEEDS_REVISION.value,
            "message": (
                f"{high_failed} belangrijke issue(s) vereisen aandacht. Aanvraag kan "
                f"worden ingediend maar heeft mogelijk minder kans op goedkeuring."
            ),
        }
    if summary["failed"] > 0:
        return {
            "status": Recommendation.NEEDS_REVISION.value,
            "message": (
                f"{summary['failed']} issue(s) gevonden. Controleer de details en "
                f"overweeg aanvullingen voordat u de aanvraag indient."
            ),
        }
    return {
        "status": Recommendation.READY.value,
        "message": "Alle checks succesvol. De aanvraag is gereed voor indienen.",
    }
