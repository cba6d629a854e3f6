"""Report Composer — builds the Dutch herindicatie advice text from criterion results.

Invariants:
    - Pure: criterion results in, section texts and citations out
    - Sections appear in the requested order; unknown section names are ignored
    - A criterion counts as changed when its status is verslechterd or toegenomen_behoefte

Design Decisions:
    - Tone accepted but not yet varied: all tones share the zakelijk register
    - The DOCX renderer reuses summary/analysis/advice helpers so the document
      and the composed sections never disagree on the conclusion
"""

from zorgdossier.core.criteria import criterion_label, status_label
from zorgdossier.core.domain_types import CHANGED_STATUSES, CriterionStatus, ReportSection

DEFAULT_SECTIONS = [s.value for s in ReportSection]


def changed_criteria(criteria: list[dict]) -> list[dict]:
    return [c for c in criteria if c.get("status") in CHANGED_STATUSES]


# ─── Sections ────────────────────────────────────────────────────

def compose_aanleiding(client_id: str) -> str:
    return (
        f"Dit advies betreft de herindicatie voor cliënt {client_id}. Op basis van "
        f"recente ontwikkelingen in de zorgbehoefte is een heroverweging van de "
        f"huidige indicatie geïndiceerd."
    )


def compose_ontwikkelingen(criteria: list[dict], citations: list[dict]) -> str:
    changed = changed_criteria(criteria)
    if not changed:
        return "Er zijn geen significante veranderingen waargenomen in de zorgbehoefte."
    lines = []
    for idx, criterion in enumerate(changed):
        citations.append({"section": "ontwikkelingen", "ref": f"{criterion['id']}_ev{idx}"})
        lines.append(f"- {criterion['id']}: {criterion['argument']}")
    return (
        "In de afgelopen periode zijn de volgende ontwikkelingen waargenomen:\n\n"
        + "\n".join(lines)
    )


def compose_criteria(criteria: list[dict], citations: list[dict]) -> str:
    blocks = []
    for criterion in criteria:
        refs = []
        for eidx, _ in enumerate(criterion.get("evidence", [])):
            ref = f"{criterion['id']}_{eidx}"
            citations.append({"section": "criteria", "ref": ref})
            refs.append(f"[{ref}]")
        blocks.append(
            f"**{criterion['id']}**: {criterion['status']}\n"
            f"{criterion['argument']}\nBronnen: {', '.join(refs)}\n"
        )
    return "# Criteria-evaluatie\n\n" + "\n\n".join(blocks)


def compose_conclusie(criteria: list[dict]) -> str:
    changed = len(changed_criteria(criteria))
    if changed >= 3:
        return (
            "Op basis van de criteria-evaluatie wordt geadviseerd om over te gaan tot "
            "herindicatie naar een zwaarder zorgprofiel. Er zijn "
            f"{changed} criteria waarop een verhoogde zorgbehoefte is vastgesteld."
        )
    if changed > 0:
        return (
            f"Er zijn {changed} criteria waarop veranderingen zijn vastgesteld. "
            "Overweeg aanpassing van de zorg binnen het huidige profiel of herindicatie "
            "indien de zorglast significant is toegenomen."
        )
    return (
        "De huidige zorgbehoefte lijkt stabiel. "
        "Geen directe herindicatie noodzakelijk op dit moment."
    )


def compose_report(
    client_id: str,
    criteria: list[dict],
    sections: list[str] | None = None,
    tone: str = "zakelijk-beknopt",
) -> dict:
    """Returns {"sections": {name: text}, "citations": [{section, ref}]}."""
    requested = sections if sections is not None else DEFAULT_SECTIONS
    citations: list[dict] = []
    composed: dict[str, str] = {}
    for name in requested:
        if name == ReportSection.AANLEIDING.value:
            composed[name] = compose_aanleiding(client_id)
        elif name == ReportSection.ONTWIKKELINGEN.value:
            composed[name] = compose_ontwikkelingen(criteria, citations)
        elif name == ReportSection.CRITERIA.value:
            composed[name] = compose_criteria(criteria, citations)
        elif name == ReportSection.CONCLUSIE.value:
            composed[name] = compose_conclusie(criteria)
    return {"sections": composed, "citations": citations}


# ─── Document Findings & Advice ──────────────────────────────────

def _average_confidence(criteria: list[dict]) -> float:
    if not criteria:
        return 0.0
    return sum(float(c.get("confidence", 0.0)) for c in criteria) / len(criteria)


def summary_findings(criteria: list[dict]) -> list[str]:
    """One bullet per criterion: label, status, source count, mean confidence."""
    bullets = []
    for criterion in criteria:
        evidence = criterion.get("evidence", [])
        bullets.append(
            f"{criterion_label(criterion['id'])}: {status_label(criterion['status'])} "
            f"({len(evidence)} bron(nen), betrouwbaarheid "
            f"{float(criterion.get('confidence', 0.0)) * 100:.0f}%)"
        )
    return bullets


def analysis_findings(criteria: list[dict]) -> dict:
    changed = changed_criteria(criteria)
    insufficient = [
        c for c in criteria
        if c.get("status") == CriterionStatus.ONVOLDOENDE_BEWIJS.value
    ]
    return {
        "changed_count": len(changed),
        "stable_count": len(criteria) - len(changed) - len(insufficient),
        "insufficient_count": len(insufficient),
        "changed_domains": [criterion_label(c["id"]) for c in changed],
        "insufficient_domains": [criterion_label(c["id"]) for c in insufficient],
        "average_confidence": _average_confidence(criteria),
    }


def advice(criteria: list[dict]) -> dict:
    """Primary advice, numbered recommendations and a suggested timeline."""
    findings = analysis_findings(criteria)
    changed = findings["changed_count"]
    if changed >= 3:
        primary = (
            "Herindicatie naar een zwaarder zorgprofiel wordt geadviseerd. Op "
            f"{changed} domeinen is een verhoogde zorgbehoefte vastgesteld."
        )
        timeline = "Dien de herindicatie-aanvraag binnen 4 weken in."
    elif changed > 0:
        primary = (
            "Aanpassing van de zorg binnen het huidige profiel wordt geadviseerd. "
            "Herindicatie is aan de orde wanneer de zorglast verder toeneemt."
        )
        timeline = "Evalueer de situatie opnieuw binnen 3 maanden."
    else:
        primary = (
            "De huidige indicatie volstaat. Er is geen directe aanleiding voor herindicatie."
        )
        timeline = "Evalueer de situatie bij de reguliere zorgplanbespreking."

    recommendations = []
    if findings["changed_domains"]:
        recommendations.append(
            "Stem het zorgplan af op de gewijzigde domeinen: "
            + ", ".join(findings["changed_domains"]) + "."
        )
    if findings["insufficient_domains"]:
        recommendations.append(
            "Vul de documentatie aan voor: "
            + ", ".join(findings["insufficient_domains"]) + "."
        )
    if findings["average_confidence"] < 0.6:
        recommendations.append(
            "Leg observaties vaker en specifieker vast om de betrouwbaarheid te verhogen."
        )
    recommendations.append(
        "Bespreek dit advies in het multidisciplinair overleg en leg de uitkomst vast."
    )
    return {"primary": primary, "recommendations": recommendations, "timeline": timeline}
