"""Herindicatie DOCX Report — renders evaluated criteria as a Word advice document.

Invariants:
    - Five numbered sections in fixed order, then an optional source appendix
    - anonymize=True replaces the client id everywhere and omits row numbers
    - Output is a complete .docx file (zip container, starts with b"PK")

Design Decisions:
    - Text of findings and advice comes from core/report_composer so the document
      and the composed report never disagree on the conclusion
    - Rendering only; the route decides filename and audit logging
"""

import io
from datetime import date, datetime, timezone

from docx import Document as DocxDocument
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Inches, Pt, RGBColor

from zorgdossier.core.criteria import criterion_label, find_criterion, status_label
from zorgdossier.core.report_composer import advice, analysis_findings, summary_findings

ANONYMIZED_CLIENT = "[GEANONIMISEERD]"
MAX_EVIDENCE_INLINE = 3
SNIPPET_LIMIT = 200
_GREY = RGBColor(0x7F, 0x8C, 0x8D)


def _label_value(doc, label: str, value: str) -> None:
    p = doc.add_paragraph()
    p.add_run(label).bold = True
    p.add_run(value)


def _italic(doc, text: str, size: int | None = None, center: bool = False):
    p = doc.add_paragraph()
    run = p.add_run(text)
    run.italic = True
    if size:
        run.font.size = Pt(size)
    if center:
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER
    return p


def _format_period_date(value: str) -> str:
    try:
        return date.fromisoformat(value[:10]).strftime("%d-%m-%Y")
    except ValueError:
        return value


def _truncate(text: str, limit: int = SNIPPET_LIMIT) -> str:
    return text[:limit] + ("..." if len(text) > limit else "")


def _source_ref(evidence: dict, anonymize: bool) -> str:
    source = evidence.get("source") or "dossier"
    if anonymize or evidence.get("row") is None:
        return source
    return f"{source} rij {evidence['row']}"


# ─── Sections ────────────────────────────────────────────────────

def _general_section(doc, client_label: str, period: dict, criteria: list[dict]) -> None:
    doc.add_heading("1. Algemene Gegevens", level=1)
    _label_value(doc, "Cliënt ID: ", client_label)
    _label_value(
        doc, "Evaluatieperiode: ",
        f"{_format_period_date(period.get('from', ''))} t/m "
        f"{_format_period_date(period.get('to', ''))}",
    )
    _label_value(doc, "Criteria set: ", "VV8 Herindicatie 2026")
    _label_value(doc, "Aantal geëvalueerde criteria: ", str(len(criteria)))


def _summary_section(doc, criteria: list[dict]) -> None:
    doc.add_heading("2. Samenvatting en Beeldvorming", level=1)
    doc.add_paragraph().add_run(
        "Inzicht in de huidige situatie en zorgbehoefte van de cliënt",
    ).bold = True
    doc.add_paragraph().add_run("Belangrijkste bevindingen:").bold = True
    for bullet in summary_findings(criteria):
        doc.add_paragraph(bullet, style="List Bullet")

    findings = analysis_findings(criteria)
    if findings["insufficient_count"]:
        p = doc.add_paragraph()
        p.add_run("Opmerking: ").bold = True
        p.add_run(
            f"Voor {findings['insufficient_count']} criteria is onvoldoende recent "
            f"bewijsmateriaal beschikbaar om een betrouwbare evaluatie te maken. "
            f"Aanvullende observaties of metingen worden aanbevolen."
        )


def _criteria_section(doc, criteria: list[dict], anonymize: bool) -> None:
    doc.add_heading("3. Criteria-evaluatie per Domein", level=1)
    _italic(
        doc,
        "Hieronder volgt een gedetailleerde evaluatie van elk VV8 criterium, met "
        "onderbouwing vanuit het beschikbare bewijsmateriaal.",
    )
    for index, criterion in enumerate(criteria, 1):
        doc.add_heading(f"3.{index} {criterion_label(criterion['id'])}", level=2)
        definition = find_criterion(criterion["id"])
        if definition:
            _italic(doc, definition.description)
        _label_value(doc, "Beoordeling: ", status_label(criterion["status"]))
        _label_value(
            doc, "Betrouwbaarheid: ",
            f"{round(float(criterion.get('confidence', 0.0)) * 100)}%",
        )
        doc.add_paragraph().add_run("Toelichting:").bold = True
        doc.add_paragraph(criterion.get("argument") or "")

        evidence = criterion.get("evidence", [])
        if evidence:
            doc.add_paragraph().add_run("Ondersteunend bewijs:").bold = True
            for eidx, item in enumerate(evidence[:MAX_EVIDENCE_INLINE], 1):
                p = doc.add_paragraph()
                p.add_run(f"[{index}.{eidx}] ").bold = True
                p.add_run(f"\"{_truncate(item.get('snippet') or '')}\"")
                src = doc.add_paragraph(f"Bron: {_source_ref(item, anonymize)}")
                src.paragraph_format.left_indent = Inches(0.4)
                src.runs[0].font.color.rgb = _GREY
            if len(evidence) > MAX_EVIDENCE_INLINE:
                _italic(
                    doc,
                    f"(+{len(evidence) - MAX_EVIDENCE_INLINE} aanvullende bronnen, zie bijlage)",
                )

        if criterion.get("uncertainty"):
            p = doc.add_paragraph()
            p.add_run("Let op: ").bold = True
            p.add_run(criterion["uncertainty"])


def _analysis_section(doc, criteria: list[dict]) -> None:
    doc.add_heading("4. Analyse en Bevindingen", level=1)
    findings = analysis_findings(criteria)
    doc.add_paragraph().add_run("Algemene analyse:").bold = True
    doc.add_paragraph(
        f"De evaluatie toont dat {findings['changed_count']} van de {len(criteria)} "
        f"criteria een verandering laten zien die mogelijk indicatie voor herindicatie "
        f"rechtvaardigt. {findings['stable_count']} criteria zijn stabiel en voor "
        f"{findings['insufficient_count']} criteria is onvoldoende bewijs. De gemiddelde "
        f"betrouwbaarheid is {round(findings['average_confidence'] * 100)}%."
    )
    if findings["changed_domains"]:
        doc.add_paragraph().add_run("Geïdentificeerde patronen:").bold = True
        for domain in findings["changed_domains"]:
            doc.add_paragraph(
                f"{domain}: verhoogde zorgbehoefte vastgesteld", style="List Bullet",
            )


def _advice_section(doc, criteria: list[dict]) -> None:
    doc.add_heading("5. Advies en Aanbevelingen", level=1)
    result = advice(criteria)
    doc.add_paragraph().add_run("Primair advies:").bold = True
    doc.add_paragraph(result["primary"])
    doc.add_paragraph().add_run("Specifieke aanbevelingen:").bold = True
    for recommendation in result["recommendations"]:
        doc.add_paragraph(recommendation, style="List Number")
    _label_value(doc, "Termijn: ", result["timeline"])


def _evidence_appendix(doc, criteria: list[dict], anonymize: bool) -> None:
    doc.add_heading("Bijlage: Overzicht Bronverwijzingen", level=1)
    _italic(
        doc,
        "Dit overzicht bevat alle bronnen die zijn gebruikt voor de criteria-evaluatie, "
        "gegroepeerd per criterium.",
    )
    for index, criterion in enumerate(criteria, 1):
        evidence = criterion.get("evidence", [])
        if not evidence:
            continue
        doc.add_heading(f"Bijlage {index}: {criterion_label(criterion['id'])}", level=2)
        for eidx, item in enumerate(evidence, 1):
            p = doc.add_paragraph()
            p.add_run(f"[{index}.{eidx}] ").bold = True
            p.add_run(_source_ref(item, anonymize))
            doc.add_paragraph(_truncate(item.get("snippet") or ""))


# ─── Entry Point ─────────────────────────────────────────────────

def render_herindicatie_docx(
    client_id: str,
    period: dict,
    criteria: list[dict],
    anonymize: bool = False,
    include_evidence_appendix: bool = True,
    generated_at: datetime | None = None,
) -> bytes:
    """Render the herindicatie advice document and return the .docx bytes."""
    generated_at = generated_at or datetime.now(timezone.utc)
    client_label = ANONYMIZED_CLIENT if anonymize else client_id
    doc = DocxDocument()

    for section in doc.sections:
        section.left_margin = Inches(0.9)
        section.right_margin = Inches(0.9)

    title = doc.add_heading(f"Herindicatie-advies VV8 Criteria {generated_at.year}", level=0)
    title.alignment = WD_ALIGN_PARAGRAPH.CENTER
    _italic(
        doc,
        "Dit herindicatie-advies is opgesteld op basis van een systematische evaluatie "
        "van de VV8 criteria voor langdurige zorg. Het advies is gebaseerd op beschikbare "
        "zorgdossiers, observaties en meetinstrumenten over de aangegeven periode.",
    )

    _general_section(doc, client_label, period, criteria)
    _summary_section(doc, criteria)
    _criteria_section(doc, criteria, anonymize)
    _analysis_section(doc, criteria)
    _advice_section(doc, criteria)
    if include_evidence_appendix:
        _evidence_appendix(doc, criteria, anonymize)

    doc.add_paragraph()
    _italic(
        doc, f"Gegenereerd op: {generated_at.strftime('%d-%m-%Y %H:%M')} UTC",
        size=9, center=True,
    )
    _italic(
        doc,
        "Dit rapport is automatisch opgesteld op basis van beschikbare zorggegevens "
        "en vereist beoordeling door een professional.",
        size=9, center=True,
    )

    buf = io.BytesIO()
    doc.save(buf)
    return buf.getvalue()
