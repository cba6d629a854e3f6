"""Tests for evidence linking — keyword relevance, confidence, chains and quality."""

from datetime import date, timedelta

from zorgdossier.core.dossier import (
    ClientRecord, Dossier, IncidentRecord, MeasureRecord, NoteRecord,
)
from zorgdossier.core.evidence_linking import (
    EvidenceLink, build_evidence_chain, extract_keywords, extract_snippet,
    incident_confidence, link_check_to_evidence, link_field_to_evidence,
    match_measure, match_text, measure_confidence, note_confidence,
    validate_evidence_quality,
)

TODAY = date(2026, 3, 1)


def _days(n):
    return TODAY - timedelta(days=n)


def _dossier():
    return Dossier(
        client=ClientRecord("C-1", "Jansen", "1940-01-01", "VV8"),
        notes=[
            NoteRecord(
                "n1", _days(10), "Verpleegkundige", "Observatie",
                "Cliënt is 's nachts onrustig. Nachtelijke toezicht nodig.",
            ),
            NoteRecord("n2", _days(40), "Helpende", "Dagverslag", "Gezellige middag gehad."),
        ],
        measures=[MeasureRecord("m1", _days(15), "Katz ADL", "5", "Hulp bij wassen")],
        incidents=[IncidentRecord("i1", _days(5), "Val", "Hoog", "Val tijdens nacht toezicht")],
    )


# ==============================================================================
# Keywords & matching
# ==============================================================================


def test_extract_keywords_splits_field_name_and_adds_domain_terms():
    keywords = extract_keywords("nachtzorg_uren")
    assert keywords[:2] == ["nachtzorg", "uren"]
    assert "toezicht" in keywords


def test_extract_keywords_drops_stop_words_and_short_words():
    keywords = extract_keywords("opmerking", "de cliënt is erg onrustig")
    assert "de" not in keywords
    assert "is" not in keywords
    assert "onrustig" in keywords


def test_numeric_value_keyword_drops_trailing_zero():
    assert "12" in extract_keywords("score", 12.0)


def test_match_text_reports_fraction_and_reason():
    score, reason = match_text("Val in de nacht", ["val", "nacht", "wassen", "eten"])
    assert score == 0.5
    assert reason == "Matched keywords: val, nacht"


def test_match_text_without_keywords_scores_zero():
    assert match_text("iets", []) == (0.0, None)


def test_match_measure_precedence():
    katz = MeasureRecord("m1", TODAY, "Katz ADL", "5")
    assert match_measure(katz, "katz adl", None)[0] == 1.0
    assert match_measure(katz, "adl_score", None)[0] == 0.9
    assert match_measure(katz, "totaal", 5.0) == (0.8, "Score match: 5")
    assert match_measure(katz, "totaal", 6) == (0.0, None)


def test_snippet_windows_around_first_hit():
    text = "x" * 100 + " agressie " + "y" * 300
    snippet = extract_snippet(text, ["agressie"])
    assert snippet.startswith("...")
    assert snippet.endswith("...")
    assert "agressie" in snippet


def test_snippet_falls_back_to_text_head():
    assert extract_snippet("korte tekst", ["nacht"]) == "korte tekst"


# ==============================================================================
# Confidence
# ==============================================================================


def test_recent_professional_clinical_note_is_clamped_to_one():
    note = NoteRecord("n", _days(5), "Arts", "Medisch", "tekst")
    assert note_confidence(note, TODAY) == 1.0


def test_old_note_loses_confidence():
    note = NoteRecord("n", _days(400), "Helpende", "Dagverslag", "tekst")
    assert note_confidence(note, TODAY) == 0.8 - 0.2


def test_measure_confidence_penalises_age():
    measure = MeasureRecord("m", _days(200), "Gewicht", "70")
    assert measure_confidence(measure, TODAY) == 0.9 - 0.1


def test_severe_incident_gains_confidence():
    incident = IncidentRecord("i", _days(100), "Val", "Ernstig", "Val")
    assert round(incident_confidence(incident, TODAY), 2) == 0.9


# ==============================================================================
# Linking
# ==============================================================================


def test_link_field_finds_notes_measures_and_incidents():
    links = link_field_to_evidence(_dossier(), "nachtzorg_uren", 4, today=TODAY)
    sources = {(link.source_type, link.source_id) for link in links}
    assert ("note", "n1") in sources
    assert ("note", "n2") not in sources
    assert all(link.relevance > 0.3 for link in links)


def test_links_sorted_by_quality():
    links = link_field_to_evidence(_dossier(), "adl_score", today=TODAY)
    qualities = [link.quality for link in links]
    assert qualities == sorted(qualities, reverse=True)
    assert links[0].source_type == "measure"


def test_no_links_for_unrelated_field():
    assert link_field_to_evidence(_dossier(), "huisdier", "kat", today=TODAY) == []


def test_link_check_uses_rule_and_message_keywords():
    links = link_check_to_evidence(
        "meerzorg_night_care_justification", "Nachtzorg aangevraagd toezicht nacht",
        _dossier(), today=TODAY,
    )
    assert isinstance(links, list)
    for link in links:
        assert isinstance(link, EvidenceLink)


# ==============================================================================
# Evidence chains
# ==============================================================================


def test_chain_without_evidence_reports_gap():
    chain = build_evidence_chain("meerzorg.x", "x = 1", [], _dossier(), today=TODAY)
    assert chain["overall_confidence"] == 0.0
    assert chain["gaps"] == ["Geen ondersteunend bewijs gevonden"]


def test_chain_drops_links_to_missing_records_but_keeps_level():
    links = [
        EvidenceLink("note", "gone", "...", 0.9, 0.9),
        EvidenceLink("note", "n1", "snippet", 0.5, 0.8),
    ]
    chain = build_evidence_chain("meerzorg.nacht", "claim", links, _dossier(), today=TODAY)
    assert len(chain["evidence"]) == 1
    assert chain["evidence"][0]["level"] == 2
    assert chain["overall_confidence"] == 0.5 * 0.8
    assert "Slechts één bron van bewijs gevonden" in chain["gaps"]


def test_clinical_claim_without_professional_source_is_flagged():
    dossier = Dossier(
        client=ClientRecord("C-1"),
        notes=[NoteRecord("n1", _days(3), "Helpende", "Dag", "BPSD gedrag")],
    )
    links = [EvidenceLink("note", "n1", "BPSD", 0.8, 0.9)]
    chain = build_evidence_chain("bpsd", "claim", links, dossier, today=TODAY)
    assert "Geen professionele beoordeling gevonden voor klinische claim" in chain["gaps"]


def test_old_evidence_is_flagged():
    dossier = Dossier(
        client=ClientRecord("C-1"),
        measures=[MeasureRecord("m1", _days(200), "Katz ADL", "4")],
    )
    links = [EvidenceLink("measure", "m1", "", 0.9, 0.9), EvidenceLink("measure", "m1", "", 0.9, 0.9)]
    chain = build_evidence_chain("adl", "claim", links, dossier, today=TODAY)
    assert "Recentste bewijs is ouder dan 6 maanden" in chain["gaps"]


# ==============================================================================
# Quality
# ==============================================================================


def test_quality_without_links():
    quality = validate_evidence_quality([])
    assert quality["sufficient"] is False
    assert quality["score"] == 0.0
    assert quality["issues"] == ["Geen bewijs gevonden"]


def test_quality_sufficient_for_strong_link():
    quality = validate_evidence_quality([EvidenceLink("measure", "m1", "", 0.9, 1.0)])
    assert quality["sufficient"] is True
    assert quality["issues"] == []
    assert len(quality["recommendations"]) == 1


def test_quality_reports_low_confidence_and_relevance():
    quality = validate_evidence_quality([EvidenceLink("note", "n1", "", 0.4, 0.5)])
    assert quality["sufficient"] is False
    assert quality["issues"] == [
        "Betrouwbaarheid van beste bewijs is te laag (50%)",
        "Relevantie van beste bewijs is te laag (40%)",
    ]
