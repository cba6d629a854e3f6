"""Tests for the normative check engine — pure rule evaluation, no IO."""

from datetime import date, timedelta

from zorgdossier.core.check_engine import (
    CheckCategory, CheckContext, CheckRule, Severity,
    default_rules, execute_checks, recommend, summarize_checks,
)
from zorgdossier.core.dossier import (
    ClientRecord, Dossier, IncidentRecord, MeasureRecord, NoteRecord,
)

TODAY = date(2026, 3, 1)


def _client(**overrides):
    data = {"client_id": "C-1", "name": "Jansen", "dob": "1940-01-01", "wlz_profile": "VV8"}
    data.update(overrides)
    return ClientRecord(**data)


def _note(text, days_ago=10, section="Observatie", author="Verpleegkundige", id="n1"):
    return NoteRecord(id, TODAY - timedelta(days=days_ago), author, section, text)


def _katz(score="5", days_ago=20, id="m1"):
    return MeasureRecord(id, TODAY - timedelta(days=days_ago), "Katz ADL", score)


def _incident(severity="Laag", days_ago=5, id="i1"):
    return IncidentRecord(id, TODAY - timedelta(days=days_ago), "Val", severity, "Gevallen")


def _complete_dossier():
    return Dossier(
        client=_client(),
        notes=[_note("Doel: zelfstandig eten. Zorgbehoefte is structureel.", section="Zorgplan")],
        measures=[_katz()],
    )


def _by_rule(results):
    return {r.rule_id: r for r in results}


# ==============================================================================
# Rule tables
# ==============================================================================


def test_meerzorg_2026_has_sustainability_rule():
    ids_2026 = [r.id for r in default_rules("meerzorg", "2026")]
    ids_2025 = [r.id for r in default_rules("meerzorg", "2025")]
    assert len(ids_2025) == 9
    assert ids_2026 == ids_2025 + ["meerzorg_2026_sustainability"]


def test_unknown_framework_yields_no_results():
    ctx = CheckContext(_complete_dossier(), today=TODAY)
    assert execute_checks(ctx, "unknown", "2026") == []


def test_complete_application_passes_every_rule():
    ctx = CheckContext(
        _complete_dossier(), form_data={"dagzorg_uren": "6"},
        application_id="app-1", today=TODAY,
    )
    results = execute_checks(ctx, "meerzorg", "2026")
    assert len(results) == 10
    assert all(r.status == "pass" for r in results), [
        (r.rule_id, r.message) for r in results if r.status != "pass"
    ]
    assert {r.application_id for r in results} == {"app-1"}
    assert {r.client_id for r in results} == {"C-1"}


def test_results_follow_rule_table_order():
    ctx = CheckContext(_complete_dossier(), today=TODAY)
    results = execute_checks(ctx, "meerzorg", "2025")
    assert [r.rule_id for r in results] == [r.id for r in default_rules("meerzorg", "2025")]


# ==============================================================================
# Individual meerzorg rules
# ==============================================================================


def test_missing_client_data_fails_critical_rule():
    dossier = Dossier(client=_client(name="", dob="", wlz_profile=""))
    results = _by_rule(execute_checks(CheckContext(dossier, today=TODAY), "meerzorg", "2026"))
    check = results["meerzorg_client_info_complete"]
    assert check.status == "fail"
    assert check.severity == "critical"
    assert check.message == "Ontbrekende gegevens: naam, geboortedatum, WLZ profiel"


def test_care_hours_rule_requires_day_or_night_hours():
    ctx = CheckContext(_complete_dossier(), form_data={}, today=TODAY)
    check = _by_rule(execute_checks(ctx, "meerzorg", "2026"))["meerzorg_care_hours_documented"]
    assert check.status == "fail"
    assert check.message == "Geen dag- of nachtzorguren vastgelegd"


def test_adl_rule_accepts_form_score_without_measure():
    dossier = Dossier(client=_client())
    ctx = CheckContext(dossier, form_data={"adl_score": "4"}, today=TODAY)
    check = _by_rule(execute_checks(ctx, "meerzorg", "2026"))["meerzorg_adl_assessment"]
    assert check.status == "pass"


def test_reported_behaviour_needs_documentation_in_notes():
    dossier = Dossier(client=_client(), notes=[_note("Rustige dag gehad.")])
    ctx = CheckContext(dossier, form_data={"gedragsproblematiek": "ja"}, today=TODAY)
    check = _by_rule(execute_checks(ctx, "meerzorg", "2026"))["meerzorg_bpsd_documented"]
    assert check.status == "fail"

    dossier = Dossier(client=_client(), notes=[_note("Agressie tijdens de zorg.")])
    ctx = CheckContext(dossier, form_data={"gedragsproblematiek": "ja"}, today=TODAY)
    check = _by_rule(execute_checks(ctx, "meerzorg", "2026"))["meerzorg_bpsd_documented"]
    assert check.status == "pass"


def test_night_care_hours_need_a_night_note():
    dossier = Dossier(client=_client(), notes=[_note("Overdag actief.")])
    ctx = CheckContext(dossier, form_data={"nachtzorg_uren": "4"}, today=TODAY)
    check = _by_rule(execute_checks(ctx, "meerzorg", "2026"))["meerzorg_night_care_justification"]
    assert check.status == "fail"
    assert check.severity == "high"


def test_incident_threshold_counts_totals_and_severe():
    incidents = [_incident(id=f"i{n}") for n in range(10)]
    dossier = Dossier(client=_client(), incidents=incidents)
    check = _by_rule(execute_checks(
        CheckContext(dossier, today=TODAY), "meerzorg", "2026",
    ))["meerzorg_incident_threshold"]
    assert check.status == "fail"
    assert check.message == (
        "Hoog aantal incidenten (10 totaal, 0 ernstig) vereist extra onderbouwing"
    )

    ctx = CheckContext(dossier, form_data={"incident_onderbouwing": "zie rapport"}, today=TODAY)
    check = _by_rule(execute_checks(ctx, "meerzorg", "2026"))["meerzorg_incident_threshold"]
    assert check.status == "pass"


def test_three_severe_incidents_trigger_threshold():
    incidents = [_incident("Ernstig", id=f"i{n}") for n in range(3)]
    dossier = Dossier(client=_client(), incidents=incidents)
    check = _by_rule(execute_checks(
        CheckContext(dossier, today=TODAY), "meerzorg", "2026",
    ))["meerzorg_incident_threshold"]
    assert check.status == "fail"


def test_one_on_one_hours_require_specialist_note():
    dossier = Dossier(client=_client(), notes=[_note("Begeleiding nodig.")])
    ctx = CheckContext(dossier, form_data={"een_op_een_uren": "2"}, today=TODAY)
    check = _by_rule(execute_checks(ctx, "meerzorg", "2026"))["meerzorg_specialist_report"]
    assert check.status == "fail"

    dossier = Dossier(client=_client(), notes=[_note("Consult geriater: onrust.")])
    ctx = CheckContext(dossier, form_data={"een_op_een_uren": "2"}, today=TODAY)
    check = _by_rule(execute_checks(ctx, "meerzorg", "2026"))["meerzorg_specialist_report"]
    assert check.status == "pass"


def test_explicit_null_hours_count_as_documented():
    ctx = CheckContext(_complete_dossier(), form_data={"dagzorg_uren": None}, today=TODAY)
    check = _by_rule(execute_checks(ctx, "meerzorg", "2026"))["meerzorg_care_hours_documented"]
    assert check.status == "pass"


def test_hours_with_unit_text_use_leading_number():
    dossier = Dossier(client=_client(), notes=[_note("Begeleiding nodig.")])
    ctx = CheckContext(dossier, form_data={"nachtzorg_uren": "9 uur"}, today=TODAY)
    check = _by_rule(execute_checks(ctx, "meerzorg", "2026"))["meerzorg_specialist_report"]
    assert check.status == "fail"

    ctx = CheckContext(dossier, form_data={"nachtzorg_uren": "8 uur"}, today=TODAY)
    check = _by_rule(execute_checks(ctx, "meerzorg", "2026"))["meerzorg_specialist_report"]
    assert check.status == "pass"


def test_non_numeric_night_hours_still_need_a_night_note():
    dossier = Dossier(client=_client(), notes=[_note("Overdag actief.")])
    ctx = CheckContext(dossier, form_data={"nachtzorg_uren": "abc"}, today=TODAY)
    check = _by_rule(execute_checks(ctx, "meerzorg", "2026"))["meerzorg_night_care_justification"]
    assert check.status == "fail"

    ctx = CheckContext(dossier, form_data={"nachtzorg_uren": ""}, today=TODAY)
    check = _by_rule(execute_checks(ctx, "meerzorg", "2026"))["meerzorg_night_care_justification"]
    assert check.status == "pass"


def test_recent_assessment_window_is_three_months():
    old = Dossier(client=_client(), measures=[_katz(days_ago=120)])
    check = _by_rule(execute_checks(
        CheckContext(old, today=TODAY), "meerzorg", "2026",
    ))["meerzorg_recent_assessment"]
    assert check.status == "fail"
    assert check.message == "Geen metingen van de laatste 3 maanden"

    none = Dossier(client=_client())
    check = _by_rule(execute_checks(
        CheckContext(none, today=TODAY), "meerzorg", "2026",
    ))["meerzorg_recent_assessment"]
    assert check.message == "Geen metingen beschikbaar"


def test_rule_exception_becomes_failed_consistency_result():
    def boom(ctx):
        raise RuntimeError("boom")

    rule = CheckRule("custom", "Custom", "", CheckCategory.REQUIRED_FIELD, Severity.CRITICAL, boom)
    results = execute_checks(
        CheckContext(_complete_dossier(), today=TODAY), "meerzorg", "2026", rules=[rule],
    )
    assert len(results) == 1
    assert results[0].status == "fail"
    assert results[0].check_type == "consistency"
    assert results[0].severity == "medium"
    assert results[0].message == "Check execution error: boom"


# ==============================================================================
# VV8 / toetsingskader
# ==============================================================================


def test_vv8_lists_missing_criteria():
    ctx = CheckContext(_complete_dossier(), form_data={"ADL": "ja"}, today=TODAY)
    check = _by_rule(execute_checks(ctx, "vv8", "2026"))["vv8_criteria_complete"]
    assert check.status == "fail"
    assert check.message.startswith("Ontbrekende criteria: NACHT_TOEZICHT, GEDRAG")


def test_data_quality_fails_when_every_note_is_old():
    dossier = Dossier(client=_client(), notes=[_note("Oud", days_ago=400)])
    check = _by_rule(execute_checks(
        CheckContext(dossier, today=TODAY), "toetsingskader", "2026",
    ))["toets_data_quality"]
    assert check.status == "fail"
    assert "ouder dan 1 jaar" in check.message


# ==============================================================================
# Summary & recommendation
# ==============================================================================


def test_summary_and_blocked_recommendation():
    dossier = Dossier(client=_client(name=""))
    results = execute_checks(CheckContext(dossier, today=TODAY), "meerzorg", "2026")
    summary = summarize_checks(results)
    assert summary["total"] == 10
    assert summary["passed"] + summary["failed"] == 10
    assert summary["by_severity"]["critical"]["failed"] == 1
    assert summary["critical_issues"][0]["rule_id"] == "meerzorg_client_info_complete"
    assert recommend(summary)["status"] == "blocked"


def test_recommendation_needs_revision_on_high_failures():
    ctx = CheckContext(_complete_dossier(), form_data={}, today=TODAY)
    summary = summarize_checks(execute_checks(ctx, "meerzorg", "2026"))
    rec = recommend(summary)
    assert rec["status"] == "needs_revision"
    assert rec["message"].startswith("1 belangrijke issue(s)")


def test_recommendation_ready_when_everything_passes():
    ctx = CheckContext(_complete_dossier(), form_data={"dagzorg_uren": "6"}, today=TODAY)
    summary = summarize_checks(execute_checks(ctx, "meerzorg", "2026"))
    assert recommend(summary)["status"] == "ready"


def test_check_result_to_dict_uses_category_key():
    ctx = CheckContext(_complete_dossier(), today=TODAY)
    data = execute_checks(ctx, "meerzorg", "2026")[0].to_dict()
    assert data["rule_id"] == "meerzorg_client_info_complete"
    assert data["category"] == "required_field"
    assert "checked_at" in data
