"""
Tests for the Clinical Entity Extractor

Tests cover:
- One rule per vital kind (triggers, number widths, formatting)
- Temperature unit inference
- Medication phrasing (drug-first and dose-first), weight and time basis
- Totality: unmatched or empty input yields empty results
"""

from datetime import datetime

import pytest

from fieldmedic.extraction import (
    ExtractionResult,
    Route,
    VitalKind,
    extract,
    extract_medication,
    extract_vitals,
)
from fieldmedic.session.call_log import CallLog


def _vitals(text: str, at: datetime) -> dict[VitalKind, str]:
    return {v.kind: v.value for v in extract_vitals(text, at)}


# ============================================
# Vital Sign Tests
# ============================================


class TestBloodPressure:
    """Tests for the BP rule."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "text",
        [
            "BP 128/82",
            "bp 128/82 and stable",
            "patient is alert, BP 128/82, skin warm",
            "blood pressure 128 / 82",
        ],
    )
    def test_slash_form(self, text, captured_at):
        assert _vitals(text, captured_at)[VitalKind.BP] == "128/82"

    @pytest.mark.unit
    def test_over_form(self, captured_at):
        assert _vitals("blood pressure 90 over 60", captured_at)[VitalKind.BP] == "90/60"

    @pytest.mark.unit
    def test_numbers_may_precede_trigger(self, captured_at):
        """The BP value may appear anywhere once the trigger is present."""
        assert _vitals("140/90 was the BP", captured_at)[VitalKind.BP] == "140/90"

    @pytest.mark.unit
    def test_requires_trigger(self, captured_at):
        assert VitalKind.BP not in _vitals("ratio 128/82", captured_at)


class TestSimpleVitals:
    """Tests for trigger-then-number rules."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "text,kind,value",
        [
            ("HR 96", VitalKind.HR, "96"),
            ("heart rate is 112", VitalKind.HR, "112"),
            ("pulse of 48", VitalKind.HR, "48"),
            ("RR 18", VitalKind.RR, "18"),
            ("respiratory rate 22", VitalKind.RR, "22"),
            ("resps 8", VitalKind.RR, "8"),
            ("SpO2 94", VitalKind.SPO2, "94%"),
            ("sats 88 on room air", VitalKind.SPO2, "88%"),
            ("oxygen saturation 100", VitalKind.SPO2, "100%"),
            ("GCS 14", VitalKind.GCS, "14"),
            ("gcs is 3", VitalKind.GCS, "3"),
            ("EtCO2 35", VitalKind.ETCO2, "35"),
            ("end tidal 42", VitalKind.ETCO2, "42"),
            ("glucose 65", VitalKind.GLUCOSE, "65"),
            ("CBG 212", VitalKind.GLUCOSE, "212"),
            ("dextro 400", VitalKind.GLUCOSE, "400"),
        ],
    )
    def test_value_extracted(self, text, kind, value, captured_at):
        assert _vitals(text, captured_at)[kind] == value

    @pytest.mark.unit
    def test_uses_number_after_trigger_not_first_in_sentence(self, captured_at):
        """Numeric extraction starts at the trigger, not the sentence start."""
        assert _vitals("at 0915 pulse 72", captured_at)[VitalKind.HR] == "72"

    @pytest.mark.unit
    def test_triggers_are_case_insensitive(self, captured_at):
        vitals = _vitals("Heart Rate 80, SPO2 97", captured_at)
        assert vitals[VitalKind.HR] == "80"
        assert vitals[VitalKind.SPO2] == "97%"

    @pytest.mark.unit
    def test_trigger_must_be_whole_word(self, captured_at):
        """'hr' inside a word does not trigger the HR rule."""
        assert VitalKind.HR not in _vitals("three patients 12", captured_at)

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "text", ["start nitroglycerin 10 mcg/hr, bp 110/70", "drip at 5 mg per hr, bp 110/70"]
    )
    def test_rate_unit_is_not_a_heart_rate(self, text, captured_at):
        vitals = _vitals(text, captured_at)
        assert VitalKind.HR not in vitals
        assert vitals[VitalKind.BP] == "110/70"


class TestTemperature:
    """Tests for the Temp rule and unit inference."""

    @pytest.mark.unit
    def test_above_45_infers_fahrenheit(self, captured_at):
        assert _vitals("temp 98.6", captured_at)[VitalKind.TEMP] == "98.6 F"

    @pytest.mark.unit
    def test_at_or_below_45_infers_celsius(self, captured_at):
        assert _vitals("temperature 37.2", captured_at)[VitalKind.TEMP] == "37.2 C"
        assert _vitals("temp 45", captured_at)[VitalKind.TEMP] == "45 C"

    @pytest.mark.unit
    def test_explicit_unit_wins(self, captured_at):
        assert _vitals("temp 39 f", captured_at)[VitalKind.TEMP] == "39 F"
        assert _vitals("temp 101.2C", captured_at)[VitalKind.TEMP] == "101.2 C"

    @pytest.mark.unit
    def test_following_word_is_not_a_unit(self, captured_at):
        """The 'f' of a following word is not read as Fahrenheit."""
        assert _vitals("temp 38.1 for an hour", captured_at)[VitalKind.TEMP] == "38.1 C"


class TestMultipleVitals:
    """Tests for independent rules firing together."""

    @pytest.mark.unit
    def test_several_kinds_in_one_utterance(self, captured_at):
        vitals = extract_vitals("BP 120/80, HR 92, RR 16, sats 98", captured_at)
        assert [v.kind for v in vitals] == [
            VitalKind.BP,
            VitalKind.HR,
            VitalKind.RR,
            VitalKind.SPO2,
        ]

    @pytest.mark.unit
    def test_at_most_one_record_per_kind(self, captured_at):
        vitals = extract_vitals("HR 90 then HR 110", captured_at)
        assert [(v.kind, v.value) for v in vitals] == [(VitalKind.HR, "90")]

    @pytest.mark.unit
    def test_records_carry_utterance_timestamp(self, captured_at):
        for vital in extract_vitals("BP 110/70 pulse 60 gcs 15", captured_at):
            assert vital.captured_at == captured_at


# ============================================
# Medication Tests
# ============================================


class TestMedication:
    """Tests for the medication rule."""

    @pytest.mark.unit
    def test_dose_before_drug_with_route(self, captured_at):
        med = extract_medication("give 4 mg ondansetron IV", captured_at)
        assert med is not None
        assert med.drug == "ondansetron"
        assert med.dose == "4 mg"
        assert med.route == Route.IV
        assert med.rate is None

    @pytest.mark.unit
    def test_weight_and_time_basis(self, captured_at):
        med = extract_medication("start epinephrine 0.1 mcg/kg/min", captured_at)
        assert med is not None
        assert med.drug == "epinephrine"
        assert med.dose == "0.1 mcg/kg"
        assert med.rate == "0.1 mcg/kg/min"

    @pytest.mark.unit
    def test_drug_before_dose_with_route(self, captured_at):
        med = extract_medication("Give aspirin 324 mg po", captured_at)
        assert med is not None
        assert med.drug == "aspirin"
        assert med.dose == "324 mg"
        assert med.route == Route.PO

    @pytest.mark.unit
    def test_per_kg_spoken_form(self, captured_at):
        med = extract_medication("bolus of normal saline 20 ml per kg", captured_at)
        assert med is not None
        assert med.drug == "normal saline"
        assert med.dose == "20 ml/kg"
        assert med.rate is None

    @pytest.mark.unit
    def test_hourly_rate_without_weight(self, captured_at):
        med = extract_medication("started nitroglycerin 10 mcg/hr", captured_at)
        assert med is not None
        assert med.dose == "10 mcg"
        assert med.rate == "10 mcg/hr"

    @pytest.mark.unit
    def test_route_before_drug(self, captured_at):
        med = extract_medication("push 1 mg IV epinephrine", captured_at)
        assert med is not None
        assert med.drug == "epinephrine"
        assert med.route == Route.IV

    @pytest.mark.unit
    def test_multiword_route(self, captured_at):
        med = extract_medication("administer albuterol 2.5 mg nebulized", captured_at)
        assert med is not None
        assert med.dose == "2.5 mg"
        assert med.route == Route.NEBULIZED

    @pytest.mark.unit
    def test_first_match_wins(self, captured_at):
        """Only one medication is extracted per utterance."""
        med = extract_medication(
            "give aspirin 324 mg po then give 0.4 mg nitroglycerin", captured_at
        )
        assert med is not None
        assert med.drug == "aspirin"

    @pytest.mark.unit
    def test_no_verb_no_medication(self, captured_at):
        assert extract_medication("ondansetron 4 mg IV", captured_at) is None

    @pytest.mark.unit
    def test_no_dose_no_medication(self, captured_at):
        assert extract_medication("give oxygen via non-rebreather", captured_at) is None

    @pytest.mark.unit
    def test_carries_utterance_timestamp(self, captured_at):
        med = extract_medication("give 25 g dextrose IV", captured_at)
        assert med is not None
        assert med.captured_at == captured_at

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "text",
        [
            "give 4 mg ondansetron for nausea",
            "give 4 mg ondansetron and 1 mg morphine",
            "give 4 mg ondansetron then reassess",
            "give 4 mg ondansetron via the IV line",
        ],
    )
    def test_dose_first_drug_stops_before_trailing_words(self, text, captured_at):
        med = extract_medication(text, captured_at)
        assert med is not None
        assert med.drug == "ondansetron"
        assert med.dose == "4 mg"
        assert med.route is None

    @pytest.mark.unit
    def test_dose_first_multiword_drug_without_route(self, captured_at):
        med = extract_medication("give 500 ml normal saline for hypotension", captured_at)
        assert med is not None
        assert med.drug == "normal saline"
        assert med.route is None

    @pytest.mark.unit
    def test_trailing_clause_not_in_summary(self, captured_at):
        log = CallLog()
        log.commit_utterance("give 4 mg ondansetron for nausea", captured_at)
        assert "ondansetron – 4 mg" in log.export_summary()
        assert "for nausea –" not in log.export_summary()


# ============================================
# Combined Extraction Tests
# ============================================


class TestExtract:
    """Tests for the combined extract() entry point."""

    @pytest.mark.unit
    def test_vitals_and_medication_together(self, captured_at):
        result = extract("BP 88/50 HR 130, give 500 ml saline IV", captured_at)
        assert {v.kind for v in result.vitals} == {VitalKind.BP, VitalKind.HR}
        assert result.medication is not None
        assert result.medication.drug == "saline"
        assert result.medication.dose == "500 ml"

    @pytest.mark.unit
    @pytest.mark.parametrize("text", ["", "   ", "patient found supine", "12 34 56"])
    def test_unmatched_text_yields_empty_result(self, text, captured_at):
        result = extract(text, captured_at)
        assert isinstance(result, ExtractionResult)
        assert result.is_empty

    @pytest.mark.unit
    def test_records_are_immutable(self, captured_at):
        result = extract("HR 80", captured_at)
        with pytest.raises(Exception):
            result.vitals[0].value = "90"
