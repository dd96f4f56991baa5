"""Tests for model output extraction and shape validation."""

import json
import logging
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from soapie.llm.base import FinishReason, ModelResponse
from soapie.models.record import MedicationEntry, StructuredClinicalRecord, empty_record
from soapie.pipeline.errors import EmptyModelOutput, MalformedModelOutput, OutputTruncated
from soapie.pipeline.extractor import (
    extract_json_text,
    extract_structured_record,
    normalize_payload,
    parse_model_json,
)


def _response(text: str, reason: FinishReason = FinishReason.NORMAL) -> ModelResponse:
    return ModelResponse(text=text, finish_reason=reason)


def _full_payload() -> dict:
    return {
        "patient": {
            "full_name": "Mamadou Sarr",
            "age": "52",
            "gender": "homme",
            "room_number": "17",
            "unit": "médecine interne",
        },
        "soapie": {
            "S": "Se sent faible depuis hier soir.",
            "O": {
                "vitals": {
                    "temperature": "39,1",
                    "blood_pressure": "13/8",
                    "heart_rate": "88",
                    "respiratory_rate": "22",
                    "spo2": "97",
                    "glycemia": "1,4 g/L",
                },
                "exam": "Respiration un peu rapide.",
                "labs": "Bilan sanguin en attente.",
                "medications": [
                    {"name": "paracétamol", "dose": "1 g", "route": "IV"},
                    "sérum salé 500 ml",
                ],
            },
            "A": "",
            "I": ["Perfusion posée"],
            "E": "Température descendue à 38,6.",
            "P": "Surveiller la température toutes les 30 minutes.",
        },
    }


def test_full_payload_round_trips_into_typed_record() -> None:
    record = extract_structured_record(_response(json.dumps(_full_payload())))

    assert isinstance(record, StructuredClinicalRecord)
    assert record.patient.full_name == "Mamadou Sarr"
    assert record.soapie.O.vitals.spo2 == "97"
    assert record.soapie.O.medications[0] == MedicationEntry(name="paracétamol", dose="1 g", route="IV")
    assert record.soapie.O.medications[1] == "sérum salé 500 ml"
    assert record.soapie.I == ["Perfusion posée"]


def test_empty_object_yields_complete_empty_shape() -> None:
    record = extract_structured_record(_response("{}"))
    assert record == empty_record()
    assert record.soapie.O.medications == []
    assert record.soapie.O.vitals.glycemia == ""


@pytest.mark.parametrize(
    "payload",
    [
        {"patient": {"full_name": "Awa Diop"}},
        {"soapie": {"S": "douleur"}},
        {"soapie": {"O": {"exam": "RAS"}}},
        {"soapie": {"O": "not an object"}, "patient": None},
    ],
)
def test_partial_payloads_are_filled_not_rejected(payload: dict) -> None:
    record = extract_structured_record(_response(json.dumps(payload)))
    dumped = record.model_dump()
    assert set(dumped) == {"patient", "soapie"}
    assert set(dumped["soapie"]) == {"S", "O", "A", "I", "E", "P"}
    assert set(dumped["soapie"]["O"]) == {"vitals", "exam", "labs", "medications"}
    assert isinstance(dumped["soapie"]["O"]["medications"], list)
    assert all(isinstance(v, str) for v in dumped["patient"].values())


def test_missing_sections_are_reported() -> None:
    _payload, filled = normalize_payload({"soapie": {}})
    assert filled == ["patient", "soapie.O", "soapie.O.vitals"]


def test_json_wrapped_in_prose_is_extracted() -> None:
    text = 'Voici le résultat :\n```json\n{"soapie": {"S": "céphalées"}}\n```\nBonne journée.'
    record = extract_structured_record(_response(text))
    assert record.soapie.S == "céphalées"


def test_extract_json_text_spans_first_to_last_brace() -> None:
    assert extract_json_text('a {"x": {"y": 1}} b') == '{"x": {"y": 1}}'
    assert extract_json_text("no braces here") is None
    assert extract_json_text("} backwards {") is None


def test_truncated_response_is_fatal_even_if_text_parses() -> None:
    with pytest.raises(OutputTruncated):
        extract_structured_record(_response('{"soapie": {"S": "ok"}}', FinishReason.TRUNCATED))


def test_truncated_partial_json_is_never_parsed() -> None:
    with pytest.raises(OutputTruncated):
        extract_structured_record(_response('{"soapie": {"S": "fièvre', FinishReason.TRUNCATED))


@pytest.mark.parametrize("text", ["", "   \n "])
def test_empty_text_raises_empty_model_output(text: str) -> None:
    with pytest.raises(EmptyModelOutput):
        extract_structured_record(_response(text))


def test_malformed_json_carries_raw_snippet() -> None:
    with pytest.raises(MalformedModelOutput) as exc:
        extract_structured_record(_response("Sure, here is the data: {invalid json"))
    assert "Sure, here is the data" in exc.value.raw_snippet


def test_unparsable_braces_carry_parse_error() -> None:
    with pytest.raises(MalformedModelOutput) as exc:
        parse_model_json("Result: {\"soapie\": {\"S\": }}")
    assert exc.value.parse_error
    assert exc.value.raw_snippet.startswith("Result:")


def test_snippet_is_bounded() -> None:
    text = "x" * 5000 + "{oops"
    with pytest.raises(MalformedModelOutput) as exc:
        extract_structured_record(_response(text))
    assert len(exc.value.raw_snippet) == 1000


@pytest.mark.parametrize(
    "text",
    [
        'Voici: {"patient": {"full_name": "Awa Diop", "room_number": "12"}, "soapie": }',
        "Patient Awa Diop, chambre 12, pas de JSON ici",
    ],
)
def test_malformed_output_keeps_patient_identity_out_of_error_logs(text: str, caplog) -> None:
    caplog.set_level(logging.DEBUG, logger="soapie")

    with pytest.raises(MalformedModelOutput) as exc:
        extract_structured_record(_response(text))

    assert "Awa Diop" in exc.value.raw_snippet
    errors = [r for r in caplog.records if r.levelno >= logging.ERROR]
    assert errors
    assert all("Awa Diop" not in r.getMessage() for r in errors)
    assert any("Awa Diop" in r.getMessage() for r in caplog.records if r.levelno == logging.DEBUG)


def test_json_array_is_rejected() -> None:
    with pytest.raises(MalformedModelOutput):
        parse_model_json('[{"soapie": {}}]')


def test_wrong_types_are_coerced() -> None:
    payload = {
        "patient": {"full_name": None, "age": 52, "room_number": 17},
        "soapie": {
            "S": ["Fièvre", "frissons"],
            "O": {
                "vitals": {"heart_rate": 88, "spo2": 97.0},
                "exam": ["Auscultation", "normale"],
                "labs": None,
                "medications": "paracétamol 1 g",
            },
            "I": "Perfusion posée",
            "E": 3,
            "P": {"surveillance": "température"},
        },
    }
    record = extract_structured_record(_response(json.dumps(payload)))

    assert record.patient.full_name == ""
    assert record.patient.age == "52"
    assert record.patient.room_number == "17"
    assert record.soapie.S == "Fièvre frissons"
    assert record.soapie.O.vitals.heart_rate == "88"
    assert record.soapie.O.vitals.spo2 == "97.0"
    assert record.soapie.O.exam == "Auscultation normale"
    assert record.soapie.O.labs == ""
    assert record.soapie.O.medications == ["paracétamol 1 g"]
    assert record.soapie.I == ["Perfusion posée"]
    assert record.soapie.E == "3"
    assert json.loads(record.soapie.P) == {"surveillance": "température"}


def test_bad_medication_entries_are_dropped_and_objects_completed() -> None:
    payload = {"soapie": {"O": {"medications": [42, "", {"name": "amoxicilline"}, None]}}}
    record = extract_structured_record(_response(json.dumps(payload)))
    assert record.soapie.O.medications == [MedicationEntry(name="amoxicilline")]


def test_unknown_keys_are_dropped() -> None:
    payload = {"patient": {"full_name": "Awa", "ssn": "123"}, "extra": 1}
    record = extract_structured_record(_response(json.dumps(payload)))
    assert "ssn" not in record.patient.model_dump()
    assert set(record.model_dump()) == {"patient", "soapie"}
