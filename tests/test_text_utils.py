"""Tests for transcription cleaning and clean-note rendering."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from soapie.models.record import (
    MedicationEntry,
    ObjectiveFindings,
    Soapie,
    StructuredClinicalRecord,
    Vitals,
    empty_record,
)
from soapie.utils import build_clean_note, clean_transcription


def test_common_mistranscriptions_are_corrected() -> None:
    raw = "Je lui ai administré par assez tamol 1 gramme , amoxicivine et une perfe 500000 ml. Glissémi 1,4."
    cleaned = clean_transcription(raw)
    assert cleaned == (
        "Je lui ai administré paracétamol 1 gramme, amoxicilline et une perfusion 500 ml. glycémie 1,4."
    )


def test_osculation_and_spaces() -> None:
    assert clean_transcription("  A l'osculation   rien   de particulier .  ") == (
        "A l'auscultation rien de particulier."
    )


def test_cleaning_never_adds_content() -> None:
    text = "Patient calme, pas de plainte."
    assert clean_transcription(text) == text


def test_cleaning_handles_empty_values() -> None:
    assert clean_transcription("") == ""
    assert clean_transcription(None) == ""


def test_note_for_empty_record_keeps_headings_only() -> None:
    note = build_clean_note(empty_record())
    for heading in ("S — Subjectif :", "O — Objectif :", "A — Analyse :", "I — Intervention :", "E — Évaluation :", "P — Plan :"):
        assert heading in note
    assert "•" not in note
    assert "\n\n\n" not in note


def test_note_renders_objective_and_interventions() -> None:
    record = StructuredClinicalRecord(
        soapie=Soapie(
            S="Se sent faible.",
            O=ObjectiveFindings(
                vitals=Vitals(blood_pressure="13/8", heart_rate="88", spo2="97", temperature="39,1"),
                exam="Respiration rapide.",
                medications=[MedicationEntry(name="Paracétamol", dose="1 g", route="IV"), "Sérum salé 500 ml"],
            ),
            I=["Perfusion posée", ""],
            P="Surveiller la température.",
        )
    )
    note = build_clean_note(record)

    assert "• Signes vitaux : BP 13/8 / HR 88 / SpO₂ 97% / Temp 39,1°C" in note
    assert "• Examen physique : Respiration rapide." in note
    assert "• Médicaments administrés : Paracétamol - 1 g - IV, Sérum salé 500 ml" in note
    assert "• Perfusion posée" in note
    assert "Laboratoire" not in note
    assert note.startswith("Note infirmière structurée")
