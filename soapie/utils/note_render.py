from __future__ import annotations

from soapie.models.record import MedicationEntry, Medication, StructuredClinicalRecord

NOTE_TITLE = "Note infirmière structurée (S–O–A–I–E–P)"

# (field, label, suffix) in display order.
_VITALS_LAYOUT: tuple[tuple[str, str, str], ...] = (
    ("blood_pressure", "BP", ""),
    ("heart_rate", "HR", ""),
    ("respiratory_rate", "RR", ""),
    ("spo2", "SpO₂", "%"),
    ("temperature", "Temp", "°C"),
    ("glycemia", "Glycémie", ""),
)


def _with_suffix(value: str, suffix: str) -> str:
    if suffix and not value.endswith(suffix):
        return f"{value}{suffix}"
    return value


def format_medication(medication: Medication) -> str:
    if isinstance(medication, MedicationEntry):
        parts = [p.strip() for p in (medication.name, medication.dose, medication.route)]
        return " - ".join(p for p in parts if p)
    return (medication or "").strip()


def _vitals_line(record: StructuredClinicalRecord) -> str:
    vitals = record.soapie.O.vitals
    parts: list[str] = []
    for name, label, suffix in _VITALS_LAYOUT:
        value = (getattr(vitals, name) or "").strip()
        if value:
            parts.append(f"{label} {_with_suffix(value, suffix)}")
    return " / ".join(parts)


def build_clean_note(record: StructuredClinicalRecord) -> str:
    """Plain-text S-O-A-I-E-P note; empty fields are skipped, headings stay."""
    soapie = record.soapie
    objective = soapie.O
    lines: list[str] = [NOTE_TITLE, ""]

    def section(heading: str, body: list[str]) -> None:
        lines.append(heading)
        lines.append("")
        filled = [item for item in body if item.strip()]
        lines.extend(filled)
        if filled:
            lines.append("")

    section("S — Subjectif :", [soapie.S])

    objective_lines: list[str] = []
    vitals = _vitals_line(record)
    if vitals:
        objective_lines.append(f"• Signes vitaux : {vitals}")
    if objective.exam.strip():
        objective_lines.append(f"• Examen physique : {objective.exam}")
    if objective.labs.strip():
        objective_lines.append(f"• Laboratoire/imagerie : {objective.labs}")
    meds = [m for m in (format_medication(m) for m in objective.medications) if m]
    if meds:
        objective_lines.append(f"• Médicaments administrés : {', '.join(meds)}")
    section("O — Objectif :", objective_lines)

    section("A — Analyse :", [soapie.A])
    section("I — Intervention :", [f"• {item}" for item in soapie.I if item.strip()])
    section("E — Évaluation :", [soapie.E])
    section("P — Plan :", [soapie.P])

    return "\n".join(lines).rstrip("\n")
