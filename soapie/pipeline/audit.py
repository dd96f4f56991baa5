"""Informational check for an all-empty structuring result."""

from __future__ import annotations

from soapie.config.logger import get_logger
from soapie.models.record import MedicationEntry, StructuredClinicalRecord

logger = get_logger(__name__)


def _filled(value: str) -> bool:
    return bool(value and value.strip())


def _medication_filled(entry: object) -> bool:
    if isinstance(entry, MedicationEntry):
        return any(_filled(v) for v in (entry.name, entry.dose, entry.route))
    return isinstance(entry, str) and _filled(entry)


def section_presence(record: StructuredClinicalRecord) -> dict[str, bool]:
    soapie = record.soapie
    objective = soapie.O
    return {
        "S": _filled(soapie.S),
        "O": (
            any(_filled(v) for v in objective.vitals.model_dump().values())
            or _filled(objective.exam)
            or _filled(objective.labs)
            or any(_medication_filled(m) for m in objective.medications)
        ),
        "A": _filled(soapie.A),
        "I": any(_filled(item) for item in soapie.I),
        "E": _filled(soapie.E),
        "P": _filled(soapie.P),
    }


def has_clinical_content(record: StructuredClinicalRecord) -> bool:
    return any(section_presence(record).values())


def audit_record(record: StructuredClinicalRecord) -> bool:
    """Log the section summary; flag an all-empty record for human review."""
    presence = section_presence(record)
    has_content = any(presence.values())
    if has_content:
        logger.info("[audit] SOAPIE sections present: %s", presence)
    else:
        logger.warning(
            "[audit] structuring produced no clinical content; record flagged for manual review"
        )
    return has_content
