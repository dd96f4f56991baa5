from __future__ import annotations

from typing import Any, Optional, TypedDict

from soapie.models.record import PatientInfo, StructuredClinicalRecord


class StructuringState(TypedDict, total=False):
    # Input
    transcription: str
    patient_id: Optional[int]
    override: Optional[dict[str, Any]]

    # Structuring
    record: Optional[StructuredClinicalRecord]
    degraded: bool
    has_content: bool

    # Reconciliation
    persisted: Optional[PatientInfo]
    sources: dict[str, str]
    conflicts: list[str]
