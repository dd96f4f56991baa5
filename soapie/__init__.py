"""Transcription structuring and patient reconciliation pipeline."""

from soapie.graph.builder import process_transcription
from soapie.models.record import PatientInfo, StructuredClinicalRecord, empty_record
from soapie.pipeline.audit import has_clinical_content
from soapie.pipeline.errors import (
    EmptyModelOutput,
    InvalidInput,
    MalformedModelOutput,
    ModelInvocationFailed,
    OutputTruncated,
    StructuringError,
    TransientServiceUnavailable,
)
from soapie.pipeline.reconcile import reconcile_patient, reconcile_patient_with_sources
from soapie.pipeline.structurer import Structurer, StructuringResult, structure

__all__ = [
    "EmptyModelOutput",
    "InvalidInput",
    "MalformedModelOutput",
    "ModelInvocationFailed",
    "OutputTruncated",
    "PatientInfo",
    "StructuredClinicalRecord",
    "StructuringError",
    "StructuringResult",
    "Structurer",
    "TransientServiceUnavailable",
    "empty_record",
    "has_clinical_content",
    "process_transcription",
    "reconcile_patient",
    "reconcile_patient_with_sources",
    "structure",
]
