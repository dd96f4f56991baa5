from soapie.models.record import (
    PATIENT_FIELDS,
    SOAPIE_TEXT_FIELDS,
    VITAL_FIELDS,
    Medication,
    MedicationEntry,
    ObjectiveFindings,
    PatientInfo,
    Soapie,
    StructuredClinicalRecord,
    Vitals,
    empty_record,
)

__all__ = [
    "PATIENT_FIELDS",
    "SOAPIE_TEXT_FIELDS",
    "VITAL_FIELDS",
    "Medication",
    "MedicationEntry",
    "ObjectiveFindings",
    "PatientInfo",
    "Soapie",
    "StructuredClinicalRecord",
    "Vitals",
    "empty_record",
]
