"""Typed shape of the structured clinical record.

Every field carries an empty default so a record is always fully typed, even
when it was built from a partial model response or as a degraded skeleton.
"""

from __future__ import annotations

from typing import Union

from pydantic import BaseModel, ConfigDict, Field

PATIENT_FIELDS: tuple[str, ...] = ("full_name", "age", "gender", "room_number", "unit")
VITAL_FIELDS: tuple[str, ...] = (
    "temperature",
    "blood_pressure",
    "heart_rate",
    "respiratory_rate",
    "spo2",
    "glycemia",
)
SOAPIE_TEXT_FIELDS: tuple[str, ...] = ("S", "A", "E", "P")


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class PatientInfo(_Frozen):
    full_name: str = ""
    age: str = ""
    gender: str = ""
    room_number: str = ""
    unit: str = ""


class Vitals(_Frozen):
    temperature: str = ""
    blood_pressure: str = ""
    heart_rate: str = ""
    respiratory_rate: str = ""
    spo2: str = ""
    glycemia: str = ""


class MedicationEntry(_Frozen):
    name: str = ""
    dose: str = ""
    route: str = ""


Medication = Union[MedicationEntry, str]


class ObjectiveFindings(_Frozen):
    vitals: Vitals = Field(default_factory=Vitals)
    exam: str = ""
    labs: str = ""
    medications: list[Medication] = Field(default_factory=list)


class Soapie(_Frozen):
    S: str = Field(default="", description="Subjective: what the patient or family reports.")
    O: ObjectiveFindings = Field(
        default_factory=ObjectiveFindings,
        description="Objective: vitals, physical exam, labs, medications given.",
    )
    A: str = Field(default="", description="Assessment as stated by the nurse.")
    I: list[str] = Field(default_factory=list, description="Interventions performed.")
    E: str = Field(default="", description="Evaluation of the patient's response.")
    P: str = Field(default="", description="Plan of care.")


class StructuredClinicalRecord(_Frozen):
    patient: PatientInfo = Field(default_factory=PatientInfo)
    soapie: Soapie = Field(default_factory=Soapie)

    def with_patient(self, patient: PatientInfo) -> "StructuredClinicalRecord":
        return self.model_copy(update={"patient": patient})


def empty_record() -> StructuredClinicalRecord:
    """Degraded-mode skeleton: every leaf present and empty."""
    return StructuredClinicalRecord()
