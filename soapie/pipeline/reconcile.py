"""Per-field merge of patient attributes from three sources.

Precedence, applied independently per field:

- ``full_name``: a persisted, non-placeholder name always wins. Otherwise the
  override, then the extracted value; if neither is usable the persisted
  placeholder (or "") is kept. No placeholder is ever made up here.
- every other field: override, then extracted, then persisted, then "".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence, Union

from soapie.config.logger import get_logger
from soapie.config.settings import settings
from soapie.models.record import PATIENT_FIELDS, PatientInfo

logger = get_logger(__name__)

PatientSource = Union[PatientInfo, Mapping[str, Any], None]

PERSISTED = "persisted"
EXTRACTED = "extracted"
OVERRIDE = "override"
PLACEHOLDER = "placeholder"
EMPTY = "empty"

_GENERIC_ORDER: tuple[str, ...] = (OVERRIDE, EXTRACTED, PERSISTED)
_NAME_FALLBACK_ORDER: tuple[str, ...] = (OVERRIDE, EXTRACTED)


@dataclass(frozen=True)
class Reconciliation:
    patient: PatientInfo
    sources: dict[str, str] = field(default_factory=dict)
    conflicts: tuple[str, ...] = ()


def _clean(value: Any) -> str:
    """Trimmed string form of a source value; "" for anything unusable."""
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)):
        return str(value).strip()
    return ""


def _field_values(source: PatientSource) -> dict[str, str]:
    if source is None:
        return {}
    if isinstance(source, PatientInfo):
        raw: Mapping[str, Any] = source.model_dump()
    elif isinstance(source, Mapping):
        raw = source
    else:
        return {}
    return {name: _clean(raw.get(name)) for name in PATIENT_FIELDS}


def is_placeholder_name(name: str, placeholders: Optional[Sequence[str]] = None) -> bool:
    names = settings.PLACEHOLDER_NAMES if placeholders is None else placeholders
    folded = _clean(name).casefold()
    return any(folded == _clean(p).casefold() for p in names)


def reconcile_patient_with_sources(
    persisted: PatientSource = None,
    extracted: PatientSource = None,
    override: PatientSource = None,
    *,
    placeholders: Optional[Sequence[str]] = None,
) -> Reconciliation:
    names = list(settings.PLACEHOLDER_NAMES if placeholders is None else placeholders)
    by_source = {
        PERSISTED: _field_values(persisted),
        EXTRACTED: _field_values(extracted),
        OVERRIDE: _field_values(override),
    }

    merged: dict[str, str] = {}
    sources: dict[str, str] = {}
    conflicts: list[str] = []

    persisted_name = by_source[PERSISTED].get("full_name", "")
    if persisted_name and not is_placeholder_name(persisted_name, names):
        merged["full_name"], sources["full_name"] = persisted_name, PERSISTED
        for other in _NAME_FALLBACK_ORDER:
            candidate = by_source[other].get("full_name", "")
            if candidate and candidate != persisted_name and not is_placeholder_name(candidate, names):
                logger.info("[reconcile] persisted full_name kept over %s value", other)
    else:
        for origin in _NAME_FALLBACK_ORDER:
            candidate = by_source[origin].get("full_name", "")
            if candidate and not is_placeholder_name(candidate, names):
                merged["full_name"], sources["full_name"] = candidate, origin
                break
        else:
            merged["full_name"] = persisted_name
            sources["full_name"] = PLACEHOLDER if merged["full_name"] else EMPTY

    for name in PATIENT_FIELDS:
        if name == "full_name":
            continue
        merged[name], sources[name] = "", EMPTY
        for origin in _GENERIC_ORDER:
            value = by_source[origin].get(name, "")
            if value:
                merged[name], sources[name] = value, origin
                break
        over, ext = by_source[OVERRIDE].get(name, ""), by_source[EXTRACTED].get(name, "")
        if over and ext and over != ext:
            conflicts.append(name)
            logger.info("[reconcile] override and extracted disagree on %s; override kept", name)

    logger.debug("[reconcile] merged=%s sources=%s", merged, sources)
    return Reconciliation(
        patient=PatientInfo(**merged),
        sources=sources,
        conflicts=tuple(conflicts),
    )


def reconcile_patient(
    persisted: PatientSource = None,
    extracted: PatientSource = None,
    override: PatientSource = None,
) -> PatientInfo:
    """Merged patient attributes; total and deterministic."""
    return reconcile_patient_with_sources(persisted, extracted, override).patient
