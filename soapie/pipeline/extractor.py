"""Extract, parse and shape-check the structuring model's JSON payload.

The model is asked for JSON only, but that contract is advisory: the text may
be wrapped in prose or code fences, may carry wrong types, or may omit whole
sections. Extraction is therefore defensive while parse failures stay loud:
a missing section is filled with its typed empty default, an unparsable
payload raises MalformedModelOutput with a bounded snippet of the raw text.
"""

from __future__ import annotations

import json
import re
from typing import Any

from soapie.config.logger import get_logger, truncate_for_log
from soapie.config.settings import settings
from soapie.llm.base import FinishReason, ModelResponse
from soapie.models.record import (
    PATIENT_FIELDS,
    SOAPIE_TEXT_FIELDS,
    VITAL_FIELDS,
    StructuredClinicalRecord,
)
from soapie.pipeline.errors import EmptyModelOutput, MalformedModelOutput, OutputTruncated

logger = get_logger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


def raw_snippet(text: str, limit: int | None = None) -> str:
    limit = settings.RAW_SNIPPET_CHARS if limit is None else limit
    return (text or "")[:limit]


def extract_json_text(raw: str) -> str | None:
    """Return the substring between the first ``{`` and the last ``}``, if any."""
    cleaned = _FENCE_RE.sub("", raw)
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end <= start:
        return None
    return cleaned[start : end + 1]


def parse_model_json(raw: str) -> dict[str, Any]:
    text = raw.strip()
    try:
        data = json.loads(text)
    except ValueError:
        candidate = extract_json_text(text)
        if candidate is None:
            logger.error("[extractor] no JSON object in model output (%d chars)", len(text))
            logger.debug("[extractor] raw model output: %s", truncate_for_log(text))
            raise MalformedModelOutput(
                "no JSON object found in model output",
                raw_snippet=raw_snippet(raw),
            )
        try:
            data = json.loads(candidate)
        except ValueError as exc:
            logger.error(
                "[extractor] JSON parse error (%s) in %d-char candidate", exc, len(candidate)
            )
            logger.debug("[extractor] unparsable candidate: %s", truncate_for_log(candidate))
            raise MalformedModelOutput(
                "model output is not valid JSON",
                raw_snippet=raw_snippet(raw),
                parse_error=str(exc),
            ) from exc
        logger.info("[extractor] JSON extracted from surrounding text (%d chars)", len(candidate))

    if not isinstance(data, dict):
        raise MalformedModelOutput(
            f"model output JSON is a {type(data).__name__}, expected an object",
            raw_snippet=raw_snippet(raw),
        )
    return data


def _as_text(value: Any, path: str) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    logger.warning("[extractor] coercing %s from %s to string", path, type(value).__name__)
    if isinstance(value, list):
        return " ".join(_as_text(item, path) for item in value if item is not None).strip()
    if isinstance(value, dict):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def _as_text_list(value: Any, path: str) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        if value.strip():
            logger.warning("[extractor] wrapping string %s into a list", path)
            return [value]
        return []
    if not isinstance(value, list):
        logger.warning("[extractor] dropping %s of type %s", path, type(value).__name__)
        return []
    items = [_as_text(item, path) for item in value]
    return [item for item in items if item.strip()]


def _as_medications(value: Any) -> list[Any]:
    path = "soapie.O.medications"
    if isinstance(value, str):
        return _as_text_list(value, path)
    if not isinstance(value, list):
        if value is not None:
            logger.warning("[extractor] dropping %s of type %s", path, type(value).__name__)
        return []
    medications: list[Any] = []
    for item in value:
        if isinstance(item, str):
            if item.strip():
                medications.append(item)
        elif isinstance(item, dict):
            medications.append(
                {key: _as_text(item.get(key), f"{path}.{key}") for key in ("name", "dose", "route")}
            )
        else:
            logger.warning("[extractor] dropping medication entry of type %s", type(item).__name__)
    return medications


def _section(data: dict[str, Any], key: str, path: str, filled: list[str]) -> dict[str, Any]:
    value = data.get(key)
    if isinstance(value, dict):
        return value
    filled.append(path)
    return {}


def normalize_payload(data: dict[str, Any]) -> tuple[dict[str, Any], list[str]]:
    """Coerce a parsed payload to the record's shape.

    Returns the normalized payload and the paths of the sections that were
    missing and filled with empty defaults.
    """
    filled: list[str] = []

    patient_in = _section(data, "patient", "patient", filled)
    patient = {name: _as_text(patient_in.get(name), f"patient.{name}") for name in PATIENT_FIELDS}

    soapie_in = _section(data, "soapie", "soapie", filled)
    objective_in = _section(soapie_in, "O", "soapie.O", filled)
    vitals_in = _section(objective_in, "vitals", "soapie.O.vitals", filled)

    soapie: dict[str, Any] = {
        name: _as_text(soapie_in.get(name), f"soapie.{name}") for name in SOAPIE_TEXT_FIELDS
    }
    soapie["I"] = _as_text_list(soapie_in.get("I"), "soapie.I")
    soapie["O"] = {
        "vitals": {
            name: _as_text(vitals_in.get(name), f"soapie.O.vitals.{name}") for name in VITAL_FIELDS
        },
        "exam": _as_text(objective_in.get("exam"), "soapie.O.exam"),
        "labs": _as_text(objective_in.get("labs"), "soapie.O.labs"),
        "medications": _as_medications(objective_in.get("medications")),
    }
    return {"patient": patient, "soapie": soapie}, filled


def extract_structured_record(response: ModelResponse) -> StructuredClinicalRecord:
    """Turn a raw model response into a fully-typed record, or raise."""
    text = response.text if isinstance(response.text, str) else str(response.text or "")

    if response.finish_reason == FinishReason.TRUNCATED:
        logger.error(
            "[extractor] model output truncated at the output-size ceiling (%d chars received)",
            len(text),
        )
        raise OutputTruncated("model output was truncated at the output-size ceiling")

    if not text.strip():
        logger.error("[extractor] empty model output, finish_reason=%s", response.finish_reason.value)
        raise EmptyModelOutput("model returned an empty response", raw_snippet=raw_snippet(text))

    data = parse_model_json(text)
    payload, filled = normalize_payload(data)
    for path in filled:
        logger.warning("[extractor] %s missing from model output, filled with empty default", path)
    return StructuredClinicalRecord.model_validate(payload)
