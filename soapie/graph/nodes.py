"""Workflow nodes: structure, load persisted patient, reconcile."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional

from langchain_core.runnables import RunnableConfig

from soapie.config.logger import get_logger
from soapie.graph.state import StructuringState
from soapie.models.record import PatientInfo
from soapie.pipeline.reconcile import reconcile_patient_with_sources
from soapie.pipeline.structurer import Structurer

logger = get_logger(__name__)

PatientReader = Callable[[int], Awaitable[Optional[PatientInfo]]]


def _configurable(config: Optional[RunnableConfig], key: str) -> Any:
    return ((config or {}).get("configurable") or {}).get(key)


async def structure_node(state: StructuringState, config: RunnableConfig) -> dict[str, Any]:
    structurer: Structurer = _configurable(config, "structurer")
    result = await structurer.run(state.get("transcription", ""))
    return {
        "record": result.record,
        "degraded": result.degraded,
        "has_content": result.has_content,
    }


async def load_persisted_node(state: StructuringState, config: RunnableConfig) -> dict[str, Any]:
    patient_id = state.get("patient_id")
    reader: Optional[PatientReader] = _configurable(config, "patient_reader")
    if patient_id is None or reader is None:
        return {"persisted": None}
    try:
        persisted = await reader(patient_id)
    except Exception as exc:
        # Reconciliation must still run; an unreadable store counts as "not found".
        logger.warning("[load_persisted] patient %s unreadable: %s", patient_id, exc)
        return {"persisted": None}
    if persisted is None:
        logger.info("[load_persisted] patient %s not found", patient_id)
    return {"persisted": persisted}


async def reconcile_node(state: StructuringState) -> dict[str, Any]:
    record = state["record"]
    reconciliation = reconcile_patient_with_sources(
        persisted=state.get("persisted"),
        extracted=record.patient,
        override=state.get("override"),
    )
    logger.debug("[reconcile] field sources: %s", reconciliation.sources)
    return {
        "record": record.with_patient(reconciliation.patient),
        "sources": reconciliation.sources,
        "conflicts": list(reconciliation.conflicts),
    }
