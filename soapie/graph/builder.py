from typing import Any, Mapping, Optional

from langgraph.graph import END, START, StateGraph

from soapie.graph.nodes import (
    PatientReader,
    load_persisted_node,
    reconcile_node,
    structure_node,
)
from soapie.graph.state import StructuringState
from soapie.pipeline.structurer import Structurer, StructuringResult, get_default_structurer


def build_graph():
    graph = StateGraph(StructuringState)

    # --- nodes ---
    graph.add_node("structure", structure_node)
    graph.add_node("load_persisted", load_persisted_node)
    graph.add_node("reconcile", reconcile_node)

    # --- edges ---
    graph.add_edge(START, "structure")
    graph.add_edge("structure", "load_persisted")
    graph.add_edge("load_persisted", "reconcile")
    graph.add_edge("reconcile", END)

    return graph.compile()


# Lazy singleton; the compiled graph holds no per-run state.
_app = None


def get_graph_app():
    global _app
    if _app is None:
        _app = build_graph()
    return _app


async def process_transcription(
    transcription: str,
    patient_id: Optional[int] = None,
    override: Optional[Mapping[str, Any]] = None,
    *,
    structurer: Optional[Structurer] = None,
    patient_reader: Optional[PatientReader] = None,
) -> StructuringResult:
    """Structure a transcription and merge its patient attributes with known data."""
    if patient_reader is None and patient_id is not None:
        from soapie.utils.db import get_patient

        patient_reader = get_patient

    final_state = await get_graph_app().ainvoke(
        {
            "transcription": transcription,
            "patient_id": patient_id,
            "override": dict(override) if override is not None else None,
        },
        config={
            "configurable": {
                "structurer": structurer or get_default_structurer(),
                "patient_reader": patient_reader,
            }
        },
    )
    return StructuringResult(
        record=final_state["record"],
        has_content=final_state.get("has_content", False),
        degraded=final_state.get("degraded", False),
        sources=dict(final_state.get("sources") or {}),
        conflicts=tuple(final_state.get("conflicts") or ()),
    )
