from soapie.graph.builder import build_graph, get_graph_app, process_transcription

__all__ = ["build_graph", "get_graph_app", "process_transcription"]
