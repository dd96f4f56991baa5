"""LLM module."""

from soapie.llm.base import FinishReason, ModelInvoker, ModelResponse, StructuringRequest
from soapie.llm.invoker import ChatModelInvoker

__all__ = [
    "ChatModelInvoker",
    "FinishReason",
    "ModelInvoker",
    "ModelResponse",
    "StructuringRequest",
]
