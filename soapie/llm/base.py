"""Narrow contract between the pipeline and the structuring model service."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol, runtime_checkable


class FinishReason(str, Enum):
    NORMAL = "normal"
    TRUNCATED = "truncated"
    OTHER = "other"


# Provider spellings for "stopped normally" / "hit the token ceiling".
_NORMAL_REASONS = {"stop", "end_turn", "stop_sequence", "normal", "eos", "finish_reason_stop"}
_TRUNCATED_REASONS = {"length", "max_tokens", "max_output_tokens", "truncated"}


def normalize_finish_reason(raw: Any) -> FinishReason:
    if raw is None:
        return FinishReason.NORMAL
    value = str(getattr(raw, "value", raw)).strip().lower()
    if not value or value in _NORMAL_REASONS:
        return FinishReason.NORMAL
    if value in _TRUNCATED_REASONS:
        return FinishReason.TRUNCATED
    return FinishReason.OTHER


@dataclass(frozen=True)
class StructuringRequest:
    system_prompt: str
    user_prompt: str
    temperature: float = 0.0
    max_output_tokens: int = 8192
    json_mode: bool = True


@dataclass(frozen=True)
class ModelResponse:
    text: str
    finish_reason: FinishReason = FinishReason.NORMAL
    metadata: dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class ModelInvoker(Protocol):
    """Anything that can send one request to the structuring model."""

    async def generate(self, request: StructuringRequest) -> ModelResponse:
        ...
