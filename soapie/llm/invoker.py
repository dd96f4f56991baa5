"""Chat-model backed invoker for the structuring model service."""

import asyncio
import json
from typing import Any, List, Optional

from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage

from soapie.config.logger import get_logger
from soapie.config.settings import settings
from soapie.llm.base import ModelResponse, StructuringRequest, normalize_finish_reason
from soapie.llm.model_factory import ModelFactory, get_model_factory

logger = get_logger(__name__)


def _message_text(content: Any) -> str:
    """Convert message content into a text string."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts: list[str] = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type") == "text":
                parts.append(str(part.get("text", "")))
        return "".join(parts)
    try:
        return json.dumps(content, ensure_ascii=False)
    except TypeError:
        return str(content)


def _finish_reason(response: Any) -> Any:
    metadata = getattr(response, "response_metadata", None) or {}
    return (
        metadata.get("finish_reason")
        or metadata.get("done_reason")
        or metadata.get("stop_reason")
    )


class ChatModelInvoker:
    """Sends one structuring request per call; never retries by itself.

    The invoker keeps only read-only configuration, so a single instance can be
    shared by concurrent pipeline runs.
    """

    def __init__(
        self,
        model: Optional[str] = None,
        provider: Optional[str] = None,
        timeout: Optional[float] = None,
        factory: Optional[ModelFactory] = None,
    ):
        self.model = model or settings.STRUCTURING_MODEL
        self.provider = provider if provider is not None else settings.get_structuring_provider()
        self.timeout = timeout if timeout is not None else settings.STRUCTURING_REQUEST_TIMEOUT
        self._factory = factory or get_model_factory()

    def _build_messages(self, request: StructuringRequest) -> List[BaseMessage]:
        messages: List[BaseMessage] = []
        if request.system_prompt:
            messages.append(SystemMessage(content=request.system_prompt))
        messages.append(HumanMessage(content=request.user_prompt))
        return messages

    async def _chat_model(self, request: StructuringRequest) -> Any:
        # Auto resolution may probe a local Ollama over blocking HTTP.
        provider = await asyncio.to_thread(self._factory.resolve_provider, self.model, self.provider)
        logger.debug("[invoker] provider=%s model=%s", provider.name, self.model)
        return provider.create(
            model=self.model,
            temperature=request.temperature,
            max_output_tokens=request.max_output_tokens,
            json_mode=request.json_mode,
            timeout=self.timeout,
        )

    async def generate(self, request: StructuringRequest) -> ModelResponse:
        chat_model = await self._chat_model(request)
        response = await chat_model.ainvoke(self._build_messages(request))
        raw_reason = _finish_reason(response)
        metadata = dict(getattr(response, "response_metadata", None) or {})
        return ModelResponse(
            text=_message_text(getattr(response, "content", "")),
            finish_reason=normalize_finish_reason(raw_reason),
            metadata=metadata,
        )
