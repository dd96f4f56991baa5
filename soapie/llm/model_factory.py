import json
from abc import ABC, abstractmethod
from typing import Any
from urllib import error, request

from soapie.config.logger import get_logger
from soapie.config.settings import settings

_logger = get_logger(__name__)


class BaseModelProvider(ABC):
    """Abstract provider contract for chat model creation."""

    name: str = "base"

    @abstractmethod
    def is_available(self, model: str) -> bool:
        """Whether this provider can serve the given model."""

    @abstractmethod
    def create(
        self,
        model: str,
        temperature: float,
        max_output_tokens: int,
        json_mode: bool,
        timeout: float,
    ) -> Any:
        """Create a provider-specific langchain runnable for one request shape."""


class OpenAIProvider(BaseModelProvider):
    name = "openai"

    def is_available(self, model: str) -> bool:
        return settings.has_openai_creds()

    def create(
        self,
        model: str,
        temperature: float,
        max_output_tokens: int,
        json_mode: bool,
        timeout: float,
    ) -> Any:
        from langchain_openai import ChatOpenAI

        chat = ChatOpenAI(
            model=model,
            api_key=settings.OPENAI_API_KEY,
            base_url=settings.get_openai_base_url(),
            temperature=temperature,
            max_tokens=max_output_tokens,
            timeout=timeout,
            # Retries belong to the pipeline's backoff policy.
            max_retries=0,
        )
        if json_mode:
            return chat.bind(response_format={"type": "json_object"})
        return chat


class OllamaProvider(BaseModelProvider):
    name = "ollama"

    def _base_url(self) -> str:
        return settings.OLLAMA_BASE_URL

    def _model_exists(self, base_url: str, model: str) -> bool:
        tags_url = f"{base_url.rstrip('/')}/api/tags"
        try:
            with request.urlopen(tags_url, timeout=1.5) as resp:
                payload = json.loads(resp.read().decode("utf-8"))
        except (error.URLError, error.HTTPError, TimeoutError, ValueError):
            return False

        names = {
            (item.get("name", "") or "").strip().lower()
            for item in payload.get("models", [])
        }
        wanted = (model or "").strip().lower()
        if wanted in names:
            return True
        return ":" not in wanted and f"{wanted}:latest" in names

    def is_available(self, model: str) -> bool:
        return self._model_exists(self._base_url(), model)

    def create(
        self,
        model: str,
        temperature: float,
        max_output_tokens: int,
        json_mode: bool,
        timeout: float,
    ) -> Any:
        from langchain_ollama import ChatOllama

        kwargs: dict[str, Any] = {
            "model": model,
            "base_url": self._base_url(),
            "temperature": temperature,
            "num_predict": max_output_tokens,
            "client_kwargs": {"timeout": timeout},
        }
        if json_mode:
            kwargs["format"] = "json"
        return ChatOllama(**kwargs)


class ModelFactory:
    """Provider registry + resolution strategy."""

    def __init__(self) -> None:
        self.providers: dict[str, BaseModelProvider] = {
            OpenAIProvider.name: OpenAIProvider(),
            OllamaProvider.name: OllamaProvider(),
        }

    def resolve_provider(self, model: str, explicit_provider: str = "") -> BaseModelProvider:
        provider_name = (explicit_provider or "").strip().lower()
        if provider_name and provider_name != "auto":
            provider = self.providers.get(provider_name)
            if provider is None:
                raise ValueError(f"Unknown provider: {provider_name}")
            return provider

        # Auto strategy: OpenAI-compatible when credentials exist, else local Ollama.
        if self.providers["openai"].is_available(model):
            return self.providers["openai"]
        if self.providers["ollama"].is_available(model):
            return self.providers["ollama"]
        _logger.warning(
            "[model_factory] no provider reports model '%s' available, using ollama",
            model,
        )
        return self.providers["ollama"]


_FACTORY = ModelFactory()


def get_model_factory() -> ModelFactory:
    return _FACTORY
