"""Bounded exponential backoff for an overloaded structuring model."""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, TypeVar

from soapie.config.logger import get_logger
from soapie.config.settings import settings
from soapie.llm.base import ModelInvoker, ModelResponse, StructuringRequest
from soapie.pipeline.errors import (
    ModelInvocationFailed,
    StructuringError,
    TransientServiceUnavailable,
)

logger = get_logger(__name__)

T = TypeVar("T")

TRANSIENT_STATUS_CODES = frozenset({503, 529})
_TRANSIENT_MESSAGE_RE = re.compile(r"overloaded|unavailable|\b503\b", re.IGNORECASE)


def _status_of(exc: BaseException) -> Optional[int]:
    for attr in ("status_code", "status", "code"):
        value = getattr(exc, attr, None)
        if isinstance(value, int):
            return value
        if isinstance(value, str) and value.isdigit():
            return int(value)
    response = getattr(exc, "response", None)
    value = getattr(response, "status_code", None)
    return value if isinstance(value, int) else None


def is_transient_error(exc: BaseException) -> bool:
    """Overloaded/unavailable service; everything else is terminal.

    A status code, when the error carries one, decides alone. The message is
    only consulted for errors without a status.
    """
    if isinstance(exc, TransientServiceUnavailable):
        return True
    if isinstance(exc, StructuringError):
        return False
    status = _status_of(exc)
    if status is not None:
        return status in TRANSIENT_STATUS_CODES
    return _TRANSIENT_MESSAGE_RE.search(str(exc)) is not None


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 5.0
    is_transient: Callable[[BaseException], bool] = is_transient_error
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep, compare=False)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")

    @classmethod
    def from_settings(cls) -> "RetryPolicy":
        return cls(
            max_attempts=settings.retry_attempts(),
            base_delay=max(settings.RETRY_BASE_DELAY, 0.0),
            max_delay=max(settings.RETRY_MAX_DELAY, 0.0),
        )

    def delay_for(self, attempt: int) -> float:
        """Delay after failed attempt number ``attempt`` (1-based)."""
        return min(self.base_delay * (2 ** (attempt - 1)), self.max_delay)

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        stage: str = "call",
        cancel_event: Optional[asyncio.Event] = None,
    ) -> T:
        """Run ``operation`` until it succeeds, fails terminally, or attempts run out.

        Terminal errors propagate unchanged. Exhausted transient retries raise
        TransientServiceUnavailable. Setting ``cancel_event`` stops the loop
        before the next attempt; an in-flight call is never interrupted by it.
        """
        last_exc: Optional[BaseException] = None
        for attempt in range(1, self.max_attempts + 1):
            if cancel_event is not None and cancel_event.is_set():
                logger.info("[%s] cancelled before attempt %d/%d", stage, attempt, self.max_attempts)
                raise asyncio.CancelledError()
            logger.info("[%s] attempt %d/%d", stage, attempt, self.max_attempts)
            try:
                return await operation()
            except Exception as exc:
                if not self.is_transient(exc):
                    raise
                last_exc = exc
                if attempt >= self.max_attempts:
                    break
                delay = self.delay_for(attempt)
                logger.warning(
                    "[%s] transient failure on attempt %d/%d, retrying in %.1fs: %s",
                    stage,
                    attempt,
                    self.max_attempts,
                    delay,
                    str(exc).strip() or exc.__class__.__name__,
                )
                await self.sleep(delay)

        raise TransientServiceUnavailable(
            f"structuring model unavailable after {self.max_attempts} attempts: {last_exc}",
            attempts=self.max_attempts,
        ) from last_exc


async def call_model_with_retry(
    invoker: ModelInvoker,
    request: StructuringRequest,
    policy: RetryPolicy,
    *,
    cancel_event: Optional[asyncio.Event] = None,
) -> ModelResponse:
    """Invoke the model under ``policy``; terminal errors become ModelInvocationFailed."""
    try:
        return await policy.run(
            lambda: invoker.generate(request),
            stage="structuring",
            cancel_event=cancel_event,
        )
    except StructuringError:
        raise
    except Exception as exc:
        logger.error("[structuring] model invocation failed: %s", exc)
        raise ModelInvocationFailed(f"structuring model error: {exc}") from exc
