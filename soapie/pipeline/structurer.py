"""Transcription -> StructuredClinicalRecord.

Each call runs its own sequential chain (prompt, model call under the retry
policy, extraction, audit); the only state a Structurer holds is its injected,
read-only collaborators.
"""

from __future__ import annotations

import asyncio
import hashlib
from dataclasses import dataclass, field
from typing import Optional

from soapie.config.logger import get_logger, log_stage
from soapie.config.settings import settings
from soapie.llm.base import ModelInvoker
from soapie.llm.invoker import ChatModelInvoker
from soapie.models.record import StructuredClinicalRecord, empty_record
from soapie.pipeline.audit import audit_record
from soapie.pipeline.errors import (
    InvalidInput,
    ModelInvocationFailed,
    TransientServiceUnavailable,
)
from soapie.pipeline.extractor import extract_structured_record
from soapie.pipeline.retry import RetryPolicy, call_model_with_retry
from soapie.prompts.prompts import build_structuring_prompt
from soapie.utils.text_cleaning import clean_transcription

logger = get_logger(__name__)


@dataclass(frozen=True)
class StructuringResult:
    record: StructuredClinicalRecord
    has_content: bool
    degraded: bool = False
    sources: dict[str, str] = field(default_factory=dict)
    conflicts: tuple[str, ...] = ()


def _fingerprint(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:12]


class Structurer:
    def __init__(
        self,
        invoker: Optional[ModelInvoker] = None,
        retry_policy: Optional[RetryPolicy] = None,
        timeout: Optional[float] = None,
        clean: Optional[bool] = None,
    ):
        self.invoker = invoker if invoker is not None else ChatModelInvoker()
        self.retry_policy = retry_policy or RetryPolicy.from_settings()
        self.timeout = timeout if timeout is not None else settings.pipeline_timeout()
        self.clean = settings.CLEAN_TRANSCRIPTION if clean is None else clean

    def prepare_transcription(self, transcription: str) -> str:
        if not isinstance(transcription, str) or not transcription.strip():
            raise InvalidInput("transcription is empty")
        text = clean_transcription(transcription) if self.clean else transcription.strip()
        if not text:
            raise InvalidInput("transcription is empty after cleaning")
        return text

    async def _invoke(self, text: str, cancel_event: Optional[asyncio.Event]):
        request = build_structuring_prompt(text)
        try:
            return await asyncio.wait_for(
                call_model_with_retry(
                    self.invoker,
                    request,
                    self.retry_policy,
                    cancel_event=cancel_event,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as exc:
            logger.error("[structuring] timed out after %.0fs", self.timeout)
            raise ModelInvocationFailed(
                f"structuring timed out after {self.timeout:.0f}s"
            ) from exc

    async def run(
        self,
        transcription: str,
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> StructuringResult:
        text = self.prepare_transcription(transcription)
        logger.info(
            "[structuring] start transcript_hash=%s transcript_chars=%d",
            _fingerprint(text),
            len(text),
        )

        try:
            response = await self._invoke(text, cancel_event)
        except TransientServiceUnavailable as exc:
            logger.warning(
                "[structuring] %s; returning empty skeleton for manual entry",
                exc,
            )
            record = empty_record()
            return StructuringResult(record=record, has_content=audit_record(record), degraded=True)

        record = extract_structured_record(response)
        log_stage(logger, "structuring", record.soapie)
        return StructuringResult(record=record, has_content=audit_record(record))

    async def structure(
        self,
        transcription: str,
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> StructuredClinicalRecord:
        result = await self.run(transcription, cancel_event=cancel_event)
        return result.record


_default_structurer: Optional[Structurer] = None


def get_default_structurer() -> Structurer:
    global _default_structurer
    if _default_structurer is None:
        _default_structurer = Structurer()
    return _default_structurer


async def structure(transcription: str) -> StructuredClinicalRecord:
    """Structure one transcription with the settings-configured model."""
    if not isinstance(transcription, str) or not transcription.strip():
        raise InvalidInput("transcription is empty")
    return await get_default_structurer().structure(transcription)
