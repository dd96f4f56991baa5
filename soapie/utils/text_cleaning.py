"""Conservative clean-up of speech-to-text output before structuring.

Only frequent, unambiguous mis-transcriptions are corrected; when in doubt the
text is left untouched. Nothing is ever added.
"""

from __future__ import annotations

import re

_CORRECTIONS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"\bparacettamol\b", re.IGNORECASE), "paracétamol"),
    (re.compile(r"\bparacetamol\b", re.IGNORECASE), "paracétamol"),
    (re.compile(r"\bpar\s*assez\s*tamol\b", re.IGNORECASE), "paracétamol"),
    (re.compile(r"\bamoxicivine\b", re.IGNORECASE), "amoxicilline"),
    (re.compile(r"\bglissémi\b", re.IGNORECASE), "glycémie"),
    (re.compile(r"\bglisemi\b", re.IGNORECASE), "glycémie"),
    (re.compile(r"\bosculation\b", re.IGNORECASE), "auscultation"),
    (re.compile(r"\bperfe\b", re.IGNORECASE), "perfusion"),
    (re.compile(r"\b500000\s*ml\b", re.IGNORECASE), "500 ml"),
    (re.compile(r"\bperfusion\s*500000\b", re.IGNORECASE), "perfusion 500 ml"),
]

_MULTI_SPACE = re.compile(r"\s{2,}")
_SPACE_BEFORE_PUNCT = re.compile(r"\s+([.,;:!?])")


def clean_transcription(text: str | None) -> str:
    if not text or not isinstance(text, str):
        return ""
    cleaned = text
    for pattern, replacement in _CORRECTIONS:
        cleaned = pattern.sub(replacement, cleaned)
    cleaned = _MULTI_SPACE.sub(" ", cleaned)
    cleaned = _SPACE_BEFORE_PUNCT.sub(r"\1", cleaned)
    return cleaned.strip()
