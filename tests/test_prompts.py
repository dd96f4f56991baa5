"""Tests for the structuring prompt builder."""

import json
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from soapie.models.record import empty_record
from soapie.pipeline.errors import InvalidInput
from soapie.prompts import prompts


def _schema_in(system_prompt: str) -> dict:
    start = system_prompt.index("SCHÉMA EXACT :") + len("SCHÉMA EXACT :")
    return json.loads(system_prompt[start:])


def test_system_prompt_embeds_the_exact_record_schema() -> None:
    assert _schema_in(prompts.build_system_prompt()) == empty_record().model_dump()


def test_system_prompt_states_the_no_fabrication_rules() -> None:
    text = prompts.build_system_prompt()
    assert "NE JAMAIS inventer" in text
    assert "laisse le champ vide" in text
    assert "UNIQUEMENT avec un objet JSON" in text
    assert "{schema}" not in text


def test_request_is_deterministic() -> None:
    first = prompts.build_structuring_prompt("Température 38,5.")
    second = prompts.build_structuring_prompt("Température 38,5.")
    assert first == second
    assert first.json_mode is True
    assert first.user_prompt.endswith("Température 38,5.")


def test_transcription_is_trimmed() -> None:
    request = prompts.build_structuring_prompt("  \n Pouls 88. \n")
    assert request.user_prompt.endswith("Pouls 88.")


@pytest.mark.parametrize("text", ["", "   ", None])
def test_empty_transcription_is_invalid(text) -> None:
    with pytest.raises(InvalidInput):
        prompts.build_structuring_prompt(text)
