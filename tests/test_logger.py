"""Tests for the package logging helpers."""

import logging
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from soapie.config.logger import get_logger, log_stage, parse_level, truncate_for_log
from soapie.models.record import Vitals


@pytest.mark.parametrize("name, expected", [("debug", logging.DEBUG), (" WARNING ", logging.WARNING)])
def test_parse_level_known_names(name: str, expected: int) -> None:
    assert parse_level(name, logging.INFO) == (expected, True)


@pytest.mark.parametrize("name", ["", "loud", None])
def test_parse_level_falls_back_on_unknown_names(name) -> None:
    assert parse_level(name, logging.INFO) == (logging.INFO, False)


def test_loggers_live_under_the_package_root() -> None:
    assert get_logger("soapie.pipeline.retry").name == "soapie.pipeline.retry"
    assert get_logger("tests").name == "soapie.tests"
    assert get_logger().name == "soapie"


def test_truncate_for_log() -> None:
    assert truncate_for_log("abc", limit=5) == "abc"
    assert truncate_for_log("abcdefgh", limit=5) == "abcde ...[truncated 3 chars]"


def test_log_stage_dumps_models_and_marks_empty_output(caplog) -> None:
    caplog.set_level(logging.INFO, logger="soapie")
    logger = get_logger("soapie.tests")

    log_stage(logger, "vitals", Vitals(temperature="39,1"))
    log_stage(logger, "nothing", None)

    messages = [r.getMessage() for r in caplog.records]
    assert any('"temperature": "39,1"' in m for m in messages)
    assert "[nothing] output:\n[EMPTY]" in messages
