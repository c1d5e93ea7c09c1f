"""Tests for structured logging helpers."""

from __future__ import annotations

import io
import json
import logging
import sys
from collections.abc import Iterator
from dataclasses import dataclass

import pytest

from qsign import logging_pipeline
from qsign.descriptors import TypeDescriptorCache
from qsign.exceptions import GeneratorError
from qsign.settings import QsignSettings
from qsign.signer import DigestOptions, Signer


@dataclass
class Ping:
    host: str = ""
    port: int = 0


@pytest.fixture
def package_logger() -> Iterator[logging.Logger]:
    """Restore the package logger after each test."""

    logger = logging.getLogger("qsign")
    handlers = list(logger.handlers)
    level = logger.level
    yield logger
    logger.handlers[:] = handlers
    logger.setLevel(level)


def _payloads(buffer: io.StringIO) -> list[dict[str, object]]:
    return [json.loads(line) for line in buffer.getvalue().splitlines() if line]


def test_configure_structured_logging_emits_json(package_logger: logging.Logger) -> None:
    buffer = io.StringIO()
    handler = logging_pipeline.configure_structured_logging(
        level=logging.DEBUG, stream=buffer
    )

    assert handler in package_logger.handlers
    TypeDescriptorCache().resolve(Ping)

    payloads = _payloads(buffer)
    miss = next(p for p in payloads if p["message"] == "Descriptor cache miss")
    assert miss["level"] == "DEBUG"
    assert miss["logger"] == "qsign.descriptors"
    assert miss["context"] == {
        "shape": "Ping",
        "field_count": 2,
        "cache_event": "miss",
    }
    assert "timestamp" in miss


def test_level_comes_from_settings(package_logger: logging.Logger) -> None:
    buffer = io.StringIO()
    logging_pipeline.configure_structured_logging(
        settings=QsignSettings(log_level="error"), stream=buffer
    )

    assert package_logger.level == logging.ERROR
    TypeDescriptorCache().resolve(Ping)
    assert buffer.getvalue() == ""


def test_generator_failure_is_logged_without_values(
    package_logger: logging.Logger,
) -> None:
    buffer = io.StringIO()
    logging_pipeline.configure_structured_logging(level=logging.DEBUG, stream=buffer)

    def broken() -> str:
        raise RuntimeError("secret-backend down")

    signer = Signer(DigestOptions(suffix_generator=broken), cache=TypeDescriptorCache())
    with pytest.raises(GeneratorError):
        signer.digest(Ping(host="example.org", port=443))

    failure = next(
        p for p in _payloads(buffer) if p["message"] == "Digest generator failed"
    )
    assert failure["context"] == {"stage": "suffix", "partial_length": 25}
    assert "example.org" not in buffer.getvalue()


def test_json_formatter_includes_exception() -> None:
    formatter = logging_pipeline.JsonFormatter()
    try:
        raise ValueError("bad input")
    except ValueError:
        record = logging.LogRecord(
            "qsign.test", logging.ERROR, __file__, 1, "failed", None, sys.exc_info()
        )

    payload = json.loads(formatter.format(record))
    assert payload["message"] == "failed"
    assert payload["context"] == {}
    assert "ValueError: bad input" in payload["exception"]
