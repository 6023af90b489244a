"""
Unit tests for environment configuration and structured logging setup.
"""

import json
import logging

import pytest

from coldsign.core import config
from coldsign.core.config import ConfigurationError, _get_int_env
from coldsign.core.logging_config import get_logger, setup_logging


class TestIntEnv:
    def test_default_when_unset(self, monkeypatch):
        monkeypatch.delenv("COLDSIGN_TEST_INT", raising=False)
        assert _get_int_env("COLDSIGN_TEST_INT", 42) == 42

    def test_reads_value(self, monkeypatch):
        monkeypatch.setenv("COLDSIGN_TEST_INT", " 1200 ")
        assert _get_int_env("COLDSIGN_TEST_INT", 42) == 1200

    def test_not_an_integer(self, monkeypatch):
        monkeypatch.setenv("COLDSIGN_TEST_INT", "lots")
        with pytest.raises(ConfigurationError, match="must be an integer"):
            _get_int_env("COLDSIGN_TEST_INT", 42)

    def test_below_minimum(self, monkeypatch):
        monkeypatch.setenv("COLDSIGN_TEST_INT", "0")
        with pytest.raises(ConfigurationError, match=">= 1"):
            _get_int_env("COLDSIGN_TEST_INT", 42)


def test_defaults_are_sane():
    assert config.QR_FRAME_CAPACITY >= 1
    assert config.CBOR_MAX_DEPTH >= 1
    assert config.LOG_LEVEL in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@pytest.fixture
def json_logger(tmp_path):
    log_file = tmp_path / "logs" / "coldsign.json"
    logger = setup_logging(
        name="coldsign_logtest.wallet",
        log_file=str(log_file),
        level="DEBUG",
        environment="test",
        enable_console=False,
    )
    yield logger, log_file
    for handler in logger.handlers:
        handler.close()
    logger.handlers = []


def test_json_log_record(json_logger):
    logger, log_file = json_logger
    logger.warning("payload too large", extra={"event": "qr.frame_oversize", "payload_bytes": 4000})
    for handler in logger.handlers:
        handler.flush()

    record = json.loads(log_file.read_text(encoding="utf-8").strip().splitlines()[-1])
    assert record["message"] == "payload too large"
    assert record["event"] == "qr.frame_oversize"
    assert record["payload_bytes"] == 4000
    assert record["environment"] == "test"
    assert record["service"] == "coldsign_logtest"
    assert record["level"] == "warning"
    assert record["source"]["function"] == "test_json_log_record"
    assert "timestamp" in record


def test_setup_logging_replaces_handlers(json_logger):
    logger, log_file = json_logger
    again = setup_logging(name=logger.name, log_file=str(log_file), level="INFO", enable_console=False)
    assert again is logger
    assert len(logger.handlers) == 1
    assert logger.level == logging.INFO


def test_get_logger_keeps_existing_configuration(json_logger):
    logger, _ = json_logger
    assert get_logger(logger.name) is logger
    assert len(logger.handlers) == 1
