"""
Tests for the logging module.

Tests verify:
- configure_logging renders JSON with ECS field names
- events below the configured level are dropped
"""

import json
import logging

import pytest
import structlog

from edgecache.core.logging import configure_logging, get_logger


@pytest.fixture(autouse=True)
def _reset_structlog(caplog):
    caplog.set_level(logging.DEBUG)
    yield
    structlog.reset_defaults()


def _json_events(caplog) -> list[dict]:
    return [json.loads(message) for message in caplog.messages if message.startswith("{")]


class TestConfigureLogging:
    def test_json_output_has_ecs_fields(self, caplog):
        configure_logging(level="INFO", json_format=True, service="orders-api")

        get_logger("edgecache.test").info("cache_hit", key="GET|/a|{}|{}|{}")

        event = next(e for e in _json_events(caplog) if e["event"] == "cache_hit")
        assert event["key"] == "GET|/a|{}|{}|{}"
        assert event["service.name"] == "orders-api"
        assert event["log.level"] == "info"
        assert "@timestamp" in event

    def test_level_filtering(self, caplog):
        configure_logging(level="WARNING", json_format=True)

        log = get_logger("edgecache.test")
        log.info("cache_miss")
        log.warning("cache_backend_error")

        names = [e["event"] for e in _json_events(caplog)]
        assert "cache_miss" not in names
        assert "cache_backend_error" in names

    def test_console_renderer(self, caplog):
        configure_logging(level="INFO", json_format=False, add_timestamp=False)

        get_logger("edgecache.test").info("redis_connected")

        assert any("redis_connected" in message for message in caplog.messages)
