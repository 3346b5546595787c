from __future__ import annotations

import logging

import pytest

from r2d2.errors.handling import log_error
from r2d2.errors.internal import (
    ConfigurationError,
    NetworkError,
    ParsingError,
    RateLimitContext,
    RateLimitError,
    SessionError,
)
from r2d2.logging_config import ErrorAggregator, LoggerConfigurator, error_aggregator
from r2d2.logs import EVENT_TEMPLATES, BotLogger, reload_event_templates
from r2d2.logs import logger as global_logger
from scripts.event_template_audit import diff


def test_templates_loaded():
    assert EVENT_TEMPLATES[("session", "ready")] == "🤖 Session ready"


def test_every_log_event_call_has_a_template():
    result = diff()
    assert result.missing == set()


def test_log_event_renders_template(caplog):
    caplog.set_level(logging.INFO)
    global_logger.log_event("auth", "confirmed", user="r2d2", attempts=2)
    assert any("Identified after 2 attempt(s)" in r.message for r in caplog.records)
    assert any("[r2d2" in r.message for r in caplog.records)


def test_unknown_event_gets_derived_text(caplog):
    caplog.set_level(logging.INFO)
    global_logger.log_event("nonexistent_domain", "some_event", foo=1)
    assert any("nonexistent domain: some event" in r.message for r in caplog.records)


def test_missing_template_field_falls_back_to_raw_template(caplog):
    caplog.set_level(logging.INFO)
    global_logger.log_event("auth", "confirmed")
    assert any("{attempts}" in r.message for r in caplog.records)


def test_debug_format_includes_event_name_and_context(caplog):
    test_logger = BotLogger("r2d2.test_debug")
    test_logger.set_level(logging.DEBUG)
    caplog.set_level(logging.DEBUG, logger="r2d2.test_debug")
    test_logger.log_event("transmit", "sent", level=logging.DEBUG, frames=2, length=400)
    message = caplog.records[-1].message
    assert message.startswith("transmit_sent")
    assert "frames=2" in message


def test_disabled_level_is_skipped(caplog):
    test_logger = BotLogger("r2d2.test_quiet")
    test_logger.set_level(logging.WARNING)
    caplog.set_level(logging.WARNING, logger="r2d2.test_quiet")
    test_logger.log_event("irc", "raw", level=logging.DEBUG, raw="PING")
    assert caplog.records == []


def test_reload_event_templates_from_custom_file(tmp_path):
    path = tmp_path / "templates.json"
    path.write_text('{"custom": {"thing": "custom thing happened"}}')
    try:
        reload_event_templates(path)
        assert EVENT_TEMPLATES == {("custom", "thing"): "custom thing happened"}
    finally:
        reload_event_templates()
    assert ("session", "ready") in EVENT_TEMPLATES


def test_reload_with_missing_file_records_load_error(tmp_path):
    try:
        reload_event_templates(tmp_path / "missing.json")
        assert ("app", "load_error") in EVENT_TEMPLATES
    finally:
        reload_event_templates()


@pytest.mark.parametrize(
    ("error", "category"),
    [
        (NetworkError("x"), "network"),
        (TimeoutError(), "network"),
        (RateLimitError("x", context=RateLimitContext(remaining=0, reset_at=None)), "ratelimit"),
        (ParsingError("x"), "parsing"),
        (ConfigurationError("x"), "config"),
        (SessionError("x"), "session"),
        (KeyError("x"), "unknown"),
    ],
)
def test_log_error_categories(caplog, error, category):
    caplog.set_level(logging.ERROR)
    log_error("Something failed", error, context={"k": "v"})
    message = caplog.records[-1].message
    assert message.startswith(f"[{category.upper()}] Something failed")
    assert "k=v" in message
    assert error_aggregator.get_error_summary()[category]["total_count"] >= 1


def test_error_aggregator_caps_history():
    aggregator = ErrorAggregator(max_per_type=3)
    for i in range(5):
        aggregator.record_error("network", f"e{i}")
    summary = aggregator.get_error_summary()
    assert summary["network"]["total_count"] == 3
    assert summary["network"]["last_occurrence"]["message"] == "e4"


def test_logger_configurator_levels(monkeypatch):
    monkeypatch.delenv("DEBUG", raising=False)
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        configurator = LoggerConfigurator()
        configurator.configure()
        assert root.level == logging.INFO
        configurator.set_debug(True)
        assert root.level == logging.DEBUG
        monkeypatch.setenv("DEBUG", "true")
        configurator.set_debug(False)
        assert root.level == logging.DEBUG
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
