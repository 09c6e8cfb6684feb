"""Tests for log routing of failure and span events."""

from __future__ import annotations

import json
import logging
from typing import Any

import pytest

from bbservices.config.logging import FAILURES_LOGGER, TELEMETRY_LOGGER, configure_logging
from bbservices.plugins.builtins.failure_log import FailureLogPlugin
from bbservices.plugins.manager import PluginManager
from bbservices.service import Service
from bbservices.telemetry import enable_telemetry, get_current_span


class ChargeCard(Service):
    def on_run(self) -> None:
        raise PermissionError("card declined")

    def on_run_unsafe(self) -> None:
        return self.on_run()


class Reconcile(Service):
    def on_run(self) -> None:
        span = get_current_span()
        if span is not None:
            span.annotate("children", 2)

    def on_run_unsafe(self) -> None:
        return self.on_run()


def _events(err: str) -> list[dict[str, Any]]:
    return [json.loads(line) for line in err.splitlines() if line.strip()]


class TestLoggerLevels:
    def test_quiet_defaults(self) -> None:
        configure_logging()
        assert logging.getLogger("bbservices").level == logging.WARNING
        assert logging.getLogger(FAILURES_LOGGER).level == logging.WARNING
        assert logging.getLogger(TELEMETRY_LOGGER).level == logging.WARNING
        assert logging.getLogger().level == logging.WARNING

    def test_log_spans_only_opens_telemetry_logger(self) -> None:
        configure_logging(log_spans=True)
        assert logging.getLogger(TELEMETRY_LOGGER).level == logging.DEBUG
        assert logging.getLogger("bbservices").level == logging.WARNING

    def test_verbose_keeps_failures_at_warning(self) -> None:
        configure_logging(verbose=True)
        assert logging.getLogger("bbservices").level == logging.DEBUG
        assert logging.getLogger(TELEMETRY_LOGGER).level == logging.DEBUG
        assert logging.getLogger(FAILURES_LOGGER).level == logging.WARNING

    def test_reconfigure_replaces_handler(self) -> None:
        configure_logging(log_json=False)
        configure_logging(log_json=True)
        assert len(logging.getLogger().handlers) == 1


class TestFailureEvents:
    def test_failed_run_rendered_as_json(
        self, plugin_manager: PluginManager, capfd: pytest.CaptureFixture[str]
    ) -> None:
        configure_logging(log_json=True)
        plugin_manager.register_plugin(FailureLogPlugin(), name="failure_log")

        ChargeCard().run()

        (event,) = [e for e in _events(capfd.readouterr().err) if e["event"] == "service.failed"]
        assert event["logger"] == FAILURES_LOGGER
        assert event["level"] == "warning"
        assert event["service"] == "ChargeCard"
        assert event["error_type"] == "PermissionError"
        assert event["error"] == "card declined"
        assert event["unsafe"] is False
        assert "timestamp" in event

    def test_successful_run_logs_nothing(
        self, plugin_manager: PluginManager, capfd: pytest.CaptureFixture[str]
    ) -> None:
        configure_logging(log_json=True)
        plugin_manager.register_plugin(FailureLogPlugin(), name="failure_log")

        Reconcile().run()

        assert capfd.readouterr().err == ""

    def test_absorbed_error_traceback_when_verbose(
        self, capfd: pytest.CaptureFixture[str]
    ) -> None:
        configure_logging(verbose=True, log_json=True)

        ChargeCard().run()

        (event,) = [
            e for e in _events(capfd.readouterr().err) if e["logger"] == "bbservices.service"
        ]
        assert event["level"] == "debug"
        assert "ChargeCard.run captured PermissionError" in event["event"]
        assert "card declined" in event["exception"]


class TestSpanEvents:
    def test_root_span_logged_with_nested_annotations(
        self, capfd: pytest.CaptureFixture[str]
    ) -> None:
        configure_logging(log_json=True, log_spans=True)
        enable_telemetry()

        assert Reconcile().run().successful

        (event,) = _events(capfd.readouterr().err)
        assert event["event"] == "span.complete"
        assert event["logger"] == TELEMETRY_LOGGER
        assert event["span_name"] == "Reconcile.run"
        assert event["children"] == 0
        assert event["annotations"] == {"children": 2, "ok": True}

    def test_span_events_suppressed_without_log_spans(
        self, capfd: pytest.CaptureFixture[str]
    ) -> None:
        configure_logging(log_json=True)
        enable_telemetry()

        Reconcile().run()

        assert capfd.readouterr().err == ""
