"""Shared pytest fixtures for bbservices tests."""

from __future__ import annotations

import logging
from collections.abc import Generator

import pytest
from click.testing import CliRunner

from bbservices.plugins.manager import PluginManager, set_plugin_manager
from bbservices.telemetry import _current_span, disable_telemetry


@pytest.fixture(autouse=True)
def _reset_runtime_state() -> Generator[None]:
    """Give every test a fresh plugin manager and disabled telemetry."""
    set_plugin_manager(None)
    disable_telemetry()
    yield
    set_plugin_manager(None)
    disable_telemetry()
    _current_span.set(None)


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """Restore root logger state after each test (the CLI reconfigures it)."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    names = ("bbservices", "bbservices.failures", "bbservices.telemetry")
    levels = {name: logging.getLogger(name).level for name in names}
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    for name, level in levels.items():
        logging.getLogger(name).setLevel(level)


@pytest.fixture
def plugin_manager() -> PluginManager:
    """A fresh PluginManager installed as the process-wide default."""
    pm = PluginManager()
    set_plugin_manager(pm)
    return pm


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()
