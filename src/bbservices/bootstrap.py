"""Opt-in process setup: logging, telemetry, and plugins.

Importing bbservices has no side effects. Applications call
:func:`configure` once at startup; the CLI does so for every invocation.
"""

from __future__ import annotations

import logging

from bbservices.config.logging import configure_logging
from bbservices.config.settings import BBServicesSettings
from bbservices.plugins.builtins.failure_log import FailureLogPlugin
from bbservices.plugins.manager import get_plugin_manager
from bbservices.telemetry import disable_telemetry, enable_telemetry

logger = logging.getLogger(__name__)


def configure(settings: BBServicesSettings | None = None) -> BBServicesSettings:
    """Apply *settings* (loaded from env/TOML when omitted) to the process.

    Returns the settings that were applied.
    """
    if settings is None:
        settings = BBServicesSettings.load()

    configure_logging(
        verbose=settings.verbose, log_json=settings.log_json, log_spans=settings.log_spans
    )

    # Spans only exist while telemetry is on.
    if settings.telemetry or settings.log_spans:
        enable_telemetry()
    else:
        disable_telemetry()

    pm = get_plugin_manager()
    if settings.log_failures:
        pm.register_plugin(FailureLogPlugin(), name="failure_log")
    if settings.load_plugins and not pm.is_loaded:
        loaded = pm.discover_and_load()
        logger.debug("Plugins loaded: %s", ", ".join(loaded) or "none")

    return settings
