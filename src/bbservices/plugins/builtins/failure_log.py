"""Failure logging plugin — reports failed service runs.

Registered by ``bbservices.bootstrap.configure`` when ``log_failures`` is
enabled. Successful runs are ignored.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from bbservices.plugins import hookimpl

if TYPE_CHECKING:
    from bbservices.service import Service

log = structlog.get_logger("bbservices.failures")


class FailureLogPlugin:
    """Log every failed run at WARNING with its first captured error."""

    @hookimpl
    def post_run(self, service: Service, unsafe: bool) -> None:
        if not service.failed:
            return
        error = service.first_error
        log.warning(
            "service.failed",
            service=type(service).__qualname__,
            unsafe=unsafe,
            error_type=type(error).__qualname__ if error is not None else None,
            error=str(error) if error is not None else None,
            error_count=len(service.errors),
        )
