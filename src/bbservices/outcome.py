"""Hook outcomes and the service execution lifecycle.

Hooks report success through their return value:

- ``None`` or :attr:`Outcome.UNSPECIFIED`: no opinion, defaults to success.
- :attr:`Outcome.SUCCESS` / :attr:`Outcome.FAILURE`: explicit outcome.
- Any other value: its truthiness decides (``True``/``False`` included).

The execution lifecycle is computed by the service itself, never set from
outside. Terminal states are re-enterable: running a service again is not
guarded against.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class Outcome(StrEnum):
    """Explicit return values for ``on_run`` / ``on_run_unsafe`` hooks."""

    SUCCESS = "success"
    FAILURE = "failure"
    UNSPECIFIED = "unspecified"


class ServiceState(StrEnum):
    """Execution state of a single service instance."""

    NOT_RUN = "not_run"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


STATE_TRANSITIONS: dict[str, list[str]] = {
    "not_run": ["running"],
    "running": ["succeeded", "failed"],
    "succeeded": ["running"],  # re-runnable
    "failed": ["running"],  # re-runnable
}


def is_valid_transition(
    current: str,
    target: str,
    transitions: dict[str, list[str]] = STATE_TRANSITIONS,
) -> bool:
    """Check if transitioning from *current* to *target* is allowed."""
    allowed = transitions.get(current, [])
    return target in allowed


def resolve_outcome(value: Any) -> bool:
    """Convert a hook's return value into a success flag."""
    if value is None or value is Outcome.UNSPECIFIED:
        return True
    if isinstance(value, Outcome):
        return value is Outcome.SUCCESS
    return bool(value)
