"""Telemetry primitives — Span, trace_span.

Near-zero overhead when disabled (single ContextVar.get per call).
When enabled, every service run builds a span; runs nested inside another
run (chain steps, services calling services) become child spans, giving a
hierarchical timing tree exported through ``ServiceResult.meta``.
"""

from __future__ import annotations

import time
from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any

import structlog

# ── Context variables ────────────────────────────────────────────────

_telemetry_enabled: ContextVar[bool] = ContextVar("_telemetry_enabled", default=False)
_current_span: ContextVar[Span | None] = ContextVar("_current_span", default=None)


# ── Span ─────────────────────────────────────────────────────────────


@dataclass
class Span:
    """Hierarchical timing span."""

    name: str
    parent: Span | None = None
    children: list[Span] = field(default_factory=list)
    start_time: float = field(default_factory=time.perf_counter)
    end_time: float | None = None
    annotations: dict[str, Any] = field(default_factory=dict)

    @property
    def duration_ms(self) -> float:
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time) * 1000

    def end(self) -> None:
        self.end_time = time.perf_counter()

    def annotate(self, key: str, value: Any) -> None:
        self.annotations[key] = value

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "duration_ms": round(self.duration_ms, 2),
        }
        if self.annotations:
            result["annotations"] = self.annotations
        if self.children:
            result["children"] = [c.to_dict() for c in self.children]
        return result


def _log_span(span: Span) -> None:
    log = structlog.get_logger("bbservices.telemetry")
    log.debug(
        "span.complete",
        span_name=span.name,
        duration_ms=round(span.duration_ms, 2),
        children=len(span.children),
        annotations=span.annotations,
    )


# ── trace_span context manager ───────────────────────────────────────


@contextmanager
def trace_span(name: str, *, root: bool = False) -> Generator[Span | None]:
    """Create a span under the current span.

    Without a current span, a new root span is started only when *root*
    is True. Yields None when telemetry is disabled.
    """
    if not _telemetry_enabled.get():
        yield None
        return

    parent = _current_span.get()
    if parent is None and not root:
        yield None
        return

    span = Span(name=name, parent=parent)
    if parent is not None:
        parent.children.append(span)

    token = _current_span.set(span)
    try:
        yield span
    finally:
        span.end()
        _current_span.reset(token)
        if parent is None:
            _log_span(span)


# ── Public helpers ───────────────────────────────────────────────────


def enable_telemetry() -> None:
    """Enable telemetry (called by ``bbservices.bootstrap.configure``)."""
    _telemetry_enabled.set(True)


def disable_telemetry() -> None:
    """Disable telemetry."""
    _telemetry_enabled.set(False)


def telemetry_enabled() -> bool:
    return _telemetry_enabled.get()


def get_current_span() -> Span | None:
    """Get the current active span (for manual annotation)."""
    if not _telemetry_enabled.get():
        return None
    return _current_span.get()
