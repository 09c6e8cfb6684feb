"""ServiceResult and CapturedError — serializable service snapshots.

A :class:`~bbservices.service.Service` keeps live exception objects in
``errors``. ``to_result()`` freezes that state into these models so the CLI,
logs, and any other interface can report it without holding on to the
service instance.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class CapturedError(BaseModel):
    """Structured view of one exception captured during a run."""

    model_config = {"frozen": True}

    type: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: BaseException) -> CapturedError:
        detail: dict[str, Any] = {}
        if exc.__cause__ is not None:
            detail["cause"] = f"{type(exc.__cause__).__name__}: {exc.__cause__}"
        return cls(type=type(exc).__qualname__, message=str(exc), detail=detail)


class ServiceResult(BaseModel):
    """Snapshot of a service (or a chain's head) after execution.

    Attributes:
        ok: Whether the service completed successfully.
        op: Name of the service class (e.g. ``"CreateUser"``).
        state: Lifecycle state at snapshot time.
        ran: Whether execution was ever attempted.
        errors: Captured errors in capture order.
        meta: Optional metadata (telemetry, chain statistics).
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    state: str
    ran: bool
    errors: list[CapturedError] = Field(default_factory=list)
    meta: dict[str, Any] | None = None

    @property
    def error(self) -> CapturedError | None:
        """First captured error, or None."""
        return self.errors[0] if self.errors else None
