"""Programmer-contract errors raised by the service core.

INVARIANT: these errors always propagate. ``Service.run`` captures errors
raised by user hooks, but a :class:`ServiceContractError` escapes even the
safe execution mode.
"""

from __future__ import annotations

from typing import Any


class ServiceContractError(Exception):
    """Base class for misuse of the service or chain API."""


class ChainingPreconditionError(ServiceContractError):
    """Raised when ``then`` is called on a service that has not run."""

    def __init__(self, message: str = "Service must run before chaining") -> None:
        super().__init__(message)


class UnimplementedError(ServiceContractError, NotImplementedError):
    """Raised when a subclass calls into a hook it never implemented."""


class InvalidStepResultError(ServiceContractError, TypeError):
    """Raised when a chain step returns neither a Service nor a ServiceChain."""

    def __init__(self, result: Any) -> None:
        self.result = result
        super().__init__(
            f"Chain step must return a Service or ServiceChain, got {type(result).__name__}"
        )
