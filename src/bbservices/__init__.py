"""bbservices — lightweight service objects with chaining.

Public API::

    from bbservices import Outcome, Service, ServiceChain
"""

from __future__ import annotations

from bbservices.chain import ServiceChain, StepFn
from bbservices.errors import (
    ChainingPreconditionError,
    InvalidStepResultError,
    ServiceContractError,
    UnimplementedError,
)
from bbservices.outcome import Outcome, ServiceState
from bbservices.result import CapturedError, ServiceResult
from bbservices.service import Service

__version__ = "1.0.0"

__all__ = [
    "CapturedError",
    "ChainingPreconditionError",
    "InvalidStepResultError",
    "Outcome",
    "Service",
    "ServiceChain",
    "ServiceContractError",
    "ServiceResult",
    "ServiceState",
    "StepFn",
    "UnimplementedError",
    "__version__",
]
