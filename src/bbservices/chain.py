"""ServiceChain — ordered, failure short-circuiting service pipelines.

Chains are evaluated eagerly: each ``then`` invokes its step right away if
the current head succeeded, and carries the head forward untouched if it
did not. The head of a chain is therefore always the most recent service,
or the first one that failed.

INVARIANT: ``then`` never mutates the receiver. Every call returns a new
chain, so a chain handed out to a caller stays as it was.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, TypeAlias

from bbservices.errors import InvalidStepResultError
from bbservices.plugins.manager import dispatch_event
from bbservices.result import ServiceResult
from bbservices.service import Service
from bbservices.telemetry import trace_span

logger = logging.getLogger(__name__)

StepFn: TypeAlias = Callable[[Service], "Service | ServiceChain"]


class ServiceChain:
    """A pipeline of steps, each producing the next service from the head.

    The chain proxies the query surface of its head service, so a chain
    can be inspected exactly like the service it resolved to.
    """

    def __init__(self, seed: Service) -> None:
        self._head = seed
        self._steps: tuple[StepFn, ...] = ()
        self._services: tuple[Service, ...] = (seed,)
        self._skipped = 0

    @classmethod
    def _derive(
        cls,
        head: Service,
        steps: tuple[StepFn, ...],
        services: tuple[Service, ...],
        skipped: int,
    ) -> ServiceChain:
        chain = cls.__new__(cls)
        chain._head = head
        chain._steps = steps
        chain._services = services
        chain._skipped = skipped
        return chain

    def then(self, step: StepFn) -> ServiceChain:
        """Return a new chain with *step* appended.

        The step receives the current head and must return a Service or a
        ServiceChain (whose head is taken). It is only invoked when the head
        succeeded.

        Raises:
            InvalidStepResultError: The step returned anything else.
        """
        step_index = len(self._steps)
        steps = (*self._steps, step)

        if not self._head.successful:
            logger.debug("Skipping chain step %d: head %r did not succeed", step_index, self._head)
            return self._derive(self._head, steps, self._services, self._skipped + 1)

        with trace_span(f"chain.step[{step_index}]") as span:
            head = _resolve_step_result(step(self._head))
            if span is not None:
                span.annotate("service", type(head).__qualname__)

        services = self._services
        if not any(s is head for s in services):
            services = (*services, head)

        chain = self._derive(head, steps, services, self._skipped)
        dispatch_event("post_chain_step", chain=chain, step_index=step_index, service=head)
        return chain

    # ------------------------------------------------------------------
    # Chain introspection
    # ------------------------------------------------------------------

    @property
    def head(self) -> Service:
        """The most recently resolved service."""
        return self._head

    @property
    def steps(self) -> tuple[StepFn, ...]:
        return self._steps

    @property
    def services(self) -> tuple[Service, ...]:
        """Distinct services resolved so far, seed first."""
        return self._services

    @property
    def skipped(self) -> int:
        """Number of steps that were not invoked because the head had failed."""
        return self._skipped

    # ------------------------------------------------------------------
    # Head proxy
    # ------------------------------------------------------------------

    @property
    def has_run(self) -> bool:
        return self._head.has_run

    @property
    def successful(self) -> bool:
        return self._head.successful

    succeeded = successful

    @property
    def failed(self) -> bool:
        return self._head.failed

    @property
    def errors(self) -> tuple[Exception, ...]:
        return self._head.errors

    @property
    def has_error(self) -> bool:
        return self._head.has_error

    @property
    def first_error(self) -> Exception | None:
        return self._head.first_error

    def on_success(self, callback: Callable[[Service], Any]) -> Any:
        return self._head.on_success(callback)

    def on_failure(self, callback: Callable[[Service], Any]) -> Any:
        return self._head.on_failure(callback)

    def on(
        self,
        success: Callable[[Service], Any] | None = None,
        failure: Callable[[Service], Any] | None = None,
    ) -> Any:
        return self._head.on(success=success, failure=failure)

    def to_result(self) -> ServiceResult:
        """Snapshot the head, with chain statistics merged into ``meta``."""
        result = self._head.to_result()
        chain_meta = {
            "chain": {
                "steps": len(self._steps),
                "skipped": self._skipped,
                "services": [type(s).__qualname__ for s in self._services],
            }
        }
        merged_meta = {**(result.meta or {}), **chain_meta}
        return result.model_copy(update={"meta": merged_meta})

    def __repr__(self) -> str:
        return f"<ServiceChain head={self._head!r} steps={len(self._steps)} skipped={self._skipped}>"


def _resolve_step_result(result: Any) -> Service:
    if isinstance(result, ServiceChain):
        return result.head
    if isinstance(result, Service):
        return result
    raise InvalidStepResultError(result)
