"""Service — the lifecycle-managed unit of business logic.

A service wraps one piece of work behind a uniform lifecycle:

- ``run``: safe execution. Errors raised by the hook are captured in
  ``errors`` and never propagate.
- ``run_unsafe``: unsafe execution. Errors are captured identically, then
  re-raised to the caller.

Subclasses implement ``on_run`` and ``on_run_unsafe``. Both entry points
work on the class too, constructing the service first::

    class SendInvite(Service):
        def __init__(self, email: str) -> None:
            self.email = email

        def on_run(self) -> Outcome | None:
            mailer.send(self.email)

        def on_run_unsafe(self) -> Outcome | None:
            return self.on_run()

    invite = SendInvite.run("ada@example.com")
    invite.successful  # True

INVARIANT: ``has_run`` is set before any hook code executes and is never
reset. ``successful`` and ``failed`` are both False until a run completes.
"""

from __future__ import annotations

import functools
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from bbservices.errors import ChainingPreconditionError, ServiceContractError, UnimplementedError
from bbservices.outcome import Outcome, ServiceState, is_valid_transition, resolve_outcome
from bbservices.plugins.manager import dispatch_event
from bbservices.result import CapturedError, ServiceResult
from bbservices.telemetry import Span, trace_span

if TYPE_CHECKING:
    from bbservices.chain import ServiceChain, StepFn

logger = logging.getLogger(__name__)

CompletionCallback = Callable[["Service"], Any]


class _construct_or_call:  # noqa: N801
    """Method usable on both the class and an instance.

    On an instance it behaves like a normal method. On the class it builds
    the service from the given arguments and runs the method on it; the
    completion callback is passed as the ``on_complete`` keyword.
    """

    def __init__(self, func: Callable[..., Any]) -> None:
        self.func = func
        functools.update_wrapper(self, func)  # type: ignore[arg-type]

    def __get__(self, instance: Any, owner: type | None = None) -> Callable[..., Any]:
        if instance is not None:
            return self.func.__get__(instance, owner)
        if owner is None:
            raise TypeError(f"{self.func.__name__} needs an instance or an owner class")

        func = self.func
        service_cls = owner

        @functools.wraps(func)
        def construct_and_run(
            *args: Any, on_complete: CompletionCallback | None = None, **kwargs: Any
        ) -> Any:
            return func(service_cls(*args, **kwargs), on_complete)

        return construct_and_run


class Service(ABC):
    """Abstract base for all services.

    Subclasses define their own ``__init__`` for whatever state the work
    needs; calling ``super().__init__()`` is not required. Lifecycle state
    lives on the instance and is only mutated by ``run``/``run_unsafe``.
    """

    _ran: bool = False
    _succeeded: bool | None = None
    _state: ServiceState = ServiceState.NOT_RUN
    _errors: list[Exception] | None = None
    _span: Span | None = None

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    @_construct_or_call
    def run(self, on_complete: CompletionCallback | None = None) -> Service:
        """Run the service using safe execution.

        Errors raised by ``on_run`` mark the service failed and are recorded
        in ``errors``; they are never re-raised. *on_complete* is called with
        the service exactly once, after the outcome is fixed, on every exit
        path.
        """
        try:
            self._start()
            with trace_span(f"{type(self).__qualname__}.run", root=True) as span:
                try:
                    result = self.on_run()
                except ServiceContractError:
                    raise
                except Exception as exc:
                    logger.debug(
                        "%s.run captured %s",
                        type(self).__qualname__,
                        type(exc).__name__,
                        exc_info=True,
                    )
                    self._register_error(exc)
                    self._finish(False, span)
                else:
                    self._finish(resolve_outcome(result), span)
            dispatch_event("post_run", service=self, unsafe=False)
        finally:
            if on_complete is not None:
                on_complete(self)
        return self

    @_construct_or_call
    def run_unsafe(self, on_complete: CompletionCallback | None = None) -> Service:
        """Run the service using unsafe execution.

        Errors raised by ``on_run_unsafe`` are recorded exactly like ``run``
        does, then re-raised. *on_complete* is only called when the hook
        returns normally.
        """
        self._start()
        with trace_span(f"{type(self).__qualname__}.run_unsafe", root=True) as span:
            try:
                result = self.on_run_unsafe()
            except ServiceContractError:
                raise
            except Exception as exc:
                logger.debug(
                    "%s.run_unsafe re-raising %s", type(self).__qualname__, type(exc).__name__
                )
                self._register_error(exc)
                self._finish(False, span)
                dispatch_event("post_run", service=self, unsafe=True)
                raise
            self._finish(resolve_outcome(result), span)
        dispatch_event("post_run", service=self, unsafe=True)
        if on_complete is not None:
            on_complete(self)
        return self

    call = run
    call_unsafe = run_unsafe

    def then(self, step: StepFn) -> ServiceChain:
        """Start a chain seeded with this service.

        Raises:
            ChainingPreconditionError: The service has not been run.
        """
        if not self.has_run:
            raise ChainingPreconditionError()

        from bbservices.chain import ServiceChain

        return ServiceChain(self).then(step)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def has_run(self) -> bool:
        """Whether ``run``/``run_unsafe`` has been called at least once."""
        return self._ran

    @property
    def state(self) -> ServiceState:
        return self._state

    @property
    def successful(self) -> bool:
        """True only if a run completed successfully."""
        return self._succeeded is True

    succeeded = successful

    @property
    def failed(self) -> bool:
        """True only if a run completed unsuccessfully.

        Not the complement of ``successful``: both are False before a run.
        """
        return self._succeeded is False

    @property
    def errors(self) -> tuple[Exception, ...]:
        """Captured errors, oldest first. Accumulates across re-runs."""
        return tuple(self._errors or ())

    @property
    def has_error(self) -> bool:
        return bool(self._errors)

    @property
    def first_error(self) -> Exception | None:
        return self._errors[0] if self._errors else None

    def on_success(self, callback: Callable[[Service], Any]) -> Any:
        """Call *callback* with the service if it succeeded."""
        if self.successful:
            return callback(self)
        return None

    def on_failure(self, callback: Callable[[Service], Any]) -> Any:
        """Call *callback* with the service if it failed."""
        if self.failed:
            return callback(self)
        return None

    def on(
        self,
        success: Callable[[Service], Any] | None = None,
        failure: Callable[[Service], Any] | None = None,
    ) -> Any:
        """Dispatch to *success* or *failure*; neither if the service has no outcome."""
        if self.successful:
            return success(self) if success is not None else None
        if self.failed:
            return failure(self) if failure is not None else None
        return None

    def to_result(self) -> ServiceResult:
        """Freeze the current state into a :class:`ServiceResult`."""
        meta = {"telemetry": self._span.to_dict()} if self._span is not None else None
        return ServiceResult(
            ok=self.successful,
            op=type(self).__qualname__,
            state=str(self._state),
            ran=self._ran,
            errors=[CapturedError.from_exception(e) for e in self.errors],
            meta=meta,
        )

    def __repr__(self) -> str:
        return f"<{type(self).__qualname__} state={self._state.value} errors={len(self.errors)}>"

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    @abstractmethod
    def on_run(self) -> Outcome | bool | None:
        """Work performed by ``run``.

        Return None or ``Outcome.UNSPECIFIED`` for success, ``Outcome.FAILURE``
        or ``False`` for failure, or raise.
        """
        raise UnimplementedError(f"{type(self).__qualname__}.on_run must be implemented")

    @abstractmethod
    def on_run_unsafe(self) -> Outcome | bool | None:
        """Work performed by ``run_unsafe``. Same return contract as ``on_run``."""
        raise UnimplementedError(f"{type(self).__qualname__}.on_run_unsafe must be implemented")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _start(self) -> None:
        self._ran = True
        self._succeeded = None
        self._span = None
        self._transition(ServiceState.RUNNING)

    def _finish(self, successful: bool, span: Span | None) -> None:
        self._succeeded = successful
        self._transition(ServiceState.SUCCEEDED if successful else ServiceState.FAILED)
        if span is not None:
            span.annotate("ok", successful)
        self._span = span

    def _transition(self, target: ServiceState) -> None:
        if not is_valid_transition(self._state, target):
            # Hook re-entered run on its own instance, or a previous run
            # was aborted by a contract error.
            logger.debug("%r: unexpected transition to %s", self, target.value)
        self._state = target

    def _register_error(self, error: Exception) -> None:
        if self._errors is None:
            self._errors = []
        self._errors.append(error)
