"""Pluggy hook specifications for bbservices lifecycle events.

Events are dispatched synchronously on the calling thread, after the
service's outcome has been fixed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from bbservices.chain import ServiceChain
    from bbservices.service import Service

hookspec = pluggy.HookspecMarker("bbservices")


class BBServicesHookSpec:
    """Hook specifications for the bbservices plugin system."""

    @hookspec
    def post_run(self, service: Service, unsafe: bool) -> None:
        """Called after ``run``/``run_unsafe`` has determined the outcome.

        For ``run_unsafe`` this fires before a captured error is re-raised.
        """

    @hookspec
    def post_chain_step(
        self,
        chain: ServiceChain,
        step_index: int,
        service: Service,
    ) -> None:
        """Called after a chain step has been invoked and resolved.

        *chain* is the chain the step was appended to and *service* the new
        head produced by the step. Skipped steps do not fire this hook.
        """
