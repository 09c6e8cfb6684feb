"""Plugin system — pluggy-based lifecycle events for services and chains."""

from __future__ import annotations

import pluggy

hookimpl = pluggy.HookimplMarker("bbservices")

__all__ = ["hookimpl"]
