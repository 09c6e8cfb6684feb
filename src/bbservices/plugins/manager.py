"""Plugin discovery, registration, and event dispatch.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints.
A process-wide default manager is used by services to dispatch lifecycle
events; tests and embedding applications can swap it out.

INVARIANT: Plugin failures are logged, never raised.
"""

from __future__ import annotations

import logging
from typing import Any

import pluggy

from bbservices.plugins.hookspecs import BBServicesHookSpec

PROJECT_NAME = "bbservices"
ENTRY_POINT_GROUP = "bbservices.plugins"

logger = logging.getLogger(__name__)


class PluginManager:
    """Manages plugin discovery, loading, and hook dispatch."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(BBServicesHookSpec)
        self._loaded: bool = False

    def discover_and_load(self) -> list[str]:
        """Load plugins registered under the ``bbservices.plugins`` entry point group.

        Returns a list of registered plugin names.
        """
        self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        self._loaded = True
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a plugin instance directly (e.g. built-in plugins)."""
        resolved_name = name or plugin.__class__.__name__
        if self._pm.has_plugin(resolved_name):
            logger.debug("Plugin already registered: %s", resolved_name)
            return
        self._pm.register(plugin, name=resolved_name)
        logger.debug("Registered plugin: %s", resolved_name)

    def unregister(self, plugin: object) -> None:
        """Unregister a plugin instance."""
        self._pm.unregister(plugin)

    @property
    def is_loaded(self) -> bool:
        """Whether discover_and_load() has been called."""
        return self._loaded

    @property
    def hook(self) -> pluggy.HookRelay:
        """Access the hook relay for dispatching events."""
        return self._pm.hook

    def get_plugins(self) -> list[object]:
        """Return all registered plugins."""
        return list(self._pm.get_plugins())

    def list_plugin_names(self) -> list[str]:
        """Return names of all registered plugins."""
        return [self._pm.get_name(p) or p.__class__.__name__ for p in self._pm.get_plugins()]

    def dispatch(self, hook_name: str, **payload: Any) -> bool:
        """Call *hook_name* on every registered plugin.

        Returns True if all implementations ran, False if one of them raised.
        """
        hook = getattr(self._pm.hook, hook_name)
        try:
            hook(**payload)
        except Exception:
            logger.debug("Plugin hook %s failed", hook_name, exc_info=True)
            return False
        return True


_default_manager: PluginManager | None = None


def get_plugin_manager() -> PluginManager:
    """Return the process-wide plugin manager, creating it on first use."""
    global _default_manager
    if _default_manager is None:
        _default_manager = PluginManager()
    return _default_manager


def set_plugin_manager(manager: PluginManager | None) -> None:
    """Replace the process-wide plugin manager (None resets to a fresh one)."""
    global _default_manager
    _default_manager = manager


def dispatch_event(hook_name: str, **payload: Any) -> bool:
    """Dispatch a lifecycle event through the process-wide manager."""
    return get_plugin_manager().dispatch(hook_name, **payload)
