"""Plugin discovery and hook dispatch.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any

import pluggy

from notepress.plugins.hookspecs import NotepressHookSpec

PROJECT_NAME = "notepress"

logger = logging.getLogger(__name__)


class PluginManager:
    """Manages plugin discovery, loading, and hook dispatch."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(NotepressHookSpec)

    def discover_and_load(self) -> list[str]:
        """Load plugins from the ``notepress.plugins`` entry point group.

        Returns a list of loaded plugin names.
        """
        self._pm.load_setuptools_entrypoints("notepress.plugins")
        self._normalize_plugin_instances()
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a plugin instance directly."""
        resolved_name = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved_name)
        logger.debug("Registered plugin: %s", resolved_name)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    def list_plugin_names(self) -> list[str]:
        return [self._pm.get_name(p) or p.__class__.__name__ for p in self._pm.get_plugins()]

    def notify(self, hook_name: str, **payload: Any) -> list[str]:
        """Fire a notification hook.

        INVARIANT: Plugin failures are warnings, never errors.
        Returns the warnings produced.
        """
        hook_fn = getattr(self._pm.hook, hook_name)
        try:
            hook_fn(**payload)
        except Exception:
            logger.warning("Plugin hook %s failed", hook_name, exc_info=True)
            return [f"Plugin hook {hook_name} failed"]
        return []

    def _normalize_plugin_instances(self) -> None:
        """Replace registered plugin classes with instantiated objects.

        Entry-point loading may register a plugin class directly. Hook dispatch
        against class objects leaves ``self`` unbound and fails at runtime.
        """
        for plugin in list(self._pm.get_plugins()):
            if not inspect.isclass(plugin):
                continue
            plugin_name = self._pm.get_name(plugin) or plugin.__name__
            self._pm.unregister(plugin)
            try:
                instance = plugin()
            except Exception:
                logger.warning(
                    "Failed to instantiate entry-point plugin %s",
                    plugin_name,
                    exc_info=True,
                )
                continue
            self._pm.register(instance, name=plugin_name)
            logger.debug("Instantiated entry-point plugin: %s", plugin_name)
