"""Idempotent plugin application over the host build model."""

from __future__ import annotations

from .host import HostProject
from .logging import get_logger


class PluginApplier:
    """The only component allowed to change which plugins a host project has."""

    def __init__(self, host: HostProject) -> None:
        self._host = host
        self.logger = get_logger("plugins")

    def ensure_plugin_applied(self, plugin_id: str, *, owner: str | None = None) -> bool:
        """Apply ``plugin_id`` unless the host already has it. Returns True when applied."""
        if self._host.is_plugin_applied(plugin_id):
            self.logger.debug("Plugin [%s] already applied to %s", plugin_id, self._host.name)
            return False
        self.logger.info(
            "Applying plugin [%s] to %s%s",
            plugin_id,
            self._host.name,
            f" for {owner}" if owner else "",
        )
        self._host.apply_plugin(plugin_id)
        return True

    def is_applied(self, plugin_id: str) -> bool:
        return self._host.is_plugin_applied(plugin_id)


__all__ = ["PluginApplier"]
