"""Tool and plugin interfaces plus the process-wide plugin registry."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod

from nanocode.types import ToolContext, ToolParameters, ToolResult


class Tool(ABC):
    """A capability the agent can invoke."""

    @abstractmethod
    def name(self) -> str:
        """Unique name of the tool."""

    @abstractmethod
    def description(self) -> str:
        """Human-readable description of what the tool does."""

    @abstractmethod
    def parameters(self) -> ToolParameters:
        """JSON schema of the parameters the tool accepts."""

    @abstractmethod
    async def execute(self, ctx: ToolContext, params: ToolParameters) -> ToolResult:
        """Run the tool and report its outcome."""


class Plugin(ABC):
    """A collection of related tools."""

    @abstractmethod
    def name(self) -> str:
        """Unique name of the plugin."""

    @abstractmethod
    def version(self) -> str:
        """Version string of the plugin."""

    @abstractmethod
    def tools(self) -> list[Tool]:
        """All tools provided by the plugin."""


_registry: list[Plugin] = []
_registry_lock = threading.Lock()


def register_plugin(plugin: Plugin) -> Plugin:
    """Add ``plugin`` to the registry and return it."""
    if not isinstance(plugin, Plugin):
        raise TypeError(f"expected a Plugin, got {type(plugin).__name__}")
    with _registry_lock:
        if plugin not in _registry:
            _registry.append(plugin)
    return plugin


def registered_plugins() -> tuple[Plugin, ...]:
    """All registered plugins in registration order."""
    with _registry_lock:
        return tuple(_registry)


def all_tools() -> list[Tool]:
    """Every tool of every registered plugin."""
    return [tool for plugin in registered_plugins() for tool in plugin.tools()]