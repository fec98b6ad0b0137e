import asyncio

import pytest

from nanocode.plugin import (
    Plugin,
    Tool,
    all_tools,
    register_plugin,
    registered_plugins,
)
from nanocode.types import ToolContext, ToolResult


class _TestTool(Tool):
    def name(self):
        return "test"

    def description(self):
        return "test tool"

    def parameters(self):
        return {}

    async def execute(self, ctx, params):
        return ToolResult.success("test")


class _TestPlugin(Plugin):
    def __init__(self):
        self._tool = _TestTool()

    def name(self):
        return "test-plugin"

    def version(self):
        return "0.1.0"

    def tools(self):
        return [self._tool]


def test_tool_trait_methods():
    plugin = register_plugin(_TestPlugin())
    found = [tool for tool in all_tools() if tool is plugin.tools()[0]]
    assert len(found) == 1
    tool = found[0]
    assert tool.name() == "test"
    assert tool.description() == "test tool"
    assert tool.parameters() == {}


def test_tool_execute():
    result = asyncio.run(_TestTool().execute(ToolContext(), {}))
    assert result.is_success
    assert result.output == "test"


def test_abstract_tool_cannot_be_instantiated():
    with pytest.raises(TypeError):
        Tool()


def test_register_plugin_exposes_tools():
    plugin = _TestPlugin()
    assert register_plugin(plugin) is plugin
    assert plugin in registered_plugins()
    assert plugin.tools()[0] in all_tools()


def test_register_plugin_is_idempotent():
    plugin = _TestPlugin()
    register_plugin(plugin)
    register_plugin(plugin)
    assert registered_plugins().count(plugin) == 1


def test_register_rejects_non_plugin():
    with pytest.raises(TypeError):
        register_plugin(object())