import asyncio
import io

import pytest

from nanocode.headless import HeadlessUi, format_message
from nanocode.messaging import (
    AgentError,
    Request,
    Response,
    Shutdown,
    SpawnChild,
    Thinking,
    TokenUsage,
    TokenUsageUpdate,
    ToolCallLog,
    ToolResultLog,
)
from nanocode.token_stats import TokenStatsRecorder
from nanocode.types import ToolResult
from nanocode.ui_base import UiChannels


def _no_child(name, description, system_prompt):
    raise AssertionError("no child expected")


def _drain(queue):
    items = []
    while not queue.empty():
        items.append(queue.get_nowait())
    return items


def _make(messages, **kwargs):
    agent_tx, channels = UiChannels.create()
    for msg in messages:
        agent_tx.put_nowait(msg)
    out, err = io.StringIO(), io.StringIO()
    kwargs.setdefault("spawn_child", _no_child)
    ui = HeadlessUi(channels, out=out, err=err, **kwargs)
    return ui, channels, out, err


def test_format_tool_call_is_gray():
    assert format_message(ToolCallLog("call")) == "\x1b[90mcall\x1b[0m"


def test_format_error_tool_result_is_red():
    assert format_message(ToolResultLog("Error: x")) == "\x1b[91mError: x\x1b[0m"
    assert format_message(ToolResultLog("fine")) == "\x1b[90mfine\x1b[0m"


def test_format_thinking_and_usage():
    assert format_message(Thinking("hmm")) == "\x1b[90mThinking: hmm\x1b[0m"
    usage = TokenUsage(prompt_tokens=1, completion_tokens=2, total_tokens=3)
    assert (
        format_message(TokenUsageUpdate(usage))
        == "Tokens used: prompt: 1, completion: 2, total: 3"
    )


def test_format_spawn_child():
    msg = SpawnChild(name="explorer", description="look around")
    assert format_message(msg) == "\x1b[90mSpawning child agent explorer: look around\x1b[0m"


@pytest.mark.asyncio
async def test_agent_rx_and_tx_are_channel_queues():
    ui, channels, _, _ = _make([], prompt="hi", base_cid=1)
    assert ui.agent_rx() is channels.agent_to_ui_rx
    assert ui.agent_tx() is channels.ui_to_agent_tx


@pytest.mark.asyncio
async def test_run_with_prompt_prints_response_and_shuts_down():
    ui, channels, out, _ = _make(
        [ToolCallLog("call"), Response("done")], prompt="hi", base_cid=1
    )
    await ui.run()
    lines = out.getvalue().splitlines()
    assert lines == ["\x1b[90mcall\x1b[0m", "done"]
    assert _drain(channels.ui_to_agent_tx) == [Request("hi"), Shutdown()]


@pytest.mark.asyncio
async def test_blank_prompt_exits_without_sending():
    ui, channels, out, _ = _make([], prompt="   ", base_cid=1)
    await ui.run()
    assert out.getvalue() == "No input provided. Exiting.\n"
    assert channels.ui_to_agent_tx.empty()


@pytest.mark.asyncio
async def test_input_reader_used_without_prompt():
    ui, channels, out, _ = _make(
        [Response("ok")], base_cid=1, input_reader=lambda: "from stdin"
    )
    await ui.run()
    assert _drain(channels.ui_to_agent_tx)[0] == Request("from stdin")
    assert out.getvalue().splitlines()[-1] == "ok"


@pytest.mark.asyncio
async def test_input_reader_failure_propagates():
    def reader():
        raise EOFError("No input provided")

    ui, channels, _, _ = _make([], base_cid=1, input_reader=reader)
    with pytest.raises(EOFError):
        await ui.run()
    assert channels.ui_to_agent_tx.empty()


@pytest.mark.asyncio
async def test_agent_error_goes_to_both_streams():
    ui, _, out, err = _make([AgentError("boom")], prompt="hi", base_cid=1)
    await ui.run()
    assert err.getvalue() == "boom\n"
    assert out.getvalue().splitlines()[-1] == "boom"


@pytest.mark.asyncio
async def test_spawn_child_runs_inline_and_delivers_result():
    seen = {}
    spawn = SpawnChild(name="explorer", description="task", system_prompt="be brief")

    def run_child(name, description, system_prompt):
        seen["args"] = (name, description, system_prompt)
        seen["depth"] = ui.stack_depth
        return ToolResult.success("child output")

    ui, _, out, _ = _make(
        [spawn, Response("done")], prompt="hi", base_cid=1, spawn_child=run_child
    )
    await ui.run()
    assert seen["args"] == ("explorer", "task", "be brief")
    assert seen["depth"] == 2
    assert ui.stack_depth == 1
    assert spawn.result.result() == ToolResult.success("child output")
    assert out.getvalue().splitlines()[-1] == "done"


@pytest.mark.asyncio
async def test_async_spawn_child_supported():
    spawn = SpawnChild(name="generalist", description="task")

    async def run_child(name, description, system_prompt):
        await asyncio.sleep(0)
        return ToolResult.success(description.upper())

    ui, _, _, _ = _make(
        [spawn, Response("done")], prompt="hi", base_cid=1, spawn_child=run_child
    )
    await ui.run()
    assert spawn.result.result().output == "TASK"


@pytest.mark.asyncio
async def test_failing_child_reports_error():
    spawn = SpawnChild(name="explorer", description="task")

    def run_child(name, description, system_prompt):
        raise RuntimeError("cannot start")

    ui, _, _, _ = _make(
        [spawn, Response("done")], prompt="hi", base_cid=1, spawn_child=run_child
    )
    await ui.run()
    result = spawn.result.result()
    assert not result.is_success
    assert "cannot start" in result.error_message
    assert result.error_message.startswith("Child agent failed: ")


@pytest.mark.asyncio
async def test_token_usage_recorded_and_saved(tmp_path):
    stats_file = tmp_path / "stats.jsonl"
    recorder = TokenStatsRecorder(stats_file)
    usage = TokenUsage(prompt_tokens=1, completion_tokens=2, total_tokens=3)
    ui, _, out, _ = _make(
        [TokenUsageUpdate(usage), TokenUsageUpdate(usage), Response("done")],
        prompt="hi",
        base_cid=7,
        token_stats=recorder,
    )
    await ui.run()
    assert recorder.current == {7: 6}
    text = out.getvalue()
    assert "Tokens used: prompt: 1, completion: 2, total: 3" in text
    assert "x: tokens consumed per context  |  y: number of contexts" in text
    assert TokenStatsRecorder(stats_file).historical == [6]