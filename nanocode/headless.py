"""Headless interface: sends one prompt to the agent and prints what comes back."""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import sys
from collections.abc import Awaitable, Callable
from concurrent.futures import Future, InvalidStateError
from typing import Any, TextIO, Union

from nanocode.agent_stack import next_cid
from nanocode.messaging import (
    AgentError,
    AgentToUi,
    Request,
    Response,
    Shutdown,
    SpawnChild,
    Thinking,
    TokenUsageUpdate,
    ToolCallLog,
    ToolResultLog,
)
from nanocode.token_stats import TokenStatsRecorder
from nanocode.types import ToolResult
from nanocode.ui_base import Ui, UiChannels

_GRAY = "\x1b[90m"
_RED = "\x1b[91m"
_RESET = "\x1b[0m"

HeadlessSpawnFn = Callable[
    [str, str, Union[str, None]],
    Union[ToolResult, Awaitable[ToolResult]],
]
"""Run a child agent to completion given its name, task and optional system prompt."""


def _read_stdin_line() -> str:
    line = sys.stdin.readline()
    if not line:
        raise EOFError("No input provided")
    return line.rstrip("\r\n")


def format_message(msg: AgentToUi) -> str:
    """Terminal text printed for an agent message."""
    if isinstance(msg, ToolCallLog):
        return f"{_GRAY}{msg.text}{_RESET}"
    if isinstance(msg, ToolResultLog):
        colour = _RED if msg.text.startswith("Error:") else _GRAY
        return f"{colour}{msg.text}{_RESET}"
    if isinstance(msg, Thinking):
        return f"{_GRAY}Thinking: {msg.text}{_RESET}"
    if isinstance(msg, TokenUsageUpdate):
        usage = msg.usage
        return (
            f"Tokens used: prompt: {usage.prompt_tokens}, "
            f"completion: {usage.completion_tokens}, total: {usage.total_tokens}"
        )
    if isinstance(msg, SpawnChild):
        return f"{_GRAY}Spawning child agent {msg.name}: {msg.description}{_RESET}"
    return msg.text


def _deliver(slot: Future[ToolResult], result: ToolResult) -> None:
    try:
        slot.set_result(result)
    except InvalidStateError:
        pass


class HeadlessUi(Ui):
    """Runs a single request against the agent, printing progress to a stream."""

    def __init__(
        self,
        channels: UiChannels,
        spawn_child: HeadlessSpawnFn,
        prompt: str | None = None,
        base_cid: int | None = None,
        token_stats: TokenStatsRecorder | None = None,
        input_reader: Callable[[], str] | None = None,
        out: TextIO | None = None,
        err: TextIO | None = None,
    ) -> None:
        self.channels = channels
        self.spawn_child = spawn_child
        self.prompt = prompt
        self.base_cid = next_cid() if base_cid is None else base_cid
        self.token_stats = token_stats
        self.input_reader = input_reader or _read_stdin_line
        self.out = out
        self.err = err
        self.stack_depth = 1

    def agent_rx(self) -> asyncio.Queue[Any]:
        return self.channels.agent_to_ui_rx

    def agent_tx(self) -> asyncio.Queue[Any]:
        return self.channels.ui_to_agent_tx

    def _print(self, text: str) -> None:
        print(text, file=self.out if self.out is not None else sys.stdout)

    def _eprint(self, text: str) -> None:
        print(text, file=self.err if self.err is not None else sys.stderr)

    async def _run_child(
        self, name: str, description: str, system_prompt: str | None
    ) -> ToolResult:
        try:
            result = self.spawn_child(name, description, system_prompt)
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:
            return ToolResult.error(f"Child agent failed: {exc}")
        return result

    async def run(self) -> None:
        """Send the prompt (or a line of input) and print the agent's answer."""
        text, self.prompt = self.prompt, None
        if text is None:
            text = self.input_reader()

        if not text.strip():
            self._print("No input provided. Exiting.")
            return

        await self.send_to_agent(Request(text))

        final_response: str | None = None
        while True:
            msg = await self.recv_from_agent()
            if msg is None:
                break
            if isinstance(msg, Response):
                if self.stack_depth == 1:
                    final_response = msg.text
                    break
            elif isinstance(msg, AgentError):
                if self.stack_depth == 1:
                    self._eprint(msg.text)
                    final_response = msg.text
                    break
            elif isinstance(msg, TokenUsageUpdate):
                if self.token_stats is not None:
                    self.token_stats.add_tokens(self.base_cid, msg.usage.total_tokens)
                self._print(format_message(msg))
            elif isinstance(msg, SpawnChild):
                self._print(format_message(msg))
                self.stack_depth += 1
                try:
                    result = await self._run_child(
                        msg.name, msg.description, msg.system_prompt
                    )
                finally:
                    self.stack_depth -= 1
                _deliver(msg.result, result)
            else:
                self._print(format_message(msg))

        if final_response is not None:
            self._print(final_response)

        with contextlib.suppress(asyncio.QueueFull):
            self.try_send_to_agent(Shutdown())

        if self.token_stats is not None:
            self.token_stats.save()
            self._print(self.token_stats.render_histogram())