"""Interactive session: routes key events and agent messages through the agent stack."""

from __future__ import annotations

import asyncio
import inspect
import shutil
from collections.abc import Awaitable, Callable
from concurrent.futures import Future, InvalidStateError
from typing import Any, Union

from nanocode.agent_stack import AgentStack, next_cid
from nanocode.bottom_pane import BottomPane
from nanocode.event import Event, EventHandler, KeyCode, KeyEvent, TaskCompleted, Tick
from nanocode.log_view import Color, LogView, Span, compute_layout
from nanocode.messaging import (
    AgentError,
    AgentToUi,
    ChildResult,
    Request,
    Response,
    Shutdown,
    SpawnChild,
)
from nanocode.types import ToolResult
from nanocode.ui_base import Ui

ChildChannels = tuple[Any, Any]
SpawnChildFn = Callable[
    [str, Union[str, None], int],
    Union[ChildChannels, Awaitable[ChildChannels]],
]
"""Start a child agent given its name, optional system prompt and CID.

Returns the child's (ui-to-agent sender, agent-to-ui receiver) pair, or an
awaitable of it, and raises if the agent cannot be created.
"""


def _fit(text: str, width: int) -> str:
    return text[:width].ljust(width)


def _deliver(slot: Future[ToolResult], result: ToolResult) -> None:
    try:
        slot.set_result(result)
    except InvalidStateError:
        pass


class TuiSession(Ui):
    """Terminal session state: an agent stack, a scrollable log and an input pane."""

    def __init__(
        self,
        stack: AgentStack,
        log_view: LogView,
        bottom_pane: BottomPane,
        event_handler: EventHandler,
        spawn_child: SpawnChildFn,
        headless: bool = False,
    ) -> None:
        self.stack = stack
        self.log_view = log_view
        self.bottom_pane = bottom_pane
        self.event_handler = event_handler
        self.spawn_child = spawn_child
        self.headless = headless
        self.should_exit = False
        self.viewport_height = 0
        self.model = ""
        self.provider = ""
        self.agent_type = stack.stack_display()
        self.frame: list[str] = []
        self._sync_depth()

    # --- Ui interface -----------------------------------------------------

    def agent_rx(self) -> Any:
        rx = self.stack.current_rx()
        if rx is None:
            raise RuntimeError("agent stack is empty")
        return rx

    def agent_tx(self) -> Any:
        tx = self.stack.current_tx()
        if tx is None:
            raise RuntimeError("agent stack is empty")
        return tx

    def current_agent_name(self) -> str | None:
        return self.stack.current_name()

    async def next_user_event(self) -> Event | None:
        return await self.event_handler.next()

    # --- helpers ----------------------------------------------------------

    def _sync_depth(self) -> None:
        self.log_view.depth = len(self.stack)

    def _update_agent_type(self) -> None:
        self.agent_type = self.stack.stack_display()
        self._sync_depth()

    def _push_spans(self, spans: list[Span]) -> None:
        self._sync_depth()
        self.log_view.push_log(self.log_view.indented_line(spans))

    def _compose_frame(self, width: int, height: int) -> list[str]:
        layout = compute_layout(width, height, self.bottom_pane.required_height(width))
        self.viewport_height = layout.log_height
        self.log_view.clamp_scroll_offset(layout.log_height)
        rows = [
            _fit("".join(span.text for span in line), width)
            for line in self.log_view.visible_lines(layout.log_height)
        ]
        rows.extend(_fit("", width) for _ in range(layout.log_height - len(rows)))
        rows.append(_fit(self.log_view.agent_status_text(self.agent_type), width))
        rows.extend(self.bottom_pane.render(width, layout.bottom_pane_height))
        rows.append(_fit(self.log_view.status_text(self.model, self.provider), width))
        return rows

    # --- actions ----------------------------------------------------------

    async def submit_prompt(self, prompt: str) -> None:
        """Log ``prompt`` as user input and send it to the active agent."""
        self._push_spans([Span("> ", Color.CYAN), Span(prompt)])
        await self.send_to_agent(Request(prompt))

    async def handle_event(self, event: Event) -> bool:
        """Apply a user event; return True if the session should end."""
        if isinstance(event, (Tick, TaskCompleted)):
            return False
        if not isinstance(event, KeyEvent):
            return False
        composer = self.bottom_pane.active_composer()
        if event.code is KeyCode.CHAR:
            if event.ctrl and event.char == "c":
                return True
            if composer is not None:
                composer.input += event.char
        elif event.code is KeyCode.ENTER:
            if composer is not None and composer.input:
                text, composer.input = composer.input, ""
                self.log_view.auto_scroll = True
                self._push_spans([Span("> ", Color.CYAN), Span(text)])
                try:
                    await self.send_to_agent(Request(text))
                except Exception as exc:  # the sender belongs to another worker
                    self._push_spans(
                        [Span("error sending request: ", Color.RED), Span(str(exc))]
                    )
        elif event.code is KeyCode.BACKSPACE:
            if composer is not None:
                composer.input = composer.input[:-1]
        else:
            self.log_view.handle_scroll_key(event.code, self.viewport_height)
        return False

    async def handle_incoming_message(self, msg: AgentToUi) -> None:
        """Log an agent message, spawning or retiring child agents as needed."""
        if isinstance(msg, SpawnChild):
            await self.spawn_child_agent(
                msg.name, msg.description, msg.system_prompt, msg.result
            )
            return
        if isinstance(msg, (Response, AgentError)):
            if len(self.stack) > 1:
                success = isinstance(msg, Response)
                result = (
                    ToolResult.success(msg.text) if success else ToolResult.error(msg.text)
                )
                self.stack.pop(result)
                self._update_agent_type()
                parent_tx = self.stack.current_tx()
                if parent_tx is not None:
                    await parent_tx.put(
                        ChildResult(
                            success=success,
                            output=msg.text,
                            error=None if success else msg.text,
                        )
                    )
            elif self.headless:
                self.should_exit = True
        self._sync_depth()
        self.log_view.push_agent_message(msg, self.stack.current_cid())

    async def spawn_child_agent(
        self,
        name: str,
        description: str,
        system_prompt: str | None,
        result: Future[ToolResult],
    ) -> None:
        """Start a child agent, make it active and hand it ``description``."""
        cid = next_cid()
        try:
            channels = self.spawn_child(name, system_prompt, cid)
            if inspect.isawaitable(channels):
                channels = await channels
            tx, rx = channels
        except Exception as exc:
            _deliver(result, ToolResult.error(str(exc)))
            return

        self.stack.push_with_result(name, tx, rx, result, cid)
        try:
            await tx.put(Request(description))
        except Exception as exc:
            popped = self.stack.pop(None)
            slot = popped.take_child_result() if popped is not None else None
            if slot is not None:
                _deliver(
                    slot,
                    ToolResult.error(f"Failed to send request to child agent: {exc}"),
                )
            self._sync_depth()
            return
        self._update_agent_type()

    async def run(self) -> None:
        """Process events and agent messages until quit or headless completion."""
        events_open = True
        try:
            while True:
                size = shutil.get_terminal_size()
                self.frame = self._compose_frame(size.columns, size.lines)

                msg_task = asyncio.ensure_future(self.agent_rx().get())
                tasks: list[asyncio.Future[Any]] = [msg_task]
                event_task: asyncio.Future[Any] | None = None
                if events_open:
                    event_task = asyncio.ensure_future(self.event_handler.next())
                    tasks.append(event_task)
                done, pending = await asyncio.wait(
                    tasks, return_when=asyncio.FIRST_COMPLETED
                )
                for task in pending:
                    task.cancel()
                if pending:
                    await asyncio.gather(*pending, return_exceptions=True)

                if event_task is not None and event_task in done:
                    event = event_task.result()
                    if event is None:
                        events_open = False
                    elif await self.handle_event(event):
                        break
                if msg_task in done:
                    await self.handle_incoming_message(msg_task.result())
                if self.should_exit:
                    break

            await self.send_to_agent(Shutdown())
        finally:
            self.event_handler.close()

        if self.log_view.token_stats is not None:
            self.log_view.token_stats.save_and_plot()