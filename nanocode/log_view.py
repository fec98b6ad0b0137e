"""Scrollable, styled message log and screen layout of the terminal interface."""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass

from nanocode.event import KeyCode
from nanocode.messaging import (
    AgentError,
    AgentToUi,
    Response,
    SpawnChild,
    Thinking,
    TokenUsage,
    TokenUsageUpdate,
    ToolCallLog,
    ToolResultLog,
)
from nanocode.token_stats import TokenStatsRecorder

_STATUS_HEIGHT = 1
_AGENT_STATUS_HEIGHT = 1
_PAGE = 10
_INDENT = "  "


class Color(enum.Enum):
    """Foreground colours used in the log and status lines."""

    GRAY = "gray"
    RED = "red"
    BLUE = "blue"
    GREEN = "green"
    CYAN = "cyan"
    YELLOW = "yellow"


@dataclass(frozen=True)
class Span:
    """A run of text; ``color`` None means unstyled."""

    text: str
    color: Color | None = None


Line = tuple[Span, ...]


@dataclass(frozen=True)
class Layout:
    """Row positions of the screen areas, top to bottom."""

    width: int
    log_height: int
    bottom_pane_height: int
    agent_status_row: int
    bottom_pane_row: int
    status_row: int


def compute_layout(width: int, height: int, bottom_pane_height: int) -> Layout:
    """Split the screen into log, agent status, bottom pane and status line."""
    fixed = _STATUS_HEIGHT + _AGENT_STATUS_HEIGHT
    bottom = min(bottom_pane_height, max(height - fixed, 0))
    available = max(height - (bottom + fixed), 0)
    log_height = max(available, 1)
    return Layout(
        width=width,
        log_height=log_height,
        bottom_pane_height=bottom,
        agent_status_row=log_height,
        bottom_pane_row=log_height + _AGENT_STATUS_HEIGHT,
        status_row=log_height + _AGENT_STATUS_HEIGHT + bottom,
    )


def _style_for(msg: AgentToUi) -> tuple[str, Color]:
    if isinstance(msg, ToolResultLog):
        return "", Color.RED if msg.text.startswith("Error:") else Color.GRAY
    if isinstance(msg, Thinking):
        return "Thinking: ", Color.BLUE
    if isinstance(msg, Response):
        return "", Color.GREEN
    if isinstance(msg, AgentError):
        return "", Color.RED
    if isinstance(msg, SpawnChild):
        return "Spawning child agent: ", Color.CYAN
    return "", Color.GRAY


def _text_of(msg: AgentToUi) -> str:
    if isinstance(msg, SpawnChild):
        prompt_info = "" if msg.system_prompt is None else f", prompt: {msg.system_prompt}"
        return f"{msg.name}: {msg.description}{prompt_info}"
    return msg.text


class LogView:
    """Log lines with scrolling state, indented by agent stack depth."""

    def __init__(self, depth: int = 1, token_stats: TokenStatsRecorder | None = None) -> None:
        self.depth = depth
        self.token_stats = token_stats
        self.lines: list[Line] = []
        self.scroll_offset = 0
        self.auto_scroll = True
        self.token_usage = TokenUsage()

    def indented_line(self, spans: Iterable[Span]) -> Line:
        """Prefix ``spans`` with two spaces per nesting level below the base agent."""
        indent = _INDENT * max(self.depth - 1, 0)
        head = (Span(indent),) if indent else ()
        return head + tuple(spans)

    def push_log(self, line: Line) -> None:
        """Append ``line``; jump to the bottom if auto-scrolling."""
        self.lines.append(tuple(line))
        if self.auto_scroll:
            self.scroll_offset = 0

    def push_agent_message(self, msg: AgentToUi, cid: int | None = None) -> None:
        """Turn an agent message into styled log lines.

        Token usage updates are recorded against ``cid`` when statistics are on.
        """
        if isinstance(msg, TokenUsageUpdate):
            usage = msg.usage
            self.token_usage = usage
            if self.token_stats is not None and cid is not None:
                self.token_stats.add_tokens(cid, usage.total_tokens)
            text = (
                f"Tokens used: prompt: {usage.prompt_tokens}, "
                f"completion: {usage.completion_tokens}, total: {usage.total_tokens}"
            )
            self.push_log(self.indented_line([Span(text)]))
            return

        prefix, color = _style_for(msg)
        for i, part in enumerate(_text_of(msg).split("\n")):
            if not prefix or i > 0:
                spans = [Span(part, color)]
            else:
                spans = [Span(prefix, color), Span(part)]
            self.push_log(self.indented_line(spans))

    def clamp_scroll_offset(self, viewport_height: int) -> None:
        """Keep the scroll offset inside the scrollable range."""
        total = len(self.lines)
        if total <= viewport_height or self.auto_scroll:
            self.scroll_offset = 0
            return
        self.scroll_offset = min(self.scroll_offset, total - viewport_height)

    def handle_scroll_key(self, code: KeyCode, viewport_height: int) -> bool:
        """Apply a scrolling key; return False if ``code`` does not scroll."""
        if code is KeyCode.END:
            self.auto_scroll = True
            self.scroll_offset = 0
            return True
        deltas = {
            KeyCode.UP: 1,
            KeyCode.DOWN: -1,
            KeyCode.PAGE_UP: _PAGE,
            KeyCode.PAGE_DOWN: -_PAGE,
        }
        if code is KeyCode.HOME:
            self.auto_scroll = False
            self.scroll_offset = len(self.lines)
        elif code in deltas:
            self.auto_scroll = False
            self.scroll_offset = max(self.scroll_offset + deltas[code], 0)
        else:
            return False
        self.clamp_scroll_offset(viewport_height)
        return True

    def visible_lines(self, height: int) -> list[Line]:
        """Lines shown in a log area ``height`` rows tall at the current offset."""
        total = len(self.lines)
        start = max(total - (height + self.scroll_offset), 0)
        end = min(start + height, total)
        return self.lines[start:end]

    def agent_status_text(self, stack_display: str) -> str:
        """Text of the line showing the agent stack and session tokens."""
        return f"Agent Stack: {stack_display} | Session tokens: {self.token_usage.total_tokens}"

    def status_text(self, model: str, provider: str) -> str:
        """Text of the bottom status line."""
        return (
            f"nano code | Model: {model} | Provider: {provider} | "
            f"Tokens: {self.token_usage.total_tokens}"
        )