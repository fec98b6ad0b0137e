"""Messages exchanged between the UI and agent workers."""

from __future__ import annotations

from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Union

from nanocode.types import ToolResult


@dataclass
class TokenUsage:
    """Token counts reported by a model call."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


# --- UI to agent -----------------------------------------------------------


@dataclass(frozen=True)
class Request:
    """User input for the agent to process."""

    text: str


@dataclass(frozen=True)
class Shutdown:
    """Ask the agent worker to stop."""


@dataclass(frozen=True)
class ChildResult:
    """Result of a child agent that has completed."""

    success: bool
    output: str
    error: str | None = None


UiToAgent = Union[Request, Shutdown, ChildResult]


# --- agent to UI -----------------------------------------------------------


@dataclass(frozen=True)
class ToolCallLog:
    """Log line describing a tool call."""

    text: str


@dataclass(frozen=True)
class ToolResultLog:
    """Log line describing a tool result."""

    text: str


@dataclass(frozen=True)
class Thinking:
    """Reasoning output from the agent."""

    text: str


@dataclass(frozen=True)
class Response:
    """Final response from the agent."""

    text: str


@dataclass(frozen=True)
class AgentError:
    """Processing error reported by the agent."""

    text: str


@dataclass(frozen=True)
class TokenUsageUpdate:
    """Token usage statistics from the agent."""

    usage: TokenUsage


@dataclass(frozen=True)
class SpawnChild:
    """Request to start a child agent; its result is delivered through ``result``."""

    name: str
    description: str
    system_prompt: str | None = None
    result: Future[ToolResult] = field(default_factory=Future, compare=False)


AgentToUi = Union[
    ToolCallLog,
    ToolResultLog,
    Thinking,
    Response,
    AgentError,
    TokenUsageUpdate,
    SpawnChild,
]


def is_final(msg: AgentToUi) -> bool:
    """Return True if ``msg`` ends the agent's processing of a request."""
    return isinstance(msg, (Response, AgentError))