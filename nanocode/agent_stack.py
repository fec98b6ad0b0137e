"""Stack of active agents in which only the topmost one talks to the UI."""

from __future__ import annotations

import threading
from concurrent.futures import Future, InvalidStateError
from dataclasses import dataclass
from typing import Any

from nanocode.types import ToolResult


class _CidCounter:
    def __init__(self, start: int = 1) -> None:
        self._lock = threading.Lock()
        self._next = start

    def take(self) -> int:
        with self._lock:
            value = self._next
            self._next += 1
            return value

    def reset(self, value: int) -> None:
        with self._lock:
            self._next = value


_counter = _CidCounter()


def next_cid() -> int:
    """Return a fresh, process-unique context ID."""
    return _counter.take()


def reset_cid_counter(value: int = 1) -> None:
    """Make ``value`` the next context ID handed out."""
    _counter.reset(value)


@dataclass
class AgentHandle:
    """An active agent with its channels and, for children, its result slot."""

    name: str
    ui_to_agent_tx: Any
    agent_to_ui_rx: Any
    cid: int | None = None
    child_result: Future[ToolResult] | None = None

    def __post_init__(self) -> None:
        if self.cid is None:
            self.cid = next_cid()

    def take_child_result(self) -> Future[ToolResult] | None:
        """Remove and return the result slot, leaving None behind."""
        result, self.child_result = self.child_result, None
        return result


class AgentStack:
    """Stack of agent handles; the topmost is the active agent."""

    def __init__(
        self,
        base_agent_name: str,
        base_tx: Any,
        base_rx: Any,
        cid: int | None = None,
    ) -> None:
        self._stack: list[AgentHandle] = [
            AgentHandle(base_agent_name, base_tx, base_rx, cid)
        ]

    def push(self, name: str, tx: Any, rx: Any, cid: int | None = None) -> Future[ToolResult]:
        """Make a new child agent active; return the future its result arrives on."""
        result: Future[ToolResult] = Future()
        self.push_with_result(name, tx, rx, result, cid)
        return result

    def push_with_result(
        self,
        name: str,
        tx: Any,
        rx: Any,
        result: Future[ToolResult],
        cid: int | None = None,
    ) -> None:
        """Make a new child agent active, reporting its result to ``result``."""
        self._stack.append(AgentHandle(name, tx, rx, cid, child_result=result))

    def pop(self, result: ToolResult | None = None) -> AgentHandle | None:
        """Remove the active agent, delivering ``result`` to its parent if given."""
        if not self._stack:
            return None
        popped = self._stack.pop()
        if result is not None:
            slot = popped.take_child_result()
            if slot is not None:
                try:
                    slot.set_result(result)
                except InvalidStateError:
                    pass
        return popped

    def current_tx(self) -> Any:
        """Sender of the active agent, or None if the stack is empty."""
        return self._stack[-1].ui_to_agent_tx if self._stack else None

    def current_rx(self) -> Any:
        """Receiver of the active agent, or None if the stack is empty."""
        return self._stack[-1].agent_to_ui_rx if self._stack else None

    def current_name(self) -> str | None:
        """Name of the active agent."""
        return self._stack[-1].name if self._stack else None

    def current_cid(self) -> int | None:
        """Context ID of the active agent."""
        return self._stack[-1].cid if self._stack else None

    def stack_display(self) -> str:
        """Agents from bottom to top as ``name (cid N)`` joined by `` -> ``."""
        return " -> ".join(f"{h.name} (cid {h.cid})" for h in self._stack)

    def base_handle(self) -> AgentHandle | None:
        """The agent at the bottom of the stack."""
        return self._stack[0] if self._stack else None

    def is_base_agent_active(self) -> bool:
        """True when only the base agent is on the stack."""
        return len(self._stack) == 1

    def __len__(self) -> int:
        return len(self._stack)