"""User input events and a handler that merges key presses with periodic ticks."""

from __future__ import annotations

import asyncio
import contextlib
import enum
from dataclasses import dataclass
from typing import Union


class KeyCode(enum.Enum):
    """Keys the interface reacts to."""

    CHAR = "char"
    ENTER = "enter"
    BACKSPACE = "backspace"
    UP = "up"
    DOWN = "down"
    PAGE_UP = "page_up"
    PAGE_DOWN = "page_down"
    HOME = "home"
    END = "end"
    ESC = "esc"
    TAB = "tab"


@dataclass(frozen=True)
class KeyEvent:
    """A key press; ``char`` holds the character for ``KeyCode.CHAR``."""

    code: KeyCode
    char: str = ""
    ctrl: bool = False


@dataclass(frozen=True)
class Tick:
    """Periodic timer event."""


@dataclass(frozen=True)
class TaskCompleted:
    """A background task has finished."""


Event = Union[KeyEvent, Tick, TaskCompleted]

_QUEUE_SIZE = 100


class EventHandler:
    """Delivers ticks every ``tick_rate`` milliseconds plus injected events."""

    def __init__(self, tick_rate: int = 250) -> None:
        if tick_rate <= 0:
            raise ValueError("tick_rate must be a positive number of milliseconds")
        self.tick_rate = tick_rate
        self._interval = tick_rate / 1000
        self._queue: asyncio.Queue[Event] = asyncio.Queue(_QUEUE_SIZE)
        self._task: asyncio.Task[None] | None = None
        self._closed = False

    async def _tick_loop(self) -> None:
        while True:
            await self._queue.put(Tick())
            await asyncio.sleep(self._interval)

    def start(self) -> None:
        """Start producing ticks; must be called with an event loop running."""
        if self._closed:
            raise RuntimeError("event handler is closed")
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._tick_loop())

    def close(self) -> None:
        """Stop producing ticks."""
        self._closed = True
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def next(self) -> Event | None:
        """Wait for the next event; None once closed and drained."""
        if self._closed:
            if self._queue.empty():
                return None
            return self._queue.get_nowait()
        self.start()
        return await self._queue.get()

    async def send_task_completed(self) -> None:
        """Queue a ``TaskCompleted`` event."""
        await self._queue.put(TaskCompleted())

    async def send_key(self, key: KeyEvent) -> None:
        """Queue a key event."""
        await self._queue.put(key)

    async def __aenter__(self) -> EventHandler:
        self.start()
        return self

    async def __aexit__(self, *args: object) -> None:
        task = self._task
        self.close()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task