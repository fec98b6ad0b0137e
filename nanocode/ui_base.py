"""Channel pair and base class shared by the user interface backends."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from nanocode.event import Event
from nanocode.messaging import AgentToUi, UiToAgent


@dataclass
class UiChannels:
    """Queues connecting a UI with its agent worker."""

    agent_to_ui_rx: asyncio.Queue[Any]
    ui_to_agent_tx: asyncio.Queue[Any]

    @classmethod
    def create(cls, buffer: int = 100) -> tuple[asyncio.Queue[Any], UiChannels]:
        """Create bounded queues; return the agent-side sender and the channels."""
        if buffer <= 0:
            raise ValueError("buffer must be positive")
        agent_to_ui: asyncio.Queue[Any] = asyncio.Queue(buffer)
        return agent_to_ui, cls(agent_to_ui, asyncio.Queue(buffer))


class Ui(ABC):
    """A user interface backend talking to an agent through queues."""

    @abstractmethod
    async def run(self) -> None:
        """Run the interface until it finishes."""

    @abstractmethod
    def agent_rx(self) -> asyncio.Queue[Any]:
        """Queue the active agent's messages arrive on."""

    @abstractmethod
    def agent_tx(self) -> asyncio.Queue[Any]:
        """Queue used to send messages to the active agent."""

    def current_agent_name(self) -> str | None:
        """Name of the active agent, if known."""
        return None

    async def recv_from_agent(self) -> AgentToUi:
        """Wait for the next message from the agent."""
        return await self.agent_rx().get()

    async def send_to_agent(self, msg: UiToAgent) -> None:
        """Send ``msg`` to the agent, waiting for room if needed."""
        await self.agent_tx().put(msg)

    def try_send_to_agent(self, msg: UiToAgent) -> None:
        """Send without waiting; raises ``asyncio.QueueFull`` if there is no room."""
        self.agent_tx().put_nowait(msg)

    def try_recv_from_agent(self) -> AgentToUi:
        """Receive without waiting; raises ``asyncio.QueueEmpty`` if nothing is queued."""
        return self.agent_rx().get_nowait()

    async def next_user_event(self) -> Event | None:
        """Next user input event; this backend has none."""
        return None