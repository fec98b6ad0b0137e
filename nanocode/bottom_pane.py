"""Bottom pane of the terminal interface: a stack of views, normally a composer."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

_COMPOSER_HEIGHT = 3
_TITLE = "Input"


class Renderable(ABC):
    """A component that knows its height and renders itself as text rows."""

    @abstractmethod
    def required_height(self, width: int) -> int:
        """Rows needed to display the component at ``width`` columns."""

    @abstractmethod
    def render(self, width: int, height: int) -> list[str]:
        """Render into ``height`` rows of exactly ``width`` characters each."""


def _border_row(left: str, right: str, label: str, inner: int, width: int) -> str:
    return (left + (label + "─" * inner)[:inner] + right)[:width]


@dataclass
class ChatComposer(Renderable):
    """Single-line chat input shown inside a titled box."""

    input: str = ""

    def required_height(self, width: int) -> int:
        return _COMPOSER_HEIGHT

    def render(self, width: int, height: int) -> list[str]:
        if width <= 0 or height <= 0:
            return []
        inner = max(width - 2, 0)
        top = _border_row("┌", "┐", _TITLE, inner, width)
        if height == 1:
            return [top]
        text_rows = self.input.split("\n")
        body = []
        for row in range(height - 2):
            text = text_rows[row] if row < len(text_rows) else ""
            body.append(("│" + text.ljust(inner)[:inner] + "│")[:width])
        bottom = _border_row("└", "┘", "", inner, width)
        return [top, *body, bottom]


class BottomPane(Renderable):
    """Stack of views; the topmost receives input and is drawn."""

    def __init__(self) -> None:
        self._views: list[Renderable] = [ChatComposer()]

    def push_view(self, view: Renderable) -> None:
        """Make ``view`` the active view."""
        self._views.append(view)

    def pop_view(self) -> Renderable | None:
        """Remove the active view; the base view is never removed."""
        if len(self._views) > 1:
            return self._views.pop()
        return None

    def active_view(self) -> Renderable:
        """The view on top of the stack."""
        return self._views[-1]

    def active_composer(self) -> ChatComposer | None:
        """The active view if it is a chat composer."""
        view = self.active_view()
        return view if isinstance(view, ChatComposer) else None

    def required_height(self, width: int) -> int:
        return self.active_view().required_height(width)

    def render(self, width: int, height: int) -> list[str]:
        return self.active_view().render(width, height)