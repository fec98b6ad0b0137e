"""Core value types shared by tools and agents."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

ToolParameters = Any
"""JSON value describing or carrying tool parameters."""


@dataclass
class ToolContext:
    """Environment handed to a tool when it is executed."""

    working_directory: Path = field(default_factory=Path)
    permissions: list[str] = field(default_factory=list)
    agent_to_ui_tx: Any = None
    cid: int | None = None
    agent_name: str | None = None


@dataclass(frozen=True)
class ToolResult:
    """Outcome of a tool execution: either output or an error message."""

    is_success: bool
    output: str = ""
    error_message: str | None = None

    @classmethod
    def success(cls, output: str) -> ToolResult:
        """Build a successful result carrying ``output``."""
        return cls(is_success=True, output=str(output), error_message=None)

    @classmethod
    def error(cls, error: str) -> ToolResult:
        """Build a failed result carrying the error message ``error``."""
        return cls(is_success=False, output="", error_message=str(error))