"""Command-line argument parsing."""

from __future__ import annotations

import sys
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

_APP_NAME_EXTRA = frozenset("-_.")

_HELP = """\
nanocode 0.1.0

USAGE:
    nanocode [FLAGS]

FLAGS:
        --help         Prints help information
        --headless     Run in headless mode (stdout/stdin)
    -p, --prompt P     Submit prompt immediately on startup
        --app APP      App name (e.g., coding) [default: coding]
        --workdir DIR  Working directory for tool execution
        --token-stats  Record token usage per context and plot histogram on exit"""


@dataclass
class CliArgs:
    """Options given on the command line."""

    headless: bool = False
    prompt: str | None = None
    app: str = "coding"
    workdir: Path | None = None
    token_stats: bool = False


def is_valid_app_name(name: str) -> bool:
    """True if ``name`` is alphanumeric apart from hyphens, underscores and dots."""
    return bool(name) and all(
        (ch.isascii() and ch.isalnum()) or ch in _APP_NAME_EXTRA for ch in name
    )


def _fail(message: str) -> SystemExit:
    print(f"Error: {message}", file=sys.stderr)
    return SystemExit(1)


def parse_args(argv: Sequence[str] | None = None) -> CliArgs:
    """Parse ``argv`` (without the program name); unknown arguments are ignored."""
    args = list(sys.argv[1:] if argv is None else argv)
    result = CliArgs()

    def value_after(i: int) -> str | None:
        if i + 1 < len(args) and not args[i + 1].startswith("-"):
            return args[i + 1]
        return None

    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--app":
            value = value_after(i)
            if value is None:
                raise _fail("--app requires an argument")
            if not is_valid_app_name(value):
                raise _fail(
                    f"invalid app name '{value}'. App names must be alphanumeric "
                    "with hyphens, underscores, or dots."
                )
            result.app = value
            i += 2
        elif arg == "--workdir":
            value = value_after(i)
            if value is None:
                raise _fail("--workdir requires an argument")
            result.workdir = Path(value)
            i += 2
        elif arg == "--headless":
            result.headless = True
            i += 1
        elif arg == "--token-stats":
            result.token_stats = True
            i += 1
        elif arg in ("-p", "--prompt"):
            value = value_after(i)
            if value is None:
                raise _fail("-p requires an argument")
            result.prompt = value
            i += 2
        elif arg in ("-h", "--help"):
            print(_HELP)
            raise SystemExit(0)
        else:
            i += 1
    return result