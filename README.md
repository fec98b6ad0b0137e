# nanocode

Building blocks for the user-facing side of a tool-using coding agent. The
agent itself runs elsewhere; this package defines how a front end talks to it,
keeps track of nested agents, and presents what they report. It needs
Python 3.10 or later.

## Modules

- `nanocode.types` – `ToolResult` and `ToolContext`.
- `nanocode.messaging` – messages between the UI and an agent worker:
  `Request`, `Shutdown`, `ChildResult` towards the agent; `ToolCallLog`,
  `ToolResultLog`, `Thinking`, `Response`, `AgentError`, `TokenUsageUpdate`
  and `SpawnChild` towards the UI. `is_final(msg)` is true for `Response`
  and `AgentError`.
- `nanocode.plugin` – abstract `Tool` and `Plugin` classes and a registry:
  `register_plugin`, `registered_plugins`, `all_tools`.
- `nanocode.agent_stack` – `AgentStack` and `AgentHandle`, plus
  `next_cid()` / `reset_cid_counter()` for context ids.
- `nanocode.event` – `EventHandler`, an asyncio source of `Tick` events with
  injected `KeyEvent` and `TaskCompleted` events.
- `nanocode.ui_base` – `UiChannels` (a pair of bounded `asyncio.Queue`s) and
  the abstract `Ui` base class.
- `nanocode.bottom_pane` – `BottomPane`, a stack of views whose base view is a
  `ChatComposer` drawn as a three-row box titled "Input".
- `nanocode.log_view` – `LogView`, a scrollable log of coloured `Span`s, and
  `compute_layout` for splitting the screen.
- `nanocode.tui_session` – `TuiSession`, an interactive session routing key
  events and agent messages through the agent stack.
- `nanocode.headless` – `HeadlessUi`, which sends one prompt and prints the
  replies with ANSI colours.
- `nanocode.token_stats` – `TokenStatsRecorder`.
- `nanocode.cli` – `parse_args` and `is_valid_app_name`.

## Tool results

```python
from nanocode.types import ToolResult

ok = ToolResult.success("done")        # is_success True, output "done"
failed = ToolResult.error("not found") # is_success False, output "", error_message "not found"
```

## Tools and plugins

Subclass `Tool`, implementing `name`, `description`, `parameters` (a JSON
schema style value) and an asynchronous `execute(ctx, params)` returning a
`ToolResult`. Group tools in a `Plugin` (`name`, `version`, `tools`) and pass
it to `register_plugin`; `all_tools()` then lists every tool of every
registered plugin in registration order.

## Nested agents

```python
from nanocode.agent_stack import AgentStack, reset_cid_counter

reset_cid_counter(1)
stack = AgentStack("generalist", base_tx, base_rx)
result = stack.push("explorer", child_tx, child_rx)
stack.stack_display()   # 'generalist (cid 1) -> explorer (cid 2)'
stack.pop(ToolResult.success("summary"))
result.result()         # the ToolResult handed to the parent
```

`push` returns a `concurrent.futures.Future`; `push_with_result` takes one
you already hold, such as the `result` field of a `SpawnChild` message.

## Sessions

`TuiSession(stack, log_view, bottom_pane, event_handler, spawn_child,
headless=False)` runs until Ctrl+C, or, with `headless=True`, until the base
agent sends its final message. Typed characters, Backspace and Enter edit and
submit the composer's input; Up, Down, Page Up, Page Down, Home and End scroll
the log. When a child agent finishes, its result goes to the parent both
through the future and as a `ChildResult` message. `spawn_child(name,
system_prompt, cid)` must start the child and return its
`(sender, receiver)` queues, directly or as an awaitable.

`HeadlessUi(channels, spawn_child, prompt=None, ...)` uses the given prompt,
or one line read from standard input, and prints tool activity, token usage
and the final response. Child agents are run inline through
`spawn_child(name, description, system_prompt)`, which returns a
`ToolResult` (or an awaitable of one).

Either front end, given a `TokenStatsRecorder`, records token usage per
context id and prints the histogram at the end.

## Token statistics

`TokenStatsRecorder(file_path=None)` adds tokens per context id with
`add_tokens(cid, tokens)`. `save()` appends this run's non-zero totals as JSON
lines (by default to `nanocode/token_stats.jsonl` under the user data
directory), `render_histogram()` returns a ten-bin histogram of tokens per
context over all recorded runs, and `save_and_plot()` does both and prints it.

## Command-line options

`nanocode.cli.parse_args(argv)` returns a `CliArgs` and understands:

| Option | Meaning |
| --- | --- |
| `--headless` | run without the terminal interface |
| `-p`, `--prompt P` | prompt to submit at startup |
| `--app APP` | app name, default `coding`; letters, digits, `-`, `_`, `.` |
| `--workdir DIR` | working directory for tool execution |
| `--token-stats` | record token usage and plot a histogram on exit |
| `-h`, `--help` | print help and exit |

A missing option value or an invalid app name prints an error to standard
error and raises `SystemExit(1)`; unknown arguments are ignored.

## What this package does not do

- It contains no agent, model client or built-in tools: the functions that
  start agents are supplied by the caller.
- It installs no command; `parse_args` only parses options.
- `TuiSession` composes each screen as text rows in its `frame` attribute but
  does not draw to the terminal or read the keyboard; key presses arrive
  through `EventHandler.send_key`.
- It does not load agent profiles or configuration files.