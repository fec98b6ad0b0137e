"""Per-context token usage recording and an ASCII histogram of it."""

from __future__ import annotations

import json
import math
import time
from pathlib import Path

import platformdirs

_NUM_BINS = 10
_BAR_WIDTH = 40
_U32_MAX = 2**32 - 1


def _is_uint(value: object, limit: int | None = None) -> bool:
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and value >= 0
        and (limit is None or value <= limit)
    )


def _parse_record(line: str) -> int | None:
    """Return the token total of a stored record, or None if the line is not one."""
    try:
        record = json.loads(line)
    except ValueError:
        return None
    if not isinstance(record, dict):
        return None
    cid = record.get("cid")
    total = record.get("total_tokens")
    timestamp = record.get("timestamp")
    if not (_is_uint(cid) and _is_uint(total, _U32_MAX) and _is_uint(timestamp)):
        return None
    return total


class TokenStatsRecorder:
    """Accumulates token usage per context ID and persists it as JSON lines."""

    def __init__(self, file_path: Path | str | None = None) -> None:
        self.file_path = Path(file_path) if file_path is not None else self.default_path()
        self.current: dict[int, int] = {}
        self.historical: list[int] = self._load_history(self.file_path)

    @classmethod
    def default_path(cls) -> Path:
        """Location of the statistics file in the user's local data directory."""
        return Path(platformdirs.user_data_dir()) / "nanocode" / "token_stats.jsonl"

    @staticmethod
    def _load_history(path: Path) -> list[int]:
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return []
        totals = (_parse_record(line) for line in content.splitlines())
        return [total for total in totals if total]

    def add_tokens(self, cid: int, tokens: int) -> None:
        """Add ``tokens`` to the running total of context ``cid``."""
        self.current[cid] = self.current.get(cid, 0) + tokens

    def save(self) -> None:
        """Append this run's non-zero totals to the statistics file."""
        if not self.current:
            return
        now = int(time.time())
        lines = [
            json.dumps(
                {"cid": cid, "total_tokens": total, "timestamp": now},
                separators=(",", ":"),
            )
            for cid, total in self.current.items()
            if total
        ]
        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            with self.file_path.open("a", encoding="utf-8") as handle:
                for line in lines:
                    handle.write(line + "\n")
        except OSError:
            return

    def render_histogram(self) -> str:
        """Render the distribution of tokens per context, history included."""
        all_tokens = self.historical + [t for t in self.current.values() if t > 0]
        if not all_tokens:
            return "\nNo token statistics recorded."

        max_tokens = max(all_tokens)
        bin_size = max(math.ceil(max_tokens / _NUM_BINS), 1)
        bins = [0] * _NUM_BINS
        for tokens in all_tokens:
            bins[min(tokens // bin_size, _NUM_BINS - 1)] += 1
        max_count = max(max(bins), 1)

        lines = [
            "",
            f"=== Token Usage Distribution ({len(all_tokens)} contexts total) ===",
            "",
        ]
        for i, count in enumerate(bins):
            lo = i * bin_size
            hi = (i + 1) * bin_size - 1
            filled = count * _BAR_WIDTH // max_count
            bar = "#" * filled + "." * (_BAR_WIDTH - filled)
            lines.append(f"{lo:>8}-{hi:<8} | {bar} {count:>4}")
        lines.append("")
        lines.append("x: tokens consumed per context  |  y: number of contexts")
        return "\n".join(lines)

    def save_and_plot(self) -> None:
        """Persist this run's data and print the histogram."""
        self.save()
        print(self.render_histogram())