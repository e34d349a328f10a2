"""Token usage and cost accounting, per session and across sessions."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelPricing:
    """USD per 1M tokens."""

    input_cost_per_million: float
    output_cost_per_million: float


# Local models (ollama) have no price and report "pricing not available".
PRICING: dict[str, ModelPricing] = {
    "gpt-4o": ModelPricing(2.50, 10.00),
    "gpt-4o-mini": ModelPricing(0.15, 0.60),
    "gpt-4.1": ModelPricing(2.00, 8.00),
    "gpt-4.1-mini": ModelPricing(0.40, 1.60),
    "o3-mini": ModelPricing(1.10, 4.40),
}


def default_global_stats() -> dict[str, Any]:
    return {
        "total_sessions": 0,
        "total_input_tokens": 0,
        "total_output_tokens": 0,
        "total_tokens": 0,
        "total_input_cost": 0.0,
        "total_output_cost": 0.0,
        "total_cost": 0.0,
        "first_session": None,
        "last_updated": None,
    }


def normalize_global_stats(data: dict[str, Any]) -> dict[str, Any]:
    """Merge data over the defaults, replacing values of the wrong type.

    Counters must be ints and costs numbers; timestamps must be strings or
    None. Anything else falls back to its default and is logged.
    """
    stats = default_global_stats()
    for key, value in data.items():
        if key not in stats:
            stats[key] = value
            continue
        default = stats[key]
        if default is None:
            valid = value is None or isinstance(value, str)
        elif isinstance(default, float):
            valid = isinstance(value, (int, float)) and not isinstance(value, bool)
            value = float(value) if valid else value
        else:
            valid = isinstance(value, int) and not isinstance(value, bool)
        if valid:
            stats[key] = value
        else:
            logger.warning("Ignoring malformed token stat %s=%r", key, value)
    return stats


@dataclass(frozen=True)
class UsageReport:
    """Token counts and costs for one request and the running session."""

    model: str
    input_tokens: int
    output_tokens: int
    input_cost: float
    output_cost: float
    pricing_available: bool
    session_input_tokens: int
    session_output_tokens: int
    session_cost: float

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    @property
    def total_cost(self) -> float:
        return self.input_cost + self.output_cost

    @property
    def session_total_tokens(self) -> int:
        return self.session_input_tokens + self.session_output_tokens


def format_cost(cost: float) -> str:
    return f"${cost:.6f}"


class TokenTracker:
    """Accumulates token usage for a session and a global stats file.

    The global file is read, updated and rewritten on every tracked request.
    Concurrent sessions in separate processes may lose updates to each other;
    a single process never races with itself. Failures to write the file are
    logged and otherwise ignored.
    """

    def __init__(
        self,
        stats_path: str | Path,
        pricing: dict[str, ModelPricing] | None = None,
    ) -> None:
        self.stats_path = Path(stats_path).expanduser()
        self.pricing = PRICING if pricing is None else pricing
        self.session_input_tokens = 0
        self.session_output_tokens = 0
        self.session_input_cost = 0.0
        self.session_output_cost = 0.0
        self._session_counted = False

    @property
    def session_total(self) -> int:
        return self.session_input_tokens + self.session_output_tokens

    @property
    def session_total_cost(self) -> float:
        return self.session_input_cost + self.session_output_cost

    def track(self, usage: dict[str, int], model: str) -> UsageReport:
        """Record one backend response's usage (``input_tokens``/``output_tokens`` keys)."""
        input_tokens = int(usage.get("input_tokens", 0) or 0)
        output_tokens = int(usage.get("output_tokens", 0) or 0)

        price = self.pricing.get(model)
        if price is not None:
            input_cost = input_tokens * price.input_cost_per_million / 1_000_000
            output_cost = output_tokens * price.output_cost_per_million / 1_000_000
        else:
            input_cost = output_cost = 0.0

        self.session_input_tokens += input_tokens
        self.session_output_tokens += output_tokens
        self.session_input_cost += input_cost
        self.session_output_cost += output_cost

        self._update_global(input_tokens, output_tokens, input_cost, output_cost)

        return UsageReport(
            model=model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            input_cost=input_cost,
            output_cost=output_cost,
            pricing_available=price is not None,
            session_input_tokens=self.session_input_tokens,
            session_output_tokens=self.session_output_tokens,
            session_cost=self.session_total_cost,
        )

    def reset_session(self) -> None:
        self.session_input_tokens = 0
        self.session_output_tokens = 0
        self.session_input_cost = 0.0
        self.session_output_cost = 0.0

    def global_stats(self) -> dict[str, Any]:
        """Stats from the global file; defaults when it is missing or malformed."""
        try:
            data = json.loads(self.stats_path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return default_global_stats()
        except (OSError, ValueError) as exc:
            logger.warning("Could not read token stats %s: %s", self.stats_path, exc)
            return default_global_stats()
        if not isinstance(data, dict):
            return default_global_stats()
        return normalize_global_stats(data)

    def reset_global(self) -> None:
        self._write_global(default_global_stats())

    # --- Private helpers ---

    def _update_global(
        self, input_tokens: int, output_tokens: int, input_cost: float, output_cost: float,
    ) -> None:
        stats = self.global_stats()
        now = datetime.now(timezone.utc).isoformat()

        if stats["first_session"] is None:
            stats["first_session"] = now
        if not self._session_counted:
            stats["total_sessions"] += 1
            self._session_counted = True

        stats["total_input_tokens"] += input_tokens
        stats["total_output_tokens"] += output_tokens
        stats["total_tokens"] = stats["total_input_tokens"] + stats["total_output_tokens"]
        stats["total_input_cost"] += input_cost
        stats["total_output_cost"] += output_cost
        stats["total_cost"] = stats["total_input_cost"] + stats["total_output_cost"]
        stats["last_updated"] = now

        self._write_global(stats)

    def _write_global(self, stats: dict[str, Any]) -> None:
        try:
            self.stats_path.parent.mkdir(parents=True, exist_ok=True)
            self.stats_path.write_text(json.dumps(stats, indent=2), encoding="utf-8")
        except OSError as exc:
            logger.warning("Could not update global token stats: %s", exc)


# --- Text summaries for the CLI ---


def format_request_summary(report: UsageReport) -> str:
    head = (
        f"This request: {report.total_tokens} tokens "
        f"({report.input_tokens} in, {report.output_tokens} out) | "
    )
    if report.pricing_available:
        return (
            f"{head}Cost: {format_cost(report.total_cost)}\n"
            f"Session total: {report.session_total_tokens} tokens | "
            f"Cost: {format_cost(report.session_cost)}"
        )
    return (
        f"{head}Cost: N/A (pricing not available for {report.model})\n"
        f"Session total: {report.session_total_tokens} tokens"
    )


def format_session_summary(tracker: TokenTracker) -> str:
    rule = "=" * 60
    lines = [
        rule,
        "SESSION TOKEN USAGE & COST SUMMARY",
        rule,
        f"Input tokens:   {tracker.session_input_tokens:>12}",
        f"Output tokens:  {tracker.session_output_tokens:>12}",
        f"Total tokens:   {tracker.session_total:>12}",
        "-" * 60,
        f"Input cost:     {format_cost(tracker.session_input_cost):>12}",
        f"Output cost:    {format_cost(tracker.session_output_cost):>12}",
        f"Total cost:     {format_cost(tracker.session_total_cost):>12}",
        rule,
    ]
    return "\n".join(lines)


def format_global_summary(stats: dict[str, Any]) -> str:
    stats = normalize_global_stats(stats)
    rule = "=" * 60
    lines = [
        rule,
        "GLOBAL TOKEN USAGE & COST SUMMARY",
        rule,
        f"Total sessions:      {stats['total_sessions']:>12}",
        f"Total input tokens:  {stats['total_input_tokens']:>12}",
        f"Total output tokens: {stats['total_output_tokens']:>12}",
        f"Total tokens:        {stats['total_tokens']:>12}",
        "-" * 60,
        f"Total input cost:    {format_cost(stats['total_input_cost']):>12}",
        f"Total output cost:   {format_cost(stats['total_output_cost']):>12}",
        f"Total cost:          {format_cost(stats['total_cost']):>12}",
        "-" * 60,
        f"Last updated:        {stats['last_updated']}",
        rule,
    ]
    return "\n".join(lines)
