"""Process-lifetime usage ledgers for billable units.

Both ledgers are shared by concurrent callers. Every update happens under
a lock and never spans an ``await``.
"""

import threading
from dataclasses import dataclass


@dataclass(frozen=True)
class CallCost:
    """Token usage and cost of a single LLM call."""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int
    cost: float

    @property
    def description(self) -> str:
        return (
            f"Prompt Tokens: {self.prompt_tokens}, "
            f"Completion Tokens: {self.completion_tokens}, "
            f"Cost: ${self.cost:.4f}"
        )


class UsageLedger:
    """Accumulates LLM prompt/completion tokens and their cost.

    Cost per call is ``prompt * input_price / 1000 + completion *
    output_price / 1000``.
    """

    def __init__(self, input_price_per_1k: float = 0.01, output_price_per_1k: float = 0.03):
        self.input_price_per_1k = input_price_per_1k
        self.output_price_per_1k = output_price_per_1k
        self._lock = threading.Lock()
        self._prompt_units = 0
        self._completion_units = 0
        self._cumulative_cost = 0.0
        self._last: CallCost | None = None

    def cost_of(self, prompt_tokens: int, completion_tokens: int) -> float:
        return (
            prompt_tokens * self.input_price_per_1k / 1000.0
            + completion_tokens * self.output_price_per_1k / 1000.0
        )

    def record(self, prompt_tokens: int, completion_tokens: int, total_tokens: int | None = None) -> CallCost:
        """Record one call and return its cost breakdown."""
        call = CallCost(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=total_tokens if total_tokens is not None else prompt_tokens + completion_tokens,
            cost=self.cost_of(prompt_tokens, completion_tokens),
        )
        with self._lock:
            self._prompt_units += call.prompt_tokens
            self._completion_units += call.completion_tokens
            self._cumulative_cost += call.cost
            self._last = call
        return call

    @property
    def prompt_units(self) -> int:
        with self._lock:
            return self._prompt_units

    @property
    def completion_units(self) -> int:
        with self._lock:
            return self._completion_units

    @property
    def cumulative_cost(self) -> float:
        with self._lock:
            return self._cumulative_cost

    @property
    def last_call(self) -> CallCost | None:
        with self._lock:
            return self._last

    def summary(self) -> str:
        """Human-readable cumulative usage."""
        with self._lock:
            return (
                "Total Usage:\n"
                f"- Prompt Tokens: {self._prompt_units}\n"
                f"- Completion Tokens: {self._completion_units}\n"
                f"- Total Cost: ${self._cumulative_cost:.4f}"
            )


class TranslationLedger:
    """Accumulates translated characters and their cost."""

    def __init__(self, price_per_million_chars: float = 10.0):
        self.price_per_million_chars = price_per_million_chars
        self._lock = threading.Lock()
        self._character_count = 0
        self._cumulative_cost = 0.0

    def record(self, characters: int) -> float:
        """Record translated characters and return the cost of this call."""
        cost = characters * self.price_per_million_chars / 1_000_000.0
        with self._lock:
            self._character_count += characters
            self._cumulative_cost += cost
        return cost

    @property
    def character_count(self) -> int:
        with self._lock:
            return self._character_count

    @property
    def cumulative_cost(self) -> float:
        with self._lock:
            return self._cumulative_cost

    def summary(self) -> str:
        with self._lock:
            return (
                f"Translation Usage - Characters: {self._character_count}, "
                f"Cost: ${self._cumulative_cost:.4f}"
            )
