"""
Token ledger - monotonic usage counters.

Counters only ever grow. Per-message usage is added; the final result's totals are
merged as a per-counter maximum, which overwrites stale running sums without ever
moving a counter backwards. Negative or missing values count as zero.
"""

from __future__ import annotations

from stream_session.schemas.events import Usage
from stream_session.schemas.state import TokenTotals


class TokenLedger:
    def __init__(self) -> None:
        self.input = 0
        self.output = 0
        self.cache_write = 0
        self.cache_read = 0
        self.total = 0

    def add(self, usage: Usage | None) -> TokenTotals:
        """Add one message's usage."""
        if usage is not None:
            self.input += _count(usage.input_tokens)
            self.output += _count(usage.output_tokens)
            self.cache_write += _count(usage.cache_creation_input_tokens)
            self.cache_read += _count(usage.cache_read_input_tokens)
            self._recompute()
        return self.totals()

    def merge_totals(self, usage: Usage | None) -> TokenTotals:
        """Merge authoritative session totals (e.g. from the result record)."""
        if usage is not None:
            self.input = max(self.input, _count(usage.input_tokens))
            self.output = max(self.output, _count(usage.output_tokens))
            self.cache_write = max(self.cache_write, _count(usage.cache_creation_input_tokens))
            self.cache_read = max(self.cache_read, _count(usage.cache_read_input_tokens))
            self._recompute()
        return self.totals()

    def totals(self) -> TokenTotals:
        return TokenTotals(
            input=self.input,
            output=self.output,
            cache_write=self.cache_write,
            cache_read=self.cache_read,
            total=self.total,
        )

    def _recompute(self) -> None:
        self.total = self.input + self.output


def _count(value: int | None) -> int:
    return value if value is not None and value > 0 else 0
