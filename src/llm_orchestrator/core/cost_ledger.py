"""Append-only ledger of per-call costs.

The provider manager appends one CostRecord per provider call that reported
token usage. Subscribers are notified synchronously after every append.
"""

import threading
from datetime import datetime, timedelta
from typing import Callable

from ..logging import get_logger
from ..types import (
    CostRecord,
    CostSummary,
    CostUpdate,
    ProviderType,
    TaskCategory,
    TaskComplexity,
    TokenUsage,
)

logger = get_logger(__name__)

MAX_LEDGER_RECORDS = 1000
SAVINGS_MONTH_FACTOR = 30

CostSubscriber = Callable[[CostUpdate], None]


def complexity_for_model(model: str) -> TaskComplexity:
    """Guess which bucket a model was serving, from its name."""
    if "llama" in model or "qwen" in model:
        return TaskComplexity.SIMPLE
    if "haiku" in model or "mini" in model:
        return TaskComplexity.MEDIUM
    return TaskComplexity.COMPLEX


class CostLedger:
    """Thread-safe cost ledger with a running total.

    Args:
        max_records: Only the latest max_records entries are kept. The
            running total keeps counting trimmed entries.
    """

    def __init__(self, max_records: int = MAX_LEDGER_RECORDS):
        self.max_records = max_records
        self._records: list[CostRecord] = []
        self._total = 0.0
        self._subscribers: list[CostSubscriber] = []
        self._lock = threading.Lock()

    @property
    def total(self) -> float:
        return self._total

    @property
    def records(self) -> list[CostRecord]:
        with self._lock:
            return list(self._records)

    def subscribe(self, callback: CostSubscriber) -> Callable[[], None]:
        """Register a subscriber. Returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def record(
        self,
        provider: ProviderType,
        model: str,
        usage: TokenUsage,
        cost: float,
        timestamp: datetime | None = None,
    ) -> CostRecord:
        """Append a record, update the total and notify subscribers."""
        entry = CostRecord(
            provider=provider,
            model=model,
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
            cost=cost,
            timestamp=timestamp or datetime.now(),
        )
        with self._lock:
            self._records.append(entry)
            self._total += cost
            if len(self._records) > self.max_records:
                self._records = self._records[-self.max_records:]
            update = CostUpdate(total=self._total, records=list(self._records))

        logger.debug(
            f"{provider.value}/{model}: {usage.input_tokens} in, "
            f"{usage.output_tokens} out, ${cost:.6f} (total ${update.total:.6f})"
        )
        for subscriber in list(self._subscribers):
            subscriber(update)
        return entry

    def summarize(
        self,
        estimate_savings: Callable[[list[tuple[TaskCategory, TaskComplexity]]], float],
        now: datetime | None = None,
    ) -> CostSummary:
        """Aggregate the ledger.

        Args:
            estimate_savings: Returns the per-period savings for a list of
                (category, complexity) items; scaled by 30 for the month.
            now: Reference time for the 24 hour window.
        """
        now = now or datetime.now()
        since = now - timedelta(hours=24)
        by_provider: dict[str, float] = {}
        by_model: dict[str, float] = {}
        last_24_hours = 0.0

        records = self.records
        for entry in records:
            by_provider[entry.provider.value] = by_provider.get(entry.provider.value, 0.0) + entry.cost
            by_model[entry.model] = by_model.get(entry.model, 0.0) + entry.cost
            if entry.timestamp > since:
                last_24_hours += entry.cost

        items = [(TaskCategory.CHAT, complexity_for_model(entry.model)) for entry in records]
        return CostSummary(
            total_cost=self._total,
            by_provider=by_provider,
            by_model=by_model,
            last_24_hours=last_24_hours,
            estimated_monthly_savings=estimate_savings(items) * SAVINGS_MONTH_FACTOR,
        )

    def reset(self) -> None:
        with self._lock:
            self._records = []
            self._total = 0.0
