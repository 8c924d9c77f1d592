"""Tests for the cost ledger."""

from datetime import datetime, timedelta

from llm_orchestrator.core.cost_ledger import CostLedger, complexity_for_model
from llm_orchestrator.types import ProviderType, TaskComplexity, TokenUsage


def usage(input_tokens=1000, output_tokens=500) -> TokenUsage:
    return TokenUsage(input_tokens=input_tokens, output_tokens=output_tokens)


class TestRecord:
    def test_total_accumulates(self):
        ledger = CostLedger()
        ledger.record(ProviderType.OPENAI, "gpt-4o", usage(), 0.01)
        ledger.record(ProviderType.GROQ, "llama-3.1-8b-instant", usage(), 0.002)
        assert ledger.total == 0.01 + 0.002
        assert len(ledger.records) == 2

    def test_records_are_trimmed_but_total_is_not(self):
        ledger = CostLedger(max_records=3)
        for _ in range(5):
            ledger.record(ProviderType.OPENAI, "gpt-4o", usage(), 1.0)
        assert len(ledger.records) == 3
        assert ledger.total == 5.0

    def test_records_returns_copy(self):
        ledger = CostLedger()
        ledger.record(ProviderType.OPENAI, "gpt-4o", usage(), 1.0)
        ledger.records.clear()
        assert len(ledger.records) == 1


class TestSubscribers:
    def test_subscriber_notified_after_each_record(self):
        ledger = CostLedger()
        updates = []
        ledger.subscribe(updates.append)

        ledger.record(ProviderType.OPENAI, "gpt-4o", usage(), 0.5)
        ledger.record(ProviderType.OPENAI, "gpt-4o", usage(), 0.25)

        assert [u.total for u in updates] == [0.5, 0.75]
        assert len(updates[-1].records) == 2

    def test_unsubscribe(self):
        ledger = CostLedger()
        updates = []
        unsubscribe = ledger.subscribe(updates.append)
        unsubscribe()
        ledger.record(ProviderType.OPENAI, "gpt-4o", usage(), 0.5)
        assert updates == []


class TestSummarize:
    def test_breakdowns(self):
        ledger = CostLedger()
        now = datetime(2025, 1, 2, 12, 0)
        ledger.record(ProviderType.OPENAI, "gpt-4o", usage(), 1.0, timestamp=now - timedelta(hours=30))
        ledger.record(ProviderType.OPENAI, "gpt-4o-mini", usage(), 0.5, timestamp=now - timedelta(hours=1))
        ledger.record(ProviderType.GROQ, "llama-3.1-8b-instant", usage(), 0.25, timestamp=now)

        seen = []

        def estimate(items):
            seen.extend(items)
            return 2.0

        summary = ledger.summarize(estimate, now=now)
        assert summary.total_cost == 1.75
        assert summary.by_provider == {"openai": 1.5, "groq": 0.25}
        assert summary.by_model == {"gpt-4o": 1.0, "gpt-4o-mini": 0.5, "llama-3.1-8b-instant": 0.25}
        assert summary.last_24_hours == 0.75
        assert summary.estimated_monthly_savings == 60.0
        assert [complexity for _, complexity in seen] == [
            TaskComplexity.COMPLEX, TaskComplexity.MEDIUM, TaskComplexity.SIMPLE,
        ]

    def test_reset(self):
        ledger = CostLedger()
        ledger.record(ProviderType.OPENAI, "gpt-4o", usage(), 1.0)
        ledger.reset()
        assert ledger.total == 0.0
        assert ledger.records == []


def test_complexity_for_model():
    assert complexity_for_model("qwen2.5-coder") == TaskComplexity.SIMPLE
    assert complexity_for_model("claude-3-5-haiku-20241022") == TaskComplexity.MEDIUM
    assert complexity_for_model("claude-opus-4-20250514") == TaskComplexity.COMPLEX
