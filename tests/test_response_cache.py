"""Tests for the response cache."""

from llm_orchestrator.core.response_cache import (
    CACHED_SUFFIX,
    ResponseCache,
    cache_key,
    is_cacheable,
)
from llm_orchestrator.types import (
    CompletionRequest,
    CompletionResponse,
    Message,
    MessageRole,
    ProviderType,
    ToolDefinition,
)

LONG_TEXT = "This response is comfortably longer than fifty characters in total."


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def request_for(text: str, tools=None) -> CompletionRequest:
    return CompletionRequest(messages=[Message(role=MessageRole.USER, content=text)], tools=tools)


def response_with(content: str = LONG_TEXT, tool_calls=None) -> CompletionResponse:
    return CompletionResponse(
        content=content, model="gpt-4o", provider=ProviderType.OPENAI, tool_calls=tool_calls
    )


class TestCacheKey:
    def test_only_last_three_messages_count(self):
        tail = [Message(role=MessageRole.USER, content=str(i)) for i in range(3)]
        first = CompletionRequest(messages=[Message(role=MessageRole.SYSTEM, content="a"), *tail])
        second = CompletionRequest(messages=[Message(role=MessageRole.SYSTEM, content="b"), *tail])
        assert cache_key(first) == cache_key(second)

    def test_tool_names_are_part_of_key(self):
        plain = request_for("hi")
        with_tool = request_for("hi", tools=[ToolDefinition(name="read_file")])
        assert cache_key(plain) != cache_key(with_tool)


class TestIsCacheable:
    def test_short_responses_are_not_cached(self):
        assert not is_cacheable(response_with("too short"))

    def test_tool_call_responses_are_not_cached(self, sample_tool_call):
        assert not is_cacheable(response_with(tool_calls=[sample_tool_call]))

    def test_long_plain_response(self):
        assert is_cacheable(response_with())


class TestResponseCache:
    def test_hit_marks_model_as_cached(self):
        cache = ResponseCache()
        request = request_for("explain closures")
        assert cache.put(request, response_with())

        cached = cache.get(request)
        assert cached is not None
        assert cached.model == "gpt-4o" + CACHED_SUFFIX
        assert cached.content == LONG_TEXT

    def test_miss(self):
        assert ResponseCache().get(request_for("nothing stored")) is None

    def test_uncacheable_response_is_not_stored(self):
        cache = ResponseCache()
        assert not cache.put(request_for("q"), response_with("short"))
        assert len(cache) == 0

    def test_entry_expires_after_ttl(self):
        clock = FakeClock()
        cache = ResponseCache(clock=clock)
        request = request_for("q")
        cache.put(request, response_with())

        clock.now += 299
        assert cache.get(request) is not None

        clock.now += 1
        assert cache.get(request) is None
        assert len(cache) == 0

    def test_101st_insert_evicts_oldest(self):
        cache = ResponseCache()
        for i in range(100):
            cache.put(request_for(f"q{i}"), response_with())
        assert len(cache) == 100

        cache.put(request_for("q100"), response_with())
        assert len(cache) == 100
        assert cache.get(request_for("q0")) is None
        assert cache.get(request_for("q1")) is not None
        assert cache.get(request_for("q100")) is not None

    def test_overwrite_keeps_queue_position(self):
        cache = ResponseCache(max_entries=2)
        cache.put(request_for("a"), response_with())
        cache.put(request_for("b"), response_with())
        cache.put(request_for("a"), response_with(LONG_TEXT + " again"))
        cache.put(request_for("c"), response_with())

        assert cache.get(request_for("a")) is None
        assert cache.get(request_for("b")) is not None

    def test_clear(self):
        cache = ResponseCache()
        cache.put(request_for("q"), response_with())
        cache.clear()
        assert len(cache) == 0
