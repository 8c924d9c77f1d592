"""Response cache for the provider manager.

Entries are keyed by a canonical JSON rendering of the tail of the
conversation plus the tool names, live for five minutes and are evicted
oldest-first once the store is full.
"""

import dataclasses
import json
import threading
import time
from typing import Callable

from ..logging import get_logger
from ..types import CacheEntry, CompletionRequest, CompletionResponse

logger = get_logger(__name__)

CACHE_TTL_SECONDS = 300
MAX_CACHE_ENTRIES = 100
# only the most recent messages take part in the key
KEY_MESSAGE_COUNT = 3
MIN_CACHEABLE_LENGTH = 50
CACHED_SUFFIX = " (cached)"


def cache_key(request: CompletionRequest) -> str:
    """Build the cache key for a request."""
    return json.dumps(
        {
            "messages": [m.to_dict() for m in request.messages[-KEY_MESSAGE_COUNT:]],
            "tools": [tool.name for tool in request.tools or []],
        },
        sort_keys=True,
    )


def is_cacheable(response: CompletionResponse) -> bool:
    """Tool-using and very short responses are never stored."""
    return not response.has_tool_calls and len(response.content) >= MIN_CACHEABLE_LENGTH


class ResponseCache:
    """Thread-safe TTL cache of completion responses.

    Args:
        ttl: Entry lifetime in seconds.
        max_entries: Store size; the oldest insertion is evicted beyond it.
        clock: Time source returning epoch seconds.
    """

    def __init__(
        self,
        ttl: float = CACHE_TTL_SECONDS,
        max_entries: int = MAX_CACHE_ENTRIES,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl = ttl
        self.max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, request: CompletionRequest) -> CompletionResponse | None:
        """Return a fresh cached response for request, or None.

        The returned response is a copy whose model name carries the
        " (cached)" marker. Expired entries are removed on lookup.
        """
        key = cache_key(request)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.timestamp >= self.ttl:
                del self._entries[key]
                return None
            response = entry.response

        logger.debug(f"cache hit for {response.provider.value}/{response.model}")
        return dataclasses.replace(response, model=f"{response.model}{CACHED_SUFFIX}")

    def put(self, request: CompletionRequest, response: CompletionResponse) -> bool:
        """Store response if it is cacheable. Returns whether it was stored."""
        if not is_cacheable(response):
            return False

        key = cache_key(request)
        with self._lock:
            # overwriting a key keeps its original queue position
            self._entries[key] = CacheEntry(response=response, timestamp=self._clock())
            while len(self._entries) > self.max_entries:
                oldest = next(iter(self._entries))
                del self._entries[oldest]
        return True

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
