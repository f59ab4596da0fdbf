"""In-memory TTL cache for search results."""

import time
from collections import OrderedDict
from functools import lru_cache

from app.core.config import get_settings
from app.models.fund import FundDocument, SearchRequest


class SearchResultCache:
    """
    Caches search results keyed by the canonical JSON of the request.
    
    Entries expire after ``ttl_seconds``; the oldest entry is evicted once
    ``max_entries`` is reached. Documents are copied on the way in and out,
    so callers may mutate what they get back. Nothing in the ingestion
    pipeline clears it; callers invoke ``clear()`` after a resync or on demand.
    """
    
    def __init__(self, ttl_seconds: float = 300, max_entries: int = 1024):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._entries: OrderedDict[str, tuple[list[FundDocument], float]] = OrderedDict()
    
    @staticmethod
    def key_for(request: SearchRequest) -> str:
        return request.model_dump_json()
    
    def get(self, request: SearchRequest) -> list[FundDocument] | None:
        key = self.key_for(request)
        entry = self._entries.get(key)
        if entry is None:
            return None
        
        results, cached_at = entry
        if time.monotonic() - cached_at >= self.ttl_seconds:
            del self._entries[key]
            return None
        return [document.model_copy(deep=True) for document in results]
    
    def put(self, request: SearchRequest, results: list[FundDocument]) -> None:
        key = self.key_for(request)
        self._entries.pop(key, None)
        while len(self._entries) >= self.max_entries:
            self._entries.popitem(last=False)
        self._entries[key] = (
            [document.model_copy(deep=True) for document in results],
            time.monotonic(),
        )
    
    def clear(self) -> None:
        """Discard all cached search results."""
        self._entries.clear()
    
    def __len__(self) -> int:
        return len(self._entries)


@lru_cache
def get_search_cache() -> SearchResultCache:
    """Get the process-wide search result cache."""
    settings = get_settings()
    return SearchResultCache(
        ttl_seconds=settings.search_cache_ttl_seconds,
        max_entries=settings.search_cache_max_entries,
    )
