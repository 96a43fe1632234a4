"""
In-memory cache for model answers, keyed by the full prompt
"""

import asyncio
import hashlib
from datetime import datetime, timedelta
from typing import Dict, Optional, Tuple


class GPTResponseCache:
    """TTL cache for model answers; expired entries are dropped on every write"""

    def __init__(self, ttl_minutes: int = 60, max_entries: int = 500):
        self.entries: Dict[str, Tuple[str, datetime]] = {}
        self.ttl = timedelta(minutes=ttl_minutes)
        self.max_entries = max_entries
        self._lock = asyncio.Lock()
        self.hits = 0
        self.misses = 0

    @staticmethod
    def key_for(prompt: str) -> str:
        return hashlib.md5(prompt.encode("utf-8")).hexdigest()

    async def get(self, prompt: str) -> Optional[str]:
        key = self.key_for(prompt)
        async with self._lock:
            entry = self.entries.get(key)
            if entry and datetime.now() < entry[1]:
                self.hits += 1
                return entry[0]

            self.entries.pop(key, None)
            self.misses += 1
            return None

    async def set(self, prompt: str, response: str):
        async with self._lock:
            self._drop_expired()
            if len(self.entries) >= self.max_entries:
                # Oldest insert goes first
                self.entries.pop(next(iter(self.entries)))
            self.entries[self.key_for(prompt)] = (response, datetime.now() + self.ttl)

    def _drop_expired(self) -> int:
        now = datetime.now()
        expired = [key for key, (_, expires_at) in self.entries.items() if now >= expires_at]
        for key in expired:
            del self.entries[key]
        return len(expired)

    async def clear(self):
        async with self._lock:
            self.entries.clear()
            self.hits = 0
            self.misses = 0

    def stats(self) -> Dict[str, int]:
        return {
            "total_entries": len(self.entries),
            "size_bytes": sum(len(response) for response, _ in self.entries.values()),
            "hits": self.hits,
            "misses": self.misses
        }


gpt_cache = GPTResponseCache(ttl_minutes=120)
