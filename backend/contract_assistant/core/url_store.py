"""
Hand-over slot for the DocuSign URL sent by the browser extension.

The extension posts the URL it is looking at, the web app picks it up once.
"""

import asyncio
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from contract_assistant.core.model_config import SERVER_CONFIG


class PendingUrlStore:
    """Holds the most recent URL until it is read or expires"""

    def __init__(self, ttl_minutes: int = 10):
        self.ttl = timedelta(minutes=ttl_minutes)
        self._entry: Optional[Dict[str, Any]] = None
        self._lock = asyncio.Lock()

    async def put(self, url: str):
        async with self._lock:
            self._entry = {
                'url': url,
                'expires_at': datetime.now() + self.ttl
            }

    async def pop(self) -> Optional[str]:
        """Return the pending URL and clear it"""
        async with self._lock:
            entry, self._entry = self._entry, None

        if entry is None or datetime.now() >= entry['expires_at']:
            return None
        return entry['url']


pending_urls = PendingUrlStore(ttl_minutes=SERVER_CONFIG["pending_url_ttl_minutes"])
