"""TTL cache for provider objects (contacts, events).

Entries are advisory copies of remote objects keyed by
``(grant_id, object_type, object_id)``. An expired entry is never returned;
a miss always sends the caller back to the provider. Concurrent writers to
the same key race with last-write-wins semantics.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

import pytz

logger = logging.getLogger(__name__)

CacheKey = tuple[str, str, str]


@dataclass
class CacheEntry:
    """A cached remote object with its expiry."""

    grant_id: str
    object_type: str
    object_id: str
    data: Any
    last_synced_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


def _utc_now() -> datetime:
    return datetime.now(pytz.utc)


class TTLCache:
    """In-process TTL cache service, passed explicitly to the agents that use it."""

    def __init__(
        self,
        default_ttl_hours: float = 24,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize cache.

        Args:
            default_ttl_hours: TTL used when ``upsert`` gets none
            clock: Returns the current aware datetime (injectable for tests)
        """
        self.default_ttl_hours = default_ttl_hours
        self._clock = clock or _utc_now
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, grant_id: str, object_type: str, object_id: str) -> Optional[Any]:
        """Return the live cached value, or None on miss or expiry."""
        key = (grant_id, object_type, object_id)
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired(now):
                del self._entries[key]
                return None
            return entry.data

    def upsert(
        self,
        grant_id: str,
        object_type: str,
        object_id: str,
        data: Any,
        ttl_hours: Optional[float] = None,
    ) -> CacheEntry:
        """Write ``data`` with a fresh TTL, replacing any previous entry."""
        now = self._clock()
        ttl = self.default_ttl_hours if ttl_hours is None else ttl_hours
        entry = CacheEntry(
            grant_id=grant_id,
            object_type=object_type,
            object_id=object_id,
            data=data,
            last_synced_at=now,
            expires_at=now + timedelta(hours=ttl),
        )
        with self._lock:
            self._entries[(grant_id, object_type, object_id)] = entry
        return entry

    def delete(self, grant_id: str, object_type: str, object_id: str) -> bool:
        """Remove one entry. Returns True if it existed."""
        with self._lock:
            return self._entries.pop((grant_id, object_type, object_id), None) is not None

    def clear_grant(self, grant_id: str) -> int:
        """Remove every entry of a grant (e.g. after revocation)."""
        with self._lock:
            keys = [k for k in self._entries if k[0] == grant_id]
            for key in keys:
                del self._entries[key]
        if keys:
            logger.info(f"Cleared {len(keys)} cache entries for grant")
        return len(keys)

    def purge_expired(self) -> int:
        now = self._clock()
        with self._lock:
            keys = [k for k, e in self._entries.items() if e.is_expired(now)]
            for key in keys:
                del self._entries[key]
        return len(keys)

    def stats(self) -> dict[str, int]:
        """Entry counts: total, expired and one count per object type."""
        now = self._clock()
        with self._lock:
            entries = list(self._entries.values())
        result: dict[str, int] = {
            "total": len(entries),
            "expired": sum(1 for e in entries if e.is_expired(now)),
        }
        for entry in entries:
            result[entry.object_type] = result.get(entry.object_type, 0) + 1
        return result

    def __len__(self) -> int:
        return len(self._entries)
