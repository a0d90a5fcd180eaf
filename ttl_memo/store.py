"""
Dict-like storage for memoized results.

A :class:`~.decorate.MemoizedFunc` only relies on ``store.get(key)`` and ``store[key] = entry``, so any mutable mapping
may be installed in place of a :class:`CacheStore`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, MutableMapping
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .expiry import ExpiryPolicy

__all__ = ['CacheEntry', 'CacheStore']
log = logging.getLogger(__name__)


class CacheEntry:
    """
    A memoized value and the time at which it was computed.  The value may be a pending future / task; it is stored as
    the handle itself, not its eventual result.
    """
    __slots__ = ('timestamp', 'value')

    def __init__(self, timestamp: float, value: Any):
        self.timestamp = timestamp
        self.value = value

    def __eq__(self, other) -> bool:
        try:
            return self.timestamp == other.timestamp and self.value == other.value
        except AttributeError:
            return False

    __hash__ = None

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__}(timestamp={self.timestamp!r}, value={self.value!r})>'


class CacheStore(MutableMapping[str, CacheEntry]):
    __slots__ = ('_entries',)

    def __init__(self, entries: Mapping[str, CacheEntry] = None):
        self._entries = dict(entries) if entries else {}

    def get(self, key: str, default: CacheEntry | None = None) -> CacheEntry | None:
        return self._entries.get(key, default)

    def set(self, key: str, entry: CacheEntry):
        self._entries[key] = entry

    def __getitem__(self, key: str) -> CacheEntry:
        return self._entries[key]

    def __setitem__(self, key: str, entry: CacheEntry):
        self._entries[key] = entry

    def __delitem__(self, key: str):
        del self._entries[key]

    def __contains__(self, key) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self):
        self._entries.clear()

    def expire(self, policy: ExpiryPolicy, now: float = None) -> int:
        """
        Remove all entries that are no longer valid according to the given policy.  Nothing calls this automatically.

        :param policy: The :class:`~.expiry.ExpiryPolicy` used to decide whether each entry is stale
        :param now: The time to compare entry timestamps against (default: the policy's current time)
        :return: The number of entries that were removed
        """
        if now is None:
            now = policy.now()
        stale = [key for key, entry in self._entries.items() if not policy.is_valid(entry, now)]
        for key in stale:
            del self._entries[key]
        log.debug(f'Removed {len(stale)} expired entries from {self!r}')
        return len(stale)

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__}[entries={len(self._entries)}]>'
