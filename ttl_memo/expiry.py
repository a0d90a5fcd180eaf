"""
TTL-based freshness checks for cache entries.

Expiry is evaluated lazily: nothing here removes entries from a store on its own.  A stale entry stays where it is until
a lookup finds it stale and the memoized function overwrites it with a freshly computed entry, or until
:meth:`CacheStore.expire<.store.CacheStore.expire>` is called explicitly.
"""

from __future__ import annotations

from datetime import timedelta
from time import monotonic
from typing import TYPE_CHECKING, Callable, Union

if TYPE_CHECKING:
    from .store import CacheEntry

__all__ = ['DEFAULT_TTL', 'ExpiryPolicy', 'is_valid', 'normalize_ttl']

DEFAULT_TTL = 60 * 60  # 1 hour, in seconds

Timer = Callable[[], float]
TTL = Union[int, float, timedelta]


def normalize_ttl(ttl: TTL) -> float:
    """
    :param ttl: A number of seconds or a :class:`~datetime.timedelta`
    :return: The TTL in seconds
    """
    if isinstance(ttl, timedelta):
        ttl = ttl.total_seconds()
    elif isinstance(ttl, bool) or not isinstance(ttl, (int, float)):
        raise TypeError(f'Invalid {ttl=} - expected a number of seconds or a timedelta')
    if not ttl >= 0:  # also rejects NaN
        raise ValueError(f'Invalid {ttl=} - it must be a non-negative number')
    return ttl


def is_valid(entry: CacheEntry, ttl: float, now: float) -> bool:
    """
    An entry is valid while its age is strictly less than the TTL.  An entry that is exactly ``ttl`` seconds old is
    already expired.
    """
    return now - entry.timestamp < ttl


class ExpiryPolicy:
    __slots__ = ('ttl', 'timer')

    def __init__(self, ttl: TTL = DEFAULT_TTL, timer: Timer = monotonic):
        self.ttl = normalize_ttl(ttl)
        self.timer = timer

    def now(self) -> float:
        return self.timer()

    def is_valid(self, entry: CacheEntry, now: float = None) -> bool:
        return is_valid(entry, self.ttl, self.timer() if now is None else now)

    def is_expired(self, entry: CacheEntry, now: float = None) -> bool:
        return not self.is_valid(entry, now)

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__}(ttl={self.ttl!r}, timer={self.timer!r})>'
