"""
Options accepted by :func:`memoize<.decorate.memoize>`.
"""

from __future__ import annotations

import hashlib
from time import monotonic
from typing import Callable, Any

from .config import ConfigItem, ConfigSection
from .expiry import DEFAULT_TTL, normalize_ttl
from .keys import STRATEGIES

__all__ = ['MemoizeOptions']

DEFAULT_TOGGLE_NAME = 'use_cached'


def _callable(value: Any) -> Callable:
    if not callable(value):
        raise TypeError(f'expected a callable, but found type={value.__class__.__name__}')
    return value


def _optional_callable(value: Any) -> Callable | None:
    return None if value is None else _callable(value)


def _key_strategy(value: str) -> str:
    if value not in STRATEGIES:
        raise ValueError(f'expected one of: {", ".join(STRATEGIES)}')
    return value


def _hash_name(value: str) -> str:
    hashlib.new(value)  # raises ValueError if the algorithm is not supported
    return value


def _toggle_name(value: str | bool | None) -> str | None:
    if value is True:
        return DEFAULT_TOGGLE_NAME
    elif not value:
        return None
    elif not isinstance(value, str) or not value.isidentifier():
        raise ValueError('expected True or a valid parameter name')
    return value


class MemoizeOptions(ConfigSection):
    #: Seconds (or a timedelta) for which each cached result remains valid
    ttl: float = ConfigItem(DEFAULT_TTL, type=normalize_ttl)
    #: Called with the original arguments; returns the argument list that should be used to derive the cache key
    convert_args: Callable[..., Any] | None = ConfigItem(None, type=_optional_callable)
    #: ``hash`` or ``serialize``; see :class:`~.keys.KeyCanonicalizer`
    key_strategy: str = ConfigItem('hash', type=_key_strategy)
    #: The hashlib algorithm used by the ``hash`` key strategy
    hash_name: str = ConfigItem('sha1', type=_hash_name)
    #: Zero-argument clock that returns the current time in seconds
    timer: Callable[[], float] = ConfigItem(monotonic, type=_callable)
    #: If truthy, the name of a keyword-only argument that can be used to bypass cached values (True -> use_cached)
    optional: str | None = ConfigItem(None, type=_toggle_name)
    #: The default value for the ``optional`` toggle argument
    optional_default: bool = ConfigItem(True, type=bool)
