"""
A ``memoize`` decorator that caches results per argument set, with each result expiring after a TTL.

Similar to :func:`functools.lru_cache`, calls with the same arguments return the stored result instead of calling the
wrapped function again.  Unlike ``lru_cache``, arguments do not need to be hashable, stored results expire ``ttl``
seconds after they were computed, and the store can be inspected, modified, or replaced at runtime::

    >>> @memoize(ttl=60)
    ... def slow_rarely_changing(a, b):
    ...     ...
    >>> slow_rarely_changing(1, 2)  # miss - slow
    >>> slow_rarely_changing(3, 4)  # miss - slow
    >>> slow_rarely_changing(1, 2)  # hit - fast
    >>> slow_rarely_changing.cache = {}  # wipe all stored results
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from functools import update_wrapper, partial
from inspect import Signature, Parameter, iscoroutine
from typing import Any, Callable, Generic, MutableMapping, ParamSpec, TypeVar, overload

from wrapt import synchronized

from .exceptions import InvalidConfigError
from .expiry import ExpiryPolicy
from .keys import KeyCanonicalizer, KeywordArguments
from .options import MemoizeOptions
from .store import CacheEntry, CacheStore

__all__ = ['memoize', 'MemoizedFunc', 'default_convert_args']
log = logging.getLogger(__name__)

P = ParamSpec('P')
T = TypeVar('T')
Store = MutableMapping[str, CacheEntry]
Options = Mapping[str, Any] | MemoizeOptions | None


def default_convert_args(*args, **kwargs) -> list[Any]:
    """The positional args as-is, followed by the keyword args (if any) as a single :class:`.KeywordArguments`."""
    return [*args, KeywordArguments(kwargs)] if kwargs else list(args)


@overload
def memoize(func: Callable[P, T], options: Options = None, **kwargs) -> MemoizedFunc[P, T]:
    ...


@overload
def memoize(func: None = None, options: Options = None, **kwargs) -> Callable[[Callable[P, T]], MemoizedFunc[P, T]]:
    ...


def memoize(func=None, options=None, **kwargs):
    """
    Wrap the given function with a :class:`MemoizedFunc`.  May be used directly (``memoize(func, ttl=10)``), as a
    decorator (``@memoize``), or as a decorator factory (``@memoize(ttl=10)`` / ``@memoize({'ttl': 10})``).

    :param func: The function whose results should be cached
    :param options: A mapping or :class:`.MemoizeOptions` instance.  Keyword arguments override its values.
    :param kwargs: Options; see :class:`.MemoizeOptions` for the supported keys:
      - ``ttl``: Seconds (or a timedelta) for which each cached result remains valid (default: 1 hour)
      - ``convert_args``: Called with the original arguments to produce the argument list used to derive the cache key,
        e.g. ``lambda a, b, *_: [a, b]`` to ignore all but the first two arguments (default: all arguments)
      - ``key_strategy``: ``hash`` (default) or ``serialize``
      - ``hash_name``: The hashlib algorithm used by the ``hash`` key strategy (default: sha1)
      - ``timer``: Zero-argument clock returning the current time in seconds (default: :func:`time.monotonic`)
      - ``optional``: If truthy, a keyword-only argument with this name (``use_cached`` if True) is added to the
        wrapper to allow bypassing stored results
      - ``optional_default``: The default value of the ``optional`` toggle (default: True)
    :return: The memoized function, or a decorator if no function was provided
    """
    if isinstance(func, (Mapping, MemoizeOptions)) and options is None:
        func, options = None, func
    if func is not None:
        return MemoizedFunc(func, options, **kwargs)

    options = MemoizeOptions(options, **kwargs)  # Validate eagerly so errors surface at decoration time

    def decorator(function: Callable[P, T]) -> MemoizedFunc[P, T]:
        return MemoizedFunc(function, options)

    return decorator


class MemoizedFunc(Generic[P, T]):
    """
    Caches the results of calls to the wrapped function.  Each call:

    1. Converts the arguments with ``convert_args`` and derives a ``str`` key from them
    2. Returns the stored value if an entry exists for that key and it is younger than the TTL
    3. Otherwise, calls the wrapped function with the original arguments, stores the result with the time at which the
       call started, and returns it

    Exceptions raised by the wrapped function are never cached.  Futures, tasks, and other awaitables are cached as-is
    without being awaited, so repeated calls share the same pending computation.  Coroutine objects can only be awaited
    once, so a coroutine returned while an event loop is running is wrapped in a :class:`asyncio.Task` first.

    When defined in a class body, the instance is passed to the wrapped function, but it is not used when deriving the
    cache key, so all instances share one store.  Use ``convert_args`` or a bound method for per-instance behavior.
    """
    __slots__ = (
        'func', 'options', 'policy', 'key_func', 'convert_args', 'optional', 'optional_default', '_store', '__dict__'
    )

    def __init__(self, func: Callable[P, T], options: Options = None, **kwargs):
        options = options if isinstance(options, MemoizeOptions) and not kwargs else MemoizeOptions(options, **kwargs)
        self.func = func
        self.options = options
        self.policy = ExpiryPolicy(options.ttl, options.timer)
        self.key_func = KeyCanonicalizer(options.key_strategy, options.hash_name)
        self.convert_args = options.convert_args or default_convert_args
        self.optional = options.optional
        self.optional_default = options.optional_default
        self._store: Store | None = CacheStore()
        update_wrapper(self, func)
        if self.optional:
            self._inject_toggle_param()

    def _inject_toggle_param(self):
        try:
            sig = Signature.from_callable(self.func)
        except (TypeError, ValueError):  # Some builtins do not expose a signature
            return

        params = list(sig.parameters.values())
        pos = next((i for i, p in enumerate(params) if p.kind == Parameter.VAR_KEYWORD), len(params))
        params.insert(pos, Parameter(self.optional, Parameter.KEYWORD_ONLY, default=self.optional_default))
        try:
            self.__signature__ = sig.replace(parameters=params)
        except ValueError as e:
            raise InvalidConfigError(f'Unable to add optional={self.optional!r} param to {self._name}: {e}') from e

    @property
    def _name(self) -> str:
        return getattr(self, '__qualname__', None) or repr(self.func)

    # region Store Access

    @property
    def cache(self) -> Store | None:
        """The live store that holds this function's cached entries.  Assign a new mapping to replace it."""
        return self._store

    @cache.setter
    def cache(self, store: Store | None):
        log.log(9, f'Replacing the cache for {self._name} with {store!r}')
        self._store = store

    @cache.deleter
    def cache(self):
        self._store = CacheStore()

    @property
    def ttl(self) -> float:
        return self.policy.ttl

    def cache_key(self, *args: P.args, **kwargs: P.kwargs) -> str:
        """The key that would be used to store the result of calling this function with the given arguments."""
        return self.key_func(self.convert_args(*args, **kwargs))

    def expire(self, now: float = None) -> int:
        """
        Remove stale entries from the store.  This never happens automatically; stale entries are otherwise only
        replaced when the function is called again with the same arguments.

        :param now: The time to compare entry timestamps against (default: the current time)
        :return: The number of entries that were removed
        """
        if (store := self._store) is None:
            return 0

        with synchronized(self):
            if isinstance(store, CacheStore):
                return store.expire(self.policy, now)

            if now is None:
                now = self.policy.now()
            stale = [key for key, entry in list(store.items()) if not self.policy.is_valid(entry, now)]
            for key in stale:
                del store[key]
            log.debug(f'Removed {len(stale)} expired entries from the cache for {self._name}')
            return len(stale)

    # endregion

    def __get__(self, instance, owner):
        if instance is None:
            return self
        return partial(self._call_method, instance)

    def _call_method(self, receiver, *args: P.args, **kwargs: P.kwargs) -> T:
        return self._call(args, kwargs, (receiver,))

    def __call__(self, *args: P.args, **kwargs: P.kwargs) -> T:
        return self._call(args, kwargs)

    def _call(self, args: tuple, kwargs: dict[str, Any], receiver: tuple = ()) -> T:
        # The toggle needs to be popped first, if present, so it is never passed to the wrapped function
        use_cached = kwargs.pop(self.optional, self.optional_default) if self.optional else True
        if (store := self._store) is None:
            return self.func(*receiver, *args, **kwargs)

        key = self.key_func(self.convert_args(*args, **kwargs))
        with synchronized(self):
            now = self.policy.now()
            if use_cached and (entry := store.get(key)) is not None:
                if self.policy.is_valid(entry, now):
                    log.log(9, f'Returning cached value for {self._name} with {key=}')
                    return entry.value
                log.log(9, f'Cached value for {self._name} with {key=} expired')

        value = self._call_func(receiver, args, kwargs)
        with synchronized(self):
            # The entry goes to the store that was current when the lookup happened, even if it was replaced since then
            store[key] = CacheEntry(now, value)

        log.log(9, f'Stored new value for {self._name} with {key=}')
        return value

    def _call_func(self, receiver: tuple, args: tuple, kwargs: dict[str, Any]) -> T:
        value = self.func(*receiver, *args, **kwargs)
        if iscoroutine(value):
            try:
                asyncio.get_running_loop()
            except RuntimeError:  # No running loop; the coroutine can't be scheduled yet
                log.debug(f'{self._name} returned a coroutine outside of an event loop - it will be cached as-is')
            else:
                value = asyncio.ensure_future(value)
        return value

    def __repr__(self) -> str:
        settings = {'ttl': self.policy.ttl, **self.options.as_dict(include_defaults=False)}
        settings = ', '.join(f'{k}={v!r}' for k, v in settings.items())
        return f'<{self.__class__.__name__}({self.func!r}, {settings})>'
