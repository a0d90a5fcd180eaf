"""
Cache key derivation.

Arguments are converted into a single ``str`` key so that logically identical arguments map to the same key, even when
they are distinct object instances.  Primitive arguments contribute their ``str()`` form directly.  Any other argument
is first converted into a canonical JSON-compatible structure by :class:`CycleSafeEncoder`, which never modifies the
objects it reads and replaces references back to an object that is still being encoded with a ``["$ref", depth]``
marker.  Depending on the strategy, that canonical text is either used as-is (``serialize``) or hashed (``hash``).

Example::

    >>> canonicalize([1, 'a', None])
    '1aNone'
    >>> canonicalize([{'b': 2, 'a': 1}], strategy='serialize')
    '["dict",[["a",1],["b",2]]]'
"""

from __future__ import annotations

import hashlib
import json
from base64 import b64encode
from collections import deque
from collections.abc import Mapping, Set
from datetime import date, time, timedelta
from decimal import Decimal
from enum import Enum
from fractions import Fraction
from pathlib import PurePath
from types import BuiltinFunctionType, FunctionType, GeneratorType, MethodType, ModuleType, CoroutineType
from typing import Any, Iterable, Sequence
from uuid import UUID

from .exceptions import KeyDerivationError

__all__ = ['canonicalize', 'KeyCanonicalizer', 'CycleSafeEncoder', 'KeywordArguments', 'STRATEGIES']

STRATEGIES = ('hash', 'serialize')
PRIMITIVES = (str, int, float, type(None))  # bool is a subclass of int
REF_MARKER = '$ref'

_TEXT_TYPES = (Decimal, UUID, Fraction)
_UNKEYABLE_TYPES = (FunctionType, BuiltinFunctionType, MethodType, ModuleType, GeneratorType, CoroutineType)


class KeywordArguments(dict):
    """Holds the keyword arguments of a call so they can't collide with a positional dict argument in a key."""
    __slots__ = ()


def canonicalize(args: Sequence[Any] | Any, strategy: str = 'hash', hash_name: str = 'sha1') -> str:
    """
    :param args: The argument vector for one call.  A value that is not a list or tuple is treated as a single argument.
    :param strategy: ``hash`` to use a digest of each composite argument's canonical form, or ``serialize`` to use the
      canonical form itself
    :param hash_name: The :mod:`hashlib` algorithm to use for the ``hash`` strategy
    :return: The cache key for the given arguments
    """
    return KeyCanonicalizer(strategy, hash_name)(args)


class KeyCanonicalizer:
    __slots__ = ('strategy', 'hash_name')

    def __init__(self, strategy: str = 'hash', hash_name: str = 'sha1'):
        if strategy not in STRATEGIES:
            raise ValueError(f'Invalid key {strategy=} - expected one of: {", ".join(STRATEGIES)}')
        hashlib.new(hash_name)  # Raises ValueError for unsupported algorithms
        self.strategy = strategy
        self.hash_name = hash_name

    def __call__(self, args: Sequence[Any] | Any) -> str:
        if not isinstance(args, (list, tuple)):
            args = [args]
        return ''.join(map(self.element_key, args))

    def element_key(self, value: Any) -> str:
        try:
            if isinstance(value, PRIMITIVES) and not isinstance(value, Enum):
                return str(value)  # ints beyond sys.get_int_max_str_digits() raise ValueError
            text = CycleSafeEncoder().encode(value)
        except KeyDerivationError:
            raise
        except (RecursionError, TypeError, ValueError) as e:
            raise KeyDerivationError(value, f'{e.__class__.__name__}: {e}') from e

        if self.strategy == 'hash':
            return hashlib.new(self.hash_name, text.encode('utf-8')).hexdigest()
        return text

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__}(strategy={self.strategy!r}, hash_name={self.hash_name!r})>'


class CycleSafeEncoder:
    """
    Converts an arbitrary object graph into a canonical, JSON-compatible structure.

    Every non-primitive node becomes a ``[tag, payload]`` pair, where the tag is the node's type.  Mapping items and set
    members are sorted by their canonical text.  Objects that are currently being encoded are tracked by ``id()`` along
    with their depth in the traversal path; a reference back to one of them is emitted as ``["$ref", depth]``.  Objects
    that are merely shared (referenced more than once without forming a cycle) are encoded in full at each position.

    A new encoder should be used for each top-level value.
    """
    __slots__ = ('_path',)

    def __init__(self):
        self._path: dict[int, int] = {}

    def encode(self, obj: Any) -> str:
        return _dumps(self.to_canonical(obj))

    def to_canonical(self, obj: Any):
        if isinstance(obj, Enum):
            return [_type_name(obj), self.to_canonical(obj.value)]
        elif isinstance(obj, PRIMITIVES):
            return obj
        elif isinstance(obj, (bytes, bytearray, memoryview)):
            return [_type_name(obj), b64encode(obj).decode('ascii')]
        elif isinstance(obj, (date, time)):  # datetime is a subclass of date
            return [_type_name(obj), obj.isoformat()]
        elif isinstance(obj, timedelta):
            return [_type_name(obj), [obj.days, obj.seconds, obj.microseconds]]
        elif isinstance(obj, _TEXT_TYPES):
            return [_type_name(obj), str(obj)]
        elif isinstance(obj, PurePath):
            return [_type_name(obj), obj.as_posix()]
        elif isinstance(obj, complex):
            return ['complex', [obj.real, obj.imag]]
        elif isinstance(obj, range):
            return ['range', [obj.start, obj.stop, obj.step]]
        elif isinstance(obj, type):
            return ['type', f'{obj.__module__}.{obj.__qualname__}']
        elif isinstance(obj, _UNKEYABLE_TYPES):
            raise KeyDerivationError(obj, 'callables, modules, generators, and coroutines cannot be used as keys')

        obj_id = id(obj)
        if (depth := self._path.get(obj_id)) is not None:
            return [REF_MARKER, depth]

        self._path[obj_id] = len(self._path)
        try:
            return self._composite_to_canonical(obj)
        finally:
            del self._path[obj_id]

    def _composite_to_canonical(self, obj: Any):
        if isinstance(obj, Mapping):
            return [_type_name(obj), self._items(obj.items())]
        elif isinstance(obj, (list, tuple, deque)):
            return [_type_name(obj), [self.to_canonical(v) for v in obj]]
        elif isinstance(obj, Set):
            return [_type_name(obj), sorted((self.to_canonical(v) for v in obj), key=_dumps)]
        elif hasattr(obj, '__to_json__'):
            return [_type_name(obj), self.to_canonical(obj.__to_json__())]
        elif hasattr(obj, '__serializable__'):
            return [_type_name(obj), self.to_canonical(obj.__serializable__())]
        return [_type_name(obj), self._items(_instance_state(obj).items())]

    def _items(self, items: Iterable[tuple[Any, Any]]) -> list[list]:
        keyed = []
        for key, val in items:
            key = self.to_canonical(key)
            keyed.append((_dumps(key), key, val))

        keyed.sort(key=lambda kkv: kkv[0])
        return [[key, self.to_canonical(val)] for _, key, val in keyed]


def _instance_state(obj: Any) -> dict[str, Any]:
    try:
        state = dict(vars(obj))
    except TypeError:  # no __dict__
        state = None

    for cls in type(obj).__mro__:
        slots = cls.__dict__.get('__slots__', ())
        for name in (slots,) if isinstance(slots, str) else slots:
            if name in ('__dict__', '__weakref__'):
                continue
            elif name.startswith('__') and not name.endswith('__'):
                name = f'_{cls.__name__.lstrip("_")}{name}'
            try:
                value = getattr(obj, name)
            except AttributeError:  # unset slot
                continue
            if state is None:
                state = {}
            state.setdefault(name, value)

    if state is None:
        raise KeyDerivationError(obj, 'it has no instance state that can be used as a key')
    return state


def _type_name(obj: Any) -> str:
    cls = obj.__class__
    if cls.__module__ == 'builtins':
        return cls.__qualname__
    return f'{cls.__module__}.{cls.__qualname__}'


def _dumps(canonical) -> str:
    return json.dumps(canonical, separators=(',', ':'))
