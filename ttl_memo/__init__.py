"""
A ``memoize`` decorator that caches results for previously seen arguments, with each stored result expiring after a
configurable time-to-live.
"""

from .__version__ import __author__, __author_email__, __description__, __title__, __url__, __version__
from .decorate import memoize, MemoizedFunc, default_convert_args
from .exceptions import MemoizeError, KeyDerivationError, ConfigException, InvalidConfigError
from .expiry import DEFAULT_TTL, ExpiryPolicy, is_valid
from .keys import canonicalize, KeyCanonicalizer, CycleSafeEncoder, KeywordArguments
from .options import MemoizeOptions
from .store import CacheEntry, CacheStore
