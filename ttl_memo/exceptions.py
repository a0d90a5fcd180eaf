"""
Exceptions used by the ttl_memo package
"""

__all__ = ['MemoizeError', 'KeyDerivationError', 'ConfigException', 'InvalidConfigError']


class MemoizeError(Exception):
    """Base exception for errors raised by ttl_memo itself"""


class KeyDerivationError(MemoizeError, TypeError):
    """Raised when a cache key cannot be derived from the arguments passed to a memoized function"""

    def __init__(self, value, reason: str = None):
        self.value = value
        self.reason = reason

    def __str__(self) -> str:
        msg = f'Unable to derive a cache key from value of type={self.value.__class__.__qualname__}'
        return f'{msg}: {self.reason}' if self.reason else msg


# region Config Exceptions


class ConfigException(MemoizeError):
    """Base exception for config-related errors"""


class InvalidConfigError(ConfigException):
    """Raised when invalid config items are provided when initializing a ConfigSection"""


# endregion
