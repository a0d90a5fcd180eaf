"""
A small recipe for declaring validated option sets.

:class:`ConfigSection` is intended to be used as a base class for option classes, and the :class:`ConfigItem`
descriptor is intended to be used to define each option in subclasses of ConfigSection.  Values are normalized by each
item's ``type`` callable when they are set; a ``ValueError`` or ``TypeError`` raised by that callable is re-raised as
an :class:`InvalidConfigError`.
"""

from __future__ import annotations

from collections import ChainMap
from typing import Union, TypeVar, Callable, Iterable, Any, Mapping, Generic, Type, overload

from .exceptions import InvalidConfigError

__all__ = ['ConfigItem', 'ConfigSection']

CV = TypeVar('CV')
Kwargs = Union[Mapping[str, Any], None]
ConfigMap = Union[Mapping[str, Any], 'ConfigSection', None]


class ConfigItem(Generic[CV]):
    __slots__ = ('name', 'type', 'default')

    def __init__(self, default: CV, type: Callable[..., CV] = None):  # noqa
        self.type = type
        self.default = default

    def __set_name__(self, owner: Type[ConfigSection], name: str):
        self.name = name
        owner._config_items_[name] = self

    @overload
    def __get__(self, instance: None, owner: Type[ConfigSection]) -> ConfigItem[CV]:
        ...

    @overload
    def __get__(self, instance: ConfigSection, owner: Type[ConfigSection]) -> CV:
        ...

    def __get__(self, instance, owner):
        try:
            return instance.__dict__[self.name]
        except AttributeError:  # instance is None
            return self
        except KeyError:
            return self.default

    def __set__(self, instance: ConfigSection, value: CV):
        if self.type is not None:
            try:
                value = self.type(value)
            except (TypeError, ValueError) as e:
                raise InvalidConfigError(f'Invalid value for {self.name}={value!r}: {e}') from e
        instance.__dict__[self.name] = value

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__}({self.default!r}, type={self.type!r})>'


class ConfigMeta(type):
    """
    Metaclass for ConfigSections.  Necessary to initialize the ``_config_items_`` dict for ConfigItem registration
    because the contents of a class is evaluated before ``__init_subclass__`` is called.
    """
    _config_items_: dict[str, ConfigItem]

    @classmethod
    def __prepare__(mcs, name: str, bases: Iterable[type], **kwargs) -> dict[str, Any]:
        """Called before ``__new__`` and before evaluating the contents of a class."""
        config_items = {}
        for base in bases:
            if isinstance(base, mcs):
                config_items.update(base._config_items_)
        return {'_config_items_': config_items}


def _config_map(section: ConfigSection, config: ConfigMap, kwargs: Kwargs = None) -> Mapping[str, Any]:
    if isinstance(config, ConfigSection):
        config = config.__dict__

    # kwargs take precedence over values from the provided config
    if config_map := ChainMap(kwargs, config) if config and kwargs else (config or kwargs):
        if bad := set(config_map).difference(section._config_items_):
            raise InvalidConfigError(f'Invalid configuration - unsupported options: {", ".join(sorted(bad))}')
    return config_map


class ConfigSection(metaclass=ConfigMeta):
    _config_items_: dict[str, ConfigItem]

    def __init__(self, config: ConfigMap = None, **kwargs):
        self.update(config, **kwargs)

    def update(self, config: ConfigMap = None, **kwargs):
        """
        Update this section with the given content.  If any of the provided keys are not expected, then an
        :class:`InvalidConfigError` will be raised before any values are changed.

        :param config: A dict or other mapping containing values that should be used in this section
        :param kwargs: Additional keyword arguments for values that should be used in this section
        """
        if config_map := _config_map(self, config, kwargs):
            for key, val in config_map.items():
                setattr(self, key, val)

    def as_dict(self, include_defaults: bool = True) -> dict[str, Any]:
        keys = self._config_items_ if include_defaults else self.__dict__
        return {key: getattr(self, key) for key in keys}

    def __repr__(self) -> str:
        settings = ', '.join(f'{k}={v!r}' for k, v in self.__dict__.items())
        return f'<{self.__class__.__name__}({settings})>'
