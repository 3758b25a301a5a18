"""
Type registration: ``@versioned(...)`` and the kind -> class/options table.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Tuple, Type, TypeVar

from .config import VersioningOptions

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=type)


class TypeRegistry:
    """Maps an owner kind (class name) to its class and options."""

    def __init__(self) -> None:
        self._types: Dict[str, Tuple[type, VersioningOptions]] = {}

    def register(self, cls: type, options: VersioningOptions) -> None:
        kind = cls.__name__
        if kind in self._types and self._types[kind][0] is not cls:
            logger.debug("Re-registering versioned kind %s", kind)
        self._types[kind] = (cls, options)

    def class_for(self, kind: str) -> Type[Any]:
        try:
            return self._types[kind][0]
        except KeyError:
            raise LookupError(f"{kind} is not a registered versioned type") from None

    def options_for(self, kind: str) -> VersioningOptions:
        try:
            return self._types[kind][1]
        except KeyError:
            raise LookupError(f"{kind} is not a registered versioned type") from None

    def __contains__(self, kind: str) -> bool:
        return kind in self._types


registry = TypeRegistry()


def versioned(**options: Any) -> Callable[[T], T]:
    """Mark a record class as versioned.

    Options:
    * ``keep`` – number of old versions to retain (default None, keep all)
    * ``automatic`` – snapshot on every save by default (default True)
    * ``exclude`` – attribute names never captured (default empty)

    Unknown keys raise :class:`~revisions.errors.InvalidConfiguration`
    immediately, at class-definition time.
    """
    opts = VersioningOptions.from_options(**options)

    def decorator(cls: T) -> T:
        cls.__versioning__ = opts  # type: ignore[attr-defined]
        registry.register(cls, opts)
        logger.debug("Registered %s for versioning (%s)", cls.__name__, opts)
        return cls

    return decorator
