"""
revisions.events  ──  observer decorators for versioning outcomes

    @on.version_created(Story)
    def audit(story, version): ...

Handlers registered for a class also fire for its subclasses (MRO lookup).
"""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Set, Type

if TYPE_CHECKING:
    from .contracts import VersionOwner

EVENT_TYPES = ("version_created", "versions_pruned", "snapshot_failed")


class EventRegistry:
    """Central registry for event handlers"""

    def __init__(self) -> None:
        # event type -> class name -> handlers
        self._handlers: Dict[str, Dict[str, List[Callable]]] = {
            event: defaultdict(list) for event in EVENT_TYPES
        }

    def register(
        self,
        event_type: str,
        owner_classes: tuple[Type[Any], ...],
        handler: Callable,
    ) -> None:
        """Register a handler for specific owner classes"""
        for cls in owner_classes:
            bucket = self._handlers[event_type][cls.__name__]
            if handler not in bucket:
                bucket.append(handler)

    def emit(self, event_type: str, instance: "VersionOwner", payload: Any) -> None:
        """Call every handler registered for the instance's class or a parent"""
        seen: Set[Callable] = set()
        for cls in type(instance).__mro__:
            for handler in self._handlers[event_type].get(cls.__name__, ()):
                if handler in seen:
                    continue
                seen.add(handler)
                handler(instance, payload)

    def clear(self) -> None:
        for handlers in self._handlers.values():
            handlers.clear()


# Global registry instance
_registry = EventRegistry()


class OnDecorator:
    """Namespace for event decorators"""

    @staticmethod
    def _decorate(event_type: str, owner_classes: tuple[Type[Any], ...]) -> Callable:
        def decorator(func: Callable) -> Callable:
            _registry.register(event_type, owner_classes, func)
            return func

        return decorator

    def version_created(self, *owner_classes: Type[Any]) -> Callable:
        """handler(owner, version) after a snapshot is written"""
        return self._decorate("version_created", owner_classes)

    def versions_pruned(self, *owner_classes: Type[Any]) -> Callable:
        """handler(owner, report) after retention removed old versions"""
        return self._decorate("versions_pruned", owner_classes)

    def snapshot_failed(self, *owner_classes: Type[Any]) -> Callable:
        """handler(owner, exc) when a save-triggered snapshot failed"""
        return self._decorate("snapshot_failed", owner_classes)


# Export the decorator interface
on = OnDecorator()


def emit(event_type: str, instance: "VersionOwner", payload: Any) -> None:
    _registry.emit(event_type, instance, payload)


def clear_handlers() -> None:
    """Forget every registered handler (mostly for tests)."""
    _registry.clear()
