"""
Per-instance versioning gate and the save-triggered snapshot flow.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterator, Optional, TypeVar

from . import events
from .config import VersioningOptions
from .errors import VersioningError

if TYPE_CHECKING:
    from .contracts import VersionOwner
    from .core.version import Version
    from .persistence.store import VersionStore

logger = logging.getLogger(__name__)

R = TypeVar("R")


def resolve_gate(state: Optional[bool], default: bool) -> bool:
    """``None`` means "not decided yet": fall back to the type default."""
    return default if state is None else state


@dataclass
class VersioningGate:
    """Lives on one in-memory instance; never persisted."""

    state: Optional[bool] = None

    def is_enabled(self, default: bool) -> bool:
        # memoise the resolved default for the instance's lifetime
        self.state = resolve_gate(self.state, default)
        return self.state

    def set(self, enabled: bool) -> None:
        self.state = bool(enabled)


def versioning_enabled(owner: "VersionOwner", options: VersioningOptions) -> bool:
    return owner.versioning_gate.is_enabled(options.automatic)


@contextmanager
def scoped_versioning(
    owner: "VersionOwner", enabled: bool, options: VersioningOptions
) -> Iterator["VersionOwner"]:
    """Force the gate to ``enabled`` inside the block, restore it on any exit."""
    previous = versioning_enabled(owner, options)
    owner.versioning_gate.set(enabled)
    try:
        yield owner
    finally:
        owner.versioning_gate.set(previous)


def run_with_versioning(
    owner: "VersionOwner",
    enabled: bool,
    body: Callable[["VersionOwner"], R],
    options: VersioningOptions,
) -> R:
    """Call ``body(owner)`` with versioning enabled or disabled.

    Example::

        run_with_versioning(doc, request.should_version, lambda d: d.save(), opts)
    """
    with scoped_versioning(owner, enabled, options):
        return body(owner)


def snapshot_on_save(
    owner: "VersionOwner", store: "VersionStore", options: VersioningOptions
) -> Optional["Version"]:
    """
    Run after the owner's own save succeeded.

    Creates a version when the gate is open, then applies retention. A
    failure here never fails the save: it is logged, reported through the
    ``snapshot_failed`` event and ``None`` is returned.
    """
    if not versioning_enabled(owner, options):
        return None

    ref = owner.identity()
    try:
        version = store.create_version(ref, owner.get_attributes(), options.exclude)
    except VersioningError as exc:
        logger.error("Snapshot of %s failed: %s", ref, exc, exc_info=exc)
        events.emit("snapshot_failed", owner, exc)
        return None

    if version is None:
        return None
    events.emit("version_created", owner, version)

    if options.keep is not None:
        try:
            report = store.prune(ref, options.keep)
        except VersioningError as exc:
            logger.error("Pruning %s failed: %s", ref, exc, exc_info=exc)
            events.emit("snapshot_failed", owner, exc)
            return version
        if report.failures:
            logger.error(
                "Pruning %s left %d old versions behind", ref, len(report.failures)
            )
        if report.deleted or report.failures:
            events.emit("versions_pruned", owner, report)
    return version
