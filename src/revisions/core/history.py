"""
``record.versions`` – navigation helpers bound to one owner.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterator, Optional, Union

from .version import OwnerRef, Version

if TYPE_CHECKING:
    from ..persistence.store import PruneReport, VersionStore


def _number_of(version: Union[Version, int]) -> int:
    return version.number if isinstance(version, Version) else version


class VersionHistory:
    """The versions of a single owner, newest first when iterated."""

    def __init__(self, store: "VersionStore", owner: OwnerRef):
        self.store = store
        self.owner = owner

    def get(self, number: int) -> Optional[Version]:
        return self.store.by_number(self.owner, number)

    def first(self) -> Optional[Version]:
        return self.store.first(self.owner)

    def current(self) -> Optional[Version]:
        return self.store.current(self.owner)

    def next(self, version: Union[Version, int]) -> Optional[Version]:
        """The next higher version, or None if ``version`` is the last."""
        return self.store.next_after(self.owner, _number_of(version))

    def previous(self, version: Union[Version, int]) -> Optional[Version]:
        """The next lower version, or None if ``version`` is the first."""
        return self.store.previous_before(self.owner, _number_of(version))

    def purge(self, keep: int) -> "PruneReport":
        return self.store.prune(self.owner, keep)

    def numbers(self) -> list[int]:
        return [v.number for v in self]

    def __iter__(self) -> Iterator[Version]:
        return iter(self.store.list(self.owner))

    def __len__(self) -> int:
        return self.store.count(self.owner)

    def __bool__(self) -> bool:
        return self.store.is_versioned(self.owner)

    def __repr__(self) -> str:
        return f"<VersionHistory {self.owner}>"
