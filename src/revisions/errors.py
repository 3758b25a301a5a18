"""
Error taxonomy for the versioning engine.

Everything raised on purpose derives from :class:`VersioningError` so callers
can catch the whole family in one place.
"""

from __future__ import annotations

from typing import Any, Iterable


class VersioningError(Exception):
    """Base exception for versioning-related errors."""


class InvalidConfiguration(VersioningError):
    """Raised at registration time for unknown or invalid options."""

    def __init__(self, keys: Iterable[str], reason: str | None = None) -> None:
        self.keys = list(keys)
        self.reason = reason
        if reason is None:
            message = f"Keys: {','.join(self.keys)} are not known by revisions"
        else:
            message = f"Invalid versioning options ({','.join(self.keys)}): {reason}"
        super().__init__(message)


class VersionNotFound(VersioningError):
    """A numeric or handle selector did not resolve for the owner."""

    def __init__(self, owner: Any, selector: Any) -> None:
        self.owner = owner
        self.selector = selector
        super().__init__(f"Version {selector!r} not found for {owner}")


class CorruptPayload(VersioningError):
    """A stored snapshot could not be decoded back into an attribute map."""


class SnapshotEncodingError(VersioningError):
    """An attribute value has no portable encoding."""


class PersistenceError(VersioningError):
    """The storage collaborator failed (insert, delete or owner save)."""


class NumberingConflict(VersioningError):
    """Transient: another writer took the number we tried to assign."""

    def __init__(self, owner: Any, number: int) -> None:
        self.owner = owner
        self.number = number
        super().__init__(f"Version number {number} already taken for {owner}")
