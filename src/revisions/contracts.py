"""
The narrow contract the engine needs from a host record.

Anything implementing these methods can be versioned; :class:`revisions.Record`
is the bundled implementation.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Protocol, runtime_checkable

from .core.version import OwnerRef
from .policy import VersioningGate


@runtime_checkable
class VersionOwner(Protocol):
    """Host-record side of the engine (identity, attributes, persistence)."""

    @property
    def versioning_gate(self) -> VersioningGate: ...

    def identity(self) -> OwnerRef: ...

    def get_attributes(self) -> Dict[str, Any]: ...

    def set_attributes(self, values: Mapping[str, Any]) -> None: ...

    def persist(self) -> None:
        """Durably save; raise on validation or storage failure."""
        ...
