"""
Immutable value types shared by the store, the policy and the revert engine.
"""

from __future__ import annotations

import datetime as dt
import uuid
from typing import TYPE_CHECKING, Any, Dict, Optional

from pydantic import BaseModel

from .. import codec

if TYPE_CHECKING:
    from ..persistence.store import VersionStore


class OwnerRef(BaseModel):
    """(kind, id) pair locating an owning record; one table serves all kinds."""

    kind: str
    id: str

    model_config = {"frozen": True}

    @classmethod
    def of(cls, kind: str, id: Any) -> "OwnerRef":
        return cls(kind=kind, id=str(id))

    def __str__(self) -> str:
        return f"{self.kind}:{self.id}"


class Version(BaseModel):
    """A numbered snapshot of one owner's attributes. Never mutated."""

    id: uuid.UUID
    owner: OwnerRef
    number: int
    payload: str
    created_at: dt.datetime

    model_config = {"frozen": True}

    def attributes(self) -> Dict[str, Any]:
        """Decode the payload (lazy; raises ``CorruptPayload``)."""
        return codec.decode(self.payload)

    def model(self) -> Any:
        """
        Instantiate the registered owner class with this version's values.

        Attributes are assigned one by one onto a fresh instance, so fields
        the type excludes from snapshots are simply left unset.
        """
        from ..registry import registry  # late import – registry imports config only

        cls = registry.class_for(self.owner.kind)
        obj = cls.model_construct() if issubclass(cls, BaseModel) else cls()
        for name, value in self.attributes().items():
            setattr(obj, name, value)
        return obj

    def next(self, store: Optional["VersionStore"] = None) -> Optional["Version"]:
        """The next higher version of the same owner, or None if this is the last."""
        return _store_or_default(store).next_after(self.owner, self.number)

    def previous(self, store: Optional["VersionStore"] = None) -> Optional["Version"]:
        """The next lower version of the same owner, or None if this is the first."""
        return _store_or_default(store).previous_before(self.owner, self.number)


def _store_or_default(store: Optional["VersionStore"]) -> "VersionStore":
    if store is not None:
        return store
    from .record import Record  # late import – record imports this module

    Record._ensure_wired()
    return Record._versions  # type: ignore[return-value]
