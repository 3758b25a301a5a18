"""
Record kernel – a pydantic model that satisfies the owner contract.

* ``save()`` writes the live row, then (if the gate is open) a snapshot
* ``revert_to_version()`` restores an older snapshot and saves again
* storage is injected by :func:`revisions.bootstrap.init_revisions`
"""

from __future__ import annotations

import datetime as dt
import uuid
from contextlib import AbstractContextManager
from typing import Any, ClassVar, Dict, Iterable, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel, Field, PrivateAttr

from ..config import DEFAULT_REVERT_EXCEPT, VersioningOptions
from ..persistence.models import now_utc
from ..persistence.records import RecordRepository
from ..persistence.store import VersionStore
from ..policy import VersioningGate, scoped_versioning, snapshot_on_save
from ..revert import Selector, revert_to
from .history import VersionHistory
from .version import OwnerRef, Version

T_Record = TypeVar("T_Record", bound="Record")


class Record(BaseModel):
    """Base class for versionable records; decorate subclasses with ``@versioned``."""

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    _gate: VersioningGate = PrivateAttr(default_factory=VersioningGate)

    _repository: ClassVar[Optional[RecordRepository]] = None  # injected by init_revisions()
    _versions: ClassVar[Optional[VersionStore]] = None
    __versioning__: ClassVar[Optional[VersioningOptions]] = None  # set by @versioned

    model_config = {"validate_assignment": True, "arbitrary_types_allowed": True}

    # ---- owner contract -------------------------------------------------
    def identity(self) -> OwnerRef:
        return OwnerRef.of(type(self).__name__, self.id)

    def get_attributes(self) -> Dict[str, Any]:
        return self.model_dump(mode="python")

    def set_attributes(self, values: Mapping[str, Any]) -> None:
        """Apply a partial update; validated as a whole, applied all-or-nothing."""
        unknown = set(values) - set(type(self).model_fields)
        if unknown:
            raise ValueError(f"{type(self).__name__} has no attributes {sorted(unknown)}")
        merged = type(self).model_validate({**self.get_attributes(), **values})
        for name in values:
            object.__setattr__(self, name, getattr(merged, name))

    def persist(self) -> None:
        self._ensure_wired()
        now = now_utc()
        if self.created_at is None:
            object.__setattr__(self, "created_at", now)
        object.__setattr__(self, "updated_at", now)
        self._repository.save(self)  # type: ignore[union-attr]

    @property
    def versioning_gate(self) -> VersioningGate:
        return self._gate

    # ---- lifecycle ------------------------------------------------------
    def save(self) -> Optional[Version]:
        """Persist, then snapshot. Returns the new version, if one was made."""
        self.persist()
        return self._after_save()

    def destroy(self) -> None:
        """Delete the record together with its whole history.

        Versions go first, then the record row.
        """
        self._ensure_wired()
        self._versions.delete_all(self.identity())  # type: ignore[union-attr]
        self._repository.delete(self)  # type: ignore[union-attr]

    @classmethod
    def load(cls: Type[T_Record], rec_id: Union[uuid.UUID, str]) -> T_Record:
        cls._ensure_wired()
        return cls._repository.load(cls, rec_id)  # type: ignore[union-attr]

    def _after_save(self) -> Optional[Version]:
        options = type(self).__versioning__
        if options is None:
            return None
        return snapshot_on_save(self, self._versions, options)  # type: ignore[arg-type]

    # ---- gate -----------------------------------------------------------
    @property
    def versioning_enabled(self) -> bool:
        options = type(self).__versioning__
        if options is None:
            return False
        return self._gate.is_enabled(options.automatic)

    def set_versioning(self, enabled: bool) -> None:
        """Change the gate for this instance only. Prefer ``with_versioning``."""
        self._gate.set(enabled)

    def with_versioning(self, enabled: bool) -> AbstractContextManager["Record"]:
        """
        Enable or disable versioning for the duration of a ``with`` block::

            with story.with_versioning(False):
                story.save()
        """
        return scoped_versioning(self, enabled, self._require_options())

    # ---- history --------------------------------------------------------
    @property
    def versions(self) -> VersionHistory:
        self._ensure_wired()
        return VersionHistory(self._versions, self.identity())  # type: ignore[arg-type]

    def is_versioned(self) -> bool:
        return self.versions.store.is_versioned(self.identity())

    def is_unversioned(self) -> bool:
        return not self.is_versioned()

    @property
    def version_number(self) -> int:
        """0 for unversioned records, 1 for newly created ones, and so on."""
        current = self.versions.current()
        return 0 if current is None else current.number

    def revert_to_version(
        self,
        version: Selector,
        except_: Union[str, Iterable[str], None] = DEFAULT_REVERT_EXCEPT,
    ) -> Dict[str, Any]:
        """
        Restore attribute values from an earlier version (handle or number).

        ``except_`` names attributes that are not restored (default
        created_at and updated_at). The record is saved afterwards like any
        other save, so a new version is written when the gate is open.
        """
        self._ensure_wired()
        restored = revert_to(self, version, self._versions, except_)  # type: ignore[arg-type]
        self._after_save()
        return restored

    # ---- internal util --------------------------------------------------
    @classmethod
    def _require_options(cls) -> VersioningOptions:
        if cls.__versioning__ is None:
            raise TypeError(f"{cls.__name__} is not versioned; decorate it with @versioned")
        return cls.__versioning__

    @classmethod
    def _ensure_wired(cls) -> None:
        if cls._repository is None or cls._versions is None:
            raise RuntimeError("Call init_revisions(engine) before using Record")
