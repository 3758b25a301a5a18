"""
Data-access layer around the ``versions`` table: numbering, retention and
navigation for one owner at a time.
"""

from __future__ import annotations

import logging
import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional

from sqlalchemy import Select, delete, func, insert, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .. import codec
from ..core.version import OwnerRef, Version
from ..errors import NumberingConflict, PersistenceError
from .models import VersionRow, now_utc

logger = logging.getLogger(__name__)

MAX_NUMBERING_RETRIES = 5


@dataclass
class PruneFailure:
    number: int
    error: Exception


@dataclass
class PruneReport:
    """Outcome of one retention pass; failures do not stop the others."""

    deleted: List[int] = field(default_factory=list)
    failures: List[PruneFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


class _OwnerLocks:
    """One lock per owner, created on demand and dropped when idle.

    ``_guard`` only protects the table itself; it is never held while a
    writer is inside its critical section, so different owners never wait
    on each other.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: Dict[OwnerRef, List[Any]] = {}  # owner -> [lock, users]

    @contextmanager
    def hold(self, owner: OwnerRef) -> Iterator[None]:
        with self._guard:
            entry = self._entries.get(owner)
            if entry is None:
                entry = self._entries[owner] = [threading.Lock(), 0]
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._entries[owner]

    def __len__(self) -> int:
        return len(self._entries)


def _to_version(row: VersionRow) -> Version:
    return Version(
        id=row.id,
        owner=OwnerRef(kind=row.owner_type, id=row.owner_id),
        number=row.number,
        payload=row.payload,
        created_at=row.created_at,
    )


class VersionStore:
    """Durable, ordered history per owner."""

    def __init__(self, engine: Engine, *, max_retries: int = MAX_NUMBERING_RETRIES):
        if max_retries < 1:
            raise ValueError("max_retries must be >= 1")
        self.engine = engine
        self.max_retries = max_retries
        self._locks = _OwnerLocks()

    def _new_session(self) -> Session:
        return Session(bind=self.engine, future=True)

    @staticmethod
    def _scoped(stmt: Select, owner: OwnerRef) -> Select:
        return stmt.where(
            VersionRow.owner_type == owner.kind, VersionRow.owner_id == owner.id
        )

    # ---- writes ---------------------------------------------------------
    def create_version(
        self,
        owner: OwnerRef,
        attributes: Mapping[str, Any],
        exclude: Iterable[str] = (),
    ) -> Optional[Version]:
        """
        Snapshot ``attributes`` as the owner's next version.

        Returns the new :class:`Version`, or ``None`` when the database
        reports that no row was written. Number assignment runs under the
        owner's lock; the unique constraint plus a bounded retry covers
        writers in other processes.
        """
        payload = codec.encode(attributes, exclude)
        last_conflict: NumberingConflict | None = None
        with self._locks.hold(owner):
            for attempt in range(1, self.max_retries + 1):
                try:
                    return self._insert_next(owner, payload)
                except NumberingConflict as exc:
                    last_conflict = exc
                    logger.warning(
                        "Numbering conflict on %s (attempt %d/%d): %s",
                        owner, attempt, self.max_retries, exc,
                    )
        logger.error("Gave up numbering a version for %s", owner)
        raise PersistenceError(
            f"could not assign a version number for {owner} "
            f"after {self.max_retries} attempts"
        ) from last_conflict

    def _max_number(self, s: Session, owner: OwnerRef) -> int:
        q = self._scoped(select(func.max(VersionRow.number)), owner)
        return s.execute(q).scalar() or 0

    def _insert_next(self, owner: OwnerRef, payload: str) -> Optional[Version]:
        with self._new_session() as s:
            try:
                number = self._max_number(s, owner) + 1
            except SQLAlchemyError as exc:
                raise PersistenceError(f"reading the latest version of {owner} failed") from exc
            row_vals = {
                "id": uuid.uuid4(),
                "owner_type": owner.kind,
                "owner_id": owner.id,
                "number": number,
                "payload": payload,
                "created_at": now_utc(),
            }
            try:
                result = s.execute(insert(VersionRow).values(**row_vals))
                s.commit()
            except IntegrityError as exc:
                s.rollback()
                raise NumberingConflict(owner, number) from exc
            except SQLAlchemyError as exc:
                s.rollback()
                raise PersistenceError(f"inserting version {number} for {owner} failed") from exc

        if result.rowcount == 0:
            logger.info("Version insert for %s was skipped by the database", owner)
            return None
        logger.debug("Created version %d for %s", number, owner)
        return Version(
            id=row_vals["id"],
            owner=owner,
            number=number,
            payload=payload,
            created_at=row_vals["created_at"],
        )

    def prune(self, owner: OwnerRef, keep: Optional[int]) -> PruneReport:
        """Delete all but the ``keep`` highest-numbered versions."""
        report = PruneReport()
        if keep is None:
            return report
        if keep < 1:
            raise ValueError("keep must be a positive integer or None")

        # one read: everything below the `keep` highest numbers, gaps included
        try:
            with self._new_session() as s:
                victims = s.execute(
                    self._scoped(select(VersionRow.id, VersionRow.number), owner)
                    .order_by(VersionRow.number.desc())
                    .offset(keep)
                ).all()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"reading versions of {owner} for pruning failed") from exc

        for version_id, number in sorted(victims, key=lambda v: v.number):
            try:
                self._delete_row(version_id)
            except PersistenceError as exc:
                logger.warning("Could not prune version %d of %s: %s", number, owner, exc)
                report.failures.append(PruneFailure(number=number, error=exc))
            else:
                report.deleted.append(number)
        return report

    def _delete_row(self, version_id: uuid.UUID) -> int:
        try:
            with self._new_session() as s:
                result = s.execute(delete(VersionRow).where(VersionRow.id == version_id))
                s.commit()
                return result.rowcount
        except SQLAlchemyError as exc:
            raise PersistenceError(f"deleting version {version_id} failed") from exc

    def delete_version(self, version: Version) -> bool:
        """Delete one version by handle; False if it was already gone."""
        return self._delete_row(version.id) > 0

    def delete_all(self, owner: OwnerRef) -> int:
        """Cascade: drop every version of ``owner`` (owner was deleted)."""
        try:
            with self._new_session() as s:
                result = s.execute(
                    delete(VersionRow).where(
                        VersionRow.owner_type == owner.kind,
                        VersionRow.owner_id == owner.id,
                    )
                )
                s.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"deleting versions of {owner} failed") from exc
        logger.debug("Deleted %d versions of %s", result.rowcount, owner)
        return result.rowcount

    # ---- reads ----------------------------------------------------------
    def _one(self, q: Select) -> Optional[Version]:
        try:
            with self._new_session() as s:
                row = s.execute(q.limit(1)).scalars().first()
        except SQLAlchemyError as exc:
            raise PersistenceError("version lookup failed") from exc
        return _to_version(row) if row is not None else None

    def first(self, owner: OwnerRef) -> Optional[Version]:
        return self._one(self._scoped(select(VersionRow), owner).order_by(VersionRow.number))

    def current(self, owner: OwnerRef) -> Optional[Version]:
        return self._one(
            self._scoped(select(VersionRow), owner).order_by(VersionRow.number.desc())
        )

    def by_number(self, owner: OwnerRef, number: int) -> Optional[Version]:
        version = self._one(
            self._scoped(select(VersionRow), owner).where(VersionRow.number == number)
        )
        if version is None:
            logger.debug("No version %s for %s", number, owner)
        return version

    def next_after(self, owner: OwnerRef, number: int) -> Optional[Version]:
        """Smallest number strictly greater than ``number``."""
        return self._one(
            self._scoped(select(VersionRow), owner)
            .where(VersionRow.number > number)
            .order_by(VersionRow.number)
        )

    def previous_before(self, owner: OwnerRef, number: int) -> Optional[Version]:
        """Largest number strictly less than ``number``."""
        return self._one(
            self._scoped(select(VersionRow), owner)
            .where(VersionRow.number < number)
            .order_by(VersionRow.number.desc())
        )

    def is_versioned(self, owner: OwnerRef) -> bool:
        return self.count(owner) > 0

    def count(self, owner: OwnerRef) -> int:
        try:
            with self._new_session() as s:
                return s.execute(
                    self._scoped(select(func.count(VersionRow.id)), owner)
                ).scalar_one()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"counting versions of {owner} failed") from exc

    def list(self, owner: OwnerRef) -> List[Version]:
        """All versions of ``owner``, newest first."""
        try:
            with self._new_session() as s:
                rows = s.execute(
                    self._scoped(select(VersionRow), owner).order_by(VersionRow.number.desc())
                ).scalars().all()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"listing versions of {owner} failed") from exc
        return [_to_version(r) for r in rows]
