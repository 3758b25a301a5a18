"""
Storage for the live state of bundled :class:`revisions.Record` instances.

This is the host-persistence side of the contract; the engine itself only
talks to it through ``Record.persist``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Type, TypeVar

from sqlalchemy import delete, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import PersistenceError
from .models import RecordRow, now_utc

if TYPE_CHECKING:
    from ..core.record import Record


T_Record = TypeVar("T_Record", bound="Record")


class RecordRepository:
    """Thin data‑access layer around the ``records`` table."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def _new_session(self) -> Session:
        return Session(bind=self.engine, future=True)

    def save(self, rec: "Record") -> None:
        """Insert or replace the row for ``rec``."""
        row = RecordRow(
            class_type=type(rec).__name__,
            id=str(rec.id),
            data=rec.model_dump(mode="json"),
            updated_ts=now_utc(),
        )
        try:
            with self._new_session() as s:
                s.merge(row)
                s.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"saving {type(rec).__name__} {rec.id} failed") from exc

    def load(self, cls: Type[T_Record], rec_id: Any) -> T_Record:
        try:
            with self._new_session() as s:
                q = select(RecordRow.data).where(
                    RecordRow.class_type == cls.__name__, RecordRow.id == str(rec_id)
                )
                row = s.execute(q).first()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"loading {cls.__name__} {rec_id} failed") from exc
        if row is None:
            raise KeyError(f"{cls.__name__} {rec_id} not found")
        return cls.model_validate(row.data)

    def delete(self, rec: "Record") -> bool:
        try:
            with self._new_session() as s:
                result = s.execute(
                    delete(RecordRow).where(
                        RecordRow.class_type == type(rec).__name__,
                        RecordRow.id == str(rec.id),
                    )
                )
                s.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"deleting {type(rec).__name__} {rec.id} failed") from exc
        return result.rowcount > 0
