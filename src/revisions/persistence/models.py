"""
Schema: every version of every owner kind lives in one ``versions`` table;
the bundled Record implementation keeps its live state in ``records``.
"""

import uuid
import datetime as dt

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def now_utc() -> dt.datetime:  # compact timezone‑aware timestamp
    return dt.datetime.now(tz=dt.timezone.utc)


class VersionRow(Base):
    """Single table that stores snapshots for **all** owner kinds."""

    __tablename__ = "versions"
    __table_args__ = (
        UniqueConstraint("owner_type", "owner_id", "number", name="uq_versions_owner_number"),
        Index("ix_versions_owner", "owner_type", "owner_id"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_type = Column(String, nullable=False)
    owner_id = Column(String, nullable=False)
    number = Column(Integer, nullable=False)
    payload = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)


class RecordRow(Base):
    """Latest state of a bundled :class:`revisions.Record`."""

    __tablename__ = "records"

    class_type = Column(String, primary_key=True)
    id = Column(String, primary_key=True)
    data = Column(JSON, nullable=False)
    updated_ts = Column(DateTime(timezone=True), default=now_utc, nullable=False)
