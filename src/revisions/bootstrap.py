"""
Single entry-point that wires SQLAlchemy storage into the Record classes.
Call once, e.g. at application start-up.
"""

from __future__ import annotations

from typing import Tuple

from sqlalchemy.engine import Engine

from .core.record import Record
from .persistence.models import Base
from .persistence.records import RecordRepository
from .persistence.store import VersionStore


def init_revisions(engine: Engine) -> Tuple[VersionStore, RecordRepository]:
    """
    Create the tables, build the global stores and inject them into
    :class:`Record` (subclasses inherit them).
    """
    Base.metadata.create_all(engine)  # ← this line creates tables
    versions = VersionStore(engine)
    repository = RecordRepository(engine)

    Record._versions = versions
    Record._repository = repository
    return versions, repository


def teardown_revisions() -> None:
    """Detach the stores again (tests, re-initialisation)."""
    Record._versions = None
    Record._repository = None
