"""Shared fixtures: a file-backed SQLite engine per test."""

from __future__ import annotations

from typing import Any, Dict, Mapping

import pytest
from sqlalchemy import create_engine

from revisions.bootstrap import init_revisions, teardown_revisions
from revisions.core.version import OwnerRef
from revisions.events import clear_handlers
from revisions.persistence.models import Base
from revisions.persistence.store import VersionStore
from revisions.policy import VersioningGate


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'revisions.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine) -> VersionStore:
    return VersionStore(engine)


@pytest.fixture
def wired(engine):
    """Inject stores into Record for the duration of a test."""
    versions, records = init_revisions(engine)
    yield versions, records
    teardown_revisions()


@pytest.fixture(autouse=True)
def _reset_event_handlers():
    yield
    clear_handlers()


class FakeOwner:
    """Minimal in-memory implementation of the owner contract."""

    def __init__(self, kind: str = "Note", id: str = "1", **attributes: Any) -> None:
        self._ref = OwnerRef(kind=kind, id=id)
        self.attributes: Dict[str, Any] = dict(attributes)
        self.versioning_gate = VersioningGate()
        self.persist_calls = 0
        self.fail_persist: Exception | None = None

    def identity(self) -> OwnerRef:
        return self._ref

    def get_attributes(self) -> Dict[str, Any]:
        return dict(self.attributes)

    def set_attributes(self, values: Mapping[str, Any]) -> None:
        self.attributes.update(values)

    def persist(self) -> None:
        if self.fail_persist is not None:
            raise self.fail_persist
        self.persist_calls += 1


@pytest.fixture
def owner() -> FakeOwner:
    return FakeOwner(title="hello", count=1)
