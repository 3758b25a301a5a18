"""
revisions.runtime  ──  a thin façade that owns the engine.

Usage pattern in user code
--------------------------
    from revisions import Revisions

    Revisions.from_env()            # reads REVISIONS_DATABASE_URL (.env ok)
    # or
    Revisions.init(database_url="postgresql+psycopg://...")
"""

from __future__ import annotations

import logging
import os
from typing import Any, ClassVar, Optional

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from .bootstrap import init_revisions, teardown_revisions
from .persistence.records import RecordRepository
from .persistence.store import VersionStore

DATABASE_URL_ENV = "REVISIONS_DATABASE_URL"
LOG_LEVEL_ENV = "REVISIONS_LOG_LEVEL"
DEFAULT_DATABASE_URL = "sqlite:///revisions.db"


class Revisions:
    """
    Process-wide singleton holding the engine and the two stores, so
    application code doesn't have to pass them around.
    """

    _singleton: ClassVar[Optional["Revisions"]] = None

    def __init__(self, engine: Engine):
        self.engine = engine
        self.versions: VersionStore
        self.records: RecordRepository
        self.versions, self.records = init_revisions(engine)

    # ---------- one-shot initialiser ----------
    @classmethod
    def init(
        cls,
        *,
        database_url: Optional[str] = None,
        engine: Optional[Engine] = None,
        **engine_kwargs: Any,
    ) -> "Revisions":
        if cls._singleton is None:
            if engine is None:
                if database_url is None:
                    raise ValueError("database_url or engine required")
                engine = create_engine(database_url, pool_pre_ping=True, **engine_kwargs)
            cls._singleton = cls(engine)
        return cls._singleton

    @classmethod
    def from_env(cls, **engine_kwargs: Any) -> "Revisions":
        """Initialise from environment variables (a ``.env`` file is honoured)."""
        load_dotenv()
        level = os.environ.get(LOG_LEVEL_ENV)
        if level:
            logging.getLogger("revisions").setLevel(level.upper())
        url = os.environ.get(DATABASE_URL_ENV, DEFAULT_DATABASE_URL)
        return cls.init(database_url=url, **engine_kwargs)

    # ---------- convenience helpers ----------
    @classmethod
    def instance(cls) -> "Revisions":
        if cls._singleton is None:
            raise RuntimeError("Revisions.init() has not been called")
        return cls._singleton

    @classmethod
    def reset(cls) -> None:
        if cls._singleton is not None:
            cls._singleton.engine.dispose()
        cls._singleton = None
        teardown_revisions()
