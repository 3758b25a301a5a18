"""
Public surface for revisions.
Importing this module does **not** touch the database; call
`revisions.init_revisions(engine)` or `Revisions.init(...)` during start-up.
"""

from .bootstrap import init_revisions
from .config import DEFAULT_REVERT_EXCEPT, VersioningOptions
from .contracts import VersionOwner
from .core.record import Record
from .core.version import OwnerRef, Version
from .errors import (
    CorruptPayload,
    InvalidConfiguration,
    NumberingConflict,
    PersistenceError,
    SnapshotEncodingError,
    VersioningError,
    VersionNotFound,
)
from .events import on
from .persistence.store import PruneReport, VersionStore
from .registry import versioned
from .runtime import Revisions

__all__ = [
    "CorruptPayload",
    "DEFAULT_REVERT_EXCEPT",
    "InvalidConfiguration",
    "NumberingConflict",
    "OwnerRef",
    "PersistenceError",
    "PruneReport",
    "Record",
    "Revisions",
    "SnapshotEncodingError",
    "Version",
    "VersionNotFound",
    "VersionOwner",
    "VersionStore",
    "VersioningError",
    "VersioningOptions",
    "init_revisions",
    "on",
    "versioned",
]
