"""
Per-type versioning options.

Options are validated once, when a type is registered, and are immutable
afterwards; every store/policy call receives the same object by reference.
"""

from __future__ import annotations

from typing import Any, FrozenSet, Iterable, Optional

from pydantic import BaseModel, PositiveInt, ValidationError, field_validator

from .errors import InvalidConfiguration

DEFAULT_REVERT_EXCEPT: FrozenSet[str] = frozenset({"created_at", "updated_at"})


def as_name_set(names: str | Iterable[str] | None) -> FrozenSet[str]:
    """Normalise a single name or an iterable of names into a frozenset."""
    if names is None:
        return frozenset()
    if isinstance(names, str):
        return frozenset({names})
    return frozenset(str(n) for n in names)


class VersioningOptions(BaseModel):
    """keep / automatic / exclude for one record type."""

    keep: Optional[PositiveInt] = None  # None = keep everything
    automatic: bool = True
    exclude: FrozenSet[str] = frozenset()

    model_config = {"frozen": True, "extra": "forbid"}

    @field_validator("exclude", mode="before")
    @classmethod
    def _coerce_exclude(cls, value: Any) -> FrozenSet[str]:
        return as_name_set(value)

    @classmethod
    def from_options(cls, **options: Any) -> "VersioningOptions":
        """Build options from keyword arguments, rejecting unknown keys."""
        unknown = sorted(set(options) - set(cls.model_fields))
        if unknown:
            raise InvalidConfiguration(unknown)
        try:
            return cls(**options)
        except ValidationError as exc:
            bad = sorted({str(err["loc"][0]) for err in exc.errors() if err["loc"]})
            raise InvalidConfiguration(bad, reason=str(exc)) from exc
