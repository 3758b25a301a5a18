"""
Revert engine: copy a historical snapshot back onto a live owner.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Iterable, Union

from .config import DEFAULT_REVERT_EXCEPT, as_name_set
from .core.version import OwnerRef, Version
from .errors import VersionNotFound

if TYPE_CHECKING:
    from .contracts import VersionOwner
    from .persistence.store import VersionStore

Selector = Union[Version, int]


def resolve(owner: OwnerRef, selector: Selector, store: "VersionStore") -> Version:
    """Turn a Version handle or a version number into a Version of ``owner``."""
    if isinstance(selector, Version):
        if selector.owner != owner:
            raise VersionNotFound(owner, selector.number)
        return selector
    if isinstance(selector, bool) or not isinstance(selector, int):
        raise TypeError(f"version selector must be a Version or int, not {selector!r}")
    version = store.by_number(owner, selector)
    if version is None:
        raise VersionNotFound(owner, selector)
    return version


def revert(
    owner: "VersionOwner",
    version: Version,
    except_: Union[str, Iterable[str], None] = DEFAULT_REVERT_EXCEPT,
) -> Dict[str, Any]:
    """
    Overwrite ``owner``'s attributes with ``version``'s values and persist.

    Keys in ``except_`` are left untouched, as are attributes the snapshot
    does not mention. Returns the values that were applied. Does not create
    a version itself.
    """
    skipped = as_name_set(except_)
    restored = {k: v for k, v in version.attributes().items() if k not in skipped}
    owner.set_attributes(restored)
    owner.persist()
    return restored


def revert_to(
    owner: "VersionOwner",
    selector: Selector,
    store: "VersionStore",
    except_: Union[str, Iterable[str], None] = DEFAULT_REVERT_EXCEPT,
) -> Dict[str, Any]:
    return revert(owner, resolve(owner.identity(), selector, store), except_)
