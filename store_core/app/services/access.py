"""
Project access resolution.

A user sees every project when their access type is ALL, otherwise only
the projects assigned to them. An empty set means "nothing visible", never
"unrestricted".
"""

from typing import Any, Iterable, Optional

from ..models import AccessType
from .exceptions import UnauthenticatedError


def _access_type(user: Any) -> str:
    value = getattr(user, "access_type", None)
    return getattr(value, "value", value) or AccessType.PROJECTS.value


def resolve_visible_projects(user: Any, all_project_ids: Iterable[int]) -> frozenset:
    """
    Return the ids of the projects ``user`` may see.

    ``all_project_ids`` is only consulted for ALL-access users.
    """
    if user is None:
        raise UnauthenticatedError("No authenticated user")

    if _access_type(user) == AccessType.ALL.value:
        return frozenset(int(pid) for pid in all_project_ids)

    return frozenset(p.id for p in (getattr(user, "projects", None) or ()) if p.id is not None)


def scope_projects(visible: Iterable[int], requested: Optional[Iterable[Any]] = None) -> frozenset:
    """
    Intersect the visible set with an explicit project filter.

    Requested ids outside the visible set (or unparseable ones) contribute
    nothing; they are not an error.
    """
    visible = frozenset(visible)
    raw = [str(v).strip() for v in (requested or ()) if v is not None and str(v).strip()]
    if not raw:
        return visible

    wanted = set()
    for value in raw:
        try:
            wanted.add(int(value))
        except ValueError:
            continue
    return visible & wanted


def record_project_ids(record: Any) -> frozenset:
    """Projects a movement document touches (one, or two for transfers)."""
    ids = set()
    for attr in ("project_id", "from_project_id", "to_project_id"):
        value = getattr(record, attr, None)
        if value is not None:
            ids.add(value)
    return frozenset(ids)


def is_record_visible(record: Any, visible: frozenset) -> bool:
    return bool(record_project_ids(record) & visible)
