"""
Filtered Query Engine
=====================
In-memory filtering, searching and ordering over already access-scoped
collections (materials, users, projects, ledger entries, history records).

- dimension filters are AND across dimensions, OR within one dimension
- free-text search is a case-insensitive substring match on a fixed set of
  fields per collection
- filter option lists are built from the access-scoped dataset before any
  text/dimension filter, so dropdowns always cover what is queryable
- history ordering is newest first, stable on ties, undated records last
"""

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

Accessor = Callable[[Any], Any]


@dataclass(frozen=True)
class QuerySpec:
    """Search fields and filter dimensions for one collection"""
    search_fields: Sequence[Accessor] = ()
    dimensions: Mapping[str, Accessor] = field(default_factory=dict)


@dataclass(frozen=True)
class SortOrder:
    key: Accessor
    descending: bool = False


# =============================================================================
# NORMALIZATION
# =============================================================================

def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(getattr(value, "value", value)).strip()


def _values(raw: Any) -> List[str]:
    """A dimension accessor may return one value or a collection of values."""
    if raw is None:
        return []
    if isinstance(raw, (list, tuple, set, frozenset)):
        return [_text(v) for v in raw]
    return [_text(raw)]


def normalize_options(values: Iterable[Any]) -> List[str]:
    """Trim, drop empties, dedupe and sort lexicographically."""
    return sorted({_text(v) for v in values if _text(v)})


def normalize_filter(values: Optional[Iterable[Any]]) -> frozenset:
    if values is None:
        return frozenset()
    if isinstance(values, str):
        values = [values]
    return frozenset(_text(v) for v in values if _text(v))


# =============================================================================
# QUERY
# =============================================================================

def matches_search(item: Any, search: Optional[str], fields: Sequence[Accessor]) -> bool:
    needle = (search or "").strip().lower()
    if not needle:
        return True
    for accessor in fields:
        value = accessor(item)
        if value is not None and needle in str(value).lower():
            return True
    return False


def matches_filters(item: Any, filters: Mapping[str, frozenset], spec: QuerySpec) -> bool:
    for name, wanted in filters.items():
        if not wanted:
            continue
        accessor = spec.dimensions.get(name)
        if accessor is None:
            continue
        if not wanted.intersection(_values(accessor(item))):
            return False
    return True


def apply_sort(items: Iterable[Any], order: Optional[SortOrder]) -> List[Any]:
    items = list(items)
    if order is None:
        return items
    keyed = [i for i in items if order.key(i) is not None]
    unkeyed = [i for i in items if order.key(i) is None]
    # sorted() is stable with reverse=True as well
    return sorted(keyed, key=order.key, reverse=order.descending) + unkeyed


def query(collection: Iterable[Any], spec: QuerySpec,
          filters: Optional[Mapping[str, Optional[Iterable[Any]]]] = None,
          search: Optional[str] = None, sort: Optional[SortOrder] = None) -> List[Any]:
    """Filter ``collection`` per ``spec`` and return an ordered list."""
    normalized = {name: normalize_filter(values) for name, values in (filters or {}).items()}
    result = [
        item for item in collection
        if matches_filters(item, normalized, spec) and matches_search(item, search, spec.search_fields)
    ]
    return apply_sort(result, sort)


def filter_options(collection: Iterable[Any], spec: QuerySpec) -> Dict[str, List[str]]:
    """Distinct values per dimension over ``collection``."""
    collection = list(collection)
    options: Dict[str, List[str]] = {}
    for name, accessor in spec.dimensions.items():
        options[name] = normalize_options(
            value for item in collection for value in _values(accessor(item))
        )
    return options


# =============================================================================
# COLLECTION SPECS
# =============================================================================

_PREFIX_RE = re.compile(r"[A-Za-z]+")


def project_prefix(code: Optional[str]) -> Optional[str]:
    """Leading letters of a project code ("PRJ-0042" -> "PRJ")."""
    match = _PREFIX_RE.match((code or "").strip())
    return match.group(0).upper() if match else None


MATERIAL_QUERY = QuerySpec(
    search_fields=(
        lambda m: m.code,
        lambda m: m.name,
        lambda m: m.part_no,
    ),
    dimensions={
        "category": lambda m: m.category,
        "unit": lambda m: m.unit,
        "line_type": lambda m: m.line_type,
    },
)

USER_QUERY = QuerySpec(
    search_fields=(
        lambda u: u.name,
        lambda u: u.email,
    ),
    dimensions={
        "role": lambda u: u.role,
        "access_type": lambda u: u.access_type,
        "project_id": lambda u: [p.id for p in u.projects],
    },
)

PROJECT_QUERY = QuerySpec(
    search_fields=(
        lambda p: p.code,
        lambda p: p.name,
    ),
    dimensions={
        "prefix": lambda p: project_prefix(p.code),
    },
)

# Ledger entries pair a LedgerRow with its Material and Project
LEDGER_QUERY = QuerySpec(
    search_fields=(
        lambda e: e.material.code,
        lambda e: e.material.name,
        lambda e: e.material.part_no,
    ),
    dimensions={
        "category": lambda e: e.material.category,
        "unit": lambda e: e.material.unit,
        "line_type": lambda e: e.material.line_type,
        "project_id": lambda e: e.project.id,
    },
)

INWARD_ORDER = SortOrder(key=lambda r: r.entry_date, descending=True)
OUTWARD_ORDER = SortOrder(key=lambda r: r.date, descending=True)
TRANSFER_ORDER = SortOrder(key=lambda r: r.transfer_date, descending=True)
