"""
Movement Line Normalization
===========================
The boundary between external movement records (ORM rows, JSON mappings)
and the ledger. Everything past this module works on fully-populated,
validated, frozen line values:

- InwardLine   : received goods at one project
- OutwardLine  : issued goods from one project
- TransferLine : goods moved from one project to another

Missing identifiers or invalid quantities raise DataIntegrityError here.
``build_snapshot`` logs and skips such lines so one bad row never blanks
a whole report.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from itertools import chain
from typing import Any, Iterable, Iterator, Optional, Union

from .exceptions import DataIntegrityError

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass(frozen=True)
class InwardLine:
    project_id: int
    material_id: int
    ordered_qty: Decimal
    received_qty: Decimal
    record_id: Optional[int] = None


@dataclass(frozen=True)
class OutwardLine:
    project_id: int
    material_id: int
    issue_qty: Decimal
    record_id: Optional[int] = None


@dataclass(frozen=True)
class TransferLine:
    from_project_id: int
    to_project_id: int
    material_id: int
    transfer_qty: Decimal
    record_id: Optional[int] = None


MovementLine = Union[InwardLine, OutwardLine, TransferLine]


@dataclass(frozen=True)
class AllocationEntry:
    """BOM requirement for a (project, material) pair"""
    project_id: int
    material_id: int
    required_qty: Decimal


@dataclass(frozen=True)
class MovementSnapshot:
    """Immutable, request-scoped view of the movement store."""
    inward: tuple = ()
    outward: tuple = ()
    transfers: tuple = ()
    skipped: tuple = field(default=(), compare=False)

    def __iter__(self) -> Iterator[MovementLine]:
        return chain(self.inward, self.outward, self.transfers)

    def __len__(self) -> int:
        return len(self.inward) + len(self.outward) + len(self.transfers)


# =============================================================================
# FIELD HELPERS
# =============================================================================

def _value(source: Any, *names: str) -> Any:
    """Read the first present field from a mapping or an object."""
    for name in names:
        if isinstance(source, dict):
            if source.get(name) is not None:
                return source[name]
        else:
            value = getattr(source, name, None)
            if value is not None:
                return value
    return None


def to_identifier(value: Any, field_name: str) -> int:
    if value is None or isinstance(value, bool):
        raise DataIntegrityError(f"Missing {field_name}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise DataIntegrityError(f"Invalid {field_name}: {value!r}")


def to_quantity(value: Any, field_name: str, required: bool = True) -> Decimal:
    """
    Convert a quantity to Decimal.

    Optional quantities that are absent become zero; this is the only place
    that defaulting happens.
    """
    if value is None:
        if required:
            raise DataIntegrityError(f"Missing {field_name}")
        return ZERO
    if isinstance(value, bool):
        raise DataIntegrityError(f"Invalid {field_name}: {value!r}")
    try:
        qty = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation:
        raise DataIntegrityError(f"Invalid {field_name}: {value!r}")
    if not qty.is_finite() or qty < 0:
        raise DataIntegrityError(f"Invalid {field_name}: {value!r}")
    return qty


# =============================================================================
# NORMALIZERS
# =============================================================================

def normalize_inward(line: Any, project_id: Any = None, record_id: Any = None) -> InwardLine:
    project_id = project_id if project_id is not None else _value(line, "project_id", "projectId")
    return InwardLine(
        project_id=to_identifier(project_id, "project_id"),
        material_id=to_identifier(_value(line, "material_id", "materialId"), "material_id"),
        ordered_qty=to_quantity(_value(line, "ordered_qty", "orderedQty"), "ordered_qty", required=False),
        received_qty=to_quantity(_value(line, "received_qty", "receivedQty"), "received_qty"),
        record_id=record_id,
    )


def normalize_outward(line: Any, project_id: Any = None, record_id: Any = None) -> OutwardLine:
    project_id = project_id if project_id is not None else _value(line, "project_id", "projectId")
    return OutwardLine(
        project_id=to_identifier(project_id, "project_id"),
        material_id=to_identifier(_value(line, "material_id", "materialId"), "material_id"),
        issue_qty=to_quantity(_value(line, "issue_qty", "issueQty"), "issue_qty"),
        record_id=record_id,
    )


def normalize_transfer(line: Any, from_project_id: Any = None, to_project_id: Any = None,
                       record_id: Any = None) -> TransferLine:
    if from_project_id is None:
        from_project_id = _value(line, "from_project_id", "fromProjectId")
    if to_project_id is None:
        to_project_id = _value(line, "to_project_id", "toProjectId")
    return TransferLine(
        from_project_id=to_identifier(from_project_id, "from_project_id"),
        to_project_id=to_identifier(to_project_id, "to_project_id"),
        material_id=to_identifier(_value(line, "material_id", "materialId"), "material_id"),
        transfer_qty=to_quantity(_value(line, "transfer_qty", "transferQty"), "transfer_qty"),
        record_id=record_id,
    )


def normalize_allocation(allocation: Any) -> AllocationEntry:
    return AllocationEntry(
        project_id=to_identifier(_value(allocation, "project_id", "projectId"), "project_id"),
        material_id=to_identifier(_value(allocation, "material_id", "materialId"), "material_id"),
        required_qty=to_quantity(_value(allocation, "required_qty", "requiredQty", "quantity"),
                                 "required_qty", required=False),
    )


# =============================================================================
# SNAPSHOT
# =============================================================================

def _collect(records: Iterable[Any], normalize, kind: str, skipped: list) -> list:
    lines = []
    for record in records:
        record_id = _value(record, "id")
        for raw in _value(record, "lines") or ():
            try:
                if kind == "transfer":
                    lines.append(normalize(
                        raw,
                        from_project_id=_value(record, "from_project_id", "fromProjectId"),
                        to_project_id=_value(record, "to_project_id", "toProjectId"),
                        record_id=record_id,
                    ))
                else:
                    lines.append(normalize(
                        raw,
                        project_id=_value(record, "project_id", "projectId"),
                        record_id=record_id,
                    ))
            except DataIntegrityError as exc:
                logger.warning("Skipping %s line on record %s: %s", kind, record_id, exc)
                skipped.append((kind, record_id, str(exc)))
    return lines


def build_snapshot(inward_records: Iterable[Any] = (), outward_records: Iterable[Any] = (),
                   transfer_records: Iterable[Any] = ()) -> MovementSnapshot:
    """Normalize movement documents (each with a ``lines`` collection) into a snapshot."""
    skipped: list = []
    inward = _collect(inward_records, normalize_inward, "inward", skipped)
    outward = _collect(outward_records, normalize_outward, "outward", skipped)
    transfers = _collect(transfer_records, normalize_transfer, "transfer", skipped)
    return MovementSnapshot(
        inward=tuple(inward),
        outward=tuple(outward),
        transfers=tuple(transfers),
        skipped=tuple(skipped),
    )
