"""
Project Material Ledger
=======================
Folds movement lines into one row per (project, material):

    balance = received - issued - transferred_out + transferred_in

Rows are derived on every call from the snapshot handed in; nothing is
stored or cached between calls. Accumulation is exact Decimal addition.

Lines that reference a project or material missing from the reference data
are logged and left out; the rest of the ledger is still returned.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from .exceptions import DataIntegrityError
from .movements import (
    AllocationEntry, InwardLine, OutwardLine, TransferLine, ZERO,
)

logger = logging.getLogger(__name__)


@dataclass
class LedgerRow:
    """Quantity summary for one material at one project"""
    project_id: int
    material_id: int
    required_qty: Decimal = ZERO
    ordered_qty: Decimal = ZERO
    received_qty: Decimal = ZERO
    issued_qty: Decimal = ZERO
    transferred_in: Decimal = ZERO
    transferred_out: Decimal = ZERO
    balance_qty: Decimal = ZERO

    @property
    def key(self) -> Tuple[int, int]:
        return (self.project_id, self.material_id)

    @property
    def display_balance(self) -> Decimal:
        """Balance floored at zero; the signed value stays on balance_qty."""
        return self.balance_qty if self.balance_qty > ZERO else ZERO

    def recompute_balance(self) -> Decimal:
        self.balance_qty = (
            self.received_qty - self.issued_qty - self.transferred_out + self.transferred_in
        )
        return self.balance_qty


@dataclass(frozen=True)
class ReferenceData:
    """Known project and material ids used for integrity checks"""
    project_ids: frozenset = field(default_factory=frozenset)
    material_ids: frozenset = field(default_factory=frozenset)


class LedgerAggregator:
    """
    Builds ledger rows for a set of projects.

    One instance per request; ``skipped`` collects the lines excluded for
    data-integrity reasons during the last ``build``.
    """

    def __init__(self, reference: Optional[ReferenceData] = None):
        self.reference = reference
        self.skipped: List[Tuple[object, str]] = []
        self._rows: dict = {}

    # -------------------------------------------------------------------------

    def _row(self, project_id: int, material_id: int) -> LedgerRow:
        key = (project_id, material_id)
        row = self._rows.get(key)
        if row is None:
            row = LedgerRow(project_id=project_id, material_id=material_id)
            self._rows[key] = row
        return row

    def _check(self, line, project_ids: Iterable[int], material_id: int) -> None:
        if self.reference is None:
            return
        for project_id in project_ids:
            if project_id not in self.reference.project_ids:
                raise DataIntegrityError(f"Unknown project {project_id}", line)
        if material_id not in self.reference.material_ids:
            raise DataIntegrityError(f"Unknown material {material_id}", line)

    def _skip(self, line, reason: str) -> None:
        logger.warning(
            "Excluding movement line from ledger (record %s): %s",
            getattr(line, "record_id", None), reason,
        )
        self.skipped.append((line, reason))

    # -------------------------------------------------------------------------

    def seed(self, allocations: Iterable[AllocationEntry], project_filter: frozenset) -> None:
        for allocation in allocations:
            if allocation.project_id not in project_filter:
                continue
            try:
                self._check(allocation, (allocation.project_id,), allocation.material_id)
            except DataIntegrityError as exc:
                self._skip(allocation, str(exc))
                continue
            # one allocation per pair; a repeated pair replaces, never adds
            self._row(allocation.project_id, allocation.material_id).required_qty = allocation.required_qty

    def apply(self, line, project_filter: frozenset) -> None:
        if isinstance(line, InwardLine):
            if line.project_id not in project_filter:
                return
            self._check(line, (line.project_id,), line.material_id)
            row = self._row(line.project_id, line.material_id)
            row.ordered_qty += line.ordered_qty
            row.received_qty += line.received_qty

        elif isinstance(line, OutwardLine):
            if line.project_id not in project_filter:
                return
            self._check(line, (line.project_id,), line.material_id)
            self._row(line.project_id, line.material_id).issued_qty += line.issue_qty

        elif isinstance(line, TransferLine):
            source_visible = line.from_project_id in project_filter
            target_visible = line.to_project_id in project_filter
            if not (source_visible or target_visible):
                return
            self._check(line, (line.from_project_id, line.to_project_id), line.material_id)
            if source_visible:
                self._row(line.from_project_id, line.material_id).transferred_out += line.transfer_qty
            if target_visible:
                self._row(line.to_project_id, line.material_id).transferred_in += line.transfer_qty

        else:
            raise DataIntegrityError(f"Unsupported movement line type {type(line).__name__}", line)

    def build(self, movements: Iterable, allocations: Iterable[AllocationEntry],
              project_filter: Iterable[int]) -> List[LedgerRow]:
        project_filter = frozenset(project_filter)
        self._rows = {}
        self.skipped = []

        if not project_filter:
            return []

        self.seed(allocations, project_filter)

        for line in movements:
            try:
                self.apply(line, project_filter)
            except DataIntegrityError as exc:
                self._skip(line, str(exc))

        rows = sorted(self._rows.values(), key=lambda r: r.key)
        for row in rows:
            row.recompute_balance()
        return rows


def build_ledger(movements: Iterable, allocations: Iterable[AllocationEntry],
                 project_filter: Iterable[int],
                 reference: Optional[ReferenceData] = None) -> List[LedgerRow]:
    """Fold movements and allocations into ledger rows for ``project_filter``."""
    return LedgerAggregator(reference).build(movements, allocations, project_filter)
