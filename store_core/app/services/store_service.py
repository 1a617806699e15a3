"""
Movement Store & Retrieval Services
===================================
Read side of the store backend:
- MovementStore reads one request-scoped snapshot of the movement tables
- HistoryService lists inward/outward/transfer documents a user may see
- LedgerService joins ledger rows with their material/project for display

All reads go through the caller's Session; nothing here commits.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

from sqlalchemy.orm import Session, joinedload, selectinload

from ..models import (
    BomAllocation, InwardLine as InwardLineRow, InwardRecord, Material,
    OutwardLine as OutwardLineRow, OutwardRecord, Project,
    TransferLine as TransferLineRow, TransferRecord,
)
from .access import is_record_visible, resolve_visible_projects, scope_projects
from .exceptions import DataIntegrityError, NotFoundError, ProjectAccessError, UnauthenticatedError
from .ledger import LedgerAggregator, LedgerRow, ReferenceData
from .movements import (
    AllocationEntry, MovementSnapshot, build_snapshot, normalize_allocation,
)
from .query import (
    INWARD_ORDER, OUTWARD_ORDER, TRANSFER_ORDER, SortOrder, apply_sort,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerEntry:
    """A ledger row with the reference data needed to render and filter it"""
    row: LedgerRow
    material: Material
    project: Project


# =============================================================================
# MOVEMENT STORE
# =============================================================================

class MovementStore:
    """SQLAlchemy-backed source of reference data and movement documents"""

    def __init__(self, db: Session):
        self.db = db

    def project_ids(self) -> frozenset:
        return frozenset(pid for (pid,) in self.db.query(Project.id).all())

    def reference_data(self) -> ReferenceData:
        return ReferenceData(
            project_ids=self.project_ids(),
            material_ids=frozenset(mid for (mid,) in self.db.query(Material.id).all()),
        )

    def visible_projects(self, user: Any, requested: Optional[Iterable[Any]] = None) -> frozenset:
        if user is None:
            raise UnauthenticatedError("No authenticated user")
        return scope_projects(resolve_visible_projects(user, self.project_ids()), requested)

    def require_visible(self, user: Any, project_id: int) -> None:
        """Write-side check: raise when ``project_id`` is outside the user's scope."""
        if project_id not in self.visible_projects(user):
            raise ProjectAccessError(f"No access to project {project_id}")

    # -- documents ------------------------------------------------------------

    def inward_records(self, project_ids: frozenset) -> List[InwardRecord]:
        if not project_ids:
            return []
        return (
            self.db.query(InwardRecord)
            .options(
                joinedload(InwardRecord.project),
                selectinload(InwardRecord.lines).joinedload(InwardLineRow.material),
            )
            .filter(InwardRecord.project_id.in_(project_ids))
            .order_by(InwardRecord.id.asc())
            .all()
        )

    def outward_records(self, project_ids: frozenset) -> List[OutwardRecord]:
        if not project_ids:
            return []
        return (
            self.db.query(OutwardRecord)
            .options(
                joinedload(OutwardRecord.project),
                selectinload(OutwardRecord.lines).joinedload(OutwardLineRow.material),
            )
            .filter(OutwardRecord.project_id.in_(project_ids))
            .order_by(OutwardRecord.id.asc())
            .all()
        )

    def transfer_records(self, project_ids: frozenset) -> List[TransferRecord]:
        if not project_ids:
            return []
        return (
            self.db.query(TransferRecord)
            .options(
                joinedload(TransferRecord.from_project),
                joinedload(TransferRecord.to_project),
                selectinload(TransferRecord.lines).joinedload(TransferLineRow.material),
            )
            .filter(
                TransferRecord.from_project_id.in_(project_ids)
                | TransferRecord.to_project_id.in_(project_ids)
            )
            .order_by(TransferRecord.id.asc())
            .all()
        )

    def allocations(self, project_ids: frozenset) -> List[AllocationEntry]:
        if not project_ids:
            return []
        rows = (
            self.db.query(BomAllocation)
            .filter(BomAllocation.project_id.in_(project_ids))
            .order_by(BomAllocation.id.asc())
            .all()
        )
        entries = []
        for allocation in rows:
            try:
                entries.append(normalize_allocation(allocation))
            except DataIntegrityError as exc:
                logger.warning("Skipping allocation %s: %s", allocation.id, exc)
        return entries

    def snapshot(self, project_ids: frozenset) -> MovementSnapshot:
        """Read every movement line touching ``project_ids`` once."""
        return build_snapshot(
            self.inward_records(project_ids),
            self.outward_records(project_ids),
            self.transfer_records(project_ids),
        )


# =============================================================================
# HISTORY
# =============================================================================

class HistoryService:
    """Access-scoped movement document history, newest first"""

    @staticmethod
    def inwards(db: Session, user: Any, project_ids: Optional[Iterable[Any]] = None) -> List[InwardRecord]:
        store = MovementStore(db)
        return apply_sort(store.inward_records(store.visible_projects(user, project_ids)), INWARD_ORDER)

    @staticmethod
    def outwards(db: Session, user: Any, project_ids: Optional[Iterable[Any]] = None) -> List[OutwardRecord]:
        store = MovementStore(db)
        return apply_sort(store.outward_records(store.visible_projects(user, project_ids)), OUTWARD_ORDER)

    @staticmethod
    def transfers(db: Session, user: Any, project_ids: Optional[Iterable[Any]] = None) -> List[TransferRecord]:
        store = MovementStore(db)
        return apply_sort(store.transfer_records(store.visible_projects(user, project_ids)), TRANSFER_ORDER)

    @staticmethod
    def record(db: Session, user: Any, model: Any, record_id: int) -> Any:
        """
        Fetch one movement document by id.

        A document outside the user's visible projects is reported as not
        found, the same as a missing one.
        """
        record = db.query(model).filter(model.id == record_id).first()
        if record is None or not is_record_visible(record, MovementStore(db).visible_projects(user)):
            raise NotFoundError(f"{model.__name__} {record_id} not found")
        return record

    @staticmethod
    def material_movements(db: Session, user: Any, material_id: int) -> List[dict]:
        """
        Every inward/outward/transfer line of one material across the
        user's visible projects, newest first.
        """
        store = MovementStore(db)
        visible = store.visible_projects(user)
        events = []

        for record in store.inward_records(visible):
            for line in record.lines:
                if line.material_id == material_id:
                    events.append({
                        "type": "INWARD", "record_id": record.id, "code": record.code,
                        "date": record.entry_date, "project": record.project,
                        "counterparty": record.supplier_name, "quantity": line.received_qty,
                    })
        for record in store.outward_records(visible):
            for line in record.lines:
                if line.material_id == material_id:
                    events.append({
                        "type": "OUTWARD", "record_id": record.id, "code": record.code,
                        "date": record.date, "project": record.project,
                        "counterparty": record.issue_to, "quantity": line.issue_qty,
                    })
        for record in store.transfer_records(visible):
            for line in record.lines:
                if line.material_id != material_id:
                    continue
                if record.from_project_id in visible:
                    events.append({
                        "type": "TRANSFER_OUT", "record_id": record.id, "code": record.code,
                        "date": record.transfer_date, "project": record.from_project,
                        "counterparty": record.to_project.name if record.to_project else None,
                        "quantity": line.transfer_qty,
                    })
                if record.to_project_id in visible:
                    events.append({
                        "type": "TRANSFER_IN", "record_id": record.id, "code": record.code,
                        "date": record.transfer_date, "project": record.to_project,
                        "counterparty": record.from_project.name if record.from_project else None,
                        "quantity": line.transfer_qty,
                    })

        return apply_sort(events, SortOrder(key=lambda e: e["date"], descending=True))


# =============================================================================
# LEDGER
# =============================================================================

class LedgerService:
    """Builds display-ready ledger entries for the projects a user may see"""

    @staticmethod
    def rows(db: Session, project_ids: frozenset) -> List[LedgerRow]:
        store = MovementStore(db)
        aggregator = LedgerAggregator(store.reference_data())
        rows = aggregator.build(store.snapshot(project_ids), store.allocations(project_ids), project_ids)
        if aggregator.skipped:
            logger.info("Ledger for %d project(s) excluded %d line(s)", len(project_ids), len(aggregator.skipped))
        return rows

    @staticmethod
    def entries(db: Session, user: Any, project_ids: Optional[Iterable[Any]] = None) -> List[LedgerEntry]:
        store = MovementStore(db)
        scoped = store.visible_projects(user, project_ids)
        if not scoped:
            return []

        rows = LedgerService.rows(db, scoped)
        material_ids = {r.material_id for r in rows}
        materials = {m.id: m for m in db.query(Material).filter(Material.id.in_(material_ids)).all()} if material_ids else {}
        projects = {p.id: p for p in db.query(Project).filter(Project.id.in_(scoped)).all()}

        entries = [
            LedgerEntry(row=row, material=materials[row.material_id], project=projects[row.project_id])
            for row in rows
        ]
        return sorted(entries, key=lambda e: (e.project.code, e.material.code))
