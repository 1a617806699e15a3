"""
Movement posting.

Inward, outward and transfer documents are append-only. A mistake is fixed
by posting a compensating document, never by editing lines. Closing an
outward register only stamps its status and close date; it does not touch
quantities.
"""

import logging
from datetime import date
from typing import Any, Iterable, Optional

from sqlalchemy.orm import Session

from ..models import (
    InwardLine, InwardRecord, Material, OutwardLine, OutwardRecord,
    OutwardStatus, TransferLine, TransferRecord,
)
from .exceptions import (
    InvalidOperationError, NotFoundError,
)
from .movements import to_identifier, to_quantity
from .store_service import MovementStore

logger = logging.getLogger(__name__)


def _require_lines(lines: Optional[Iterable[Any]]) -> list:
    lines = list(lines or ())
    if not lines:
        raise InvalidOperationError("At least one line is required")
    return lines


def _require_materials(db: Session, lines: list) -> None:
    wanted = {to_identifier(line.material_id, "material_id") for line in lines}
    found = {mid for (mid,) in db.query(Material.id).filter(Material.id.in_(wanted)).all()}
    missing = wanted - found
    if missing:
        raise NotFoundError(f"Unknown material(s): {', '.join(str(m) for m in sorted(missing))}")


class MovementService:
    """Append movement documents for projects the user can see"""

    @staticmethod
    def record_inward(db: Session, user: Any, data: Any) -> InwardRecord:
        store = MovementStore(db)
        project_id = to_identifier(data.project_id, "project_id")
        store.require_visible(user, project_id)
        lines = _require_lines(data.lines)
        _require_materials(db, lines)

        record = InwardRecord(
            code=data.code,
            project_id=project_id,
            entry_date=data.entry_date or date.today(),
            delivery_date=data.delivery_date,
            invoice_no=data.invoice_no,
            supplier_name=data.supplier_name,
            remarks=data.remarks,
            created_by=user.id,
            lines=[
                InwardLine(
                    material_id=line.material_id,
                    ordered_qty=to_quantity(line.ordered_qty, "ordered_qty", required=False),
                    received_qty=to_quantity(line.received_qty, "received_qty"),
                )
                for line in lines
            ],
        )
        db.add(record)
        db.flush()
        if not record.code:
            record.code = f"INW-{record.id:06d}"
        logger.info("Inward %s posted to project %s with %d line(s)", record.code, project_id, len(lines))
        return record

    @staticmethod
    def record_outward(db: Session, user: Any, data: Any) -> OutwardRecord:
        store = MovementStore(db)
        project_id = to_identifier(data.project_id, "project_id")
        store.require_visible(user, project_id)
        lines = _require_lines(data.lines)
        _require_materials(db, lines)

        record = OutwardRecord(
            code=data.code,
            project_id=project_id,
            date=data.date or date.today(),
            issue_to=data.issue_to,
            status=OutwardStatus.OPEN,
            created_by=user.id,
            lines=[
                OutwardLine(
                    material_id=line.material_id,
                    issue_qty=to_quantity(line.issue_qty, "issue_qty"),
                )
                for line in lines
            ],
        )
        db.add(record)
        db.flush()
        if not record.code:
            record.code = f"OUT-{record.id:06d}"
        logger.info("Outward %s posted to project %s with %d line(s)", record.code, project_id, len(lines))
        return record

    @staticmethod
    def record_transfer(db: Session, user: Any, data: Any) -> TransferRecord:
        """
        Move material from one project to another.

        The user must see the source project; the destination only has to
        exist.
        """
        store = MovementStore(db)
        from_id = to_identifier(data.from_project_id, "from_project_id")
        to_id = to_identifier(data.to_project_id, "to_project_id")
        if from_id == to_id and (data.from_site or None) == (data.to_site or None):
            raise InvalidOperationError("Source and destination are the same")
        store.require_visible(user, from_id)
        if to_id not in store.project_ids():
            raise NotFoundError(f"Project {to_id} not found")
        lines = _require_lines(data.lines)
        _require_materials(db, lines)

        record = TransferRecord(
            code=data.code,
            from_project_id=from_id,
            from_site=data.from_site,
            to_project_id=to_id,
            to_site=data.to_site,
            transfer_date=data.transfer_date or date.today(),
            remarks=data.remarks,
            created_by=user.id,
            lines=[
                TransferLine(
                    material_id=line.material_id,
                    transfer_qty=to_quantity(line.transfer_qty, "transfer_qty"),
                )
                for line in lines
            ],
        )
        db.add(record)
        db.flush()
        if not record.code:
            record.code = f"TRF-{record.id:06d}"
        logger.info("Transfer %s posted: project %s -> %s", record.code, from_id, to_id)
        return record

    @staticmethod
    def close_outward(db: Session, user: Any, register_id: int, close_date: Optional[date] = None) -> OutwardRecord:
        record = db.query(OutwardRecord).filter(OutwardRecord.id == register_id).first()
        if record is None:
            raise NotFoundError("Outward register not found")
        MovementStore(db).require_visible(user, record.project_id)
        if record.status == OutwardStatus.CLOSED:
            raise InvalidOperationError(f"Outward register {record.code} is already closed")

        record.status = OutwardStatus.CLOSED
        record.close_date = close_date or date.today()
        db.flush()
        return record
