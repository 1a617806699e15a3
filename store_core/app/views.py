"""
View assembly: domain rows and ORM documents -> response schemas.

Quantities leave the system as floats here and nowhere earlier; the
ledger balance is floored at zero for display.
"""

from decimal import Decimal
from typing import Any, Callable, Optional

from . import schemas
from .models import InwardRecord, Material, OutwardRecord, Project, TransferRecord, User
from .services.pagination import Page
from .services.query import project_prefix
from .services.store_service import LedgerEntry


def _qty(value: Optional[Decimal]) -> float:
    return float(value) if value is not None else 0.0


def _enum(value: Any) -> Optional[str]:
    return getattr(value, "value", value)


_OPTION_KEYS = {
    "category": "categories",
    "unit": "units",
    "line_type": "lineTypes",
    "role": "roles",
    "access_type": "accessTypes",
    "project_id": "projectIds",
    "prefix": "prefixes",
}


def filters_extra(options: dict, **extra: Any) -> dict:
    """Wrap dimension options as ``{"filters": {...}}`` with wire-style keys."""
    result = {"filters": {_OPTION_KEYS.get(name, name): values for name, values in options.items()}}
    result.update(extra)
    return result


def page_response(page: Page, mapper: Callable[[Any], Any]) -> schemas.PaginatedResponse:
    return schemas.PaginatedResponse(
        items=[mapper(item) for item in page.items],
        total_items=page.total_items,
        page=page.page,
        size=page.size,
        total_pages=page.total_pages,
        has_next=page.has_next,
        has_previous=page.has_previous,
        extra=page.extra,
    )


# =============================================================================
# MOVEMENT DOCUMENTS
# =============================================================================

def inward_out(record: InwardRecord) -> schemas.InwardRecordOut:
    lines = [
        schemas.InwardLineOut(
            id=line.id,
            material_id=line.material_id,
            code=line.material.code if line.material else None,
            name=line.material.name if line.material else None,
            unit=line.material.unit if line.material else None,
            ordered_qty=_qty(line.ordered_qty),
            received_qty=_qty(line.received_qty),
        )
        for line in record.lines
    ]
    return schemas.InwardRecordOut(
        id=record.id,
        project_id=record.project_id,
        project_name=record.project.name if record.project else None,
        code=record.code,
        entry_date=record.entry_date,
        delivery_date=record.delivery_date,
        invoice_no=record.invoice_no,
        supplier_name=record.supplier_name,
        items=len(lines),
        lines=lines,
    )


def outward_out(record: OutwardRecord) -> schemas.OutwardRecordOut:
    lines = [
        schemas.OutwardLineOut(
            id=line.id,
            material_id=line.material_id,
            code=line.material.code if line.material else None,
            name=line.material.name if line.material else None,
            unit=line.material.unit if line.material else None,
            issue_qty=_qty(line.issue_qty),
        )
        for line in record.lines
    ]
    return schemas.OutwardRecordOut(
        id=record.id,
        project_id=record.project_id,
        project_name=record.project.name if record.project else None,
        code=record.code,
        date=record.date,
        issue_to=record.issue_to,
        status=_enum(record.status) or "OPEN",
        close_date=record.close_date,
        items=len(lines),
        lines=lines,
    )


def transfer_out(record: TransferRecord) -> schemas.TransferRecordOut:
    lines = [
        schemas.TransferLineOut(
            id=line.id,
            material_id=line.material_id,
            code=line.material.code if line.material else None,
            name=line.material.name if line.material else None,
            unit=line.material.unit if line.material else None,
            transfer_qty=_qty(line.transfer_qty),
        )
        for line in record.lines
    ]
    return schemas.TransferRecordOut(
        id=record.id,
        code=record.code,
        from_project_id=record.from_project_id,
        from_project_name=record.from_project.name if record.from_project else None,
        from_site=record.from_site,
        to_project_id=record.to_project_id,
        to_project_name=record.to_project.name if record.to_project else None,
        to_site=record.to_site,
        transfer_date=record.transfer_date,
        remarks=record.remarks,
        lines=lines,
    )


def material_movement_out(event: dict) -> schemas.MaterialMovementOut:
    project = event["project"]
    return schemas.MaterialMovementOut(
        type=event["type"],
        record_id=event["record_id"],
        code=event["code"],
        date=event["date"],
        project_id=project.id,
        project_name=project.name,
        counterparty=event["counterparty"],
        quantity=_qty(event["quantity"]),
    )


# =============================================================================
# LEDGER / REFERENCE DATA
# =============================================================================

def ledger_row_out(entry: LedgerEntry) -> schemas.LedgerRowOut:
    row, material, project = entry.row, entry.material, entry.project
    return schemas.LedgerRowOut(
        project_id=project.id,
        project_code=project.code,
        project_name=project.name,
        material_id=material.id,
        code=material.code,
        name=material.name,
        part_no=material.part_no,
        unit=material.unit,
        category=material.category,
        line_type=material.line_type,
        required_qty=_qty(row.required_qty),
        ordered_qty=_qty(row.ordered_qty),
        received_qty=_qty(row.received_qty),
        issued_qty=_qty(row.issued_qty),
        transferred_in_qty=_qty(row.transferred_in),
        transferred_out_qty=_qty(row.transferred_out),
        balance_qty=_qty(row.display_balance),
    )


def material_out(material: Material) -> schemas.MaterialOut:
    return schemas.MaterialOut.model_validate(material)


def project_out(project: Project) -> schemas.ProjectOut:
    return schemas.ProjectOut(
        id=project.id,
        code=project.code,
        name=project.name,
        site=project.site,
        prefix=project_prefix(project.code),
    )


def user_out(user: User) -> schemas.UserOut:
    return schemas.UserOut(
        id=user.id,
        name=user.name,
        email=user.email,
        role=_enum(user.role),
        access_type=_enum(user.access_type),
        is_active=bool(user.is_active),
        projects=[schemas.ProjectRef(id=p.id, code=p.code, name=p.name) for p in user.projects],
    )
