"""
BOM & Ledger API Router
=======================
- per-project ledger (allocations joined with movement totals)
- cross-project ledger over every visible project, with filters
- allocation upsert/delete

Balances are derived on each request; nothing here writes a balance.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from .. import schemas, views
from ..deps import get_current_user, get_db
from ..errors import http_error
from ..models import User
from ..services import (
    AllocationService, LedgerService, MovementStore, ProjectService,
    StoreError, filter_options, paginate, query,
)
from ..services.query import LEDGER_QUERY

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["BOM & Ledger"])


def _ledger_page(entries, page, size, search, categories, units, line_types, **extra):
    options = filter_options(entries, LEDGER_QUERY)
    matches = query(
        entries,
        LEDGER_QUERY,
        filters={"category": categories, "unit": units, "line_type": line_types},
        search=search,
    )
    return views.page_response(
        paginate(matches, page, size, extra=views.filters_extra(options, **extra)),
        views.ledger_row_out,
    )


# =============================================================================
# LEDGER
# =============================================================================

@router.get("/ledger", response_model=schemas.PaginatedResponse[schemas.LedgerRowOut])
def get_ledger(
    page: Optional[str] = None,
    size: Optional[str] = None,
    search: Optional[str] = None,
    category: Optional[List[str]] = Query(None),
    unit: Optional[List[str]] = Query(None),
    line_type: Optional[List[str]] = Query(None, alias="lineType"),
    project_id: Optional[List[str]] = Query(None, alias="projectId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Ledger rows across every project the user can see.

    ``projectId`` narrows the scope; ids outside it are ignored.
    """
    entries = LedgerService.entries(db, current_user, project_id)
    return _ledger_page(entries, page, size, search, category, unit, line_type)


@router.get("/bom/projects/{project_id}", response_model=schemas.PaginatedResponse[schemas.LedgerRowOut])
def get_project_bom(
    project_id: int,
    page: Optional[str] = None,
    size: Optional[str] = None,
    search: Optional[str] = None,
    category: Optional[List[str]] = Query(None),
    unit: Optional[List[str]] = Query(None),
    line_type: Optional[List[str]] = Query(None, alias="lineType"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        project = ProjectService.get(db, project_id)
    except StoreError as e:
        raise http_error(e)
    if project_id not in MovementStore(db).visible_projects(current_user):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Project {project_id} not found")

    entries = LedgerService.entries(db, current_user, [project_id])
    return _ledger_page(
        entries, page, size, search, category, unit, line_type,
        project=views.project_out(project).model_dump(by_alias=True),
    )


# =============================================================================
# ALLOCATIONS
# =============================================================================

def _upsert(db: Session, user: User, project_id: int, material_id: Optional[int], quantity) -> schemas.AllocationOut:
    if material_id is None:
        raise HTTPException(status_code=400, detail="materialId is required")
    try:
        MovementStore(db).require_visible(user, project_id)
        allocation = AllocationService.upsert(db, project_id, material_id, quantity)
        db.commit()
    except StoreError as e:
        db.rollback()
        raise http_error(e)

    return schemas.AllocationOut(
        project_id=allocation.project_id,
        material_id=allocation.material_id,
        required_qty=float(allocation.required_qty),
    )


@router.post("/bom/projects/{project_id}/materials", response_model=schemas.AllocationOut, status_code=201)
def create_allocation(
    project_id: int,
    data: schemas.AllocationIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Set the required quantity of a material for a project."""
    return _upsert(db, current_user, project_id, data.material_id, data.quantity)


@router.put("/bom/projects/{project_id}/materials/{material_id}", response_model=schemas.AllocationOut)
def update_allocation(
    project_id: int,
    material_id: int,
    data: schemas.AllocationIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Replace the required quantity; a repeated write overwrites, it does not add."""
    return _upsert(db, current_user, project_id, material_id, data.quantity)


@router.delete("/bom/projects/{project_id}/materials/{material_id}")
def delete_allocation(
    project_id: int,
    material_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        MovementStore(db).require_visible(current_user, project_id)
        AllocationService.delete(db, project_id, material_id)
        db.commit()
    except StoreError as e:
        db.rollback()
        raise http_error(e)

    logger.info("Allocation project=%s material=%s deleted by user %s", project_id, material_id, current_user.id)
    return {"success": True, "message": "Allocation removed"}
