"""
Movement History API Router
===========================
Read-only, access-scoped history of movement documents:
- inward receipts
- outward registers
- project-to-project transfers

Every list is newest first and paginated; page/size are clamped, never
rejected. A transfer shows up when either of its projects is visible.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from .. import schemas, views
from ..deps import get_current_user, get_db
from ..errors import http_error
from ..models import InwardRecord, OutwardRecord, TransferRecord, User
from ..services import HistoryService, StoreError, paginate

router = APIRouter(prefix="/api/history", tags=["History"])


# =============================================================================
# LISTS
# =============================================================================

@router.get("/inwards", response_model=schemas.PaginatedResponse[schemas.InwardRecordOut])
def list_inwards(
    page: Optional[str] = None,
    size: Optional[str] = None,
    project_id: Optional[List[str]] = Query(None, alias="projectId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    records = HistoryService.inwards(db, current_user, project_id)
    return views.page_response(paginate(records, page, size), views.inward_out)


@router.get("/outwards", response_model=schemas.PaginatedResponse[schemas.OutwardRecordOut])
def list_outwards(
    page: Optional[str] = None,
    size: Optional[str] = None,
    project_id: Optional[List[str]] = Query(None, alias="projectId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    records = HistoryService.outwards(db, current_user, project_id)
    return views.page_response(paginate(records, page, size), views.outward_out)


@router.get("/transfers", response_model=schemas.PaginatedResponse[schemas.TransferRecordOut])
def list_transfers(
    page: Optional[str] = None,
    size: Optional[str] = None,
    project_id: Optional[List[str]] = Query(None, alias="projectId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    records = HistoryService.transfers(db, current_user, project_id)
    return views.page_response(paginate(records, page, size), views.transfer_out)


# =============================================================================
# DETAIL
# =============================================================================

@router.get("/inwards/{record_id}", response_model=schemas.InwardRecordOut)
def get_inward(record_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    try:
        return views.inward_out(HistoryService.record(db, current_user, InwardRecord, record_id))
    except StoreError as e:
        raise http_error(e)


@router.get("/outwards/{record_id}", response_model=schemas.OutwardRecordOut)
def get_outward(record_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    try:
        return views.outward_out(HistoryService.record(db, current_user, OutwardRecord, record_id))
    except StoreError as e:
        raise http_error(e)


@router.get("/transfers/{record_id}", response_model=schemas.TransferRecordOut)
def get_transfer(record_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    try:
        return views.transfer_out(HistoryService.record(db, current_user, TransferRecord, record_id))
    except StoreError as e:
        raise http_error(e)
