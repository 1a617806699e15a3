"""
Movement Posting API Router
===========================
Append inward receipts, outward registers and transfers; close an outward
register.

Posted lines are never edited. A wrong entry is corrected by posting a
compensating document.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import schemas, views
from ..deps import get_current_user, get_db
from ..errors import http_error
from ..models import InwardRecord, OutwardRecord, TransferRecord, User
from ..services import HistoryService, MovementService, StoreError

router = APIRouter(prefix="/api", tags=["Movements"])


@router.post("/inwards", response_model=schemas.InwardRecordOut, status_code=201)
def post_inward(
    data: schemas.InwardCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Record goods received at a project."""
    try:
        record = MovementService.record_inward(db, current_user, data)
        db.commit()
    except StoreError as e:
        db.rollback()
        raise http_error(e)

    return views.inward_out(HistoryService.record(db, current_user, InwardRecord, record.id))


@router.post("/outwards", response_model=schemas.OutwardRecordOut, status_code=201)
def post_outward(
    data: schemas.OutwardCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Record goods issued from a project."""
    try:
        record = MovementService.record_outward(db, current_user, data)
        db.commit()
    except StoreError as e:
        db.rollback()
        raise http_error(e)

    return views.outward_out(HistoryService.record(db, current_user, OutwardRecord, record.id))


@router.post("/transfers", response_model=schemas.TransferRecordOut, status_code=201)
def post_transfer(
    data: schemas.TransferCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Move material between projects.

    The source project must be visible to the caller; the destination only
    has to exist.
    """
    try:
        record = MovementService.record_transfer(db, current_user, data)
        db.commit()
    except StoreError as e:
        db.rollback()
        raise http_error(e)

    return views.transfer_out(HistoryService.record(db, current_user, TransferRecord, record.id))


@router.put("/outwards/{register_id}/close", response_model=schemas.OutwardRecordOut)
def close_outward(
    register_id: int,
    data: Optional[schemas.OutwardClose] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        record = MovementService.close_outward(
            db, current_user, register_id, data.close_date if data else None
        )
        db.commit()
    except StoreError as e:
        db.rollback()
        raise http_error(e)

    db.refresh(record)
    return views.outward_out(record)
