"""
Material Directory API Router
=============================
Search the material directory, register new materials and list the
movement history of one material across the user's visible projects.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from .. import schemas, views
from ..deps import get_current_user, get_db
from ..errors import http_error
from ..models import User
from ..services import HistoryService, MaterialService, StoreError, paginate

router = APIRouter(prefix="/api", tags=["Materials"])


@router.get("/materials/search", response_model=schemas.PaginatedResponse[schemas.MaterialOut])
def search_materials(
    page: Optional[str] = None,
    size: Optional[str] = None,
    search: Optional[str] = None,
    category: Optional[List[str]] = Query(None),
    unit: Optional[List[str]] = Query(None),
    line_type: Optional[List[str]] = Query(None, alias="lineType"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Paginated material directory.

    Filter options in ``extra.filters`` cover the whole directory, not just
    the current matches.
    """
    matches, options = MaterialService.search(db, search, category, unit, line_type)
    return views.page_response(
        paginate(matches, page, size, extra=views.filters_extra(options)),
        views.material_out,
    )


@router.post("/materials", response_model=schemas.MaterialOut, status_code=201)
def create_material(
    data: schemas.MaterialCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        material = MaterialService.create(
            db,
            code=data.code,
            name=data.name,
            part_no=data.part_no,
            unit=data.unit,
            category=data.category,
            line_type=data.line_type,
        )
        db.commit()
    except StoreError as e:
        db.rollback()
        raise http_error(e)

    db.refresh(material)
    return views.material_out(material)


@router.get("/app/materials/{material_id}/movements",
            response_model=schemas.PaginatedResponse[schemas.MaterialMovementOut])
def material_movements(
    material_id: int,
    page: Optional[str] = None,
    size: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        material = MaterialService.get(db, material_id)
    except StoreError as e:
        raise http_error(e)

    events = HistoryService.material_movements(db, current_user, material_id)
    extra = {"material": views.material_out(material).model_dump(by_alias=True)}
    return views.page_response(paginate(events, page, size, extra=extra), views.material_movement_out)
