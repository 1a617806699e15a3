"""
Admin API Router
================
User accounts and projects. Only the ADMIN role may use these routes.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from .. import schemas, views
from ..deps import get_db, get_password_hash, require_role
from ..errors import http_error
from ..models import User, UserRole
from ..services import ProjectService, StoreError, UserService, paginate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"])

ADMIN_PORTAL_ROLES = (UserRole.ADMIN,)


# =============================================================================
# USERS
# =============================================================================

@router.get("/users/search", response_model=schemas.PaginatedResponse[schemas.UserOut])
def search_users(
    page: Optional[str] = None,
    size: Optional[str] = None,
    search: Optional[str] = None,
    role: Optional[List[str]] = Query(None),
    access_type: Optional[List[str]] = Query(None, alias="accessType"),
    project_id: Optional[List[str]] = Query(None, alias="projectId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(*ADMIN_PORTAL_ROLES)),
):
    matches, options = UserService.search(db, search, role, access_type, project_id)
    return views.page_response(
        paginate(matches, page, size, extra=views.filters_extra(options)),
        views.user_out,
    )


@router.post("/users", response_model=schemas.UserOut, status_code=201)
def create_user(
    data: schemas.UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(*ADMIN_PORTAL_ROLES)),
):
    """
    Create a user account.

    Elevated roles default to ALL-project access; everyone else defaults to
    the projects listed in ``projectIds``.
    """
    try:
        user = UserService.create(
            db,
            name=data.name,
            email=data.email,
            password_hash=get_password_hash(data.password),
            role=data.role,
            access_type=data.access_type,
            project_ids=data.project_ids,
        )
        db.commit()
    except StoreError as e:
        db.rollback()
        raise http_error(e)

    db.refresh(user)
    logger.info("User %s created by %s with role %s", user.email, current_user.email, user.role.value)
    return views.user_out(user)


# =============================================================================
# PROJECTS
# =============================================================================

@router.get("/projects/search", response_model=schemas.PaginatedResponse[schemas.ProjectOut])
def search_projects(
    page: Optional[str] = None,
    size: Optional[str] = None,
    search: Optional[str] = None,
    prefix: Optional[List[str]] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(*ADMIN_PORTAL_ROLES)),
):
    matches, options = ProjectService.search(db, current_user, search, prefix)
    return views.page_response(
        paginate(matches, page, size, extra=views.filters_extra(options)),
        views.project_out,
    )


@router.post("/projects", response_model=schemas.ProjectOut, status_code=201)
def create_project(
    data: schemas.ProjectCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(*ADMIN_PORTAL_ROLES)),
):
    try:
        project = ProjectService.create(db, code=data.code, name=data.name, site=data.site)
        db.commit()
    except StoreError as e:
        db.rollback()
        raise http_error(e)

    db.refresh(project)
    return views.project_out(project)
