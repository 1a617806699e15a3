"""
Catalog Services
================
Material directory, projects, user accounts and BOM allocations.

Services flush but never commit; the router owns the transaction.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session, selectinload

from ..models import (
    AccessType, BomAllocation, ELEVATED_ROLES, Material, Project, User, UserRole,
)
from .exceptions import AllocationError, DataIntegrityError, DuplicateError, NotFoundError
from .movements import to_quantity
from .query import (
    MATERIAL_QUERY, PROJECT_QUERY, USER_QUERY, SortOrder, filter_options, query,
)
from .store_service import MovementStore

logger = logging.getLogger(__name__)


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


# =============================================================================
# MATERIALS
# =============================================================================

class MaterialService:

    @staticmethod
    def search(db: Session, search: Optional[str] = None,
               categories: Optional[Iterable[str]] = None,
               units: Optional[Iterable[str]] = None,
               line_types: Optional[Iterable[str]] = None) -> Tuple[List[Material], Dict[str, List[str]]]:
        """
        Filter the material directory.

        Returns the ordered matches and the filter options computed over the
        whole directory.
        """
        materials = db.query(Material).order_by(Material.code.asc()).all()
        options = filter_options(materials, MATERIAL_QUERY)
        matches = query(
            materials,
            MATERIAL_QUERY,
            filters={"category": categories, "unit": units, "line_type": line_types},
            search=search,
        )
        return matches, options

    @staticmethod
    def get(db: Session, material_id: int) -> Material:
        material = db.query(Material).filter(Material.id == material_id).first()
        if not material:
            raise NotFoundError(f"Material {material_id} not found")
        return material

    @staticmethod
    def create(db: Session, code: str, name: str, part_no: Optional[str] = None,
               unit: Optional[str] = None, category: Optional[str] = None,
               line_type: Optional[str] = None) -> Material:
        code = code.strip()
        if db.query(Material).filter(Material.code == code).first():
            raise DuplicateError(f"Material code {code} already exists")

        material = Material(
            code=code,
            name=name.strip(),
            part_no=_clean(part_no),
            unit=_clean(unit),
            category=_clean(category),
            line_type=_clean(line_type),
        )
        db.add(material)
        db.flush()
        return material


# =============================================================================
# PROJECTS
# =============================================================================

class ProjectService:

    @staticmethod
    def search(db: Session, user: Any, search: Optional[str] = None,
               prefixes: Optional[Iterable[str]] = None) -> Tuple[List[Project], Dict[str, List[str]]]:
        visible = MovementStore(db).visible_projects(user)
        if not visible:
            return [], filter_options([], PROJECT_QUERY)

        projects = (
            db.query(Project)
            .filter(Project.id.in_(visible))
            .order_by(Project.code.asc())
            .all()
        )
        options = filter_options(projects, PROJECT_QUERY)
        matches = query(projects, PROJECT_QUERY, filters={"prefix": prefixes}, search=search)
        return matches, options

    @staticmethod
    def get(db: Session, project_id: int) -> Project:
        project = db.query(Project).filter(Project.id == project_id).first()
        if not project:
            raise NotFoundError(f"Project {project_id} not found")
        return project

    @staticmethod
    def create(db: Session, code: str, name: str, site: Optional[str] = None) -> Project:
        code = code.strip()
        if db.query(Project).filter(Project.code == code).first():
            raise DuplicateError(f"Project code {code} already exists")
        project = Project(code=code, name=name.strip(), site=_clean(site))
        db.add(project)
        db.flush()
        return project


# =============================================================================
# USERS
# =============================================================================

class UserService:

    @staticmethod
    def search(db: Session, search: Optional[str] = None,
               roles: Optional[Iterable[str]] = None,
               access_types: Optional[Iterable[str]] = None,
               project_ids: Optional[Iterable[Any]] = None) -> Tuple[List[User], Dict[str, List[str]]]:
        users = (
            db.query(User)
            .options(selectinload(User.projects))
            .order_by(User.id.asc())
            .all()
        )
        options = filter_options(users, USER_QUERY)
        matches = query(
            users,
            USER_QUERY,
            filters={"role": roles, "access_type": access_types, "project_id": project_ids},
            search=search,
            sort=SortOrder(key=lambda u: u.name.lower()),
        )
        return matches, options

    @staticmethod
    def create(db: Session, name: str, email: str, password_hash: str,
               role: UserRole = UserRole.USER, access_type: Optional[AccessType] = None,
               project_ids: Optional[Iterable[int]] = None) -> User:
        email = email.strip().lower()
        if db.query(User).filter(User.email == email).first():
            raise DuplicateError(f"User {email} already exists")

        role = UserRole(role)
        if access_type is None:
            access_type = AccessType.ALL if role in ELEVATED_ROLES else AccessType.PROJECTS
        access_type = AccessType(access_type)

        projects = []
        wanted = set(project_ids or ())
        if wanted:
            projects = db.query(Project).filter(Project.id.in_(wanted)).order_by(Project.id).all()
            missing = wanted - {p.id for p in projects}
            if missing:
                raise NotFoundError(f"Unknown project(s): {', '.join(str(m) for m in sorted(missing))}")

        user = User(
            name=name.strip(),
            email=email,
            password_hash=password_hash,
            role=role,
            access_type=access_type,
            projects=projects,
        )
        db.add(user)
        db.flush()
        return user


# =============================================================================
# BOM ALLOCATIONS
# =============================================================================

class AllocationService:
    """Upsert/delete BOM lines keyed by (project, material)"""

    @staticmethod
    def upsert(db: Session, project_id: int, material_id: int, required_qty: Any) -> BomAllocation:
        """
        Create or replace the required quantity for a project/material pair.

        A repeated write overwrites the previous quantity; it does not add.
        """
        ProjectService.get(db, project_id)
        MaterialService.get(db, material_id)
        try:
            qty: Decimal = to_quantity(required_qty, "required_qty")
        except DataIntegrityError as exc:
            raise AllocationError(str(exc))

        allocation = db.query(BomAllocation).filter(
            BomAllocation.project_id == project_id,
            BomAllocation.material_id == material_id,
        ).first()

        if allocation is None:
            allocation = BomAllocation(project_id=project_id, material_id=material_id, required_qty=qty)
            db.add(allocation)
        else:
            logger.info(
                "Replacing allocation project=%s material=%s: %s -> %s",
                project_id, material_id, allocation.required_qty, qty,
            )
            allocation.required_qty = qty

        db.flush()
        return allocation

    @staticmethod
    def delete(db: Session, project_id: int, material_id: int) -> None:
        allocation = db.query(BomAllocation).filter(
            BomAllocation.project_id == project_id,
            BomAllocation.material_id == material_id,
        ).first()
        if allocation is None:
            raise NotFoundError("Allocation not found")
        db.delete(allocation)
        db.flush()
