"""
Pytest fixtures for the store backend test suite.

Provides:
- an in-memory SQLite database shared by the test and the app (StaticPool)
- a FastAPI TestClient with ``get_db`` overridden
- small factories for projects, materials, users and movement documents
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("STORE_SECRET_KEY", "test-secret-key")

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from store_core.app import models
from store_core.app.db import Base
from store_core.app.deps import create_access_token, get_db
from store_core.app.main import create_app


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    app = create_app()

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# =============================================================================
# FACTORIES
# =============================================================================

@pytest.fixture
def auth_headers():
    def _headers(user: models.User) -> dict:
        return {"Authorization": f"Bearer {create_access_token({'sub': user.email})}"}
    return _headers


@pytest.fixture
def make_project(db):
    def _make(code: str, name: str = None, site: str = None) -> models.Project:
        project = models.Project(code=code, name=name or f"Project {code}", site=site)
        db.add(project)
        db.commit()
        return project
    return _make


@pytest.fixture
def make_material(db):
    def _make(code: str, name: str = None, category: str = None, unit: str = "NOS",
              line_type: str = None, part_no: str = None) -> models.Material:
        material = models.Material(
            code=code, name=name or f"Material {code}", category=category,
            unit=unit, line_type=line_type, part_no=part_no,
        )
        db.add(material)
        db.commit()
        return material
    return _make


@pytest.fixture
def make_user(db):
    def _make(email: str, role: models.UserRole = models.UserRole.USER,
              access_type: models.AccessType = models.AccessType.PROJECTS,
              projects=(), name: str = None, is_active: bool = True) -> models.User:
        user = models.User(
            name=name or email.split("@")[0].title(),
            email=email,
            # bcrypt is not needed to authenticate with a pre-issued token
            password_hash="not-a-real-hash",
            role=role,
            access_type=access_type,
            projects=list(projects),
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        return user
    return _make


@pytest.fixture
def admin(make_user):
    return make_user("admin@example.com", role=models.UserRole.ADMIN, access_type=models.AccessType.ALL)


@pytest.fixture
def post_inward(db):
    def _post(project, lines, entry_date=date(2024, 1, 10), code=None, supplier_name=None):
        record = models.InwardRecord(
            project_id=project.id, code=code, entry_date=entry_date, supplier_name=supplier_name,
            lines=[
                models.InwardLine(
                    material_id=material.id,
                    ordered_qty=Decimal(str(ordered)) if ordered is not None else None,
                    received_qty=Decimal(str(received)),
                )
                for material, ordered, received in lines
            ],
        )
        db.add(record)
        db.commit()
        return record
    return _post


@pytest.fixture
def post_outward(db):
    def _post(project, lines, issue_date=date(2024, 1, 15), code=None, issue_to=None):
        record = models.OutwardRecord(
            project_id=project.id, code=code, date=issue_date, issue_to=issue_to,
            lines=[
                models.OutwardLine(material_id=material.id, issue_qty=Decimal(str(qty)))
                for material, qty in lines
            ],
        )
        db.add(record)
        db.commit()
        return record
    return _post


@pytest.fixture
def post_transfer(db):
    def _post(from_project, to_project, lines, transfer_date=date(2024, 1, 20), code=None):
        record = models.TransferRecord(
            from_project_id=from_project.id, to_project_id=to_project.id,
            code=code, transfer_date=transfer_date,
            lines=[
                models.TransferLine(material_id=material.id, transfer_qty=Decimal(str(qty)))
                for material, qty in lines
            ],
        )
        db.add(record)
        db.commit()
        return record
    return _post


@pytest.fixture
def allocate(db):
    def _allocate(project, material, qty):
        allocation = models.BomAllocation(
            project_id=project.id, material_id=material.id, required_qty=Decimal(str(qty)),
        )
        db.add(allocation)
        db.commit()
        return allocation
    return _allocate
