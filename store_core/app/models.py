"""
Project Store Data Models
=========================
Reference data (projects, materials, users), BOM allocations and the three
append-only movement documents: inward receipts, outward registers and
project-to-project transfers.

Quantities are Numeric(15, 3) so they come back as Decimal and reconcile
exactly. There is no stored balance column anywhere; balances are derived
from the movement lines at query time.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import (
    Column, Integer, String, Date, DateTime, ForeignKey, Text, Boolean,
    Numeric, Table, Enum as SQLEnum, UniqueConstraint, Index
)
from sqlalchemy.orm import relationship
from .db import Base


# =============================================================================
# ENUMS
# =============================================================================

class AccessType(str, Enum):
    """Project visibility scope of a user"""
    ALL = "ALL"
    PROJECTS = "PROJECTS"


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    CEO = "CEO"
    COO = "COO"
    PROCUREMENT_MANAGER = "PROCUREMENT_MANAGER"
    PROJECT_HEAD = "PROJECT_HEAD"
    PROJECT_MANAGER = "PROJECT_MANAGER"
    USER = "USER"


class OutwardStatus(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


# Roles that see every project regardless of assignment
ELEVATED_ROLES = frozenset({
    UserRole.ADMIN, UserRole.CEO, UserRole.COO,
    UserRole.PROCUREMENT_MANAGER, UserRole.PROJECT_HEAD,
})


user_projects = Table(
    "user_projects",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id"), primary_key=True),
    Column("project_id", Integer, ForeignKey("projects.id"), primary_key=True),
)


# =============================================================================
# REFERENCE DATA
# =============================================================================

class Project(Base):
    __tablename__ = "projects"
    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), unique=True, nullable=False, index=True)  # e.g. "PRJ-0042"
    name = Column(String(200), nullable=False)
    site = Column(String(200), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class Material(Base):
    """
    Material directory entry - defines WHAT can be allocated and moved.
    Codes are unique; a material is never duplicated by code.
    """
    __tablename__ = "materials"
    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), unique=True, nullable=False, index=True)
    name = Column(String(200), nullable=False)
    part_no = Column(String(100), nullable=True)
    unit = Column(String(20), nullable=True)
    category = Column(String(100), nullable=True)
    line_type = Column(String(50), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(SQLEnum(UserRole), nullable=False, default=UserRole.USER)
    access_type = Column(SQLEnum(AccessType), nullable=False, default=AccessType.PROJECTS)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    projects = relationship("Project", secondary=user_projects, order_by="Project.id")


class BomAllocation(Base):
    """Required quantity of a material for a project. (project, material) is the natural key."""
    __tablename__ = "bom_allocations"
    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False)
    material_id = Column(Integer, ForeignKey("materials.id"), nullable=False)
    required_qty = Column(Numeric(15, 3), nullable=False, default=0)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    project = relationship("Project")
    material = relationship("Material")

    __table_args__ = (
        UniqueConstraint("project_id", "material_id", name="uq_bom_project_material"),
    )


# =============================================================================
# MOVEMENT DOCUMENTS (append-only)
# =============================================================================

class InwardRecord(Base):
    """Goods receipt at a project site"""
    __tablename__ = "inward_records"
    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), nullable=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False)
    entry_date = Column(Date, nullable=True)
    delivery_date = Column(Date, nullable=True)
    invoice_no = Column(String(50), nullable=True)
    supplier_name = Column(String(200), nullable=True)
    remarks = Column(Text, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    project = relationship("Project")
    lines = relationship("InwardLine", back_populates="record", order_by="InwardLine.id",
                         cascade="all, delete-orphan")

    __table_args__ = (
        Index("ix_inward_project_entry", "project_id", "entry_date"),
    )


class InwardLine(Base):
    __tablename__ = "inward_lines"
    id = Column(Integer, primary_key=True, index=True)
    record_id = Column(Integer, ForeignKey("inward_records.id"), nullable=False)
    material_id = Column(Integer, ForeignKey("materials.id"), nullable=False)
    ordered_qty = Column(Numeric(15, 3), nullable=True)
    received_qty = Column(Numeric(15, 3), nullable=False)

    record = relationship("InwardRecord", back_populates="lines")
    material = relationship("Material")


class OutwardRecord(Base):
    """Outward register - goods issued from a project site"""
    __tablename__ = "outward_registers"
    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), nullable=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False)
    date = Column(Date, nullable=True)
    issue_to = Column(String(200), nullable=True)
    status = Column(SQLEnum(OutwardStatus), nullable=False, default=OutwardStatus.OPEN)
    close_date = Column(Date, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    project = relationship("Project")
    lines = relationship("OutwardLine", back_populates="record", order_by="OutwardLine.id",
                         cascade="all, delete-orphan")

    __table_args__ = (
        Index("ix_outward_project_date", "project_id", "date"),
    )


class OutwardLine(Base):
    __tablename__ = "outward_lines"
    id = Column(Integer, primary_key=True, index=True)
    register_id = Column(Integer, ForeignKey("outward_registers.id"), nullable=False)
    material_id = Column(Integer, ForeignKey("materials.id"), nullable=False)
    issue_qty = Column(Numeric(15, 3), nullable=False)

    record = relationship("OutwardRecord", back_populates="lines")
    material = relationship("Material")


class TransferRecord(Base):
    """Site-to-site transfer; touches the ledger of both projects"""
    __tablename__ = "transfer_records"
    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), nullable=True)
    from_project_id = Column(Integer, ForeignKey("projects.id"), nullable=False)
    from_site = Column(String(200), nullable=True)
    to_project_id = Column(Integer, ForeignKey("projects.id"), nullable=False)
    to_site = Column(String(200), nullable=True)
    transfer_date = Column(Date, nullable=True)
    remarks = Column(Text, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    from_project = relationship("Project", foreign_keys=[from_project_id])
    to_project = relationship("Project", foreign_keys=[to_project_id])
    lines = relationship("TransferLine", back_populates="record", order_by="TransferLine.id",
                         cascade="all, delete-orphan")


class TransferLine(Base):
    __tablename__ = "transfer_lines"
    id = Column(Integer, primary_key=True, index=True)
    record_id = Column(Integer, ForeignKey("transfer_records.id"), nullable=False)
    material_id = Column(Integer, ForeignKey("materials.id"), nullable=False)
    transfer_qty = Column(Numeric(15, 3), nullable=False)

    record = relationship("TransferRecord", back_populates="lines")
    material = relationship("Material")
