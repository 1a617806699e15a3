import datetime as dt
from decimal import Decimal
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, EmailStr, Field

from .models import AccessType, UserRole

T = TypeVar("T")


def _camel(name: str) -> str:
    first, *rest = name.split("_")
    return first + "".join(word.capitalize() for word in rest)


class CamelModel(BaseModel):
    """Snake-case in Python, camelCase on the wire"""

    class Config:
        alias_generator = _camel
        populate_by_name = True
        from_attributes = True


# =============================================================================
# PAGINATION
# =============================================================================

class PaginatedResponse(CamelModel, Generic[T]):
    items: List[T] = []
    total_items: int = 0
    page: int = 1
    size: int = 10
    total_pages: int = 1
    has_next: bool = False
    has_previous: bool = False
    extra: Dict[str, Any] = {}


# =============================================================================
# REFERENCE DATA
# =============================================================================

class ProjectRef(CamelModel):
    id: int
    code: str
    name: str


class ProjectOut(CamelModel):
    id: int
    code: str
    name: str
    site: Optional[str] = None
    prefix: Optional[str] = None


class ProjectCreate(CamelModel):
    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=200)
    site: Optional[str] = None


class MaterialOut(CamelModel):
    id: int
    code: str
    name: str
    part_no: Optional[str] = None
    unit: Optional[str] = None
    category: Optional[str] = None
    line_type: Optional[str] = None


class MaterialCreate(CamelModel):
    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=200)
    part_no: Optional[str] = None
    unit: Optional[str] = None
    category: Optional[str] = None
    line_type: Optional[str] = None


class UserOut(CamelModel):
    id: int
    name: str
    email: str
    role: str
    access_type: str
    is_active: bool = True
    projects: List[ProjectRef] = []


class UserCreate(CamelModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: UserRole = UserRole.USER
    access_type: Optional[AccessType] = None
    project_ids: List[int] = []


# =============================================================================
# BOM / LEDGER
# =============================================================================

class AllocationIn(CamelModel):
    material_id: Optional[int] = None
    quantity: Decimal = Field(..., ge=0)


class AllocationOut(CamelModel):
    project_id: int
    material_id: int
    required_qty: float


class LedgerRowOut(CamelModel):
    project_id: int
    project_code: str
    project_name: str
    material_id: int
    code: str
    name: str
    part_no: Optional[str] = None
    unit: Optional[str] = None
    category: Optional[str] = None
    line_type: Optional[str] = None
    required_qty: float = 0
    ordered_qty: float = 0
    received_qty: float = 0
    issued_qty: float = 0
    transferred_in_qty: float = 0
    transferred_out_qty: float = 0
    balance_qty: float = 0


# =============================================================================
# MOVEMENTS
# =============================================================================

class InwardLineOut(CamelModel):
    id: int
    material_id: int
    code: Optional[str] = None
    name: Optional[str] = None
    unit: Optional[str] = None
    ordered_qty: float = 0
    received_qty: float = 0


class InwardRecordOut(CamelModel):
    id: int
    project_id: int
    project_name: Optional[str] = None
    code: Optional[str] = None
    entry_date: Optional[dt.date] = None
    delivery_date: Optional[dt.date] = None
    invoice_no: Optional[str] = None
    supplier_name: Optional[str] = None
    items: int = 0
    lines: List[InwardLineOut] = []


class OutwardLineOut(CamelModel):
    id: int
    material_id: int
    code: Optional[str] = None
    name: Optional[str] = None
    unit: Optional[str] = None
    issue_qty: float = 0


class OutwardRecordOut(CamelModel):
    id: int
    project_id: int
    project_name: Optional[str] = None
    code: Optional[str] = None
    date: Optional[dt.date] = None
    issue_to: Optional[str] = None
    status: str
    close_date: Optional[dt.date] = None
    items: int = 0
    lines: List[OutwardLineOut] = []


class TransferLineOut(CamelModel):
    id: int
    material_id: int
    code: Optional[str] = None
    name: Optional[str] = None
    unit: Optional[str] = None
    transfer_qty: float = 0


class TransferRecordOut(CamelModel):
    id: int
    code: Optional[str] = None
    from_project_id: int
    from_project_name: Optional[str] = None
    from_site: Optional[str] = None
    to_project_id: int
    to_project_name: Optional[str] = None
    to_site: Optional[str] = None
    transfer_date: Optional[dt.date] = None
    remarks: Optional[str] = None
    lines: List[TransferLineOut] = []


class MaterialMovementOut(CamelModel):
    type: str
    record_id: int
    code: Optional[str] = None
    date: Optional[dt.date] = None
    project_id: int
    project_name: Optional[str] = None
    counterparty: Optional[str] = None
    quantity: float


class InwardLineIn(CamelModel):
    material_id: int
    ordered_qty: Optional[Decimal] = Field(None, ge=0)
    received_qty: Decimal = Field(..., ge=0)


class InwardCreate(CamelModel):
    project_id: int
    code: Optional[str] = None
    entry_date: Optional[dt.date] = None
    delivery_date: Optional[dt.date] = None
    invoice_no: Optional[str] = None
    supplier_name: Optional[str] = None
    remarks: Optional[str] = None
    lines: List[InwardLineIn] = Field(..., min_length=1)


class OutwardLineIn(CamelModel):
    material_id: int
    issue_qty: Decimal = Field(..., ge=0)


class OutwardCreate(CamelModel):
    project_id: int
    code: Optional[str] = None
    date: Optional[dt.date] = None
    issue_to: Optional[str] = None
    lines: List[OutwardLineIn] = Field(..., min_length=1)


class OutwardClose(CamelModel):
    close_date: Optional[dt.date] = None


class TransferLineIn(CamelModel):
    material_id: int
    transfer_qty: Decimal = Field(..., ge=0)


class TransferCreate(CamelModel):
    code: Optional[str] = None
    from_project_id: int
    from_site: Optional[str] = None
    to_project_id: int
    to_site: Optional[str] = None
    transfer_date: Optional[dt.date] = None
    remarks: Optional[str] = None
    lines: List[TransferLineIn] = Field(..., min_length=1)
