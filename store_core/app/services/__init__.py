"""
Services package initialization.
Ledger, access and retrieval logic for project material movements.
"""

from .access import resolve_visible_projects, scope_projects, is_record_visible
from .catalog_service import AllocationService, MaterialService, ProjectService, UserService
from .exceptions import (
    StoreError,
    UnauthenticatedError,
    DataIntegrityError,
    AllocationError,
    ProjectAccessError,
    InvalidOperationError,
    NotFoundError,
    DuplicateError,
)
from .ledger import LedgerAggregator, LedgerRow, ReferenceData, build_ledger
from .movements import (
    InwardLine,
    OutwardLine,
    TransferLine,
    AllocationEntry,
    MovementSnapshot,
    build_snapshot,
)
from .pagination import Page, paginate, sanitize_page, sanitize_size
from .posting_service import MovementService
from .query import QuerySpec, SortOrder, query, filter_options
from .store_service import HistoryService, LedgerEntry, LedgerService, MovementStore

__all__ = [
    'resolve_visible_projects',
    'scope_projects',
    'is_record_visible',
    'AllocationService',
    'MaterialService',
    'ProjectService',
    'UserService',
    'StoreError',
    'UnauthenticatedError',
    'DataIntegrityError',
    'AllocationError',
    'ProjectAccessError',
    'InvalidOperationError',
    'NotFoundError',
    'DuplicateError',
    'LedgerAggregator',
    'LedgerRow',
    'ReferenceData',
    'build_ledger',
    'InwardLine',
    'OutwardLine',
    'TransferLine',
    'AllocationEntry',
    'MovementSnapshot',
    'build_snapshot',
    'Page',
    'paginate',
    'sanitize_page',
    'sanitize_size',
    'MovementService',
    'QuerySpec',
    'SortOrder',
    'query',
    'filter_options',
    'HistoryService',
    'LedgerEntry',
    'LedgerService',
    'MovementStore',
]
