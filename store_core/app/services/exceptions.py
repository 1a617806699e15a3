"""Error taxonomy for the store services."""


class StoreError(Exception):
    """Base exception for store operations"""
    pass


class UnauthenticatedError(StoreError):
    """Raised when an operation has no resolvable user identity"""
    pass


class DataIntegrityError(StoreError):
    """Raised when a movement line references unknown or missing data"""

    def __init__(self, message: str, line=None):
        super().__init__(message)
        self.line = line


class AllocationError(StoreError):
    """Raised when a BOM allocation write is invalid"""
    pass


class ProjectAccessError(StoreError):
    """Raised when a write targets a project outside the user's visible set"""
    pass


class InvalidOperationError(StoreError):
    """Raised when operation is not allowed in current state"""
    pass


class NotFoundError(StoreError):
    """Raised when a referenced entity does not exist"""
    pass


class DuplicateError(StoreError):
    """Raised when a unique code is already taken"""
    pass
