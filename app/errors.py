"""Domain error taxonomy shared by repositories, services and the API layer"""

from typing import List, Optional


class AppError(Exception):
    """Base class for errors surfaced to callers of the storage core"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    """Input rejected; carries every violation, not just the first"""

    def __init__(self, errors: List[str]):
        super().__init__(", ".join(errors))
        self.errors = list(errors)


class ConflictError(AppError):
    """Uniqueness violation"""


class NotFoundError(AppError):
    """Entity does not exist"""


class StorageIntegrityError(AppError):
    """A write could not be read back intact"""

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.key = key


class UnauthorizedError(AppError):
    """Role or ownership check failed"""
