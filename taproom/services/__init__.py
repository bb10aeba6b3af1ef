from taproom.services.error_codes import ErrorCode
from taproom.services.exceptions import (
    ConflictError,
    NotFoundError,
    ServiceError,
    StorageError,
    ValidationError,
)

__all__ = [
    "ErrorCode",
    "ServiceError",
    "NotFoundError",
    "ConflictError",
    "ValidationError",
    "StorageError",
]
