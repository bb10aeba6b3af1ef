from fastapi import HTTPException

from taproom.services.exceptions import (
    ConflictError,
    NotFoundError,
    ServiceError,
    ValidationError,
)


def http_error_from_service(err: ServiceError) -> HTTPException:
    if isinstance(err, NotFoundError):
        status = 404
    elif isinstance(err, ConflictError):
        status = 409
    elif isinstance(err, ValidationError):
        status = 422
    else:
        status = 500

    detail = {"code": err.code, "message": err.message}
    if isinstance(err, ValidationError):
        detail["errors"] = err.errors

    return HTTPException(status_code=status, detail=detail)
