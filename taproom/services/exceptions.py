from taproom.services.error_codes import ErrorCode


class ServiceError(Exception):
    def __init__(self, code: str, message: str | None = None) -> None:
        self.code = code
        self.message = message or code
        super().__init__(self.message)


class NotFoundError(ServiceError):
    pass


class ConflictError(ServiceError):
    pass


class ValidationError(ServiceError):
    def __init__(self, errors: list[str], message: str = "validation failed") -> None:
        super().__init__(ErrorCode.VALIDATION_ERROR.value, message)
        self.errors = list(errors)


class StorageError(ServiceError):
    def __init__(self, message: str = "storage operation failed") -> None:
        super().__init__(ErrorCode.STORAGE_ERROR.value, message)
