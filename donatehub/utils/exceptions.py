class ServiceError(Exception):
    status = 400

    def __init__(self, code="SERVICE_ERROR", message="Service error", details=None, status=None):
        self.code = code
        self.message = message
        self.details = details or {}
        if status is not None:
            self.status = status
        super().__init__(message)


class NotFoundError(ServiceError):
    status = 404

    def __init__(self, message="Resource not found", code="NOT_FOUND", details=None):
        super().__init__(code=code, message=message, details=details)


class InvalidArgumentError(ServiceError):
    status = 400

    def __init__(self, message="Invalid argument", code="INVALID_ARGUMENT", details=None):
        super().__init__(code=code, message=message, details=details)


class ConflictError(ServiceError):
    status = 409

    def __init__(self, message="Conflict", code="CONFLICT", details=None):
        super().__init__(code=code, message=message, details=details)


class ForbiddenError(ServiceError):
    status = 403

    def __init__(self, message="Access denied", code="FORBIDDEN", details=None):
        super().__init__(code=code, message=message, details=details)
