from typing import Optional

from shared.utils.app_status_code import AppStatusCode


class AppError(Exception):
    """Base of the service error taxonomy; each subclass maps to one HTTP status."""

    http_status: int = 500
    status_code: str = AppStatusCode.OPERATION_FAILED
    default_message: str = "Operation failed"

    def __init__(self, message: Optional[str] = None, status_code: Optional[str] = None):
        self.message = message or self.default_message
        if status_code:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(AppError):
    http_status = 400
    status_code = AppStatusCode.REQUIRED_VALIDATION_ERROR
    default_message = "Missing required fields"


class Unauthorized(AppError):
    http_status = 401
    status_code = AppStatusCode.AUTHENTICATION_REQUIRED
    default_message = "Unauthorized"


class Forbidden(AppError):
    http_status = 403
    status_code = AppStatusCode.ACCESS_FORBIDDEN
    default_message = "Access forbidden"


class NotFound(AppError):
    http_status = 404
    status_code = AppStatusCode.RECORD_NOT_FOUND
    default_message = "Not found"


class InternalError(AppError):
    http_status = 500
    status_code = AppStatusCode.OPERATION_ERROR
    default_message = "Internal server error"
