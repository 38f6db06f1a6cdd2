from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    AUTH = "auth"
    UPLOAD = "upload"
    INTERNAL = "internal"


# The transport layer looks statuses up here; exceptions never carry one.
ERROR_STATUS: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.CONFLICT: 409,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.AUTH: 401,
    ErrorKind.UPLOAD: 400,
    ErrorKind.INTERNAL: 500,
}


class AppException(Exception):
    kind: ErrorKind = ErrorKind.INTERNAL
    default_detail: str = "Something went wrong"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

class ValidationException(AppException):
    kind = ErrorKind.VALIDATION
    default_detail = "Invalid request"

class ConflictException(AppException):
    kind = ErrorKind.CONFLICT
    default_detail = "Conflict"

class NotFoundException(AppException):
    kind = ErrorKind.NOT_FOUND
    default_detail = "Not found"

class UnauthorizedException(AppException):
    kind = ErrorKind.AUTH
    default_detail = "Unauthorized"

class MediaUploadException(AppException):
    kind = ErrorKind.UPLOAD
    default_detail = "Error while uploading file"
