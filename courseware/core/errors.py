from enum import Enum


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    FORBIDDEN = "forbidden"
    VALIDATION = "validation"
    UNAUTHENTICATED = "unauthenticated"
    INTERNAL = "internal"

    @property
    def status_code(self) -> int:
        return _STATUS_BY_KIND[self]


_STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.VALIDATION: 400,
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.INTERNAL: 500,
}


class ApiError(Exception):
    def __init__(self, kind: ErrorKind, code: str, message: str):
        self.kind = kind
        self.status_code = kind.status_code
        self.code = str(code)
        self.message = message
        super().__init__(message)


def not_found(code: str, message: str) -> ApiError:
    return ApiError(ErrorKind.NOT_FOUND, code, message)


def conflict(code: str, message: str) -> ApiError:
    return ApiError(ErrorKind.CONFLICT, code, message)


def forbidden(code: str, message: str) -> ApiError:
    return ApiError(ErrorKind.FORBIDDEN, code, message)


def invalid(code: str, message: str) -> ApiError:
    return ApiError(ErrorKind.VALIDATION, code, message)


def unauthenticated(code: str, message: str) -> ApiError:
    return ApiError(ErrorKind.UNAUTHENTICATED, code, message)
