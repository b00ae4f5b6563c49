class DomainError(Exception):
    """Business-rule failure, mapped to an HTTP response at the app boundary."""

    status_code = 400
    code = "BAD_REQUEST"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def to_detail(self) -> dict:
        return {"code": self.code, "message": self.message}


class NotFound(DomainError):
    status_code = 404
    code = "NOT_FOUND"


class Forbidden(DomainError):
    status_code = 403
    code = "FORBIDDEN"


class Unauthorized(DomainError):
    status_code = 401
    code = "NOT_AUTHENTICATED"


class Conflict(DomainError):
    code = "CONFLICT"


class OutOfStock(Conflict):
    code = "OUT_OF_STOCK"


class InsufficientStock(Conflict):
    code = "INSUFFICIENT_STOCK"


class AlreadyReturned(Conflict):
    code = "ALREADY_RETURNED"


class AlreadyProcessed(Conflict):
    code = "ALREADY_PROCESSED"


class OnlyPendingDeletable(Conflict):
    code = "ONLY_PENDING_DELETABLE"


def _auth_401(code: str, message: str) -> Unauthorized:
    return Unauthorized(message, code=code)
