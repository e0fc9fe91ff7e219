"""Application errors.

Every error carries a stable ``code`` the client can branch on and the HTTP
status it maps to. ``app.main`` renders them into the response envelope.
"""


class OlmaError(Exception):
    """Base exception for all OLMA service errors."""

    code = "INTERNAL_ERROR"
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class UnauthorizedError(OlmaError):
    code = "UNAUTHORIZED"
    status_code = 401
    default_message = "Unauthorized"


class ForbiddenError(OlmaError):
    code = "FORBIDDEN"
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(OlmaError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "Not found"


class ValidationError(OlmaError):
    """Malformed, missing or out-of-range input, illegal transitions and duplicates."""

    code = "VALIDATION_ERROR"
    status_code = 400
    default_message = "Invalid data"


class ConflictError(OlmaError):
    code = "CONFLICT"
    status_code = 409
    default_message = "Conflict"


class RateLimitedError(OlmaError):
    code = "RATE_LIMITED"
    status_code = 429
    default_message = "Too many requests"
