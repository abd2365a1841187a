"""
Application Error Taxonomy

Every domain failure raised by the services is one of these classes.
The HTTP layer maps ``status_code`` onto the response and renders the
stable ``{success: false, message, [error]}`` body.
"""

from typing import Any, Optional


class AppError(Exception):
    """Base class for all expected application errors."""

    status_code: int = 500
    kind: str = "app_error"

    def __init__(self, message: str, detail: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.status_code}: {self.message}>"


class ValidationError(AppError):
    """Missing or malformed input."""
    status_code = 400
    kind = "validation_error"


class AuthenticationError(AppError):
    """Missing, invalid or expired credentials."""
    status_code = 401
    kind = "authentication_error"


class ForbiddenError(AppError):
    """Tenant mismatch or role mismatch."""
    status_code = 403
    kind = "forbidden"


class NotFoundError(AppError):
    """Unknown id or token."""
    status_code = 404
    kind = "not_found"


class ConflictError(AppError):
    """Duplicate unique key (e.g. a second token for the same table)."""
    status_code = 409
    kind = "conflict"


class ConfigurationError(AppError):
    """Fatal misconfiguration, e.g. a staff account with no owner."""
    status_code = 500
    kind = "configuration_error"


class UpstreamError(AppError):
    """An external gateway (printer, AI provider) failed."""
    status_code = 502
    kind = "upstream_error"
