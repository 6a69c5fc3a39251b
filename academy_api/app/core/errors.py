"""
Error taxonomy shared by services and the HTTP layer.

Services raise the most specific subclass they can; the API layer
serializes it without reinterpretation.  Each error carries the HTTP
status it maps to and an optional list of ``details`` that is passed
through to the response envelope.
"""

from typing import Any, Optional


class AcademyError(Exception):
    """Base class for every error the API reports deliberately."""

    http_status: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Optional[list[Any]] = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_response(self) -> dict:
        body: dict = {"success": False, "error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(AcademyError):
    http_status = 400
    default_message = "Invalid data"


class AuthenticationError(AcademyError):
    http_status = 401
    default_message = "Access token required"


class AuthorizationError(AcademyError):
    http_status = 403
    default_message = "Access denied: insufficient permissions"


class NotFoundError(AcademyError):
    http_status = 404
    default_message = "Resource not found"


class ConflictError(AcademyError):
    http_status = 409
    default_message = "Conflicting resource"


class CapacityExceededError(ConflictError):
    """Raised when an enrollment would push a class past ``max_students``."""

    default_message = "Class is at full capacity"


class InvalidStateError(AcademyError):
    """The entity exists but its lifecycle state forbids the operation."""

    http_status = 400
    default_message = "Resource is not in a valid state for this operation"


class InternalError(AcademyError):
    http_status = 500
