"""
Service-layer error taxonomy.

Every failure a service can report to a caller is a ``ServiceError``
subclass carrying its HTTP status and a machine-readable code.  The
exception handlers registered in ``publisher.main`` render them as::

    {"error": {"code": "NOT_FOUND", "message": "...", "details": {...}}}

Hierarchy
---------
    ServiceError
       ├── BadRequest (400)       malformed identifier, missing query
       │      └── PayloadInvalid  one or more field violations
       ├── Unauthorized (401)     missing/invalid token, bad credentials
       ├── Forbidden (403)        valid token, role not allowed
       └── NotFound (404)         absent entity or scoped sub-entity
"""
from typing import Any, Optional


class ServiceError(Exception):
    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details,
            }
        }


class BadRequest(ServiceError):
    status_code = 400
    error_code = "BAD_REQUEST"


class PayloadInvalid(BadRequest):
    """
    Raised once per payload with every violation found, so a client can
    render all field errors at once.

    ``violations`` is a list of ``{"field": ..., "message": ...}`` dicts.
    """

    error_code = "VALIDATION_ERROR"

    def __init__(self, violations: list[dict[str, str]], message: str = "Validation failed") -> None:
        self.violations = violations
        super().__init__(message, details={"violations": violations})


class Unauthorized(ServiceError):
    status_code = 401
    error_code = "UNAUTHORIZED"

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class Forbidden(ServiceError):
    status_code = 403
    error_code = "FORBIDDEN"

    def __init__(self, message: str = "Not allowed for this account") -> None:
        super().__init__(message)


class NotFound(ServiceError):
    status_code = 404
    error_code = "NOT_FOUND"

    def __init__(self, entity: str, identifier: Any) -> None:
        self.entity = entity
        self.identifier = identifier
        super().__init__(
            f"{entity} with id '{identifier}' not found",
            details={"entity": entity, "id": identifier},
        )
