"""
Domain errors for LR Desk

Raised by the data-access and workflow tools and rendered as JSON by the
exception handlers registered in ``lrdesk.main``. The pure pricing, filter,
sort and aggregation functions never raise these.
"""
from typing import Any, Dict, Optional


class LRDeskError(Exception):
    """Base exception for LR Desk domain errors"""

    kind = "error"
    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None, **details: Any):
        super().__init__(message)
        self.message = message
        self.field = field
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.kind, "message": self.message}
        if self.field:
            payload["field"] = self.field
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(LRDeskError):
    """Raised when a required field is missing or invalid"""

    kind = "validation_error"
    status_code = 422


class PreconditionFailed(LRDeskError):
    """Raised when the entity's current state forbids the operation"""

    kind = "precondition_failed"
    status_code = 409


class NotFound(LRDeskError):
    """Raised when a referenced booking, article or OGPL does not exist"""

    kind = "not_found"
    status_code = 404


class ExternalServiceFailure(LRDeskError):
    """Raised when a downstream collaborator (database, SMS gateway) rejects a call"""

    kind = "external_service_failure"
    status_code = 502
