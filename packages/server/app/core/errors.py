"""
Typed errors for the billing ledger and assignment lifecycle.

Every error carries a machine-readable ``code`` and the HTTP status the API
maps it to. Services raise these; the handlers registered in ``app.main``
render them into the standard response envelope.

    TrackhubError
    |
    +-- NotFoundError          NOT_FOUND          404
    +-- InvalidArgumentError   INVALID_ARGUMENT   400
    +-- InvalidStateError      INVALID_STATE      409
    +-- ForbiddenError         FORBIDDEN          403
    +-- QuotaExceededError     QUOTA_EXCEEDED     429
    +-- ConflictError          CONFLICT           409
    +-- StoreError             STORE_ERROR        503
"""

from __future__ import annotations

from typing import Any, Optional

from trackhub_shared.schemas.common import APIResponse, ErrorBody


class TrackhubError(Exception):
    """Base class for all domain and infrastructure errors."""

    code: str = "INTERNAL_ERROR"
    status_code: int = 500

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_body(self, *, include_details: bool = False) -> dict:
        error = ErrorBody(
            code=self.code,
            message=self.message,
            status=self.status_code,
            detail=self.details if include_details and self.details else None,
        )
        body = APIResponse(success=False, message=self.message, error=error)
        return body.model_dump(exclude_none=True)


class NotFoundError(TrackhubError):
    """A project, payment, milestone, time entry or user id did not resolve."""

    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, resource: str, resource_id: Optional[Any] = None):
        super().__init__(f"{resource} not found", resource=resource, id=str(resource_id))
        self.resource = resource


class InvalidArgumentError(TrackhubError):
    code = "INVALID_ARGUMENT"
    status_code = 400


class InvalidStateError(TrackhubError):
    code = "INVALID_STATE"
    status_code = 409


class ForbiddenError(TrackhubError):
    code = "FORBIDDEN"
    status_code = 403


class QuotaExceededError(TrackhubError):
    code = "QUOTA_EXCEEDED"
    status_code = 429

    def __init__(self, limit: int):
        super().__init__(
            f"You have reached the maximum limit of {limit} concurrent projects",
            limit=limit,
        )
        self.limit = limit


class ConflictError(TrackhubError):
    code = "CONFLICT"
    status_code = 409


class StoreError(TrackhubError):
    """The persistent store failed (connectivity, write conflict, ...)."""

    code = "STORE_ERROR"
    status_code = 503
