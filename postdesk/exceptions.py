"""
PostDesk Backend — Error Taxonomy
=================================

What:  Application-specific exceptions for every failure a post operation can
       report, plus the table that maps each of them to an HTTP status code.
How:   Each exception carries a user-facing message and builds its own JSON
       body. The global handler registered in main.py resolves the status
       code through ERROR_STATUS_CODES and returns the body.
Who:   Raised by the database connector and PostService; caught at the API
       boundary.

Exception Hierarchy:
    PostDeskError (base)
    ├── ValidationError              → 400 Bad Request
    ├── NotFoundError                → 404 Not Found
    ├── ConflictError                → 409 Conflict
    └── InternalError                → 500 Internal Server Error
        └── DatabaseConnectionError  → 500 (connector could not reach storage)

Response bodies:
    ValidationError  {"message": ..., "errors": {"title": "..."}}
    NotFoundError    {"message": "Post not found"}
    ConflictError    {"message": "Duplicate entry", "field": "title"}
    InternalError    {"message": "Internal Server Error", "error": "<raw message>"}
"""

from typing import Any, Dict, Optional, Type


class PostDeskError(Exception):
    """
    Base exception for all PostDesk application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)

    def to_body(self) -> Dict[str, Any]:
        """JSON body returned to the client for this error."""
        return {"message": self.message}


class ValidationError(PostDeskError):
    """
    Raised when client input fails validation.

    When:    Missing/blank/oversized title or description, malformed post ID,
             update without recognized fields, or a schema-level rejection
             by the Post model.
    HTTP:    400 Bad Request

    `errors` maps field name → message and is only included in the response
    body when at least one field-level message exists.
    """

    def __init__(
        self,
        message: str = "Validation error",
        errors: Optional[Dict[str, str]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        self.errors = dict(errors or {})

    def to_body(self) -> Dict[str, Any]:
        body = super().to_body()
        if self.errors:
            body["errors"] = self.errors
        return body


class NotFoundError(PostDeskError):
    """
    Raised when a requested post does not exist.

    SQLAlchemy returns None for missing rows; PostService converts that
    None into this exception.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "Post",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=f"{resource} not found", context=ctx)


class ConflictError(PostDeskError):
    """
    Raised when a write violates a uniqueness constraint.

    HTTP:    409 Conflict
    """

    def __init__(
        self,
        field: Optional[str] = None,
        message: str = "Duplicate entry",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        self.field = field

    def to_body(self) -> Dict[str, Any]:
        body = super().to_body()
        body["field"] = self.field
        return body


class InternalError(PostDeskError):
    """
    Raised when storage or the runtime fails unexpectedly.

    HTTP:    500 Internal Server Error

    `error` is the raw message of the underlying failure. It is the only
    internal detail returned to the client; tracebacks stay in the logs.
    """

    def __init__(
        self,
        error: str = "",
        message: str = "Internal Server Error",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        self.error = error

    def to_body(self) -> Dict[str, Any]:
        body = super().to_body()
        body["error"] = self.error
        return body


class DatabaseConnectionError(InternalError):
    """
    Raised by DatabaseConnector when the database cannot be reached.

    Returned to the caller instead of terminating the process. The failed
    attempt is not cached, so the next connect() tries again.
    """

    def __init__(
        self,
        error: str = "",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            error=error,
            message="Database connection failed",
            context=context,
        )


# ── Status Mapping ────────────────────────────────────────────────────────
ERROR_STATUS_CODES: Dict[Type[PostDeskError], int] = {
    ValidationError: 400,
    NotFoundError: 404,
    ConflictError: 409,
    InternalError: 500,
}


def status_code_for(exc: PostDeskError) -> int:
    """
    Resolve the HTTP status for an application error.

    Walks the exception's MRO so subclasses (DatabaseConnectionError) inherit
    the status of their variant. An error type outside the table is a
    programming mistake and raises LookupError.
    """
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS_CODES:
            return ERROR_STATUS_CODES[cls]
    raise LookupError(f"No HTTP status mapped for {type(exc).__name__}")
