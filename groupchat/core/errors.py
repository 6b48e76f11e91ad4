"""Error Hierarchy: storage-level and operation-level failure taxonomies.

Invariants:
    - DBError has exactly four kinds: QueryError, DatabaseConnectionError,
      ConstraintViolation, TransactionError
    - ApiError is the only taxonomy callers of the domain operations see
    - DBError never leaves a domain operation unwrapped (DatabaseError carries it)
    - Errors are plain data: status codes live in core/error_mapper.py

Design Decisions:
    - Two hierarchies instead of one: storage failures are classified once
      (infrastructure/error_classifier.py), then reinterpreted by operations
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class DBErrorKind(str, Enum):
    """Storage failure kinds produced by the error classifier."""
    QUERY = "query_error"
    CONNECTION = "connection_error"
    CONSTRAINT_VIOLATION = "constraint_violation"
    TRANSACTION = "transaction_error"


class ApiErrorKind(str, Enum):
    """Operation-level failure kinds understood at the API boundary."""
    DATABASE_ERROR = "DATABASE_ERROR"
    NOT_FOUND = "NOT_FOUND"
    EXISTED_RESOURCE = "EXISTED_RESOURCE"
    ALREADY_JOINED = "ALREADY_JOINED"
    FORBIDDEN = "FORBIDDEN"
    UNAUTHORIZED = "UNAUTHORIZED"
    MISSING_FIELD = "MISSING_FIELD"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """Context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    user_id: int | None = None
    group_id: int | None = None
    operation: str | None = None
    debug_info: dict[str, Any] | None = None

    def log_extra(self) -> dict[str, Any]:
        """Fields for `logger.*(extra=...)`; unset fields are left out."""
        fields = {
            "user_id": self.user_id,
            "group_id": self.group_id,
            "operation": self.operation,
        }
        return {k: v for k, v in fields.items() if v is not None}


# ─── Storage Errors ─────────────────────────────────────────────

class DBError(Exception):
    """Base class for classified storage failures."""

    kind: DBErrorKind

    def __init__(self, message: str, detail: str):
        super().__init__(message)
        self.message = message
        self.detail = detail


class QueryError(DBError):
    """Generic query failure, including a missing record."""
    kind = DBErrorKind.QUERY

    def __init__(self, detail: str):
        super().__init__(f"Failed to query from database {detail}", detail)


class DatabaseConnectionError(DBError):
    """Pool exhausted or connection could not be established."""
    kind = DBErrorKind.CONNECTION

    def __init__(self, detail: str):
        super().__init__(f"Failed to get a connection: {detail}", detail)


class ConstraintViolation(DBError):
    """A uniqueness, foreign-key or check constraint rejected the write."""
    kind = DBErrorKind.CONSTRAINT_VIOLATION

    def __init__(self, detail: str):
        super().__init__(f"Constraint violation: {detail}", detail)


class TransactionError(DBError):
    """Any other failure inside a transaction boundary."""
    kind = DBErrorKind.TRANSACTION

    def __init__(self, detail: str):
        super().__init__(f"TransactionError: {detail}", detail)


# ─── Operation Errors ───────────────────────────────────────────

class ApiError(Exception):
    """Base exception for every failure a domain operation reports."""

    kind: ApiErrorKind = ApiErrorKind.UNKNOWN

    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()

    @property
    def code(self) -> str:
        return self.kind.value


class DatabaseError(ApiError):
    """Storage failure without a domain meaning."""
    kind = ApiErrorKind.DATABASE_ERROR

    def __init__(self, cause: DBError, context: ErrorContext | None = None):
        super().__init__(f"Database error: cause {cause}", context)
        self.cause = cause

    @classmethod
    def query(cls, cause: str, context: ErrorContext | None = None) -> "DatabaseError":
        return cls(QueryError(cause), context)


class NotFoundError(ApiError):
    kind = ApiErrorKind.NOT_FOUND

    def __init__(self, resource: str, context: ErrorContext | None = None):
        super().__init__(f"The resource is not found: {resource}", context)
        self.resource = resource


class ExistedResourceError(ApiError):
    kind = ApiErrorKind.EXISTED_RESOURCE


class AlreadyJoinedError(ApiError):
    kind = ApiErrorKind.ALREADY_JOINED

    def __init__(self, context: ErrorContext | None = None):
        super().__init__("The user already joined the group", context)


class ForbiddenError(ApiError):
    kind = ApiErrorKind.FORBIDDEN

    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "The current user doesn't have permission to access the resource",
            context,
        )


class UnauthorizedError(ApiError):
    kind = ApiErrorKind.UNAUTHORIZED

    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "The current user doesn't have right to access the resource",
            context,
        )


class MissingFieldError(ApiError):
    kind = ApiErrorKind.MISSING_FIELD

    def __init__(self, field_name: str, context: ErrorContext | None = None):
        super().__init__(f"The request is missing {field_name}", context)
        self.field = field_name


class UnknownError(ApiError):
    kind = ApiErrorKind.UNKNOWN

    def __init__(self, context: ErrorContext | None = None):
        super().__init__("Unknown error", context)
