"""API Error Mapper: turns operation failures into caller-visible outcomes.

Invariants:
    - Client-actionable kinds keep their own message verbatim
    - Every other failure (DatabaseError, UnknownError, any unclassified
      exception) becomes 503 "Service unavailable"
    - Masked detail is logged, never returned (table names, constraint names,
      connection strings stay on this side), along with the operation, user
      and group from the error's context
    - Masked responses share one code: the body does not reveal which
      internal kind failed

Design Decisions:
    - Standalone function over a method on ApiError: the error stays plain data
      and non-HTTP callers can reuse the policy
    - Status codes as plain ints: core never imports the web framework
"""

import logging
from dataclasses import dataclass

from groupchat.core.errors import ApiError, ApiErrorKind

logger = logging.getLogger(__name__)

SERVICE_UNAVAILABLE_MESSAGE = "Service unavailable"
# Same code for every masked kind; the internal kind goes to the log only
SERVICE_UNAVAILABLE_CODE = "SERVICE_UNAVAILABLE"

_VISIBLE_STATUS: dict[ApiErrorKind, int] = {
    ApiErrorKind.NOT_FOUND: 404,
    ApiErrorKind.ALREADY_JOINED: 400,
    ApiErrorKind.EXISTED_RESOURCE: 400,
    ApiErrorKind.FORBIDDEN: 403,
    ApiErrorKind.UNAUTHORIZED: 401,
    ApiErrorKind.MISSING_FIELD: 400,
}


@dataclass(frozen=True)
class ErrorResponse:
    """Caller-visible failure: status class, stable code, safe message."""
    status_code: int
    code: str
    message: str

    def to_response(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
            },
        }


def map_api_error(error: BaseException) -> ErrorResponse:
    """Map any failure to the status/message pair the caller may see."""
    if isinstance(error, ApiError) and error.kind in _VISIBLE_STATUS:
        return ErrorResponse(
            status_code=_VISIBLE_STATUS[error.kind],
            code=error.code,
            message=error.message,
        )
    if isinstance(error, ApiError):
        extra = {"error_code": error.code, **error.context.log_extra()}
    else:
        extra = {"error_code": ApiErrorKind.UNKNOWN.value}
    logger.error(
        f"Error Cause: {error}",
        extra=extra,
        exc_info=(type(error), error, error.__traceback__),
    )
    return ErrorResponse(
        status_code=503,
        code=SERVICE_UNAVAILABLE_CODE,
        message=SERVICE_UNAVAILABLE_MESSAGE,
    )
