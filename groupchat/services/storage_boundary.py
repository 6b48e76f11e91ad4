"""Storage Boundary: wraps classified DBError into the operation taxonomy.

Invariants:
    - No DBError escapes a `translate_storage_errors` block
    - ConstraintViolation becomes the caller-supplied domain error when one is
      given, otherwise DatabaseError like every other storage failure
    - ApiError raised inside the block passes through untouched

Design Decisions:
    - Context manager over per-operation try/except: one place decides the
      reinterpretation policy, operations only name the domain meaning
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Callable

from groupchat.core.errors import (
    ApiError, ConstraintViolation, DatabaseConnectionError, DatabaseError,
    DBError, ErrorContext, TransactionError,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def translate_storage_errors(
    operation: str,
    on_conflict: Callable[[], ApiError] | None = None,
    atomic: bool = False,
    context: ErrorContext | None = None,
) -> AsyncGenerator[None, None]:
    """Reinterpret storage failures raised inside the block.

    atomic=True reports any non-connection failure as TransactionError, for
    multi-write operations whose whole transaction was rolled back.
    """
    ctx = context or ErrorContext()
    ctx.operation = operation
    try:
        yield
    except ConstraintViolation as e:
        if on_conflict is not None:
            raise on_conflict() from e
        raise DatabaseError(_as_transaction(e) if atomic else e, ctx) from e
    except DBError as e:
        logger.warning(
            f"{operation} failed: {e}",
            extra={"error_code": e.kind.value, **ctx.log_extra()},
        )
        raise DatabaseError(_as_transaction(e) if atomic else e, ctx) from e


def _as_transaction(error: DBError) -> DBError:
    if isinstance(error, (TransactionError, DatabaseConnectionError)):
        return error
    return TransactionError(error.detail)
