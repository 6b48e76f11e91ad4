"""Storage Error Classifier: maps raw SQLAlchemy/DBAPI failures to DBError kinds.

Invariants:
    - classify_db_error is total: every exception maps to exactly one DBError
    - Record-not-found folds into QueryError("Record not found")
    - Anything unrecognised falls back to TransactionError

Design Decisions:
    - Ordered isinstance checks: IntegrityError and OperationalError are both
      DBAPIError subclasses, so the specific arms come first
    - Pool timeout (sqlalchemy.exc.TimeoutError) is a connection failure
    - OperationalError counts as a connection failure only when it carries no
      statement (raised while connecting) or invalidated the connection;
      SQLite reports "no such table" as OperationalError too
"""

from sqlalchemy.exc import (
    DBAPIError, DisconnectionError, IntegrityError, InterfaceError,
    MultipleResultsFound, NoResultFound, OperationalError,
    TimeoutError as PoolTimeoutError,
)

from groupchat.core.errors import (
    ConstraintViolation, DatabaseConnectionError, DBError, QueryError,
    TransactionError,
)

RECORD_NOT_FOUND = "Record not found"


def classify_db_error(exc: BaseException) -> DBError:
    """Classify a storage-layer failure into one of the four DBError kinds."""
    if isinstance(exc, DBError):
        return exc
    if isinstance(exc, (PoolTimeoutError, DisconnectionError, OSError)):
        return DatabaseConnectionError(str(exc))
    if isinstance(exc, IntegrityError):
        return ConstraintViolation(_describe(exc))
    if isinstance(exc, (OperationalError, InterfaceError)) and _lost_connection(exc):
        return DatabaseConnectionError(_describe(exc))
    if isinstance(exc, NoResultFound):
        return QueryError(RECORD_NOT_FOUND)
    if isinstance(exc, (MultipleResultsFound, DBAPIError)):
        return QueryError(_describe(exc))
    return TransactionError(str(exc) or type(exc).__name__)


def _lost_connection(exc: DBAPIError) -> bool:
    return (
        isinstance(exc, InterfaceError)
        or exc.connection_invalidated
        or exc.statement is None
    )


def _describe(exc: BaseException) -> str:
    """Driver message without the SQL statement and parameters."""
    orig = getattr(exc, "orig", None)
    if orig is not None:
        return str(orig)
    return str(exc)
