"""Storage Error Classifier: every SQLAlchemy failure family maps to exactly one kind.

Tests cover:
    - Constraint, connection, query and fallback arms
    - Record-not-found folds into QueryError with a fixed message
    - Already-classified errors pass through unchanged
"""

import pytest
from sqlalchemy.exc import (
    ArgumentError, DataError, DisconnectionError, IntegrityError,
    InterfaceError, MultipleResultsFound, NoResultFound, OperationalError,
    ProgrammingError, TimeoutError as PoolTimeoutError,
)

from groupchat.core.errors import (
    ConstraintViolation, DatabaseConnectionError, QueryError, TransactionError,
)
from groupchat.infrastructure.error_classifier import (
    RECORD_NOT_FOUND, classify_db_error,
)


def _orig(message: str) -> Exception:
    return Exception(message)


def test_integrity_error_is_constraint_violation():
    exc = IntegrityError(
        "INSERT INTO users", {}, _orig("UNIQUE constraint failed: users.name"),
    )
    error = classify_db_error(exc)
    assert isinstance(error, ConstraintViolation)
    assert error.detail == "UNIQUE constraint failed: users.name"


def test_pool_timeout_is_connection_error():
    error = classify_db_error(PoolTimeoutError("QueuePool limit reached"))
    assert isinstance(error, DatabaseConnectionError)


def test_operational_error_while_connecting_is_connection_error():
    exc = OperationalError(None, None, _orig("connection refused"))
    assert isinstance(classify_db_error(exc), DatabaseConnectionError)


def test_operational_error_on_statement_is_query_error():
    exc = OperationalError("SELECT * FROM nope", {}, _orig("no such table: nope"))
    error = classify_db_error(exc)
    assert isinstance(error, QueryError)
    assert error.detail == "no such table: nope"


def test_invalidated_connection_is_connection_error():
    exc = OperationalError(
        "SELECT 1", {}, _orig("server closed the connection"),
        connection_invalidated=True,
    )
    assert isinstance(classify_db_error(exc), DatabaseConnectionError)


@pytest.mark.parametrize(
    "exc",
    [
        InterfaceError("SELECT 1", {}, _orig("connection is closed")),
        DisconnectionError("gone"),
        ConnectionRefusedError("refused"),
    ],
)
def test_lost_connections_are_connection_errors(exc):
    assert isinstance(classify_db_error(exc), DatabaseConnectionError)


def test_no_result_is_query_error_with_fixed_message():
    error = classify_db_error(NoResultFound("No row was found"))
    assert isinstance(error, QueryError)
    assert error.detail == RECORD_NOT_FOUND


@pytest.mark.parametrize(
    "exc",
    [
        MultipleResultsFound("Multiple rows"),
        ProgrammingError("SELEC 1", {}, _orig("syntax error")),
        DataError("INSERT", {}, _orig("value too long")),
    ],
)
def test_other_query_failures_are_query_errors(exc):
    assert isinstance(classify_db_error(exc), QueryError)


@pytest.mark.parametrize(
    "exc", [ArgumentError("bad argument"), RuntimeError("unexpected"), ValueError()],
)
def test_everything_else_falls_back_to_transaction_error(exc):
    error = classify_db_error(exc)
    assert isinstance(error, TransactionError)
    assert error.detail


def test_classified_errors_pass_through():
    original = ConstraintViolation("x")
    assert classify_db_error(original) is original
