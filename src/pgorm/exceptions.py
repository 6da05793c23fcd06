"""
Provider exception classes.
"""
import psycopg


class DatabaseError(Exception):
    """Base class for all provider errors.
    """


class ConnectionFailure(DatabaseError):
    """Error establishing or maintaining database connection.
    """


class QueryError(DatabaseError):
    """Error in query syntax or execution.
    """


class ValidationError(DatabaseError):
    """Error in input validation.
    """


class MalformedConditionError(ValidationError):
    """Condition tree contains a node the compiler cannot render.
    """


class NotFoundError(QueryError):
    """A single-row query returned no rows.
    """


DbConnectionError = (
    psycopg.OperationalError,
    psycopg.InterfaceError,
    ConnectionFailure,
    )

IntegrityError = (
    psycopg.IntegrityError,
    )

ProgrammingError = (
    psycopg.ProgrammingError,
    psycopg.DatabaseError,
    QueryError,
    )

OperationalError = (
    psycopg.OperationalError,
    )

UniqueViolation = (
    psycopg.errors.UniqueViolation,
    )
