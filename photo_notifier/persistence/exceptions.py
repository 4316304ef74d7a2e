"""Persistence layer exceptions.

All persistence exceptions inherit from PersistenceError for easy catching.
"""


class PersistenceError(Exception):
    """Base exception for all persistence layer errors."""

    pass


class DatabaseConnectionError(PersistenceError):
    """Raised when database connection or initialization fails.

    Examples:
    - Invalid database URL format
    - Database file not accessible
    - Store used before init_database() was called
    """

    pass


class DataIntegrityError(PersistenceError):
    """Raised when a constraint violation cannot be resolved idempotently."""

    pass
