"""Persistence layer for delivery state.

Public API:
    # Database initialization and session management
    - init_database(database_url: str) -> None
    - get_session() -> ContextManager[Session]
    - close_database() -> None
    - get_engine() -> Engine

    # Repository
    - DeliveryRecordRepository: fail-open reads and conditional writes of
      per-recipient delivery records

    # Exceptions
    - PersistenceError: Base exception for all persistence errors
    - DatabaseConnectionError: Database connection/initialization failures
    - DataIntegrityError: Constraint violations

Example usage:
    >>> from photo_notifier.persistence import init_database, DeliveryRecordRepository
    >>>
    >>> init_database("sqlite:///./data/notifier.db")
    >>> repo = DeliveryRecordRepository()
    >>> repo.get_delivery_state("evt-1", "guest-42")
    DeliveryState(email_sent=False, chat_sent=False)
"""

from .database import close_database, get_engine, get_session, init_database
from .exceptions import DatabaseConnectionError, DataIntegrityError, PersistenceError
from .repositories import DeliveryRecordRepository

__all__ = [
    # Database functions
    "init_database",
    "get_session",
    "close_database",
    "get_engine",
    # Repositories
    "DeliveryRecordRepository",
    # Exceptions
    "PersistenceError",
    "DatabaseConnectionError",
    "DataIntegrityError",
]
