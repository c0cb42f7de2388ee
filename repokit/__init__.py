"""
Repository-pattern layer over SQLAlchemy tables and mapped classes.
"""

from .errors import ErrorBag
from .exceptions import (
    ConfigurationError,
    NotFoundError,
    PreconditionError,
    RepositoryError,
    StorageError,
    ValidationFailed,
)
from .hooks import RepositoryHooks
from .pagination import Page
from .records import Record
from .repositories import MappedStrategy, PersistenceStrategy, Repository, TableStrategy
from .validation import SchemaValidator, Validator

__version__ = "0.1.0"

__all__ = [
    # pipeline
    "Repository",
    "RepositoryHooks",
    "PersistenceStrategy",
    "TableStrategy",
    "MappedStrategy",
    # entities/results
    "Record",
    "Page",
    # validation
    "Validator",
    "SchemaValidator",
    "ErrorBag",
    # errors
    "RepositoryError",
    "PreconditionError",
    "ConfigurationError",
    "ValidationFailed",
    "NotFoundError",
    "StorageError",
]
