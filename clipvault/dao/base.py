"""Base DAO abstract class."""

from abc import ABC
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from clipvault.database import Database
from clipvault.errors import StorageFailureError

# Type variable for Pydantic domain models
T = TypeVar("T", bound=BaseModel)


class BaseDAO(ABC, Generic[T]):
    """Abstract base class for Data Access Objects.

    DAOs handle all database operations and MUST return Pydantic domain models,
    never SQLAlchemy ORM objects. Rows are decoded at this boundary; a row
    that cannot be decoded is reported as a storage failure instead of being
    passed upward half-formed.
    """

    def __init__(self, database: Database):
        """Initialize DAO with database connection.

        Args:
            database: Database instance for session management.
        """
        self._db = database

    @property
    def db(self) -> Database:
        """Get the database instance."""
        return self._db

    @staticmethod
    def _decode(model_cls: type[T], fields: dict[str, Any]) -> T:
        """Validate raw row fields into a domain model.

        Raises:
            StorageFailureError: If the row is missing or has malformed fields.
        """
        try:
            return model_cls.model_validate(fields)
        except ValidationError as e:
            raise StorageFailureError(
                f"Malformed {model_cls.__name__} row: {e.error_count()} invalid field(s)"
            ) from e
