"""
Base Repository

Provides the foundation for all repository classes: DataFrame reads and
transactional writes against the shared SQLAlchemy engine.

Design Principles:
1. Dependency Injection - Receives DatabaseConfig, doesn't create it
2. All-or-nothing writes - every execute call runs in one transaction
3. Consistent interface - All repositories inherit this pattern
"""

from contextlib import contextmanager
from typing import Any, Iterator, Mapping, Optional, Sequence
import logging
import uuid

import pandas as pd
from sqlalchemy import text
from sqlalchemy.engine import Connection

from config import DatabaseConfig
from logging_config import setup_logging

logger = setup_logging(__name__)

Statement = tuple[Any, Optional[Mapping[str, Any] | Sequence[Mapping[str, Any]]]]


def new_id() -> str:
    """Random row id."""
    return uuid.uuid4().hex


def _as_clause(query: Any):
    return text(query) if isinstance(query, str) else query


class BaseRepository:
    """
    Base class for all repository implementations.

    Reads return DataFrames; writes run inside engine.begin() so a failure
    rolls the whole call back. Errors are logged and re-raised.

    Attributes:
        db: DatabaseConfig instance for database access
    """

    def __init__(self, db: DatabaseConfig, logger_instance: Optional[logging.Logger] = None):
        """
        Initialize repository with database configuration.

        Args:
            db: DatabaseConfig instance
            logger_instance: Optional logger (defaults to module logger)
        """
        self.db = db
        self._logger = logger_instance or logger

    def read_df(self, query: Any, params: Mapping[str, Any] | None = None) -> pd.DataFrame:
        """Execute a read-only SQL query and return a DataFrame.

        Args:
            query: SQL query string or SQLAlchemy TextClause
            params: Optional query parameters

        Returns:
            DataFrame with query results
        """
        try:
            with self.db.engine.connect() as conn:
                return pd.read_sql_query(_as_clause(query), conn, params=params)
        except Exception as e:
            self._logger.error(f"Read failed: {e}")
            raise

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        """Connection inside a transaction; commits on exit, rolls back on error."""
        with self.db.engine.begin() as conn:
            yield conn

    def execute(self, query: Any, params: Mapping[str, Any] | Sequence[Mapping[str, Any]] | None = None) -> int:
        """Run one write statement in its own transaction.

        A list of parameter dicts runs the statement once per dict
        (executemany) in the same transaction.

        Returns:
            Number of affected rows as reported by the driver
        """
        return self.execute_many([(query, params)])

    def execute_many(self, statements: Sequence[Statement]) -> int:
        """Run several write statements in a single transaction.

        Returns:
            Total affected rows
        """
        affected = 0
        try:
            with self.transaction() as conn:
                for query, params in statements:
                    if isinstance(params, (list, tuple)) and not params:
                        continue
                    result = conn.execute(_as_clause(query), params)
                    affected += max(result.rowcount or 0, 0)
        except Exception as e:
            self._logger.error(f"Write failed, transaction rolled back: {e}")
            raise
        return affected
