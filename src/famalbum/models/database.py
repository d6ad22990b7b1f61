"""
Database initialization and connection management for famalbum.

This module owns the single DuckDB connection the services share and the
transaction boundary every read-modify-write runs inside.
"""

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import duckdb

from ..logging_config import get_logger
from .schema import REQUIRED_COLUMNS, get_schema_statements, validate_schema_compatibility

logger = get_logger(__name__)


class DatabaseManager:
    """
    Manages a DuckDB connection, schema initialization and transactions.
    """

    def __init__(self, db_path: str):
        """
        Initialize DatabaseManager.

        Args:
            db_path: Path to the DuckDB database file (or ":memory:")
        """
        self.db_path = db_path
        self._connection: duckdb.DuckDBPyConnection | None = None
        self._lock = threading.RLock()
        self._transaction_depth = 0

    def connect(self) -> duckdb.DuckDBPyConnection:
        """
        Get or create the database connection.

        Returns:
            DuckDB connection object
        """
        if self._connection is None:
            self._connection = duckdb.connect(self.db_path)
            logger.info("database_connected", db_path=self.db_path)

        return self._connection

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None
                self._transaction_depth = 0
                logger.info("database_closed", db_path=self.db_path)

    @property
    def in_transaction(self) -> bool:
        return self._transaction_depth > 0

    @contextmanager
    def transaction(self) -> Iterator["DatabaseManager"]:
        """
        Run a block inside one database transaction.

        The connection lock is held for the whole block, so concurrent
        read-modify-write sequences in this process are serialized. Nested
        calls join the outermost transaction; only the outermost block
        commits or rolls back.

        Raises:
            duckdb.Error: If BEGIN or COMMIT fails
        """
        with self._lock:
            conn = self.connect()
            outermost = self._transaction_depth == 0
            if outermost:
                conn.begin()
            self._transaction_depth += 1
            try:
                yield self
            except BaseException:
                self._transaction_depth -= 1
                if outermost:
                    conn.rollback()
                    logger.warning("transaction_rolled_back", db_path=self.db_path)
                raise
            else:
                self._transaction_depth -= 1
                if outermost:
                    conn.commit()

    def initialize_schema(self) -> None:
        """
        Create all tables and indexes that do not exist yet.

        Raises:
            RuntimeError: If schema validation fails
            duckdb.Error: If database operations fail
        """
        if not validate_schema_compatibility():
            raise RuntimeError("Schema is not compatible with the collection models")

        try:
            with self.transaction():
                for statement in get_schema_statements():
                    logger.debug("executing_schema_statement", statement=statement.strip().splitlines()[0])
                    self.connect().execute(statement)

            logger.info("database_schema_initialized", db_path=self.db_path)

        except duckdb.Error as e:
            logger.error("database_schema_initialization_failed", error=str(e))
            raise

    def verify_schema(self) -> bool:
        """
        Verify that every required table and column exists.

        Returns:
            True if schema is valid, False otherwise
        """
        try:
            for table, required in REQUIRED_COLUMNS.items():
                column_names = {column["name"] for column in self.get_table_info(table)}
                if not column_names:
                    logger.warning("table_missing", table=table)
                    return False

                missing_columns = required - column_names
                if missing_columns:
                    logger.warning("columns_missing", table=table, columns=sorted(missing_columns))
                    return False

            logger.info("database_schema_verified")
            return True

        except duckdb.Error as e:
            logger.error("schema_verification_failed", error=str(e))
            return False

    def get_table_info(self, table: str) -> list[dict]:
        """
        Get the column layout of a table.

        Returns:
            List of dictionaries containing column information; empty if the table does not exist
        """
        try:
            rows = self.execute_query(
                """SELECT column_name, data_type, is_nullable
                   FROM information_schema.columns
                   WHERE table_name = ?
                   ORDER BY ordinal_position""",
                (table,),
            )
        except duckdb.Error as e:
            logger.error("table_info_failed", table=table, error=str(e))
            return []

        return [{"name": row[0], "type": row[1], "notnull": row[2] == "NO"} for row in rows]

    def execute_query(self, query: str, parameters: tuple | list | None = None) -> list[tuple]:
        """
        Execute a SQL statement and return its rows.

        DuckDB answers INSERT, UPDATE and DELETE with a single
        ``(affected_rows,)`` row.

        Raises:
            duckdb.Error: If query execution fails
        """
        with self._lock:
            conn = self.connect()
            try:
                if parameters:
                    result = conn.execute(query, parameters)
                else:
                    result = conn.execute(query)
                return result.fetchall()

            except duckdb.Error as e:
                logger.error("query_failed", query=" ".join(query.split())[:200], error=str(e))
                raise

    def execute_dict_query(self, query: str, parameters: tuple | list | None = None) -> list[dict[str, Any]]:
        """Execute a SELECT and return each row as a column-name keyed dict."""
        with self._lock:
            conn = self.connect()
            try:
                cursor = conn.execute(query, parameters) if parameters else conn.execute(query)
                columns = [description[0] for description in cursor.description]
                return [dict(zip(columns, row, strict=True)) for row in cursor.fetchall()]

            except duckdb.Error as e:
                logger.error("query_failed", query=" ".join(query.split())[:200], error=str(e))
                raise

    def __enter__(self) -> "DatabaseManager":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


def create_database(db_path: str) -> DatabaseManager:
    """
    Create and initialize a new DuckDB database.

    Raises:
        RuntimeError: If database creation fails
    """
    try:
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        db_manager = DatabaseManager(db_path)
        db_manager.initialize_schema()

        if not db_manager.verify_schema():
            raise RuntimeError("Schema verification failed after creation")

        logger.info("database_created", db_path=db_path)
        return db_manager

    except Exception as e:
        logger.error("database_creation_failed", db_path=db_path, error=str(e))
        raise RuntimeError(f"Database creation failed: {e}") from e


def get_database_manager(db_path: str, create_if_missing: bool = True) -> DatabaseManager:
    """
    Get a DatabaseManager, creating the database if it does not exist.

    Raises:
        FileNotFoundError: If database doesn't exist and create_if_missing is False
        RuntimeError: If database creation fails
    """
    if db_path == ":memory:" or not Path(db_path).exists():
        if create_if_missing:
            return create_database(db_path)
        raise FileNotFoundError(f"Database file not found: {db_path}")

    db_manager = DatabaseManager(db_path)

    if not db_manager.verify_schema():
        logger.warning("schema_verification_failed_reinitializing", db_path=db_path)
        db_manager.initialize_schema()

    return db_manager
