"""Fluent query builder for single-table reads."""

from typing import Any, Dict, FrozenSet, List, Optional, Tuple

import structlog

from .exceptions import QueryError

logger = structlog.get_logger(__name__)


class RecordQuery:
    """Fluent query builder over one table.

    Column names are checked against the table's known columns before they
    are interpolated into SQL; values are always bound as parameters.

    Example:
        annotations = await repository.query("annotations")\\
            .where("video_id", 7)\\
            .order_by("at")\\
            .order_by("id")\\
            .limit(500)\\
            .execute()
    """

    def __init__(self, connection, table: str, columns: FrozenSet[str]):
        """
        Initialize query builder.

        Args:
            connection: aiosqlite Connection instance
            table: Table name (already validated by the repository)
            columns: Columns that may appear in filters and ordering
        """
        self._connection = connection
        self._table = table
        self._columns = columns
        self._where_clauses: List[str] = []
        self._params: List[Any] = []
        self._order_by_clauses: List[str] = []
        self._limit_value: Optional[int] = None
        self._offset_value: Optional[int] = None

    def _column(self, field: str) -> str:
        if field not in self._columns:
            raise QueryError(f"Unknown column for {self._table}: {field}")
        return field

    def where(self, field: str, value: Any) -> "RecordQuery":
        """Filter by exact match (``IS NULL`` when value is None)."""
        column = self._column(field)
        if value is None:
            self._where_clauses.append(f"{column} IS NULL")
        else:
            self._where_clauses.append(f"{column} = ?")
            self._params.append(value)
        return self

    def where_in(self, field: str, values: List[Any]) -> "RecordQuery":
        """Filter by membership; an empty list matches nothing."""
        column = self._column(field)
        if not values:
            self._where_clauses.append("0")
            return self
        placeholders = ", ".join("?" for _ in values)
        self._where_clauses.append(f"{column} IN ({placeholders})")
        self._params.extend(values)
        return self

    def order_by(self, field: str, desc: bool = False) -> "RecordQuery":
        """Append a sort key. Calls accumulate, so later keys break ties."""
        direction = "DESC" if desc else "ASC"
        self._order_by_clauses.append(f"{self._column(field)} {direction}")
        return self

    def limit(self, count: int) -> "RecordQuery":
        """Limit number of results."""
        if count < 0:
            raise QueryError(f"Limit must be non-negative, got {count}")
        self._limit_value = count
        return self

    def offset(self, count: int) -> "RecordQuery":
        """Skip first N results."""
        self._offset_value = count
        return self

    async def execute(self) -> List[Dict[str, Any]]:
        """
        Execute query and return results.

        Returns:
            List of records as dictionaries
        """
        query, params = self._build_query()

        logger.debug("query_executing", table=self._table, query=query, params=params)

        try:
            cursor = await self._connection.execute(query, params)
            rows = await cursor.fetchall()
        except Exception as e:
            logger.error("query_failed", table=self._table, error=str(e))
            raise QueryError(f"Query on {self._table} failed: {e}", query=query, params=tuple(params)) from e

        results = [dict(row) for row in rows]

        logger.debug("query_executed", table=self._table, results_count=len(results))

        return results

    async def first(self) -> Optional[Dict[str, Any]]:
        """Execute with ``LIMIT 1`` and return the first record or None."""
        saved_limit = self._limit_value
        self._limit_value = 1
        try:
            results = await self.execute()
        finally:
            self._limit_value = saved_limit
        return results[0] if results else None

    async def count(self) -> int:
        """Execute query and return count of matching records."""
        query, params = self._build_query(count_only=True)
        cursor = await self._connection.execute(query, params)
        row = await cursor.fetchone()
        return row[0] if row else 0

    def _build_query(self, count_only: bool = False) -> Tuple[str, List[Any]]:
        """Build SQL query from builder state."""
        select_clause = "SELECT COUNT(*)" if count_only else "SELECT *"
        query_parts = [select_clause, f"FROM {self._table}"]

        if self._where_clauses:
            query_parts.append("WHERE " + " AND ".join(self._where_clauses))

        if not count_only:
            if self._order_by_clauses:
                query_parts.append("ORDER BY " + ", ".join(self._order_by_clauses))
            if self._limit_value is not None:
                query_parts.append(f"LIMIT {int(self._limit_value)}")
            if self._offset_value is not None:
                if self._limit_value is None:
                    query_parts.append("LIMIT -1")
                query_parts.append(f"OFFSET {int(self._offset_value)}")

        return " ".join(query_parts), list(self._params)
