"""
Row sources feeding the sitemap builder.
Supplies ordered, offset/limit pages of records either from a Supabase
table or from an in-memory list.
"""

from typing import List, Dict, Any, Optional, Sequence, Union

from google_sitemap.database.supabase_client import get_supabase
from google_sitemap.errors import DataSourceError
from google_sitemap.logging_config import get_logger

logger = get_logger("database.row_source")

Row = Any


def _check_window(offset: int, limit: int):
    if offset < 0:
        raise ValueError(f"offset must be >= 0, got {offset}")
    if limit <= 0:
        raise ValueError(f"limit must be > 0, got {limit}")


class RowSource:
    """
    Base class for paged record providers.
    Subclasses implement fetch_page() and count().
    """

    def fetch_page(self, offset: int, limit: int) -> List[Row]:
        """
        Fetch one window of rows in stable order.

        Args:
            offset: Number of rows to skip (>= 0)
            limit: Maximum number of rows to return (> 0)

        Returns:
            List of rows; mappings or attribute-addressable objects

        Raises:
            DataSourceError: if the underlying query fails
        """
        raise NotImplementedError

    def count(self) -> int:
        """Total number of rows the source can produce."""
        raise NotImplementedError

    def is_empty(self) -> bool:
        return not self.fetch_page(0, 1)


class ListRowSource(RowSource):
    """Row source over a pre-supplied list, in list order."""

    def __init__(self, rows: Sequence[Row]):
        self.rows = list(rows)

    def fetch_page(self, offset: int, limit: int) -> List[Row]:
        _check_window(offset, limit)
        return self.rows[offset:offset + limit]

    def count(self) -> int:
        return len(self.rows)


class SupabaseRowSource(RowSource):
    """
    Row source over a Supabase (PostgREST) table.

    Rows come back as dicts keyed by column name. Pages are requested with
    range(offset, offset + limit - 1), so an order_by is required for the
    pages to be stable across requests.
    """

    def __init__(
        self,
        table: str,
        columns: Union[str, Sequence[str]],
        order_by: Union[str, Sequence[str]],
        filters: Optional[Dict[str, Any]] = None,
        client=None
    ):
        if not table:
            raise ValueError("table name is required")
        self.table = table
        self.columns = columns if isinstance(columns, str) else ",".join(columns)
        self.order_by = [order_by] if isinstance(order_by, str) else list(order_by)
        if not self.order_by:
            raise ValueError("order_by is required for stable paging")
        self.filters = filters or {}
        self._client = client

    @property
    def db(self):
        if self._client is None:
            self._client = get_supabase()
        return self._client

    def _query(self, db, columns: str, **select_kwargs):
        query = db.table(self.table).select(columns, **select_kwargs)
        for column, value in self.filters.items():
            query = query.eq(column, value)
        return query

    def fetch_page(self, offset: int, limit: int) -> List[Row]:
        _check_window(offset, limit)
        db = self.db

        try:
            query = self._query(db, self.columns)
            for column in self.order_by:
                query = query.order(column)
            result = query.range(offset, offset + limit - 1).execute()
        except Exception as e:
            logger.error(f"Query failed at offset {offset}: {e}", extra={"table": self.table})
            raise DataSourceError(f"Failed to fetch rows {offset}-{offset + limit - 1} from {self.table}: {e}") from e

        rows = result.data or []
        logger.debug(f"Fetched {len(rows)} rows at offset {offset}", extra={"table": self.table})
        return rows

    def count(self) -> int:
        db = self.db
        try:
            result = self._query(db, self.columns, count="exact").limit(1).execute()
        except Exception as e:
            logger.error(f"Count query failed: {e}", extra={"table": self.table})
            raise DataSourceError(f"Failed to count rows in {self.table}: {e}") from e
        return result.count or 0
