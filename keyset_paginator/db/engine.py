"""Query engines that execute paging queries."""

import logging
from typing import Any, List, Optional, Protocol, Sequence

import asyncpg
from asyncpg import Pool

from ..errors.pagination import ExecutionFailedError
from ..pagination.query import PagingQuery
from .connection import get_db_pool


logger = logging.getLogger(__name__)


class QueryEngine(Protocol):
    """What ``Paginator.paginate`` needs to run a query."""

    async def execute(self, query: PagingQuery) -> Sequence[Any]:
        ...


class AsyncpgQueryEngine:
    """Run paging queries on an asyncpg pool.

    Args:
        select: ``SELECT ... FROM ...`` head of the statement
        filters: Optional WHERE condition using ``$1``.. placeholders
        filter_args: Arguments for ``filters``
        pool: Pool to use, defaults to the shared ``get_db_pool()`` pool
    """

    def __init__(
        self,
        select: str,
        filters: Optional[str] = None,
        filter_args: Sequence[Any] = (),
        pool: Optional[Pool] = None
    ):
        self.select = select
        self.filters = filters
        self.filter_args = tuple(filter_args)
        self._pool = pool

    async def execute(self, query: PagingQuery) -> List[asyncpg.Record]:
        """Execute the query and return up to ``limit + 1`` records.

        Raises:
            ExecutionFailedError: If the database rejects the statement
        """
        pool = self._pool or await get_db_pool()
        sql, args = query.to_sql(self.select, self.filters, self.filter_args, paramstyle="numeric")

        try:
            async with pool.acquire() as conn:
                rows = await conn.fetch(sql, *args)
        except asyncpg.PostgresError as e:
            logger.error(f"Database error executing paging query: {e}")
            raise ExecutionFailedError(f"Database error: {type(e).__name__}") from e

        logger.debug(f"Fetched {len(rows)} rows (limit {query.fetch_limit})")
        return rows
