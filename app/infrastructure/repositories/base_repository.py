"""
Base class for repositories backed by the pooled query executor.
"""

from typing import Any, Optional

from app.infrastructure.executor import QueryExecutor, QueryParam


class SQLRepository:
    """Shared helpers over ``QueryExecutor``."""

    def __init__(self, executor: QueryExecutor):
        self.executor = executor

    async def _fetch_one(self, statement: str, *params: QueryParam) -> Optional[dict[str, Any]]:
        result = await self.executor.execute(statement, params)
        return result.first_mapping()

    async def _fetch_all(self, statement: str, *params: QueryParam) -> list[dict[str, Any]]:
        result = await self.executor.execute(statement, params)
        return result.mappings()

    async def _scalar(self, statement: str, *params: QueryParam) -> Any:
        result = await self.executor.execute(statement, params)
        return result.scalar()

    async def _write(self, statement: str, *params: QueryParam) -> int:
        """Run an INSERT/UPDATE/DELETE and return the affected row count."""
        result = await self.executor.execute(statement, params)
        return result.rowcount
