"""
Database manager for the engine.

Thin async wrapper over a SQLAlchemy engine. Services either issue single
statements through read()/write() or group several statements with
transaction(), passing the yielded session to repository methods as `tx`.
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from sqlalchemy.engine import Result
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.sql.elements import TextClause, ClauseElement


def _check_statement(query: Any) -> None:
    if isinstance(query, str):
        raise TypeError("Raw SQL strings are disallowed. Use sqlalchemy.text().")
    if not isinstance(query, (TextClause, ClauseElement)):
        raise TypeError("Query must be a SQLAlchemy TextClause or ClauseElement.")


class DBM:
    def __init__(self, url: str, *, pool_size: int = 5, echo: bool = False):
        self.engine: AsyncEngine = create_async_engine(
            url,
            echo=echo,
            pool_size=pool_size,
            pool_pre_ping=True,
        )

        self.session_maker: async_sessionmaker[AsyncSession] = async_sessionmaker(
            bind=self.engine,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self.session_maker() as session:
            yield session

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """Open a session inside one transaction.

        Commits when the block exits normally, rolls back if it raises.
        """
        async with self.session_maker() as session:
            async with session.begin():
                yield session

    async def read(
        self,
        query: Any,
        params: dict | None = None,
        *,
        mappings: bool = False,
        tx: AsyncSession | None = None,
    ) -> list[Any]:
        """Execute a read-only statement and return all rows."""
        _check_statement(query)

        if tx is not None:
            result: Result = await tx.execute(query, params or {})
            return list(result.mappings().all() if mappings else result.all())

        async with self.session() as session:
            result = await session.execute(query, params or {})
            return list(result.mappings().all() if mappings else result.all())

    async def write(
        self,
        query: Any,
        params: dict | None = None,
        *,
        tx: AsyncSession | None = None,
    ) -> int:
        """Execute a write statement and return row count.

        Without `tx` the statement runs in its own transaction.
        """
        _check_statement(query)
        if not params:
            raise ValueError("Parameterized writes are required. Provide a params mapping.")

        if tx is not None:
            result: Result = await tx.execute(query, params)
            return result.rowcount or 0

        async with self.transaction() as session:
            result = await session.execute(query, params)
            return result.rowcount or 0

    async def dispose(self) -> None:
        await self.engine.dispose()
