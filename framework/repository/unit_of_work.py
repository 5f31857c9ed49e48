"""
Unit of Work: manages repositories and transaction boundaries.
"""

from contextlib import asynccontextmanager
from typing import Optional
from sqlmodel.ext.asyncio.session import AsyncSession


class UnitOfWork:
    """Manages related repositories with a shared session and transaction commit/rollback."""

    def __init__(self, session: Optional[AsyncSession] = None):
        if session is None:
            raise ValueError("Session must be provided")

        self.session = session
        self._repositories = {}

    def get_repository(self, repo_class, *args):
        """Get or create a repository instance; extra args (e.g. a tenant context) are part of the cache key."""
        cache_key = (repo_class, *args)
        if cache_key not in self._repositories:
            self._repositories[cache_key] = repo_class(self.session, *args)
        return self._repositories[cache_key]

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()

    async def flush(self) -> None:
        """Flush session (e.g. to get auto-increment IDs)."""
        await self.session.flush()

    @asynccontextmanager
    async def atomic(self):
        """Run a block as one transaction: commit on success, roll back on any exception."""
        try:
            yield self
            await self.session.commit()
        except BaseException:
            await self.session.rollback()
            raise
