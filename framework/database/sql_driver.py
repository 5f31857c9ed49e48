from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from .base import BaseDatabaseDriver


class SQLDriver(BaseDatabaseDriver):
    """Async SQLModel engine; MySQL (aiomysql) in deployment, SQLite (aiosqlite) locally."""

    def __init__(self, url: str, **engine_kwargs):
        self.engine = create_async_engine(url, echo=False, future=True, **engine_kwargs)
        self.session_factory = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )

    async def connect(self):
        """Check connectivity (the engine pools connections itself)."""
        async with self.engine.begin() as conn:
            await conn.execute(text("SELECT 1"))

    async def disconnect(self):
        await self.engine.dispose()

    async def get_session(self):
        async with self.session_factory() as session:
            yield session
