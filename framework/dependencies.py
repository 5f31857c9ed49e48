"""
FastAPI dependencies shared by every app: database session, unit of work,
session lookup and permission gates.
"""

from typing import Optional
from fastapi import Depends, Request
from sqlmodel.ext.asyncio.session import AsyncSession
from framework.database.manager import DatabaseManager
from framework.permissions import AuthorizedContext, Permission, authorize
from framework.repository.unit_of_work import UnitOfWork
from framework.security.session import SessionManager
from framework.security.tokens import UserSession


async def get_db():
    manager = DatabaseManager.get_instance()
    async for session in manager.sql.get_session():
        yield session


def get_uow(db: AsyncSession = Depends(get_db)) -> UnitOfWork:
    """Dependency: create UnitOfWork."""
    return UnitOfWork(session=db)


def get_session_manager(request: Request) -> SessionManager:
    return request.app.state.session_manager


async def get_current_session(
    request: Request,
    session_manager: SessionManager = Depends(get_session_manager),
) -> Optional[UserSession]:
    return await session_manager.current_session(request)


def require_permissions(*permissions: Permission):
    """
    Build a dependency that authorizes the request for `permissions`.

    Usage:
        context: AuthorizedContext = Depends(require_permissions(Permission.TEAM_MANAGE))
    """
    required = frozenset(permissions)

    async def dependency(
        session: Optional[UserSession] = Depends(get_current_session),
    ) -> AuthorizedContext:
        return authorize(session, required)

    return dependency
