"""Identity module repository implementations."""

from typing import List, Optional
from framework.permissions import AuthorizedContext
from framework.repository.base import BaseRepository, TenantScopedRepository
from .models import Tenant, User


class TenantRepository(BaseRepository[Tenant]):
    """Tenant repository."""

    def __init__(self, session):
        super().__init__(session, Tenant)

    async def get_for_context(self, context: AuthorizedContext) -> Optional[Tenant]:
        """The caller's own tenant row; the id comes from the authorized context only."""
        return await self.get_by_id(context.tenant_id)


class UserRepository(BaseRepository[User]):
    """Global user lookups used before a session exists (login, invitation acceptance)."""

    def __init__(self, session):
        super().__init__(session, User)

    async def get_by_email(self, email: str) -> Optional[User]:
        return await self.find_one(email=email)


class TeamMemberRepository(TenantScopedRepository[User]):
    """Users of the caller's tenant."""

    def __init__(self, session, context: AuthorizedContext):
        super().__init__(session, User, context)

    async def list_members(self) -> List[User]:
        statement = self._select().order_by(User.created_at, User.id)
        result = await self.session.exec(statement)
        return list(result.all())

    async def get_by_email(self, email: str) -> Optional[User]:
        return await self.find_one(email=email)
