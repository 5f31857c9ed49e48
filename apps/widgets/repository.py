"""Widget repositories."""

from typing import List, Optional
from framework.permissions import AuthorizedContext
from framework.repository.base import BaseRepository, TenantScopedRepository
from .models import Widget


class WidgetRepository(TenantScopedRepository[Widget]):
    """Widgets of the caller's tenant."""

    def __init__(self, session, context: AuthorizedContext):
        super().__init__(session, Widget, context)

    async def list_widgets(self) -> List[Widget]:
        statement = self._select().order_by(Widget.created_at.desc(), Widget.id.desc())
        result = await self.session.exec(statement)
        return list(result.all())


class PublicWidgetRepository(BaseRepository[Widget]):
    """
    Lookup by public key for the embed script.

    Tenant agnostic: the caller is an anonymous website visitor and
    the unguessable public key is the only credential.
    """

    def __init__(self, session):
        super().__init__(session, Widget)

    async def get_active_by_public_key(self, public_key: str) -> Optional[Widget]:
        return await self.find_one(public_key=public_key, is_active=True)
