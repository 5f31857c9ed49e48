"""Team invitation repositories."""

from typing import List, Optional
from sqlalchemy import update
from framework.permissions import AuthorizedContext
from framework.repository.base import BaseRepository, TenantScopedRepository
from .models import InvitationStatus, TeamInvitation


class InvitationRepository(TenantScopedRepository[TeamInvitation]):
    """Invitations of the caller's tenant (owner side)."""

    def __init__(self, session, context: AuthorizedContext):
        super().__init__(session, TeamInvitation, context)

    async def get_pending_for_email(self, email: str) -> Optional[TeamInvitation]:
        return await self.find_one(email=email, status=InvitationStatus.PENDING.value)

    async def list_pending(self) -> List[TeamInvitation]:
        statement = (
            self._select()
            .where(TeamInvitation.status == InvitationStatus.PENDING.value)
            .order_by(TeamInvitation.created_at.desc(), TeamInvitation.id.desc())
        )
        result = await self.session.exec(statement)
        return list(result.all())


class InvitationTokenRepository(BaseRepository[TeamInvitation]):
    """Token lookups for the invitee, who has no session and therefore no tenant context."""

    def __init__(self, session):
        super().__init__(session, TeamInvitation)

    async def get_by_token(self, token: str) -> Optional[TeamInvitation]:
        return await self.find_one(token=token)

    async def mark_accepted(self, invitation_id: int) -> bool:
        """Flip pending -> accepted; False when another request got there first."""
        statement = (
            update(TeamInvitation)
            .where(TeamInvitation.id == invitation_id)
            .where(TeamInvitation.status == InvitationStatus.PENDING.value)
            .values(status=InvitationStatus.ACCEPTED.value)
        )
        result = await self.session.execute(statement)
        return result.rowcount == 1
