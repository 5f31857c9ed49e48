"""
Team invitation lifecycle.

    pending --accept--> accepted          (stored, terminal)
    pending --time----> expired           (never stored; derived from expires_at on every read)

Owners create, list and cancel invitations of their own tenant. The invitee
holds only the token and has no session, so validate/accept look the
invitation up by token instead of by tenant.
"""

from datetime import datetime, timedelta
from typing import Callable, List
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from framework.clock import as_utc, utc_now
from framework.config import settings
from framework.exceptions.handler import (
    AlreadyUsedError,
    ConflictError,
    ExpiredError,
    NotFoundError,
    ValidationError,
)
from framework.logging.logger import get_logger
from framework.notification.notifier import notify_team_invitation
from framework.permissions import AuthorizedContext, Role
from framework.repository.unit_of_work import UnitOfWork
from framework.security import hash_password
from apps.identity.models import User
from apps.identity.repository import TeamMemberRepository, TenantRepository, UserRepository
from apps.identity.service import normalize_email
from .models import InvitationStatus, TeamInvitation
from .repository import InvitationRepository, InvitationTokenRepository

logger = get_logger("invitations")


class InvitationDetails(BaseModel):
    """What the invitee is shown before accepting."""
    id: int
    email: str
    role: str
    tenant_name: str
    inviter_name: str
    expires_at: datetime


class InvitationService:
    def __init__(self, uow: UnitOfWork, clock: Callable[[], datetime] = utc_now):
        self.uow = uow
        self._clock = clock

    def invite_link(self, invitation: TeamInvitation) -> str:
        return f"{settings.APP_URL.rstrip('/')}/invite/{invitation.token}"

    async def create(self, context: AuthorizedContext, email: str, role: str) -> TeamInvitation:
        """Invite an email address into the caller's tenant."""
        if role not in {r.value for r in Role}:
            raise ValidationError("Invalid role")

        email = normalize_email(email)
        members = self.uow.get_repository(TeamMemberRepository, context)
        invitations = self.uow.get_repository(InvitationRepository, context)

        if await members.get_by_email(email):
            raise ValidationError("User is already a member of this team")
        if await invitations.get_pending_for_email(email):
            raise ValidationError("Invitation already sent to this email")

        now = self._clock()
        invitation = TeamInvitation(
            email=email,
            role=role,
            invited_by=context.identity_id,
            created_at=now,
            expires_at=now + timedelta(days=settings.INVITATION_TTL_DAYS),
        )
        await invitations.create(invitation)
        await self.uow.commit()
        logger.info(f"Invitation {invitation.id} created in tenant {context.tenant_id} by {context.identity_id}")

        await self._send_invitation_email(context, invitation)
        return invitation

    async def _send_invitation_email(self, context: AuthorizedContext, invitation: TeamInvitation) -> None:
        inviter = await self.uow.get_repository(TeamMemberRepository, context).get_by_id(context.identity_id)
        tenant = await self.uow.get_repository(TenantRepository).get_for_context(context)
        sent = await notify_team_invitation(
            email_to=invitation.email,
            inviter_name=inviter.name if inviter else "A teammate",
            tenant_name=tenant.name if tenant else "your team",
            role=invitation.role,
            invite_link=self.invite_link(invitation),
        )
        if not sent:
            logger.warning(f"Invitation {invitation.id} saved but the email was not delivered")

    async def list_pending(self, context: AuthorizedContext) -> List[TeamInvitation]:
        return await self.uow.get_repository(InvitationRepository, context).list_pending()

    async def cancel(self, context: AuthorizedContext, invitation_id: int) -> None:
        invitations = self.uow.get_repository(InvitationRepository, context)
        if not await invitations.delete(invitation_id):
            raise NotFoundError("Invitation not found")
        await self.uow.commit()
        logger.info(f"Invitation {invitation_id} cancelled in tenant {context.tenant_id}")

    async def _load_usable(self, token: str) -> TeamInvitation:
        invitation = await self.uow.get_repository(InvitationTokenRepository).get_by_token(token)
        if invitation is None:
            raise NotFoundError("Invitation not found")
        if as_utc(invitation.expires_at) <= self._clock():
            raise ExpiredError()
        if invitation.status != InvitationStatus.PENDING.value:
            raise AlreadyUsedError()
        return invitation

    async def validate(self, token: str) -> InvitationDetails:
        """Details of a usable invitation; raises NotFound/Expired/AlreadyUsed otherwise."""
        invitation = await self._load_usable(token)
        tenant = await self.uow.get_repository(TenantRepository).get_by_id(invitation.tenant_id)
        inviter = await self.uow.get_repository(UserRepository).get_by_id(invitation.invited_by)
        return InvitationDetails(
            id=invitation.id,
            email=invitation.email,
            role=invitation.role,
            tenant_name=tenant.name if tenant else "",
            inviter_name=inviter.name if inviter else "Unknown",
            expires_at=as_utc(invitation.expires_at),
        )

    async def accept(self, token: str, name: str, password: str) -> User:
        """
        Create the invited user and consume the invitation in one transaction.

        The status flip is a conditional update, so of two concurrent acceptances
        exactly one creates a user; the other rolls back with AlreadyUsedError.
        """
        invitation = await self._load_usable(token)
        invitation_id = invitation.id
        email, role, tenant_id = invitation.email, invitation.role, invitation.tenant_id

        users = self.uow.get_repository(UserRepository)
        if await users.get_by_email(email):
            raise ConflictError("A user with this email already exists")

        hashed = hash_password(password)
        try:
            async with self.uow.atomic():
                if not await self.uow.get_repository(InvitationTokenRepository).mark_accepted(invitation_id):
                    raise AlreadyUsedError()
                user = User(
                    email=email,
                    name=name.strip(),
                    hashed_password=hashed,
                    tenant_id=tenant_id,
                    role=role,
                )
                await users.create(user)
                await self.uow.flush()
        except IntegrityError:
            logger.warning(f"Invitation {invitation_id} lost a race on the email unique constraint")
            raise ConflictError("A user with this email already exists")

        logger.info(f"Invitation {invitation_id} accepted; user {user.id} joined tenant {tenant_id}")
        return user
