"""
Invitation lifecycle tests: creation rules, validation order and single-use acceptance.
"""
from datetime import timedelta
import pytest
from framework.clock import utc_now
from framework.exceptions.handler import (
    AlreadyUsedError,
    ConflictError,
    ExpiredError,
    NotFoundError,
    ValidationError,
)
from framework.security import verify_password
from apps.identity.repository import UserRepository
from apps.team.repository import InvitationTokenRepository
from apps.team.service import InvitationService


@pytest.fixture
def service(uow) -> InvitationService:
    return InvitationService(uow)


async def test_create_normalizes_email_and_sets_expiry(service, owner, context_for):
    before = utc_now()
    invitation = await service.create(context_for(owner), "  New.Agent@Acme.TEST ", "agent")

    assert invitation.email == "new.agent@acme.test"
    assert invitation.status == "pending"
    assert invitation.tenant_id == owner.tenant_id
    assert invitation.invited_by == owner.id
    assert len(invitation.token) >= 32
    assert invitation.expires_at - invitation.created_at == timedelta(days=7)
    assert invitation.created_at >= before


async def test_create_rejects_unknown_role(service, owner, context_for):
    with pytest.raises(ValidationError):
        await service.create(context_for(owner), "x@acme.test", "admin")


async def test_create_rejects_existing_member(service, owner, agent, context_for):
    with pytest.raises(ValidationError, match="already a member"):
        await service.create(context_for(owner), "AGENT@acme.test", "agent")


async def test_create_rejects_duplicate_pending(service, owner, context_for):
    await service.create(context_for(owner), "x@acme.test", "agent")
    with pytest.raises(ValidationError, match="already sent"):
        await service.create(context_for(owner), "x@acme.test", "owner")


async def test_validate_returns_details(service, owner, tenant, context_for):
    invitation = await service.create(context_for(owner), "x@acme.test", "agent")
    details = await service.validate(invitation.token)

    assert details.email == "x@acme.test"
    assert details.role == "agent"
    assert details.tenant_name == tenant.name
    assert details.inviter_name == "Olive Owner"


async def test_validate_unknown_token(service):
    with pytest.raises(NotFoundError):
        await service.validate("no-such-token")


async def test_expired_pending_invitation_is_expired(uow, service, owner, context_for):
    invitation = await service.create(context_for(owner), "x@acme.test", "agent")
    token = invitation.token

    later = InvitationService(uow, clock=lambda: utc_now() + timedelta(days=7, seconds=1))
    with pytest.raises(ExpiredError):
        await later.validate(token)
    with pytest.raises(ExpiredError):
        await later.accept(token, "Late Larry", "password1")


async def test_accept_creates_user_once(async_session, service, owner, context_for):
    invitation = await service.create(context_for(owner), "new@acme.test", "agent")
    token, tenant_id = invitation.token, owner.tenant_id

    user = await service.accept(token, " New Person ", "password1")
    assert user.email == "new@acme.test"
    assert user.name == "New Person"
    assert user.role == "agent"
    assert user.tenant_id == tenant_id
    assert verify_password("password1", user.hashed_password)

    with pytest.raises(AlreadyUsedError):
        await service.accept(token, "Again", "password2")
    with pytest.raises(AlreadyUsedError):
        await service.validate(token)

    assert await UserRepository(async_session).count(email="new@acme.test") == 1


async def test_mark_accepted_flips_only_once(async_session, service, owner, context_for):
    invitation = await service.create(context_for(owner), "x@acme.test", "agent")
    repo = InvitationTokenRepository(async_session)

    assert await repo.mark_accepted(invitation.id) is True
    assert await repo.mark_accepted(invitation.id) is False


async def test_lost_race_rolls_back_user(async_session, service, owner, context_for, monkeypatch):
    invitation = await service.create(context_for(owner), "racer@acme.test", "agent")
    token, invitation_id = invitation.token, invitation.id
    flipped = []
    lookup = UserRepository.get_by_email

    # A concurrent request accepts between our validation and our write
    async def accept_elsewhere(self, email):
        found = await lookup(self, email)
        flipped.append(await InvitationTokenRepository(self.session).mark_accepted(invitation_id))
        await self.session.commit()
        return found

    monkeypatch.setattr(UserRepository, "get_by_email", accept_elsewhere)
    with pytest.raises(AlreadyUsedError):
        await service.accept(token, "Racer", "password1")

    assert flipped == [True]
    assert await UserRepository(async_session).count(email="racer@acme.test") == 0


async def test_accepted_invitation_past_expiry_reports_expired(uow, service, owner, context_for):
    invitation = await service.create(context_for(owner), "x@acme.test", "agent")
    token = invitation.token
    await service.accept(token, "New Person", "password1")

    later = InvitationService(uow, clock=lambda: utc_now() + timedelta(days=8))
    with pytest.raises(ExpiredError):
        await later.validate(token)


async def test_accept_conflicts_with_existing_account(service, owner, make_tenant, make_user, context_for):
    other = await make_tenant("Other Co")
    await make_user(other, "taken@acme.test")
    invitation = await service.create(context_for(owner), "taken@acme.test", "agent")

    with pytest.raises(ConflictError):
        await service.accept(invitation.token, "Taken", "password1")


async def test_cancel_removes_invitation(service, owner, context_for):
    context = context_for(owner)
    invitation = await service.create(context, "x@acme.test", "agent")
    token = invitation.token

    await service.cancel(context, invitation.id)
    assert await service.list_pending(context) == []
    with pytest.raises(NotFoundError):
        await service.validate(token)
