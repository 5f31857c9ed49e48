from datetime import timedelta
from typing import List, Optional
from loguru import logger
from sqlalchemy.exc import IntegrityError
from framework.clock import utc_now
from framework.config import settings
from framework.exceptions.handler import ConflictError, NotFoundError
from framework.permissions import AuthorizedContext, Role
from framework.repository.unit_of_work import UnitOfWork
from framework.security import IdentityClaims, dummy_verify, hash_password, verify_password
from .models import Tenant, User
from .repository import TeamMemberRepository, TenantRepository, UserRepository


def normalize_email(email: str) -> str:
    return email.strip().lower()


def check_email(value: str) -> str:
    """Light shape check for request schemas; delivery is what really validates an address."""
    value = value.strip()
    local, _, domain = value.partition("@")
    if not local or "." not in domain or " " in value:
        raise ValueError("must be a valid email address")
    return value


def check_not_blank(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be blank")
    return value


def public_identity(user: User) -> IdentityClaims:
    """Session-safe view of a user (never includes the password hash)."""
    return IdentityClaims(
        identity_id=user.id,
        email=user.email,
        name=user.name,
        tenant_id=user.tenant_id,
        role=user.role,
    )


class IdentityService:
    def __init__(self, uow: UnitOfWork):
        """Initialize Identity Service with UnitOfWork."""
        self.uow = uow

    async def create_user(self, email: str, password: str, name: str, company: str) -> User:
        """Sign up: create a tenant on a fresh trial and its owner in one transaction."""
        tenant_repo = self.uow.get_repository(TenantRepository)
        user_repo = self.uow.get_repository(UserRepository)
        email = normalize_email(email)

        if await user_repo.get_by_email(email):
            raise ConflictError("User with this email already exists")

        hashed = hash_password(password)
        try:
            tenant = Tenant(
                name=company.strip(),
                plan="trial",
                subscription_status="trialing",
                trial_ends_at=utc_now() + timedelta(days=settings.TRIAL_DAYS),
            )
            await tenant_repo.create(tenant)
            await self.uow.flush()

            user = User(
                email=email,
                name=name.strip(),
                hashed_password=hashed,
                tenant_id=tenant.id,
                role=Role.OWNER.value,
            )
            await user_repo.create(user)
            await self.uow.commit()
            logger.info(f"Tenant {tenant.id} created with owner {user.id}; trial ends {tenant.trial_ends_at:%Y-%m-%d}")
            return user

        except IntegrityError:
            await self.uow.rollback()
            logger.warning("Signup raced with an existing account for the same email")
            raise ConflictError("User with this email already exists")

    async def authenticate_user(self, email: str, password: str) -> Optional[IdentityClaims]:
        """Return the public identity for valid credentials, None otherwise."""
        user_repo = self.uow.get_repository(UserRepository)
        user = await user_repo.get_by_email(normalize_email(email))
        if not user:
            dummy_verify()
            return None
        if not verify_password(password, user.hashed_password):
            logger.info(f"Failed login for user {user.id}")
            return None

        logger.info(f"User {user.id} authenticated successfully")
        return public_identity(user)

    async def get_profile(self, context: AuthorizedContext) -> User:
        members = self.uow.get_repository(TeamMemberRepository, context)
        user = await members.get_by_id(context.identity_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    async def list_members(self, context: AuthorizedContext) -> List[User]:
        members = self.uow.get_repository(TeamMemberRepository, context)
        return await members.list_members()
