"""
Role based authorization.

Each route declares the permissions it needs; a role grants a fixed set of
permissions and access is a set-containment check. A successful check yields an
AuthorizedContext, the only value downstream code may take a tenant id from.
"""

from enum import Enum
from typing import FrozenSet, Iterable, Optional
from pydantic import BaseModel, ConfigDict
from framework.exceptions.handler import ForbiddenError, UnauthorizedError
from framework.logging.logger import get_logger
from framework.security.tokens import UserSession

logger = get_logger("permissions")


class Role(str, Enum):
    OWNER = "owner"
    AGENT = "agent"


class Permission(str, Enum):
    TEAM_MANAGE = "team:manage"
    WIDGET_READ = "widget:read"
    WIDGET_WRITE = "widget:write"
    BILLING_MANAGE = "billing:manage"
    SETTINGS_MANAGE = "settings:manage"
    LEAD_READ = "lead:read"
    LEAD_WRITE = "lead:write"
    CONVERSATION_READ = "conversation:read"
    ANALYTICS_READ = "analytics:read"


ROLE_PERMISSIONS = {
    Role.OWNER: frozenset(Permission),
    Role.AGENT: frozenset({
        Permission.WIDGET_READ,
        Permission.LEAD_READ,
        Permission.LEAD_WRITE,
        Permission.CONVERSATION_READ,
        Permission.ANALYTICS_READ,
    }),
}


class AuthorizedContext(BaseModel):
    """Identity and tenant that an authorized request acts as."""
    model_config = ConfigDict(frozen=True)

    identity_id: int
    tenant_id: int
    role: Role
    email: str


def permissions_for(role: str) -> FrozenSet[Permission]:
    try:
        return ROLE_PERMISSIONS[Role(role)]
    except ValueError:
        return frozenset()


def authorize(session: Optional[UserSession], required: Iterable[Permission]) -> AuthorizedContext:
    """Allow or deny a session for a set of permissions."""
    if session is None:
        raise UnauthorizedError()

    required = frozenset(required)
    granted = permissions_for(session.role)
    missing = required - granted
    if not granted or missing:
        logger.warning(
            f"Identity {session.identity_id} ({session.role}) denied; "
            f"missing {sorted(p.value for p in missing) or 'role'}"
        )
        raise ForbiddenError()

    return AuthorizedContext(
        identity_id=session.identity_id,
        tenant_id=session.tenant_id,
        role=Role(session.role),
        email=session.email,
    )
