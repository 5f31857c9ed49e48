import secrets
from datetime import datetime
from enum import Enum
from typing import Optional
from sqlmodel import SQLModel, Field
from framework.clock import utc_now


class InvitationStatus(str, Enum):
    """Stored states. Expiry is never stored; it is computed from expires_at on read."""
    PENDING = "pending"
    ACCEPTED = "accepted"


def new_invitation_token() -> str:
    return secrets.token_urlsafe(32)


class TeamInvitation(SQLModel, table=True):
    __tablename__ = "team_invitations"

    id: Optional[int] = Field(default=None, primary_key=True)
    token: str = Field(default_factory=new_invitation_token, unique=True, index=True, max_length=64)
    email: str = Field(index=True, max_length=320)
    role: str = Field(max_length=20)
    tenant_id: int = Field(foreign_key="tenants.id", index=True)
    invited_by: int = Field(foreign_key="users.id")
    status: str = Field(default=InvitationStatus.PENDING.value, max_length=20)
    created_at: datetime = Field(default_factory=utc_now)
    expires_at: datetime
