import secrets
from datetime import datetime
from typing import Optional
from sqlmodel import SQLModel, Field
from framework.clock import utc_now


def new_public_key() -> str:
    return secrets.token_urlsafe(24)


class Widget(SQLModel, table=True):
    """Embeddable chat widget; public_key is the only handle the embedding site ever sees."""
    __tablename__ = "widgets"

    id: Optional[int] = Field(default=None, primary_key=True)
    tenant_id: int = Field(foreign_key="tenants.id", index=True)
    public_key: str = Field(default_factory=new_public_key, unique=True, index=True, max_length=64)
    name: str = Field(max_length=255)
    greeting_text: str = Field(max_length=1000)
    primary_color: str = Field(default="#2563EB", max_length=7)
    position: str = Field(default="bottom-right", max_length=32)
    bubble_text: str = Field(default="Chat with my AI assistant", max_length=255)
    agent_name: Optional[str] = Field(default=None, max_length=255)
    company_name: Optional[str] = Field(default=None, max_length=255)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utc_now)
