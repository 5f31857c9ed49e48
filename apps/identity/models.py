from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from framework.clock import utc_now


class Tenant(SQLModel, table=True):
    __tablename__ = "tenants"
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=255)
    plan: str = Field(default="trial", max_length=50)
    # active, trialing, past_due, canceled, unpaid; kept in sync by the billing webhook
    subscription_status: str = Field(default="trialing", max_length=50)
    stripe_customer_id: Optional[str] = Field(default=None, max_length=255, index=True)
    stripe_subscription_id: Optional[str] = Field(default=None, max_length=255, index=True)
    trial_ends_at: Optional[datetime] = Field(default=None)
    current_period_end: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now)


class User(SQLModel, table=True):
    __tablename__ = "users"
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(unique=True, index=True, max_length=320)
    name: str = Field(max_length=255)
    hashed_password: str = Field(max_length=255)
    tenant_id: int = Field(foreign_key="tenants.id", index=True)
    role: str = Field(default="agent", max_length=20)  # owner, agent
    created_at: datetime = Field(default_factory=utc_now)
