from datetime import datetime
from typing import Callable, List, Optional
from pydantic import BaseModel
from framework.clock import utc_now
from framework.exceptions.handler import NotFoundError, ValidationError
from framework.logging.logger import get_logger
from framework.permissions import AuthorizedContext
from framework.repository.unit_of_work import UnitOfWork
from apps.billing.plans import UNLIMITED, plan_limits
from apps.billing.subscription import ServingDecision, serving_decision
from apps.identity.repository import TenantRepository
from .models import Widget
from .repository import PublicWidgetRepository, WidgetRepository

logger = get_logger("widgets")

PAUSED_MESSAGE = "This chat service is temporarily unavailable. Please contact the site owner."


class PublicWidgetConfig(BaseModel):
    """Client-side widget settings; no tenant identifiers leave the server."""
    key: str
    name: str
    greeting_text: str
    primary_color: str
    position: str
    bubble_text: str
    agent_name: str
    company_name: str


class PublicConfigResult(BaseModel):
    decision: ServingDecision
    config: Optional[PublicWidgetConfig] = None


class WidgetService:
    def __init__(self, uow: UnitOfWork, clock: Callable[[], datetime] = utc_now):
        self.uow = uow
        self._clock = clock

    async def create_widget(self, context: AuthorizedContext, **fields) -> Widget:
        widgets = self.uow.get_repository(WidgetRepository, context)
        tenant = await self.uow.get_repository(TenantRepository).get_for_context(context)
        if tenant is None:
            raise NotFoundError("Tenant not found")

        limit = plan_limits(tenant.plan).widgets
        if limit != UNLIMITED and await widgets.count() >= limit:
            raise ValidationError(f"Your plan allows {limit} widget(s). Upgrade to add more.")

        widget = Widget(**fields)
        await widgets.create(widget)
        await self.uow.commit()
        logger.info(f"Widget {widget.id} created in tenant {context.tenant_id}")
        return widget

    async def list_widgets(self, context: AuthorizedContext) -> List[Widget]:
        return await self.uow.get_repository(WidgetRepository, context).list_widgets()

    async def public_config(self, public_key: str) -> PublicConfigResult:
        """Resolve an embed key to its config, or to a paused decision for a lapsed tenant."""
        widget = await self.uow.get_repository(PublicWidgetRepository).get_active_by_public_key(public_key)
        if widget is None:
            raise NotFoundError("Widget not found or inactive")

        tenant = await self.uow.get_repository(TenantRepository).get_by_id(widget.tenant_id)
        if tenant is None:
            raise NotFoundError("Widget not found or inactive")

        decision = serving_decision(tenant, self._clock())
        if decision.paused:
            logger.info(f"Widget {widget.id} paused: {decision.reason.value}")
            return PublicConfigResult(decision=decision)

        return PublicConfigResult(
            decision=decision,
            config=PublicWidgetConfig(
                key=widget.public_key,
                name=widget.name,
                greeting_text=widget.greeting_text,
                primary_color=widget.primary_color,
                position=widget.position,
                bubble_text=widget.bubble_text,
                agent_name=widget.agent_name or "AI Assistant",
                company_name=widget.company_name or "",
            ),
        )
