from typing import Optional
from loguru import logger
from framework.billing.provider import BaseBillingProvider
from framework.clock import as_utc, utc_now
from framework.config import settings
from framework.exceptions.handler import BillingUnavailableError, NotFoundError, ValidationError
from framework.permissions import AuthorizedContext
from framework.repository.unit_of_work import UnitOfWork
from apps.identity.models import Tenant
from apps.identity.repository import TeamMemberRepository, TenantRepository
from apps.widgets.repository import WidgetRepository
from .plans import PLANS
from .subscription import is_active, is_trial_expired, serving_decision, trial_days_remaining


class BillingService:
    def __init__(self, uow: UnitOfWork, provider: Optional[BaseBillingProvider] = None):
        self.uow = uow
        self.provider = provider

    async def _tenant(self, context: AuthorizedContext) -> Tenant:
        tenant = await self.uow.get_repository(TenantRepository).get_for_context(context)
        if tenant is None:
            raise NotFoundError("Tenant not found")
        return tenant

    def _require_provider(self) -> BaseBillingProvider:
        if self.provider is None:
            raise BillingUnavailableError()
        return self.provider

    async def overview(self, context: AuthorizedContext) -> dict:
        """Billing state, usage and catalog for the caller's tenant."""
        tenant = await self._tenant(context)
        now = utc_now()
        decision = serving_decision(tenant, now)
        widgets = await self.uow.get_repository(WidgetRepository, context).count()
        members = await self.uow.get_repository(TeamMemberRepository, context).count()

        plan = PLANS.get(tenant.plan)
        return {
            "billing": {
                "plan": tenant.plan,
                "plan_details": plan.model_dump() if plan else None,
                "subscription_status": tenant.subscription_status,
                "current_period_end": as_utc(tenant.current_period_end),
                "trial_ends_at": as_utc(tenant.trial_ends_at),
                "trial_days_remaining": trial_days_remaining(tenant.trial_ends_at, now),
                "has_billing_account": bool(tenant.stripe_customer_id),
                "has_active_subscription": bool(tenant.stripe_subscription_id),
                "is_active": is_active(tenant.subscription_status),
                "trial_expired": is_trial_expired(tenant.trial_ends_at, tenant.subscription_status, now),
                "widgets_paused": decision.paused,
                "pause_reason": decision.message,
            },
            "usage": {"widgets": widgets, "team_members": members},
            "plans": {plan_id: p.model_dump(exclude={"price_id"}) for plan_id, p in PLANS.items()},
        }

    async def create_checkout(self, context: AuthorizedContext, plan_id: str) -> str:
        provider = self._require_provider()
        plan = PLANS.get(plan_id)
        if plan is None:
            raise ValidationError("Invalid plan selected")
        if not plan.price_id:
            raise BillingUnavailableError("Plan pricing is not configured")

        tenant = await self._tenant(context)
        customer_id = tenant.stripe_customer_id
        if not customer_id:
            customer_id = await provider.create_customer(context.email, tenant.name, tenant.id)
            tenant.stripe_customer_id = customer_id
            await self.uow.get_repository(TenantRepository).update(tenant)
            await self.uow.commit()
            logger.info(f"Billing customer created for tenant {tenant.id}")

        app_url = settings.APP_URL.rstrip("/")
        return await provider.create_checkout_session(
            customer_id,
            plan.price_id,
            tenant.id,
            f"{app_url}/app/billing?success=true",
            f"{app_url}/app/billing?canceled=true",
        )

    async def create_portal(self, context: AuthorizedContext) -> str:
        provider = self._require_provider()
        tenant = await self._tenant(context)
        if not tenant.stripe_customer_id:
            raise ValidationError("No billing account found. Please subscribe to a plan first.")
        return await provider.create_portal_session(
            tenant.stripe_customer_id,
            f"{settings.APP_URL.rstrip('/')}/app/billing",
        )
