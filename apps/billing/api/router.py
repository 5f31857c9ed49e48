from typing import Optional
from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from framework.billing.provider import BaseBillingProvider
from framework.dependencies import get_uow, require_permissions
from framework.permissions import AuthorizedContext, Permission
from framework.repository.unit_of_work import UnitOfWork
from framework.response import ResponseModel
from ..service import BillingService

router = APIRouter()

billing_manager = require_permissions(Permission.BILLING_MANAGE)


class CheckoutSchema(BaseModel):
    plan_id: str


def get_billing_provider(request: Request) -> Optional[BaseBillingProvider]:
    return getattr(request.app.state, "billing_provider", None)


def get_billing_service(
    uow: UnitOfWork = Depends(get_uow),
    provider: Optional[BaseBillingProvider] = Depends(get_billing_provider),
) -> BillingService:
    return BillingService(uow, provider)


@router.get("")
async def billing_overview(
    context: AuthorizedContext = Depends(billing_manager),
    service: BillingService = Depends(get_billing_service),
):
    return ResponseModel.success(data=await service.overview(context))


@router.post("/checkout")
async def checkout(
    data: CheckoutSchema,
    context: AuthorizedContext = Depends(billing_manager),
    service: BillingService = Depends(get_billing_service),
):
    url = await service.create_checkout(context, data.plan_id)
    return ResponseModel.success(data={"url": url})


@router.post("/portal")
async def portal(
    context: AuthorizedContext = Depends(billing_manager),
    service: BillingService = Depends(get_billing_service),
):
    url = await service.create_portal(context)
    return ResponseModel.success(data={"url": url})
