from typing import Optional
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from framework.dependencies import get_uow, require_permissions
from framework.exceptions.handler import NotFoundError
from framework.permissions import AuthorizedContext, Permission
from framework.repository.unit_of_work import UnitOfWork
from framework.response import ResponseModel
from ..service import PAUSED_MESSAGE, WidgetService

# Dashboard widget management, mounted under /widgets
router = APIRouter()
# Anonymous embed lookups, mounted under /widget-config
public_router = APIRouter()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


class WidgetCreateSchema(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    greeting_text: str = Field(min_length=1, max_length=1000)
    primary_color: str = Field(pattern=r"^#[0-9A-Fa-f]{6}$")
    position: str = "bottom-right"
    bubble_text: str = "Chat with my AI assistant"
    agent_name: Optional[str] = None
    company_name: Optional[str] = None
    is_active: bool = True


def get_widget_service(uow: UnitOfWork = Depends(get_uow)) -> WidgetService:
    return WidgetService(uow)


def _widget_dict(widget) -> dict:
    return widget.model_dump(exclude={"tenant_id"})


@router.get("")
async def list_widgets(
    context: AuthorizedContext = Depends(require_permissions(Permission.WIDGET_READ)),
    service: WidgetService = Depends(get_widget_service),
):
    widgets = await service.list_widgets(context)
    return ResponseModel.success(data=[_widget_dict(w) for w in widgets])


@router.post("")
async def create_widget(
    data: WidgetCreateSchema,
    context: AuthorizedContext = Depends(require_permissions(Permission.WIDGET_WRITE)),
    service: WidgetService = Depends(get_widget_service),
):
    widget = await service.create_widget(context, **data.model_dump())
    return ResponseModel.success(data=_widget_dict(widget))


@public_router.get("")
async def widget_config(
    key: Optional[str] = None,
    widget_key: Optional[str] = None,
    service: WidgetService = Depends(get_widget_service),
):
    """Public config for the embed script. Open CORS; no session involved."""
    public_key = key or widget_key
    if not public_key:
        return JSONResponse(
            status_code=400,
            content=ResponseModel.fail(code=400, message="Widget key is required"),
            headers=CORS_HEADERS,
        )

    try:
        result = await service.public_config(public_key)
    except NotFoundError as e:
        return JSONResponse(
            status_code=e.status_code,
            content=ResponseModel.fail(code=e.code, message=e.message),
            headers=CORS_HEADERS,
        )

    if result.decision.paused:
        return JSONResponse(
            content=ResponseModel.success(
                data={"service_paused": True, "message": PAUSED_MESSAGE},
                message="paused",
            ),
            headers=CORS_HEADERS,
        )

    return JSONResponse(
        content=ResponseModel.success(data={"service_paused": False, "config": result.config.model_dump()}),
        headers={**CORS_HEADERS, "Cache-Control": "public, max-age=300"},
    )


@public_router.options("")
async def widget_config_preflight():
    return JSONResponse(content={}, headers=CORS_HEADERS)
