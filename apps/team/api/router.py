from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, field_validator
from framework.dependencies import get_uow, require_permissions
from framework.permissions import AuthorizedContext, Permission
from framework.repository.unit_of_work import UnitOfWork
from framework.response import ResponseModel
from framework.security import check_password
from apps.identity.service import IdentityService, check_email, check_not_blank
from ..service import InvitationService

# Owner-side team management, mounted under /team
router = APIRouter()
# Invitee-side, token addressed and unauthenticated, mounted under /invite
invite_router = APIRouter()

team_manager = require_permissions(Permission.TEAM_MANAGE)


class InviteSchema(BaseModel):
    email: str
    role: str

    normalize_email = field_validator("email")(check_email)


class AcceptInviteSchema(BaseModel):
    name: str = Field(min_length=1)
    password: str = Field(min_length=6)

    reject_blank = field_validator("name")(check_not_blank)
    limit_password = field_validator("password")(check_password)


def get_invitation_service(uow: UnitOfWork = Depends(get_uow)) -> InvitationService:
    return InvitationService(uow)


@router.get("/members")
async def list_members(
    context: AuthorizedContext = Depends(team_manager),
    uow: UnitOfWork = Depends(get_uow),
):
    members = await IdentityService(uow).list_members(context)
    return ResponseModel.success(data=[
        {"id": m.id, "name": m.name, "email": m.email, "role": m.role, "created_at": m.created_at}
        for m in members
    ])


@router.get("/invitations")
async def list_invitations(
    context: AuthorizedContext = Depends(team_manager),
    service: InvitationService = Depends(get_invitation_service),
):
    """Pending invitations of the caller's tenant, newest first."""
    invitations = await service.list_pending(context)
    return ResponseModel.success(data=[
        {
            "id": inv.id,
            "email": inv.email,
            "role": inv.role,
            "status": inv.status,
            "created_at": inv.created_at,
            "expires_at": inv.expires_at,
        }
        for inv in invitations
    ])


@router.post("/invite")
async def invite(
    data: InviteSchema,
    context: AuthorizedContext = Depends(team_manager),
    service: InvitationService = Depends(get_invitation_service),
):
    invitation = await service.create(context, data.email, data.role)
    return ResponseModel.success(
        data={"invitation_id": invitation.id},
        message="Invitation sent successfully",
    )


@router.delete("/invite/{invitation_id}")
async def cancel_invite(
    invitation_id: int,
    context: AuthorizedContext = Depends(team_manager),
    service: InvitationService = Depends(get_invitation_service),
):
    await service.cancel(context, invitation_id)
    return ResponseModel.success(message="Invitation cancelled successfully")


@invite_router.get("/{token}")
async def get_invitation(
    token: str,
    service: InvitationService = Depends(get_invitation_service),
):
    details = await service.validate(token)
    return ResponseModel.success(data=details.model_dump())


@invite_router.post("/{token}/accept")
async def accept_invitation(
    token: str,
    data: AcceptInviteSchema,
    service: InvitationService = Depends(get_invitation_service),
):
    user = await service.accept(token, data.name, data.password)
    return ResponseModel.success(
        data={"user_id": user.id},
        message="Account created successfully",
    )
