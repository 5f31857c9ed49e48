from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field, field_validator
from framework.dependencies import (
    get_current_session,
    get_session_manager,
    get_uow,
    require_permissions,
)
from framework.exceptions.handler import UnauthorizedError
from framework.permissions import AuthorizedContext
from framework.repository.unit_of_work import UnitOfWork
from framework.response import ResponseModel
from framework.security import SessionManager, check_password
from ..service import IdentityService, check_email, check_not_blank

router = APIRouter()


class SignupSchema(BaseModel):
    email: str
    password: str = Field(min_length=6)
    name: str = Field(min_length=1)
    company: str = Field(min_length=1)

    normalize_email = field_validator("email")(check_email)
    limit_password = field_validator("password")(check_password)
    reject_blank = field_validator("name", "company")(check_not_blank)


class LoginSchema(BaseModel):
    email: str
    password: str = Field(min_length=1)

    normalize_email = field_validator("email")(check_email)


def get_identity_service(uow: UnitOfWork = Depends(get_uow)) -> IdentityService:
    """Dependency: create IdentityService."""
    return IdentityService(uow)


@router.post("/signup")
async def signup(
    data: SignupSchema,
    response: Response,
    service: IdentityService = Depends(get_identity_service),
    session_manager: SessionManager = Depends(get_session_manager),
):
    """Create a tenant and its owner, then log the owner in."""
    user = await service.create_user(data.email, data.password, data.name, data.company)
    session_manager.start_session(user).apply(response)
    return ResponseModel.success(data={
        "user": {"id": user.id, "email": user.email, "name": user.name, "role": user.role},
    })


@router.post("/login")
async def login(
    data: LoginSchema,
    response: Response,
    service: IdentityService = Depends(get_identity_service),
    session_manager: SessionManager = Depends(get_session_manager),
):
    """Login: verify credentials and set the session cookie."""
    identity = await service.authenticate_user(data.email, data.password)
    if identity is None:
        raise UnauthorizedError("Invalid email or password")

    session_manager.start_session(identity).apply(response)
    return ResponseModel.success(data={
        "user": {
            "id": identity.identity_id,
            "email": identity.email,
            "name": identity.name,
            "role": identity.role,
        }
    })


@router.post("/logout")
async def logout(
    response: Response,
    session=Depends(get_current_session),
    session_manager: SessionManager = Depends(get_session_manager),
):
    """Logout: clear the session cookie. Works with or without a session."""
    cookie = await session_manager.end_session(session)
    cookie.apply(response)
    return ResponseModel.success(data={"message": "Logged out successfully"})


@router.get("/me")
async def me(
    context: AuthorizedContext = Depends(require_permissions()),
    service: IdentityService = Depends(get_identity_service),
):
    """Current user profile."""
    user = await service.get_profile(context)
    return ResponseModel.success(data={
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "tenant_id": user.tenant_id,
        "created_at": user.created_at,
    })
