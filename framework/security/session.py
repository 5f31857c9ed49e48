"""
Session manager: maps the session cookie to a verified identity and builds the
cookies that start and end a session.
"""

from dataclasses import dataclass
from typing import Optional
from fastapi import Request, Response
from framework.config import Settings
from framework.exceptions.handler import UnauthorizedError
from framework.logging.logger import get_logger
from .tokens import IdentityClaims, TokenService, UserSession
from .revocation import RedisRevocationStore

logger = get_logger("session")


@dataclass(frozen=True)
class SessionCookie:
    """Cookie descriptor; apply() writes it onto a response."""
    name: str
    value: str
    max_age: int
    secure: bool
    httponly: bool = True
    samesite: str = "lax"
    path: str = "/"

    @property
    def is_deletion(self) -> bool:
        return self.max_age == 0

    def apply(self, response: Response) -> None:
        if self.is_deletion:
            response.delete_cookie(
                key=self.name,
                path=self.path,
                httponly=self.httponly,
                secure=self.secure,
                samesite=self.samesite,
            )
            return
        response.set_cookie(
            key=self.name,
            value=self.value,
            max_age=self.max_age,
            path=self.path,
            httponly=self.httponly,
            secure=self.secure,
            samesite=self.samesite,
        )


class SessionManager:
    def __init__(
        self,
        token_service: TokenService,
        config: Settings,
        revocation_store: Optional[RedisRevocationStore] = None,
    ):
        self.token_service = token_service
        self.cookie_name = config.SESSION_COOKIE_NAME
        self.cookie_secure = config.COOKIE_SECURE
        self.cookie_samesite = config.COOKIE_SAMESITE
        self.max_age = int(token_service.ttl.total_seconds())
        self.revocation_store = revocation_store

    async def current_session(self, request: Request) -> Optional[UserSession]:
        """Verified session for the request, or None. Never raises for a missing session."""
        token = request.cookies.get(self.cookie_name)
        if not token:
            return None

        session = self.token_service.verify(token)
        if session is None:
            logger.debug("Session cookie present but did not verify")
            return None

        if self.revocation_store and await self.revocation_store.is_revoked(session.token_id):
            logger.info(f"Rejected revoked session for identity {session.identity_id}")
            return None
        return session

    async def require_session(self, request: Request) -> UserSession:
        session = await self.current_session(request)
        if session is None:
            raise UnauthorizedError()
        return session

    def start_session(self, identity) -> SessionCookie:
        """Issue a token for a user row (or IdentityClaims) and wrap it in a cookie."""
        if isinstance(identity, IdentityClaims):
            claims = identity
        else:
            claims = IdentityClaims(
                identity_id=identity.id,
                email=identity.email,
                name=identity.name,
                tenant_id=identity.tenant_id,
                role=identity.role,
            )
        token = self.token_service.issue(claims)
        return SessionCookie(
            name=self.cookie_name,
            value=token,
            max_age=self.max_age,
            secure=self.cookie_secure,
            samesite=self.cookie_samesite,
        )

    async def end_session(self, session: Optional[UserSession] = None) -> SessionCookie:
        """Cookie that deletes the session; safe to call without a session."""
        if session is not None and self.revocation_store:
            await self.revocation_store.revoke(session.token_id, session.expires_at)
        return SessionCookie(
            name=self.cookie_name,
            value="",
            max_age=0,
            secure=self.cookie_secure,
            samesite=self.cookie_samesite,
        )
