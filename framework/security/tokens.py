"""
Token service: self-contained HS256 session tokens.

Tokens carry the identity claims needed to authorize a request, so verifying one
needs nothing but the signing secret. There is no server-side session table.
"""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
from jose import jwt, JWTError
from pydantic import BaseModel, ValidationError as PydanticValidationError
from framework.clock import utc_now
from framework.exceptions.handler import CryptoError

DEFAULT_TOKEN_TTL = timedelta(days=7)

REQUIRED_CLAIMS = frozenset({"sub", "email", "name", "tenant_id", "role", "iat", "exp", "jti"})


class IdentityClaims(BaseModel):
    """Public identity fields embedded in a session token."""
    identity_id: int
    email: str
    name: str
    tenant_id: int
    role: str


class UserSession(IdentityClaims):
    """Claims recovered from a verified token."""
    issued_at: datetime
    expires_at: datetime
    token_id: str


class TokenService:
    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        ttl: timedelta = DEFAULT_TOKEN_TTL,
        clock: Callable[[], datetime] = utc_now,
    ):
        if not secret:
            raise ValueError("TokenService requires a signing secret")
        self._secret = secret
        self.algorithm = algorithm
        self.ttl = ttl
        self._clock = clock

    def issue(self, claims: IdentityClaims) -> str:
        """Sign claims into a token; iat/exp are always computed here."""
        issued_at = int(self._clock().timestamp())
        payload = {
            "sub": str(claims.identity_id),
            "email": claims.email,
            "name": claims.name,
            "tenant_id": claims.tenant_id,
            "role": claims.role,
            "iat": issued_at,
            "exp": issued_at + int(self.ttl.total_seconds()),
            "jti": secrets.token_hex(16),
        }
        try:
            return jwt.encode(payload, self._secret, algorithm=self.algorithm)
        except JWTError as e:
            raise CryptoError(f"Token signing failed: {type(e).__name__}") from e

    def verify(self, token: Optional[str]) -> Optional[UserSession]:
        """Return the session for a valid token, None for anything else."""
        if not token:
            return None
        try:
            # Expiry is checked below against our own clock
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"verify_exp": False},
            )
        except JWTError:
            return None

        if not REQUIRED_CLAIMS.issubset(payload.keys()):
            return None

        exp, iat = payload["exp"], payload["iat"]
        if not isinstance(exp, int) or not isinstance(iat, int) or isinstance(exp, bool):
            return None
        if exp <= int(self._clock().timestamp()):
            return None

        try:
            return UserSession(
                identity_id=int(payload["sub"]),
                email=payload["email"],
                name=payload["name"],
                tenant_id=payload["tenant_id"],
                role=payload["role"],
                issued_at=datetime.fromtimestamp(iat, tz=timezone.utc),
                expires_at=datetime.fromtimestamp(exp, tz=timezone.utc),
                token_id=payload["jti"],
            )
        except (TypeError, ValueError, PydanticValidationError):
            return None
