"""
Security primitives: password hashing, session tokens and the cookie-backed session manager.
"""

from .passwords import MAX_PASSWORD_BYTES, check_password, hash_password, verify_password, dummy_verify
from .tokens import IdentityClaims, UserSession, TokenService
from .session import SessionCookie, SessionManager
from .revocation import RedisRevocationStore

__all__ = [
    "MAX_PASSWORD_BYTES",
    "check_password",
    "hash_password",
    "verify_password",
    "dummy_verify",
    "IdentityClaims",
    "UserSession",
    "TokenService",
    "SessionCookie",
    "SessionManager",
    "RedisRevocationStore",
]
