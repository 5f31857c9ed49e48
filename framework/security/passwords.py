"""
Credential store: salted bcrypt hashing through passlib.
"""

from typing import Optional
from passlib.context import CryptContext
from passlib.exc import PasswordSizeError
from framework.config import settings
from framework.exceptions.handler import CryptoError, ValidationError
from framework.logging.logger import get_logger

logger = get_logger("passwords")

# bcrypt only reads the first 72 bytes of its input
MAX_PASSWORD_BYTES = 72

# Password hashing (BCrypt)
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)


def password_too_long(password: str) -> bool:
    return len(password.encode("utf-8")) > MAX_PASSWORD_BYTES


def check_password(value: str) -> str:
    """Field validator for request schemas that set a new password."""
    if password_too_long(value):
        raise ValueError(f"must be at most {MAX_PASSWORD_BYTES} bytes")
    return value


def hash_password(password: str) -> str:
    if password_too_long(password):
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    try:
        return pwd_context.hash(password)
    except PasswordSizeError as e:
        raise ValidationError("Password is too long") from e
    except (ValueError, TypeError, RuntimeError) as e:
        raise CryptoError(f"Password hashing failed: {type(e).__name__}") from e


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Check a password against a stored hash; mismatches and unusable hashes return False."""
    if not hashed_password:
        return False
    # No stored hash was made from such a password; bcrypt would compare a truncated prefix
    if password_too_long(plain_password):
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        logger.error("Stored password hash has an unrecognised format")
        return False


def dummy_verify() -> None:
    """Spend one verify's worth of time when there is no hash to check against."""
    pwd_context.dummy_verify()
