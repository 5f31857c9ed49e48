"""
Optional session revocation list kept in Redis.

Disabled by default: logout only clears the cookie, and a copied token stays
valid until it expires. With SESSION_REVOCATION_ENABLED the token id is
denylisted until its natural expiry.
"""

from datetime import datetime
from typing import Callable
from framework.clock import utc_now
from framework.logging.logger import get_logger

logger = get_logger("revocation")

KEY_PREFIX = "session:revoked:"


class RedisRevocationStore:
    def __init__(self, client, clock: Callable[[], datetime] = utc_now):
        self.client = client
        self._clock = clock

    async def is_revoked(self, token_id: str) -> bool:
        return bool(await self.client.exists(KEY_PREFIX + token_id))

    async def revoke(self, token_id: str, expires_at: datetime) -> None:
        remaining = int((expires_at - self._clock()).total_seconds())
        if remaining <= 0:
            return
        await self.client.set(KEY_PREFIX + token_id, "1", ex=remaining)
        logger.info(f"Session {token_id[:8]}… revoked for {remaining}s")
