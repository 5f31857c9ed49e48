import redis.asyncio as redis
from .base import BaseDatabaseDriver


class RedisDriver(BaseDatabaseDriver):
    """Redis connection used by the optional session revocation store."""

    def __init__(self, url: str):
        self.url = url
        self.client = None

    async def connect(self):
        await self.get_client().ping()

    async def disconnect(self):
        if self.client:
            await self.client.aclose()
            self.client = None

    def get_client(self):
        # from_url does not open a connection until the first command
        if self.client is None:
            self.client = redis.from_url(self.url, decode_responses=True)
        return self.client
