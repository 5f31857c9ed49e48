from abc import ABC, abstractmethod


class BaseDatabaseDriver(ABC):
    """Connection lifecycle shared by the SQL and Redis drivers."""

    @abstractmethod
    async def connect(self):
        pass

    @abstractmethod
    async def disconnect(self):
        pass
