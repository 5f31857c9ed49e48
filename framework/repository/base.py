"""
Repository abstract base class and generic implementations.
"""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar, Optional, List, Type
from sqlmodel import SQLModel, select, func
from sqlmodel.ext.asyncio.session import AsyncSession
from framework.permissions import AuthorizedContext

T = TypeVar("T", bound=SQLModel)


class IRepository(ABC, Generic[T]):
    """Repository interface; defines standard data access API."""

    @abstractmethod
    async def get_by_id(self, id: int) -> Optional[T]:
        """Get entity by ID."""
        pass

    @abstractmethod
    async def create(self, entity: T) -> T:
        """Create entity."""
        pass

    @abstractmethod
    async def delete(self, id: int) -> bool:
        """Delete entity."""
        pass


class BaseRepository(IRepository[T]):
    """Unscoped repository for global lookups (login by email, public keys, invitation tokens)."""

    def __init__(self, session: AsyncSession, model: Type[T]):
        self.session = session
        self.model = model

    def _select(self):
        return select(self.model)

    def _filtered(self, **filters):
        statement = self._select()
        for key, value in filters.items():
            if not hasattr(self.model, key):
                raise AttributeError(f"{self.model.__name__} has no column {key!r}")
            statement = statement.where(getattr(self.model, key) == value)
        return statement

    async def get_by_id(self, id: int) -> Optional[T]:
        return await self.find_one(id=id)

    async def create(self, entity: T) -> T:
        self.session.add(entity)
        return entity

    async def update(self, entity: T) -> T:
        """Update entity (SQLModel tracks changes)."""
        self.session.add(entity)
        return entity

    async def delete(self, id: int) -> bool:
        entity = await self.get_by_id(id)
        if entity:
            await self.session.delete(entity)
            return True
        return False

    async def find_one(self, **filters) -> Optional[T]:
        """Find one entity by filters (e.g. email='a@b.co')."""
        result = await self.session.exec(self._filtered(**filters).limit(1))
        return result.first()

    async def find_all(self, limit: int = 100, offset: int = 0, **filters) -> List[T]:
        statement = self._filtered(**filters).limit(limit).offset(offset)
        result = await self.session.exec(statement)
        return list(result.all())

    async def count(self, **filters) -> int:
        statement = select(func.count()).select_from(self._filtered(**filters).subquery())
        result = await self.session.exec(statement)
        return result.one()


class TenantScopedRepository(BaseRepository[T]):
    """
    Repository bound to one tenant.

    Every statement it builds starts from _select(), which carries
    `tenant_id = context.tenant_id`, so rows of other tenants can be neither read
    nor modified through it. Models must have a tenant_id column.
    """

    def __init__(self, session: AsyncSession, model: Type[T], context: AuthorizedContext):
        if not hasattr(model, "tenant_id"):
            raise TypeError(f"{model.__name__} is not tenant scoped")
        super().__init__(session, model)
        self.context = context

    @property
    def tenant_id(self) -> int:
        return self.context.tenant_id

    def _select(self):
        return select(self.model).where(self.model.tenant_id == self.context.tenant_id)

    def _filtered(self, **filters):
        if "tenant_id" in filters:
            raise ValueError("tenant_id comes from the authorized context, not from filters")
        return super()._filtered(**filters)

    async def create(self, entity: T) -> T:
        if entity.tenant_id is not None and entity.tenant_id != self.context.tenant_id:
            raise PermissionError("Refusing to write an entity into another tenant")
        entity.tenant_id = self.context.tenant_id
        self.session.add(entity)
        return entity

    async def update(self, entity: T) -> T:
        if entity.tenant_id != self.context.tenant_id:
            raise PermissionError("Refusing to write an entity into another tenant")
        self.session.add(entity)
        return entity
