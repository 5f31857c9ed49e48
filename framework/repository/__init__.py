"""
Repository pattern: data access abstraction, decouples service layer from database session.
Tenant-scoped data goes through TenantScopedRepository only.
"""

from .base import BaseRepository, IRepository, TenantScopedRepository
from .unit_of_work import UnitOfWork

__all__ = ["BaseRepository", "IRepository", "TenantScopedRepository", "UnitOfWork"]
