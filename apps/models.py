"""
Model registration for migrations: import all models that should be migrated by Alembic here.
When adding an app, import its table models here; alembic/env.py stays untouched.
"""
from apps.identity.models import Tenant, User
from apps.team.models import TeamInvitation
from apps.widgets.models import Widget

__all__ = ["Tenant", "User", "TeamInvitation", "Widget"]
