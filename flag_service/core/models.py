"""Every mapped model, imported so ``Base.metadata`` knows all tables.

Alembic autogenerate and the sqlite ``create_all`` path import this module.
"""

from __future__ import annotations

from flag_service.features.featureflags.models import FeatureFlag
from flag_service.features.users.models import User

__all__ = ["FeatureFlag", "User"]
