"""Core app configuration, database, errors and credentials."""

from unity.core.config import get_settings, settings
from unity.core.database import get_db

__all__ = ["get_settings", "settings", "get_db"]
