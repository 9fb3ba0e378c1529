"""Database models package."""
from app.db.models.user import User, RoleEnum
from app.db.models.event import Event

__all__ = ["User", "RoleEnum", "Event"]
