"""Storage: declarative base, mixins and the async DatabaseService."""

from levelup.core.database.base import Base, IdMixin, TimestampMixin
from levelup.core.database.service import DatabaseService

__all__ = ["Base", "DatabaseService", "IdMixin", "TimestampMixin"]
