"""Service wiring."""

from levelup.core.services.container import ServiceContainer

__all__ = ["ServiceContainer"]
