"""
Maintenance Module
==================

Domain: first-run initialization and calendar-driven regeneration

Services:
- SeedService: seeds an empty store
- InitializationGuard: single-flight wrapper around seeding
- MaintenanceScheduler: interval / foreground ticks across day and week boundaries
"""

from .guard import InitializationGuard
from .scheduler import MaintenanceScheduler
from .seeding import SeedService

__all__ = [
    "InitializationGuard",
    "MaintenanceScheduler",
    "SeedService",
]
