"""
Progression Module
==================

Domain: per-class level and XP ledger

Services:
- ProgressionService: XP awards and multi-level-up resolution
"""

from .service import CharacterClassRepository, ProgressionService

__all__ = [
    "CharacterClassRepository",
    "ProgressionService",
]
