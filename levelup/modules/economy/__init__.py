"""
Economy Module
==============

Domain: gold, reroll pricing, class and slot unlocks

Services:
- EconomyService: gold ledger and purchases
"""

from .service import EconomyService
from .slots import SlotRule, build_slot_rules

__all__ = [
    "EconomyService",
    "SlotRule",
    "build_slot_rules",
]
