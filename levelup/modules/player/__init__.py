"""
Player Module
=============

Domain: the player profile, class roster reads and class ordering

Services:
- PlayerService: user/class snapshots and display ordering
"""

from .service import PlayerService, UserRepository, sort_classes

__all__ = [
    "PlayerService",
    "UserRepository",
    "sort_classes",
]
