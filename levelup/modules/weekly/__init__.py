"""
Weekly Module
=============

Domain: the weekly quest bundle

Services:
- WeeklyBundleService: eligibility, bundle generation and multiplied payout
"""

from .service import WeeklyBundleService

__all__ = [
    "WeeklyBundleService",
]
