"""
LevelUp progression engine.

Single-player quest and class progression core: level scaling, quest
lifecycle, the gold economy, weekly bundles and calendar-driven maintenance.
"""

__version__ = "0.1.0"
