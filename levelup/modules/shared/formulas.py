"""
LevelUp Scaling Functions

Purpose
-------
Pure calculation functions for progression: the level-to-XP curve, the
level-up algorithm, requirement interpolation, reward scaling, the reroll
price curve and weekly reward math.

Design Notes
------------
- Pure functions only: no database, no config, no clock. Balance numbers are
  passed in by the calling service.
- Rounding is half-up (``2.5 -> 3``), not Python's banker's rounding, so a
  value exactly between two integers always rounds the same way.
- Level is clamped to ``[MIN_LEVEL, MAX_LEVEL]`` wherever it feeds a scale.

Usage
-----
    from levelup.modules.shared.formulas import scaled_reward, xp_to_next_level

    xp_to_next_level(3)        # 300
    scaled_reward(10, 100)     # 100
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from levelup.modules.shared.constants import MAX_LEVEL, MIN_LEVEL, XP_PER_LEVEL


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer, ties away from zero for positives.

    Example:
        >>> round_half_up(2.5)
        3
        >>> round_half_up(2.4)
        2
    """
    return int(math.floor(value + 0.5))


def clamp_level(level: int) -> int:
    return max(MIN_LEVEL, min(MAX_LEVEL, level))


# ============================================================================
# LEVEL CURVE
# ============================================================================


def xp_to_next_level(level: int) -> int:
    """
    XP needed to go from ``level`` to ``level + 1``.

    Linear: ``level * 100``. Max level has no next threshold and returns 0.

    Example:
        >>> xp_to_next_level(1)
        100
        >>> xp_to_next_level(100)
        0
    """
    if level >= MAX_LEVEL:
        return 0
    return max(MIN_LEVEL, level) * XP_PER_LEVEL


@dataclass(frozen=True)
class LevelState:
    """Result of applying an XP award to a class."""

    level: int
    current_xp: int
    xp_to_next_level: int
    levels_gained: int

    @property
    def leveled_up(self) -> bool:
        return self.levels_gained > 0


def apply_xp(level: int, current_xp: int, amount: int) -> LevelState:
    """
    Add ``amount`` XP and resolve every level-up it pays for.

    Multiple levels may be gained from one award. Every level-up in one award
    consumes the threshold in force when the award started; the bar for the
    reached level is computed once at the end. At max level the XP bar is
    pinned to ``0/0`` and any surplus is discarded.

    Example:
        >>> apply_xp(1, 0, 250)
        LevelState(level=3, current_xp=50, xp_to_next_level=300, levels_gained=2)
    """
    if amount < 0:
        raise ValueError("XP award must be non-negative")

    start_level = level
    if level >= MAX_LEVEL:
        return LevelState(MAX_LEVEL, 0, 0, 0)

    xp = current_xp + amount
    threshold = xp_to_next_level(level)

    while level < MAX_LEVEL and xp >= threshold:
        xp -= threshold
        level += 1

    if level >= MAX_LEVEL:
        return LevelState(MAX_LEVEL, 0, 0, MAX_LEVEL - start_level)

    return LevelState(level, xp, xp_to_next_level(level), level - start_level)


# ============================================================================
# REQUIREMENTS
# ============================================================================


def interpolate(level: int, minimum: int, maximum: int) -> int:
    """
    Linear interpolation between the level-1 and level-100 anchors.

    Example:
        >>> interpolate(1, 5, 50)
        5
        >>> interpolate(100, 5, 50)
        50
        >>> interpolate(50, 1, 100)
        50
    """
    t = (clamp_level(level) - MIN_LEVEL) / (MAX_LEVEL - MIN_LEVEL)
    return round_half_up(minimum + (maximum - minimum) * t)


def requirement_count(
    level: int,
    scaling: bool,
    level1_count: Optional[int],
    level100_count: Optional[int],
    flat_count: Optional[int],
) -> int:
    """
    Requirement for a template at a class level.

    Scaling templates with both anchors interpolate; everything else uses the
    flat count, defaulting to 1. The result is never below 1.
    """
    if scaling and level1_count is not None and level100_count is not None:
        value = interpolate(level, level1_count, level100_count)
    elif flat_count is not None:
        value = flat_count
    else:
        value = 1
    return max(1, value)


def parse_requirement(raw: object) -> Optional[int]:
    """
    Parse a catalog requirement field.

    Integers pass through, numeric strings are parsed, anything else
    (missing, blank, non-numeric) becomes ``None`` for the caller to default.

    Example:
        >>> parse_requirement("12")
        12
        >>> parse_requirement("a few")
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw)
    text = str(raw).strip()
    # Leading integer, the way a lenient string-to-int parse reads "10 reps".
    digits = ""
    for index, char in enumerate(text):
        if char.isdigit() or (index == 0 and char in "+-"):
            digits += char
        else:
            break
    try:
        return int(digits)
    except ValueError:
        return None


# ============================================================================
# REWARDS
# ============================================================================


def reward_scale(level: int) -> float:
    """
    Reward multiplier for a class level: 1.0x at level 1, 10.0x at level 100.

    Example:
        >>> reward_scale(1)
        1.0
        >>> reward_scale(100)
        10.0
    """
    return 1 + (clamp_level(level) - MIN_LEVEL) / 11


def scaled_reward(base: int, level: int) -> int:
    """Scale a base XP or gold amount by ``reward_scale`` (rounded half-up)."""
    return round_half_up(base * reward_scale(level))


def average_level(levels: Iterable[int]) -> int:
    """Rounded mean of class levels; 1 when there are none."""
    values = list(levels)
    if not values:
        return MIN_LEVEL
    return clamp_level(round_half_up(sum(values) / len(values)))


# ============================================================================
# ECONOMY
# ============================================================================


def reroll_cost(reroll_count: int, tiers: Sequence[int]) -> int:
    """
    Gold cost of the next reroll given today's reroll count.

    Tiers are indexed by count; past the table the last tier doubles per
    extra reroll.

    Example:
        >>> reroll_cost(2, [10, 25, 50, 100, 200, 400])
        50
        >>> reroll_cost(7, [10, 25, 50, 100, 200, 400])
        1600
    """
    if not tiers:
        raise ValueError("reroll cost tiers must not be empty")
    count = max(0, reroll_count)
    last_index = len(tiers) - 1
    if count <= last_index:
        return int(tiers[count])
    return int(tiers[last_index]) * 2 ** (count - last_index)


def weekly_bundle_totals(
    gold_rewards: Iterable[int],
    xp_rewards: Iterable[int],
    multiplier: int,
) -> tuple[int, int]:
    """
    Total gold and XP for a completed weekly bundle.

    Example:
        >>> weekly_bundle_totals([10, 20], [5, 5], 3)
        (90, 30)
    """
    return sum(gold_rewards) * multiplier, sum(xp_rewards) * multiplier


def split_evenly(total: int, parts: int) -> int:
    """Per-part share with floor division; remainder is dropped."""
    if parts <= 0:
        return 0
    return total // parts
