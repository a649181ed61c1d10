# learnsphere/quiz/rewards.py
"""
Reward tables map an attempt number to the points a passing attempt earns.

The highest configured attempt number is the overflow tier: every later
attempt earns the same amount.
"""

from typing import Any, Dict, Mapping

DEFAULT_REWARDS: Dict[int, int] = {1: 100, 2: 50, 3: 25, 4: 10}


def normalize_rewards(table: Mapping[Any, Any]) -> Dict[int, int]:
    """
    Convert a stored reward table into ``{attempt_number: points}``.

    JSON columns give us string keys, so keys are coerced to int.

    Raises:
        ValueError: If the table is empty, lacks attempt 1, or has
            non-positive attempt numbers / negative points.
    """
    if not table:
        raise ValueError("Reward table must define at least one tier")

    rewards: Dict[int, int] = {}
    for key, value in table.items():
        attempt = int(key)
        points = int(value)
        if attempt < 1:
            raise ValueError(f"Invalid attempt number in reward table: {key}")
        if points < 0:
            raise ValueError(f"Reward for attempt {attempt} cannot be negative")
        rewards[attempt] = points

    if 1 not in rewards:
        raise ValueError("Reward table must define a reward for attempt 1")

    return dict(sorted(rewards.items()))


def points_for_attempt(table: Mapping[Any, Any], attempt_number: int) -> int:
    """
    Points for a passing attempt.

    Uses the greatest tier at or below ``attempt_number``, so numbers past the
    highest tier clamp to the overflow tier instead of earning nothing.
    """
    if attempt_number < 1:
        raise ValueError("Attempt numbers start at 1")

    rewards = normalize_rewards(table)
    tier = max(key for key in rewards if key <= attempt_number)
    return rewards[tier]


def to_storage(table: Mapping[Any, Any]) -> Dict[str, int]:
    """Reward table with string keys, as stored in JSON columns."""
    return {str(k): v for k, v in normalize_rewards(table).items()}
