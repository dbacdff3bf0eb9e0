"""Cubic staking-duration multiplier.

m(t) = 1 + (m_max - 1) * (t / T)^3   for t < T
m(t) = m_max                         for t >= T

All values are fixed point in MULTIPLIER_SCALE (1_000_000 == 1.0x).
"""

from .constants import MULTIPLIER_SCALE


def multiplier(multiplier_max: int, time_threshold: int, time_staked: int) -> int:
    """
    Compute the staking multiplier for a continuous stake.

    Args:
        multiplier_max: Multiplier reached at the threshold (fixed point)
        time_threshold: Seconds of continuous staking to reach multiplier_max
        time_staked: Seconds the current stake has been held

    Returns:
        Multiplier in MULTIPLIER_SCALE fixed point
    """
    if time_staked >= time_threshold:
        return multiplier_max
    if time_staked <= 0:
        return MULTIPLIER_SCALE

    ratio = time_staked * MULTIPLIER_SCALE // time_threshold
    boost = multiplier_max - MULTIPLIER_SCALE
    return MULTIPLIER_SCALE + boost * ratio ** 3 // MULTIPLIER_SCALE ** 3


def multiplier_to_float(value: int) -> float:
    """Convert a fixed-point multiplier to a float for display."""
    return value / MULTIPLIER_SCALE
