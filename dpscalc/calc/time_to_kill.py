"""Expected time to kill from a per-attack hit distribution."""

from typing import List, Optional

from dpscalc.calc.hit_distribution import HitDistribution


def expected_attacks_to_kill(
    dist: HitDistribution, hitpoints: int
) -> Optional[float]:
    """Expected number of attacks to bring hitpoints down to zero.

    Uses a dynamic program over the remaining hitpoints h:

        E[0] = 0
        E[h] = (1 + sum_{d >= 1} p(d) * E[max(h - d, 0)]) / (1 - p(0))

    Overkill is truncated at zero, so this accounts for the last hit rather
    than simply dividing hitpoints by the expected hit.

    Args:
        dist: Per-attack distribution, misses included at damage 0
        hitpoints: Remaining hitpoints of the monster

    Returns:
        Expected attack count, or None if no attack can ever deal damage
    """
    if hitpoints <= 0:
        return 0.0
    zero_probability = dist.probability_of(0)
    damaging = [(damage, p) for damage, p in dist.items() if damage > 0]
    if not damaging or zero_probability >= 1.0:
        return None

    expected: List[float] = [0.0] * (hitpoints + 1)
    for remaining in range(1, hitpoints + 1):
        total = 1.0
        for damage, probability in damaging:
            total += probability * expected[max(remaining - damage, 0)]
        expected[remaining] = total / (1.0 - zero_probability)
    return expected[hitpoints]


def expected_ttk_seconds(
    dist: HitDistribution, hitpoints: int, attack_interval_seconds: float
) -> Optional[float]:
    """Expected time to kill in seconds.

    Each attack costs one full attack interval, matching how DPS is
    derived. Returns None when the monster cannot be killed.
    """
    attacks = expected_attacks_to_kill(dist, hitpoints)
    if attacks is None:
        return None
    return attacks * attack_interval_seconds
