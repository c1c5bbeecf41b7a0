"""Compare several loadouts against one monster across defence reductions."""

from dataclasses import dataclass, replace
from typing import Dict, List, Mapping, Sequence

from dpscalc.calc.damage_engine import TICK_SECONDS, compute
from dpscalc.game.schema.monster_state import MonsterState
from dpscalc.game.schema.player_state import PlayerState


@dataclass(frozen=True)
class ComparisonPoint:
    """DPS of every loadout at one defence reduction."""

    defence_reduction: int
    dps: Dict[str, float]


def reduce_defence(monster: MonsterState, reduction: int) -> MonsterState:
    """Return a copy of the monster with its defence level lowered.

    The defence level never drops below zero.
    """
    if reduction < 0:
        raise ValueError(f"reduction must be non-negative, got {reduction}")
    skills = replace(monster.skills, defence=max(0, monster.skills.defence - reduction))
    return replace(monster, skills=skills)


def compare_loadouts(
    loadouts: Mapping[str, PlayerState],
    monster: MonsterState,
    defence_reductions: Sequence[int],
    tick_seconds: float = TICK_SECONDS,
) -> List[ComparisonPoint]:
    """DPS series per loadout as the monster's defence is reduced.

    Args:
        loadouts: Loadout name -> player snapshot
        monster: Monster snapshot at full defence
        defence_reductions: Reductions to evaluate, in the order returned
        tick_seconds: Length of one game tick in seconds

    Returns:
        One ComparisonPoint per reduction

    Example:
        >>> compare_loadouts({"whip": whip, "scythe": scythe}, vorkath, [0, 10])
        [ComparisonPoint(defence_reduction=0, dps={...}), ...]
    """
    points: List[ComparisonPoint] = []
    for reduction in defence_reductions:
        reduced = reduce_defence(monster, reduction)
        points.append(
            ComparisonPoint(
                defence_reduction=reduction,
                dps={
                    name: compute(player, reduced, tick_seconds=tick_seconds).dps
                    for name, player in loadouts.items()
                },
            )
        )
    return points
