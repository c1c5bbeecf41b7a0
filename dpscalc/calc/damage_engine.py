"""Calculation engine: (PlayerState, MonsterState) -> ComputedValues.

The engine is a pure function of its two snapshots. It performs no I/O, keeps
no state between calls and returns equal results for equal inputs.
"""

from typing import Optional, Sequence

from dpscalc.calc.accuracy import hit_chance, max_attack_roll, max_defence_roll
from dpscalc.calc.hit_distribution import DISTRIBUTION_EPSILON, HitDistribution
from dpscalc.calc.max_hit import base_max_hit
from dpscalc.calc.special_effects import (
    AttackContext,
    SpecialEffectHandler,
    SpecialEffectRegistry,
)
from dpscalc.calc.time_to_kill import expected_ttk_seconds
from dpscalc.game.exceptions import EngineFault
from dpscalc.game.schema.computed_values import ComputedValues
from dpscalc.game.schema.monster_state import MonsterState
from dpscalc.game.schema.player_state import PlayerState

TICK_SECONDS = 0.6


class DamageCalculator:
    """Calculator for one player attacking one monster.

    The calculator resolves the active attack configuration (damage type,
    stance, applicable special effects) once and exposes each stage of the
    calculation separately, which keeps the stages testable on their own.
    """

    def __init__(
        self,
        player: PlayerState,
        monster: MonsterState,
        tick_seconds: float = TICK_SECONDS,
        distribution_epsilon: float = DISTRIBUTION_EPSILON,
    ) -> None:
        """Initialize the calculator.

        Args:
            player: Attacking player snapshot
            monster: Defending monster snapshot
            tick_seconds: Length of one game tick in seconds
            distribution_epsilon: Allowed deviation of a distribution's total
                probability from 1
        """
        if tick_seconds <= 0:
            raise ValueError(f"tick_seconds must be positive, got {tick_seconds}")
        self._player = player
        self._monster = monster
        self._tick_seconds = tick_seconds
        self._distribution_epsilon = distribution_epsilon
        self._handlers: Sequence[SpecialEffectHandler] = (
            SpecialEffectRegistry.active_handlers(player, monster)
        )

    def is_immune(self) -> bool:
        return self._monster.is_immune_to(self._player.damage_type)

    def get_max_attack_roll(self) -> int:
        return max_attack_roll(self._player, self._monster)

    def get_max_defence_roll(self) -> int:
        return max_defence_roll(self._monster, self._player.damage_type)

    def get_max_hit(self) -> int:
        """Max hit after every max-hit modifier, before resistances."""
        max_hit = base_max_hit(self._player, self._monster)
        for handler in self._handlers:
            max_hit = handler.modify_max_hit(self._player, self._monster, max_hit)
        return max(0, max_hit)

    def get_accuracy(self) -> float:
        """Probability that an attack lands.

        Forced to 0 when the monster is immune to the active damage type.
        """
        if self.is_immune():
            return 0.0
        accuracy = hit_chance(self.get_max_attack_roll(), self.get_max_defence_roll())
        for handler in self._handlers:
            accuracy = handler.modify_accuracy(self._player, self._monster, accuracy)
        return min(1.0, max(0.0, accuracy))

    def get_attack_interval_seconds(self) -> float:
        return self._player.attack_interval_ticks() * self._tick_seconds

    def finalize_hitsplat(self, dist: HitDistribution) -> HitDistribution:
        """Apply the monster's resistance multiplier and per-hit damage cap."""
        multiplier = self._monster.damage_multipliers.get(self._player.damage_type)
        if multiplier != 1.0:
            dist = dist.scale_float(multiplier)
        if self._monster.max_damage_cap is not None:
            dist = dist.cap(self._monster.max_damage_cap)
        return dist

    def get_landed_distribution(self, max_hit: int) -> HitDistribution:
        """Distribution of a landed hit: uniform over [0, max_hit] then effects."""
        landed = HitDistribution.uniform(0, max_hit)
        for handler in self._handlers:
            landed = handler.modify_landed(self._player, max_hit, landed)
        return landed

    def get_attack_distribution(
        self, max_hit: Optional[int] = None, accuracy: Optional[float] = None
    ) -> HitDistribution:
        """Full per-attack distribution with misses at damage 0.

        Args:
            max_hit: Precomputed max hit (computed if None)
            accuracy: Precomputed accuracy (computed if None)

        Returns:
            A normalized distribution; {0: 1} for zero accuracy or zero max hit
        """
        if max_hit is None:
            max_hit = self.get_max_hit()
        if accuracy is None:
            accuracy = self.get_accuracy()
        if accuracy <= 0.0 or max_hit <= 0:
            return HitDistribution.single(0)

        landed = self.get_landed_distribution(max_hit)
        context = AttackContext(
            player=self._player,
            monster=self._monster,
            max_hit=max_hit,
            accuracy=accuracy,
            landed=landed,
            finalize=self.finalize_hitsplat,
        )
        attack = self.finalize_hitsplat(landed).with_accuracy(accuracy)
        for handler in self._handlers:
            attack = handler.modify_attack(context, attack)
        return attack

    def compute(self) -> ComputedValues:
        """Run every stage and bundle the results.

        Raises:
            EngineFault: If the attack distribution does not sum to 1
        """
        accuracy = self.get_accuracy()
        max_hit = 0 if self.is_immune() else self.get_max_hit()
        attack = self.get_attack_distribution(max_hit=max_hit, accuracy=accuracy)
        if not attack.is_normalized(self._distribution_epsilon):
            raise EngineFault(
                f"Hit distribution sums to {attack.total_probability()}, not 1"
            )
        reported_max_hit = attack.max_damage() if accuracy > 0 else 0
        return summarize(
            attack=attack,
            accuracy=accuracy,
            max_hit=reported_max_hit,
            attack_interval_seconds=self.get_attack_interval_seconds(),
            hitpoints=self._monster.get_hitpoints(),
            max_attack_roll=self.get_max_attack_roll(),
            max_defence_roll=self.get_max_defence_roll(),
        )


def summarize(
    attack: HitDistribution,
    accuracy: float,
    max_hit: int,
    attack_interval_seconds: float,
    hitpoints: int,
    max_attack_roll: int = 0,
    max_defence_roll: int = 0,
) -> ComputedValues:
    """Derive expected hit, DPS and time to kill from an attack distribution.

    Example:
        >>> attack = HitDistribution.uniform(0, 20).with_accuracy(0.5)
        >>> summarize(attack, 0.5, 20, 2.4, hitpoints=100).dps
        2.0833333333333335
    """
    expected_hit = attack.expected_value()
    return ComputedValues(
        accuracy=accuracy,
        max_hit=max_hit,
        hit_distribution=attack.items(),
        expected_hit=expected_hit,
        dps=expected_hit / attack_interval_seconds,
        attack_interval_seconds=attack_interval_seconds,
        ttk_seconds=expected_ttk_seconds(attack, hitpoints, attack_interval_seconds),
        max_attack_roll=max_attack_roll,
        max_defence_roll=max_defence_roll,
    )


def compute(
    player: PlayerState,
    monster: MonsterState,
    tick_seconds: float = TICK_SECONDS,
    distribution_epsilon: float = DISTRIBUTION_EPSILON,
) -> ComputedValues:
    """Compute every value the calculator displays for a matchup.

    Args:
        player: Attacking player snapshot
        monster: Defending monster snapshot
        tick_seconds: Length of one game tick in seconds
        distribution_epsilon: Allowed deviation of the distribution's total
            probability from 1

    Returns:
        ComputedValues for the pair

    Raises:
        EngineFault: For unsupported attribute combinations (e.g. a magic
            attack without a spell)
    """
    return DamageCalculator(
        player,
        monster,
        tick_seconds=tick_seconds,
        distribution_epsilon=distribution_epsilon,
    ).compute()
