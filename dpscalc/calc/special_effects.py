"""Registry of special effects and how each one transforms an attack.

Effects compose by transforming distributions rather than by special-casing
the engine. The engine runs every applicable handler through four hooks, in
order:

1. modify_max_hit: adjust the max hit before the base distribution is built
2. modify_accuracy: adjust the hit chance
3. modify_landed: transform the distribution of a landed hit
4. modify_attack: transform (or rebuild) the full attack distribution,
   which already includes misses at damage 0

Effects that only change attack or defence rolls (salve, slayer helm, void)
are applied inside the roll formulas and register a handler with no hooks.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence

from dpscalc.calc.hit_distribution import HitDistribution
from dpscalc.game.schema.enums import CombatStyle, DamageType, MonsterAttribute, SpecialEffect
from dpscalc.game.schema.monster_state import MonsterState
from dpscalc.game.schema.player_state import PlayerState

VERAC_PROC_CHANCE = 0.25
KERIS_PROC_CHANCE = 1.0 / 51.0


@dataclass(frozen=True)
class AttackContext:
    """Inputs shared by the hooks of a single calculation.

    Attributes:
        player: Attacking player
        monster: Monster being attacked
        max_hit: Max hit after max-hit modifiers
        accuracy: Hit chance after accuracy modifiers
        landed: Distribution of a landed hit after landed modifiers
        finalize: Applies monster resistances and damage caps to one hitsplat
    """

    player: PlayerState
    monster: MonsterState
    max_hit: int
    accuracy: float
    landed: HitDistribution
    finalize: Callable[[HitDistribution], HitDistribution]


class SpecialEffectHandler:
    """Base handler; every hook defaults to the identity."""

    def applies(self, player: PlayerState, monster: MonsterState) -> bool:
        return True

    def modify_max_hit(
        self, player: PlayerState, monster: MonsterState, max_hit: int
    ) -> int:
        return max_hit

    def modify_accuracy(
        self, player: PlayerState, monster: MonsterState, accuracy: float
    ) -> float:
        return accuracy

    def modify_landed(
        self, player: PlayerState, max_hit: int, landed: HitDistribution
    ) -> HitDistribution:
        return landed

    def modify_attack(
        self, context: AttackContext, attack: HitDistribution
    ) -> HitDistribution:
        return attack


class RollFormulaEffect(SpecialEffectHandler):
    """Effects that live entirely in the attack roll and max hit formulas."""


class MeleeEffect(SpecialEffectHandler):
    """Handler that only applies to melee attacks."""

    def applies(self, player: PlayerState, monster: MonsterState) -> bool:
        return player.combat_style == CombatStyle.MELEE


class DharokEffect(MeleeEffect):
    """Max hit grows with the hitpoints the player is missing."""

    def modify_max_hit(
        self, player: PlayerState, monster: MonsterState, max_hit: int
    ) -> int:
        full = player.skills.hitpoints
        missing = max(0, full - player.get_hitpoints())
        return max_hit + max_hit * missing * full // 10000


class BerserkerNecklaceEffect(MeleeEffect):
    """Obsidian weapon with the berserker necklace: +20% melee max hit."""

    def modify_max_hit(
        self, player: PlayerState, monster: MonsterState, max_hit: int
    ) -> int:
        return max_hit * 6 // 5


class FangEffect(MeleeEffect):
    """Osmumten's fang: accuracy rolled twice, hits clamped away from extremes."""

    def applies(self, player: PlayerState, monster: MonsterState) -> bool:
        return player.damage_type == DamageType.STAB

    def modify_accuracy(
        self, player: PlayerState, monster: MonsterState, accuracy: float
    ) -> float:
        return 1.0 - (1.0 - accuracy) ** 2

    def modify_landed(
        self, player: PlayerState, max_hit: int, landed: HitDistribution
    ) -> HitDistribution:
        shrink = max_hit * 3 // 20
        return HitDistribution.uniform(shrink, max_hit - shrink)


class KerisEffect(MeleeEffect):
    """Keris against kalphites: +33% damage and a 1/51 chance of triple damage."""

    def applies(self, player: PlayerState, monster: MonsterState) -> bool:
        return super().applies(player, monster) and monster.has_attribute(
            MonsterAttribute.KALPHITE
        )

    def modify_landed(
        self, player: PlayerState, max_hit: int, landed: HitDistribution
    ) -> HitDistribution:
        boosted = landed.scale(4, 3)
        return HitDistribution.mix(
            [
                (1.0 - KERIS_PROC_CHANCE, boosted),
                (KERIS_PROC_CHANCE, boosted.scale(3, 1)),
            ]
        )


class VeracEffect(MeleeEffect):
    """A quarter of attacks ignore defence and deal one extra damage."""

    def modify_accuracy(
        self, player: PlayerState, monster: MonsterState, accuracy: float
    ) -> float:
        return (1.0 - VERAC_PROC_CHANCE) * accuracy + VERAC_PROC_CHANCE

    def modify_attack(
        self, context: AttackContext, attack: HitDistribution
    ) -> HitDistribution:
        # context.accuracy already includes the proc; recover the plain roll.
        plain_accuracy = (context.accuracy - VERAC_PROC_CHANCE) / (
            1.0 - VERAC_PROC_CHANCE
        )
        normal = context.finalize(context.landed).with_accuracy(plain_accuracy)
        proc = context.finalize(context.landed.shift(1))
        return HitDistribution.mix(
            [(1.0 - VERAC_PROC_CHANCE, normal), (VERAC_PROC_CHANCE, proc)]
        )


class ScytheEffect(MeleeEffect):
    """Scythe of vitur: extra half and quarter hits against large monsters.

    Each sub-hit rolls its own accuracy; the attack distribution is the
    convolution of the sub-hit distributions.
    """

    def applies(self, player: PlayerState, monster: MonsterState) -> bool:
        return super().applies(player, monster) and monster.size >= 2

    def modify_attack(
        self, context: AttackContext, attack: HitDistribution
    ) -> HitDistribution:
        hits: List[HitDistribution] = [attack]
        sub_hit_count = 2 if context.monster.size >= 3 else 1
        for index in range(1, sub_hit_count + 1):
            sub_max = context.max_hit // (2**index)
            sub_hit = context.finalize(HitDistribution.uniform(0, sub_max))
            hits.append(sub_hit.with_accuracy(context.accuracy))
        return HitDistribution.convolve_all(hits)


class SpecialEffectRegistry:
    """Registry mapping each SpecialEffect to its handler.

    Example Usage:
        ```python
        handlers = SpecialEffectRegistry.active_handlers(player, monster)
        for handler in handlers:
            max_hit = handler.modify_max_hit(player, monster, max_hit)
        ```

    Attributes:
        _HANDLER_MAP: Mapping from effect to handler instance
    """

    _HANDLER_MAP: Dict[SpecialEffect, SpecialEffectHandler] = {
        SpecialEffect.SLAYER_HELM: RollFormulaEffect(),
        SpecialEffect.SALVE_AMULET: RollFormulaEffect(),
        SpecialEffect.VOID_MELEE: RollFormulaEffect(),
        SpecialEffect.VOID_RANGED: RollFormulaEffect(),
        SpecialEffect.VOID_MAGIC: RollFormulaEffect(),
        SpecialEffect.DHAROK: DharokEffect(),
        SpecialEffect.BERSERKER_NECKLACE: BerserkerNecklaceEffect(),
        SpecialEffect.FANG: FangEffect(),
        SpecialEffect.KERIS: KerisEffect(),
        SpecialEffect.VERAC: VeracEffect(),
        SpecialEffect.SCYTHE: ScytheEffect(),
    }

    @classmethod
    def get_handler(cls, effect: SpecialEffect) -> SpecialEffectHandler:
        """Get the handler for an effect.

        Raises:
            KeyError: If the effect has no registered handler
        """
        if effect not in cls._HANDLER_MAP:
            raise KeyError(f"No handler registered for effect {effect.value}")
        return cls._HANDLER_MAP[effect]

    @classmethod
    def has_handler(cls, effect: SpecialEffect) -> bool:
        return effect in cls._HANDLER_MAP

    @classmethod
    def active_handlers(
        cls, player: PlayerState, monster: MonsterState
    ) -> Sequence[SpecialEffectHandler]:
        """Handlers for the player's effects that apply to this matchup.

        Effects are visited in enum declaration order so that composition is
        deterministic regardless of how the effect set was built.
        """
        handlers: List[SpecialEffectHandler] = []
        for effect in SpecialEffect:
            if effect not in player.effects:
                continue
            handler = cls.get_handler(effect)
            if handler.applies(player, monster):
                handlers.append(handler)
        return handlers
