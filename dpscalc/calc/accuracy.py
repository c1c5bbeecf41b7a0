"""Attack roll, defence roll and hit chance formulas."""

import math
from typing import Tuple

from dpscalc.game.schema.enums import (
    CombatStyle,
    DamageType,
    MonsterAttribute,
    Skill,
    SpecialEffect,
)
from dpscalc.game.schema.monster_state import MonsterState
from dpscalc.game.schema.player_state import PlayerState

# Fractions are (numerator, denominator) so rolls stay exact integers.
SALVE_BONUS = (7, 6)
SLAYER_MELEE_BONUS = (7, 6)
SLAYER_IMBUED_BONUS = (23, 20)
VOID_MELEE_RANGED_BONUS = (11, 10)
VOID_MAGIC_ACCURACY_BONUS = (29, 20)

_ACCURACY_SKILL = {
    CombatStyle.MELEE: Skill.ATTACK,
    CombatStyle.RANGED: Skill.RANGED,
    CombatStyle.MAGIC: Skill.MAGIC,
}

_STRENGTH_SKILL = {
    CombatStyle.MELEE: Skill.STRENGTH,
    CombatStyle.RANGED: Skill.RANGED,
}


def _apply_fraction(value: int, fraction: Tuple[int, int]) -> int:
    numerator, denominator = fraction
    return value * numerator // denominator


def has_void(player: PlayerState) -> bool:
    """Check if the player wears the void set matching their combat style."""
    effect = {
        CombatStyle.MELEE: SpecialEffect.VOID_MELEE,
        CombatStyle.RANGED: SpecialEffect.VOID_RANGED,
        CombatStyle.MAGIC: SpecialEffect.VOID_MAGIC,
    }[player.combat_style]
    return player.has_effect(effect)


def get_gear_bonus(player: PlayerState, monster: MonsterState) -> Tuple[int, int]:
    """Get the salve / slayer helm multiplier as a fraction.

    The salve amulet applies against undead and takes precedence over the
    slayer helm; the two never stack.

    Returns:
        (numerator, denominator), (1, 1) when no bonus applies
    """
    if player.has_effect(SpecialEffect.SALVE_AMULET) and monster.has_attribute(
        MonsterAttribute.UNDEAD
    ):
        return SALVE_BONUS
    if player.has_effect(SpecialEffect.SLAYER_HELM) and player.on_slayer_task:
        if player.combat_style == CombatStyle.MELEE:
            return SLAYER_MELEE_BONUS
        return SLAYER_IMBUED_BONUS
    return (1, 1)


def effective_accuracy_level(player: PlayerState) -> int:
    """Effective level used for the attack roll.

    floor(boosted level * prayer) + stance bonus + 8 (9 for magic), then the
    void bonus of the matching set.

    Example:
        >>> # 99 attack, +19 boost, piety, accurate stance
        >>> effective_accuracy_level(player)
        152  # floor(118 * 1.2) + 3 + 8
    """
    style = player.combat_style
    level = player.get_boosted_level(_ACCURACY_SKILL[style])
    prayer_accuracy, _ = player.get_prayer_multipliers()
    stance_accuracy, _ = player.stance.invisible_bonuses(style)

    base = 9 if style == CombatStyle.MAGIC else 8
    effective = int(math.floor(level * prayer_accuracy)) + stance_accuracy + base

    if has_void(player):
        if style == CombatStyle.MAGIC:
            effective = _apply_fraction(effective, VOID_MAGIC_ACCURACY_BONUS)
        else:
            effective = _apply_fraction(effective, VOID_MELEE_RANGED_BONUS)
    return effective


def effective_strength_level(player: PlayerState) -> int:
    """Effective level used for melee and ranged max hits.

    Raises:
        ValueError: For magic attacks, whose max hit comes from the spell
    """
    style = player.combat_style
    if style not in _STRENGTH_SKILL:
        raise ValueError("Magic attacks have no effective strength level")
    level = player.get_boosted_level(_STRENGTH_SKILL[style])
    _, prayer_strength = player.get_prayer_multipliers()
    _, stance_strength = player.stance.invisible_bonuses(style)

    effective = int(math.floor(level * prayer_strength)) + stance_strength + 8
    if has_void(player):
        effective = _apply_fraction(effective, VOID_MELEE_RANGED_BONUS)
    return effective


def max_attack_roll(player: PlayerState, monster: MonsterState) -> int:
    """The player's maximum attack roll against a monster."""
    bonus = player.bonuses.offensive.get(player.damage_type)
    roll = effective_accuracy_level(player) * max(0, bonus + 64)
    return _apply_fraction(roll, get_gear_bonus(player, monster))


def max_defence_roll(monster: MonsterState, damage_type: DamageType) -> int:
    """The monster's maximum defence roll against a damage type.

    Magic attacks are defended with the monster's magic level; every other
    damage type uses its defence level.
    """
    if damage_type == DamageType.MAGIC:
        level = monster.skills.magic
    else:
        level = monster.skills.defence
    return (level + 9) * max(0, monster.defensive.get(damage_type) + 64)


def hit_chance(attack_roll: int, defence_roll: int) -> float:
    """Probability that an attack roll beats a defence roll.

    Monotonically increasing in attack_roll and decreasing in defence_roll.

    Args:
        attack_roll: Maximum attack roll (non-negative)
        defence_roll: Maximum defence roll (non-negative)

    Returns:
        Probability in [0, 1]

    Examples:
        >>> hit_chance(0, 1000)
        0.0
        >>> hit_chance(10000, 10000)
        0.49995000499950004
    """
    if attack_roll <= 0:
        return 0.0
    if attack_roll > defence_roll:
        chance = 1.0 - (defence_roll + 2) / (2.0 * (attack_roll + 1))
    else:
        chance = attack_roll / (2.0 * (defence_roll + 1))
    return min(1.0, max(0.0, chance))
