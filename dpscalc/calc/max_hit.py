"""Base max hit formulas per combat style."""

from dpscalc.calc.accuracy import effective_strength_level, get_gear_bonus
from dpscalc.game.exceptions import EngineFault
from dpscalc.game.schema.enums import CombatStyle
from dpscalc.game.schema.monster_state import MonsterState
from dpscalc.game.schema.player_state import PlayerState


def strength_bonus(player: PlayerState) -> int:
    """Strength-type bonus matching the player's combat style."""
    if player.combat_style == CombatStyle.RANGED:
        return player.bonuses.other.ranged_strength
    return player.bonuses.other.strength


def base_max_hit(player: PlayerState, monster: MonsterState) -> int:
    """Max hit before special effects transform the distribution.

    Melee and ranged use floor((effective strength * (bonus + 64) + 320) / 640);
    magic starts from the spell's base max hit and adds the magic damage
    percentage. Salve and slayer helm bonuses apply on top of both.

    Args:
        player: Attacking player
        monster: Monster being attacked (for salve/slayer eligibility)

    Returns:
        Non-negative max hit

    Raises:
        EngineFault: If a magic attack has no spell selected
    """
    numerator, denominator = get_gear_bonus(player, monster)

    if player.combat_style == CombatStyle.MAGIC:
        if player.spell_max_hit is None:
            raise EngineFault("Magic attacks require a spell max hit")
        magic_damage = player.bonuses.other.magic_damage
        max_hit = player.spell_max_hit * max(0, 100 + magic_damage) // 100
        return max_hit * numerator // denominator

    effective = effective_strength_level(player)
    bonus = max(0, strength_bonus(player) + 64)
    max_hit = (effective * bonus + 320) // 640
    return max_hit * numerator // denominator
