"""Player state representation for combat calculations."""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional, Tuple

from dpscalc.game.schema.bonuses import EquipmentBonuses
from dpscalc.game.schema.enums import (
    CombatStyle,
    DamageType,
    Prayer,
    Skill,
    SpecialEffect,
    Stance,
)

MAX_LEVEL = 99
MAX_BOOST = 99


@dataclass(frozen=True)
class Skills:
    """Base skill levels of a player, each between 1 and 99."""

    attack: int = 1
    strength: int = 1
    defence: int = 1
    ranged: int = 1
    magic: int = 1
    hitpoints: int = 10
    prayer: int = 1

    def __post_init__(self) -> None:
        for skill in Skill:
            value = getattr(self, skill.value)
            if not isinstance(value, int) or value < 1 or value > MAX_LEVEL:
                raise ValueError(
                    f"{skill.value} level must be between 1 and {MAX_LEVEL}, got {value}"
                )

    def get(self, skill: Skill) -> int:
        return getattr(self, skill.value)

    def to_dict(self) -> Dict[str, int]:
        return {skill.value: self.get(skill) for skill in Skill}


@dataclass(frozen=True)
class SkillBoosts:
    """Temporary boosts (potions) or drains per skill, may be negative."""

    attack: int = 0
    strength: int = 0
    defence: int = 0
    ranged: int = 0
    magic: int = 0
    hitpoints: int = 0
    prayer: int = 0

    def __post_init__(self) -> None:
        for skill in Skill:
            value = getattr(self, skill.value)
            if not isinstance(value, int) or abs(value) > MAX_BOOST:
                raise ValueError(
                    f"{skill.value} boost must be between -{MAX_BOOST} and "
                    f"{MAX_BOOST}, got {value}"
                )

    def get(self, skill: Skill) -> int:
        return getattr(self, skill.value)

    def to_dict(self) -> Dict[str, int]:
        return {skill.value: self.get(skill) for skill in Skill}


@dataclass(frozen=True)
class PlayerState:
    """Immutable snapshot of a player and their loadout.

    This is the complete picture of the attacking side at one point in time:
    levels, boosts, the aggregated equipment bonuses, the selected attack and
    stance, active prayers and gear effects. A new snapshot is built for every
    edit; nothing ever mutates an existing one.
    """

    skills: Skills = field(default_factory=Skills)
    boosts: SkillBoosts = field(default_factory=SkillBoosts)
    bonuses: EquipmentBonuses = field(default_factory=EquipmentBonuses)

    damage_type: DamageType = DamageType.CRUSH
    stance: Stance = Stance.ACCURATE
    attack_speed: int = 4  # game ticks
    spell_max_hit: Optional[int] = None

    prayers: FrozenSet[Prayer] = frozenset()
    effects: FrozenSet[SpecialEffect] = frozenset()
    on_slayer_task: bool = False
    current_hitpoints: Optional[int] = None  # None means full health

    equipment: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.attack_speed < 1:
            raise ValueError(f"attack_speed must be at least 1, got {self.attack_speed}")
        if not self.stance.is_valid_for(self.combat_style):
            raise ValueError(
                f"{self.stance.value} stance is not available for "
                f"{self.damage_type.value} attacks"
            )
        if self.spell_max_hit is not None and self.spell_max_hit < 0:
            raise ValueError(
                f"spell_max_hit must be non-negative, got {self.spell_max_hit}"
            )
        if self.current_hitpoints is not None and not (
            0 <= self.current_hitpoints <= self.get_boosted_level(Skill.HITPOINTS)
        ):
            raise ValueError(
                f"current_hitpoints must be between 0 and the boosted hitpoints "
                f"level, got {self.current_hitpoints}"
            )

    @property
    def combat_style(self) -> CombatStyle:
        """Combat style of the selected attack."""
        return self.damage_type.combat_style

    def get_boosted_level(self, skill: Skill) -> int:
        """Get a skill level including boosts or drains.

        Args:
            skill: The skill to check

        Returns:
            The boosted level, never below zero

        Example:
            >>> # 99 strength with a super strength potion (+19)
            >>> player.get_boosted_level(Skill.STRENGTH)
            118
        """
        return max(0, self.skills.get(skill) + self.boosts.get(skill))

    def get_hitpoints(self) -> int:
        """Current hitpoints, defaulting to the boosted hitpoints level."""
        if self.current_hitpoints is None:
            return self.get_boosted_level(Skill.HITPOINTS)
        return self.current_hitpoints

    def get_prayer_multipliers(self) -> Tuple[float, float]:
        """Get the prayer multipliers that apply to the selected attack.

        Prayers for other combat styles are ignored. When several prayers of
        the same style are active, the strongest multiplier of each kind wins.

        Returns:
            (accuracy_multiplier, strength_multiplier)
        """
        accuracy = 1.0
        strength = 1.0
        for prayer in self.prayers:
            bonus = prayer.bonus
            if bonus.style != self.combat_style:
                continue
            accuracy = max(accuracy, bonus.accuracy)
            strength = max(strength, bonus.strength)
        return accuracy, strength

    def has_effect(self, effect: SpecialEffect) -> bool:
        return effect in self.effects

    def attack_interval_ticks(self) -> int:
        """Attack interval in game ticks after the stance modifier."""
        return max(1, self.attack_speed + self.stance.speed_modifier())

    def to_dict(self) -> Dict[str, Any]:
        """Convert player state to dictionary for JSON serialization.

        Returns:
            Dictionary representation accepted by from_dict()
        """
        return {
            "skills": self.skills.to_dict(),
            "boosts": self.boosts.to_dict(),
            "bonuses": self.bonuses.to_dict(),
            "damage_type": self.damage_type.value,
            "stance": self.stance.value,
            "attack_speed": self.attack_speed,
            "spell_max_hit": self.spell_max_hit,
            "prayers": sorted(prayer.value for prayer in self.prayers),
            "effects": sorted(effect.value for effect in self.effects),
            "on_slayer_task": self.on_slayer_task,
            "current_hitpoints": self.current_hitpoints,
            "equipment": list(self.equipment),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlayerState":
        """Rebuild a player state from to_dict() output.

        Raises:
            ValueError: If any value is out of range or unknown
        """
        return cls(
            skills=Skills(**data.get("skills", {})),
            boosts=SkillBoosts(**data.get("boosts", {})),
            bonuses=EquipmentBonuses.from_dict(data.get("bonuses", {})),
            damage_type=DamageType.from_protocol(data.get("damage_type", "crush")),
            stance=Stance.from_protocol(data.get("stance", "accurate")),
            attack_speed=data.get("attack_speed", 4),
            spell_max_hit=data.get("spell_max_hit"),
            prayers=frozenset(
                Prayer.from_protocol(name) for name in data.get("prayers", [])
            ),
            effects=frozenset(
                SpecialEffect.from_protocol(name) for name in data.get("effects", [])
            ),
            on_slayer_task=bool(data.get("on_slayer_task", False)),
            current_hitpoints=data.get("current_hitpoints"),
            equipment=tuple(data.get("equipment", [])),
        )

    def __str__(self) -> str:
        return (
            f"PlayerState({self.damage_type.value}/{self.stance.value}, "
            f"speed={self.attack_speed}, effects={sorted(e.value for e in self.effects)})"
        )
