"""Monster state representation for combat calculations."""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional

from dpscalc.game.schema.bonuses import StyleBonuses, StyleMultipliers
from dpscalc.game.schema.enums import DamageType, MonsterAttribute

MAX_MONSTER_LEVEL = 5000


@dataclass(frozen=True)
class MonsterSkills:
    """Combat levels of a monster that the player's attacks interact with."""

    defence: int = 1
    magic: int = 1
    hitpoints: int = 1

    def __post_init__(self) -> None:
        for field_name in ["defence", "magic", "hitpoints"]:
            value = getattr(self, field_name)
            if not isinstance(value, int) or value < 0 or value > MAX_MONSTER_LEVEL:
                raise ValueError(
                    f"{field_name} must be between 0 and {MAX_MONSTER_LEVEL}, "
                    f"got {value}"
                )
        if self.hitpoints < 1:
            raise ValueError(f"hitpoints must be at least 1, got {self.hitpoints}")

    def to_dict(self) -> Dict[str, int]:
        return {
            "defence": self.defence,
            "magic": self.magic,
            "hitpoints": self.hitpoints,
        }


@dataclass(frozen=True)
class MonsterState:
    """Immutable snapshot of the monster being fought.

    Holds the defensive side of every formula: levels, defensive bonuses per
    damage type, immunities and resistances, attributes that gear effects key
    off, and special mechanics such as a per-hit damage cap.
    """

    name: str
    skills: MonsterSkills = field(default_factory=MonsterSkills)
    defensive: StyleBonuses = field(default_factory=StyleBonuses)

    immunities: FrozenSet[DamageType] = frozenset()
    damage_multipliers: StyleMultipliers = field(default_factory=StyleMultipliers)
    attributes: FrozenSet[MonsterAttribute] = frozenset()

    current_hitpoints: Optional[int] = None  # None means full health
    max_damage_cap: Optional[int] = None
    size: int = 1

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Monster name is required")
        if self.size < 1:
            raise ValueError(f"size must be at least 1, got {self.size}")
        if self.max_damage_cap is not None and self.max_damage_cap < 0:
            raise ValueError(
                f"max_damage_cap must be non-negative, got {self.max_damage_cap}"
            )
        if self.current_hitpoints is not None and not (
            1 <= self.current_hitpoints <= self.skills.hitpoints
        ):
            raise ValueError(
                f"current_hitpoints must be between 1 and {self.skills.hitpoints}, "
                f"got {self.current_hitpoints}"
            )

    def is_immune_to(self, damage_type: DamageType) -> bool:
        """Check if the monster cannot be damaged by a damage type."""
        return damage_type in self.immunities

    def has_attribute(self, attribute: MonsterAttribute) -> bool:
        return attribute in self.attributes

    def get_hitpoints(self) -> int:
        """Remaining hitpoints, defaulting to full health."""
        if self.current_hitpoints is None:
            return self.skills.hitpoints
        return self.current_hitpoints

    def to_dict(self) -> Dict[str, Any]:
        """Convert monster state to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "skills": self.skills.to_dict(),
            "defensive": self.defensive.to_dict(),
            "immunities": sorted(damage_type.value for damage_type in self.immunities),
            "damage_multipliers": self.damage_multipliers.to_dict(),
            "attributes": sorted(attribute.value for attribute in self.attributes),
            "current_hitpoints": self.current_hitpoints,
            "max_damage_cap": self.max_damage_cap,
            "size": self.size,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MonsterState":
        """Rebuild a monster state from to_dict() output.

        Raises:
            ValueError: If any value is out of range or unknown
        """
        return cls(
            name=data["name"],
            skills=MonsterSkills(**data.get("skills", {})),
            defensive=StyleBonuses.from_dict(data.get("defensive", {})),
            immunities=frozenset(
                DamageType.from_protocol(name) for name in data.get("immunities", [])
            ),
            damage_multipliers=StyleMultipliers.from_dict(
                data.get("damage_multipliers", {})
            ),
            attributes=frozenset(
                MonsterAttribute.from_protocol(name)
                for name in data.get("attributes", [])
            ),
            current_hitpoints=data.get("current_hitpoints"),
            max_damage_cap=data.get("max_damage_cap"),
            size=data.get("size", 1),
        )

    def __str__(self) -> str:
        return f"MonsterState({self.name}, hp={self.get_hitpoints()})"
