"""Equipment bonus representation for player loadouts and monster defences."""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable

from dpscalc.game.schema.enums import DamageType


@dataclass(frozen=True)
class StyleBonuses:
    """Integer bonus per damage type (offensive or defensive)."""

    stab: int = 0
    slash: int = 0
    crush: int = 0
    ranged: int = 0
    magic: int = 0

    def get(self, damage_type: DamageType) -> int:
        """Get the bonus for a damage type.

        Args:
            damage_type: The damage type to look up

        Returns:
            The integer bonus (may be negative)
        """
        return getattr(self, damage_type.value)

    def __add__(self, other: "StyleBonuses") -> "StyleBonuses":
        return StyleBonuses(
            stab=self.stab + other.stab,
            slash=self.slash + other.slash,
            crush=self.crush + other.crush,
            ranged=self.ranged + other.ranged,
            magic=self.magic + other.magic,
        )

    def to_dict(self) -> Dict[str, int]:
        return {damage_type.value: self.get(damage_type) for damage_type in DamageType}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StyleBonuses":
        return cls(**{key: int(value) for key, value in data.items()})


@dataclass(frozen=True)
class StyleMultipliers:
    """Damage multiplier per damage type, used for monster resistances."""

    stab: float = 1.0
    slash: float = 1.0
    crush: float = 1.0
    ranged: float = 1.0
    magic: float = 1.0

    def __post_init__(self) -> None:
        for damage_type in DamageType:
            value = getattr(self, damage_type.value)
            if not math.isfinite(value) or value < 0:
                raise ValueError(
                    f"{damage_type.value} multiplier must be finite and "
                    f"non-negative, got {value}"
                )

    def get(self, damage_type: DamageType) -> float:
        return getattr(self, damage_type.value)

    def to_dict(self) -> Dict[str, float]:
        return {damage_type.value: self.get(damage_type) for damage_type in DamageType}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StyleMultipliers":
        return cls(**{key: float(value) for key, value in data.items()})


@dataclass(frozen=True)
class OtherBonuses:
    """Strength-type and utility bonuses."""

    strength: int = 0
    ranged_strength: int = 0
    magic_damage: int = 0  # percent
    prayer: int = 0

    def __add__(self, other: "OtherBonuses") -> "OtherBonuses":
        return OtherBonuses(
            strength=self.strength + other.strength,
            ranged_strength=self.ranged_strength + other.ranged_strength,
            magic_damage=self.magic_damage + other.magic_damage,
            prayer=self.prayer + other.prayer,
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            "strength": self.strength,
            "ranged_strength": self.ranged_strength,
            "magic_damage": self.magic_damage,
            "prayer": self.prayer,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OtherBonuses":
        return cls(**{key: int(value) for key, value in data.items()})


@dataclass(frozen=True)
class EquipmentBonuses:
    """Combined bonus aggregate of a loadout.

    This is what the calculator sees of a player's gear: offensive bonuses per
    damage type, defensive bonuses per damage type, and the strength-type
    bonuses.
    """

    offensive: StyleBonuses = field(default_factory=StyleBonuses)
    defensive: StyleBonuses = field(default_factory=StyleBonuses)
    other: OtherBonuses = field(default_factory=OtherBonuses)

    def __add__(self, other: "EquipmentBonuses") -> "EquipmentBonuses":
        return EquipmentBonuses(
            offensive=self.offensive + other.offensive,
            defensive=self.defensive + other.defensive,
            other=self.other + other.other,
        )

    @classmethod
    def aggregate(cls, pieces: Iterable["EquipmentBonuses"]) -> "EquipmentBonuses":
        """Sum the bonuses of every equipped piece.

        Args:
            pieces: Bonuses of each equipped item

        Returns:
            The combined aggregate (all zero for an empty loadout)

        Example:
            >>> EquipmentBonuses.aggregate([helm.bonuses, body.bonuses])
        """
        total = cls()
        for piece in pieces:
            total = total + piece
        return total

    def to_dict(self) -> Dict[str, Any]:
        return {
            "offensive": self.offensive.to_dict(),
            "defensive": self.defensive.to_dict(),
            "other": self.other.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EquipmentBonuses":
        return cls(
            offensive=StyleBonuses.from_dict(data.get("offensive", {})),
            defensive=StyleBonuses.from_dict(data.get("defensive", {})),
            other=OtherBonuses.from_dict(data.get("other", {})),
        )
