"""Enums for player and monster state representation."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple


def _normalize_protocol(protocol_str: str) -> str:
    return protocol_str.lower().replace(" ", "").replace("_", "").replace("-", "")


class CombatStyle(Enum):
    """Broad combat style an attack belongs to."""

    MELEE = "melee"
    RANGED = "ranged"
    MAGIC = "magic"


class DamageType(Enum):
    """Damage types an attack can deal (and a monster can defend against)."""

    STAB = "stab"
    SLASH = "slash"
    CRUSH = "crush"
    RANGED = "ranged"
    MAGIC = "magic"

    @property
    def combat_style(self) -> CombatStyle:
        """Combat style the damage type belongs to."""
        if self is DamageType.RANGED:
            return CombatStyle.RANGED
        if self is DamageType.MAGIC:
            return CombatStyle.MAGIC
        return CombatStyle.MELEE

    @classmethod
    def from_protocol(cls, protocol_str: str) -> "DamageType":
        """Parse a damage type from an editing-state string.

        Args:
            protocol_str: Damage type string (e.g., "Slash", "ranged")

        Returns:
            DamageType enum value

        Raises:
            ValueError: If the string is not recognized

        Examples:
            >>> DamageType.from_protocol("Crush")
            DamageType.CRUSH
            >>> DamageType.from_protocol("range")
            DamageType.RANGED
        """
        mapping = {
            "stab": cls.STAB,
            "slash": cls.SLASH,
            "crush": cls.CRUSH,
            "ranged": cls.RANGED,
            "range": cls.RANGED,
            "magic": cls.MAGIC,
            "mage": cls.MAGIC,
        }
        normalized = _normalize_protocol(protocol_str)
        if normalized not in mapping:
            raise ValueError(f"Unknown damage type: {protocol_str}")
        return mapping[normalized]


class Skill(Enum):
    """Player skills that take part in combat formulas."""

    ATTACK = "attack"
    STRENGTH = "strength"
    DEFENCE = "defence"
    RANGED = "ranged"
    MAGIC = "magic"
    HITPOINTS = "hitpoints"
    PRAYER = "prayer"


class Stance(Enum):
    """Attack stance selected on the weapon's combat options."""

    ACCURATE = "accurate"
    AGGRESSIVE = "aggressive"
    CONTROLLED = "controlled"
    DEFENSIVE = "defensive"
    RAPID = "rapid"
    LONGRANGE = "longrange"
    AUTOCAST = "autocast"

    @classmethod
    def from_protocol(cls, protocol_str: str) -> "Stance":
        """Parse a stance from an editing-state string.

        Raises:
            ValueError: If the string is not recognized
        """
        normalized = _normalize_protocol(protocol_str)
        for stance in cls:
            if stance.value == normalized:
                return stance
        raise ValueError(f"Unknown stance: {protocol_str}")

    def invisible_bonuses(self, style: CombatStyle) -> Tuple[int, int]:
        """Invisible level bonuses granted by this stance.

        Args:
            style: Combat style of the active attack

        Returns:
            (accuracy_bonus, strength_bonus) added to the effective levels

        Examples:
            >>> Stance.CONTROLLED.invisible_bonuses(CombatStyle.MELEE)
            (1, 1)
            >>> Stance.ACCURATE.invisible_bonuses(CombatStyle.RANGED)
            (3, 3)
        """
        return _STANCE_BONUSES.get((self, style), (0, 0))

    def is_valid_for(self, style: CombatStyle) -> bool:
        """Whether this stance can be selected for an attack of the given style.

        Examples:
            >>> Stance.RAPID.is_valid_for(CombatStyle.RANGED)
            True
            >>> Stance.RAPID.is_valid_for(CombatStyle.MELEE)
            False
        """
        return style in _STANCE_STYLES[self]

    def speed_modifier(self) -> int:
        """Change to the weapon's attack speed in ticks."""
        return -1 if self is Stance.RAPID else 0


_STANCE_STYLES: Dict[Stance, Tuple[CombatStyle, ...]] = {
    Stance.ACCURATE: (CombatStyle.MELEE, CombatStyle.RANGED, CombatStyle.MAGIC),
    Stance.AGGRESSIVE: (CombatStyle.MELEE,),
    Stance.CONTROLLED: (CombatStyle.MELEE,),
    Stance.DEFENSIVE: (CombatStyle.MELEE, CombatStyle.MAGIC),
    Stance.RAPID: (CombatStyle.RANGED,),
    Stance.LONGRANGE: (CombatStyle.RANGED, CombatStyle.MAGIC),
    Stance.AUTOCAST: (CombatStyle.MAGIC,),
}

_STANCE_BONUSES: Dict[Tuple[Stance, CombatStyle], Tuple[int, int]] = {
    (Stance.ACCURATE, CombatStyle.MELEE): (3, 0),
    (Stance.AGGRESSIVE, CombatStyle.MELEE): (0, 3),
    (Stance.CONTROLLED, CombatStyle.MELEE): (1, 1),
    (Stance.ACCURATE, CombatStyle.RANGED): (3, 3),
    (Stance.ACCURATE, CombatStyle.MAGIC): (2, 0),
}


@dataclass(frozen=True)
class PrayerBonus:
    """Multipliers a prayer applies to one combat style."""

    style: CombatStyle
    accuracy: float
    strength: float


class Prayer(Enum):
    """Offensive prayers."""

    CLARITY_OF_THOUGHT = "clarityofthought"
    IMPROVED_REFLEXES = "improvedreflexes"
    INCREDIBLE_REFLEXES = "incrediblereflexes"
    BURST_OF_STRENGTH = "burstofstrength"
    SUPERHUMAN_STRENGTH = "superhumanstrength"
    ULTIMATE_STRENGTH = "ultimatestrength"
    CHIVALRY = "chivalry"
    PIETY = "piety"
    SHARP_EYE = "sharpeye"
    HAWK_EYE = "hawkeye"
    EAGLE_EYE = "eagleeye"
    RIGOUR = "rigour"
    MYSTIC_WILL = "mysticwill"
    MYSTIC_LORE = "mysticlore"
    MYSTIC_MIGHT = "mysticmight"
    AUGURY = "augury"

    @classmethod
    def from_protocol(cls, protocol_str: str) -> "Prayer":
        """Parse a prayer name such as "Eagle Eye".

        Raises:
            ValueError: If the string is not recognized
        """
        normalized = _normalize_protocol(protocol_str)
        for prayer in cls:
            if prayer.value == normalized:
                return prayer
        raise ValueError(f"Unknown prayer: {protocol_str}")

    @property
    def bonus(self) -> PrayerBonus:
        return PRAYER_BONUSES[self]


PRAYER_BONUSES: Dict[Prayer, PrayerBonus] = {
    Prayer.CLARITY_OF_THOUGHT: PrayerBonus(CombatStyle.MELEE, 1.05, 1.0),
    Prayer.IMPROVED_REFLEXES: PrayerBonus(CombatStyle.MELEE, 1.10, 1.0),
    Prayer.INCREDIBLE_REFLEXES: PrayerBonus(CombatStyle.MELEE, 1.15, 1.0),
    Prayer.BURST_OF_STRENGTH: PrayerBonus(CombatStyle.MELEE, 1.0, 1.05),
    Prayer.SUPERHUMAN_STRENGTH: PrayerBonus(CombatStyle.MELEE, 1.0, 1.10),
    Prayer.ULTIMATE_STRENGTH: PrayerBonus(CombatStyle.MELEE, 1.0, 1.15),
    Prayer.CHIVALRY: PrayerBonus(CombatStyle.MELEE, 1.15, 1.18),
    Prayer.PIETY: PrayerBonus(CombatStyle.MELEE, 1.20, 1.23),
    Prayer.SHARP_EYE: PrayerBonus(CombatStyle.RANGED, 1.05, 1.05),
    Prayer.HAWK_EYE: PrayerBonus(CombatStyle.RANGED, 1.10, 1.10),
    Prayer.EAGLE_EYE: PrayerBonus(CombatStyle.RANGED, 1.15, 1.15),
    Prayer.RIGOUR: PrayerBonus(CombatStyle.RANGED, 1.20, 1.23),
    Prayer.MYSTIC_WILL: PrayerBonus(CombatStyle.MAGIC, 1.05, 1.0),
    Prayer.MYSTIC_LORE: PrayerBonus(CombatStyle.MAGIC, 1.10, 1.0),
    Prayer.MYSTIC_MIGHT: PrayerBonus(CombatStyle.MAGIC, 1.15, 1.0),
    Prayer.AUGURY: PrayerBonus(CombatStyle.MAGIC, 1.25, 1.0),
}


class SpecialEffect(Enum):
    """Gear and set effects that modify accuracy or the hit distribution."""

    SLAYER_HELM = "slayerhelm"
    SALVE_AMULET = "salveamulet"
    VOID_MELEE = "voidmelee"
    VOID_RANGED = "voidranged"
    VOID_MAGIC = "voidmagic"
    KERIS = "keris"
    VERAC = "verac"
    SCYTHE = "scythe"
    FANG = "fang"
    DHAROK = "dharok"
    BERSERKER_NECKLACE = "berserkernecklace"

    @classmethod
    def from_protocol(cls, protocol_str: str) -> "SpecialEffect":
        """Parse an effect name such as "Slayer Helm".

        Raises:
            ValueError: If the string is not recognized
        """
        normalized = _normalize_protocol(protocol_str)
        for effect in cls:
            if effect.value == normalized:
                return effect
        raise ValueError(f"Unknown special effect: {protocol_str}")


class MonsterAttribute(Enum):
    """Monster attributes that some effects key off."""

    UNDEAD = "undead"
    DEMON = "demon"
    DRAGON = "dragon"
    KALPHITE = "kalphite"
    LEAFY = "leafy"
    VAMPYRE = "vampyre"

    @classmethod
    def from_protocol(cls, protocol_str: str) -> "MonsterAttribute":
        """Parse a monster attribute.

        Raises:
            ValueError: If the string is not recognized
        """
        normalized = _normalize_protocol(protocol_str)
        for attribute in cls:
            if attribute.value == normalized:
                return attribute
        raise ValueError(f"Unknown monster attribute: {protocol_str}")


class EquipmentSlot(Enum):
    """Equipment slots of a loadout."""

    HEAD = "head"
    CAPE = "cape"
    NECK = "neck"
    AMMO = "ammo"
    WEAPON = "weapon"
    BODY = "body"
    SHIELD = "shield"
    LEGS = "legs"
    HANDS = "hands"
    FEET = "feet"
    RING = "ring"
