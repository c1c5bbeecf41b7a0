from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from dpscalc.game.data.base import GameDataObject
from dpscalc.game.schema.bonuses import (
    EquipmentBonuses,
    OtherBonuses,
    StyleBonuses,
)
from dpscalc.game.schema.enums import DamageType, EquipmentSlot, SpecialEffect


@dataclass(frozen=True)
class EquipmentPiece(GameDataObject):
    name: str
    slot: EquipmentSlot
    bonuses: EquipmentBonuses = field(default_factory=EquipmentBonuses)
    attack_speed: Optional[int] = None  # weapons only
    damage_type: Optional[DamageType] = None  # weapons only
    effects: Tuple[SpecialEffect, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EquipmentPiece":
        damage_type = data.get("damage_type")
        return cls(
            name=data["name"],
            slot=EquipmentSlot(data["slot"]),
            bonuses=EquipmentBonuses(
                offensive=StyleBonuses.from_dict(data.get("offensive", {})),
                defensive=StyleBonuses.from_dict(data.get("defensive", {})),
                other=OtherBonuses.from_dict(data.get("other", {})),
            ),
            attack_speed=data.get("attack_speed"),
            damage_type=(
                None if damage_type is None else DamageType.from_protocol(damage_type)
            ),
            effects=tuple(
                SpecialEffect.from_protocol(name) for name in data.get("effects", [])
            ),
        )
