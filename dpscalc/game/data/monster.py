from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from dpscalc.game.data.base import GameDataObject


@dataclass(frozen=True)
class MonsterDefinition(GameDataObject):
    name: str
    skills: Dict[str, int]
    defensive: Dict[str, int] = field(default_factory=dict)
    attributes: List[str] = field(default_factory=list)
    immunities: List[str] = field(default_factory=list)
    damage_multipliers: Dict[str, float] = field(default_factory=dict)
    max_damage_cap: Optional[int] = None
    size: int = 1

    def to_raw(self) -> Dict[str, Any]:
        """Editable monster state for this definition (a fresh dict each call)."""
        return {
            "name": self.name,
            "skills": dict(self.skills),
            "defensive": dict(self.defensive),
            "attributes": list(self.attributes),
            "immunities": list(self.immunities),
            "damage_multipliers": dict(self.damage_multipliers),
            "max_damage_cap": self.max_damage_cap,
            "size": self.size,
        }
