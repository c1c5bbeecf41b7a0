import json
from pathlib import Path
from typing import Dict, List, Optional, Type, TypeVar

from dpscalc.game.data.base import GameDataObject, normalize_name
from dpscalc.game.data.equipment import EquipmentPiece
from dpscalc.game.data.monster import MonsterDefinition

T = TypeVar("T", bound=GameDataObject)

DEFAULT_DATA_DIR = Path(__file__).resolve().parent / "json"


class GameData:
    """Singleton class for accessing the static equipment and monster catalog.

    The catalog is loaded once from JSON and provides read-only access
    throughout the application.
    """

    _instance: Optional["GameData"] = None

    def __new__(cls, data_dir: Optional[str] = None) -> "GameData":
        """Create or return the singleton instance."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, data_dir: Optional[str] = None) -> None:
        """Initialize the game data (only runs once for the singleton)."""
        if self._initialized:  # type: ignore
            return

        self.data_dir = Path(data_dir) if data_dir else DEFAULT_DATA_DIR
        self._equipment_lookup = self._load_lookup_data("equipment.json", EquipmentPiece)
        self._monster_lookup = self._load_lookup_data("monsters.json", MonsterDefinition)
        self._initialized = True  # type: ignore

    def _load_lookup_data(self, filename: str, cls: Type[T]) -> Dict[str, T]:
        with open(self.data_dir / filename, "r") as f:
            data = json.load(f)
        return {normalize_name(entry["name"]): cls.from_dict(entry) for entry in data}

    def get_equipment(self, name: str) -> EquipmentPiece:
        key = normalize_name(name)
        if key not in self._equipment_lookup:
            raise ValueError(f"Equipment not found: {name}")
        return self._equipment_lookup[key]

    def get_monster(self, name: str) -> MonsterDefinition:
        key = normalize_name(name)
        if key not in self._monster_lookup:
            raise ValueError(f"Monster not found: {name}")
        return self._monster_lookup[key]

    def get_equipment_names(self) -> List[str]:
        return sorted(piece.name for piece in self._equipment_lookup.values())

    def get_monster_names(self) -> List[str]:
        return sorted(monster.name for monster in self._monster_lookup.values())
