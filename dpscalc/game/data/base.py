from dataclasses import dataclass
from typing import Any, Dict, TypeVar

T = TypeVar("T", bound="GameDataObject")


@dataclass(frozen=True)
class GameDataObject:
    @classmethod
    def from_dict(cls: type[T], data: Dict[str, Any]) -> T:
        return cls(**data)


def normalize_name(name: str) -> str:
    """Normalize catalog names for lookups.

    Converts names to lowercase and removes all non-alphanumeric characters,
    so "Abyssal whip", "abyssal-whip" and "ABYSSAL WHIP" share one key.

    Examples:
        >>> normalize_name("Osmumten's fang")
        'osmumtensfang'
        >>> normalize_name("Slayer helmet (i)")
        'slayerhelmeti'
    """
    return "".join(c for c in name.lower() if c.isalnum())
