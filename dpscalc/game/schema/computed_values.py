"""Results of a combat calculation."""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class ComputedValues:
    """Everything the calculator derives from a (player, monster) pair.

    This is a pure function of the two snapshots: computing the same pair
    twice yields equal ComputedValues.

    Attributes:
        accuracy: Probability that an attack lands
        max_hit: Upper bound of damage for a single attack
        hit_distribution: (damage, probability) pairs sorted by damage,
            including misses at damage 0
        expected_hit: Mean damage per attack
        dps: Expected damage per second
        attack_interval_seconds: Time between attacks
        ttk_seconds: Expected time to kill, None if the monster cannot be killed
        max_attack_roll: The player's maximum attack roll
        max_defence_roll: The monster's maximum defence roll
    """

    accuracy: float
    max_hit: int
    hit_distribution: Tuple[Tuple[int, float], ...]
    expected_hit: float
    dps: float
    attack_interval_seconds: float
    ttk_seconds: Optional[float] = None
    max_attack_roll: int = 0
    max_defence_roll: int = 0

    def distribution_dict(self) -> Dict[int, float]:
        """Get the hit distribution as a damage -> probability mapping."""
        return dict(self.hit_distribution)

    def to_dict(self) -> Dict[str, Any]:
        """Convert computed values to dictionary for JSON serialization.

        Distribution keys become a list of [damage, probability] pairs so the
        JSON form keeps integer damage values.
        """
        return {
            "accuracy": self.accuracy,
            "max_hit": self.max_hit,
            "hit_distribution": [[damage, p] for damage, p in self.hit_distribution],
            "expected_hit": self.expected_hit,
            "dps": self.dps,
            "attack_interval_seconds": self.attack_interval_seconds,
            "ttk_seconds": self.ttk_seconds,
            "max_attack_roll": self.max_attack_roll,
            "max_defence_roll": self.max_defence_roll,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ComputedValues":
        return cls(
            accuracy=float(data["accuracy"]),
            max_hit=int(data["max_hit"]),
            hit_distribution=tuple(
                (int(damage), float(p)) for damage, p in data["hit_distribution"]
            ),
            expected_hit=float(data["expected_hit"]),
            dps=float(data["dps"]),
            attack_interval_seconds=float(data["attack_interval_seconds"]),
            ttk_seconds=(
                None if data.get("ttk_seconds") is None else float(data["ttk_seconds"])
            ),
            max_attack_roll=int(data.get("max_attack_roll", 0)),
            max_defence_roll=int(data.get("max_defence_roll", 0)),
        )

    def __str__(self) -> str:
        ttk = "n/a" if self.ttk_seconds is None else f"{self.ttk_seconds:.1f}s"
        return (
            f"accuracy={self.accuracy:.2%} max_hit={self.max_hit} "
            f"expected_hit={self.expected_hit:.3f} dps={self.dps:.3f} ttk={ttk}"
        )
