"""Discrete hit distributions and the operations special effects compose with.

A HitDistribution is an immutable probability mass function over non-negative
integer damage. Every transform returns a new distribution; outcomes are kept
sorted by damage so that iteration (and therefore floating point summation) is
deterministic.
"""

import math
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, Sequence, Tuple

DISTRIBUTION_EPSILON = 1e-9


@dataclass(frozen=True)
class HitDistribution:
    """Probability mass function over damage for a single attack."""

    outcomes: Tuple[Tuple[int, float], ...]

    def __post_init__(self) -> None:
        previous = -1
        for damage, probability in self.outcomes:
            if damage < 0:
                raise ValueError(f"Damage must be non-negative, got {damage}")
            if probability < 0:
                raise ValueError(f"Probability must be non-negative, got {probability}")
            if damage <= previous:
                raise ValueError("Outcomes must be strictly sorted by damage")
            previous = damage

    @classmethod
    def from_weights(cls, weights: Dict[int, float]) -> "HitDistribution":
        """Build a distribution from a damage -> probability mapping.

        Zero-probability entries are dropped. Probabilities are taken as given;
        use normalized() when the weights are not already a distribution.
        """
        return cls(
            tuple(
                (damage, probability)
                for damage, probability in sorted(weights.items())
                if probability > 0
            )
        )

    @classmethod
    def single(cls, damage: int) -> "HitDistribution":
        """A distribution that always deals the same damage."""
        return cls(((damage, 1.0),))

    @classmethod
    def uniform(cls, low: int, high: int) -> "HitDistribution":
        """Discrete uniform distribution over [low, high].

        Example:
            >>> HitDistribution.uniform(0, 3).to_dict()
            {0: 0.25, 1: 0.25, 2: 0.25, 3: 0.25}
        """
        if high < low:
            raise ValueError(f"Invalid range [{low}, {high}]")
        probability = 1.0 / (high - low + 1)
        return cls(tuple((damage, probability) for damage in range(low, high + 1)))

    @classmethod
    def mix(
        cls, weighted: Sequence[Tuple[float, "HitDistribution"]]
    ) -> "HitDistribution":
        """Weighted mixture of distributions.

        Args:
            weighted: (weight, distribution) pairs; weights should sum to 1

        Returns:
            The combined distribution
        """
        weights: Dict[int, float] = {}
        for weight, dist in weighted:
            if weight <= 0:
                continue
            for damage, probability in dist.outcomes:
                weights[damage] = weights.get(damage, 0.0) + weight * probability
        return cls.from_weights(weights)

    def __iter__(self) -> Iterator[Tuple[int, float]]:
        return iter(self.outcomes)

    def __len__(self) -> int:
        return len(self.outcomes)

    def items(self) -> Tuple[Tuple[int, float], ...]:
        return self.outcomes

    def to_dict(self) -> Dict[int, float]:
        return dict(self.outcomes)

    def probability_of(self, damage: int) -> float:
        for outcome, probability in self.outcomes:
            if outcome == damage:
                return probability
        return 0.0

    def total_probability(self) -> float:
        return math.fsum(probability for _, probability in self.outcomes)

    def is_normalized(self, epsilon: float = DISTRIBUTION_EPSILON) -> bool:
        return abs(self.total_probability() - 1.0) <= epsilon

    def normalized(self) -> "HitDistribution":
        total = self.total_probability()
        if total <= 0:
            return HitDistribution.single(0)
        return HitDistribution(
            tuple((damage, probability / total) for damage, probability in self.outcomes)
        )

    def expected_value(self) -> float:
        return math.fsum(damage * probability for damage, probability in self.outcomes)

    def max_damage(self) -> int:
        return self.outcomes[-1][0] if self.outcomes else 0

    def min_damage(self) -> int:
        return self.outcomes[0][0] if self.outcomes else 0

    def landed_probability(self) -> float:
        """Probability of dealing non-zero damage."""
        return math.fsum(
            probability for damage, probability in self.outcomes if damage > 0
        )

    def transform(
        self, fn: Callable[[int], "HitDistribution"]
    ) -> "HitDistribution":
        """Replace every outcome with a sub-distribution.

        Each damage d with probability p contributes fn(d) weighted by p. This
        is the general building block that the other transforms use.
        """
        return HitDistribution.mix(
            [(probability, fn(damage)) for damage, probability in self.outcomes]
        )

    def map_damage(self, fn: Callable[[int], int]) -> "HitDistribution":
        """Deterministically remap each damage value."""
        return self.transform(lambda damage: HitDistribution.single(fn(damage)))

    def scale(self, numerator: int, denominator: int) -> "HitDistribution":
        """Multiply damage by numerator / denominator, rounding down."""
        if denominator <= 0 or numerator < 0:
            raise ValueError(f"Invalid scale {numerator}/{denominator}")
        return self.map_damage(lambda damage: damage * numerator // denominator)

    def scale_float(self, multiplier: float) -> "HitDistribution":
        """Multiply damage by a float multiplier, rounding down."""
        if multiplier < 0:
            raise ValueError(f"Invalid multiplier {multiplier}")
        return self.map_damage(lambda damage: int(math.floor(damage * multiplier)))

    def shift(self, amount: int) -> "HitDistribution":
        """Add a flat amount to every outcome (never below zero)."""
        return self.map_damage(lambda damage: max(0, damage + amount))

    def clamp(self, low: int, high: int) -> "HitDistribution":
        """Clamp every outcome into [low, high]."""
        if high < low:
            raise ValueError(f"Invalid range [{low}, {high}]")
        return self.map_damage(lambda damage: min(high, max(low, damage)))

    def cap(self, limit: int) -> "HitDistribution":
        """Cap every outcome at limit."""
        return self.map_damage(lambda damage: min(limit, damage))

    def with_accuracy(self, accuracy: float) -> "HitDistribution":
        """Combine this (landed) distribution with the chance to miss.

        A miss deals 0, so the mass at damage 0 holds both misses and landed
        hits of zero, and the mass of the landed part equals accuracy.

        Example:
            >>> HitDistribution.uniform(0, 1).with_accuracy(0.5).to_dict()
            {0: 0.75, 1: 0.25}
        """
        accuracy = min(1.0, max(0.0, accuracy))
        if accuracy == 0.0:
            return HitDistribution.single(0)
        if accuracy == 1.0:
            return self
        return HitDistribution.mix(
            [(accuracy, self), (1.0 - accuracy, HitDistribution.single(0))]
        )

    def convolve(self, other: "HitDistribution") -> "HitDistribution":
        """Distribution of the sum of two independent hits."""
        weights: Dict[int, float] = {}
        for damage, probability in self.outcomes:
            for other_damage, other_probability in other.outcomes:
                total = damage + other_damage
                weights[total] = weights.get(total, 0.0) + probability * other_probability
        return HitDistribution.from_weights(weights)

    @classmethod
    def convolve_all(cls, dists: Sequence["HitDistribution"]) -> "HitDistribution":
        """Combine several sub-hits of one attack into a single distribution."""
        result = cls.single(0)
        for dist in dists:
            result = result.convolve(dist)
        return result
