"""Combat formulas and the damage engine."""

from dpscalc.calc.damage_engine import DamageCalculator, compute
from dpscalc.calc.hit_distribution import HitDistribution

__all__ = ["DamageCalculator", "HitDistribution", "compute"]
