"""Asynchronous recomputation of calculator results."""

from dpscalc.recompute.calculator_store import CalculatorStore, StateSlot
from dpscalc.recompute.calculator_surface import CalculatorConfig, CalculatorSurface
from dpscalc.recompute.recompute_channel import RecomputeChannel
from dpscalc.recompute.recompute_trigger import RecomputeTrigger, TriggerState

__all__ = [
    "CalculatorConfig",
    "CalculatorStore",
    "CalculatorSurface",
    "RecomputeChannel",
    "RecomputeTrigger",
    "StateSlot",
    "TriggerState",
]
