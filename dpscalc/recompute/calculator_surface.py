"""Lifecycle of one calculator editing surface."""

import asyncio
from dataclasses import dataclass
from typing import Optional

from absl import logging

from dpscalc.calc.damage_engine import TICK_SECONDS
from dpscalc.calc.hit_distribution import DISTRIBUTION_EPSILON
from dpscalc.recompute.calculator_store import CalculatorStore
from dpscalc.recompute.recompute_channel import EXECUTOR_KINDS, RecomputeChannel
from dpscalc.recompute.recompute_trigger import RecomputeTrigger


@dataclass(frozen=True)
class CalculatorConfig:
    """Settings of a calculator surface.

    Attributes:
        tick_seconds: Length of one game tick in seconds
        executor: Engine execution context, "thread" or "process"
        skip_unchanged: Skip requests whose snapshots equal the last ones sent
        distribution_epsilon: Tolerance for hit distributions summing to 1
    """

    tick_seconds: float = TICK_SECONDS
    executor: str = "thread"
    skip_unchanged: bool = True
    distribution_epsilon: float = DISTRIBUTION_EPSILON

    def __post_init__(self) -> None:
        if self.tick_seconds <= 0:
            raise ValueError(f"tick_seconds must be positive, got {self.tick_seconds}")
        if self.executor not in EXECUTOR_KINDS:
            raise ValueError(
                f"executor must be one of {EXECUTOR_KINDS}, got {self.executor}"
            )


class CalculatorSurface:
    """Owns the engine channel and the trigger for one store.

    mount() creates exactly one channel (and its execution context) and one
    trigger, and routes engine responses into the store; unmount() releases
    both. A surface can be mounted once.

    Example:
        >>> async with CalculatorSurface(store) as surface:
        ...     store.update_player({"skills": {"attack": 99}})
        ...     await surface.wait_until_idle()
        ...     print(store.computed_values)
    """

    def __init__(
        self, store: CalculatorStore, config: Optional[CalculatorConfig] = None
    ) -> None:
        self._store = store
        self._config = config or CalculatorConfig()
        self._channel: Optional[RecomputeChannel] = None
        self._trigger: Optional[RecomputeTrigger] = None
        self._unmounted = False

    @property
    def store(self) -> CalculatorStore:
        return self._store

    @property
    def config(self) -> CalculatorConfig:
        return self._config

    @property
    def trigger(self) -> RecomputeTrigger:
        if self._trigger is None:
            raise RuntimeError("CalculatorSurface is not mounted")
        return self._trigger

    @property
    def channel(self) -> RecomputeChannel:
        if self._channel is None:
            raise RuntimeError("CalculatorSurface is not mounted")
        return self._channel

    @property
    def is_mounted(self) -> bool:
        return self._channel is not None and not self._unmounted

    async def mount(self) -> None:
        """Create the channel and trigger and start observing the store.

        If the store already holds both player and monster state, an initial
        recompute is scheduled.

        Raises:
            RuntimeError: If the surface was already mounted
        """
        if self._channel is not None or self._unmounted:
            raise RuntimeError("CalculatorSurface can only be mounted once")

        self._channel = RecomputeChannel(
            executor_kind=self._config.executor,
            tick_seconds=self._config.tick_seconds,
            distribution_epsilon=self._config.distribution_epsilon,
        )
        self._trigger = RecomputeTrigger(
            self._store, self._channel, skip_unchanged=self._config.skip_unchanged
        )
        self._channel.on_response(self._trigger.handle_response)
        self._channel.start()
        self._trigger.attach()
        logging.info(f"[CalculatorSurface] Mounted ({self._config.executor} executor)")

        if self._store.has_player() and self._store.has_monster():
            self._trigger.request_recompute()

    async def unmount(self) -> None:
        """Detach the trigger and release the channel."""
        if not self.is_mounted:
            return
        self._unmounted = True
        assert self._trigger is not None and self._channel is not None
        self._trigger.detach()
        self._channel.close()
        await self._channel.wait_closed()
        logging.info("[CalculatorSurface] Unmounted")

    async def wait_until_idle(self, timeout: Optional[float] = None) -> None:
        """Wait until the latest edit has produced an applied result.

        Args:
            timeout: Seconds to wait before giving up (None waits forever)

        Raises:
            asyncio.TimeoutError: If the timeout expires first
        """
        await asyncio.wait_for(self.trigger.wait_until_idle(), timeout)

    async def __aenter__(self) -> "CalculatorSurface":
        await self.mount()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.unmount()
