"""Turns store mutations into coalesced recompute requests."""

import asyncio
import contextlib
from enum import Enum
from typing import Iterator, Optional, Set, Tuple, Union

from absl import logging

from dpscalc.game.environment.snapshot_builder import build_snapshot_pair
from dpscalc.game.exceptions import ErrorKind, ValidationError
from dpscalc.game.schema.monster_state import MonsterState
from dpscalc.game.schema.player_state import PlayerState
from dpscalc.protocol.messages import (
    ComputedValuesResponse,
    ErrorResponse,
    RecomputeValuesRequest,
)
from dpscalc.recompute.calculator_store import CalculatorStore, StateSlot
from dpscalc.recompute.recompute_channel import RecomputeChannel


class TriggerState(Enum):
    """Where the trigger is in its request cycle."""

    IDLE = "idle"
    SNAPSHOT_BUILT = "snapshot_built"
    SUBMITTED = "submitted"


class RecomputeTrigger:
    """Observes the player and monster slots and submits recompute requests.

    A mutation only marks its slot dirty. The actual flush (build the
    snapshot pair once, submit one request) runs at the end of the current
    update step: either the end of the current event loop iteration, or the
    end of an explicit update_step() block. Mutating the player and then the
    monster in one step therefore submits a single request carrying the final
    values of both.

    State cycle: IDLE -> SNAPSHOT_BUILT -> SUBMITTED -> IDLE, returning to
    IDLE once the response for the latest token has been handled (applied or
    dropped as stale). Tokens start at 1 and increase with each submission.
    """

    def __init__(
        self,
        store: CalculatorStore,
        channel: RecomputeChannel,
        skip_unchanged: bool = True,
    ) -> None:
        """Initialize the trigger.

        Args:
            store: Store whose slots are observed
            channel: Channel requests are submitted to
            skip_unchanged: Skip a flush whose snapshot pair equals the last
                submitted pair
        """
        self._store = store
        self._channel = channel
        self._skip_unchanged = skip_unchanged

        self._state = TriggerState.IDLE
        self._dirty: Set[StateSlot] = set()
        self._step_depth = 0
        self._scheduled: Optional[asyncio.Handle] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

        self._last_token = 0
        self._awaiting_token: Optional[int] = None
        self._last_pair: Optional[Tuple[PlayerState, MonsterState]] = None
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def state(self) -> TriggerState:
        return self._state

    @property
    def last_token(self) -> int:
        """Token of the most recent submission (0 before the first)."""
        return self._last_token

    @property
    def is_attached(self) -> bool:
        return self._loop is not None

    def attach(self) -> None:
        """Start observing the store. Must run inside the event loop."""
        self._loop = asyncio.get_running_loop()
        self._store.set_listener(self._on_change)
        logging.debug("[RecomputeTrigger] Attached to store")

    def detach(self) -> None:
        """Stop observing the store and drop any pending flush."""
        self._store.set_listener(None)
        if self._scheduled is not None:
            self._scheduled.cancel()
            self._scheduled = None
        self._dirty.clear()
        self._loop = None
        self._awaiting_token = None
        self._state = TriggerState.IDLE
        self._idle.set()
        logging.debug("[RecomputeTrigger] Detached from store")

    def request_recompute(self) -> None:
        """Mark both slots dirty, as if both had just been edited."""
        self._on_change(StateSlot.PLAYER)
        self._on_change(StateSlot.MONSTER)

    @contextlib.contextmanager
    def update_step(self) -> Iterator[None]:
        """Group several edits into one update step.

        Nested blocks are allowed; the flush runs when the outermost block
        exits.

        Example:
            >>> with trigger.update_step():
            ...     store.update_player({"skills": {"attack": 99}})
            ...     store.select_monster("Vorkath")
        """
        self._step_depth += 1
        try:
            yield
        finally:
            self._step_depth -= 1
            if self._step_depth == 0 and self._dirty:
                self.flush()

    async def wait_until_idle(self) -> None:
        """Wait until no flush is pending and the latest request is answered."""
        await self._idle.wait()

    def flush(self) -> None:
        """Build the snapshot pair and submit it if anything is dirty."""
        if self._scheduled is not None:
            self._scheduled.cancel()
            self._scheduled = None
        if not self._dirty:
            return
        dirty = sorted(slot.value for slot in self._dirty)
        self._dirty.clear()

        try:
            pair = build_snapshot_pair(self._store.player, self._store.monster)
        except ValidationError as e:
            self._reject(e)
            return
        self._state = TriggerState.SNAPSHOT_BUILT

        if self._skip_unchanged and pair == self._last_pair:
            logging.debug("[RecomputeTrigger] Snapshot unchanged, skipping submit")
            self._settle()
            return

        token = self._next_token()
        self._last_pair = pair
        self._awaiting_token = token
        self._state = TriggerState.SUBMITTED
        logging.debug(f"[RecomputeTrigger] Submitting token={token} (dirty: {dirty})")
        # The channel may answer synchronously (after close), so all
        # bookkeeping happens before submit().
        self._channel.submit(RecomputeValuesRequest.from_snapshots(token, *pair))

    def handle_response(
        self, response: Union[ComputedValuesResponse, ErrorResponse]
    ) -> None:
        """Channel callback: apply the response to the store."""
        applied = self._store.apply_response(response)
        if not applied and response.token < self._last_token:
            logging.debug(
                f"[RecomputeTrigger] Response token={response.token} superseded "
                f"by token={self._last_token}"
            )
        if self._awaiting_token is not None and response.token >= self._awaiting_token:
            self._awaiting_token = None
            self._settle()

    def _on_change(self, slot: StateSlot) -> None:
        if self._loop is None:
            logging.warning(
                f"[RecomputeTrigger] {slot.value} changed while detached, ignoring"
            )
            return
        self._dirty.add(slot)
        self._idle.clear()
        if self._step_depth > 0 or self._scheduled is not None:
            return
        self._scheduled = self._loop.call_soon(self.flush)

    def _next_token(self) -> int:
        self._last_token += 1
        self._store.record_submission(self._last_token)
        return self._last_token

    def _reject(self, error: ValidationError) -> None:
        """Report a snapshot build failure without submitting anything.

        The failure consumes a token so that responses still in flight for
        earlier state are dropped as stale.
        """
        token = self._next_token()
        self._last_pair = None
        self._awaiting_token = None
        logging.debug(f"[RecomputeTrigger] Rejected token={token}: {error.detail}")
        self._store.apply_response(
            ErrorResponse(
                token=token, error=ErrorKind.VALIDATION_ERROR, detail=error.detail
            )
        )
        self._settle()

    def _settle(self) -> None:
        """Return to IDLE unless work is pending or a response is awaited."""
        if self._dirty or self._scheduled is not None:
            return
        if self._awaiting_token is not None:
            self._state = TriggerState.SUBMITTED
            return
        self._state = TriggerState.IDLE
        self._idle.set()
