"""Tests for RecomputeTrigger."""

import asyncio
import unittest
from typing import List, Union

from absl.testing import absltest

from dpscalc.game.exceptions import ChannelClosed, ErrorKind, ValidationError
from dpscalc.protocol.engine_worker import handle_message
from dpscalc.protocol.messages import (
    ComputedValuesResponse,
    ErrorResponse,
    RecomputeValuesRequest,
    encode_message,
    parse_response,
)
from dpscalc.recompute.calculator_store import CalculatorStore
from dpscalc.recompute.recompute_trigger import RecomputeTrigger, TriggerState

PLAYER = {"skills": {"attack": 70, "strength": 70, "hitpoints": 70}}
MONSTER = {"name": "Chicken", "skills": {"hitpoints": 3}}

Response = Union[ComputedValuesResponse, ErrorResponse]


class FakeChannel:
    """Records submitted requests; tests answer them explicitly."""

    def __init__(self) -> None:
        self.requests: List[RecomputeValuesRequest] = []

    def submit(self, request: RecomputeValuesRequest) -> None:
        self.requests.append(request)


class ClosedChannel:
    """Answers every request synchronously, like a channel after close()."""

    def __init__(self) -> None:
        self.trigger = None

    def submit(self, request: RecomputeValuesRequest) -> None:
        self.trigger.handle_response(
            ErrorResponse(
                token=request.token,
                error=ErrorKind.CHANNEL_CLOSED,
                detail="Recompute channel is closed",
            )
        )


class RecomputeTriggerTest(unittest.IsolatedAsyncioTestCase, absltest.TestCase):
    """Tests for RecomputeTrigger class."""

    async def asyncSetUp(self) -> None:
        """Set up test fixtures."""
        self.store = CalculatorStore(player=PLAYER, monster=MONSTER)
        self.channel = FakeChannel()
        self.trigger = RecomputeTrigger(self.store, self.channel)
        self.trigger.attach()

    def answer(self, request: RecomputeValuesRequest) -> Response:
        response = parse_response(handle_message(encode_message(request)))
        self.trigger.handle_response(response)
        return response

    async def next_iteration(self) -> None:
        await asyncio.sleep(0)

    async def test_edits_in_one_iteration_coalesce(self) -> None:
        """Test that edits in one loop iteration cause one submit."""
        self.store.update_player({"skills": {"attack": 99}})
        self.store.update_monster({"skills": {"defence": 5}})
        self.assertEmpty(self.channel.requests)

        await self.next_iteration()

        self.assertLen(self.channel.requests, 1)
        request = self.channel.requests[0]
        self.assertEqual(request.token, 1)
        self.assertEqual(request.data.player["skills"]["attack"], 99)
        self.assertEqual(request.data.monster["skills"]["defence"], 5)
        self.assertEqual(self.trigger.state, TriggerState.SUBMITTED)

    async def test_update_step_flushes_on_exit(self) -> None:
        """Test that an update step submits when it exits."""
        with self.trigger.update_step():
            self.store.update_player({"skills": {"strength": 99}})
            with self.trigger.update_step():
                self.store.update_monster({"skills": {"defence": 5}})
            self.assertEmpty(self.channel.requests)

        self.assertLen(self.channel.requests, 1)
        await self.next_iteration()
        self.assertLen(self.channel.requests, 1)

    async def test_update_step_without_edits(self) -> None:
        """Test that an update step without edits submits nothing."""
        with self.trigger.update_step():
            pass

        self.assertEmpty(self.channel.requests)
        self.assertEqual(self.trigger.state, TriggerState.IDLE)

    async def test_tokens_increase(self) -> None:
        """Test that every submit gets a larger token."""
        self.store.update_player({"skills": {"attack": 80}})
        await self.next_iteration()
        self.store.update_player({"skills": {"attack": 90}})
        await self.next_iteration()

        self.assertEqual([r.token for r in self.channel.requests], [1, 2])
        self.assertEqual(self.trigger.last_token, 2)
        self.assertEqual(self.store.last_submitted_token, 2)

    async def test_unchanged_snapshot_is_skipped(self) -> None:
        """Test that an unchanged snapshot is not resubmitted."""
        self.trigger.request_recompute()
        await self.next_iteration()
        self.trigger.request_recompute()
        await self.next_iteration()

        self.assertLen(self.channel.requests, 1)
        self.assertEqual(self.trigger.state, TriggerState.SUBMITTED)

        self.answer(self.channel.requests[0])
        self.assertEqual(self.trigger.state, TriggerState.IDLE)

    async def test_unchanged_snapshot_resubmitted_when_not_skipping(self) -> None:
        """Test that unchanged snapshots are resubmitted when skipping is off."""
        trigger = RecomputeTrigger(self.store, self.channel, skip_unchanged=False)
        trigger.attach()

        trigger.request_recompute()
        await self.next_iteration()
        trigger.request_recompute()
        await self.next_iteration()

        self.assertEqual([r.token for r in self.channel.requests], [1, 2])

    async def test_response_returns_to_idle(self) -> None:
        """Test that a response returns the trigger to idle."""
        self.trigger.request_recompute()
        await self.next_iteration()

        response = self.answer(self.channel.requests[0])

        self.assertIsInstance(response, ComputedValuesResponse)
        self.assertEqual(self.trigger.state, TriggerState.IDLE)
        self.assertEqual(self.store.computed_values, response.computed_values())
        await asyncio.wait_for(self.trigger.wait_until_idle(), timeout=1)

    async def test_wait_until_idle_blocks_until_answered(self) -> None:
        """Test that waiting for idle blocks until the answer arrives."""
        self.store.update_player({"skills": {"attack": 99}})
        waiter = asyncio.ensure_future(self.trigger.wait_until_idle())
        await self.next_iteration()
        await self.next_iteration()
        self.assertFalse(waiter.done())

        self.answer(self.channel.requests[0])
        await asyncio.wait_for(waiter, timeout=1)

    async def test_superseded_response_does_not_finish(self) -> None:
        """Test that a superseded response keeps the trigger busy."""
        self.store.update_player({"skills": {"strength": 1}})
        await self.next_iteration()
        self.store.update_player({"skills": {"strength": 99}})
        await self.next_iteration()
        first, second = self.channel.requests

        self.answer(first)
        self.assertIsNone(self.store.computed_values)
        self.assertEqual(self.trigger.state, TriggerState.SUBMITTED)

        response = self.answer(second)
        self.assertEqual(self.store.computed_values, response.computed_values())
        self.assertEqual(self.trigger.state, TriggerState.IDLE)

    async def test_late_response_is_dropped(self) -> None:
        """Test that a late response is dropped."""
        self.store.update_player({"skills": {"strength": 1}})
        await self.next_iteration()
        self.store.update_player({"skills": {"strength": 99}})
        await self.next_iteration()
        first, second = self.channel.requests

        latest = self.answer(second)
        late = self.answer(first)

        self.assertEqual(self.store.computed_values, latest.computed_values())
        self.assertNotEqual(
            late.computed_values().max_hit, latest.computed_values().max_hit
        )
        self.assertEqual(self.store.applied_token, 2)
        self.assertEqual(self.trigger.state, TriggerState.IDLE)

    async def test_invalid_state_is_rejected_without_submit(self) -> None:
        """Test that invalid state is reported without a submit."""
        self.store.update_player({"skills": {"attack": 150}})
        await self.next_iteration()

        self.assertEmpty(self.channel.requests)
        self.assertIsInstance(self.store.last_error, ValidationError)
        self.assertIn("attack", self.store.last_error.detail)
        self.assertEqual(self.trigger.state, TriggerState.IDLE)
        self.assertEqual(self.store.applied_token, 1)

    async def test_missing_monster_is_rejected(self) -> None:
        """Test that a missing monster is reported without a submit."""
        store = CalculatorStore(player=PLAYER)
        trigger = RecomputeTrigger(store, self.channel)
        trigger.attach()

        trigger.request_recompute()
        await self.next_iteration()

        self.assertEmpty(self.channel.requests)
        self.assertIsInstance(store.last_error, ValidationError)
        self.assertIn("monster", store.last_error.detail)

    async def test_invalid_state_supersedes_in_flight_request(self) -> None:
        """Test that invalid state supersedes an in-flight request."""
        self.trigger.request_recompute()
        await self.next_iteration()
        in_flight = self.channel.requests[0]

        self.store.update_player({"skills": {"attack": 150}})
        await self.next_iteration()
        self.answer(in_flight)

        self.assertIsNone(self.store.computed_values)
        self.assertIsInstance(self.store.last_error, ValidationError)

        # Restoring the earlier valid state is submitted again.
        self.store.update_player({"skills": {"attack": 70}})
        await self.next_iteration()
        self.assertLen(self.channel.requests, 2)
        self.assertEqual(self.channel.requests[1].token, 3)

        self.answer(self.channel.requests[1])
        self.assertIsNone(self.store.last_error)
        self.assertIsNotNone(self.store.computed_values)

    async def test_detached_trigger_ignores_edits(self) -> None:
        """Test that a detached trigger ignores edits."""
        self.trigger.detach()
        self.store.update_player({"skills": {"attack": 99}})
        await self.next_iteration()

        self.assertFalse(self.trigger.is_attached)
        self.assertEmpty(self.channel.requests)

    async def test_detach_cancels_pending_flush(self) -> None:
        """Test that detaching cancels a scheduled submit."""
        self.store.update_player({"skills": {"attack": 99}})
        self.trigger.detach()
        await self.next_iteration()

        self.assertEmpty(self.channel.requests)
        self.assertEqual(self.trigger.state, TriggerState.IDLE)
        await asyncio.wait_for(self.trigger.wait_until_idle(), timeout=1)

    async def test_synchronous_closed_answer(self) -> None:
        """Test a closed channel answering during submit."""
        channel = ClosedChannel()
        trigger = RecomputeTrigger(self.store, channel)
        channel.trigger = trigger
        self.trigger.detach()
        trigger.attach()

        trigger.request_recompute()
        await self.next_iteration()

        self.assertIsInstance(self.store.last_error, ChannelClosed)
        self.assertEqual(trigger.state, TriggerState.IDLE)
        await asyncio.wait_for(trigger.wait_until_idle(), timeout=1)


if __name__ == "__main__":
    absltest.main()
