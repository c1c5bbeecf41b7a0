"""Asynchronous request/response channel between the trigger and the engine."""

import asyncio
import functools
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor
from typing import Callable, List, Optional, Tuple, Union

from absl import logging

from dpscalc.calc.damage_engine import TICK_SECONDS
from dpscalc.calc.hit_distribution import DISTRIBUTION_EPSILON
from dpscalc.game.exceptions import ErrorKind
from dpscalc.protocol.engine_worker import handle_message
from dpscalc.protocol.messages import (
    ComputedValuesResponse,
    ErrorResponse,
    RecomputeValuesRequest,
    encode_message,
    parse_response,
)

WorkerResponseMessage = Union[ComputedValuesResponse, ErrorResponse]
ResponseHandler = Callable[[WorkerResponseMessage], None]

EXECUTOR_KINDS = ("thread", "process")


class RecomputeChannel:
    """Ordered, single-consumer transport running the engine off the caller.

    Architecture:
    - submit() encodes the request to JSON and enqueues it; it never blocks
    - One consumer task takes requests in FIFO order and hands each to a
      single-worker executor (a thread or a separate process), so at most
      one computation is in flight and none is ever interrupted
    - The JSON reply is decoded and passed to every registered handler,
      exactly once per request

    Every request and response crosses the boundary as JSON text, so the
    engine never shares mutable memory with the caller.

    Lifecycle: start() inside a running event loop (surface mount), close()
    on surface unmount. Requests submitted after close() are never executed;
    handlers receive a CHANNEL_CLOSED error for them instead.
    """

    def __init__(
        self,
        executor_kind: str = "thread",
        tick_seconds: float = TICK_SECONDS,
        distribution_epsilon: float = DISTRIBUTION_EPSILON,
        worker: Optional[Callable[[str], str]] = None,
    ) -> None:
        """Initialize the channel.

        Args:
            executor_kind: "thread" or "process"
            tick_seconds: Length of one game tick, forwarded to the engine
            distribution_epsilon: Normalization tolerance, forwarded to the
                engine
            worker: Replacement for the engine worker (JSON in, JSON out)
        """
        if executor_kind not in EXECUTOR_KINDS:
            raise ValueError(
                f"executor_kind must be one of {EXECUTOR_KINDS}, got {executor_kind}"
            )
        self._executor_kind = executor_kind
        self._worker: Callable[[str], str] = worker or functools.partial(
            handle_message,
            tick_seconds=tick_seconds,
            distribution_epsilon=distribution_epsilon,
        )
        self._handlers: List[ResponseHandler] = []
        self._executor: Optional[Executor] = None
        self._queue: Optional[asyncio.Queue[Tuple[int, str]]] = None
        self._consumer_task: Optional[asyncio.Task[None]] = None
        self._closed = False

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def is_started(self) -> bool:
        return self._consumer_task is not None

    def start(self) -> None:
        """Create the execution context and the consumer task.

        Must be called from within a running event loop.

        Raises:
            RuntimeError: If the channel was already started or closed
        """
        if self._closed:
            raise RuntimeError("Cannot start a closed RecomputeChannel")
        if self._consumer_task is not None:
            raise RuntimeError("RecomputeChannel already started")

        if self._executor_kind == "process":
            self._executor = ProcessPoolExecutor(max_workers=1)
        else:
            self._executor = ThreadPoolExecutor(
                max_workers=1, thread_name_prefix="dpscalc-engine"
            )
        self._queue = asyncio.Queue()
        self._consumer_task = asyncio.get_running_loop().create_task(
            self._consume(), name="recompute-channel"
        )
        logging.info(f"[RecomputeChannel] Started ({self._executor_kind} executor)")

    def on_response(self, handler: ResponseHandler) -> None:
        """Register a callback invoked once per completed request."""
        self._handlers.append(handler)

    def submit(self, request: RecomputeValuesRequest) -> None:
        """Enqueue a request without blocking.

        After close() the request is not executed; handlers receive a
        CHANNEL_CLOSED error response for its token instead.

        Raises:
            RuntimeError: If the channel was never started
        """
        if self._closed:
            logging.warning(
                f"[RecomputeChannel] Submit after close, token={request.token}"
            )
            self._dispatch(
                ErrorResponse(
                    token=request.token,
                    error=ErrorKind.CHANNEL_CLOSED,
                    detail="Recompute channel is closed",
                )
            )
            return
        if self._queue is None:
            raise RuntimeError("RecomputeChannel not started")

        self._queue.put_nowait((request.token, encode_message(request)))
        logging.debug(
            f"[RecomputeChannel] Submitted token={request.token} "
            f"(queued: {self._queue.qsize()})"
        )

    async def drain(self) -> None:
        """Wait until every request submitted so far has been answered.

        Returns early when the channel is closed while waiting, since the
        discarded requests will never be answered.
        """
        if self._queue is None or self._consumer_task is None or self._closed:
            return
        joined = asyncio.ensure_future(self._queue.join())
        try:
            await asyncio.wait(
                {joined, self._consumer_task}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            joined.cancel()

    def close(self) -> None:
        """Tear down the consumer and the execution context.

        Queued requests are discarded; an in-flight computation is left to
        finish in the background and its result is dropped.
        """
        if self._closed:
            return
        self._closed = True
        if self._consumer_task is not None:
            self._consumer_task.cancel()
        if self._queue is not None:
            discarded = 0
            while not self._queue.empty():
                self._queue.get_nowait()
                self._queue.task_done()
                discarded += 1
            if discarded:
                logging.info(f"[RecomputeChannel] Discarded {discarded} queued requests")
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
        logging.info("[RecomputeChannel] Closed")

    async def wait_closed(self) -> None:
        """Wait for the consumer task to finish after close()."""
        if self._consumer_task is None:
            return
        try:
            await self._consumer_task
        except asyncio.CancelledError:
            pass

    async def _consume(self) -> None:
        """Consumer loop: one request at a time, in submission order."""
        assert self._queue is not None
        loop = asyncio.get_running_loop()
        while True:
            token, raw_request = await self._queue.get()
            try:
                response = await self._execute(loop, token, raw_request)
                self._dispatch(response)
            finally:
                self._queue.task_done()

    async def _execute(
        self, loop: asyncio.AbstractEventLoop, token: int, raw_request: str
    ) -> WorkerResponseMessage:
        """Run one request in the execution context.

        Faults of the context itself (executor failure, undecodable reply)
        become ENGINE_FAULT responses for the request's token.
        """
        try:
            raw_response = await loop.run_in_executor(
                self._executor, self._worker, raw_request
            )
            response = parse_response(raw_response)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logging.exception(f"[RecomputeChannel] Engine fault for token={token}")
            return ErrorResponse(
                token=token, error=ErrorKind.ENGINE_FAULT, detail=repr(e)
            )

        if response.token != token:
            logging.error(
                f"[RecomputeChannel] Worker answered token={response.token} "
                f"for request token={token}"
            )
            return ErrorResponse(
                token=token,
                error=ErrorKind.ENGINE_FAULT,
                detail=f"Response token {response.token} does not match request",
            )
        return response

    def _dispatch(self, response: WorkerResponseMessage) -> None:
        for handler in list(self._handlers):
            try:
                handler(response)
            except Exception:
                logging.exception(
                    f"[RecomputeChannel] Response handler failed for token={response.token}"
                )
