"""Engine side of the recompute protocol.

handle_message() is the only entry point of the engine's execution context:
JSON text in, JSON text out. It never raises, so one bad request cannot take
the execution context down with it.
"""

import json

from absl import logging
from pydantic import ValidationError as PydanticValidationError

from dpscalc.calc.damage_engine import TICK_SECONDS, compute
from dpscalc.calc.hit_distribution import DISTRIBUTION_EPSILON
from dpscalc.game.environment.snapshot_builder import build_snapshot_pair
from dpscalc.game.exceptions import CalculatorError, ErrorKind
from dpscalc.protocol.messages import (
    ComputedValuesResponse,
    ErrorResponse,
    encode_message,
    parse_request,
)


def _salvage_token(raw: str) -> int:
    """Best-effort token of a request that failed to parse."""
    try:
        token = json.loads(raw).get("token", 0)
    except (ValueError, AttributeError):
        return 0
    return token if isinstance(token, int) and token >= 0 else 0


def handle_message(
    raw: str,
    tick_seconds: float = TICK_SECONDS,
    distribution_epsilon: float = DISTRIBUTION_EPSILON,
) -> str:
    """Answer one RECOMPUTE_VALUES request.

    Args:
        raw: JSON text of a RecomputeValuesRequest
        tick_seconds: Length of one game tick in seconds
        distribution_epsilon: Allowed deviation of a distribution's total
            probability from 1

    Returns:
        JSON text of a ComputedValuesResponse, or of an ErrorResponse with
        kind VALIDATION_ERROR (bad snapshot data) or ENGINE_FAULT (anything
        else), echoing the request token
    """
    try:
        request = parse_request(raw)
    except PydanticValidationError as e:
        token = _salvage_token(raw)
        logging.error(f"[EngineWorker] Malformed request token={token}: {e}")
        return encode_message(
            ErrorResponse(
                token=token,
                error=ErrorKind.ENGINE_FAULT,
                detail=f"Malformed request: {e.error_count()} error(s)",
            )
        )

    token = request.token
    try:
        player, monster = build_snapshot_pair(
            request.data.player, request.data.monster
        )
        values = compute(
            player,
            monster,
            tick_seconds=tick_seconds,
            distribution_epsilon=distribution_epsilon,
        )
    except CalculatorError as e:
        logging.warning(f"[EngineWorker] {e.kind.value} for token={token}: {e.detail}")
        return encode_message(ErrorResponse(token=token, error=e.kind, detail=e.detail))
    except Exception as e:
        logging.exception(f"[EngineWorker] Unexpected failure for token={token}")
        return encode_message(
            ErrorResponse(token=token, error=ErrorKind.ENGINE_FAULT, detail=repr(e))
        )

    logging.debug(f"[EngineWorker] Computed token={token}: {values}")
    return encode_message(ComputedValuesResponse.from_values(token, values))
