"""Messages exchanged between the recompute channel and the engine worker.

Request  { type: "RECOMPUTE_VALUES", token, data: { player, monster } }
Response { type: "COMPUTED_VALUES",  token, data: ComputedValues }
       |  { type: "ERROR",           token, error: ErrorKind, detail }

Messages cross the execution-context boundary as JSON text, so every message
carries an independent copy of its payload.
"""

from enum import Enum
from typing import Annotated, Any, Dict, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from dpscalc.game.exceptions import ErrorKind
from dpscalc.game.schema.computed_values import ComputedValues
from dpscalc.game.schema.monster_state import MonsterState
from dpscalc.game.schema.player_state import PlayerState


class WorkerRequestType(str, Enum):
    RECOMPUTE_VALUES = "RECOMPUTE_VALUES"


class WorkerResponseType(str, Enum):
    COMPUTED_VALUES = "COMPUTED_VALUES"
    ERROR = "ERROR"


class RecomputeData(BaseModel):
    model_config = ConfigDict(frozen=True)
    player: Dict[str, Any] = Field(description="Player snapshot as a dictionary.")
    monster: Dict[str, Any] = Field(description="Monster snapshot as a dictionary.")


class RecomputeValuesRequest(BaseModel):
    """Ask the engine to compute values for one (player, monster) pair."""

    model_config = ConfigDict(frozen=True)
    type: Literal["RECOMPUTE_VALUES"] = WorkerRequestType.RECOMPUTE_VALUES.value
    token: int = Field(ge=0, description="Sequence number echoed in the response.")
    data: RecomputeData

    @classmethod
    def from_snapshots(
        cls, token: int, player: PlayerState, monster: MonsterState
    ) -> "RecomputeValuesRequest":
        return cls(
            token=token,
            data=RecomputeData(player=player.to_dict(), monster=monster.to_dict()),
        )


class ComputedValuesResponse(BaseModel):
    """Successful engine result for the request with the same token."""

    model_config = ConfigDict(frozen=True)
    type: Literal["COMPUTED_VALUES"] = WorkerResponseType.COMPUTED_VALUES.value
    token: int = Field(ge=0)
    data: Dict[str, Any] = Field(description="ComputedValues as a dictionary.")

    @classmethod
    def from_values(cls, token: int, values: ComputedValues) -> "ComputedValuesResponse":
        return cls(token=token, data=values.to_dict())

    def computed_values(self) -> ComputedValues:
        return ComputedValues.from_dict(self.data)


class ErrorResponse(BaseModel):
    """Typed failure for the request with the same token."""

    model_config = ConfigDict(frozen=True)
    type: Literal["ERROR"] = WorkerResponseType.ERROR.value
    token: int = Field(ge=0)
    error: ErrorKind
    detail: str = ""


WorkerResponse = Annotated[
    Union[ComputedValuesResponse, ErrorResponse], Field(discriminator="type")
]

_RESPONSE_ADAPTER: TypeAdapter = TypeAdapter(WorkerResponse)


def encode_message(
    message: Union[RecomputeValuesRequest, ComputedValuesResponse, ErrorResponse],
) -> str:
    """Encode a message as JSON text for the wire."""
    return message.model_dump_json()


def parse_request(raw: str) -> RecomputeValuesRequest:
    """Parse a request from JSON text.

    Raises:
        pydantic.ValidationError: If the text is not a valid request
    """
    return RecomputeValuesRequest.model_validate_json(raw)


def parse_response(raw: str) -> Union[ComputedValuesResponse, ErrorResponse]:
    """Parse either response type from JSON text.

    Raises:
        pydantic.ValidationError: If the text is not a valid response
    """
    return _RESPONSE_ADAPTER.validate_json(raw)
