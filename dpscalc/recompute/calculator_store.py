"""Editable calculator state and the latest results shown to the user."""

import copy
from enum import Enum
from typing import Any, Callable, Dict, Optional, Union

from absl import logging

from dpscalc.game.data.game_data import GameData
from dpscalc.game.environment.snapshot_builder import equip as equip_items
from dpscalc.game.exceptions import CalculatorError, ValidationError, error_from_kind
from dpscalc.game.schema.computed_values import ComputedValues
from dpscalc.game.schema.enums import EquipmentSlot
from dpscalc.protocol.messages import ComputedValuesResponse, ErrorResponse


class StateSlot(Enum):
    """The two independently edited pieces of state."""

    PLAYER = "player"
    MONSTER = "monster"


ChangeListener = Callable[[StateSlot], None]


def _merge(target: Dict[str, Any], partial: Dict[str, Any]) -> None:
    """Merge partial into target in place; nested dicts merge, other values replace."""
    for key, value in partial.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge(target[key], value)
        else:
            target[key] = copy.deepcopy(value)


class CalculatorStore:
    """Holds the editable player/monster state and the applied results.

    The store is plain mutable state owned by one editing surface. A single
    listener (the recompute trigger) is registered explicitly and told which
    slot changed; the store never computes anything itself.

    Results flow back in through apply_response(), which suppresses stale
    responses: only a response for the most recently submitted token is
    applied, and once a token has been applied no lower token can replace it.
    """

    def __init__(
        self,
        player: Optional[Dict[str, Any]] = None,
        monster: Optional[Dict[str, Any]] = None,
        game_data: Optional[GameData] = None,
    ) -> None:
        """Initialize the store.

        Args:
            player: Initial editable player state (copied)
            monster: Initial editable monster state (copied)
            game_data: Catalog used by equip() and select_monster()
        """
        self._player: Dict[str, Any] = copy.deepcopy(player) if player else {}
        self._monster: Dict[str, Any] = copy.deepcopy(monster) if monster else {}
        self._game_data = game_data
        self._equipment: Dict[EquipmentSlot, str] = {}

        self._computed_values: Optional[ComputedValues] = None
        self._last_error: Optional[CalculatorError] = None
        self._applied_token = 0
        self._last_submitted_token = 0
        self._listener: Optional[ChangeListener] = None

    @property
    def player(self) -> Dict[str, Any]:
        """Copy of the editable player state."""
        return copy.deepcopy(self._player)

    @property
    def monster(self) -> Dict[str, Any]:
        """Copy of the editable monster state."""
        return copy.deepcopy(self._monster)

    @property
    def equipment(self) -> Dict[EquipmentSlot, str]:
        return dict(self._equipment)

    @property
    def computed_values(self) -> Optional[ComputedValues]:
        return self._computed_values

    @property
    def last_error(self) -> Optional[CalculatorError]:
        return self._last_error

    @property
    def applied_token(self) -> int:
        return self._applied_token

    @property
    def last_submitted_token(self) -> int:
        return self._last_submitted_token

    def has_player(self) -> bool:
        return bool(self._player)

    def has_monster(self) -> bool:
        return bool(self._monster)

    def set_listener(self, listener: Optional[ChangeListener]) -> None:
        """Register (or with None, remove) the change listener."""
        self._listener = listener

    def set_player(self, raw: Dict[str, Any]) -> None:
        """Replace the whole player state."""
        self._player = copy.deepcopy(raw)
        self._equipment = {}
        self._notify(StateSlot.PLAYER)

    def set_monster(self, raw: Dict[str, Any]) -> None:
        """Replace the whole monster state."""
        self._monster = copy.deepcopy(raw)
        self._notify(StateSlot.MONSTER)

    def update_player(self, partial: Dict[str, Any]) -> None:
        """Merge a partial edit into the player state.

        Example:
            >>> store.update_player({"skills": {"attack": 99}, "stance": "aggressive"})
        """
        _merge(self._player, partial)
        self._notify(StateSlot.PLAYER)

    def update_monster(self, partial: Dict[str, Any]) -> None:
        """Merge a partial edit into the monster state."""
        _merge(self._monster, partial)
        self._notify(StateSlot.MONSTER)

    def select_monster(self, name: str) -> None:
        """Replace the monster state with a catalog monster.

        Raises:
            ValidationError: If the monster is not in the catalog
        """
        try:
            definition = self._catalog().get_monster(name)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        self.set_monster(definition.to_raw())

    def equip(self, slot: Union[EquipmentSlot, str], item: Optional[str]) -> None:
        """Put an item in a slot (or empty the slot with None).

        The bonuses of the whole loadout become the player's bonuses.

        Raises:
            ValidationError: If the item is unknown or belongs in another slot
        """
        slot = slot if isinstance(slot, EquipmentSlot) else EquipmentSlot(slot)
        game_data = self._catalog()
        equipment = dict(self._equipment)
        if item is None:
            equipment.pop(slot, None)
        else:
            try:
                piece = game_data.get_equipment(item)
            except ValueError as e:
                raise ValidationError(str(e)) from e
            if piece.slot != slot:
                raise ValidationError(
                    f"{piece.name} goes in the {piece.slot.value} slot, not {slot.value}"
                )
            equipment[slot] = piece.name

        self._player = equip_items(self._player, equipment.values(), game_data)
        self._equipment = equipment
        self._notify(StateSlot.PLAYER)

    def record_submission(self, token: int) -> None:
        """Remember the token of the newest request sent for this state."""
        self._last_submitted_token = max(self._last_submitted_token, token)

    def apply_response(
        self, response: Union[ComputedValuesResponse, ErrorResponse]
    ) -> bool:
        """Apply an engine response unless it is stale.

        A response is stale when its token is older than the latest
        submission, or not newer than the highest token already applied.
        COMPUTED_VALUES replaces the computed values and clears the error;
        ERROR records the error and keeps the previous values.

        Returns:
            True if the response was applied, False if it was dropped
        """
        token = response.token
        if token <= self._applied_token or token < self._last_submitted_token:
            logging.debug(
                f"[CalculatorStore] Dropping stale response token={token} "
                f"(applied={self._applied_token}, "
                f"submitted={self._last_submitted_token})"
            )
            return False

        self._applied_token = token
        if isinstance(response, ComputedValuesResponse):
            self._computed_values = response.computed_values()
            self._last_error = None
            logging.debug(f"[CalculatorStore] Applied values token={token}")
        else:
            self._last_error = error_from_kind(response.error, response.detail)
            logging.debug(
                f"[CalculatorStore] Applied error token={token}: {self._last_error}"
            )
        return True

    def _catalog(self) -> GameData:
        if self._game_data is None:
            self._game_data = GameData()
        return self._game_data

    def _notify(self, slot: StateSlot) -> None:
        if self._listener is not None:
            self._listener(slot)
