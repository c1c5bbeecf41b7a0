"""Conversion of raw editable state into validated, immutable snapshots.

The editing surface keeps player and monster state as plain, possibly partial
dictionaries. Before a calculation they are validated with pydantic input
models and turned into frozen PlayerState / MonsterState snapshots that share
no mutable containers with the source dictionaries.
"""

import copy
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from dpscalc.game.data.base import normalize_name
from dpscalc.game.data.equipment import EquipmentPiece
from dpscalc.game.data.game_data import GameData
from dpscalc.game.exceptions import ValidationError
from dpscalc.game.schema.bonuses import EquipmentBonuses
from dpscalc.game.schema.enums import DamageType, EquipmentSlot, Stance
from dpscalc.game.schema.monster_state import MonsterState
from dpscalc.game.schema.player_state import PlayerState


class SkillLevelsInput(BaseModel):
    model_config = ConfigDict(extra="forbid")
    attack: int = Field(default=1, description="Attack level.")
    strength: int = Field(default=1, description="Strength level.")
    defence: int = Field(default=1, description="Defence level.")
    ranged: int = Field(default=1, description="Ranged level.")
    magic: int = Field(default=1, description="Magic level.")
    hitpoints: int = Field(default=10, description="Hitpoints level.")
    prayer: int = Field(default=1, description="Prayer level.")


class SkillBoostsInput(BaseModel):
    model_config = ConfigDict(extra="forbid")
    attack: int = 0
    strength: int = 0
    defence: int = 0
    ranged: int = 0
    magic: int = 0
    hitpoints: int = 0
    prayer: int = 0


class StyleBonusesInput(BaseModel):
    model_config = ConfigDict(extra="forbid")
    stab: int = 0
    slash: int = 0
    crush: int = 0
    ranged: int = 0
    magic: int = 0


class StyleMultipliersInput(BaseModel):
    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)
    stab: float = 1.0
    slash: float = 1.0
    crush: float = 1.0
    ranged: float = 1.0
    magic: float = 1.0


class OtherBonusesInput(BaseModel):
    model_config = ConfigDict(extra="forbid")
    strength: int = 0
    ranged_strength: int = 0
    magic_damage: int = 0
    prayer: int = 0


class EquipmentBonusesInput(BaseModel):
    model_config = ConfigDict(extra="forbid")
    offensive: StyleBonusesInput = Field(default_factory=StyleBonusesInput)
    defensive: StyleBonusesInput = Field(default_factory=StyleBonusesInput)
    other: OtherBonusesInput = Field(default_factory=OtherBonusesInput)


class PlayerInput(BaseModel):
    """Editable player state. Only skills are mandatory."""

    model_config = ConfigDict(extra="ignore")
    skills: SkillLevelsInput = Field(description="Base skill levels.")
    boosts: SkillBoostsInput = Field(default_factory=SkillBoostsInput)
    bonuses: EquipmentBonusesInput = Field(default_factory=EquipmentBonusesInput)
    damage_type: str = Field(default="crush", description="Active damage type.")
    stance: str = Field(default="accurate", description="Active stance.")
    attack_speed: int = Field(default=4, description="Attack speed in ticks.")
    spell_max_hit: Optional[int] = Field(
        default=None, description="Base max hit of the selected spell."
    )
    prayers: List[str] = Field(default_factory=list)
    effects: List[str] = Field(default_factory=list)
    on_slayer_task: bool = False
    current_hitpoints: Optional[int] = None
    equipment: List[str] = Field(default_factory=list)


class MonsterSkillsInput(BaseModel):
    model_config = ConfigDict(extra="forbid")
    defence: int = 1
    magic: int = 1
    hitpoints: int = Field(description="Maximum hitpoints.")


class MonsterInput(BaseModel):
    """Editable monster state. Name and skills (with hitpoints) are mandatory."""

    model_config = ConfigDict(extra="ignore")
    name: str = Field(min_length=1, description="Monster name.")
    skills: MonsterSkillsInput
    defensive: StyleBonusesInput = Field(default_factory=StyleBonusesInput)
    immunities: List[str] = Field(default_factory=list)
    damage_multipliers: StyleMultipliersInput = Field(
        default_factory=StyleMultipliersInput
    )
    attributes: List[str] = Field(default_factory=list)
    current_hitpoints: Optional[int] = None
    max_damage_cap: Optional[int] = None
    size: int = 1


def _describe_pydantic_error(kind: str, error: PydanticValidationError) -> str:
    problems = [
        f"{'.'.join(str(part) for part in item['loc'])}: {item['msg']}"
        for item in error.errors()
    ]
    return f"Invalid {kind} state ({'; '.join(problems)})"


def build_player_snapshot(raw: Dict[str, Any]) -> PlayerState:
    """Validate raw player state and build an immutable snapshot.

    Args:
        raw: Editable player state (possibly partial)

    Returns:
        A PlayerState that shares no mutable containers with raw

    Raises:
        ValidationError: If mandatory fields are missing, values are out of
            range, or enum names are unknown
    """
    try:
        model = PlayerInput.model_validate(raw)
    except PydanticValidationError as e:
        raise ValidationError(_describe_pydantic_error("player", e)) from e
    try:
        return PlayerState.from_dict(model.model_dump())
    except ValueError as e:
        raise ValidationError(f"Invalid player state ({e})") from e


def build_monster_snapshot(raw: Dict[str, Any]) -> MonsterState:
    """Validate raw monster state and build an immutable snapshot.

    Raises:
        ValidationError: If mandatory fields are missing, values are out of
            range, or enum names are unknown
    """
    try:
        model = MonsterInput.model_validate(raw)
    except PydanticValidationError as e:
        raise ValidationError(_describe_pydantic_error("monster", e)) from e
    try:
        return MonsterState.from_dict(model.model_dump())
    except ValueError as e:
        raise ValidationError(f"Invalid monster state ({e})") from e


def build_snapshot_pair(
    player_raw: Dict[str, Any], monster_raw: Dict[str, Any]
) -> Tuple[PlayerState, MonsterState]:
    """Build both snapshots of a calculation.

    Raises:
        ValidationError: If either side is invalid
    """
    return build_player_snapshot(player_raw), build_monster_snapshot(monster_raw)


def equip(
    player_raw: Dict[str, Any],
    items: Iterable[str],
    game_data: Optional[GameData] = None,
) -> Dict[str, Any]:
    """Apply a set of catalog items to raw player state.

    The equipment bonuses of the items become the player's bonuses and the
    weapon's attack speed becomes the player's. The weapon's damage type
    replaces the player's unless the user picked a different one; a stance
    the new damage type does not support falls back to accurate. Item
    effects are added to the player's effects.

    Args:
        player_raw: Editable player state (not modified)
        items: Catalog names of the equipped items
        game_data: Catalog to resolve names against (the singleton if None)

    Returns:
        A new raw player state dictionary

    Raises:
        ValidationError: If an item is unknown or two items share a slot
    """
    game_data = game_data or GameData()
    updated = copy.deepcopy(player_raw)

    pieces = []
    used_slots: Dict[EquipmentSlot, str] = {}
    for name in items:
        try:
            piece = game_data.get_equipment(name)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        if piece.slot in used_slots:
            raise ValidationError(
                f"{piece.name} and {used_slots[piece.slot]} both use the "
                f"{piece.slot.value} slot"
            )
        used_slots[piece.slot] = piece.name
        pieces.append(piece)

    updated["bonuses"] = EquipmentBonuses.aggregate(
        piece.bonuses for piece in pieces
    ).to_dict()
    updated["equipment"] = [piece.name for piece in pieces]

    previous_pieces = []
    for name in player_raw.get("equipment", []):
        try:
            previous_pieces.append(game_data.get_equipment(name))
        except ValueError:
            continue

    # Effects granted by the previous loadout are replaced, not accumulated.
    previous_item_effects = {
        effect.value for previous in previous_pieces for effect in previous.effects
    }
    effects = {
        normalize_name(name) for name in updated.get("effects", [])
    } - previous_item_effects
    for piece in pieces:
        effects.update(effect.value for effect in piece.effects)
    updated["effects"] = sorted(effects)

    weapon = _weapon(pieces)
    if weapon is not None:
        if weapon.attack_speed is not None:
            updated["attack_speed"] = weapon.attack_speed
        if weapon.damage_type is not None and _follows_weapon(
            player_raw, _weapon(previous_pieces)
        ):
            updated["damage_type"] = weapon.damage_type.value
            _fit_stance(updated, weapon.damage_type)
    return updated


def _weapon(pieces: List[EquipmentPiece]) -> Optional[EquipmentPiece]:
    return next((p for p in pieces if p.slot == EquipmentSlot.WEAPON), None)


def _follows_weapon(
    player_raw: Dict[str, Any], previous_weapon: Optional[EquipmentPiece]
) -> bool:
    """Whether the damage type was taken from the previous weapon.

    A damage type that is missing, or equal to the one the previous weapon
    set, follows the weapon. Any other value was chosen by the user and is
    kept across weapon swaps.
    """
    chosen = player_raw.get("damage_type")
    if chosen is None:
        return True
    if previous_weapon is None or previous_weapon.damage_type is None:
        return False
    return normalize_name(str(chosen)) == previous_weapon.damage_type.value


def _fit_stance(player_raw: Dict[str, Any], damage_type: DamageType) -> None:
    """Fall back to the accurate stance if the current one no longer applies."""
    try:
        stance = Stance.from_protocol(player_raw.get("stance", Stance.ACCURATE.value))
    except ValueError:
        # Left for build_player_snapshot to report.
        return
    if not stance.is_valid_for(damage_type.combat_style):
        player_raw["stance"] = Stance.ACCURATE.value
