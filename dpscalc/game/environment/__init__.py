"""Snapshot construction from editable calculator state."""

from dpscalc.game.environment.snapshot_builder import (
    build_monster_snapshot,
    build_player_snapshot,
    build_snapshot_pair,
    equip,
)

__all__ = [
    "build_player_snapshot",
    "build_monster_snapshot",
    "build_snapshot_pair",
    "equip",
]
