"""Compute DPS for a player against a monster from the command line.

The player (and optionally the monster) are read from JSON files holding
editable state; the monster may instead be picked from the bundled catalog.
The calculation runs through the same surface, trigger and channel as an
interactive session.

Example:
    python -m dpscalc.recompute.run_calculator \
        --player_file=player.json --monster=Vorkath \
        --equipment="Abyssal whip,Berserker necklace" --output=json
"""

import asyncio
import json
from typing import Any, Dict, List

from absl import app, flags, logging

from dpscalc.calc.damage_engine import TICK_SECONDS
from dpscalc.game.data.game_data import GameData
from dpscalc.recompute.calculator_store import CalculatorStore
from dpscalc.recompute.calculator_surface import CalculatorConfig, CalculatorSurface

FLAGS = flags.FLAGS

flags.DEFINE_string("player_file", None, "JSON file with the player state")
flags.DEFINE_string(
    "monster_file",
    None,
    "JSON file with the monster state (overrides --monster)",
)
flags.DEFINE_string(
    "monster",
    None,
    "Catalog monster name, used when --monster_file is not given",
)
flags.DEFINE_list(
    "equipment",
    [],
    "Comma separated catalog item names to equip on the player",
)
flags.DEFINE_enum(
    "executor",
    "thread",
    ["thread", "process"],
    "Execution context of the engine",
)
flags.DEFINE_float("tick_seconds", TICK_SECONDS, "Length of one game tick in seconds")
flags.DEFINE_enum("output", "text", ["text", "json"], "Output format")
flags.DEFINE_bool(
    "skip_unchanged",
    True,
    "Skip recomputation when the snapshots did not change",
)
flags.DEFINE_float(
    "timeout",
    30.0,
    "Seconds to wait for the engine before giving up",
)

flags.mark_flag_as_required("player_file")


def load_state(path: str) -> Dict[str, Any]:
    """Load editable state from a JSON file.

    Raises:
        ValueError: If the file does not hold a JSON object
    """
    with open(path, "r") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a JSON object")
    return data


def format_text(store: CalculatorStore) -> str:
    """Human readable summary of the store's latest result."""
    values = store.computed_values
    if values is None:
        return "No result"
    monster = store.monster.get("name", "monster")
    lines = [
        f"Against {monster}:",
        f"  Accuracy:       {values.accuracy:.2%}",
        f"  Max hit:        {values.max_hit}",
        f"  Expected hit:   {values.expected_hit:.3f}",
        f"  Attack speed:   {values.attack_interval_seconds:.1f}s",
        f"  DPS:            {values.dps:.3f}",
    ]
    if values.ttk_seconds is None:
        lines.append("  Time to kill:   never")
    else:
        lines.append(f"  Time to kill:   {values.ttk_seconds:.1f}s")
    lines.append(
        f"  Rolls:          attack {values.max_attack_roll}, "
        f"defence {values.max_defence_roll}"
    )
    return "\n".join(lines)


async def run_calculator() -> int:
    """Run one calculation and print it.

    Returns:
        Process exit code
    """
    config = CalculatorConfig(
        tick_seconds=FLAGS.tick_seconds,
        executor=FLAGS.executor,
        skip_unchanged=FLAGS.skip_unchanged,
    )
    store = CalculatorStore()
    game_data = GameData()

    async with CalculatorSurface(store, config) as surface:
        with surface.trigger.update_step():
            store.set_player(load_state(FLAGS.player_file))
            if FLAGS.monster_file:
                store.set_monster(load_state(FLAGS.monster_file))
            elif FLAGS.monster:
                store.select_monster(FLAGS.monster)
            else:
                raise app.UsageError("Either --monster_file or --monster is required")
            for name in FLAGS.equipment:
                store.equip(game_data.get_equipment(name).slot, name)

        await surface.wait_until_idle(timeout=FLAGS.timeout)

    if store.last_error is not None:
        logging.error(f"[run_calculator] {store.last_error}")
        return 1

    if FLAGS.output == "json":
        print(json.dumps(store.computed_values.to_dict(), indent=2))
    else:
        print(format_text(store))
    return 0


def main(argv: List[str]) -> None:
    """Entry point for the script."""
    if len(argv) > 1:
        raise app.UsageError(f"Unexpected arguments: {argv[1:]}")
    logging.info("[run_calculator] Starting calculation")
    exit_code = asyncio.run(run_calculator())
    if exit_code:
        raise SystemExit(exit_code)


def run() -> None:
    """Console script entry point."""
    app.run(main)


if __name__ == "__main__":
    run()
