"""Tests for the run_calculator command line entry point."""

import asyncio
import io
import json
import os
from typing import Tuple
from unittest import mock

from absl import app, flags
from absl.testing import absltest, flagsaver

from dpscalc.game.schema.computed_values import ComputedValues
from dpscalc.recompute import run_calculator
from dpscalc.recompute.calculator_store import CalculatorStore

FLAGS = flags.FLAGS

TESTDATA_DIR = os.path.join(
    os.path.dirname(os.path.dirname(__file__)), "integration_tests", "testdata"
)


def testdata(filename: str) -> str:
    return os.path.join(TESTDATA_DIR, filename)


testdata.__test__ = False  # helper, not a test


class RunCalculatorTest(absltest.TestCase):
    """Tests for run_calculator helpers and the main coroutine."""

    def setUp(self) -> None:
        """Set up test fixtures."""
        super().setUp()
        if not FLAGS.is_parsed():
            FLAGS.mark_as_parsed()

    def _run(self) -> Tuple[int, str]:
        with mock.patch("sys.stdout", new_callable=io.StringIO) as stdout:
            exit_code = asyncio.run(run_calculator.run_calculator())
        return exit_code, stdout.getvalue()

    def test_load_state(self) -> None:
        """Test loading state from a JSON file."""
        state = run_calculator.load_state(testdata("chicken.json"))

        self.assertEqual(state["name"], "Chicken")

    def test_load_state_rejects_non_object(self) -> None:
        """Test that a JSON file must hold an object."""
        path = self.create_tempfile(content="[1, 2, 3]").full_path

        with self.assertRaises(ValueError):
            run_calculator.load_state(path)

    def test_format_text_without_result(self) -> None:
        """Test text output before any values exist."""
        self.assertEqual(run_calculator.format_text(CalculatorStore()), "No result")

    def test_format_text_unkillable(self) -> None:
        """Test text output for a monster that cannot be killed."""
        store = CalculatorStore(monster={"name": "Zulrah"})
        values = ComputedValues(
            accuracy=0.0,
            max_hit=0,
            hit_distribution=((0, 1.0),),
            expected_hit=0.0,
            dps=0.0,
            attack_interval_seconds=2.4,
        )
        with mock.patch.object(
            CalculatorStore,
            "computed_values",
            new_callable=mock.PropertyMock,
            return_value=values,
        ):
            text = run_calculator.format_text(store)

        self.assertIn("Against Zulrah:", text)
        self.assertIn("Time to kill:   never", text)

    @flagsaver.flagsaver
    def test_json_output(self) -> None:
        """Test running the calculator with JSON output."""
        FLAGS.player_file = testdata("melee_player.json")
        FLAGS.monster = "Vorkath"
        FLAGS.equipment = ["Abyssal whip", "Berserker necklace"]
        FLAGS.output = "json"

        exit_code, output = self._run()

        self.assertEqual(exit_code, 0)
        result = json.loads(output)
        self.assertGreater(result["dps"], 0.0)
        self.assertGreater(result["max_hit"], 0)

    @flagsaver.flagsaver
    def test_text_output_from_monster_file(self) -> None:
        """Test running the calculator with a monster file."""
        FLAGS.player_file = testdata("melee_player.json")
        FLAGS.monster_file = testdata("chicken.json")
        FLAGS.output = "text"

        exit_code, output = self._run()

        self.assertEqual(exit_code, 0)
        self.assertIn("Against Chicken:", output)
        self.assertIn("DPS:", output)

    @flagsaver.flagsaver
    def test_invalid_player_exits_with_error(self) -> None:
        """Test that an invalid player ends with an error."""
        FLAGS.player_file = testdata("invalid_player.json")
        FLAGS.monster = "Vorkath"

        exit_code, output = self._run()

        self.assertEqual(exit_code, 1)
        self.assertEmpty(output)

    @flagsaver.flagsaver
    def test_monster_is_required(self) -> None:
        """Test that a monster is required."""
        FLAGS.player_file = testdata("melee_player.json")

        with self.assertRaises(app.UsageError):
            self._run()


if __name__ == "__main__":
    absltest.main()
