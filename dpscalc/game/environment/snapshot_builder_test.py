"""Tests for snapshot construction from editable state."""

from typing import Any, Dict

from absl.testing import absltest, parameterized

from dpscalc.game.environment.snapshot_builder import (
    build_monster_snapshot,
    build_player_snapshot,
    build_snapshot_pair,
    equip,
)
from dpscalc.game.exceptions import ErrorKind, ValidationError
from dpscalc.game.schema.enums import (
    DamageType,
    MonsterAttribute,
    Prayer,
    SpecialEffect,
    Stance,
)


def player_raw() -> Dict[str, Any]:
    return {
        "skills": {"attack": 99, "strength": 99, "hitpoints": 99},
        "boosts": {"strength": 19},
        "damage_type": "slash",
        "stance": "Aggressive",
        "prayers": ["Piety"],
        "effects": ["slayer helm"],
        "on_slayer_task": True,
    }


def monster_raw() -> Dict[str, Any]:
    return {
        "name": "Vorkath",
        "skills": {"defence": 214, "magic": 150, "hitpoints": 750},
        "defensive": {"slash": 108},
        "attributes": ["dragon", "undead"],
        "size": 7,
    }


class BuildSnapshotTest(parameterized.TestCase):
    def test_player_snapshot(self) -> None:
        """Test building a player snapshot from raw state."""
        player = build_player_snapshot(player_raw())

        self.assertEqual(player.skills.attack, 99)
        self.assertEqual(player.skills.defence, 1)
        self.assertEqual(player.boosts.strength, 19)
        self.assertEqual(player.damage_type, DamageType.SLASH)
        self.assertEqual(player.stance, Stance.AGGRESSIVE)
        self.assertEqual(player.prayers, frozenset({Prayer.PIETY}))
        self.assertEqual(player.effects, frozenset({SpecialEffect.SLAYER_HELM}))
        self.assertEqual(player.attack_speed, 4)
        self.assertTrue(player.on_slayer_task)

    def test_monster_snapshot(self) -> None:
        """Test building a monster snapshot from raw state."""
        monster = build_monster_snapshot(monster_raw())

        self.assertEqual(monster.name, "Vorkath")
        self.assertEqual(monster.skills.hitpoints, 750)
        self.assertEqual(monster.defensive.slash, 108)
        self.assertEqual(monster.defensive.stab, 0)
        self.assertEqual(
            monster.attributes,
            frozenset({MonsterAttribute.DRAGON, MonsterAttribute.UNDEAD}),
        )

    def test_snapshot_shares_no_mutable_state(self) -> None:
        """Test that later edits of raw state do not reach snapshots."""
        raw_player, raw_monster = player_raw(), monster_raw()
        player, monster = build_snapshot_pair(raw_player, raw_monster)
        expected_player = build_player_snapshot(player_raw())

        raw_player["skills"]["attack"] = 1
        raw_player["prayers"].append("Rigour")
        raw_player["effects"].clear()
        raw_monster["attributes"].append("demon")

        self.assertEqual(player, expected_player)
        self.assertIsInstance(player.prayers, frozenset)
        self.assertIsInstance(player.equipment, tuple)
        self.assertNotIn(MonsterAttribute.DEMON, monster.attributes)

    @parameterized.named_parameters(
        ("missing_skills", {}),
        ("negative_level", {"skills": {"attack": -1}}),
        ("level_above_max", {"skills": {"attack": 120}}),
        ("unknown_skill", {"skills": {"agility": 50}}),
        ("unknown_stance", {"skills": {}, "stance": "berserk"}),
        ("unknown_damage_type", {"skills": {}, "damage_type": "fire"}),
        ("unknown_prayer", {"skills": {}, "prayers": ["Protect from Melee"]}),
        ("zero_attack_speed", {"skills": {}, "attack_speed": 0}),
        ("wrong_type", {"skills": {"attack": "ninety"}}),
        ("rapid_melee", {"skills": {}, "damage_type": "crush", "stance": "rapid"}),
        ("autocast_ranged", {"skills": {}, "damage_type": "ranged", "stance": "autocast"}),
    )
    def test_invalid_player(self, raw: Dict[str, Any]) -> None:
        """Test that invalid player state raises a validation error."""
        with self.assertRaises(ValidationError) as cm:
            build_player_snapshot(raw)
        self.assertEqual(cm.exception.kind, ErrorKind.VALIDATION_ERROR)
        self.assertIn("player", cm.exception.detail)

    @parameterized.named_parameters(
        ("missing_name", {"skills": {"hitpoints": 10}}),
        ("empty_name", {"name": "", "skills": {"hitpoints": 10}}),
        ("missing_skills", {"name": "Rat"}),
        ("missing_hitpoints", {"name": "Rat", "skills": {"defence": 1}}),
        ("zero_hitpoints", {"name": "Rat", "skills": {"hitpoints": 0}}),
        ("negative_defence", {"name": "Rat", "skills": {"defence": -5, "hitpoints": 5}}),
        ("unknown_immunity", {"name": "Rat", "skills": {"hitpoints": 5}, "immunities": ["fire"]}),
        ("zero_size", {"name": "Rat", "skills": {"hitpoints": 5}, "size": 0}),
        (
            "nan_multiplier",
            {"name": "Rat", "skills": {"hitpoints": 5},
             "damage_multipliers": {"crush": float("nan")}},
        ),
        (
            "infinite_multiplier",
            {"name": "Rat", "skills": {"hitpoints": 5},
             "damage_multipliers": {"magic": float("inf")}},
        ),
        (
            "nan_multiplier_text",
            {"name": "Rat", "skills": {"hitpoints": 5},
             "damage_multipliers": {"slash": "NaN"}},
        ),
    )
    def test_invalid_monster(self, raw: Dict[str, Any]) -> None:
        """Test that invalid monster state raises a validation error."""
        with self.assertRaises(ValidationError):
            build_monster_snapshot(raw)

    def test_unrelated_keys_ignored(self) -> None:
        """Test that unrelated keys in raw state are ignored."""
        raw = player_raw()
        raw["ui_tab"] = "loadout"
        self.assertEqual(build_player_snapshot(raw), build_player_snapshot(player_raw()))


class EquipTest(absltest.TestCase):
    """Tests for equip."""

    def test_bonuses_and_weapon(self) -> None:
        """Test that equipping items sets bonuses and weapon stats."""
        raw = {"skills": {"attack": 99}}
        updated = equip(raw, ["Osmumten's fang", "Amulet of torture", "Fire cape"])

        self.assertNotIn("bonuses", raw)
        self.assertEqual(updated["bonuses"]["offensive"]["stab"], 105 + 15 + 1)
        self.assertEqual(updated["bonuses"]["other"]["strength"], 103 + 10 + 4)
        self.assertEqual(updated["attack_speed"], 5)
        self.assertEqual(updated["damage_type"], "stab")
        self.assertEqual(updated["effects"], ["fang"])
        self.assertEqual(
            updated["equipment"], ["Osmumten's fang", "Amulet of torture", "Fire cape"]
        )

        player = build_player_snapshot(updated)
        self.assertTrue(player.has_effect(SpecialEffect.FANG))

    def test_chosen_damage_type_kept(self) -> None:
        """Test that a chosen damage type survives equipping a weapon."""
        updated = equip({"skills": {}, "damage_type": "slash"}, ["Osmumten's fang"])
        self.assertEqual(updated["damage_type"], "slash")

    def test_weapon_swap_follows_new_weapon(self) -> None:
        """Test that swapping weapons switches to the new weapon's damage type."""
        raw = equip({"skills": {}}, ["Abyssal whip"])
        self.assertEqual(raw["damage_type"], "slash")

        raw = equip(raw, ["Osmumten's fang"])
        self.assertEqual(raw["damage_type"], "stab")
        self.assertEqual(build_player_snapshot(raw).damage_type, DamageType.STAB)

    def test_weapon_swap_keeps_chosen_damage_type(self) -> None:
        """Test that a weapon swap keeps a damage type the user picked."""
        raw = equip({"skills": {}}, ["Abyssal whip"])
        raw["damage_type"] = "crush"

        raw = equip(raw, ["Osmumten's fang"])
        self.assertEqual(raw["damage_type"], "crush")

    def test_weapon_swap_resets_unavailable_stance(self) -> None:
        """Test that a weapon swap resets a stance the new style lacks."""
        raw = equip({"skills": {}, "stance": "aggressive"}, ["Abyssal whip"])
        self.assertEqual(raw["stance"], "aggressive")

        raw = equip(raw, ["Rune crossbow", "Runite bolts"])
        self.assertEqual(raw["damage_type"], "ranged")
        self.assertEqual(raw["stance"], "accurate")
        player = build_player_snapshot(raw)
        self.assertEqual(player.stance, Stance.ACCURATE)
        self.assertEqual(player.attack_interval_ticks(), 6)

    def test_unequipping_weapon_keeps_damage_type(self) -> None:
        """Test that removing the weapon keeps the damage type and speed."""
        raw = equip({"skills": {}}, ["Osmumten's fang"])
        raw = equip(raw, ["Fire cape"])
        self.assertEqual(raw["damage_type"], "stab")
        self.assertEqual(raw["attack_speed"], 5)

    def test_reequip_replaces_item_effects(self) -> None:
        """Test that re-equipping replaces effects granted by items."""
        raw = equip(
            {"skills": {}, "effects": ["dharok"]},
            ["Scythe of vitur", "Slayer helmet (i)"],
        )
        self.assertEqual(raw["effects"], ["dharok", "scythe", "slayerhelm"])

        raw = equip(raw, ["Abyssal whip"])
        self.assertEqual(raw["effects"], ["dharok"])
        self.assertEqual(raw["bonuses"]["defensive"]["slash"], 0)

    def test_unknown_item(self) -> None:
        """Test that unknown items are rejected."""
        with self.assertRaises(ValidationError):
            equip({"skills": {}}, ["Twisted bow"])

    def test_two_items_in_one_slot(self) -> None:
        """Test that two items in one slot are rejected."""
        with self.assertRaises(ValidationError) as cm:
            equip({"skills": {}}, ["Abyssal whip", "Osmumten's fang"])
        self.assertIn("weapon", cm.exception.detail)


if __name__ == "__main__":
    absltest.main()
