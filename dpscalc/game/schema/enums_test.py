"""Tests for schema enums."""

from absl.testing import absltest, parameterized

from dpscalc.game.schema.enums import (
    CombatStyle,
    DamageType,
    MonsterAttribute,
    Prayer,
    SpecialEffect,
    Stance,
)


class DamageTypeTest(parameterized.TestCase):
    @parameterized.named_parameters(
        ("lowercase", "slash", DamageType.SLASH),
        ("capitalized", "Crush", DamageType.CRUSH),
        ("range_alias", "range", DamageType.RANGED),
        ("mage_alias", "Mage", DamageType.MAGIC),
        ("padded", " stab ", DamageType.STAB),
    )
    def test_from_protocol(self, protocol_str: str, expected: DamageType) -> None:
        """Test parsing names from protocol strings."""
        self.assertEqual(DamageType.from_protocol(protocol_str), expected)

    def test_from_protocol_unknown(self) -> None:
        """Test that unknown damage types are rejected."""
        with self.assertRaises(ValueError):
            DamageType.from_protocol("fire")

    @parameterized.parameters(
        (DamageType.STAB, CombatStyle.MELEE),
        (DamageType.SLASH, CombatStyle.MELEE),
        (DamageType.CRUSH, CombatStyle.MELEE),
        (DamageType.RANGED, CombatStyle.RANGED),
        (DamageType.MAGIC, CombatStyle.MAGIC),
    )
    def test_combat_style(self, damage_type: DamageType, style: CombatStyle) -> None:
        """Test the combat style of each damage type."""
        self.assertEqual(damage_type.combat_style, style)


class StanceTest(parameterized.TestCase):
    @parameterized.named_parameters(
        ("accurate_melee", Stance.ACCURATE, CombatStyle.MELEE, (3, 0)),
        ("aggressive_melee", Stance.AGGRESSIVE, CombatStyle.MELEE, (0, 3)),
        ("controlled_melee", Stance.CONTROLLED, CombatStyle.MELEE, (1, 1)),
        ("defensive_melee", Stance.DEFENSIVE, CombatStyle.MELEE, (0, 0)),
        ("accurate_ranged", Stance.ACCURATE, CombatStyle.RANGED, (3, 3)),
        ("rapid_ranged", Stance.RAPID, CombatStyle.RANGED, (0, 0)),
        ("accurate_magic", Stance.ACCURATE, CombatStyle.MAGIC, (2, 0)),
        ("autocast_magic", Stance.AUTOCAST, CombatStyle.MAGIC, (0, 0)),
    )
    def test_invisible_bonuses(self, stance, style, expected) -> None:
        """Test the invisible level bonuses of each stance."""
        self.assertEqual(stance.invisible_bonuses(style), expected)

    def test_only_rapid_changes_speed(self) -> None:
        """Test that only the rapid stance changes attack speed."""
        for stance in Stance:
            expected = -1 if stance == Stance.RAPID else 0
            self.assertEqual(stance.speed_modifier(), expected, stance)

    def test_stances_per_style(self) -> None:
        """Test which stances each combat style offers."""
        available = {
            style: {stance for stance in Stance if stance.is_valid_for(style)}
            for style in CombatStyle
        }
        self.assertEqual(
            available[CombatStyle.MELEE],
            {Stance.ACCURATE, Stance.AGGRESSIVE, Stance.CONTROLLED, Stance.DEFENSIVE},
        )
        self.assertEqual(
            available[CombatStyle.RANGED],
            {Stance.ACCURATE, Stance.RAPID, Stance.LONGRANGE},
        )
        self.assertEqual(
            available[CombatStyle.MAGIC],
            {Stance.ACCURATE, Stance.DEFENSIVE, Stance.LONGRANGE, Stance.AUTOCAST},
        )

    def test_from_protocol(self) -> None:
        """Test parsing names from protocol strings."""
        self.assertEqual(Stance.from_protocol("Long-range"), Stance.LONGRANGE)
        with self.assertRaises(ValueError):
            Stance.from_protocol("berserk")


class NamedEnumTest(absltest.TestCase):
    def test_prayer_from_protocol(self) -> None:
        """Test parsing prayers from protocol strings."""
        self.assertEqual(Prayer.from_protocol("Eagle Eye"), Prayer.EAGLE_EYE)
        self.assertEqual(Prayer.from_protocol("PIETY"), Prayer.PIETY)

    def test_every_prayer_has_a_bonus(self) -> None:
        """Test that every prayer defines its multipliers."""
        for prayer in Prayer:
            self.assertGreaterEqual(prayer.bonus.accuracy, 1.0)
            self.assertGreaterEqual(prayer.bonus.strength, 1.0)

    def test_special_effect_from_protocol(self) -> None:
        """Test parsing special effects from protocol strings."""
        self.assertEqual(
            SpecialEffect.from_protocol("Slayer Helm"), SpecialEffect.SLAYER_HELM
        )
        self.assertEqual(
            SpecialEffect.from_protocol("berserker_necklace"),
            SpecialEffect.BERSERKER_NECKLACE,
        )
        with self.assertRaises(ValueError):
            SpecialEffect.from_protocol("dragon hunter")

    def test_monster_attribute_from_protocol(self) -> None:
        """Test parsing monster attributes from protocol strings."""
        self.assertEqual(MonsterAttribute.from_protocol("Undead"), MonsterAttribute.UNDEAD)
        with self.assertRaises(ValueError):
            MonsterAttribute.from_protocol("robot")


if __name__ == "__main__":
    absltest.main()
