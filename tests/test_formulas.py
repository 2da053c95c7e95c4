"""Formula library tests.

Covers:
- land combat strengths, modifiers and the tie-goes-to-defender rule
- territory delta clamping
- naval combat losses
- economic accrual, upkeep, desertion and isolation attrition
- espionage chance clamping and world tension
"""

import pytest

from statecraft.engine import formulas
from statecraft.engine.formulas import CombatModifiers
from statecraft.engine.rules import GameRules


class TestLandStrength:
    def test_attack_strength_plain(self):
        assert formulas.attack_strength(10, 0, 1.0) == 10.0

    def test_attack_strength_applies_tech_variance_and_supply(self):
        # 10 troops * 1.1 variance * (1 + 2 * 0.05) tech * (1 - 0.5 * 0.5) supply
        assert formulas.attack_strength(10, 2, 1.1, supply_penalty=0.5) == pytest.approx(9.075)

    def test_defense_uses_terrain(self):
        assert formulas.defense_strength(10, 0, "hills", CombatModifiers()) == 13.0
        assert formulas.defense_strength(10, 0, "plains", CombatModifiers()) == 10.0

    def test_defend_and_blockade_modifiers(self):
        assert formulas.defense_strength(10, 0, "hills", CombatModifiers(defending=True)) == 19.5
        assert formulas.defense_strength(10, 0, "hills", CombatModifiers(blockaded=True)) == 11.05

    def test_alliance_bonus_multiplies(self):
        bonus = CombatModifiers(alliance_bonus=1.25)
        assert formulas.defense_strength(8, 0, "plains", bonus) == 10.0

    def test_unknown_terrain_is_neutral(self):
        assert formulas.defense_strength(7, 0, "swamp", CombatModifiers()) == 7.0


class TestTerritoryDelta:
    @pytest.mark.parametrize(
        "attack, defense, expected",
        [(30, 10, 3), (25, 10, 2), (11, 10, 1), (10, 10, 0), (9, 10, 0), (100, 10, 3), (5, 0, 3)],
    )
    def test_ratio_is_clamped(self, attack, defense, expected):
        assert formulas.territory_delta(attack, defense) == expected

    def test_respects_rules_maximum(self):
        assert formulas.territory_delta(100, 10, GameRules(max_provinces_per_attack=5)) == 5


class TestCombatOutcome:
    def test_tie_goes_to_defender(self):
        outcome = formulas.combat_outcome(10, 0, 10, 0, "plains", CombatModifiers(), 1.0)
        assert not outcome.attacker_wins
        assert outcome.territory_delta == 0
        assert outcome.attacker_losses == 5
        assert outcome.defender_losses == 1

    def test_decisive_attack(self):
        outcome = formulas.combat_outcome(30, 0, 10, 0, "plains", CombatModifiers(), 1.0)
        assert outcome.attacker_wins
        assert outcome.attacker_strength == 30.0
        assert outcome.defender_strength == 10.0
        assert outcome.territory_delta == 3
        assert outcome.attacker_losses == 2
        assert outcome.defender_losses == 6

    def test_defend_turns_the_battle(self):
        plain = formulas.combat_outcome(12, 0, 10, 0, "plains", CombatModifiers(), 1.0)
        braced = formulas.combat_outcome(12, 0, 10, 0, "plains", CombatModifiers(defending=True), 1.0)
        assert plain.attacker_wins
        assert not braced.attacker_wins

    def test_losses_never_exceed_troops(self):
        outcome = formulas.combat_outcome(1, 0, 0, 0, "plains", CombatModifiers(), 1.0)
        assert outcome.attacker_wins
        assert outcome.attacker_losses <= 1
        assert outcome.defender_losses == 0


class TestNavalOutcome:
    def test_attacker_wins(self):
        outcome = formulas.naval_outcome(10, 0, 5, 0, False, 1.0)
        assert outcome.attacker_wins
        assert outcome.attacker_losses == 1
        assert outcome.defender_losses == 1

    def test_defending_fleet_holds(self):
        outcome = formulas.naval_outcome(10, 0, 8, 0, True, 1.0)
        assert not outcome.attacker_wins
        assert outcome.attacker_losses == 3

    def test_empty_defender_loses_nothing(self):
        outcome = formulas.naval_outcome(4, 0, 0, 0, False, 1.0)
        assert outcome.attacker_wins
        assert outcome.defender_losses == 0


class TestEconomy:
    def test_accrual_full_stability(self):
        assert formulas.economic_accrual([20, 20, 20], tech=0, stability=10) == (60, 30)

    def test_blockade_cuts_income(self):
        assert formulas.economic_accrual([20, 20, 20], tech=0, stability=10, blockaded=True) == (60, 21)

    def test_tech_and_stability(self):
        assert formulas.economic_accrual([20, 20, 20], tech=2, stability=5) == (66, 24)

    def test_upkeep(self):
        assert formulas.upkeep(30, 5) == 20
        assert formulas.upkeep(0, 0) == 0

    def test_desertions(self):
        assert formulas.desertions(30) == 3
        assert formulas.desertions(5) == 1
        assert formulas.desertions(0) == 0

    def test_isolation_attrition(self):
        assert formulas.isolation_attrition(10) == 2
        assert formulas.isolation_attrition(3) == 1
        assert formulas.isolation_attrition(0) == 0


class TestEspionageAndTension:
    def test_even_tech_is_base_chance(self):
        assert formulas.espionage_success_chance(3, 3) == 0.5

    def test_chance_is_clamped(self):
        assert formulas.espionage_success_chance(10, 0) == 0.9
        assert formulas.espionage_success_chance(0, 10) == 0.1
        assert formulas.espionage_success_chance(4, 2) == pytest.approx(0.6)

    def test_world_tension(self):
        assert formulas.world_tension(0, active_wars=1, battles=2, betrayals=0, ultimatums=0) == 14
        assert formulas.world_tension(10, 0, 0, 0, 0) == 9

    def test_world_tension_is_capped(self):
        assert formulas.world_tension(100, 10, 10, 10, 10) == 100

    def test_coups_and_mobilization_raise_tension(self):
        value = formulas.world_tension(0, 0, 0, 0, 0, coups=1, mobilizations=1, embargoes=1)
        assert value == 20

    def test_trade_and_aid_ease_tension(self):
        assert formulas.world_tension(20, 0, 0, 0, 0, trades=1, aid=1) == 13
        assert formulas.world_tension(0, 0, 0, 0, 0, trades=3) == 0

    def test_coup_chance_ignores_target(self):
        assert formulas.coup_success_chance(3) == pytest.approx(0.55)
        assert formulas.coup_success_chance(10) == 0.9
