"""Pure simulation formulas.

No function here draws random numbers or touches the world model. Callers
roll any variance from the per-turn seeded RNG, pass it in, and record it in
the event they emit so that replays never need the RNG again.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from statecraft.engine.rules import DEFAULT_RULES, GameRules


@dataclass(frozen=True)
class CombatModifiers:
    defending: bool = False
    blockaded: bool = False
    alliance_bonus: float = 1.0
    attacker_supply_penalty: float = 0.0


@dataclass(frozen=True)
class CombatOutcome:
    attacker_wins: bool
    attacker_strength: float
    defender_strength: float
    territory_delta: int
    attacker_losses: int
    defender_losses: int


@dataclass(frozen=True)
class NavalOutcome:
    attacker_wins: bool
    attacker_strength: float
    defender_strength: float
    attacker_losses: int
    defender_losses: int


def _tech_multiplier(tech: int, rules: GameRules) -> float:
    return 1 + tech * rules.tech_combat_bonus


# ---------------------------------------------------------------------------
# Land combat
# ---------------------------------------------------------------------------

def attack_strength(
    troops: int, tech: int, variance: float, supply_penalty: float = 0.0,
    rules: GameRules = DEFAULT_RULES,
) -> float:
    supply = 1 - supply_penalty * rules.supply_attack_penalty
    return round(troops * variance * _tech_multiplier(tech, rules) * supply, 4)


def defense_strength(
    troops: int, tech: int, terrain: str, modifiers: CombatModifiers,
    rules: GameRules = DEFAULT_RULES,
) -> float:
    strength = troops * rules.terrain_defense.get(terrain, 1.0) * _tech_multiplier(tech, rules)
    if modifiers.defending:
        strength *= rules.defend_bonus
    if modifiers.blockaded:
        strength *= rules.blockade_defense_penalty
    strength *= modifiers.alliance_bonus
    return round(strength, 4)


def territory_delta(
    attacker_strength: float, defender_strength: float, rules: GameRules = DEFAULT_RULES
) -> int:
    """Provinces taken by a winning attack: the strength ratio, clamped to [1, max]."""
    if attacker_strength <= defender_strength:
        return 0
    if defender_strength <= 0:
        return rules.max_provinces_per_attack
    ratio = math.floor(attacker_strength / defender_strength)
    return max(1, min(rules.max_provinces_per_attack, ratio))


def combat_outcome(
    attacker_troops: int,
    attacker_tech: int,
    defender_troops: int,
    defender_tech: int,
    terrain: str,
    modifiers: CombatModifiers,
    variance: float,
    rules: GameRules = DEFAULT_RULES,
) -> CombatOutcome:
    """Resolve one land battle. Ties go to the defender.

    Losses scale with how lopsided the fight was: ``ratio`` is the weaker
    side's share of the combined strength.
    """
    attack = attack_strength(
        attacker_troops, attacker_tech, variance, modifiers.attacker_supply_penalty, rules
    )
    defense = defense_strength(defender_troops, defender_tech, terrain, modifiers, rules)
    attacker_wins = attack > defense

    total = attack + defense
    ratio = min(attack, defense) / total if total > 0 else 0.0

    if attacker_wins:
        attacker_losses = max(1, math.floor(attacker_troops * ratio * 0.3))
        defender_losses = max(1, math.floor(defender_troops * 0.6))
    else:
        attacker_losses = max(1, math.floor(attacker_troops * 0.5))
        defender_losses = max(1, math.floor(defender_troops * ratio * 0.2))

    return CombatOutcome(
        attacker_wins=attacker_wins,
        attacker_strength=attack,
        defender_strength=defense,
        territory_delta=territory_delta(attack, defense, rules),
        attacker_losses=min(attacker_losses, attacker_troops),
        defender_losses=min(defender_losses, defender_troops),
    )


# ---------------------------------------------------------------------------
# Naval combat
# ---------------------------------------------------------------------------

def naval_outcome(
    attacker_ships: int,
    attacker_tech: int,
    defender_ships: int,
    defender_tech: int,
    defending: bool,
    variance: float,
    rules: GameRules = DEFAULT_RULES,
) -> NavalOutcome:
    attack = round(attacker_ships * variance * _tech_multiplier(attacker_tech, rules), 4)
    defense = defender_ships * _tech_multiplier(defender_tech, rules)
    if defending:
        defense *= rules.defend_bonus
    defense = round(defense, 4)
    attacker_wins = attack > defense

    def _loss(ships: int, rate: float) -> int:
        if ships <= 0:
            return 0
        return min(ships, max(1, math.floor(ships * rate)))

    if attacker_wins:
        attacker_losses = _loss(attacker_ships, rules.naval_winner_loss_rate)
        defender_losses = _loss(defender_ships, rules.naval_loser_loss_rate)
    else:
        attacker_losses = _loss(attacker_ships, rules.naval_loser_loss_rate)
        defender_losses = _loss(defender_ships, rules.naval_winner_loss_rate)
    return NavalOutcome(attacker_wins, attack, defense, attacker_losses, defender_losses)


# ---------------------------------------------------------------------------
# Economy
# ---------------------------------------------------------------------------

def economic_accrual(
    province_gdp: list[int],
    tech: int,
    stability: int,
    blockaded: bool = False,
    rules: GameRules = DEFAULT_RULES,
) -> tuple[int, int]:
    """Return ``(gdp, income)`` for one turn.

    GDP is the sum of owned province output boosted by tech. Income is the
    share of GDP that reaches the treasury, reduced by low stability and by
    an active blockade.
    """
    gdp = math.floor(sum(province_gdp) * (1 + tech * rules.tech_income_bonus))
    stability_factor = 0.5 + stability / 20
    income = gdp * rules.income_rate * stability_factor
    if blockaded:
        income *= rules.blockade_income_factor
    return gdp, math.floor(income)


def upkeep(military: int, naval: int, rules: GameRules = DEFAULT_RULES) -> int:
    return military // rules.military_upkeep_divisor + naval * rules.naval_upkeep


def desertions(military: int, rules: GameRules = DEFAULT_RULES) -> int:
    if military <= 0:
        return 0
    return max(1, math.floor(military * rules.desertion_rate))


def isolation_attrition(troops: int, rules: GameRules = DEFAULT_RULES) -> int:
    if troops <= 0:
        return 0
    return max(1, math.floor(troops * rules.isolation_attrition_rate))


# ---------------------------------------------------------------------------
# Espionage and tension
# ---------------------------------------------------------------------------

def espionage_success_chance(
    attacker_tech: int, target_tech: int, rules: GameRules = DEFAULT_RULES
) -> float:
    chance = rules.spy_base_chance + (attacker_tech - target_tech) * rules.spy_tech_factor
    return round(max(rules.spy_min_chance, min(rules.spy_max_chance, chance)), 4)


def coup_success_chance(attacker_tech: int, rules: GameRules = DEFAULT_RULES) -> float:
    """Coups ignore the target's tech; only the plotter's tradecraft counts."""
    chance = rules.coup_base_chance + attacker_tech * rules.coup_tech_factor
    return round(max(rules.spy_min_chance, min(rules.spy_max_chance, chance)), 4)


def world_tension(
    previous: int,
    active_wars: int,
    battles: int,
    betrayals: int,
    ultimatums: int,
    rules: GameRules = DEFAULT_RULES,
    *,
    coups: int = 0,
    mobilizations: int = 0,
    embargoes: int = 0,
    trades: int = 0,
    aid: int = 0,
) -> int:
    value = (
        previous * rules.tension_decay
        + active_wars * rules.tension_per_war
        + battles * rules.tension_per_battle
        + betrayals * rules.tension_per_betrayal
        + ultimatums * rules.tension_per_ultimatum
        + coups * rules.tension_per_coup
        + mobilizations * rules.tension_per_mobilization
        + embargoes * rules.tension_per_embargo
        - trades * rules.tension_relief_per_trade
        - aid * rules.tension_relief_per_aid
    )
    return max(0, min(100, round(value)))
