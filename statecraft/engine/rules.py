"""Balance constants for the simulation.

Everything tunable lives on :class:`GameRules` so that tests can build a
world with tighter or looser numbers without patching module globals.
"""

from dataclasses import dataclass, field

STABILITY_MAX = 10
TECH_MAX = 10

TERRAIN_DEFENSE: dict[str, float] = {
    "plains": 1.0,
    "forest": 1.2,
    "hills": 1.3,
    "mountains": 1.5,
    "urban": 1.25,
    "coastal": 1.1,
}


@dataclass(frozen=True)
class GameRules:
    # Combat
    variance_min: float = 0.8
    variance_max: float = 1.2
    tech_combat_bonus: float = 0.05
    defend_bonus: float = 1.5
    blockade_defense_penalty: float = 0.85
    ally_defense_bonus: float = 1.1
    union_defense_bonus: float = 1.25
    supply_attack_penalty: float = 0.5
    max_provinces_per_attack: int = 3
    occupation_garrison: int = 2
    naval_winner_loss_rate: float = 0.1
    naval_loser_loss_rate: float = 0.3

    # Diplomacy
    betrayal_stability_penalty: int = 2
    neutral_stability_bonus: int = 1

    # Espionage
    spy_base_chance: float = 0.5
    spy_tech_factor: float = 0.05
    spy_min_chance: float = 0.1
    spy_max_chance: float = 0.9
    spy_tokens_start: int = 2
    spy_tokens_max: int = 5
    spy_tokens_regen: int = 1
    sabotage_stability_loss: int = 1
    sabotage_military_rate: float = 0.1
    propaganda_stability_loss: int = 1
    coup_spy_tokens: int = 2
    coup_base_chance: float = 0.4
    coup_tech_factor: float = 0.05
    coup_rally_stability: int = 2

    # Supply
    isolation_attrition_rate: float = 0.2

    # Economy / investment
    tech_income_bonus: float = 0.05
    income_rate: float = 0.5
    blockade_income_factor: float = 0.7
    military_upkeep_divisor: int = 2
    naval_upkeep: int = 1
    desertion_rate: float = 0.1
    military_investment_cost: int = 40
    military_investment_gain: int = 8
    stability_investment_cost: int = 30
    stability_investment_gain: int = 1
    tech_investment_cost: int = 60
    tech_investment_gain: int = 1

    # Trade and economic pressure
    trade_default_amount: int = 20
    trade_max_amount: int = 30
    sanction_money_loss: int = 10
    embargo_money_loss: int = 30
    embargo_self_cost: int = 10

    # Political actions
    mobilize_military_gain: int = 10
    mobilize_stability_loss: int = 2
    arms_deal_military: int = 4
    arms_deal_money: int = 30
    foreign_aid_default: int = 20
    foreign_aid_stability_gain: int = 1

    # Political
    stability_baseline: int = 5
    unrest_threshold: int = 3

    # Ultimatum
    ultimatum_expiry_turns: int = 2
    ultimatum_enforce_ratio: float = 2.0

    # Union
    union_min_alliance_turns: int = 2
    union_min_stability: int = 6
    union_min_tech: int = 2

    # Win conditions
    domination_share: float = 0.4
    coalition_warning_share: float = 0.3

    # World events
    world_event_chance: float = 0.6
    second_world_event_chance: float = 0.2

    # World tension
    tension_decay: float = 0.9
    tension_per_war: int = 6
    tension_per_battle: int = 4
    tension_per_betrayal: int = 10
    tension_per_ultimatum: int = 3
    tension_per_coup: int = 10
    tension_per_mobilization: int = 6
    tension_per_embargo: int = 4
    tension_relief_per_trade: int = 2
    tension_relief_per_aid: int = 3

    terrain_defense: dict[str, float] = field(default_factory=lambda: dict(TERRAIN_DEFENSE))


DEFAULT_RULES = GameRules()
