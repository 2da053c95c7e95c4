"""Military step.

Blockades resolve first, then naval attacks, then land attacks. Every attack
is fought against the world as the previous one left it, so three countries
attacking the same target in one turn face a progressively weaker defender.
"""

from __future__ import annotations

from statecraft.engine import formulas
from statecraft.engine.actions import ActionType, Declaration, ResolverStep
from statecraft.engine.context import ResolutionContext
from statecraft.engine.events import (
    AttackFailed,
    Battle,
    CountryEliminated,
    NavalBattle,
    NavalBlockade,
    ProvinceCaptured,
    WarDeclared,
)
from statecraft.engine.world import ALLIANCE, CONQUEST, ProvinceState, WorldState

COASTAL = "coastal"


def _ensure_war(ctx: ResolutionContext, attacker_id: str, target_id: str, cause: str) -> None:
    if ctx.world.active_war_between(attacker_id, target_id) is None:
        ctx.emit(
            WarDeclared(
                war_id=ctx.next_id("w"),
                attacker_id=attacker_id,
                defender_id=target_id,
                cause=cause,
            )
        )


def _fail(ctx: ResolutionContext, decl: Declaration, reason: str) -> None:
    ctx.emit(
        AttackFailed(
            attacker_id=decl.country_id,
            target_id=decl.target,
            action=decl.action.value,
            reason=reason,
        )
    )


def _defense_bonus(ctx: ResolutionContext, target_id: str) -> float:
    world = ctx.world
    if world.union_of(target_id) is not None:
        return ctx.rules.union_defense_bonus
    if any(target_id in p.members for p in world.active_pacts(ALLIANCE)):
        return ctx.rules.ally_defense_bonus
    return 1.0


def front_provinces(world: WorldState, attacker_id: str, target_id: str) -> list[ProvinceState]:
    """Target provinces the attacker can reach, in the order they would fall.

    Land borders come first; without one, a fleet can reach coastal provinces.
    The capital always falls last.
    """
    own = {p.id for p in world.provinces_of(attacker_id)}
    target_provinces = world.provinces_of(target_id)
    reachable = [p for p in target_provinces if world.neighbours(p.id) & own]
    if not reachable and world.country(attacker_id).naval > 0:
        reachable = [p for p in target_provinces if p.terrain == COASTAL]
    return sorted(reachable, key=lambda p: (p.is_capital, p.troops, p.id))


# ---------------------------------------------------------------------------
# Naval
# ---------------------------------------------------------------------------

def _blockade(ctx: ResolutionContext, decl: Declaration) -> None:
    world = ctx.world
    if world.country(decl.country_id).naval <= 0:
        return _fail(ctx, decl, "no_fleet")
    if world.pacts_between(decl.country_id, decl.target):
        return _fail(ctx, decl, "allied")
    if not any(p.terrain == COASTAL for p in world.provinces_of(decl.target)):
        return _fail(ctx, decl, "landlocked")
    _ensure_war(ctx, decl.country_id, decl.target, "blockade")
    ctx.emit(NavalBlockade(blockader_id=decl.country_id, target_id=decl.target))


def _naval_attack(ctx: ResolutionContext, decl: Declaration) -> None:
    world = ctx.world
    attacker = world.country(decl.country_id)
    defender = world.country(decl.target)
    if attacker.naval <= 0:
        return _fail(ctx, decl, "no_fleet")
    if world.pacts_between(attacker.id, defender.id):
        return _fail(ctx, decl, "allied")
    _ensure_war(ctx, attacker.id, defender.id, "naval_attack")

    variance = ctx.variance()
    outcome = formulas.naval_outcome(
        attacker.naval,
        attacker.tech,
        defender.naval,
        defender.tech,
        ctx.declared(defender.id, ActionType.defend),
        variance,
        ctx.rules,
    )
    ctx.emit(
        NavalBattle(
            attacker_id=attacker.id,
            defender_id=defender.id,
            variance=variance,
            attacker_strength=outcome.attacker_strength,
            defender_strength=outcome.defender_strength,
            attacker_wins=outcome.attacker_wins,
            attacker_losses=outcome.attacker_losses,
            defender_losses=outcome.defender_losses,
        )
    )


# ---------------------------------------------------------------------------
# Land
# ---------------------------------------------------------------------------

def _attack(ctx: ResolutionContext, decl: Declaration) -> None:
    world = ctx.world
    attacker = world.country(decl.country_id)
    defender = world.country(decl.target)

    if attacker.military <= 0:
        return _fail(ctx, decl, "no_troops")
    if world.pacts_between(attacker.id, defender.id):
        return _fail(ctx, decl, "allied")
    front = front_provinces(world, attacker.id, defender.id)
    if not front:
        return _fail(ctx, decl, "no_front")

    _ensure_war(ctx, attacker.id, defender.id, "attack")

    battlefield = front[0]
    mobile_share = defender.military // max(1, defender.territory)
    modifiers = formulas.CombatModifiers(
        defending=ctx.declared(defender.id, ActionType.defend),
        blockaded=world.is_blockaded(defender.id),
        alliance_bonus=_defense_bonus(ctx, defender.id),
        attacker_supply_penalty=attacker.supply_penalty,
    )
    variance = ctx.variance()
    outcome = formulas.combat_outcome(
        attacker.military,
        attacker.tech,
        battlefield.troops + mobile_share,
        defender.tech,
        battlefield.terrain,
        modifiers,
        variance,
        ctx.rules,
    )

    garrison_losses = min(battlefield.troops, outcome.defender_losses)
    ctx.emit(
        Battle(
            attacker_id=attacker.id,
            defender_id=defender.id,
            province_id=battlefield.id,
            variance=variance,
            attacker_strength=outcome.attacker_strength,
            defender_strength=outcome.defender_strength,
            attacker_wins=outcome.attacker_wins,
            territory_delta=outcome.territory_delta,
            attacker_losses=outcome.attacker_losses,
            garrison_losses=garrison_losses,
            defender_military_losses=min(
                defender.military, outcome.defender_losses - garrison_losses
            ),
        )
    )
    if not outcome.attacker_wins:
        return

    for province in front[: outcome.territory_delta]:
        ctx.emit(
            ProvinceCaptured(
                province_id=province.id,
                from_id=defender.id,
                to_id=attacker.id,
                garrison=min(ctx.rules.occupation_garrison, attacker.military),
            )
        )
        if province.is_capital or defender.territory == 0:
            remaining = {p.id: attacker.id for p in world.provinces_of(defender.id)}
            ctx.emit(
                CountryEliminated(
                    country_id=defender.id,
                    cause=CONQUEST,
                    annexed_by=attacker.id,
                    transfers=remaining,
                )
            )
            break


def resolve(ctx: ResolutionContext) -> None:
    handlers = (
        (ActionType.naval_blockade, _blockade),
        (ActionType.naval_attack, _naval_attack),
        (ActionType.attack, _attack),
    )
    for kind, handler in handlers:
        for decl in ctx.declarations_for(ResolverStep.military, kind):
            # Re-checked per declaration: an earlier battle may have eliminated either side
            if ctx.world.is_living(decl.country_id) and ctx.world.is_living(decl.target):
                handler(ctx, decl)
