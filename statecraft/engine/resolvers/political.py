"""Political step.

Mobilizations, arms deals and foreign aid settle first; an arms deal needs
both sides to declare one toward each other. A country that was already at
zero stability when the step began then collapses: its provinces go to the
strongest living neighbour and nobody is recorded as conqueror. Everyone else
drifts one point toward a target stability, which starts at the baseline and
moves with this turn's battles won and lost and with successful enemy
propaganda. Stability left under the unrest threshold forces a neutral
declaration next turn.
"""

from __future__ import annotations

from collections import Counter

from statecraft.engine.actions import ActionType, Declaration, ResolverStep
from statecraft.engine.context import ResolutionContext
from statecraft.engine.events import (
    ArmsDeal,
    Battle,
    CountryEliminated,
    DealFailed,
    ForeignAid,
    Mobilization,
    SpyPropaganda,
    StabilityDrift,
    Unrest,
)
from statecraft.engine.rules import STABILITY_MAX
from statecraft.engine.world import COLLAPSE, WorldState


def _successor(world: WorldState, province_id: str, collapsing_id: str) -> str | None:
    candidates = {
        world.province(n).owner_id
        for n in world.neighbours(province_id)
        if world.province(n).owner_id != collapsing_id
    }
    candidates = {c for c in candidates if world.is_living(c)}
    if not candidates:
        candidates = {c for c in world.living_ids() if c != collapsing_id}
    if not candidates:
        return None
    return min(candidates, key=lambda c: (-world.country(c).military, c))


def _collapse(ctx: ResolutionContext, country_id: str) -> bool:
    world = ctx.world
    transfers: dict[str, str] = {}
    for province in world.provinces_of(country_id):
        successor = _successor(world, province.id, country_id)
        if successor is None:
            return False
        transfers[province.id] = successor
    ctx.emit(CountryEliminated(country_id=country_id, cause=COLLAPSE, transfers=transfers))
    return True


def _arms_deal(ctx: ResolutionContext, decl: Declaration, handled: set[frozenset[str]]) -> None:
    world = ctx.world
    rules = ctx.rules
    pair = frozenset((decl.country_id, decl.target))
    if pair in handled:
        return
    reason = None
    if not world.is_living(decl.target):
        reason = "target_eliminated"
    elif not ctx.declared_toward(decl.target, ActionType.arms_deal, decl.country_id):
        reason = "not_reciprocated"
    else:
        handled.add(pair)
        if any(world.country(c).military < rules.arms_deal_military for c in pair):
            reason = "insufficient_military"
    if reason is not None:
        ctx.emit(DealFailed(country_id=decl.country_id, target_id=decl.target, kind="arms_deal", reason=reason))
        return
    ctx.emit(
        ArmsDeal(
            parties=sorted(pair),
            military_sold=rules.arms_deal_military,
            money_gained=rules.arms_deal_money,
        )
    )


def _foreign_aid(ctx: ResolutionContext, decl: Declaration) -> None:
    world = ctx.world
    if not world.is_living(decl.target):
        return
    amount = min(decl.amount or ctx.rules.foreign_aid_default, world.country(decl.country_id).money)
    if amount <= 0:
        ctx.emit(
            DealFailed(
                country_id=decl.country_id,
                target_id=decl.target,
                kind="foreign_aid",
                reason="insufficient_funds",
            )
        )
        return
    ctx.emit(
        ForeignAid(
            country_id=decl.country_id,
            target_id=decl.target,
            amount=amount,
            stability_gain=ctx.rules.foreign_aid_stability_gain,
        )
    )


def _actions(ctx: ResolutionContext) -> None:
    arms_handled: set[frozenset[str]] = set()
    for decl in ctx.declarations_for(ResolverStep.political):
        if decl.action == ActionType.mobilize:
            ctx.emit(
                Mobilization(
                    country_id=decl.country_id,
                    military_gain=ctx.rules.mobilize_military_gain,
                    stability_loss=ctx.rules.mobilize_stability_loss,
                )
            )
        elif decl.action == ActionType.arms_deal:
            _arms_deal(ctx, decl, arms_handled)
        elif decl.action == ActionType.foreign_aid:
            _foreign_aid(ctx, decl)


def resolve(ctx: ResolutionContext) -> None:
    world = ctx.world
    rules = ctx.rules
    failing = {cid for cid in world.living_ids() if world.country(cid).stability == 0}
    _actions(ctx)

    wins: Counter[str] = Counter()
    losses: Counter[str] = Counter()
    for battle in ctx.events_of(Battle):
        winner, loser = (
            (battle.attacker_id, battle.defender_id)
            if battle.attacker_wins
            else (battle.defender_id, battle.attacker_id)
        )
        wins[winner] += 1
        losses[loser] += 1
    propaganda = Counter(e.target_id for e in ctx.events_of(SpyPropaganda) if e.success)

    for country_id in world.living_ids():
        country = world.country(country_id)
        if country_id in failing and _collapse(ctx, country_id):
            continue

        target = rules.stability_baseline + wins[country_id] - losses[country_id] - propaganda[country_id]
        target = max(0, min(STABILITY_MAX, target))
        if country.stability != target:
            delta = 1 if target > country.stability else -1
            ctx.emit(StabilityDrift(country_id=country_id, delta=delta, target=target))

        next_turn = ctx.turn + 1
        if country.stability < rules.unrest_threshold and country.forced_neutral_turn != next_turn:
            ctx.emit(
                Unrest(
                    country_id=country_id,
                    stability=country.stability,
                    forced_neutral_turn=next_turn,
                )
            )
