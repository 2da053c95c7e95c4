"""Diplomacy step: alliances, betrayals, neutrality, ceasefires and peace offers.

Alliances need consent from both sides in the same turn: a country that
declares ``ally`` toward a partner who did not declare ``ally`` back gets an
``alliance_rejected`` event and nothing else changes. Betrayal breaks every
pact the two countries share and opens a war unless one is already running.
A ceasefire or peace ends a war only when both sides propose the same thing.
"""

from __future__ import annotations

from statecraft.engine.actions import ActionType, Declaration, ResolverStep
from statecraft.engine.context import ResolutionContext
from statecraft.engine.events import (
    AllianceFormed,
    AllianceRejected,
    Betrayal,
    NeutralityDeclared,
    WarDeclared,
    WarEnded,
)
from statecraft.engine.world import ALLIANCE, UNION, WorldState

PACT_COLORS = [
    "#1f77b4", "#ff7f0e", "#2ca02c", "#d62728",
    "#9467bd", "#8c564b", "#e377c2", "#17becf",
]


def pact_identity(world: WorldState, members: list[str], kind: str) -> tuple[str, str, str]:
    """Name, abbreviation and display color for a new pact."""
    names = [world.country(m).name for m in members]
    suffix = "Union" if kind == UNION else "Alliance"
    name = f"{'-'.join(names)} {suffix}"
    abbreviation = "".join(n[0] for n in names).upper() + suffix[0]
    color = PACT_COLORS[len(world.pacts) % len(PACT_COLORS)]
    return name, abbreviation, color


def _mutual(ctx: ResolutionContext, decl: Declaration) -> bool:
    return any(
        other.country_id == decl.target
        and other.action == decl.action
        and other.target == decl.country_id
        for other in ctx.declarations
    )


def _ally(ctx: ResolutionContext, decl: Declaration, handled: set[frozenset[str]]) -> None:
    world = ctx.world
    pair = frozenset((decl.country_id, decl.target))
    if pair in handled:
        return

    reason = None
    if not world.is_living(decl.target):
        reason = "target_eliminated"
    elif any(p.kind == ALLIANCE for p in world.pacts_between(decl.country_id, decl.target)):
        reason = "already_allied"
    elif world.active_war_between(decl.country_id, decl.target) is not None:
        reason = "at_war"
    elif not _mutual(ctx, decl):
        reason = "not_reciprocated"

    if reason is not None:
        ctx.emit(AllianceRejected(country_id=decl.country_id, target_id=decl.target, reason=reason))
        return

    handled.add(pair)
    members = sorted(pair)
    name, abbreviation, color = pact_identity(world, members, ALLIANCE)
    ctx.emit(
        AllianceFormed(
            pact_id=ctx.next_id("p"),
            members=members,
            name=name,
            abbreviation=abbreviation,
            color=color,
        )
    )


def _betray(ctx: ResolutionContext, decl: Declaration) -> None:
    world = ctx.world
    if not world.is_living(decl.target):
        return
    broken = [p.id for p in world.pacts_between(decl.country_id, decl.target)]
    ctx.emit(
        Betrayal(
            betrayer_id=decl.country_id,
            victim_id=decl.target,
            broken_pacts=broken,
            stability_penalty=ctx.rules.betrayal_stability_penalty if broken else 0,
        )
    )
    if world.active_war_between(decl.country_id, decl.target) is None:
        ctx.emit(
            WarDeclared(
                war_id=ctx.next_id("w"),
                attacker_id=decl.country_id,
                defender_id=decl.target,
                cause="betrayal",
            )
        )


def _end_war(ctx: ResolutionContext, decl: Declaration, handled: set[frozenset[str]]) -> None:
    pair = frozenset((decl.country_id, decl.target))
    war = ctx.world.active_war_between(decl.country_id, decl.target)
    if war is None or pair in handled or not _mutual(ctx, decl):
        return
    handled.add(pair)
    cause = "ceasefire" if decl.action == ActionType.propose_ceasefire else "peace"
    ctx.emit(WarEnded(war_id=war.id, parties=sorted(pair), cause=cause))


def resolve(ctx: ResolutionContext) -> None:
    alliances_handled: set[frozenset[str]] = set()
    peace_handled: set[frozenset[str]] = set()

    for decl in ctx.declarations_for(ResolverStep.diplomacy):
        if decl.action == ActionType.ally:
            _ally(ctx, decl, alliances_handled)
        elif decl.action == ActionType.betray:
            _betray(ctx, decl)
        elif decl.action == ActionType.neutral:
            ctx.emit(
                NeutralityDeclared(
                    country_id=decl.country_id,
                    stability_gain=ctx.rules.neutral_stability_bonus,
                )
            )
        elif decl.action in (ActionType.propose_peace, ActionType.propose_ceasefire):
            _end_war(ctx, decl, peace_handled)
