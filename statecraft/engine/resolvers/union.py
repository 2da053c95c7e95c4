"""Union step.

Two members of a long-standing alliance who are both stable and
technologically developed merge into a union. Unions keep sovereignty but
pool the treasury, split evenly every turn, and add to each member's defense.
A country can belong to only one union.
"""

from __future__ import annotations

from itertools import combinations

from statecraft.engine.context import ResolutionContext
from statecraft.engine.events import UnionFormed, UnionPooled
from statecraft.engine.resolvers.diplomacy import pact_identity
from statecraft.engine.world import ALLIANCE, UNION


def _eligible(ctx: ResolutionContext, country_id: str) -> bool:
    world = ctx.world
    country = world.country(country_id)
    return (
        world.is_living(country_id)
        and country.stability >= ctx.rules.union_min_stability
        and country.tech >= ctx.rules.union_min_tech
        and world.union_of(country_id) is None
    )


def _form(ctx: ResolutionContext) -> None:
    world = ctx.world
    for pact in world.active_pacts(ALLIANCE):
        if ctx.turn - pact.formed_turn < ctx.rules.union_min_alliance_turns:
            continue
        for a, b in combinations(sorted(pact.members), 2):
            if not (_eligible(ctx, a) and _eligible(ctx, b)):
                continue
            members = [a, b]
            name, abbreviation, color = pact_identity(world, members, UNION)
            ctx.emit(
                UnionFormed(
                    pact_id=ctx.next_id("u"),
                    members=members,
                    name=name,
                    abbreviation=abbreviation,
                    color=color,
                )
            )


def _pool(ctx: ResolutionContext) -> None:
    world = ctx.world
    for union in world.active_pacts(UNION):
        members = sorted(union.members)
        total = sum(world.country(m).money for m in members)
        share, remainder = divmod(total, len(members))
        balances = {m: share + (1 if i < remainder else 0) for i, m in enumerate(members)}
        if all(world.country(m).money == balances[m] for m in members):
            continue
        ctx.emit(UnionPooled(pact_id=union.id, balances=balances))


def resolve(ctx: ResolutionContext) -> None:
    _form(ctx)
    _pool(ctx)
