from __future__ import annotations

from statecraft.engine.context import ResolutionContext
from statecraft.engine.events import CoalitionWarning, Victory
from statecraft.engine.world import WorldState


def standings(world: WorldState) -> list[dict]:
    """Living countries ranked by provinces held, then money."""
    ranked = sorted(
        (world.country(cid) for cid in world.living_ids()),
        key=lambda c: (-c.territory, -c.money, c.id),
    )
    return [
        {"country_id": c.id, "territory": c.territory, "money": c.money, "military": c.military}
        for c in ranked
    ]


def placements(world: WorldState) -> list[str]:
    """Every country in the game, best first.

    The winner leads, the other survivors follow in standings order and the
    eliminated come last, the most recently fallen first.
    """
    living = [s["country_id"] for s in standings(world)]
    if world.winner_id in living:
        living.remove(world.winner_id)
        living.insert(0, world.winner_id)
    fallen = sorted(
        (c for c in world.countries.values() if c.is_eliminated),
        key=lambda c: (-(c.eliminated_turn or 0), c.id),
    )
    return living + [c.id for c in fallen]


def resolve(ctx: ResolutionContext) -> None:
    world = ctx.world
    ranking = standings(world)

    if not ranking:
        ctx.emit(Victory(winner_id=None, reason="no_survivors"))
        return
    if len(ranking) == 1:
        ctx.emit(Victory(winner_id=ranking[0]["country_id"], reason="last_standing", standings=ranking))
        return

    total = world.map_provinces or len(world.provinces)
    leader = ranking[0]
    share = leader["territory"] / total if total else 0.0
    if share >= ctx.rules.domination_share:
        ctx.emit(Victory(winner_id=leader["country_id"], reason="domination", standings=ranking))
        return
    if ctx.turn >= ctx.max_turns:
        ctx.emit(Victory(winner_id=leader["country_id"], reason="max_turns", standings=ranking))
        return

    if not world.coalition_warned and share >= ctx.rules.coalition_warning_share:
        ctx.emit(CoalitionWarning(leader_id=leader["country_id"], share=round(share, 4)))
