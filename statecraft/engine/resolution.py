"""One resolution pass over a turn's declarations.

The steps run in a fixed order because later ones build on earlier results:
a betrayal in diplomacy opens the war that the military step then fights, and
the win check must see the map after combat, supply and collapse.
"""

from __future__ import annotations

import logging
import random
from typing import Callable

from statecraft.engine import formulas
from statecraft.engine.actions import ActionType, Declaration, ResolverStep
from statecraft.engine.context import ResolutionContext
from statecraft.engine.events import (
    Battle,
    BaseEvent,
    Betrayal,
    CountryEliminated,
    CoupAttempt,
    EmbargoImposed,
    ForeignAid,
    Mobilization,
    TradeCompleted,
    TurnResolved,
    UltimatumIssued,
)
from statecraft.engine.resolvers import (
    diplomacy,
    economy,
    espionage,
    military,
    political,
    supply,
    ultimatum,
    union,
    win_conditions,
    world_events,
)
from statecraft.engine.rules import DEFAULT_RULES, GameRules
from statecraft.engine.world import COLLAPSE, WorldState

logger = logging.getLogger(__name__)

STEPS: tuple[tuple[ResolverStep, Callable[[ResolutionContext], None]], ...] = (
    (ResolverStep.diplomacy, diplomacy.resolve),
    (ResolverStep.espionage, espionage.resolve),
    (ResolverStep.military, military.resolve),
    (ResolverStep.supply, supply.resolve),
    (ResolverStep.economy, economy.resolve),
    (ResolverStep.political, political.resolve),
    (ResolverStep.ultimatum, ultimatum.resolve),
    (ResolverStep.union, union.resolve),
    (ResolverStep.win_conditions, win_conditions.resolve),
    (ResolverStep.world_events, world_events.resolve),
)


def turn_rng(seed: int, turn: int) -> random.Random:
    return random.Random(seed * 100_003 + turn)


def _eliminate_empty(ctx: ResolutionContext) -> None:
    for country_id in ctx.world.living_ids():
        if ctx.world.country(country_id).territory == 0:
            ctx.emit(CountryEliminated(country_id=country_id, cause=COLLAPSE))


def _force_neutral(ctx: ResolutionContext) -> None:
    """Countries in unrest this turn declare ``neutral`` whatever they submitted."""
    forced = []
    for decl in ctx.declarations:
        country = ctx.world.countries.get(decl.country_id)
        if country is not None and country.forced_neutral_turn == ctx.turn and decl.action != ActionType.neutral:
            decl = Declaration(
                country_id=decl.country_id,
                action=ActionType.neutral,
                sequence=decl.sequence,
                defaulted=decl.defaulted,
                accept_ultimatums=decl.accept_ultimatums,
                justification="Forced neutrality (unrest)",
            )
        forced.append(decl)
    ctx.declarations = forced


def resolve_turn(
    world: WorldState,
    declarations: list[Declaration],
    *,
    seed: int,
    max_turns: int,
    rules: GameRules = DEFAULT_RULES,
) -> list[BaseEvent]:
    """Run every step against ``world`` in place and return the emitted events.

    Raises ``WorldInvariantError`` as soon as any step leaves the world
    inconsistent; the caller must then discard ``world``.
    """
    ctx = ResolutionContext(
        world=world,
        declarations=list(declarations),
        rng=turn_rng(seed, world.turn),
        max_turns=max_turns,
        rules=rules,
    )
    _force_neutral(ctx)
    _eliminate_empty(ctx)
    world.check_invariants()

    for step, resolver in STEPS:
        if step is ResolverStep.world_events and world.status == "ended":
            continue
        resolver(ctx)
        world.check_invariants()
        logger.debug("turn %s: %s step done, %d events so far", world.turn, step.value, len(ctx.events))

    tension = formulas.world_tension(
        world.world_tension,
        active_wars=sum(1 for w in world.wars.values() if w.is_active),
        battles=len(ctx.events_of(Battle)),
        betrayals=len(ctx.events_of(Betrayal)),
        ultimatums=len(ctx.events_of(UltimatumIssued)),
        rules=rules,
        coups=len(ctx.events_of(CoupAttempt)),
        mobilizations=len(ctx.events_of(Mobilization)),
        embargoes=len(ctx.events_of(EmbargoImposed)),
        trades=len(ctx.events_of(TradeCompleted)),
        aid=len(ctx.events_of(ForeignAid)),
    )
    ctx.emit(TurnResolved(turn=world.turn, world_tension=tension))
    world.check_invariants()
    return ctx.events
