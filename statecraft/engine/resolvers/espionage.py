"""Espionage step.

Every operation spends spy tokens whether or not it works. A successful coup
hands the target's whole territory to the plotter; a failed one burns the
plotter's remaining network and rallies the target.
"""

from __future__ import annotations

import math

from statecraft.engine import formulas
from statecraft.engine.actions import ActionType, Declaration, ResolverStep
from statecraft.engine.context import ResolutionContext
from statecraft.engine.events import (
    CountryEliminated,
    CoupAttempt,
    EspionageAborted,
    SpyIntel,
    SpyPropaganda,
    SpySabotage,
)
from statecraft.engine.world import CONQUEST


def _intel_report(ctx: ResolutionContext, target_id: str) -> dict:
    world = ctx.world
    target = world.country(target_id)
    declared = next((d for d in ctx.declarations if d.country_id == target_id), None)
    return {
        "military": target.military,
        "naval": target.naval,
        "money": target.money,
        "tech": target.tech,
        "stability": target.stability,
        "spy_tokens": target.spy_tokens,
        "pacts": [p.id for p in world.active_pacts() if target_id in p.members],
        "declared_action": declared.action.value if declared else None,
        "declared_target": declared.target if declared else None,
    }


def _attempt(ctx: ResolutionContext, decl: Declaration) -> None:
    world = ctx.world
    initiator = world.country(decl.country_id)
    target = world.country(decl.target)

    if initiator.spy_tokens < 1:
        ctx.emit(
            EspionageAborted(
                initiator_id=initiator.id,
                target_id=target.id,
                action=decl.action.value,
                reason="no_spy_tokens",
            )
        )
        return

    chance = formulas.espionage_success_chance(initiator.tech, target.tech, ctx.rules)
    roll = ctx.roll()
    success = roll < chance
    common = dict(initiator_id=initiator.id, target_id=target.id, chance=chance, roll=roll, success=success)

    if decl.action == ActionType.spy_intel:
        ctx.emit(
            SpyIntel(
                **common,
                report=_intel_report(ctx, target.id) if success else None,
                visible_to=[initiator.id],
            )
        )
    elif decl.action == ActionType.spy_sabotage:
        military_loss = 0
        if success and target.military > 0:
            military_loss = max(1, math.floor(target.military * ctx.rules.sabotage_military_rate))
        ctx.emit(
            SpySabotage(
                **common,
                stability_loss=ctx.rules.sabotage_stability_loss if success else 0,
                military_loss=military_loss,
            )
        )
    elif decl.action == ActionType.spy_propaganda:
        ctx.emit(
            SpyPropaganda(
                **common,
                stability_loss=ctx.rules.propaganda_stability_loss if success else 0,
            )
        )


def _coup(ctx: ResolutionContext, decl: Declaration) -> None:
    world = ctx.world
    rules = ctx.rules
    initiator = world.country(decl.country_id)
    target = world.country(decl.target)

    if initiator.spy_tokens < rules.coup_spy_tokens:
        ctx.emit(
            EspionageAborted(
                initiator_id=initiator.id,
                target_id=target.id,
                action=decl.action.value,
                reason="no_spy_tokens",
            )
        )
        return

    chance = formulas.coup_success_chance(initiator.tech, rules)
    roll = ctx.roll()
    success = roll < chance
    ctx.emit(
        CoupAttempt(
            initiator_id=initiator.id,
            target_id=target.id,
            chance=chance,
            roll=roll,
            success=success,
            tokens_spent=rules.coup_spy_tokens if success else initiator.spy_tokens,
            stability_gain=0 if success else rules.coup_rally_stability,
        )
    )
    if success:
        ctx.emit(
            CountryEliminated(
                country_id=target.id,
                cause=CONQUEST,
                annexed_by=initiator.id,
                transfers={p.id: initiator.id for p in world.provinces_of(target.id)},
            )
        )


def resolve(ctx: ResolutionContext) -> None:
    for decl in ctx.declarations_for(ResolverStep.espionage):
        # An earlier coup this step may have removed either side
        if not (ctx.world.is_living(decl.country_id) and ctx.world.is_living(decl.target)):
            continue
        if decl.action == ActionType.coup_attempt:
            _coup(ctx, decl)
        else:
            _attempt(ctx, decl)
