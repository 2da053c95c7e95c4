"""Ultimatum step.

New demands are issued first, then targets that listed a pending ultimatum
in ``accept_ultimatums`` concede, and finally demands that reached their
expiry turn unmet are enforced: a sender with overwhelming military takes the
concession by force, anyone else goes to war. Pact partners cannot threaten
each other; if a pact formed after the demand went out, the sender leaves it
when the war starts.
"""

from __future__ import annotations

from statecraft.engine.actions import ResolverStep, UltimatumDemand
from statecraft.engine.context import ResolutionContext
from statecraft.engine.events import UltimatumAccepted, UltimatumExpired, UltimatumInvalid, UltimatumIssued
from statecraft.engine.world import UltimatumState, WorldState


def _issue(ctx: ResolutionContext) -> None:
    world = ctx.world
    for decl in ctx.declarations_for(ResolverStep.ultimatum):
        if not world.is_living(decl.target):
            continue
        reason = None
        if any(
            u.status == "pending" and u.sender_id == decl.country_id and u.target_id == decl.target
            for u in world.ultimatums.values()
        ):
            reason = "already_pending"
        elif world.pacts_between(decl.country_id, decl.target):
            reason = "allied"
        elif decl.demand == UltimatumDemand.cede_province:
            province = world.provinces.get(decl.province_id)
            if province is None or province.owner_id != decl.target or province.is_capital:
                reason = "invalid_province"
        if reason is not None:
            ctx.emit(UltimatumInvalid(sender_id=decl.country_id, target_id=decl.target, reason=reason))
            continue

        ctx.emit(
            UltimatumIssued(
                ultimatum_id=ctx.next_id("u"),
                sender_id=decl.country_id,
                target_id=decl.target,
                demand=decl.demand.value,
                amount=decl.amount or 0,
                province_id=decl.province_id,
                expires_turn=ctx.turn + ctx.rules.ultimatum_expiry_turns,
            )
        )


def _concession(world: WorldState, ultimatum: UltimatumState) -> dict:
    """What the target hands over right now. A province it no longer holds yields nothing."""
    target = world.country(ultimatum.target_id)
    if ultimatum.demand == UltimatumDemand.pay_money.value:
        return {"money_paid": min(ultimatum.amount, target.money), "province_id": None}
    province = world.provinces.get(ultimatum.province_id)
    if province is None or province.owner_id != target.id or province.is_capital:
        return {"money_paid": 0, "province_id": None}
    return {"money_paid": 0, "province_id": province.id}


def _is_void(terms: dict, ultimatum: UltimatumState) -> bool:
    return ultimatum.demand == UltimatumDemand.cede_province.value and terms["province_id"] is None


def _accept(ctx: ResolutionContext) -> None:
    world = ctx.world
    for decl in ctx.declarations:
        if not world.is_living(decl.country_id):
            continue
        for ultimatum_id in decl.accept_ultimatums:
            ultimatum = world.ultimatums.get(ultimatum_id)
            if (
                ultimatum is None
                or ultimatum.status != "pending"
                or ultimatum.target_id != decl.country_id
                or ultimatum.issued_turn >= ctx.turn
            ):
                continue
            terms = _concession(world, ultimatum)
            ctx.emit(
                UltimatumAccepted(
                    ultimatum_id=ultimatum.id,
                    sender_id=ultimatum.sender_id,
                    target_id=ultimatum.target_id,
                    status="void" if _is_void(terms, ultimatum) else "accepted",
                    **terms,
                )
            )


def _expire(ctx: ResolutionContext) -> None:
    world = ctx.world
    due = sorted(
        (
            u
            for u in world.ultimatums.values()
            if u.status == "pending" and u.expires_turn <= ctx.turn
        ),
        key=lambda u: u.id,
    )
    for ultimatum in due:
        sender = world.country(ultimatum.sender_id)
        target = world.country(ultimatum.target_id)
        if sender.military >= ctx.rules.ultimatum_enforce_ratio * target.military:
            terms = _concession(world, ultimatum)
            status = "void" if _is_void(terms, ultimatum) else "enforced_concession"
            ctx.emit(
                UltimatumExpired(
                    ultimatum_id=ultimatum.id,
                    sender_id=sender.id,
                    target_id=target.id,
                    status=status,
                    **terms,
                )
            )
            continue

        war_id = None
        if world.active_war_between(sender.id, target.id) is None:
            war_id = ctx.next_id("w")
        ctx.emit(
            UltimatumExpired(
                ultimatum_id=ultimatum.id,
                sender_id=sender.id,
                target_id=target.id,
                status="enforced_war",
                war_id=war_id,
                broken_pacts=[p.id for p in world.pacts_between(sender.id, target.id)],
            )
        )


def resolve(ctx: ResolutionContext) -> None:
    _issue(ctx)
    _accept(ctx)
    _expire(ctx)
