"""Economy and investment step.

Mutual trade deals pay out first, then investments are paid from the treasury
as it stands after combat, in declaration order. Sanctions and embargoes drain
the target's treasury next. Passive accrual follows for every living country:
income from province GDP, minus upkeep. A treasury that cannot cover upkeep
is emptied and part of the army deserts.
"""

from __future__ import annotations

from statecraft.engine import formulas
from statecraft.engine.actions import ActionType, Declaration, ResolverStep
from statecraft.engine.context import ResolutionContext
from statecraft.engine.events import (
    DealFailed,
    EconomyAccrual,
    EmbargoImposed,
    Investment,
    InvestmentFailed,
    SanctionImposed,
    TradeCompleted,
)
from statecraft.engine.rules import STABILITY_MAX, TECH_MAX


def _invest(ctx: ResolutionContext, decl: Declaration) -> None:
    rules = ctx.rules
    country = ctx.world.country(decl.country_id)

    if decl.action == ActionType.invest_military:
        cost, gains, capped = rules.military_investment_cost, {"military": rules.military_investment_gain}, False
    elif decl.action == ActionType.invest_stability:
        cost = rules.stability_investment_cost
        gains = {"stability": rules.stability_investment_gain}
        capped = country.stability >= STABILITY_MAX
    else:
        cost = rules.tech_investment_cost
        gains = {"tech": rules.tech_investment_gain}
        capped = country.tech >= TECH_MAX

    reason = None
    if capped:
        reason = "at_maximum"
    elif country.money < cost:
        reason = "insufficient_funds"
    if reason is not None:
        ctx.emit(InvestmentFailed(country_id=country.id, kind=decl.action.value, cost=cost, reason=reason))
        return
    ctx.emit(Investment(country_id=country.id, kind=decl.action.value, cost=cost, gains=gains))


def _accrue(ctx: ResolutionContext, country_id: str) -> None:
    rules = ctx.rules
    world = ctx.world
    country = world.country(country_id)

    gdp, income = formulas.economic_accrual(
        [p.gdp_value for p in world.provinces_of(country_id)],
        country.tech,
        country.stability,
        world.is_blockaded(country_id),
        rules,
    )
    cost = formulas.upkeep(country.military, country.naval, rules)
    net = income - cost
    deserters = 0
    if country.money + net < 0:
        net = -country.money
        deserters = formulas.desertions(country.military, rules)

    spy_regen = max(0, min(rules.spy_tokens_regen, rules.spy_tokens_max - country.spy_tokens))
    ctx.emit(
        EconomyAccrual(
            country_id=country_id,
            gdp_delta=gdp - country.gdp,
            income=income,
            upkeep=cost,
            money_delta=net,
            deserters=deserters,
            spy_tokens_delta=spy_regen,
        )
    )


def _trade(ctx: ResolutionContext, decl: Declaration, handled: set[frozenset[str]]) -> None:
    world = ctx.world
    pair = frozenset((decl.country_id, decl.target))
    if pair in handled:
        return
    partner = next(
        (
            d
            for d in ctx.declarations
            if d.country_id == decl.target and d.action == ActionType.trade and d.target == decl.country_id
        ),
        None,
    )
    reason = None
    if not world.is_living(decl.target):
        reason = "target_eliminated"
    elif partner is None:
        reason = "not_reciprocated"
    else:
        handled.add(pair)
        if world.active_war_between(decl.country_id, decl.target) is not None:
            reason = "at_war"
    if reason is not None:
        ctx.emit(DealFailed(country_id=decl.country_id, target_id=decl.target, kind="trade", reason=reason))
        return

    rules = ctx.rules
    value = min(
        decl.amount or rules.trade_default_amount,
        partner.amount or rules.trade_default_amount,
        rules.trade_max_amount,
    )
    ctx.emit(TradeCompleted(parties=sorted(pair), value=value))


def _pressure(ctx: ResolutionContext, decl: Declaration) -> None:
    world = ctx.world
    if not world.is_living(decl.target):
        return
    rules = ctx.rules
    target = world.country(decl.target)
    if decl.action == ActionType.sanction:
        ctx.emit(
            SanctionImposed(
                country_id=decl.country_id,
                target_id=target.id,
                money_loss=min(target.money, rules.sanction_money_loss),
            )
        )
        return
    ctx.emit(
        EmbargoImposed(
            country_id=decl.country_id,
            target_id=target.id,
            money_loss=min(target.money, rules.embargo_money_loss),
            self_cost=min(world.country(decl.country_id).money, rules.embargo_self_cost),
        )
    )


def resolve(ctx: ResolutionContext) -> None:
    trades: set[frozenset[str]] = set()
    for decl in ctx.declarations_for(ResolverStep.economy, ActionType.trade):
        _trade(ctx, decl, trades)
    for decl in ctx.declarations_for(
        ResolverStep.economy, ActionType.invest_military, ActionType.invest_stability, ActionType.invest_tech
    ):
        _invest(ctx, decl)
    for decl in ctx.declarations_for(ResolverStep.economy, ActionType.sanction, ActionType.embargo):
        _pressure(ctx, decl)
    for country_id in ctx.world.living_ids():
        _accrue(ctx, country_id)
