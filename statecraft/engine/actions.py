"""Declared actions and negotiation payloads.

``ActionType`` is the closed set of things a country can declare. Each kind
is owned by exactly one resolver step (``ACTION_OWNERS``); the module refuses
to import if a kind is left without an owner.
"""

from __future__ import annotations

import enum
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator


class ActionType(str, enum.Enum):
    attack = "attack"
    betray = "betray"
    spy_intel = "spy_intel"
    spy_sabotage = "spy_sabotage"
    spy_propaganda = "spy_propaganda"
    naval_blockade = "naval_blockade"
    naval_attack = "naval_attack"
    ally = "ally"
    defend = "defend"
    invest_military = "invest_military"
    invest_stability = "invest_stability"
    invest_tech = "invest_tech"
    neutral = "neutral"
    propose_peace = "propose_peace"
    propose_ceasefire = "propose_ceasefire"
    send_ultimatum = "send_ultimatum"
    trade = "trade"
    sanction = "sanction"
    embargo = "embargo"
    mobilize = "mobilize"
    coup_attempt = "coup_attempt"
    arms_deal = "arms_deal"
    foreign_aid = "foreign_aid"


class ResolverStep(str, enum.Enum):
    diplomacy = "diplomacy"
    espionage = "espionage"
    military = "military"
    supply = "supply"
    economy = "economy"
    political = "political"
    ultimatum = "ultimatum"
    union = "union"
    win_conditions = "win_conditions"
    world_events = "world_events"


ACTION_OWNERS: dict[ActionType, ResolverStep] = {
    ActionType.ally: ResolverStep.diplomacy,
    ActionType.betray: ResolverStep.diplomacy,
    ActionType.neutral: ResolverStep.diplomacy,
    ActionType.propose_peace: ResolverStep.diplomacy,
    ActionType.propose_ceasefire: ResolverStep.diplomacy,
    ActionType.spy_intel: ResolverStep.espionage,
    ActionType.spy_sabotage: ResolverStep.espionage,
    ActionType.spy_propaganda: ResolverStep.espionage,
    ActionType.coup_attempt: ResolverStep.espionage,
    ActionType.naval_blockade: ResolverStep.military,
    ActionType.naval_attack: ResolverStep.military,
    ActionType.attack: ResolverStep.military,
    ActionType.defend: ResolverStep.military,
    ActionType.invest_military: ResolverStep.economy,
    ActionType.invest_stability: ResolverStep.economy,
    ActionType.invest_tech: ResolverStep.economy,
    ActionType.trade: ResolverStep.economy,
    ActionType.sanction: ResolverStep.economy,
    ActionType.embargo: ResolverStep.economy,
    ActionType.mobilize: ResolverStep.political,
    ActionType.arms_deal: ResolverStep.political,
    ActionType.foreign_aid: ResolverStep.political,
    ActionType.send_ultimatum: ResolverStep.ultimatum,
}

_unowned = set(ActionType) - set(ACTION_OWNERS)
if _unowned:
    raise RuntimeError(f"Action kinds without a resolver: {sorted(a.value for a in _unowned)}")

TARGETLESS_ACTIONS = frozenset(
    {
        ActionType.defend,
        ActionType.invest_military,
        ActionType.invest_stability,
        ActionType.invest_tech,
        ActionType.mobilize,
        ActionType.neutral,
    }
)

AMOUNT_ACTIONS = frozenset({ActionType.send_ultimatum, ActionType.trade, ActionType.foreign_aid})

BROADCAST = "broadcast"
MAX_MESSAGES_PER_TURN = 5


class UltimatumDemand(str, enum.Enum):
    pay_money = "pay_money"
    cede_province = "cede_province"


class ActionPayload(BaseModel):
    """What an agent sends during the declaration phase."""

    action: ActionType
    target: str | None = None
    justification: str = Field(default="", max_length=1000)
    # send_ultimatum only
    demand: UltimatumDemand | None = None
    province_id: str | None = None
    # Money demanded, offered in trade or sent as aid
    amount: int | None = Field(default=None, gt=0)
    # Pending ultimatums (by id) this country concedes to; valid alongside any action
    accept_ultimatums: list[str] = Field(default_factory=list, max_length=10)

    @model_validator(mode="after")
    def check_target(self) -> "ActionPayload":
        if self.action in TARGETLESS_ACTIONS:
            if self.target is not None:
                raise ValueError(f"Action '{self.action.value}' does not take a target")
        elif not self.target:
            raise ValueError(f"Action '{self.action.value}' requires a target")

        if self.action == ActionType.send_ultimatum:
            if self.demand is None:
                raise ValueError("send_ultimatum requires a demand")
            if self.demand == UltimatumDemand.pay_money and self.amount is None:
                raise ValueError("pay_money ultimatums require an amount")
            if self.demand == UltimatumDemand.cede_province and not self.province_id:
                raise ValueError("cede_province ultimatums require a province_id")
        elif self.demand is not None or self.province_id is not None:
            raise ValueError("Ultimatum fields are only valid with send_ultimatum")
        elif self.amount is not None and self.action not in AMOUNT_ACTIONS:
            raise ValueError(f"Action '{self.action.value}' does not take an amount")
        return self


class Declaration(ActionPayload):
    """A declaration as the engine consumes it: the payload plus its origin."""

    country_id: str
    sequence: int = 0
    defaulted: bool = False


class Message(BaseModel):
    recipient: str
    content: str = Field(min_length=1, max_length=1000)
    visibility: Literal["public", "private"] = "public"

    @field_validator("recipient")
    @classmethod
    def recipient_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("recipient must not be blank")
        return v.strip()


class NegotiationPayload(BaseModel):
    messages: list[Message] = Field(default_factory=list, max_length=MAX_MESSAGES_PER_TURN)


def build_declarations(
    submitted: dict[str, tuple[int, ActionPayload]],
    living: list[str],
    fallback: ActionType,
) -> list[Declaration]:
    """Return the turn's declarations in resolution order.

    Submitted declarations come first in acceptance order; living countries
    that did not submit get the fallback action, ordered by country id.
    """
    declarations = [
        Declaration(country_id=cid, sequence=seq, **payload.model_dump())
        for cid, (seq, payload) in submitted.items()
        if cid in living
    ]
    declarations.sort(key=lambda d: (d.sequence, d.country_id))
    for cid in sorted(set(living) - set(submitted)):
        declarations.append(Declaration(country_id=cid, action=fallback, defaulted=True))
    return declarations
