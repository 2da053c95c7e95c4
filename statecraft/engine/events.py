"""Typed game events.

Each event type is its own pydantic model with required fields. Events that
change the world carry the already-computed result (never the dice) and
implement ``apply``; the resolution engine applies an event at the moment it
emits it, so applying the stored log in order against the ``game_started``
snapshot rebuilds the world exactly (see :func:`replay`).
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, ClassVar, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from statecraft.engine.world import (
    ALLIANCE,
    UNION,
    PactState,
    UltimatumState,
    WarState,
    WorldInvariantError,
    WorldState,
)


class BaseEvent(BaseModel):
    icon: ClassVar[str] = "•"
    # Fields hidden from viewers not listed in ``visible_to``
    private_fields: ClassVar[frozenset[str]] = frozenset()

    visible_to: list[str] | None = None

    def apply(self, world: WorldState) -> None:
        """Events that only report something leave the world untouched."""

    def describe(self) -> str:
        return self.type.replace("_", " ")  # type: ignore[attr-defined]

    def public_payload(self) -> dict[str, Any]:
        data = self.model_dump(mode="json")
        if self.visible_to is not None:
            for name in self.private_fields:
                data.pop(name, None)
        return data


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

class GameStarted(BaseEvent):
    type: Literal["game_started"] = "game_started"
    icon: ClassVar[str] = "🏁"
    countries: list[str]
    snapshot: dict[str, Any]

    def apply(self, world: WorldState) -> None:
        world.restore(self.snapshot)

    def describe(self) -> str:
        return f"The game begins with {len(self.countries)} nations"


class PhaseChanged(BaseEvent):
    type: Literal["phase_changed"] = "phase_changed"
    icon: ClassVar[str] = "⏱"
    turn: int
    phase: str
    deadline: datetime | None = None

    def apply(self, world: WorldState) -> None:
        world.turn = self.turn

    def describe(self) -> str:
        return f"Turn {self.turn}: {self.phase} phase"


class MessageSent(BaseEvent):
    type: Literal["message_sent"] = "message_sent"
    icon: ClassVar[str] = "✉"
    private_fields: ClassVar[frozenset[str]] = frozenset({"content"})
    sender_id: str
    recipient: str
    content: str
    visibility: str

    def describe(self) -> str:
        if self.visibility == "private":
            return f"{self.sender_id} sent a private message to {self.recipient}"
        return f"{self.sender_id} to {self.recipient}: {self.content}"


class DeclarationsRevealed(BaseEvent):
    type: Literal["declarations_revealed"] = "declarations_revealed"
    icon: ClassVar[str] = "📜"
    declarations: list[dict[str, Any]]

    def describe(self) -> str:
        return f"{len(self.declarations)} declarations revealed"


class GamePaused(BaseEvent):
    type: Literal["game_paused"] = "game_paused"
    icon: ClassVar[str] = "⏸"
    reason: str

    def describe(self) -> str:
        return f"Game paused: {self.reason}"


class GameResumed(BaseEvent):
    type: Literal["game_resumed"] = "game_resumed"
    icon: ClassVar[str] = "▶"


class GameEnded(BaseEvent):
    type: Literal["game_ended"] = "game_ended"
    icon: ClassVar[str] = "🏳"
    reason: str
    winner_id: str | None = None

    def apply(self, world: WorldState) -> None:
        world.status = "ended"
        if world.end_reason is None:
            world.end_reason = self.reason

    def describe(self) -> str:
        return f"Game ended ({self.reason})"


class TurnResolved(BaseEvent):
    type: Literal["turn_resolved"] = "turn_resolved"
    icon: ClassVar[str] = "✔"
    turn: int
    world_tension: int

    def apply(self, world: WorldState) -> None:
        world.world_tension = self.world_tension
        world.blockades.clear()

    def describe(self) -> str:
        return f"Turn {self.turn} resolved, world tension {self.world_tension}"


# ---------------------------------------------------------------------------
# Elimination
# ---------------------------------------------------------------------------

class CountryEliminated(BaseEvent):
    type: Literal["country_eliminated"] = "country_eliminated"
    icon: ClassVar[str] = "☠"
    country_id: str
    cause: Literal["conquest", "collapse"]
    annexed_by: str | None = None
    transfers: dict[str, str] = Field(default_factory=dict)

    def apply(self, world: WorldState) -> None:
        world.eliminate(self.country_id, self.cause, self.annexed_by, self.transfers)

    def describe(self) -> str:
        if self.cause == "conquest":
            return f"{self.country_id} was annexed by {self.annexed_by}"
        return f"{self.country_id} collapsed"


# ---------------------------------------------------------------------------
# Diplomacy
# ---------------------------------------------------------------------------

class AllianceFormed(BaseEvent):
    type: Literal["alliance_formed"] = "alliance_formed"
    icon: ClassVar[str] = "🤝"
    pact_id: str
    members: list[str]
    name: str
    abbreviation: str
    color: str

    def apply(self, world: WorldState) -> None:
        world.form_pact(
            PactState(
                id=self.pact_id,
                kind=ALLIANCE,
                name=self.name,
                abbreviation=self.abbreviation,
                color=self.color,
                members=list(self.members),
                formed_turn=world.turn,
            )
        )

    def describe(self) -> str:
        return f"{' and '.join(self.members)} formed {self.name}"


class AllianceRejected(BaseEvent):
    type: Literal["alliance_rejected"] = "alliance_rejected"
    icon: ClassVar[str] = "✋"
    country_id: str
    target_id: str
    reason: str

    def describe(self) -> str:
        return f"Alliance offer from {self.country_id} to {self.target_id} failed ({self.reason})"


class Betrayal(BaseEvent):
    type: Literal["betrayal"] = "betrayal"
    icon: ClassVar[str] = "🗡"
    betrayer_id: str
    victim_id: str
    broken_pacts: list[str]
    stability_penalty: int

    def apply(self, world: WorldState) -> None:
        for pact_id in self.broken_pacts:
            world.remove_pact_member(pact_id, self.betrayer_id)
        if self.stability_penalty:
            world.adjust(self.betrayer_id, stability=-self.stability_penalty)

    def describe(self) -> str:
        return f"{self.betrayer_id} betrayed {self.victim_id}"


class WarDeclared(BaseEvent):
    type: Literal["war_declared"] = "war_declared"
    icon: ClassVar[str] = "⚔"
    war_id: str
    attacker_id: str
    defender_id: str
    cause: str

    def apply(self, world: WorldState) -> None:
        world.open_war(
            WarState(
                id=self.war_id,
                attacker_id=self.attacker_id,
                defender_id=self.defender_id,
                start_turn=world.turn,
            )
        )

    def describe(self) -> str:
        return f"{self.attacker_id} declared war on {self.defender_id}"


class WarEnded(BaseEvent):
    type: Literal["war_ended"] = "war_ended"
    icon: ClassVar[str] = "🕊"
    war_id: str
    parties: list[str]
    cause: str

    def apply(self, world: WorldState) -> None:
        world.end_war(self.war_id)

    def describe(self) -> str:
        label = "Ceasefire" if self.cause == "ceasefire" else "Peace"
        return f"{label} between {' and '.join(self.parties)}"


class NeutralityDeclared(BaseEvent):
    type: Literal["neutrality_declared"] = "neutrality_declared"
    icon: ClassVar[str] = "🏳"
    country_id: str
    stability_gain: int

    def apply(self, world: WorldState) -> None:
        world.adjust(self.country_id, stability=self.stability_gain)


# ---------------------------------------------------------------------------
# Espionage
# ---------------------------------------------------------------------------

class _SpyEvent(BaseEvent):
    initiator_id: str
    target_id: str
    chance: float
    roll: float
    success: bool

    def apply(self, world: WorldState) -> None:
        world.adjust(self.initiator_id, spy_tokens=-1)


class SpyIntel(_SpyEvent):
    type: Literal["spy_intel"] = "spy_intel"
    icon: ClassVar[str] = "🔍"
    private_fields: ClassVar[frozenset[str]] = frozenset({"report"})
    report: dict[str, Any] | None = None

    def describe(self) -> str:
        outcome = "gathered intelligence on" if self.success else "failed to infiltrate"
        return f"{self.initiator_id} {outcome} {self.target_id}"


class SpySabotage(_SpyEvent):
    type: Literal["spy_sabotage"] = "spy_sabotage"
    icon: ClassVar[str] = "💣"
    stability_loss: int = 0
    military_loss: int = 0

    def apply(self, world: WorldState) -> None:
        super().apply(world)
        if self.success:
            world.adjust(self.target_id, stability=-self.stability_loss, military=-self.military_loss)

    def describe(self) -> str:
        outcome = "sabotaged" if self.success else "failed to sabotage"
        return f"{self.initiator_id} {outcome} {self.target_id}"


class SpyPropaganda(_SpyEvent):
    type: Literal["spy_propaganda"] = "spy_propaganda"
    icon: ClassVar[str] = "📢"
    stability_loss: int = 0

    def apply(self, world: WorldState) -> None:
        super().apply(world)
        if self.success:
            world.adjust(self.target_id, stability=-self.stability_loss)

    def describe(self) -> str:
        outcome = "spread propaganda in" if self.success else "failed to spread propaganda in"
        return f"{self.initiator_id} {outcome} {self.target_id}"


class CoupAttempt(BaseEvent):
    type: Literal["coup_attempt"] = "coup_attempt"
    icon: ClassVar[str] = "💀"
    initiator_id: str
    target_id: str
    chance: float
    roll: float
    success: bool
    tokens_spent: int
    # Stability the target rallies by when the plot is exposed
    stability_gain: int = 0

    def apply(self, world: WorldState) -> None:
        world.adjust(self.initiator_id, spy_tokens=-self.tokens_spent)
        if not self.success and self.stability_gain:
            world.adjust(self.target_id, stability=self.stability_gain)

    def describe(self) -> str:
        if self.success:
            return f"{self.initiator_id} overthrew the government of {self.target_id}"
        return f"{self.initiator_id}'s coup in {self.target_id} failed"


class EspionageAborted(BaseEvent):
    type: Literal["espionage_aborted"] = "espionage_aborted"
    icon: ClassVar[str] = "🚫"
    initiator_id: str
    target_id: str
    action: str
    reason: str


# ---------------------------------------------------------------------------
# Military
# ---------------------------------------------------------------------------

class NavalBlockade(BaseEvent):
    type: Literal["naval_blockade"] = "naval_blockade"
    icon: ClassVar[str] = "⚓"
    blockader_id: str
    target_id: str

    def apply(self, world: WorldState) -> None:
        world.add_blockade(self.target_id, self.blockader_id)

    def describe(self) -> str:
        return f"{self.blockader_id} blockaded {self.target_id}"


class NavalBattle(BaseEvent):
    type: Literal["naval_battle"] = "naval_battle"
    icon: ClassVar[str] = "🚢"
    attacker_id: str
    defender_id: str
    variance: float
    attacker_strength: float
    defender_strength: float
    attacker_wins: bool
    attacker_losses: int
    defender_losses: int

    def apply(self, world: WorldState) -> None:
        world.adjust(self.attacker_id, naval=-self.attacker_losses)
        world.adjust(self.defender_id, naval=-self.defender_losses)

    def describe(self) -> str:
        winner = self.attacker_id if self.attacker_wins else self.defender_id
        return f"Naval battle between {self.attacker_id} and {self.defender_id}, {winner} prevailed"


class Battle(BaseEvent):
    type: Literal["battle"] = "battle"
    icon: ClassVar[str] = "💥"
    attacker_id: str
    defender_id: str
    province_id: str
    variance: float
    attacker_strength: float
    defender_strength: float
    attacker_wins: bool
    territory_delta: int
    attacker_losses: int
    garrison_losses: int
    defender_military_losses: int

    def apply(self, world: WorldState) -> None:
        world.adjust(self.attacker_id, military=-self.attacker_losses)
        world.adjust(self.defender_id, military=-self.defender_military_losses)
        province = world.province(self.province_id)
        world.set_troops(self.province_id, province.troops - self.garrison_losses)

    def describe(self) -> str:
        verb = "broke through at" if self.attacker_wins else "was repulsed at"
        return f"{self.attacker_id} {verb} {self.province_id} against {self.defender_id}"


class ProvinceCaptured(BaseEvent):
    type: Literal["province_captured"] = "province_captured"
    icon: ClassVar[str] = "🚩"
    province_id: str
    from_id: str
    to_id: str
    garrison: int

    def apply(self, world: WorldState) -> None:
        province = world.province(self.province_id)
        if province.owner_id != self.from_id:
            raise WorldInvariantError(
                f"{self.province_id!r} is owned by {province.owner_id!r}, not {self.from_id!r}"
            )
        world.transfer_province(self.province_id, self.to_id)
        world.adjust(self.to_id, military=-self.garrison)
        world.set_troops(self.province_id, self.garrison)

    def describe(self) -> str:
        return f"{self.to_id} captured {self.province_id} from {self.from_id}"


class AttackFailed(BaseEvent):
    type: Literal["attack_failed"] = "attack_failed"
    icon: ClassVar[str] = "✖"
    attacker_id: str
    target_id: str
    action: str
    reason: str

    def describe(self) -> str:
        return f"{self.attacker_id} could not {self.action.replace('_', ' ')} {self.target_id} ({self.reason})"


# ---------------------------------------------------------------------------
# Supply, economy, politics
# ---------------------------------------------------------------------------

class SupplyStatus(BaseEvent):
    type: Literal["supply_status"] = "supply_status"
    icon: ClassVar[str] = "🛤"
    country_id: str
    isolated: list[str]
    penalty: float
    attrition: dict[str, int] = Field(default_factory=dict)

    def apply(self, world: WorldState) -> None:
        world.country(self.country_id).supply_penalty = self.penalty
        for province_id, lost in sorted(self.attrition.items()):
            world.set_troops(province_id, world.province(province_id).troops - lost)

    def describe(self) -> str:
        if not self.isolated:
            return f"{self.country_id} restored its supply lines"
        return f"{self.country_id} has {len(self.isolated)} provinces cut off from its capital"


class Investment(BaseEvent):
    type: Literal["investment"] = "investment"
    icon: ClassVar[str] = "🏗"
    country_id: str
    kind: str
    cost: int
    gains: dict[str, int]

    def apply(self, world: WorldState) -> None:
        world.adjust(self.country_id, money=-self.cost, **self.gains)

    def describe(self) -> str:
        return f"{self.country_id} invested in {self.kind.removeprefix('invest_')}"


class InvestmentFailed(BaseEvent):
    type: Literal["investment_failed"] = "investment_failed"
    icon: ClassVar[str] = "✖"
    country_id: str
    kind: str
    cost: int
    reason: str


class EconomyAccrual(BaseEvent):
    type: Literal["economy_accrual"] = "economy_accrual"
    icon: ClassVar[str] = "💰"
    country_id: str
    gdp_delta: int
    income: int
    upkeep: int
    money_delta: int
    deserters: int = 0
    spy_tokens_delta: int = 0

    def apply(self, world: WorldState) -> None:
        world.adjust(
            self.country_id,
            gdp=self.gdp_delta,
            money=self.money_delta,
            military=-self.deserters,
            spy_tokens=self.spy_tokens_delta,
        )

    def describe(self) -> str:
        text = f"{self.country_id} earned {self.income} and paid {self.upkeep} upkeep"
        if self.deserters:
            text += f"; {self.deserters} troops deserted"
        return text


class TradeCompleted(BaseEvent):
    type: Literal["trade_completed"] = "trade_completed"
    icon: ClassVar[str] = "📦"
    parties: list[str]
    value: int

    def apply(self, world: WorldState) -> None:
        for country_id in self.parties:
            world.adjust(country_id, money=self.value)

    def describe(self) -> str:
        return f"{' and '.join(self.parties)} traded for {self.value} each"


class DealFailed(BaseEvent):
    """A trade, arms deal or aid offer that went nowhere."""

    type: Literal["deal_failed"] = "deal_failed"
    icon: ClassVar[str] = "✖"
    country_id: str
    target_id: str
    kind: str
    reason: str

    def describe(self) -> str:
        return f"{self.kind.replace('_', ' ').capitalize()} from {self.country_id} to {self.target_id} failed ({self.reason})"


class SanctionImposed(BaseEvent):
    type: Literal["sanction_imposed"] = "sanction_imposed"
    icon: ClassVar[str] = "🚫"
    country_id: str
    target_id: str
    money_loss: int

    def apply(self, world: WorldState) -> None:
        world.adjust(self.target_id, money=-self.money_loss)

    def describe(self) -> str:
        return f"{self.country_id} sanctioned {self.target_id}"


class EmbargoImposed(BaseEvent):
    type: Literal["embargo_imposed"] = "embargo_imposed"
    icon: ClassVar[str] = "⛔"
    country_id: str
    target_id: str
    money_loss: int
    self_cost: int

    def apply(self, world: WorldState) -> None:
        world.adjust(self.target_id, money=-self.money_loss)
        world.adjust(self.country_id, money=-self.self_cost)

    def describe(self) -> str:
        return f"{self.country_id} imposed an embargo on {self.target_id}"


class StabilityDrift(BaseEvent):
    type: Literal["stability_drift"] = "stability_drift"
    icon: ClassVar[str] = "⚖"
    country_id: str
    delta: int
    target: int

    def apply(self, world: WorldState) -> None:
        world.adjust(self.country_id, stability=self.delta)


class Unrest(BaseEvent):
    type: Literal["unrest"] = "unrest"
    icon: ClassVar[str] = "🔥"
    country_id: str
    stability: int
    forced_neutral_turn: int

    def apply(self, world: WorldState) -> None:
        world.country(self.country_id).forced_neutral_turn = self.forced_neutral_turn

    def describe(self) -> str:
        return f"Unrest in {self.country_id}; it must stay neutral next turn"


class Mobilization(BaseEvent):
    type: Literal["mobilization"] = "mobilization"
    icon: ClassVar[str] = "📯"
    country_id: str
    military_gain: int
    stability_loss: int

    def apply(self, world: WorldState) -> None:
        world.adjust(self.country_id, military=self.military_gain, stability=-self.stability_loss)

    def describe(self) -> str:
        return f"{self.country_id} declared full mobilization"


class ArmsDeal(BaseEvent):
    type: Literal["arms_deal"] = "arms_deal"
    icon: ClassVar[str] = "🔫"
    parties: list[str]
    military_sold: int
    money_gained: int

    def apply(self, world: WorldState) -> None:
        for country_id in self.parties:
            world.adjust(country_id, military=-self.military_sold, money=self.money_gained)

    def describe(self) -> str:
        return f"{' and '.join(self.parties)} closed an arms deal"


class ForeignAid(BaseEvent):
    type: Literal["foreign_aid"] = "foreign_aid"
    icon: ClassVar[str] = "🎁"
    country_id: str
    target_id: str
    amount: int
    stability_gain: int

    def apply(self, world: WorldState) -> None:
        world.adjust(self.country_id, money=-self.amount, stability=self.stability_gain)
        world.adjust(self.target_id, money=self.amount)

    def describe(self) -> str:
        return f"{self.country_id} sent {self.amount} in aid to {self.target_id}"


# ---------------------------------------------------------------------------
# Ultimatums and unions
# ---------------------------------------------------------------------------

class UltimatumIssued(BaseEvent):
    type: Literal["ultimatum_issued"] = "ultimatum_issued"
    icon: ClassVar[str] = "📨"
    ultimatum_id: str
    sender_id: str
    target_id: str
    demand: str
    amount: int = 0
    province_id: str | None = None
    expires_turn: int

    def apply(self, world: WorldState) -> None:
        world.add_ultimatum(
            UltimatumState(
                id=self.ultimatum_id,
                sender_id=self.sender_id,
                target_id=self.target_id,
                demand=self.demand,
                issued_turn=world.turn,
                expires_turn=self.expires_turn,
                amount=self.amount,
                province_id=self.province_id,
            )
        )

    def describe(self) -> str:
        return f"{self.sender_id} issued an ultimatum to {self.target_id}"


class UltimatumInvalid(BaseEvent):
    type: Literal["ultimatum_invalid"] = "ultimatum_invalid"
    icon: ClassVar[str] = "✖"
    sender_id: str
    target_id: str
    reason: str


class _UltimatumSettlement(BaseEvent):
    ultimatum_id: str
    sender_id: str
    target_id: str
    status: Literal["accepted", "enforced_concession", "enforced_war", "void"]
    money_paid: int = 0
    province_id: str | None = None
    war_id: str | None = None
    # Pacts the sender walks out of when it goes to war with a partner
    broken_pacts: list[str] = Field(default_factory=list)

    def apply(self, world: WorldState) -> None:
        world.settle_ultimatum(self.ultimatum_id, self.status)
        for pact_id in self.broken_pacts:
            world.remove_pact_member(pact_id, self.sender_id)
        if self.money_paid:
            world.adjust(self.target_id, money=-self.money_paid)
            world.adjust(self.sender_id, money=self.money_paid)
        if self.province_id:
            world.transfer_province(self.province_id, self.sender_id)
            world.set_troops(self.province_id, 0)
        if self.war_id:
            world.open_war(
                WarState(
                    id=self.war_id,
                    attacker_id=self.sender_id,
                    defender_id=self.target_id,
                    start_turn=world.turn,
                )
            )


class UltimatumAccepted(_UltimatumSettlement):
    type: Literal["ultimatum_accepted"] = "ultimatum_accepted"
    icon: ClassVar[str] = "✅"

    def describe(self) -> str:
        return f"{self.target_id} accepted the ultimatum from {self.sender_id}"


class UltimatumExpired(_UltimatumSettlement):
    type: Literal["ultimatum_expired"] = "ultimatum_expired"
    icon: ClassVar[str] = "⌛"

    def describe(self) -> str:
        return f"Ultimatum from {self.sender_id} to {self.target_id} expired: {self.status}"


class UnionFormed(BaseEvent):
    type: Literal["union_formed"] = "union_formed"
    icon: ClassVar[str] = "🔗"
    pact_id: str
    members: list[str]
    name: str
    abbreviation: str
    color: str

    def apply(self, world: WorldState) -> None:
        world.form_pact(
            PactState(
                id=self.pact_id,
                kind=UNION,
                name=self.name,
                abbreviation=self.abbreviation,
                color=self.color,
                members=list(self.members),
                formed_turn=world.turn,
            )
        )

    def describe(self) -> str:
        return f"{' and '.join(self.members)} formed the {self.name}"


class UnionPooled(BaseEvent):
    type: Literal["union_pooled"] = "union_pooled"
    icon: ClassVar[str] = "🏦"
    pact_id: str
    balances: dict[str, int]

    def apply(self, world: WorldState) -> None:
        for country_id, money in sorted(self.balances.items()):
            world.set_money(country_id, money)


# ---------------------------------------------------------------------------
# Win conditions and world events
# ---------------------------------------------------------------------------

class CoalitionWarning(BaseEvent):
    type: Literal["coalition_warning"] = "coalition_warning"
    icon: ClassVar[str] = "⚠"
    leader_id: str
    share: float

    def apply(self, world: WorldState) -> None:
        world.coalition_warned = True

    def describe(self) -> str:
        return f"{self.leader_id} controls {self.share:.0%} of Europe; the world takes notice"


class Victory(BaseEvent):
    type: Literal["victory"] = "victory"
    icon: ClassVar[str] = "👑"
    winner_id: str | None
    reason: Literal["last_standing", "domination", "max_turns", "no_survivors"]
    standings: list[dict[str, Any]] = Field(default_factory=list)

    def apply(self, world: WorldState) -> None:
        world.status = "ended"
        world.winner_id = self.winner_id
        world.end_reason = self.reason

    def describe(self) -> str:
        if self.winner_id is None:
            return "No nation survived"
        return f"{self.winner_id} wins by {self.reason.replace('_', ' ')}"


class WorldEventOccurred(BaseEvent):
    type: Literal["world_event"] = "world_event"
    icon: ClassVar[str] = "🌍"
    name: str
    country_id: str
    effects: dict[str, int]

    def apply(self, world: WorldState) -> None:
        world.adjust(self.country_id, **self.effects)

    def describe(self) -> str:
        return f"{self.name.replace('_', ' ').capitalize()} in {self.country_id}"


Event = Annotated[
    Union[
        GameStarted,
        PhaseChanged,
        MessageSent,
        DeclarationsRevealed,
        GamePaused,
        GameResumed,
        GameEnded,
        TurnResolved,
        CountryEliminated,
        AllianceFormed,
        AllianceRejected,
        Betrayal,
        WarDeclared,
        WarEnded,
        NeutralityDeclared,
        SpyIntel,
        SpySabotage,
        SpyPropaganda,
        CoupAttempt,
        EspionageAborted,
        NavalBlockade,
        NavalBattle,
        Battle,
        ProvinceCaptured,
        AttackFailed,
        SupplyStatus,
        Investment,
        InvestmentFailed,
        EconomyAccrual,
        TradeCompleted,
        DealFailed,
        SanctionImposed,
        EmbargoImposed,
        StabilityDrift,
        Unrest,
        Mobilization,
        ArmsDeal,
        ForeignAid,
        UltimatumIssued,
        UltimatumInvalid,
        UltimatumAccepted,
        UltimatumExpired,
        UnionFormed,
        UnionPooled,
        CoalitionWarning,
        Victory,
        WorldEventOccurred,
    ],
    Field(discriminator="type"),
]

event_adapter: TypeAdapter[Event] = TypeAdapter(Event)


def parse_event(data: dict[str, Any]) -> BaseEvent:
    return event_adapter.validate_python(data)


def replay(events: list[BaseEvent]) -> WorldState:
    """Rebuild a world from an ordered event log that starts with ``game_started``."""
    if not events or not isinstance(events[0], GameStarted):
        raise WorldInvariantError("Replay must start from a game_started event")
    world = WorldState(countries={}, provinces={})
    for event in events:
        event.apply(world)
    return world
