"""In-memory world model for one game.

The resolution engine works on a :class:`WorldState` snapshot loaded from the
database. Every change goes through one of the mutation primitives below, and
each primitive refuses to leave the world in an inconsistent state by raising
:class:`WorldInvariantError`. ``check_invariants`` re-verifies the whole
model and runs after every resolver step.
"""

from __future__ import annotations

import copy
from dataclasses import asdict, dataclass, field
from typing import Any

from statecraft.engine.rules import STABILITY_MAX, TECH_MAX

CONQUEST = "conquest"
COLLAPSE = "collapse"

ALLIANCE = "alliance"
UNION = "union"

# Scalars that resolvers may shift through ``adjust``; value is (min, max)
ADJUSTABLE_FIELDS: dict[str, tuple[int, int | None]] = {
    "military": (0, None),
    "naval": (0, None),
    "gdp": (0, None),
    "money": (0, None),
    "tech": (0, TECH_MAX),
    "stability": (0, STABILITY_MAX),
    "spy_tokens": (0, None),
}


class WorldInvariantError(Exception):
    """The world model is, or would become, inconsistent."""


# ---------------------------------------------------------------------------
# Entity records
# ---------------------------------------------------------------------------

@dataclass
class CountryState:
    id: str
    name: str
    agent_id: int | None = None
    territory: int = 0
    military: int = 0
    naval: int = 0
    gdp: int = 0
    money: int = 0
    tech: int = 0
    stability: int = 5
    spy_tokens: int = 0
    capital_province_id: str | None = None
    supply_penalty: float = 0.0
    forced_neutral_turn: int | None = None
    is_eliminated: bool = False
    elimination_cause: str | None = None
    eliminated_turn: int | None = None
    annexed_by: str | None = None


@dataclass
class ProvinceState:
    id: str
    name: str
    owner_id: str
    original_owner_id: str
    terrain: str = "plains"
    gdp_value: int = 0
    population: int = 0
    troops: int = 0
    is_capital: bool = False


@dataclass
class PactState:
    id: str
    kind: str
    name: str
    abbreviation: str
    color: str
    members: list[str]
    formed_turn: int
    dissolved_turn: int | None = None

    @property
    def is_active(self) -> bool:
        return self.dissolved_turn is None


@dataclass
class WarState:
    id: str
    attacker_id: str
    defender_id: str
    start_turn: int
    is_active: bool = True
    end_turn: int | None = None

    def involves(self, a: str, b: str) -> bool:
        return {self.attacker_id, self.defender_id} == {a, b}


@dataclass
class UltimatumState:
    id: str
    sender_id: str
    target_id: str
    demand: str
    issued_turn: int
    expires_turn: int
    amount: int = 0
    province_id: str | None = None
    status: str = "pending"


# ---------------------------------------------------------------------------
# World
# ---------------------------------------------------------------------------

@dataclass
class WorldState:
    countries: dict[str, CountryState]
    provinces: dict[str, ProvinceState]
    adjacency: dict[str, set[str]] = field(default_factory=dict)
    pacts: dict[str, PactState] = field(default_factory=dict)
    wars: dict[str, WarState] = field(default_factory=dict)
    ultimatums: dict[str, UltimatumState] = field(default_factory=dict)
    turn: int = 0
    status: str = "active"
    winner_id: str | None = None
    end_reason: str | None = None
    world_tension: int = 0
    coalition_warned: bool = False
    # Province count of the full map, including countries removed before turn 1; 0 means len(provinces)
    map_provinces: int = 0
    # target country -> blockading countries; only meaningful within one pass
    blockades: dict[str, list[str]] = field(default_factory=dict)

    # -- lookups ------------------------------------------------------------

    def country(self, country_id: str) -> CountryState:
        try:
            return self.countries[country_id]
        except KeyError:
            raise WorldInvariantError(f"Unknown country {country_id!r}") from None

    def province(self, province_id: str) -> ProvinceState:
        try:
            return self.provinces[province_id]
        except KeyError:
            raise WorldInvariantError(f"Unknown province {province_id!r}") from None

    def is_living(self, country_id: str | None) -> bool:
        country = self.countries.get(country_id) if country_id else None
        return country is not None and not country.is_eliminated

    def living_ids(self) -> list[str]:
        return sorted(cid for cid, c in self.countries.items() if not c.is_eliminated)

    def provinces_of(self, country_id: str) -> list[ProvinceState]:
        return sorted(
            (p for p in self.provinces.values() if p.owner_id == country_id),
            key=lambda p: p.id,
        )

    def neighbours(self, province_id: str) -> set[str]:
        return {pid for pid in self.adjacency.get(province_id, set()) if pid in self.provinces}

    def active_pacts(self, kind: str | None = None) -> list[PactState]:
        return sorted(
            (p for p in self.pacts.values() if p.is_active and (kind is None or p.kind == kind)),
            key=lambda p: p.id,
        )

    def pacts_between(self, a: str, b: str) -> list[PactState]:
        return [p for p in self.active_pacts() if a in p.members and b in p.members]

    def union_of(self, country_id: str) -> PactState | None:
        for pact in self.active_pacts(UNION):
            if country_id in pact.members:
                return pact
        return None

    def active_war_between(self, a: str, b: str) -> WarState | None:
        for war in self.wars.values():
            if war.is_active and war.involves(a, b):
                return war
        return None

    def at_war(self, country_id: str) -> bool:
        return any(
            w.is_active and country_id in (w.attacker_id, w.defender_id)
            for w in self.wars.values()
        )

    def is_blockaded(self, country_id: str) -> bool:
        return bool(self.blockades.get(country_id))

    # -- mutation primitives ------------------------------------------------

    def adjust(self, country_id: str, **deltas: int) -> None:
        country = self.country(country_id)
        for name, delta in deltas.items():
            if name not in ADJUSTABLE_FIELDS:
                raise WorldInvariantError(f"Field {name!r} cannot be adjusted")
            low, high = ADJUSTABLE_FIELDS[name]
            value = getattr(country, name) + int(delta)
            value = max(low, value)
            if high is not None:
                value = min(high, value)
            setattr(country, name, value)

    def set_money(self, country_id: str, money: int) -> None:
        if money < 0:
            raise WorldInvariantError(f"Negative treasury for {country_id!r}")
        self.country(country_id).money = money

    def set_troops(self, province_id: str, troops: int) -> None:
        if troops < 0:
            raise WorldInvariantError(f"Negative garrison in {province_id!r}")
        self.province(province_id).troops = troops

    def transfer_province(self, province_id: str, new_owner_id: str) -> None:
        province = self.province(province_id)
        new_owner = self.country(new_owner_id)
        if new_owner.is_eliminated:
            raise WorldInvariantError(
                f"Cannot transfer {province_id!r} to eliminated country {new_owner_id!r}"
            )
        if province.owner_id == new_owner_id:
            raise WorldInvariantError(f"{new_owner_id!r} already owns {province_id!r}")
        old_owner = self.country(province.owner_id)
        province.owner_id = new_owner_id
        old_owner.territory -= 1
        new_owner.territory += 1

    def eliminate(
        self,
        country_id: str,
        cause: str,
        annexed_by: str | None = None,
        transfers: dict[str, str] | None = None,
    ) -> None:
        """Reassign every remaining province and mark the country eliminated.

        Also removes it from its pacts, ends its wars and voids its pending
        ultimatums, since none of those may reference a dead country.
        """
        country = self.country(country_id)
        if country.is_eliminated:
            raise WorldInvariantError(f"{country_id!r} is already eliminated")
        if cause == CONQUEST and not annexed_by:
            raise WorldInvariantError("Conquest requires a conqueror")
        if cause == COLLAPSE and annexed_by:
            raise WorldInvariantError("Collapse cannot record a conqueror")
        if cause not in (CONQUEST, COLLAPSE):
            raise WorldInvariantError(f"Unknown elimination cause {cause!r}")

        for province_id, owner_id in sorted((transfers or {}).items()):
            self.transfer_province(province_id, owner_id)
        if self.provinces_of(country_id):
            raise WorldInvariantError(f"{country_id!r} still holds provinces at elimination")

        country.is_eliminated = True
        country.elimination_cause = cause
        country.eliminated_turn = self.turn
        country.annexed_by = annexed_by
        country.forced_neutral_turn = None
        country.supply_penalty = 0.0

        for pact in self.active_pacts():
            if country_id in pact.members:
                self.remove_pact_member(pact.id, country_id)
        for war in self.wars.values():
            if war.is_active and country_id in (war.attacker_id, war.defender_id):
                war.is_active = False
                war.end_turn = self.turn
        for ultimatum in self.ultimatums.values():
            if ultimatum.status == "pending" and country_id in (ultimatum.sender_id, ultimatum.target_id):
                ultimatum.status = "void"
        self.blockades.pop(country_id, None)

    def form_pact(self, pact: PactState) -> None:
        if pact.id in self.pacts:
            raise WorldInvariantError(f"Pact {pact.id!r} already exists")
        if len(pact.members) < 2 or len(set(pact.members)) != len(pact.members):
            raise WorldInvariantError(f"Pact {pact.id!r} needs two or more distinct members")
        for member in pact.members:
            if not self.is_living(member):
                raise WorldInvariantError(f"Pact member {member!r} is not a living country")
            if pact.kind == UNION and self.union_of(member) is not None:
                raise WorldInvariantError(f"{member!r} already belongs to a union")
        self.pacts[pact.id] = pact

    def remove_pact_member(self, pact_id: str, country_id: str) -> None:
        pact = self.pacts[pact_id]
        if country_id not in pact.members:
            raise WorldInvariantError(f"{country_id!r} is not a member of {pact_id!r}")
        pact.members = [m for m in pact.members if m != country_id]
        if len(pact.members) < 2:
            pact.dissolved_turn = self.turn

    def open_war(self, war: WarState) -> None:
        if war.id in self.wars:
            raise WorldInvariantError(f"War {war.id!r} already exists")
        if war.attacker_id == war.defender_id:
            raise WorldInvariantError("A country cannot declare war on itself")
        if not (self.is_living(war.attacker_id) and self.is_living(war.defender_id)):
            raise WorldInvariantError("Wars require two living countries")
        if self.active_war_between(war.attacker_id, war.defender_id) is not None:
            raise WorldInvariantError(
                f"Active war already exists between {war.attacker_id!r} and {war.defender_id!r}"
            )
        self.wars[war.id] = war

    def end_war(self, war_id: str) -> None:
        war = self.wars[war_id]
        if not war.is_active:
            raise WorldInvariantError(f"War {war_id!r} already ended")
        war.is_active = False
        war.end_turn = self.turn

    def add_ultimatum(self, ultimatum: UltimatumState) -> None:
        if ultimatum.id in self.ultimatums:
            raise WorldInvariantError(f"Ultimatum {ultimatum.id!r} already exists")
        self.ultimatums[ultimatum.id] = ultimatum

    def settle_ultimatum(self, ultimatum_id: str, status: str) -> None:
        ultimatum = self.ultimatums[ultimatum_id]
        if ultimatum.status != "pending":
            raise WorldInvariantError(f"Ultimatum {ultimatum_id!r} is already settled")
        ultimatum.status = status

    def add_blockade(self, target_id: str, blockader_id: str) -> None:
        self.blockades.setdefault(target_id, []).append(blockader_id)

    # -- invariants ---------------------------------------------------------

    def check_invariants(self) -> None:
        owned: dict[str, int] = {cid: 0 for cid in self.countries}
        for province in self.provinces.values():
            if province.owner_id not in self.countries:
                raise WorldInvariantError(
                    f"Province {province.id!r} owned by unknown country {province.owner_id!r}"
                )
            if province.troops < 0:
                raise WorldInvariantError(f"Province {province.id!r} has a negative garrison")
            owned[province.owner_id] += 1

        for cid, country in self.countries.items():
            if country.territory != owned[cid]:
                raise WorldInvariantError(
                    f"{cid!r} territory {country.territory} != owned provinces {owned[cid]}"
                )
            if country.is_eliminated and owned[cid]:
                raise WorldInvariantError(f"Eliminated country {cid!r} still owns provinces")
            if (country.annexed_by is not None) != (
                country.is_eliminated and country.elimination_cause == CONQUEST
            ):
                raise WorldInvariantError(f"annexed_by of {cid!r} disagrees with its elimination")

        unions: dict[str, str] = {}
        for pact in self.active_pacts():
            if len(pact.members) < 2 or len(set(pact.members)) != len(pact.members):
                raise WorldInvariantError(f"Pact {pact.id!r} has invalid membership")
            if pact.kind == UNION:
                for member in pact.members:
                    if member in unions:
                        raise WorldInvariantError(f"{member!r} belongs to two unions")
                    unions[member] = pact.id

        seen_pairs: set[frozenset[str]] = set()
        for war in self.wars.values():
            if not war.is_active:
                continue
            pair = frozenset((war.attacker_id, war.defender_id))
            if pair in seen_pairs:
                raise WorldInvariantError(f"Duplicate active war for {sorted(pair)}")
            seen_pairs.add(pair)

    # -- snapshots ----------------------------------------------------------

    def to_snapshot(self) -> dict[str, Any]:
        return {
            "countries": {cid: asdict(c) for cid, c in sorted(self.countries.items())},
            "provinces": {pid: asdict(p) for pid, p in sorted(self.provinces.items())},
            "adjacency": {pid: sorted(n) for pid, n in sorted(self.adjacency.items())},
            "pacts": {k: asdict(v) for k, v in sorted(self.pacts.items())},
            "wars": {k: asdict(v) for k, v in sorted(self.wars.items())},
            "ultimatums": {k: asdict(v) for k, v in sorted(self.ultimatums.items())},
            "turn": self.turn,
            "status": self.status,
            "winner_id": self.winner_id,
            "end_reason": self.end_reason,
            "world_tension": self.world_tension,
            "coalition_warned": self.coalition_warned,
            "map_provinces": self.map_provinces,
            "blockades": {k: list(v) for k, v in sorted(self.blockades.items())},
        }

    @classmethod
    def from_snapshot(cls, snapshot: dict[str, Any]) -> "WorldState":
        world = cls(countries={}, provinces={})
        world.restore(snapshot)
        return world

    def restore(self, snapshot: dict[str, Any]) -> None:
        data = copy.deepcopy(snapshot)
        self.countries = {cid: CountryState(**c) for cid, c in data["countries"].items()}
        self.provinces = {pid: ProvinceState(**p) for pid, p in data["provinces"].items()}
        self.adjacency = {pid: set(n) for pid, n in data.get("adjacency", {}).items()}
        self.pacts = {k: PactState(**v) for k, v in data.get("pacts", {}).items()}
        self.wars = {k: WarState(**v) for k, v in data.get("wars", {}).items()}
        self.ultimatums = {k: UltimatumState(**v) for k, v in data.get("ultimatums", {}).items()}
        self.turn = data.get("turn", 0)
        self.status = data.get("status", "active")
        self.winner_id = data.get("winner_id")
        self.end_reason = data.get("end_reason")
        self.world_tension = data.get("world_tension", 0)
        self.coalition_warned = data.get("coalition_warned", False)
        self.map_provinces = data.get("map_provinces", 0)
        self.blockades = {k: list(v) for k, v in data.get("blockades", {}).items()}


def build_adjacency(pairs: list[tuple[str, str]]) -> dict[str, set[str]]:
    adjacency: dict[str, set[str]] = {}
    for a, b in pairs:
        adjacency.setdefault(a, set()).add(b)
        adjacency.setdefault(b, set()).add(a)
    return adjacency
