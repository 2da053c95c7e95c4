"""World model tests.

Covers:
- mutation primitives keep territory counts and ownership consistent
- elimination rules (conquest vs collapse, annexed_by)
- pact, war and union invariants
- snapshot round trip
"""

import pytest

from conftest import make_world
from statecraft.engine.world import (
    ALLIANCE,
    COLLAPSE,
    CONQUEST,
    UNION,
    PactState,
    WarState,
    WorldInvariantError,
    WorldState,
)


def _pact(pid: str, members: list[str], kind: str = ALLIANCE) -> PactState:
    return PactState(
        id=pid, kind=kind, name=pid, abbreviation=pid.upper(), color="#000000",
        members=members, formed_turn=1,
    )


def _owned_partition(world: WorldState) -> bool:
    owners = [p.owner_id for p in world.provinces.values()]
    return all(world.is_living(o) for o in owners) and len(owners) == len(world.provinces)


class TestAdjust:
    def test_clamps_to_bounds(self):
        world = make_world({"a": 1})
        world.adjust("a", money=-1000, stability=50, tech=3)
        country = world.country("a")
        assert country.money == 0
        assert country.stability == 10
        assert country.tech == 6

    def test_rejects_unknown_field(self):
        world = make_world({"a": 1})
        with pytest.raises(WorldInvariantError):
            world.adjust("a", territory=1)

    def test_unknown_country(self):
        world = make_world({"a": 1})
        with pytest.raises(WorldInvariantError):
            world.adjust("zz", money=1)


class TestTransfer:
    def test_moves_territory_count(self):
        world = make_world({"a": 2, "b": 2})
        world.transfer_province("b_1", "a")
        assert world.country("a").territory == 3
        assert world.country("b").territory == 1
        world.check_invariants()

    def test_cannot_transfer_to_current_owner(self):
        world = make_world({"a": 2})
        with pytest.raises(WorldInvariantError):
            world.transfer_province("a_1", "a")

    def test_cannot_transfer_to_eliminated(self):
        world = make_world({"a": 2, "b": 1, "c": 1})
        world.eliminate("b", CONQUEST, annexed_by="a", transfers={"b_0": "a"})
        with pytest.raises(WorldInvariantError):
            world.transfer_province("c_0", "b")


class TestEliminate:
    def test_conquest_records_annexer(self):
        world = make_world({"a": 2, "b": 2})
        world.eliminate("b", CONQUEST, annexed_by="a", transfers={"b_0": "a", "b_1": "a"})
        country = world.country("b")
        assert country.is_eliminated
        assert country.annexed_by == "a"
        assert country.elimination_cause == CONQUEST
        assert world.country("a").territory == 4
        assert _owned_partition(world)
        world.check_invariants()

    def test_collapse_has_no_annexer(self):
        world = make_world({"a": 2, "b": 1})
        world.eliminate("b", COLLAPSE, transfers={"b_0": "a"})
        assert world.country("b").annexed_by is None
        world.check_invariants()

    def test_conquest_requires_annexer(self):
        world = make_world({"a": 1, "b": 1})
        with pytest.raises(WorldInvariantError):
            world.eliminate("b", CONQUEST, transfers={"b_0": "a"})

    def test_collapse_rejects_annexer(self):
        world = make_world({"a": 1, "b": 1})
        with pytest.raises(WorldInvariantError):
            world.eliminate("b", COLLAPSE, annexed_by="a", transfers={"b_0": "a"})

    def test_must_hand_over_every_province(self):
        world = make_world({"a": 1, "b": 2})
        with pytest.raises(WorldInvariantError):
            world.eliminate("b", COLLAPSE, transfers={"b_0": "a"})

    def test_cannot_eliminate_twice(self):
        world = make_world({"a": 1, "b": 0})
        world.eliminate("b", COLLAPSE)
        with pytest.raises(WorldInvariantError):
            world.eliminate("b", COLLAPSE)

    def test_clears_pacts_wars_and_ultimatums(self):
        world = make_world({"a": 1, "b": 1, "c": 1})
        world.form_pact(_pact("p1", ["a", "b"]))
        world.open_war(WarState(id="w1", attacker_id="c", defender_id="b", start_turn=1))
        world.eliminate("b", CONQUEST, annexed_by="c", transfers={"b_0": "c"})
        assert not world.pacts["p1"].is_active
        assert not world.wars["w1"].is_active
        world.check_invariants()


class TestPactsAndWars:
    def test_pact_needs_two_members(self):
        world = make_world({"a": 1, "b": 1})
        with pytest.raises(WorldInvariantError):
            world.form_pact(_pact("p1", ["a"]))
        with pytest.raises(WorldInvariantError):
            world.form_pact(_pact("p1", ["a", "a"]))

    def test_one_union_per_country(self):
        world = make_world({"a": 1, "b": 1, "c": 1})
        world.form_pact(_pact("u1", ["a", "b"], UNION))
        with pytest.raises(WorldInvariantError):
            world.form_pact(_pact("u2", ["a", "c"], UNION))

    def test_alliances_may_overlap(self):
        world = make_world({"a": 1, "b": 1, "c": 1})
        world.form_pact(_pact("p1", ["a", "b"]))
        world.form_pact(_pact("p2", ["a", "c"]))
        assert len(world.active_pacts(ALLIANCE)) == 2

    def test_leaving_two_member_pact_dissolves_it(self):
        world = make_world({"a": 1, "b": 1}, turn=4)
        world.form_pact(_pact("p1", ["a", "b"]))
        world.remove_pact_member("p1", "a")
        assert world.pacts["p1"].dissolved_turn == 4
        assert world.pacts_between("a", "b") == []

    def test_one_active_war_per_pair(self):
        world = make_world({"a": 1, "b": 1})
        world.open_war(WarState(id="w1", attacker_id="a", defender_id="b", start_turn=1))
        with pytest.raises(WorldInvariantError):
            world.open_war(WarState(id="w2", attacker_id="b", defender_id="a", start_turn=1))
        world.end_war("w1")
        world.open_war(WarState(id="w2", attacker_id="b", defender_id="a", start_turn=2))
        assert world.active_war_between("a", "b").id == "w2"


class TestInvariants:
    def test_detects_territory_mismatch(self):
        world = make_world({"a": 2})
        world.country("a").territory = 5
        with pytest.raises(WorldInvariantError):
            world.check_invariants()

    def test_detects_orphaned_province(self):
        world = make_world({"a": 2})
        world.province("a_1").owner_id = "ghost"
        with pytest.raises(WorldInvariantError):
            world.check_invariants()

    def test_detects_stray_annexer(self):
        world = make_world({"a": 2})
        world.country("a").annexed_by = "b"
        with pytest.raises(WorldInvariantError):
            world.check_invariants()


class TestSnapshot:
    def test_round_trip(self):
        world = make_world({"a": 2, "b": 3}, [("a_0", "b_0")], turn=3)
        world.form_pact(_pact("p1", ["a", "b"]))
        restored = WorldState.from_snapshot(world.to_snapshot())
        assert restored.to_snapshot() == world.to_snapshot()
        assert restored.neighbours("a_0") == {"a_1", "b_0"}

    def test_snapshot_is_a_copy(self):
        world = make_world({"a": 2})
        snapshot = world.to_snapshot()
        world.adjust("a", money=50)
        assert snapshot["countries"]["a"]["money"] == 100
