"""Declaration payload tests.

Covers:
- every action kind is owned by exactly one resolver step
- target validation for targeted and targetless actions
- ultimatum field validation and which actions take an amount
- negotiation message limits
- declaration ordering with fallback actions
"""

import pytest
from pydantic import ValidationError

from statecraft.engine.actions import (
    ACTION_OWNERS,
    MAX_MESSAGES_PER_TURN,
    TARGETLESS_ACTIONS,
    ActionPayload,
    ActionType,
    NegotiationPayload,
    ResolverStep,
    build_declarations,
)
from statecraft.engine.resolution import STEPS


class TestOwnership:
    def test_every_action_has_one_owner(self):
        assert set(ACTION_OWNERS) == set(ActionType)

    def test_owners_are_steps_that_run(self):
        running = {step for step, _ in STEPS}
        assert set(ACTION_OWNERS.values()) <= running

    def test_steps_run_in_documented_order(self):
        assert [step for step, _ in STEPS] == [
            ResolverStep.diplomacy,
            ResolverStep.espionage,
            ResolverStep.military,
            ResolverStep.supply,
            ResolverStep.economy,
            ResolverStep.political,
            ResolverStep.ultimatum,
            ResolverStep.union,
            ResolverStep.win_conditions,
            ResolverStep.world_events,
        ]


class TestActionPayload:
    @pytest.mark.parametrize("action", sorted(TARGETLESS_ACTIONS, key=lambda a: a.value))
    def test_targetless_rejects_target(self, action):
        with pytest.raises(ValidationError):
            ActionPayload(action=action, target="germany")
        assert ActionPayload(action=action).target is None

    @pytest.mark.parametrize(
        "action",
        [
            "attack", "betray", "ally", "spy_intel", "naval_blockade", "propose_ceasefire",
            "trade", "sanction", "embargo", "coup_attempt", "arms_deal", "foreign_aid",
        ],
    )
    def test_targeted_requires_target(self, action):
        with pytest.raises(ValidationError):
            ActionPayload(action=action)
        assert ActionPayload(action=action, target="germany").target == "germany"

    def test_unknown_action(self):
        with pytest.raises(ValidationError):
            ActionPayload.model_validate({"action": "nuke", "target": "germany"})

    def test_justification_length(self):
        with pytest.raises(ValidationError):
            ActionPayload(action="defend", justification="x" * 1001)

    def test_ultimatum_needs_demand(self):
        with pytest.raises(ValidationError):
            ActionPayload(action="send_ultimatum", target="germany")
        with pytest.raises(ValidationError):
            ActionPayload(action="send_ultimatum", target="germany", demand="pay_money")
        payload = ActionPayload(action="send_ultimatum", target="germany", demand="pay_money", amount=50)
        assert payload.amount == 50

    def test_cede_province_needs_province(self):
        with pytest.raises(ValidationError):
            ActionPayload(action="send_ultimatum", target="germany", demand="cede_province")
        payload = ActionPayload(
            action="send_ultimatum", target="germany", demand="cede_province", province_id="bavaria"
        )
        assert payload.province_id == "bavaria"

    def test_ultimatum_fields_only_with_ultimatum(self):
        with pytest.raises(ValidationError):
            ActionPayload(action="attack", target="germany", amount=10)

    def test_amount_for_trade_and_aid(self):
        assert ActionPayload(action="trade", target="germany", amount=25).amount == 25
        assert ActionPayload(action="foreign_aid", target="germany", amount=10).amount == 10
        with pytest.raises(ValidationError):
            ActionPayload(action="sanction", target="germany", amount=10)
        with pytest.raises(ValidationError):
            ActionPayload(action="trade", target="germany", demand="pay_money")

    def test_mobilize_is_targetless(self):
        assert ActionType.mobilize in TARGETLESS_ACTIONS


class TestNegotiationPayload:
    def test_message_limit(self):
        messages = [{"recipient": "broadcast", "content": "hi"}] * (MAX_MESSAGES_PER_TURN + 1)
        with pytest.raises(ValidationError):
            NegotiationPayload.model_validate({"messages": messages})

    def test_content_bounds(self):
        with pytest.raises(ValidationError):
            NegotiationPayload.model_validate({"messages": [{"recipient": "france", "content": ""}]})
        with pytest.raises(ValidationError):
            NegotiationPayload.model_validate(
                {"messages": [{"recipient": "france", "content": "x" * 1001}]}
            )

    def test_visibility_values(self):
        with pytest.raises(ValidationError):
            NegotiationPayload.model_validate(
                {"messages": [{"recipient": "france", "content": "hi", "visibility": "secret"}]}
            )

    def test_empty_is_valid(self):
        assert NegotiationPayload.model_validate({}).messages == []


class TestBuildDeclarations:
    def test_submitted_in_sequence_then_fallback_by_id(self):
        submitted = {
            "italy": (7, ActionPayload(action="attack", target="france")),
            "germany": (3, ActionPayload(action="defend")),
        }
        declarations = build_declarations(
            submitted, ["austria", "france", "germany", "italy", "spain"], ActionType.defend
        )
        assert [d.country_id for d in declarations] == ["germany", "italy", "austria", "france", "spain"]
        assert [d.defaulted for d in declarations] == [False, False, True, True, True]
        assert all(d.action == ActionType.defend for d in declarations[2:])

    def test_dead_submitters_are_dropped(self):
        submitted = {"france": (1, ActionPayload(action="neutral"))}
        declarations = build_declarations(submitted, ["germany"], ActionType.neutral)
        assert [d.country_id for d in declarations] == ["germany"]
