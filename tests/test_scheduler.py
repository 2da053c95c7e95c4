"""Turn scheduler tests against a real (SQLite) database.

Covers:
- starting a game and removing unclaimed countries
- every submission rejection reason
- idempotent resubmission and replacement
- phases closing on full submission and on deadline expiry
- concurrent submissions run exactly one resolution pass
- stale deadlines, admin end, pause on engine failure and resume
- recovery of timers and interrupted passes after a restart
- the stored event log replays to the stored world
- webhook delivery runs in the background and only committed events go out
- a finished game releases its scheduler and credits the agents who played
"""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select, update
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from statecraft.config import settings
from statecraft.engine.events import replay
from statecraft.engine.world import WorldInvariantError
from statecraft.models.agent import Agent
from statecraft.models.country import Country
from statecraft.models.game import Game, GamePhase, GameStatus
from statecraft.models.submission import Submission
from statecraft.services import auth_service, event_log, game_service, turn_scheduler, world_store
from statecraft.services.turn_scheduler import RejectReason, SchedulerRegistry, SubmissionRejected

PLAYERS = ("france", "germany")
NO_MESSAGES = {"messages": []}
DEFEND = {"action": "defend"}


# ---- helpers ----------------------------------------------------------------

async def create_game(session_factory, players=PLAYERS, webhook_url=None, **kwargs) -> int:
    options = dict(phase_deadline_seconds=3600, seed=7)
    options.update(kwargs)
    async with session_factory() as db:
        game = await game_service.create_game(db, "Test War", **options)
        for key in players:
            agent = await auth_service.create_agent(db, key, webhook_url=webhook_url)
            await game_service.join_game(db, game, agent, key)
        return game.id


async def started(registry, session_factory, players=PLAYERS, **kwargs):
    game_id = await create_game(session_factory, players, **kwargs)
    scheduler = registry.open(game_id)
    await scheduler.start()
    return scheduler


async def event_types(session_factory, game_id: int) -> list[str]:
    async with session_factory() as db:
        return [row.event_type for row in await event_log.list_events(db, game_id)]


async def events_of(session_factory, game_id: int, event_type: str):
    async with session_factory() as db:
        return await event_log.list_events(db, game_id, event_type=event_type)


async def play_turn(scheduler, declarations: dict | None = None, players=PLAYERS) -> None:
    declarations = declarations or {}
    for key in players:
        await scheduler.submit(key, "negotiation", NO_MESSAGES)
    for key in players:
        await scheduler.submit(key, "declaration", declarations.get(key, DEFEND))


async def rejection(coro) -> RejectReason:
    with pytest.raises(SubmissionRejected) as exc_info:
        await coro
    return exc_info.value.reason


async def agents_by_name(session_factory) -> dict[str, Agent]:
    async with session_factory() as db:
        return {a.agent_name: a for a in (await db.execute(select(Agent))).scalars().all()}


def drain(queue: asyncio.Queue) -> list[dict]:
    items = []
    while not queue.empty():
        items.append(queue.get_nowait())
    return items


# ---- lifecycle --------------------------------------------------------------

class TestStart:
    async def test_start_opens_negotiation(self, registry, session_factory):
        scheduler = await started(registry, session_factory)
        info = await scheduler.current_phase()

        assert info.status == GameStatus.active
        assert info.turn == 1
        assert info.phase == GamePhase.negotiation
        assert info.deadline is not None
        assert await event_types(session_factory, scheduler.game_id) == ["game_started", "phase_changed"]

    async def test_unclaimed_countries_are_removed(self, registry, session_factory):
        scheduler = await started(registry, session_factory)
        async with session_factory() as db:
            countries = await game_service.get_countries(db, scheduler.game_id)
        assert [c.key for c in countries] == ["france", "germany"]

    async def test_needs_min_players(self, registry, session_factory):
        game_id = await create_game(session_factory, players=("france",))
        with pytest.raises(ValueError):
            await registry.open(game_id).start()

    async def test_cannot_start_twice(self, registry, session_factory):
        scheduler = await started(registry, session_factory)
        with pytest.raises(ValueError):
            await scheduler.start()


class TestRejections:
    async def test_before_start(self, registry, session_factory):
        game_id = await create_game(session_factory)
        scheduler = registry.open(game_id)
        assert await rejection(scheduler.submit("france", "negotiation", NO_MESSAGES)) == RejectReason.game_not_active

    async def test_wrong_phase(self, registry, session_factory):
        scheduler = await started(registry, session_factory)
        assert await rejection(scheduler.submit("france", "declaration", DEFEND)) == RejectReason.wrong_phase
        assert await rejection(scheduler.submit("france", "resolution", DEFEND)) == RejectReason.wrong_phase

    async def test_unknown_phase_is_malformed(self, registry, session_factory):
        scheduler = await started(registry, session_factory)
        assert await rejection(scheduler.submit("france", "lunch", DEFEND)) == RejectReason.malformed

    @pytest.mark.parametrize(
        "payload",
        [
            {"messages": [{"recipient": "atlantis", "content": "hello"}]},
            {"messages": [{"recipient": "france", "content": "talking to myself"}]},
            {"messages": "not a list"},
        ],
    )
    async def test_malformed_negotiation(self, registry, session_factory, payload):
        scheduler = await started(registry, session_factory)
        assert await rejection(scheduler.submit("france", "negotiation", payload)) == RejectReason.malformed

    @pytest.mark.parametrize(
        "payload",
        [
            {"action": "attack"},
            {"action": "attack", "target": "france"},
            {"action": "attack", "target": "poland"},
            {"action": "defend", "target": "germany"},
            {"action": "launch_missiles", "target": "germany"},
        ],
    )
    async def test_malformed_declaration(self, registry, session_factory, payload):
        scheduler = await started(registry, session_factory)
        await scheduler.expire_phase(1, "negotiation")
        assert await rejection(scheduler.submit("france", "declaration", payload)) == RejectReason.malformed

    async def test_not_in_game(self, registry, session_factory):
        scheduler = await started(registry, session_factory)
        # poland was unclaimed and removed at start
        assert await rejection(scheduler.submit("poland", "negotiation", NO_MESSAGES)) == RejectReason.not_in_game
        assert await rejection(scheduler.submit("narnia", "negotiation", NO_MESSAGES)) == RejectReason.not_in_game

    async def test_eliminated(self, registry, session_factory):
        scheduler = await started(registry, session_factory, players=("france", "germany", "italy"))
        async with session_factory() as db:
            await db.execute(
                update(Country)
                .where(Country.game_id == scheduler.game_id, Country.key == "italy")
                .values(is_eliminated=True)
            )
            await db.commit()
        assert (
            await rejection(scheduler.submit("italy", "negotiation", NO_MESSAGES))
            == RejectReason.country_eliminated
        )

    async def test_too_many_replacements(self, registry, session_factory, monkeypatch):
        monkeypatch.setattr(settings, "max_submission_revisions", 1)
        scheduler = await started(registry, session_factory)
        first = {"messages": [{"recipient": "broadcast", "content": "one"}]}
        second = {"messages": [{"recipient": "broadcast", "content": "two"}]}
        third = {"messages": [{"recipient": "broadcast", "content": "three"}]}

        assert (await scheduler.submit("france", "negotiation", first)).status == "accepted"
        assert (await scheduler.submit("france", "negotiation", second)).status == "replaced"
        assert (
            await rejection(scheduler.submit("france", "negotiation", third))
            == RejectReason.duplicate_submission
        )

    async def test_rejection_changes_nothing(self, registry, session_factory):
        scheduler = await started(registry, session_factory)
        await rejection(scheduler.submit("france", "declaration", DEFEND))
        async with session_factory() as db:
            count = await db.scalar(select(func.count(Submission.id)))
        assert count == 0
        assert (await scheduler.current_phase()).phase == GamePhase.negotiation


class TestSubmissions:
    async def test_resubmitting_same_payload_is_idempotent(self, registry, session_factory):
        scheduler = await started(registry, session_factory)
        first = await scheduler.submit("france", "negotiation", NO_MESSAGES)
        again = await scheduler.submit("france", "negotiation", NO_MESSAGES)

        assert (first.status, first.revision) == ("accepted", 0)
        assert (again.status, again.revision) == ("unchanged", 0)
        async with session_factory() as db:
            assert await db.scalar(select(func.count(Submission.id))) == 1

    async def test_replacement_moves_to_the_back(self, registry, session_factory):
        scheduler = await started(registry, session_factory, players=("france", "germany", "italy"))
        await scheduler.expire_phase(1, "negotiation")
        await scheduler.submit("france", "declaration", {"action": "invest_tech"})
        await scheduler.submit("germany", "declaration", DEFEND)
        replaced = await scheduler.submit("france", "declaration", {"action": "invest_military"})
        assert replaced.status == "replaced"
        await scheduler.submit("italy", "declaration", DEFEND)

        revealed = (await events_of(session_factory, scheduler.game_id, "declarations_revealed"))[0]
        order = [(d["country_id"], d["action"]) for d in revealed.payload["declarations"]]
        assert order == [("germany", "defend"), ("france", "invest_military"), ("italy", "defend")]

    async def test_full_negotiation_closes_phase(self, registry, session_factory):
        scheduler = await started(registry, session_factory)
        message = {"messages": [{"recipient": "germany", "content": "Peace?", "visibility": "private"}]}
        first = await scheduler.submit("france", "negotiation", message)
        second = await scheduler.submit("germany", "negotiation", NO_MESSAGES)

        assert not first.phase_closed
        assert second.phase_closed
        assert (await scheduler.current_phase()).phase == GamePhase.declaration

        sent = (await events_of(session_factory, scheduler.game_id, "message_sent"))[0]
        assert sent.visible_to == ["france", "germany"]
        assert sent.payload["content"] == "Peace?"

    async def test_full_turn_resolves(self, registry, session_factory):
        scheduler = await started(registry, session_factory)
        await play_turn(scheduler, {"france": {"action": "attack", "target": "germany"}})

        info = await scheduler.current_phase()
        assert (info.turn, info.phase) == (2, GamePhase.negotiation)
        assert scheduler.passes_run == 1
        types = await event_types(session_factory, scheduler.game_id)
        assert types.count("turn_resolved") == 1
        assert "declarations_revealed" in types
        assert "war_declared" in types
        assert types[-1] == "phase_changed"


class TestConcurrency:
    async def test_concurrent_submissions_resolve_once(self, registry, session_factory):
        players = ("france", "germany", "united_kingdom", "italy", "spain")
        scheduler = await started(registry, session_factory, players=players)
        await scheduler.expire_phase(1, "negotiation")

        results = await asyncio.gather(
            *(scheduler.submit(key, "declaration", DEFEND) for key in players),
            scheduler.expire_phase(1, "declaration"),
            scheduler.expire_phase(1, "declaration"),
            return_exceptions=True,
        )

        assert not [r for r in results if isinstance(r, Exception) and not isinstance(r, SubmissionRejected)]
        assert scheduler.passes_run == 1
        types = await event_types(session_factory, scheduler.game_id)
        assert types.count("turn_resolved") == 1
        assert types.count("declarations_revealed") == 1

    async def test_second_scheduler_cannot_advance_same_phase(self, registry, session_factory):
        scheduler = await started(registry, session_factory)
        rival = turn_scheduler.TurnScheduler(scheduler.game_id, session_factory)
        try:
            await scheduler.expire_phase(1, "negotiation")
            await rival.expire_phase(1, "negotiation")
        finally:
            await rival.close()
        types = await event_types(session_factory, scheduler.game_id)
        assert types.count("phase_changed") == 2


# ---- deadlines --------------------------------------------------------------

class TestDeadlines:
    async def test_silent_country_gets_fallback(self, registry, session_factory):
        scheduler = await started(registry, session_factory)
        assert await scheduler.expire_phase(1, "negotiation")
        await scheduler.submit("france", "declaration", {"action": "invest_military"})
        assert await scheduler.expire_phase(1, "declaration")

        revealed = (await events_of(session_factory, scheduler.game_id, "declarations_revealed"))[0]
        by_country = {d["country_id"]: d for d in revealed.payload["declarations"]}
        assert by_country["germany"]["action"] == "defend"
        assert by_country["germany"]["defaulted"] is True
        assert by_country["france"]["defaulted"] is False
        assert (await scheduler.current_phase()).turn == 2

    async def test_silent_negotiator_advances_at_deadline(self, registry, session_factory):
        players = ("france", "germany", "united_kingdom", "italy", "spain")
        scheduler = await started(registry, session_factory, players=players)
        for key in players[:4]:
            result = await scheduler.submit(
                key, "negotiation", {"messages": [{"recipient": "broadcast", "content": f"{key} here"}]}
            )
            assert not result.phase_closed
        assert (await scheduler.current_phase()).phase == GamePhase.negotiation

        assert await scheduler.expire_phase(1, "negotiation")
        assert (await scheduler.current_phase()).phase == GamePhase.declaration
        senders = [
            row.payload["sender_id"]
            for row in await events_of(session_factory, scheduler.game_id, "message_sent")
        ]
        assert sorted(senders) == sorted(players[:4])

    async def test_stale_deadline_is_ignored(self, registry, session_factory):
        scheduler = await started(registry, session_factory)
        assert not await scheduler.expire_phase(1, "declaration")
        await play_turn(scheduler)
        assert not await scheduler.expire_phase(1, "negotiation")
        assert (await scheduler.current_phase()).turn == 2

    async def test_timer_fires(self, registry, session_factory):
        scheduler = await started(registry, session_factory, phase_deadline_seconds=1)
        for _ in range(60):
            await asyncio.sleep(0.1)
            if (await scheduler.current_phase()).phase != GamePhase.negotiation:
                break
        assert (await scheduler.current_phase()).phase != GamePhase.negotiation


# ---- admin ------------------------------------------------------------------

class TestAdmin:
    async def test_end_game(self, registry, session_factory):
        scheduler = await started(registry, session_factory)
        info = await scheduler.end_game()

        assert info.status == GameStatus.ended
        assert info.phase is None
        ended = (await events_of(session_factory, scheduler.game_id, "game_ended"))[0]
        assert ended.phase is None
        assert ended.payload["reason"] == "admin"
        assert await rejection(scheduler.submit("france", "negotiation", NO_MESSAGES)) == RejectReason.game_not_active
        with pytest.raises(ValueError):
            await scheduler.end_game()

    async def test_engine_failure_pauses_then_resume_retries(self, registry, session_factory, monkeypatch):
        def broken(*args, **kwargs):
            raise WorldInvariantError("province owned by nobody")

        monkeypatch.setattr(turn_scheduler, "resolve_turn", broken)
        scheduler = await started(registry, session_factory)
        await play_turn(scheduler)

        info = await scheduler.current_phase()
        assert info.is_paused
        assert (info.turn, info.phase) == (1, GamePhase.resolution)
        assert "game_paused" in await event_types(session_factory, scheduler.game_id)
        assert await rejection(scheduler.submit("france", "negotiation", NO_MESSAGES)) == RejectReason.game_not_active

        monkeypatch.undo()
        info = await scheduler.resume()
        assert not info.is_paused
        assert (info.turn, info.phase) == (2, GamePhase.negotiation)
        assert scheduler.passes_run == 1

    async def test_resume_requires_pause(self, registry, session_factory):
        scheduler = await started(registry, session_factory)
        with pytest.raises(ValueError):
            await scheduler.resume()


# ---- recovery ---------------------------------------------------------------

class TestRecovery:
    async def test_registry_rearms_timer(self, registry, session_factory):
        scheduler = await started(registry, session_factory)
        game_id = scheduler.game_id
        await registry.close(game_id)
        assert game_id not in registry

        restarted = SchedulerRegistry(session_factory)
        try:
            recovered = await restarted.get(game_id)
            assert game_id in restarted
            assert recovered._timer is not None
            assert await restarted.get(game_id) is recovered
        finally:
            await restarted.shutdown()

    async def test_interrupted_pass_is_finished(self, registry, session_factory):
        scheduler = await started(registry, session_factory)
        game_id = scheduler.game_id
        await registry.close(game_id)
        async with session_factory() as db:
            await db.execute(
                update(Game).where(Game.id == game_id).values(current_phase=GamePhase.resolution)
            )
            await db.commit()

        restarted = SchedulerRegistry(session_factory)
        try:
            recovered = await restarted.get(game_id)
            info = await recovered.current_phase()
            assert (info.turn, info.phase) == (2, GamePhase.negotiation)
        finally:
            await restarted.shutdown()


# ---- event log --------------------------------------------------------------

class TestEventLog:
    async def test_log_replays_to_stored_world(self, registry, session_factory):
        players = ("france", "germany", "italy")
        scheduler = await started(registry, session_factory, players=players)
        await play_turn(
            scheduler,
            {
                "france": {"action": "attack", "target": "germany"},
                "germany": DEFEND,
                "italy": {"action": "spy_sabotage", "target": "france"},
            },
            players,
        )
        await play_turn(scheduler, {"germany": {"action": "invest_military"}}, players)

        async with session_factory() as db:
            game = await game_service.get_game(db, scheduler.game_id)
            stored = await world_store.load_world(db, game)
            log = await event_log.load_event_log(db, scheduler.game_id)

        assert replay(log).to_snapshot() == stored.to_snapshot()
        assert all(stored.is_living(p.owner_id) for p in stored.provinces.values())
        assert sum(c.territory for c in stored.countries.values()) == len(stored.provinces)

    async def test_broadcaster_receives_public_view(self, registry, session_factory, broadcaster):
        game_id = await create_game(session_factory)
        queue = broadcaster.subscribe(game_id)
        scheduler = registry.open(game_id)
        await scheduler.start()
        message = {"messages": [{"recipient": "germany", "content": "Secret plan", "visibility": "private"}]}
        await scheduler.submit("france", "negotiation", message)
        await scheduler.submit("germany", "negotiation", NO_MESSAGES)

        items = []
        while not queue.empty():
            items.append(queue.get_nowait())
        types = [item["event_type"] for item in items]
        assert types[:2] == ["game_started", "phase_changed"]
        sent = next(item for item in items if item["event_type"] == "message_sent")
        assert sent["is_private"]
        assert "content" not in sent["payload"]


# ---- notifications ----------------------------------------------------------

class TestNotifications:
    async def test_slow_webhooks_do_not_hold_up_submissions(self, registry, session_factory):
        game_id = await create_game(session_factory, webhook_url="https://agent.example.com/hook")
        scheduler = registry.open(game_id)
        release = asyncio.Event()
        delivered = []

        async def slow_endpoint(url, body, client):
            await release.wait()
            delivered.append((url, body["event_type"]))
            return True

        with patch(
            "statecraft.services.notification_service.send_webhook",
            new_callable=AsyncMock,
        ) as mock_send:
            mock_send.side_effect = slow_endpoint
            await asyncio.wait_for(scheduler.start(), timeout=5)
            await asyncio.wait_for(scheduler.submit("france", "negotiation", NO_MESSAGES), timeout=5)
            result = await asyncio.wait_for(
                scheduler.submit("germany", "negotiation", NO_MESSAGES), timeout=5
            )
            assert result.phase_closed
            assert delivered == []

            release.set()
            await scheduler.wait_for_notifications()

        assert mock_send.await_count > 0
        assert {url for url, _ in delivered} == {"https://agent.example.com/hook"}
        assert ("https://agent.example.com/hook", "game_started") in delivered

    async def test_failed_commit_publishes_nothing(self, registry, session_factory, broadcaster):
        scheduler = await started(registry, session_factory)
        queue = broadcaster.subscribe(scheduler.game_id)
        failure = OperationalError("COMMIT", {}, Exception("disk I/O error"))

        with patch.object(AsyncSession, "commit", new_callable=AsyncMock, side_effect=failure):
            with pytest.raises(OperationalError):
                await scheduler.end_game()
        assert queue.empty()

        await scheduler.end_game()
        assert [item["event_type"] for item in drain(queue)] == ["game_ended"]


# ---- game over --------------------------------------------------------------

class TestGameOver:
    async def test_finished_game_leaves_registry(self, registry, session_factory):
        scheduler = await started(registry, session_factory, max_turns=1)
        assert scheduler.game_id in registry
        await play_turn(scheduler)

        assert (await scheduler.current_phase()).status == GameStatus.ended
        assert scheduler.game_id not in registry
        assert scheduler._timer is None

    async def test_ended_game_is_not_cached(self, registry, session_factory):
        scheduler = await started(registry, session_factory, max_turns=1)
        await play_turn(scheduler)

        fetched = await registry.get(scheduler.game_id)
        assert (await fetched.current_phase()).status == GameStatus.ended
        assert scheduler.game_id not in registry

    async def test_admin_end_releases_scheduler(self, registry, session_factory):
        scheduler = await started(registry, session_factory)
        await scheduler.end_game()
        assert scheduler.game_id not in registry

    async def test_results_credited_to_agents(self, registry, session_factory):
        scheduler = await started(registry, session_factory, max_turns=1)
        await play_turn(scheduler)

        winner = (await events_of(session_factory, scheduler.game_id, "game_ended"))[0].payload["winner_id"]
        loser = next(key for key in PLAYERS if key != winner)
        agents = await agents_by_name(session_factory)
        assert (agents[winner].games_played, agents[winner].games_won) == (1, 1)
        assert (agents[loser].games_played, agents[loser].games_won) == (1, 0)
        assert agents[winner].elo == 1000 + game_service.ELO_WIN
        assert agents[loser].elo == 1005

    async def test_admin_end_records_nothing(self, registry, session_factory):
        scheduler = await started(registry, session_factory)
        await scheduler.end_game()
        agents = await agents_by_name(session_factory)
        assert all(a.games_played == 0 and a.elo == 1000 for a in agents.values())


class TestEloChange:
    def test_winner_gains(self):
        assert game_service.elo_change(0, won=True) == 25

    def test_by_placement(self):
        assert [game_service.elo_change(p, won=False) for p in range(6)] == [10, 5, 0, -5, -10, -15]

    def test_loss_is_capped(self):
        assert game_service.elo_change(9, won=False) == -15
