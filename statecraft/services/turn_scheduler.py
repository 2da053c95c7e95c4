"""Turn scheduler: the per-game phase machine.

    lobby -> negotiation -> declaration -> resolution -> negotiation (next turn)
                                                      \\-> ended

One ``TurnScheduler`` exists per game and owns an ``asyncio.Lock``. Every
submission, deadline expiry and admin action for that game runs under the
lock, so the "is the phase complete?" check and the phase transition it
triggers form a single decision. The declaration -> resolution transition is
additionally a compare-and-set UPDATE on ``(current_turn, current_phase)``,
so even two processes sharing a database cannot both start a pass.

The resolution pass itself works on an in-memory copy of the world and writes
the new world, its events and the next phase in one transaction.
"""

from __future__ import annotations

import asyncio
import contextlib
import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from pydantic import ValidationError
from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from statecraft.config import settings
from statecraft.engine.actions import (
    BROADCAST,
    ActionPayload,
    ActionType,
    Declaration,
    NegotiationPayload,
    build_declarations,
)
from statecraft.engine.events import (
    BaseEvent,
    DeclarationsRevealed,
    GameEnded,
    GamePaused,
    GameResumed,
    GameStarted,
    MessageSent,
    PhaseChanged,
)
from statecraft.engine.resolution import resolve_turn
from statecraft.engine.rules import DEFAULT_RULES, GameRules
from statecraft.engine.world import WorldInvariantError, WorldState
from statecraft.models.country import Country
from statecraft.models.game import Game, GamePhase, GameStatus
from statecraft.models.game_event import GameEvent
from statecraft.models.submission import Submission
from statecraft.services import event_log, game_service, notification_service, world_store
from statecraft.services.notification_service import EventBroadcaster
from statecraft.services.storage import run_with_retry

logger = logging.getLogger(__name__)


class RejectReason(str, enum.Enum):
    game_not_active = "game_not_active"
    wrong_phase = "wrong_phase"
    country_eliminated = "country_eliminated"
    duplicate_submission = "duplicate_submission"
    not_in_game = "not_in_game"
    malformed = "malformed"


class SubmissionRejected(Exception):
    def __init__(self, reason: RejectReason, message: str):
        super().__init__(message)
        self.reason = reason
        self.message = message


@dataclass
class SubmissionResult:
    status: str  # "accepted", "replaced" or "unchanged"
    turn: int
    phase: GamePhase
    revision: int
    phase_closed: bool = False


@dataclass
class PhaseInfo:
    game_id: int
    status: GameStatus
    turn: int
    phase: GamePhase | None
    deadline: datetime | None
    is_paused: bool = False


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class TurnScheduler:
    def __init__(
        self,
        game_id: int,
        session_factory: async_sessionmaker[AsyncSession],
        broadcaster: EventBroadcaster | None = None,
        rules: GameRules = DEFAULT_RULES,
        on_ended: Callable[[int], None] | None = None,
    ):
        self.game_id = game_id
        self.rules = rules
        self.passes_run = 0
        self._session_factory = session_factory
        self._broadcaster = broadcaster
        self._lock = asyncio.Lock()
        self._timer: asyncio.Task | None = None
        self._outbox: list[GameEvent] = []
        self._deliveries: set[asyncio.Task] = set()
        self._finished = False
        self._on_ended = on_ended

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def start(self) -> PhaseInfo:
        """lobby -> negotiation of turn 1. Raises ValueError if the game cannot start."""
        async with self._lock:
            async with self._session_factory() as db:
                game = await self._load_game(db)
                if game.status != GameStatus.lobby:
                    raise ValueError("Game has already started")
                joined = await db.scalar(
                    select(func.count(Country.id)).where(
                        Country.game_id == game.id, Country.agent_id.is_not(None)
                    )
                )
                if joined < game.min_players:
                    raise ValueError(
                        f"Need at least {game.min_players} players to start, have {joined}"
                    )

                removed = await world_store.remove_unclaimed(db, game)
                world = await world_store.load_world(db, game)
                deadline = _utcnow() + timedelta(seconds=game.phase_deadline_seconds)

                game.status = GameStatus.active
                game.started_at = _utcnow()
                game.current_turn = 1
                game.current_phase = GamePhase.negotiation
                game.phase_deadline = deadline
                events: list[BaseEvent] = [
                    GameStarted(countries=world.living_ids(), snapshot=world.to_snapshot()),
                    PhaseChanged(turn=1, phase=GamePhase.negotiation.value, deadline=deadline),
                ]
                rows = await event_log.append_events(
                    db, game.id, 1, GamePhase.negotiation.value, events
                )
                await db.commit()
                self._outbox += rows
                info = self._info(game)

            logger.info(
                "Game %s started with %d countries (%d unclaimed removed)",
                self.game_id, len(world.living_ids()), len(removed),
            )
            self._schedule_deadline(1, GamePhase.negotiation, deadline)
        self._flush()
        return info

    async def submit(
        self, country_key: str, phase: GamePhase | str, payload: dict[str, Any]
    ) -> SubmissionResult:
        """Accept, replace or reject one country's payload for the open phase.

        Raises ``SubmissionRejected`` with a reason code; a rejected
        submission changes nothing.
        """
        try:
            phase = GamePhase(phase)
        except ValueError:
            raise SubmissionRejected(RejectReason.malformed, f"Unknown phase {phase!r}") from None

        async with self._lock:
            async with self._session_factory() as db:
                game = await self._load_game(db)
                if game.status != GameStatus.active or game.is_paused:
                    raise SubmissionRejected(RejectReason.game_not_active, "Game is not active")
                if phase == GamePhase.resolution or game.current_phase != phase:
                    current = game.current_phase.value if game.current_phase else None
                    raise SubmissionRejected(
                        RejectReason.wrong_phase,
                        f"Game is in the {current} phase, not {phase.value}",
                    )

                countries = await self._countries(db)
                country = countries.get(country_key)
                if country is None or country.agent_id is None:
                    raise SubmissionRejected(RejectReason.not_in_game, "Country is not in this game")
                if country.is_eliminated:
                    raise SubmissionRejected(
                        RejectReason.country_eliminated, "Country has been eliminated"
                    )

                normalized = self._validate_payload(country_key, phase, payload, countries)
                result = await self._store_submission(db, game, country_key, phase, normalized)
                if result.status != "unchanged":
                    await db.commit()

                if await self._phase_complete(db, game, countries):
                    result.phase_closed = await self._close_phase(db, game)
        self._flush()
        return result

    async def current_phase(self) -> PhaseInfo:
        async with self._session_factory() as db:
            return self._info(await self._load_game(db))

    async def expire_phase(self, turn: int, phase: GamePhase | str) -> bool:
        """Deadline callback. Closes ``(turn, phase)`` if it is still the open phase."""
        phase = GamePhase(phase)
        closed = False
        async with self._lock:
            async with self._session_factory() as db:
                game = await self._load_game(db)
                if (
                    game.status != GameStatus.active
                    or game.is_paused
                    or game.current_turn != turn
                    or game.current_phase != phase
                ):
                    logger.info(
                        "Ignoring stale deadline for game %s turn %s %s", self.game_id, turn, phase.value
                    )
                    return False
                logger.info("Deadline reached for game %s turn %s %s", self.game_id, turn, phase.value)
                closed = await self._close_phase(db, game)
        self._flush()
        return closed

    async def end_game(self, reason: str = "admin") -> PhaseInfo:
        """Halt the game between phases. Waits for an in-flight resolution pass."""
        async with self._lock:
            self._cancel_timer()
            async with self._session_factory() as db:
                game = await self._load_game(db)
                if game.status == GameStatus.ended:
                    raise ValueError("Game has already ended")
                turn = game.current_turn
                game.status = GameStatus.ended
                game.current_phase = None
                game.phase_deadline = None
                game.ended_at = _utcnow()
                game.end_reason = game.end_reason or reason
                rows = await event_log.append_events(
                    db, game.id, turn, None, [GameEnded(reason=reason)]
                )
                await db.commit()
                self._outbox += rows
                self._finished = True
                info = self._info(game)
            logger.info("Game %s ended by %s", self.game_id, reason)
        self._flush()
        return info

    async def resume(self) -> PhaseInfo:
        """Clear a pause. A pass that was aborted is attempted again."""
        async with self._lock:
            async with self._session_factory() as db:
                game = await self._load_game(db)
                if not game.is_paused:
                    raise ValueError("Game is not paused")
                game.is_paused = False
                game.pause_reason = None
                retry_pass = game.current_phase == GamePhase.resolution
                deadline = None
                if not retry_pass and game.current_phase is not None:
                    deadline = _utcnow() + timedelta(seconds=game.phase_deadline_seconds)
                    game.phase_deadline = deadline
                rows = await event_log.append_events(
                    db, game.id, game.current_turn, self._phase_value(game), [GameResumed()]
                )
                await db.commit()
                self._outbox += rows
                turn, phase = game.current_turn, game.current_phase

            logger.info("Game %s resumed", self.game_id)
            if retry_pass:
                await self._resolve(turn)
            elif deadline is not None:
                self._schedule_deadline(turn, phase, deadline)
            async with self._session_factory() as db:
                info = self._info(await self._load_game(db))
        self._flush()
        return info

    async def recover(self) -> None:
        """Re-arm the deadline timer, e.g. after a restart, and finish an interrupted pass."""
        async with self._lock:
            async with self._session_factory() as db:
                game = await self._load_game(db)
                self._finished = game.status == GameStatus.ended
                if game.status != GameStatus.active or game.is_paused:
                    return
                turn, phase, deadline = game.current_turn, game.current_phase, game.phase_deadline
            if phase == GamePhase.resolution:
                logger.warning("Game %s was interrupted mid-resolution; resolving turn %s", self.game_id, turn)
                await self._resolve(turn)
            elif phase is not None:
                self._schedule_deadline(turn, phase, _as_utc(deadline) or _utcnow())
        self._flush()

    @property
    def finished(self) -> bool:
        return self._finished

    async def wait_for_notifications(self) -> None:
        """Block until every webhook delivery started so far has finished."""
        while self._deliveries:
            await asyncio.gather(*list(self._deliveries), return_exceptions=True)

    async def close(self) -> None:
        """Stop the deadline timer and let pending webhook deliveries finish."""
        timer, self._timer = self._timer, None
        if timer is not None and timer is not asyncio.current_task() and not timer.done():
            timer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await timer
        await self.wait_for_notifications()

    # ------------------------------------------------------------------
    # Intake helpers
    # ------------------------------------------------------------------

    async def _load_game(self, db: AsyncSession) -> Game:
        game = await db.get(Game, self.game_id, populate_existing=True)
        if game is None:
            raise LookupError(f"Game {self.game_id} does not exist")
        return game

    async def _countries(self, db: AsyncSession) -> dict[str, Country]:
        result = await db.execute(select(Country).where(Country.game_id == self.game_id))
        return {c.key: c for c in result.scalars().all()}

    def _validate_payload(
        self,
        country_key: str,
        phase: GamePhase,
        payload: dict[str, Any],
        countries: dict[str, Country],
    ) -> dict[str, Any]:
        try:
            if phase == GamePhase.negotiation:
                parsed = NegotiationPayload.model_validate(payload)
                for message in parsed.messages:
                    if message.recipient != BROADCAST and message.recipient not in countries:
                        raise ValueError(f"Unknown recipient {message.recipient!r}")
                    if message.recipient == country_key:
                        raise ValueError("Cannot send a message to yourself")
            else:
                parsed = ActionPayload.model_validate(payload)
                if parsed.target is not None:
                    if parsed.target not in countries:
                        raise ValueError(f"Unknown target {parsed.target!r}")
                    if parsed.target == country_key:
                        raise ValueError("A country cannot target itself")
        except (ValidationError, ValueError) as exc:
            raise SubmissionRejected(RejectReason.malformed, str(exc)) from None
        return parsed.model_dump(mode="json")

    async def _store_submission(
        self,
        db: AsyncSession,
        game: Game,
        country_key: str,
        phase: GamePhase,
        payload: dict[str, Any],
    ) -> SubmissionResult:
        result = await db.execute(
            select(Submission).where(
                Submission.game_id == game.id,
                Submission.country_key == country_key,
                Submission.turn == game.current_turn,
                Submission.phase == phase,
            )
        )
        existing = result.scalar_one_or_none()
        if existing is not None and existing.payload == payload:
            return SubmissionResult("unchanged", game.current_turn, phase, existing.revision)
        if existing is not None and existing.revision >= settings.max_submission_revisions:
            raise SubmissionRejected(
                RejectReason.duplicate_submission,
                f"Submission already replaced {existing.revision} times this phase",
            )

        last = await db.scalar(
            select(func.max(Submission.sequence)).where(Submission.game_id == game.id)
        )
        sequence = (last or 0) + 1
        if existing is None:
            db.add(
                Submission(
                    game_id=game.id,
                    country_key=country_key,
                    turn=game.current_turn,
                    phase=phase,
                    payload=payload,
                    sequence=sequence,
                    submitted_at=_utcnow(),
                )
            )
            return SubmissionResult("accepted", game.current_turn, phase, 0)

        existing.payload = payload
        existing.sequence = sequence
        existing.revision += 1
        existing.updated_at = _utcnow()
        return SubmissionResult("replaced", game.current_turn, phase, existing.revision)

    async def _submissions(self, db: AsyncSession, turn: int, phase: GamePhase) -> list[Submission]:
        result = await db.execute(
            select(Submission)
            .where(
                Submission.game_id == self.game_id,
                Submission.turn == turn,
                Submission.phase == phase,
            )
            .order_by(Submission.sequence)
        )
        return list(result.scalars().all())

    async def _phase_complete(
        self, db: AsyncSession, game: Game, countries: dict[str, Country]
    ) -> bool:
        living = {key for key, c in countries.items() if not c.is_eliminated}
        submitted = {
            s.country_key for s in await self._submissions(db, game.current_turn, game.current_phase)
        }
        return living <= submitted

    # ------------------------------------------------------------------
    # Phase transitions (always called with the lock held)
    # ------------------------------------------------------------------

    async def _close_phase(self, db: AsyncSession, game: Game) -> bool:
        if game.current_phase == GamePhase.negotiation:
            return await self._close_negotiation(db, game)
        if game.current_phase == GamePhase.declaration:
            return await self._close_declaration(db, game)
        return False

    async def _compare_and_set_phase(
        self,
        db: AsyncSession,
        game: Game,
        expected: GamePhase,
        new: GamePhase,
        deadline: datetime | None,
    ) -> bool:
        result = await db.execute(
            update(Game)
            .where(
                Game.id == game.id,
                Game.current_turn == game.current_turn,
                Game.current_phase == expected,
                Game.is_paused.is_(False),
            )
            .values(current_phase=new, phase_deadline=deadline)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            await db.rollback()
            logger.warning(
                "Game %s turn %s already left %s; not advancing again",
                game.id, game.current_turn, expected.value,
            )
            return False
        return True

    async def _close_negotiation(self, db: AsyncSession, game: Game) -> bool:
        turn = game.current_turn
        deadline = _utcnow() + timedelta(seconds=game.phase_deadline_seconds)
        if not await self._compare_and_set_phase(
            db, game, GamePhase.negotiation, GamePhase.declaration, deadline
        ):
            return False

        events: list[BaseEvent] = []
        for submission in await self._submissions(db, turn, GamePhase.negotiation):
            for message in NegotiationPayload.model_validate(submission.payload).messages:
                private = message.visibility == "private" and message.recipient != BROADCAST
                events.append(
                    MessageSent(
                        sender_id=submission.country_key,
                        recipient=message.recipient,
                        content=message.content,
                        visibility="private" if private else "public",
                        visible_to=[submission.country_key, message.recipient] if private else None,
                    )
                )
        events.append(PhaseChanged(turn=turn, phase=GamePhase.declaration.value, deadline=deadline))
        rows = await event_log.append_events(
            db, game.id, turn, GamePhase.negotiation.value, events
        )
        await db.commit()
        self._outbox += rows
        logger.info("Game %s turn %s: negotiation closed, declaration open", game.id, turn)
        self._schedule_deadline(turn, GamePhase.declaration, deadline)
        return True

    async def _close_declaration(self, db: AsyncSession, game: Game) -> bool:
        turn = game.current_turn
        self._cancel_timer()
        if not await self._compare_and_set_phase(
            db, game, GamePhase.declaration, GamePhase.resolution, None
        ):
            return False

        world = await world_store.load_world(db, game)
        declarations = await self._collect_declarations(db, game, world)
        revealed = DeclarationsRevealed(
            declarations=[
                {
                    "country_id": d.country_id,
                    "action": d.action.value,
                    "target": d.target,
                    "justification": d.justification,
                    "defaulted": d.defaulted,
                }
                for d in declarations
            ]
        )
        rows = await event_log.append_events(
            db,
            game.id,
            turn,
            GamePhase.declaration.value,
            [revealed, PhaseChanged(turn=turn, phase=GamePhase.resolution.value)],
        )
        # Commit now: while the pass runs, everyone reads phase == resolution
        await db.commit()
        self._outbox += rows
        await self._resolve(turn)
        return True

    async def _collect_declarations(
        self, db: AsyncSession, game: Game, world: WorldState
    ) -> list[Declaration]:
        submitted = {
            s.country_key: (s.sequence, ActionPayload.model_validate(s.payload))
            for s in await self._submissions(db, game.current_turn, GamePhase.declaration)
        }
        return build_declarations(submitted, world.living_ids(), ActionType(game.fallback_action))

    # ------------------------------------------------------------------
    # Resolution pass
    # ------------------------------------------------------------------

    async def _resolve(self, turn: int) -> None:
        async with self._session_factory() as db:
            game = await self._load_game(db)
            world = await world_store.load_world(db, game)
            declarations = await self._collect_declarations(db, game, world)
            seed, max_turns, deadline_seconds = game.seed, game.max_turns, game.phase_deadline_seconds

        try:
            events = resolve_turn(world, declarations, seed=seed, max_turns=max_turns, rules=self.rules)
        except WorldInvariantError as exc:
            logger.exception("Consistency error in game %s turn %s; pausing game", self.game_id, turn)
            await self._pause(f"consistency error: {exc}")
            return
        self.passes_run += 1

        ended = world.status == "ended"
        deadline = None
        if ended:
            closing: BaseEvent = GameEnded(reason=world.end_reason or "max_turns", winner_id=world.winner_id)
        else:
            deadline = _utcnow() + timedelta(seconds=deadline_seconds)
            closing = PhaseChanged(turn=turn + 1, phase=GamePhase.negotiation.value, deadline=deadline)
        closing.apply(world)

        async def persist() -> list[GameEvent]:
            async with self._session_factory() as db:
                game = await self._load_game(db)
                await world_store.save_world(db, game, world)
                rows = await event_log.append_events(
                    db, game.id, turn, GamePhase.resolution.value, events
                )
                if ended:
                    game.status = GameStatus.ended
                    game.current_phase = None
                    game.phase_deadline = None
                    game.ended_at = _utcnow()
                    rows += await event_log.append_events(db, game.id, turn, None, [closing])
                    await game_service.record_results(db, world)
                else:
                    game.current_turn = turn + 1
                    game.current_phase = GamePhase.negotiation
                    game.phase_deadline = deadline
                    rows += await event_log.append_events(
                        db, game.id, turn + 1, GamePhase.negotiation.value, [closing]
                    )
                await db.commit()
                return rows

        try:
            rows = await run_with_retry(persist, label=f"game {self.game_id} turn {turn}")
        except SQLAlchemyError as exc:
            logger.exception("Could not persist game %s turn %s", self.game_id, turn)
            await self._pause(f"storage failure: {exc}")
            return

        self._outbox += rows
        self._finished = ended
        logger.info(
            "Game %s turn %s resolved with %d events%s",
            self.game_id, turn, len(events), " (game over)" if ended else "",
        )
        if not ended:
            self._schedule_deadline(turn + 1, GamePhase.negotiation, deadline)

    async def _pause(self, reason: str) -> None:
        self._cancel_timer()
        try:
            async with self._session_factory() as db:
                game = await self._load_game(db)
                game.is_paused = True
                game.pause_reason = reason[:500]
                rows = await event_log.append_events(
                    db, game.id, game.current_turn, self._phase_value(game), [GamePaused(reason=reason[:500])]
                )
                await db.commit()
                self._outbox += rows
        except SQLAlchemyError:
            logger.exception("Could not record pause for game %s", self.game_id)

    # ------------------------------------------------------------------
    # Deadlines and notifications
    # ------------------------------------------------------------------

    def _schedule_deadline(self, turn: int, phase: GamePhase, deadline: datetime) -> None:
        self._cancel_timer()
        delay = max(0.0, (_as_utc(deadline) - _utcnow()).total_seconds())
        self._timer = asyncio.create_task(self._deadline_watch(turn, phase, delay))

    def _cancel_timer(self) -> None:
        timer, self._timer = self._timer, None
        # Never cancel the task we are running in: expiry closes a phase and re-arms from inside it
        if timer is not None and timer is not asyncio.current_task() and not timer.done():
            timer.cancel()

    async def _deadline_watch(self, turn: int, phase: GamePhase, delay: float) -> None:
        await asyncio.sleep(delay)
        try:
            await self.expire_phase(turn, phase)
        except Exception:
            logger.exception(
                "Deadline handling failed for game %s turn %s %s", self.game_id, turn, phase.value
            )

    def _flush(self) -> None:
        """Publish committed rows to the feed and start their webhook delivery.

        Delivery runs as a background task so a slow agent endpoint never
        holds up the caller. Once the game is over the ``on_ended`` callback
        fires, exactly once.
        """
        rows, self._outbox = self._outbox, []
        if rows:
            if self._broadcaster is not None:
                self._broadcaster.publish(self.game_id, rows)
            task = asyncio.create_task(self._deliver(rows))
            self._deliveries.add(task)
            task.add_done_callback(self._deliveries.discard)
        if self._finished and self._on_ended is not None:
            on_ended, self._on_ended = self._on_ended, None
            on_ended(self.game_id)

    async def _deliver(self, rows: list[GameEvent]) -> None:
        try:
            await notification_service.notify_agents(self._session_factory, self.game_id, rows)
        except SQLAlchemyError as exc:
            logger.warning("Skipping webhooks for game %s: %s", self.game_id, exc)

    @staticmethod
    def _phase_value(game: Game) -> str | None:
        return game.current_phase.value if game.current_phase else None

    def _info(self, game: Game) -> PhaseInfo:
        return PhaseInfo(
            game_id=game.id,
            status=game.status,
            turn=game.current_turn,
            phase=game.current_phase,
            deadline=_as_utc(game.phase_deadline),
            is_paused=game.is_paused,
        )


class SchedulerRegistry:
    """Explicit per-game scheduler contexts, keyed by game id.

    A context is opened when the game is created, closed as soon as the game
    ends, and rebuilt lazily (with ``recover``) for games that outlive a
    restart. Ended games are never cached.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        broadcaster: EventBroadcaster | None = None,
        rules: GameRules = DEFAULT_RULES,
    ):
        self.session_factory = session_factory
        self.broadcaster = broadcaster
        self.rules = rules
        self._schedulers: dict[int, TurnScheduler] = {}
        self._closing: set[asyncio.Task] = set()
        self._lock = asyncio.Lock()

    def open(self, game_id: int) -> TurnScheduler:
        scheduler = self._schedulers.get(game_id)
        if scheduler is None:
            scheduler = TurnScheduler(
                game_id, self.session_factory, self.broadcaster, self.rules, on_ended=self._release
            )
            self._schedulers[game_id] = scheduler
        return scheduler

    async def get(self, game_id: int) -> TurnScheduler:
        scheduler = self._schedulers.get(game_id)
        if scheduler is not None:
            return scheduler
        async with self._lock:
            scheduler = self._schedulers.get(game_id)
            if scheduler is None:
                scheduler = self.open(game_id)
                await scheduler.recover()
                if scheduler.finished:
                    self._schedulers.pop(game_id, None)
            return scheduler

    async def close(self, game_id: int) -> None:
        scheduler = self._schedulers.pop(game_id, None)
        if scheduler is not None:
            await scheduler.close()

    def _release(self, game_id: int) -> None:
        scheduler = self._schedulers.pop(game_id, None)
        if scheduler is None:
            return
        logger.info("Releasing scheduler for ended game %s", game_id)
        task = asyncio.create_task(scheduler.close())
        self._closing.add(task)
        task.add_done_callback(self._closing.discard)

    async def shutdown(self) -> None:
        for game_id in list(self._schedulers):
            await self.close(game_id)
        if self._closing:
            await asyncio.gather(*list(self._closing), return_exceptions=True)

    def __contains__(self, game_id: int) -> bool:
        return game_id in self._schedulers
