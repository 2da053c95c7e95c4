from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import TypeVar

from statecraft.engine.actions import ACTION_OWNERS, ActionType, Declaration, ResolverStep
from statecraft.engine.events import BaseEvent
from statecraft.engine.rules import DEFAULT_RULES, GameRules
from statecraft.engine.world import WorldState

E = TypeVar("E", bound=BaseEvent)


@dataclass
class ResolutionContext:
    """Everything one resolution pass works with.

    ``emit`` is the only way resolvers change the world: it applies the event
    and records it, so state and log can never drift apart.
    """

    world: WorldState
    declarations: list[Declaration]
    rng: random.Random
    max_turns: int
    rules: GameRules = DEFAULT_RULES
    events: list[BaseEvent] = field(default_factory=list)
    _id_counter: int = field(default=0, init=False, repr=False)

    @property
    def turn(self) -> int:
        return self.world.turn

    def emit(self, event: E) -> E:
        event.apply(self.world)
        self.events.append(event)
        return event

    def next_id(self, prefix: str) -> str:
        self._id_counter += 1
        return f"{prefix}{self.turn}-{self._id_counter}"

    def roll(self) -> float:
        return round(self.rng.random(), 6)

    def variance(self) -> float:
        return round(self.rng.uniform(self.rules.variance_min, self.rules.variance_max), 4)

    def declarations_for(self, step: ResolverStep, *kinds: ActionType) -> list[Declaration]:
        """Declarations owned by ``step`` whose author is still alive, in resolution order."""
        return [
            d
            for d in self.declarations
            if ACTION_OWNERS[d.action] is step
            and (not kinds or d.action in kinds)
            and self.world.is_living(d.country_id)
        ]

    def declared(self, country_id: str, action: ActionType) -> bool:
        return any(d.country_id == country_id and d.action == action for d in self.declarations)

    def declared_toward(self, country_id: str, action: ActionType, target: str) -> bool:
        return any(
            d.country_id == country_id and d.action == action and d.target == target
            for d in self.declarations
        )

    def events_of(self, event_type: type[E]) -> list[E]:
        return [e for e in self.events if isinstance(e, event_type)]
