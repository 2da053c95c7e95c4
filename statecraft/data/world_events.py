"""Static definitions for random world events.

Each resolution pass may strike one or two living countries with an event
drawn from this table. Conditions and effects are described as structured
dicts so the world-events resolver can interpret them without special cases.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field


class WorldEventCategory(str, enum.Enum):
    economic = "economic"
    political = "political"
    military = "military"
    scientific = "scientific"


@dataclass
class WorldEventEffect:
    # Flat change to a country scalar
    amount: int = 0
    # Fractional change of the current value (military losses); applied as floor(value * rate)
    rate: float = 0.0


@dataclass
class WorldEventCard:
    event_id: str
    name: str
    category: WorldEventCategory
    weight: int
    effects: dict[str, WorldEventEffect]
    # field -> (min, max) inclusive bounds the country must satisfy, None for open
    conditions: dict[str, tuple[int | None, int | None]] = field(default_factory=dict)
    flavor_text: str = ""


_WORLD_EVENTS: list[WorldEventCard] = [
    WorldEventCard(
        event_id="economic_boom",
        name="Economic Boom",
        category=WorldEventCategory.economic,
        weight=3,
        effects={"money": WorldEventEffect(amount=30)},
        conditions={"money": (100, None)},
        flavor_text="Markets surge on investor confidence.",
    ),
    WorldEventCard(
        event_id="recession",
        name="Recession",
        category=WorldEventCategory.economic,
        weight=3,
        effects={"money": WorldEventEffect(amount=-40)},
        conditions={"money": (150, None)},
        flavor_text="Credit dries up and factories idle.",
    ),
    WorldEventCard(
        event_id="military_coup",
        name="Military Coup",
        category=WorldEventCategory.political,
        weight=1,
        effects={"stability": WorldEventEffect(amount=-1), "military": WorldEventEffect(rate=-0.1)},
        conditions={"stability": (None, 3)},
        flavor_text="Generals seize the capital's radio station.",
    ),
    WorldEventCard(
        event_id="civil_unrest",
        name="Civil Unrest",
        category=WorldEventCategory.political,
        weight=2,
        effects={"stability": WorldEventEffect(amount=-1)},
        conditions={"stability": (1, None)},
        flavor_text="Crowds fill the squares demanding reform.",
    ),
    WorldEventCard(
        event_id="plague",
        name="Plague",
        category=WorldEventCategory.political,
        weight=1,
        effects={"money": WorldEventEffect(amount=-20), "stability": WorldEventEffect(amount=-1)},
        flavor_text="A fever spreads through the crowded cities.",
    ),
    WorldEventCard(
        event_id="resource_discovery",
        name="Resource Discovery",
        category=WorldEventCategory.economic,
        weight=2,
        effects={"money": WorldEventEffect(amount=40)},
        flavor_text="Surveyors strike a rich seam of ore.",
    ),
    WorldEventCard(
        event_id="famine",
        name="Famine",
        category=WorldEventCategory.military,
        weight=1,
        effects={"money": WorldEventEffect(amount=-25), "military": WorldEventEffect(rate=-0.05)},
        flavor_text="Failed harvests leave the barracks hungry.",
    ),
    WorldEventCard(
        event_id="golden_age",
        name="Golden Age",
        category=WorldEventCategory.scientific,
        weight=1,
        effects={"money": WorldEventEffect(amount=30), "tech": WorldEventEffect(amount=1)},
        conditions={"stability": (8, None)},
        flavor_text="Art and science flourish under a stable government.",
    ),
    WorldEventCard(
        event_id="diplomatic_crisis",
        name="Diplomatic Crisis",
        category=WorldEventCategory.political,
        weight=2,
        effects={"stability": WorldEventEffect(amount=-1)},
        flavor_text="A leaked cable embarrasses the foreign ministry.",
    ),
    WorldEventCard(
        event_id="tech_breakthrough",
        name="Technological Breakthrough",
        category=WorldEventCategory.scientific,
        weight=2,
        effects={"tech": WorldEventEffect(amount=1), "money": WorldEventEffect(amount=15)},
        conditions={"tech": (None, 4)},
        flavor_text="Engineers unveil a design years ahead of its rivals.",
    ),
]

_WORLD_EVENTS_BY_ID: dict[str, WorldEventCard] = {e.event_id: e for e in _WORLD_EVENTS}


def get_world_event(event_id: str) -> WorldEventCard:
    card = _WORLD_EVENTS_BY_ID.get(event_id)
    if card is None:
        raise KeyError(f"Unknown world event: '{event_id}'")
    return card


def list_world_events() -> list[WorldEventCard]:
    return list(_WORLD_EVENTS)
