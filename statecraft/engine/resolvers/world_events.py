from __future__ import annotations

import math

from statecraft.data.world_events import WorldEventCard, list_world_events
from statecraft.engine.context import ResolutionContext
from statecraft.engine.events import WorldEventOccurred
from statecraft.engine.world import CountryState


def _applies(card: WorldEventCard, country: CountryState) -> bool:
    for name, (low, high) in card.conditions.items():
        value = getattr(country, name)
        if low is not None and value < low:
            return False
        if high is not None and value > high:
            return False
    return True


def _effects(card: WorldEventCard, country: CountryState) -> dict[str, int]:
    effects: dict[str, int] = {}
    for name, effect in card.effects.items():
        delta = effect.amount
        if effect.rate:
            delta += math.floor(getattr(country, name) * effect.rate)
        if delta:
            effects[name] = delta
    return effects


def resolve(ctx: ResolutionContext) -> None:
    world = ctx.world
    count = 0
    if ctx.roll() < ctx.rules.world_event_chance:
        count += 1
        if ctx.roll() < ctx.rules.second_world_event_chance:
            count += 1

    cards = list_world_events()
    for _ in range(count):
        living = world.living_ids()
        if not living:
            return
        country = world.country(ctx.rng.choice(living))
        eligible = [c for c in cards if _applies(c, country)]
        if not eligible:
            continue
        card = ctx.rng.choices(eligible, weights=[c.weight for c in eligible])[0]
        effects = _effects(card, country)
        if not effects:
            continue
        ctx.emit(WorldEventOccurred(name=card.event_id, country_id=country.id, effects=effects))
