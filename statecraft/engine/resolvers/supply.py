"""Supply step: provinces must connect to the capital over owned land.

Isolated garrisons lose troops to attrition and the country's
``supply_penalty`` (share of provinces cut off) weakens its attacks next turn.
"""

from __future__ import annotations

from collections import deque

from statecraft.engine import formulas
from statecraft.engine.context import ResolutionContext
from statecraft.engine.events import SupplyStatus
from statecraft.engine.world import WorldState


def connected_provinces(world: WorldState, country_id: str) -> set[str]:
    country = world.country(country_id)
    owned = {p.id for p in world.provinces_of(country_id)}
    start = country.capital_province_id
    if start not in owned:
        return set()

    seen = {start}
    queue = deque([start])
    while queue:
        current = queue.popleft()
        for neighbour in world.neighbours(current):
            if neighbour in owned and neighbour not in seen:
                seen.add(neighbour)
                queue.append(neighbour)
    return seen


def resolve(ctx: ResolutionContext) -> None:
    world = ctx.world
    for country_id in world.living_ids():
        country = world.country(country_id)
        provinces = world.provinces_of(country_id)
        if not provinces:
            continue

        connected = connected_provinces(world, country_id)
        isolated = [p for p in provinces if p.id not in connected]
        penalty = round(len(isolated) / len(provinces), 4)
        attrition = {
            p.id: formulas.isolation_attrition(p.troops, ctx.rules)
            for p in isolated
            if p.troops > 0
        }
        if penalty == country.supply_penalty and not attrition:
            continue
        ctx.emit(
            SupplyStatus(
                country_id=country_id,
                isolated=[p.id for p in isolated],
                penalty=penalty,
                attrition=attrition,
            )
        )
