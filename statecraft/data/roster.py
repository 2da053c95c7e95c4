"""Static scenario: the playable European nations, their provinces and borders.

Province ``gdp_value`` is per-turn output before tech; ``population`` is in
thousands. Country starting money, military and so on are the opening values
for a fresh game. Adjacency is listed once per border and made symmetric on load.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ProvinceData:
    key: str
    name: str
    terrain: str
    gdp_value: int
    population: int
    troops: int
    is_capital: bool = False


@dataclass
class CountryData:
    key: str
    name: str
    military: int
    naval: int
    money: int
    tech: int
    stability: int
    provinces: list[ProvinceData]


ROSTER: list[CountryData] = [
    CountryData(
        key="france",
        name="France",
        military=40, naval=8, money=150, tech=3, stability=6,
        provinces=[
            ProvinceData("paris", "Paris", "urban", 40, 2100, 6, is_capital=True),
            ProvinceData("normandy", "Normandy", "coastal", 22, 3300, 3),
            ProvinceData("provence", "Provence", "hills", 20, 5000, 3),
        ],
    ),
    CountryData(
        key="germany",
        name="Germany",
        military=45, naval=6, money=160, tech=4, stability=6,
        provinces=[
            ProvinceData("berlin", "Berlin", "urban", 42, 3600, 6, is_capital=True),
            ProvinceData("bavaria", "Bavaria", "hills", 28, 13100, 4),
            ProvinceData("rhineland", "Rhineland", "forest", 30, 17900, 4),
        ],
    ),
    CountryData(
        key="united_kingdom",
        name="United Kingdom",
        military=30, naval=14, money=170, tech=4, stability=7,
        provinces=[
            ProvinceData("london", "London", "urban", 45, 8900, 6, is_capital=True),
            ProvinceData("scotland", "Scotland", "mountains", 18, 5400, 3),
            ProvinceData("wales", "Wales", "coastal", 14, 3100, 2),
        ],
    ),
    CountryData(
        key="italy",
        name="Italy",
        military=32, naval=9, money=120, tech=3, stability=5,
        provinces=[
            ProvinceData("rome", "Rome", "urban", 32, 2800, 5, is_capital=True),
            ProvinceData("lombardy", "Lombardy", "plains", 30, 10000, 4),
            ProvinceData("sicily", "Sicily", "coastal", 12, 4800, 2),
        ],
    ),
    CountryData(
        key="spain",
        name="Spain",
        military=30, naval=8, money=110, tech=2, stability=5,
        provinces=[
            ProvinceData("madrid", "Madrid", "plains", 30, 3300, 5, is_capital=True),
            ProvinceData("catalonia", "Catalonia", "hills", 24, 7700, 3),
            ProvinceData("andalusia", "Andalusia", "coastal", 16, 8500, 2),
        ],
    ),
    CountryData(
        key="poland",
        name="Poland",
        military=34, naval=3, money=90, tech=2, stability=6,
        provinces=[
            ProvinceData("warsaw", "Warsaw", "plains", 24, 1800, 5, is_capital=True),
            ProvinceData("krakow", "Krakow", "hills", 16, 3400, 3),
            ProvinceData("gdansk", "Gdansk", "coastal", 14, 2300, 2),
        ],
    ),
    CountryData(
        key="austria",
        name="Austria",
        military=26, naval=0, money=100, tech=3, stability=7,
        provinces=[
            ProvinceData("vienna", "Vienna", "urban", 26, 1900, 5, is_capital=True),
            ProvinceData("tyrol", "Tyrol", "mountains", 12, 750, 3),
            ProvinceData("bohemia", "Bohemia", "forest", 18, 6500, 3),
        ],
    ),
    CountryData(
        key="netherlands",
        name="Netherlands",
        military=22, naval=10, money=140, tech=4, stability=7,
        provinces=[
            ProvinceData("amsterdam", "Amsterdam", "urban", 30, 870, 4, is_capital=True),
            ProvinceData("zeeland", "Zeeland", "coastal", 12, 380, 2),
            ProvinceData("limburg", "Limburg", "plains", 14, 1100, 2),
        ],
    ),
]

BORDERS: list[tuple[str, str]] = [
    # France
    ("paris", "normandy"), ("paris", "provence"), ("paris", "rhineland"),
    ("paris", "limburg"), ("provence", "catalonia"), ("provence", "lombardy"),
    # Germany
    ("berlin", "bavaria"), ("berlin", "rhineland"), ("bavaria", "rhineland"),
    ("rhineland", "limburg"), ("berlin", "gdansk"), ("bavaria", "tyrol"),
    ("bavaria", "bohemia"),
    # United Kingdom
    ("london", "scotland"), ("london", "wales"),
    # Italy
    ("rome", "lombardy"), ("rome", "sicily"), ("lombardy", "tyrol"),
    # Spain
    ("madrid", "catalonia"), ("madrid", "andalusia"),
    # Poland
    ("warsaw", "krakow"), ("warsaw", "gdansk"), ("krakow", "bohemia"),
    # Austria
    ("vienna", "tyrol"), ("vienna", "bohemia"),
    # Netherlands
    ("amsterdam", "zeeland"), ("amsterdam", "limburg"), ("zeeland", "limburg"),
]

_ROSTER_BY_KEY: dict[str, CountryData] = {c.key: c for c in ROSTER}


def get_country_data(key: str) -> CountryData:
    country = _ROSTER_BY_KEY.get(key)
    if country is None:
        raise KeyError(f"Unknown country: '{key}'")
    return country


def list_countries() -> list[CountryData]:
    return list(ROSTER)
