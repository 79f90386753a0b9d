"""
Shared fixtures for the test suite.
"""
import copy
import sys
from pathlib import Path

import pytest

# Ensure project root is importable
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from framework import RandomizationContext  # noqa: E402
from game_data import game_data_from_dict  # noqa: E402
from species_catalog import Species, SpeciesCatalog  # noqa: E402


def _mon(id, name, types, power, evolves_to=(), **extra):
    record = {"id": id, "name": name, "types": types, "power_level": power,
              "evolves_to": [{"id": t} for t in evolves_to]}
    record.update(extra)
    return record


SPECIES = [
    _mon(1, "Bulbasaur", ["GRASS", "POISON"], 318, [2]),
    _mon(2, "Ivysaur", ["GRASS", "POISON"], 405, [3]),
    _mon(3, "Venusaur", ["GRASS", "POISON"], 525),
    _mon(4, "Charmander", ["FIRE"], 309, [5]),
    _mon(5, "Charmeleon", ["FIRE"], 405, [6]),
    _mon(6, "Charizard", ["FIRE", "FLYING"], 534),
    _mon(7, "Squirtle", ["WATER"], 314, [8]),
    _mon(8, "Wartortle", ["WATER"], 405, [9]),
    _mon(9, "Blastoise", ["WATER"], 530),
    _mon(10, "Pidgey", ["NORMAL", "FLYING"], 251, [11]),
    _mon(11, "Pidgeotto", ["NORMAL", "FLYING"], 349, [12]),
    _mon(12, "Pidgeot", ["NORMAL", "FLYING"], 479),
    _mon(13, "Eevee", ["NORMAL"], 325, [14, 15, 16]),
    _mon(14, "Vaporeon", ["WATER"], 525),
    _mon(15, "Jolteon", ["ELECTRIC"], 525),
    _mon(16, "Flareon", ["FIRE"], 525),
    _mon(17, "Pikachu", ["ELECTRIC"], 320, [18]),
    _mon(18, "Raichu", ["ELECTRIC"], 485),
    _mon(19, "Geodude", ["ROCK", "GROUND"], 300, [20]),
    _mon(20, "Graveler", ["ROCK", "GROUND"], 390, [21]),
    _mon(21, "Golem", ["ROCK", "GROUND"], 495),
    _mon(22, "Gastly", ["GHOST", "POISON"], 310, [23]),
    _mon(23, "Haunter", ["GHOST", "POISON"], 405, [24]),
    _mon(24, "Gengar", ["GHOST", "POISON"], 500),
    _mon(25, "Machop", ["FIGHTING"], 305, [26]),
    _mon(26, "Machoke", ["FIGHTING"], 405, [27]),
    _mon(27, "Machamp", ["FIGHTING"], 505),
    _mon(28, "Mewtwo", ["PSYCHIC"], 680, legendary=True),
    _mon(29, "Snorlax", ["NORMAL"], 540),
    _mon(30, "Abra", ["PSYCHIC"], 310),
    _mon(31, "Pikachu-Cap", ["ELECTRIC"], 0, cosmetic_of=17),
    _mon(32, "Giratina-Origin", ["GHOST", "DRAGON"], 680, legendary=True, form_category="held_item"),
    _mon(33, "Castform-Sunny", ["FIRE"], 420, form_category="ability_dependent"),
    _mon(34, "Dratini", ["DRAGON"], 300, [35]),
    _mon(35, "Dragonair", ["DRAGON"], 420, [36]),
    _mon(36, "Dragonite", ["DRAGON", "FLYING"], 600),
]


def _tp(species, level):
    return {"species": species, "level": level}


GAME = {
    "generation": 4,
    "species": SPECIES,
    "starters": [1, 4, 7],
    "static_species": [29],
    "encounter_areas": [
        {"name": "Route 1", "encounters": [
            {"species": 10, "level": 2, "max_level": 4},
            {"species": 10, "level": 3, "max_level": 5},
            {"species": 17, "level": 3, "max_level": 3},
        ]},
        {"name": "Viridian Forest", "banned": [17], "encounters": [
            {"species": 17, "level": 4, "max_level": 6},
            {"species": 10, "level": 5, "max_level": 5},
        ]},
        {"name": "Rock Tunnel", "encounters": [
            {"species": 19, "level": 15, "max_level": 17},
            {"species": 25, "level": 16, "max_level": 16},
            {"species": 30, "level": 15, "max_level": 15},
        ]},
        {"name": "Lavender Tower", "encounters": [
            {"species": 22, "level": 20, "max_level": 22},
            {"species": 23, "level": 25, "max_level": 25},
        ]},
    ],
    "trainers": [
        {"index": 1, "name": "Youngster Joey", "pokemon": [_tp(10, 4)]},
        {"index": 2, "name": "Falkner", "tag": "GYM1-LEADER", "pokemon": [_tp(10, 9), _tp(11, 13)]},
        {"index": 3, "name": "Bird Keeper Rod", "tag": "GYM1-1", "pokemon": [_tp(10, 7), _tp(10, 7)]},
        {"index": 4, "name": "Hiker Anthony", "pokemon": [_tp(19, 16), _tp(20, 18)]},
        {"index": 5, "name": "Will", "tag": "ELITE1", "elite_four": True,
         "pokemon": [_tp(30, 40), _tp(24, 41), _tp(29, 42)]},
        {"index": 6, "name": "Koga", "tag": "ELITE2", "elite_four": True,
         "pokemon": [_tp(22, 40), _tp(24, 43)]},
        {"index": 7, "name": "Lance", "tag": "CHAMPION", "elite_four": True,
         "pokemon": [_tp(35, 44), _tp(36, 47)]},
        {"index": 8, "name": "Blue", "tag": "RIVAL1-0", "pokemon": [_tp(13, 5)]},
        {"index": 9, "name": "Blue", "tag": "RIVAL1-1", "pokemon": [_tp(13, 5)]},
        {"index": 10, "name": "Blue", "tag": "RIVAL1-2", "pokemon": [_tp(13, 5)]},
        {"index": 11, "name": "Blue", "tag": "RIVAL2-0", "pokemon": [_tp(10, 18), _tp(13, 20)]},
        {"index": 12, "name": "Blue", "tag": "RIVAL2-1", "pokemon": [_tp(10, 18), _tp(13, 20)]},
        {"index": 13, "name": "Blue", "tag": "RIVAL2-2", "pokemon": [_tp(10, 18), _tp(13, 20)]},
        {"index": 14, "name": "Blue", "tag": "RIVAL3-0", "pokemon": [_tp(12, 38), _tp(13, 40)]},
        {"index": 15, "name": "Blue", "tag": "RIVAL3-1", "pokemon": [_tp(12, 38), _tp(13, 40)]},
        {"index": 16, "name": "Blue", "tag": "RIVAL3-2", "pokemon": [_tp(12, 38), _tp(13, 40)]},
    ],
    "trades": [
        {"given": 25, "requested": 30},
        {"given": 10, "requested": 10},
        {"given": 19, "requested": 17},
    ],
}


@pytest.fixture
def game_dict():
    """A fresh copy of the sample game description."""
    return copy.deepcopy(GAME)


@pytest.fixture
def game(game_dict):
    return game_data_from_dict(game_dict)


@pytest.fixture
def catalog(game):
    return game.catalog


@pytest.fixture
def context(game):
    return RandomizationContext(game, seed=1234)


def make_catalog(specs, evolutions=()):
    """SpeciesCatalog from (id, name, primary, secondary, power) tuples and (source, target) edges."""
    catalog = SpeciesCatalog()
    for id, name, primary, secondary, power in specs:
        catalog.add(Species(id, name, primary, secondary, power_level=power))
    for source, target in evolutions:
        catalog.add_evolution(source, target)
    return catalog
