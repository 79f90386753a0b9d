"""
Game description loaded from JSON: the species catalog plus every table the
randomizer rewrites (encounter areas, trainers, starters, static encounters
and in-game trades).
"""
import json
import logging

from enums import FormCategory, Type, EvolutionMethod
from species_catalog import Species, SpeciesCatalog

logger = logging.getLogger(__name__)


class Encounter:
    def __init__(self, species, level=1, max_level=None):
        self.species = species
        self.level = level
        self.max_level = max_level if max_level is not None else level

    @property
    def average_level(self):
        return (self.level + self.max_level) // 2


class EncounterArea:
    def __init__(self, name, encounters, banned=()):
        self.name = name
        self.encounters = encounters
        self.banned = set(banned)

    def species(self):
        return {e.species for e in self.encounters}


class TrainerPokemon:
    def __init__(self, species, level):
        self.species = species
        self.level = level


class Trainer:
    def __init__(self, index, name, pokemon, tag=None, elite_four=False):
        self.index = index
        self.name = name
        self.pokemon = pokemon
        self.tag = tag
        self.elite_four = elite_four

    @property
    def highest_level(self):
        return max((tp.level for tp in self.pokemon), default=0)

    def ace_slot(self):
        """Slot of the strongest Pokemon; the last slot counts two levels higher, ties go to the earlier slot."""
        best = 0
        count = len(self.pokemon)
        for i in range(1, count):
            bonus = 2 if i == count - 1 else 0
            if self.pokemon[i].level + bonus > self.pokemon[best].level:
                best = i
        return best

    def __repr__(self):
        return f"Trainer({self.index}, {self.name!r}, tag={self.tag!r})"


class Trade:
    def __init__(self, given, requested=None):
        self.given = given
        self.requested = requested


class GameData:
    def __init__(self, catalog, generation=4, encounter_areas=(), trainers=(), starters=(),
                 static_species=(), trades=()):
        self.catalog = catalog
        self.generation = generation
        self.encounter_areas = list(encounter_areas)
        self.trainers = list(trainers)
        self.starters = list(starters)
        self.static_species = list(static_species)
        self.trades = list(trades)


def parse_type(name):
    try:
        return Type[name.upper()]
    except KeyError:
        raise ValueError(f"Unknown type {name!r}") from None


def parse_form_category(name):
    if name is None:
        return None
    try:
        return FormCategory(name.lower())
    except ValueError:
        raise ValueError(f"Unknown form category {name!r}") from None


def build_catalog(species_records):
    """SpeciesCatalog from the ``species`` list of a game description."""
    catalog = SpeciesCatalog()
    # Base forms first so cosmetic variants can copy them
    ordered = sorted(species_records, key=lambda r: r.get("cosmetic_of") is not None)
    for record in ordered:
        types = [parse_type(t) for t in record["types"]]
        if not types:
            raise ValueError(f"Species {record['id']} has no types")
        base_form = None
        if record.get("cosmetic_of") is not None:
            base_form = catalog.get(record["cosmetic_of"])
        category = parse_form_category(record.get("form_category"))
        if base_form is not None and category is None:
            category = FormCategory.COSMETIC
        catalog.add(Species(
            record["id"],
            record["name"],
            types[0],
            types[1] if len(types) > 1 else None,
            power_level=record.get("power_level", 0),
            is_legendary=record.get("legendary", False),
            is_ultra_beast=record.get("ultra_beast", False),
            base_form=base_form,
            form_category=category,
            is_irregular_forme=record.get("irregular", False),
        ))

    for record in species_records:
        for evo in record.get("evolves_to", []):
            if evo["id"] not in catalog:
                raise ValueError(f"Species {record['id']} evolves into unknown species {evo['id']}")
            method = EvolutionMethod.parse(evo["method"]) if "method" in evo else EvolutionMethod.LEVEL
            catalog.add_evolution(record["id"], evo["id"], evo.get("carries_stats", True), method)
    return catalog


def game_data_from_dict(raw, catalog=None):
    """GameData from a parsed description; ``catalog`` replaces its ``species`` list when given."""
    if catalog is None:
        catalog = build_catalog(raw["species"])

    def species(species_id):
        try:
            return catalog.get(species_id)
        except KeyError:
            raise ValueError(f"Unknown species id {species_id}") from None

    areas = [EncounterArea(a["name"],
                           [Encounter(species(e["species"]), e.get("level", 1), e.get("max_level"))
                            for e in a["encounters"]],
                           [species(s) for s in a.get("banned", [])])
             for a in raw.get("encounter_areas", [])]
    trainers = [Trainer(t.get("index", i), t.get("name", f"Trainer {i}"),
                        [TrainerPokemon(species(p["species"]), p.get("level", 1)) for p in t["pokemon"]],
                        t.get("tag"), t.get("elite_four", False))
                for i, t in enumerate(raw.get("trainers", []))]
    trades = [Trade(species(t["given"]), species(t["requested"]) if t.get("requested") is not None else None)
              for t in raw.get("trades", [])]

    game = GameData(catalog,
                    generation=raw.get("generation", 4),
                    encounter_areas=areas,
                    trainers=trainers,
                    starters=[species(s) for s in raw.get("starters", [])],
                    static_species=[species(s) for s in raw.get("static_species", [])],
                    trades=trades)
    logger.info(f"Loaded {len(catalog)} species, {len(areas)} areas, {len(trainers)} trainers")
    return game


def load_game_data(path, catalog=None):
    with open(path, "r", encoding="utf-8") as f:
        return game_data_from_dict(json.load(f), catalog)
