"""
Read-only import of the species catalog from hg-engine NARC archives.

Mondata (``a/0/0/2``) supplies base stats and types, the evolution table
(``a/0/3/4``) supplies the evolution graph and the names come from the
rawtext species list.
"""
import logging

from construct import Struct, Int8ul, Int16ul, Array, Padding, Computed, Enum

from enums import Type, EvolutionMethod
from framework import Extractor, NarcExtractor, NameTableReader, ObjectRegistry
from species_catalog import Species, SpeciesCatalog

logger = logging.getLogger(__name__)

# monwithform encoding: species | (form << 11)
SPECIES_MASK = 0x7FF
INVALID_NAMES = {"", "-----"}

EVOLUTIONS_PER_SPECIES = 9

# Power levels that the raw stat total misrepresents
POWER_OVERRIDES = {
    "Shedinja": 400,
    "Slaking": 550,
    "Regigigas": 580,
    "Archeops": 550,
    "Wishiwashi": 550,
    "Azumarill": 470,
    "Medicham": 470,
    "Diggersby": 479,
}

BASE_STATS = ("hp", "attack", "defense", "speed", "sp_attack", "sp_defense")


class NarcContext(ObjectRegistry):
    """Registry for the NARC extractors; ``name_files`` overrides name table paths by class name."""

    def __init__(self, source, name_files=None):
        super().__init__()
        self.source = source
        self.name_files = dict(name_files or {})


class PokemonNames(NameTableReader):
    filename = "build/rawtext/237.txt"

    def name_of(self, index):
        return self.get_by_id(index) if index < len(self.names) else ""


class Mons(NarcExtractor):
    """Base stats and typing, one 44 byte record per species."""

    def __init__(self, context):
        super().__init__(context)
        names = context.get(PokemonNames)

        self.mondata_struct = Struct(
            *[stat / Int8ul for stat in BASE_STATS],
            "type1" / Enum(Int8ul, Type),
            "type2" / Enum(Int8ul, Type),
            "catch_rate" / Int8ul,
            "base_exp" / Int8ul,
            "ev_yields" / Int16ul,
            "item1" / Int16ul,
            "item2" / Int16ul,
            "gender_ratio" / Int8ul,
            "egg_cycles" / Int8ul,
            "base_friendship" / Int8ul,
            "growth_rate" / Int8ul,
            "egg_group1" / Int8ul,
            "egg_group2" / Int8ul,
            "ability1" / Int16ul,
            "runchance" / Int8ul,
            "colorflip" / Int8ul,
            "ability2" / Int16ul,
            Padding(16),  # TM/HM learnset bits
            "pokemon_id" / Computed(lambda ctx: ctx._.narc_index),
            "name" / Computed(lambda ctx: names.name_of(ctx.pokemon_id)),
            "bst" / Computed(power_level),
        )

        self.data = self.load_narc()

    def get_narc_path(self):
        return "a/0/0/2"

    def parse_file(self, file_data, index):
        return self.mondata_struct.parse(file_data, narc_index=index)


def power_level(mon):
    if mon.name in POWER_OVERRIDES:
        return POWER_OVERRIDES[mon.name]
    return sum(mon[stat] for stat in BASE_STATS)


class EvolutionData(NarcExtractor):
    """Evolution table; unused entries have method 0."""

    def __init__(self, context):
        super().__init__(context)

        self.evolution_struct = Struct(
            "evolutions" / Array(EVOLUTIONS_PER_SPECIES, Struct(
                "method" / Int16ul,
                "parameter" / Int16ul,
                "target_species" / Int16ul,
            )),
            "species_id" / Computed(lambda ctx: ctx._.narc_index),
            "valid_evolutions" / Computed(lambda ctx: [e for e in ctx.evolutions if e.method]),
        )

        self.data = self.load_narc()

    def get_narc_path(self):
        return "a/0/3/4"

    def parse_file(self, file_data, index):
        return self.evolution_struct.parse(file_data, narc_index=index)


class SpeciesGroup(Extractor):
    """Ids of the named species present in this game."""

    members = ()

    def __init__(self, context):
        super().__init__(context)
        names = context.get(PokemonNames)
        self.by_id = set()
        missing = []
        for name in self.members:
            if name in names.name_to_ids:
                self.by_id.update(names.get_all_by_name(name))
            else:
                missing.append(name)
        if missing:
            logger.debug(f"{type(self).__name__}: {len(missing)} species not in this game")


class LegendaryPokemon(SpeciesGroup):
    """Legendaries, sub-legendaries and mythicals, by generation."""

    members = (
        "Articuno", "Zapdos", "Moltres", "Mewtwo", "Mew",
        "Raikou", "Entei", "Suicune", "Lugia", "Ho-oh", "Celebi",
        "Regirock", "Regice", "Registeel", "Latias", "Latios",
        "Kyogre", "Groudon", "Rayquaza", "Jirachi", "Deoxys",
        "Uxie", "Mesprit", "Azelf", "Dialga", "Palkia", "Heatran", "Regigigas",
        "Giratina", "Cresselia", "Phione", "Manaphy", "Darkrai", "Shaymin", "Arceus",
        "Victini", "Cobalion", "Terrakion", "Virizion", "Tornadus", "Thundurus",
        "Reshiram", "Zekrom", "Landorus", "Kyurem", "Keldeo", "Meloetta", "Genesect",
        "Xerneas", "Yveltal", "Zygarde", "Diancie", "Hoopa", "Volcanion",
        "Type: Null", "Silvally", "Tapu Koko", "Tapu Lele", "Tapu Bulu", "Tapu Fini",
        "Cosmog", "Cosmoem", "Solgaleo", "Lunala", "Necrozma", "Magearna", "Marshadow",
        "Zeraora", "Meltan", "Melmetal",
        "Zacian", "Zamazenta", "Eternatus", "Kubfu", "Urshifu", "Zarude",
        "Regieleki", "Regidrago", "Glastrier", "Spectrier", "Calyrex", "Enamorus",
        "Koraidon", "Miraidon", "Wo-Chien", "Chien-Pao", "Ting-Lu", "Chi-Yu",
        "Okidogi", "Munkidori", "Fezandipiti", "Ogerpon", "Terapagos", "Pecharunt",
    )


class UltraBeastPokemon(SpeciesGroup):
    members = (
        "Nihilego", "Buzzwole", "Pheromosa", "Xurkitree", "Celesteela", "Kartana",
        "Guzzlord", "Poipole", "Naganadel", "Stakataka", "Blacephalon",
    )


def build_catalog_from_narcs(context):
    """SpeciesCatalog from the mondata and evolution NARCs of ``context``."""
    mons = context.get(Mons)
    evolutions = context.get(EvolutionData)
    legendary = context.get(LegendaryPokemon).by_id
    ultra_beasts = context.get(UltraBeastPokemon).by_id

    catalog = SpeciesCatalog()
    for mon in mons.data[1:]:
        if mon.name in INVALID_NAMES:
            continue
        catalog.add(Species(
            mon.pokemon_id,
            mon.name,
            Type(int(mon.type1)),
            Type(int(mon.type2)),
            power_level=mon.bst,
            is_legendary=mon.pokemon_id in legendary,
            is_ultra_beast=mon.pokemon_id in ultra_beasts,
        ))

    edges = 0
    for entry in evolutions.data:
        if entry.species_id not in catalog:
            continue
        source = catalog.get(entry.species_id)
        for evo in entry.valid_evolutions:
            target_id = evo.target_species & SPECIES_MASK
            if target_id not in catalog:
                logger.warning(f"{source.name} evolves into unknown species {target_id}, skipping")
                continue
            if any(e.target.id == target_id for e in source.evolves_to):
                continue
            method = EvolutionMethod.parse(evo.method)
            catalog.add_evolution(source, target_id, method.carries_base_stats, method)
            edges += 1

    logger.info(f"Imported {len(catalog)} species and {edges} evolutions from NARC data")
    return catalog
