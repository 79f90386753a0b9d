"""
Tests for importing the species catalog from NARC archives.

The archives are built on the fly in a temporary directory laid out like an
extracted ROM file tree.
"""
import struct

import ndspy.narc
import pytest

from enums import EvolutionMethod, Type
from extractors import EvolutionData, Mons, NarcContext, PokemonNames, build_catalog_from_narcs
from framework import NarcSource

NAMES = ["-----", "Bulbasaur", "Ivysaur", "Mewtwo", "Nincada", "Ninjask", "Shedinja", "Pikachu", "Raichu"]

# name -> (stats, type1, type2)
MONDATA = {
    "Bulbasaur": ((45, 49, 49, 45, 65, 65), Type.GRASS, Type.POISON),
    "Ivysaur": ((60, 62, 63, 60, 80, 80), Type.GRASS, Type.POISON),
    "Mewtwo": ((106, 110, 90, 130, 154, 90), Type.PSYCHIC, Type.PSYCHIC),
    "Nincada": ((31, 45, 90, 40, 30, 30), Type.BUG, Type.GROUND),
    "Ninjask": ((61, 90, 45, 160, 50, 50), Type.BUG, Type.FLYING),
    "Shedinja": ((1, 90, 45, 40, 30, 30), Type.BUG, Type.GHOST),
    "Pikachu": ((35, 55, 40, 90, 50, 50), Type.ELECTRIC, Type.ELECTRIC),
    "Raichu": ((60, 90, 55, 110, 90, 80), Type.ELECTRIC, Type.ELECTRIC),
}

# name -> [(method, parameter, target)]
EVOLUTIONS = {
    "Bulbasaur": [(4, 16, 2)],
    "Nincada": [(13, 20, 5), (14, 20, 6)],
    # form-encoded target, a duplicate and a species the game does not have
    "Pikachu": [(7, 83, 8 | (1 << 11)), (7, 84, 8), (7, 85, 300)],
}


def mondata_file(name):
    if name not in MONDATA:
        return bytes(44)
    stats, type1, type2 = MONDATA[name]
    return struct.pack("<6B2B2B3H6BH2BH16x", *stats, type1, type2,
                       45, 64, 0, 0, 0, 31, 20, 70, 3, 1, 7, 65, 0, 0, 0)


def evolution_file(name):
    entries = EVOLUTIONS.get(name, []) + [(0, 0, 0)] * (9 - len(EVOLUTIONS.get(name, [])))
    return b"".join(struct.pack("<3H", *entry) for entry in entries)


def write_narc(root, path, files):
    narc = ndspy.narc.NARC()
    narc.files = files
    target = root.joinpath(*path.split("/"))
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(narc.save())


@pytest.fixture
def narc_context(tmp_path):
    write_narc(tmp_path, "a/0/0/2", [mondata_file(n) for n in NAMES])
    write_narc(tmp_path, "a/0/3/4", [evolution_file(n) for n in NAMES])
    names = tmp_path / "names.txt"
    names.write_text("\n".join(NAMES) + "\n", encoding="utf-8")
    return NarcContext(NarcSource(root=str(tmp_path)), {PokemonNames.__name__: str(names)})


class TestNarcSource:
    def test_needs_exactly_one_origin(self, tmp_path):
        with pytest.raises(ValueError):
            NarcSource()
        with pytest.raises(ValueError):
            NarcSource(rom=object(), root=str(tmp_path))

    def test_directory_source(self, tmp_path):
        assert NarcSource.from_path(str(tmp_path)).root == str(tmp_path)


class TestExtractors:
    def test_names(self, narc_context):
        names = narc_context.get(PokemonNames)
        assert names.get_by_id(3) == "Mewtwo"
        assert names.get_all_by_name("Pikachu") == [7]
        assert names.name_of(len(NAMES)) == ""

    def test_mondata(self, narc_context):
        mons = narc_context.get(Mons)
        bulbasaur = mons.data[1]
        assert bulbasaur.name == "Bulbasaur"
        assert bulbasaur.bst == 318
        assert bulbasaur.attack == 49
        assert int(bulbasaur.type1) == Type.GRASS

    def test_evolution_table(self, narc_context):
        evolutions = narc_context.get(EvolutionData)
        nincada = evolutions.data[4]
        assert nincada.species_id == 4
        assert [e.target_species for e in nincada.valid_evolutions] == [5, 6]

    def test_registry_caches(self, narc_context):
        assert narc_context.get(Mons) is narc_context.get(Mons)


class TestBuildCatalog:
    def test_species(self, narc_context):
        catalog = build_catalog_from_narcs(narc_context)
        assert len(catalog) == len(NAMES) - 1
        bulbasaur = catalog.by_name("Bulbasaur")
        assert bulbasaur.types == (Type.GRASS, Type.POISON)
        assert bulbasaur.power_level == 318
        assert catalog.by_name("Pikachu").secondary_type is None

    def test_power_overrides(self, narc_context):
        assert build_catalog_from_narcs(narc_context).by_name("Shedinja").power_level == 400

    def test_legendary_flag(self, narc_context):
        catalog = build_catalog_from_narcs(narc_context)
        assert catalog.by_name("Mewtwo").is_legendary
        assert not catalog.by_name("Pikachu").is_legendary

    def test_evolutions(self, narc_context):
        catalog = build_catalog_from_narcs(narc_context)
        assert [e.target.name for e in catalog.by_name("Bulbasaur").evolves_to] == ["Ivysaur"]
        ninjask, shedinja = catalog.by_name("Nincada").evolves_to
        assert ninjask.carries_base_stats
        assert shedinja.method == EvolutionMethod.LEVEL_SHEDINJA
        assert not shedinja.carries_base_stats

    def test_form_targets_and_duplicates(self, narc_context):
        catalog = build_catalog_from_narcs(narc_context)
        edges = catalog.by_name("Pikachu").evolves_to
        assert [e.target.name for e in edges] == ["Raichu"]
        assert edges[0].method == EvolutionMethod.STONE
