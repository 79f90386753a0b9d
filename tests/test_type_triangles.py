"""
Tests for type triangle search and strictness relaxation.
"""
import random

import pytest

from enums import Effectiveness, TriangleStrictness, Type
from framework import NoTriangleExists
from species_catalog import Species
from TypeEffectiveness import types_in_generation
from type_triangles import TypeTriangle, TypeTriangleFinder


def oracle(double, half=()):
    """Effectiveness lookup where everything not listed is neutral."""
    def lookup(attacker, defender):
        if (attacker, defender) in double:
            return Effectiveness.DOUBLE
        if (attacker, defender) in half:
            return Effectiveness.HALF
        return Effectiveness.NEUTRAL
    return lookup


FIRE, WATER, GRASS = Type.FIRE, Type.WATER, Type.GRASS
CYCLE = {(WATER, FIRE), (FIRE, GRASS), (GRASS, WATER)}
REVERSE = {(FIRE, WATER), (GRASS, FIRE), (WATER, GRASS)}


class TestTriangle:
    def test_rotation_matches(self):
        t = TypeTriangle(FIRE, GRASS, WATER)
        assert t.matches(TypeTriangle(GRASS, WATER, FIRE))
        assert t == TypeTriangle(WATER, FIRE, GRASS)
        assert not t.matches(TypeTriangle(FIRE, WATER, GRASS))

    def test_matches_only_one_type(self):
        t = TypeTriangle(FIRE, GRASS, WATER)
        assert t.matches_only_one_type(Species(1, "Bulbasaur", GRASS, Type.POISON))
        assert t.matches_only_one_type(Species(2, "Charmander", FIRE))
        assert not t.matches_only_one_type(Species(3, "Lotad", WATER, GRASS))
        assert not t.matches_only_one_type(Species(4, "Pidgey", Type.NORMAL, Type.FLYING))


class TestFindAll:
    def test_single_cycle(self):
        finder = TypeTriangleFinder(oracle(CYCLE))
        triangles = finder.find_all({FIRE, WATER, GRASS})
        assert len(triangles) == 1
        assert triangles[0] == TypeTriangle(WATER, FIRE, GRASS)

    def test_real_chart_has_no_duplicate_rotations(self):
        finder = TypeTriangleFinder(generation=6)
        triangles = finder.find_all(types_in_generation(6))
        assert triangles
        for i, a in enumerate(triangles):
            for b in triangles[i + 1:]:
                assert not a.matches(b)

    def test_every_edge_is_super_effective(self):
        finder = TypeTriangleFinder(generation=4)
        for triangle in finder.find_all(types_in_generation(4)):
            assert len(set(triangle.as_list())) == 3
            for beats, beaten, _ in triangle.edges():
                assert finder.effectiveness(beats, beaten) == Effectiveness.DOUBLE

    def test_classic_triangle_is_perfect(self):
        finder = TypeTriangleFinder(generation=4)
        triangles = finder.find_all({FIRE, WATER, GRASS})
        assert triangles == [TypeTriangle(FIRE, GRASS, WATER)]
        assert finder.satisfies(triangles[0], TriangleStrictness.PERFECT)


class TestFindValid:
    def test_perfect_falls_back_to_strong(self):
        finder = TypeTriangleFinder(oracle(CYCLE, REVERSE))
        selection = finder.find_valid({FIRE, WATER, GRASS}, TriangleStrictness.PERFECT, random.Random(0))
        assert selection.achieved == TriangleStrictness.STRONG
        assert selection.requested == TriangleStrictness.PERFECT
        assert selection.downgraded

    def test_strong_falls_back_to_weak(self):
        finder = TypeTriangleFinder(oracle(CYCLE))
        selection = finder.find_valid({FIRE, WATER, GRASS}, TriangleStrictness.STRONG, random.Random(0))
        assert selection.achieved == TriangleStrictness.WEAK
        assert selection.downgraded

    def test_no_downgrade_needed(self):
        finder = TypeTriangleFinder(generation=4)
        selection = finder.find_valid({FIRE, WATER, GRASS}, TriangleStrictness.PERFECT, random.Random(0))
        assert selection.achieved == TriangleStrictness.PERFECT
        assert not selection.downgraded

    def test_no_triangle_raises(self):
        finder = TypeTriangleFinder(generation=4)
        with pytest.raises(NoTriangleExists):
            finder.find_valid({Type.NORMAL, Type.GHOST}, TriangleStrictness.WEAK, random.Random(0))

    def test_choice_is_seeded(self):
        finder = TypeTriangleFinder(generation=6)
        universe = types_in_generation(6)
        first = finder.find_valid(universe, TriangleStrictness.WEAK, random.Random(9)).triangle
        second = finder.find_valid(universe, TriangleStrictness.WEAK, random.Random(9)).triangle
        assert first.as_list() == second.as_list()
