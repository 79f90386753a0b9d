"""
Type triangles: three types in a rock-paper-scissors cycle of super
effectiveness (A hits B, B hits C, C hits A for double damage).
"""
import logging
import random
from functools import partial

import TypeEffectiveness
from enums import Effectiveness, TriangleStrictness
from framework import NoTriangleExists

logger = logging.getLogger(__name__)


class TypeTriangle:
    def __init__(self, type_a, type_b, type_c):
        self.type_a = type_a
        self.type_b = type_b
        self.type_c = type_c

    def as_list(self):
        return [self.type_a, self.type_b, self.type_c]

    def rotations(self):
        a, b, c = self.as_list()
        return [(a, b, c), (b, c, a), (c, a, b)]

    def matches(self, other):
        """True for the same cycle in any rotation."""
        return tuple(other.as_list()) in self.rotations()

    def __eq__(self, other):
        return isinstance(other, TypeTriangle) and self.matches(other)

    def __hash__(self):
        return hash(frozenset(self.as_list()))

    def contains(self, t):
        return t in (self.type_a, self.type_b, self.type_c)

    def matches_only_one_type(self, species):
        """Exactly one of the species' types belongs to the triangle."""
        primary = self.contains(species.primary_type)
        secondary = species.secondary_type is not None and self.contains(species.secondary_type)
        return primary != secondary

    def edges(self):
        """(type, the type it beats, the type that beats it) for each corner."""
        a, b, c = self.as_list()
        return [(a, b, c), (b, c, a), (c, a, b)]

    def __repr__(self):
        return "[" + ", ".join(t.name for t in self.as_list()) + "]"


class TriangleSelection:
    def __init__(self, triangle, requested, achieved):
        self.triangle = triangle
        self.requested = requested
        self.achieved = achieved

    @property
    def downgraded(self):
        return self.achieved != self.requested

    def __repr__(self):
        return f"TriangleSelection({self.triangle!r}, {self.requested.name} -> {self.achieved.name})"


class TypeTriangleFinder:
    """Searches the type-effectiveness graph for 3-cycles.

    ``effectiveness`` is any ``(attacker, defender) -> Effectiveness`` oracle;
    by default the chart for ``generation`` is used.
    """

    def __init__(self, effectiveness=None, generation=TypeEffectiveness.LATEST_GENERATION):
        self.generation = generation
        self.effectiveness = effectiveness or partial(TypeEffectiveness.effectiveness,
                                                      generation=generation)

    def super_effective_against(self, attacker, type_universe):
        return [t for t in sorted(type_universe)
                if t != attacker and self.effectiveness(attacker, t) == Effectiveness.DOUBLE]

    def find_all(self, type_universe):
        universe = set(type_universe)
        triangles = []
        for type_a in sorted(universe):
            for type_b in self.super_effective_against(type_a, universe):
                for type_c in self.super_effective_against(type_b, universe):
                    if type_c == type_a:
                        continue
                    if self.effectiveness(type_c, type_a) != Effectiveness.DOUBLE:
                        continue
                    triangle = TypeTriangle(type_a, type_b, type_c)
                    if not any(triangle.matches(t) for t in triangles):
                        triangles.append(triangle)
        return triangles

    def satisfies(self, triangle, strictness):
        if strictness == TriangleStrictness.WEAK:
            return True
        for beats, beaten, beaten_by in triangle.edges():
            if self.effectiveness(beats, beaten) != Effectiveness.DOUBLE:
                return False
            # the type this one loses to must also resist it
            if self.effectiveness(beats, beaten_by) != Effectiveness.HALF:
                return False
            if strictness == TriangleStrictness.PERFECT and \
                    self.effectiveness(beats, beats) != Effectiveness.HALF:
                return False
        return True

    def find_valid(self, type_universe, strictness, rng=None):
        """Random triangle at ``strictness``, relaxing one level at a time if none qualifies."""
        rng = rng or random
        triangles = self.find_all(type_universe)
        if not triangles:
            raise NoTriangleExists(
                f"No type triangle exists among {sorted(t.name for t in set(type_universe))}")

        level = strictness
        while level is not None:
            valid = [t for t in triangles if self.satisfies(t, level)]
            if valid:
                selection = TriangleSelection(rng.choice(valid), strictness, level)
                if selection.downgraded:
                    logger.warning(f"No {strictness.name} type triangle, using {level.name}: {selection.triangle}")
                return selection
            level = level.weaker()

        # WEAK accepts every triangle, so this is unreachable with a non-empty list
        raise NoTriangleExists("No type triangle satisfied any strictness")
