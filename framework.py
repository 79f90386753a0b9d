# -*- coding: utf-8 -*-
"""
Species randomization framework.

Decisions are made through a RandomizationContext that owns the run's seeded
generator, the placement history and the split-evolution seed.  Candidate
lists are narrowed with composable Filters and work is done by ordered Steps.
"""
import logging
import os
import random
from abc import ABC, abstractmethod
from typing import List

import ndspy.narc
import ndspy.rom

logger = logging.getLogger(__name__)

# Split evolutions are resolved as (seed + index) % branches; the seed is drawn
# below the largest branch count found in any game (Eevee).
LARGEST_NUMBER_OF_SPLIT_EVOS = 8

POWER_BAND_ROUNDS = 3
MAX_THEME_ATTEMPTS = 10000


class RandomizationError(RuntimeError):
    """Fatal to the current randomization run."""


class PoolExhausted(RandomizationError):
    pass


class NoTriangleExists(RandomizationError):
    pass


class InvalidEvolutionQuery(RandomizationError):
    pass


class RetryBudgetExceeded(RandomizationError):
    pass


class PathHierMap:
    """Values attached to path prefixes; lookups return the deepest match.

    >>> m = PathHierMap([([], 1), (["trainers", "falkner"], 4)])
    >>> m.get(["Trainers", "Falkner", "0"]), m.get(["wild"])
    (4, 1)
    """

    def __init__(self, mappings):
        self.tree = {}
        for path, value in mappings:
            node = self.tree
            for part in path:
                node = node.setdefault("/" + str(part).lower(), {})
            node[None] = value

    def get(self, path):
        node = self.tree
        found = node.get(None)
        for part in path:
            node = node.get("/" + str(part).lower())
            if node is None:
                break
            found = node.get(None, found)
        return found


class Filter(ABC):
    @abstractmethod
    def filter_all(self, context, original, candidates: List) -> List:
        pass

class SimpleFilter(Filter):
    """Filter deciding one candidate at a time."""
    @abstractmethod
    def check(self, context, original, candidate) -> bool:
        pass

    def filter_all(self, context, original, candidates: List) -> List:
        return [c for c in candidates if self.check(context, original, c)]

class NotInSet(SimpleFilter):
    """Accepts species objects or raw ids in the excluded set."""
    def __init__(self, excluded):
        self.excluded = {getattr(e, "id", e) for e in excluded}

    def check(self, context, original, candidate) -> bool:
        return candidate.id not in self.excluded

    def __repr__(self):
        return f"NotInSet({len(self.excluded)})"

class NotCosmetic(SimpleFilter):
    def check(self, context, original, candidate) -> bool:
        return not candidate.is_cosmetic_variant

    def __repr__(self):
        return "NotCosmetic()"

class NotLegendary(SimpleFilter):
    def check(self, context, original, candidate) -> bool:
        return not candidate.is_legendary

    def __repr__(self):
        return "NotLegendary()"

class TypeMatches(SimpleFilter):
    """Species with either type in ``types``."""
    def __init__(self, types):
        self.types = set(types)

    def check(self, context, original, candidate) -> bool:
        return not self.types.isdisjoint(candidate.types)

    def __repr__(self):
        return "TypeMatches(%s)" % ",".join(t.name for t in sorted(self.types))

class AllFilters(Filter):
    """Every filter must pass; stops early once nothing is left."""
    def __init__(self, filters: List[Filter]):
        self.filters = filters

    def filter_all(self, context, original, candidates: List) -> List:
        remaining = list(candidates)
        for f in self.filters:
            if not remaining:
                break
            remaining = f.filter_all(context, original, remaining)
        return remaining

    def __repr__(self):
        return "AllFilters(%s)" % ",".join(repr(f) for f in self.filters)

class NoFilter(Filter):
    def filter_all(self, context, original, candidates: List) -> List:
        return list(candidates)

    def __repr__(self):
        return "NoFilter()"


class Extractor(ABC):
    """Something built lazily by a registry, given the registry itself."""
    def __init__(self, context):
        self.context = context


class NarcSource:
    """NARC archives by path, from a ROM image or a directory of extracted files."""

    def __init__(self, rom=None, root=None):
        if (rom is None) == (root is None):
            raise ValueError("NarcSource needs exactly one of rom or root")
        self.rom = rom
        self.root = root

    @classmethod
    def from_path(cls, path):
        if os.path.isdir(path):
            return cls(root=path)
        with open(path, "rb") as f:
            return cls(rom=ndspy.rom.NintendoDSRom(f.read()))

    def read(self, narc_path):
        if self.rom is not None:
            narc_file_id = self.rom.filenames.idOf(narc_path)
            if narc_file_id is None:
                raise FileNotFoundError(f"{narc_path} not found in ROM")
            return self.rom.files[narc_file_id]
        with open(os.path.join(self.root, *narc_path.split("/")), "rb") as f:
            return f.read()


class NarcExtractor(Extractor):
    """One record per file of a NARC archive."""

    @abstractmethod
    def get_narc_path(self):
        pass

    @abstractmethod
    def parse_file(self, file_data, index):
        pass

    def load_narc(self):
        narc = ndspy.narc.NARC(self.context.source.read(self.get_narc_path()))
        return [self.parse_file(data, i) for i, data in enumerate(narc.files)]


class NameTableReader(Extractor):
    """One name per line; the line number is the id."""
    filename = None

    def __init__(self, context):
        super().__init__(context)
        path = self.context.name_files.get(type(self).__name__, self.filename)
        with open(path, "r", encoding="utf-8") as f:
            self.names = [line.strip() for line in f]

        self.name_to_ids = {}
        for i, name in enumerate(self.names):
            self.name_to_ids.setdefault(name, []).append(i)

    def get_by_id(self, i):
        return self.names[i]

    def get_all_by_name(self, n):
        return self.name_to_ids[n]


class Step(ABC):
    @abstractmethod
    def run(self, context):
        pass


class ObjectRegistry:
    """Builds each registered class once, on first request."""

    def __init__(self):
        self._objects = {}
        self._pending = []

    def get(self, obj_class):
        if obj_class not in self._objects:
            if obj_class in self._pending:
                chain = " -> ".join(c.__name__ for c in self._pending + [obj_class])
                raise RuntimeError(f"Circular dependency: {chain}")
            self._pending.append(obj_class)
            try:
                self._objects[obj_class] = obj_class(self)
            finally:
                self._pending.pop()
        return self._objects[obj_class]


class RandomizationContext(ObjectRegistry):
    """Owns the game data, the run's generator and the state shared between decisions."""

    def __init__(self, game, seed=None, verbosity=0, verbosity_overrides=None,
                 placement_history=None):
        super().__init__()
        from evolution_chains import EvolutionChainAnalyzer
        from placement_history import PlacementHistory

        self.game = game
        self.catalog = game.catalog
        self.generation = game.generation
        self.seed = seed
        self.random = random.Random(seed)
        self.verbosity_map = PathHierMap(verbosity_overrides or [([], verbosity)])
        self.placement_history = placement_history if placement_history is not None else PlacementHistory()
        self.fully_evolved_seed = self.random.randrange(LARGEST_NUMBER_OF_SPLIT_EVOS)
        self.evolution = EvolutionChainAnalyzer(self.fully_evolved_seed)
        # Outputs of the steps, keyed by section ("encounters", "trainers", ...)
        self.results = {}

    def verbosity(self, path):
        return self.verbosity_map.get(path) or 0

    def shuffled(self, items):
        """Fresh list in a run-reproducible random order."""
        items = list(items)
        self.random.shuffle(items)
        return items

    def decide(self, path, original, candidates, filter=NoFilter(), selector=None, keep_original=False):
        """Pick one of ``candidates`` that passes ``filter``.

        ``selector`` chooses from the filtered list (uniform by default).  With no
        candidates left the original is kept when ``keep_original`` is set,
        otherwise PoolExhausted is raised.

        Logged detail depends on the verbosity configured for ``path``: 1 warns
        about fallbacks, 2 logs each choice, 3 the pool sizes and 5 every
        surviving candidate.
        """
        def label(e):
            return getattr(e, "name", None) or repr(e)

        where = "/" + "/".join(str(p) for p in path)
        verbosity = self.verbosity(path)

        filtered = filter.filter_all(self, original, candidates)

        if verbosity >= 3:
            logger.info(f"{where:50} {len(candidates)} -> {len(filtered)} candidates after {filter!r}")
        if verbosity >= 5:
            for c in filtered:
                logger.info(f"{where:50}     - {label(c)}")

        if not filtered:
            if not keep_original:
                raise PoolExhausted(f"{where}: no legal replacement for {label(original)} ({filter!r})")
            if verbosity >= 1:
                logger.warning(f"{where:50} nothing passed {filter!r}, keeping {label(original)}")
            return original

        selected = selector(filtered) if selector else self.random.choice(filtered)

        if verbosity >= 2:
            logger.info(f"{where:50} {label(original):20} -> {label(selected)}")

        return selected

    def run_pipeline(self, steps, log_function=None):
        for step in steps:
            if log_function:
                log_function(f"Running {type(step).__name__}...")
            step.run(self)
