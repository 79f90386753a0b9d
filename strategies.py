"""
Replacement strategies.

A run picks exactly one SelectionMode per orchestrator; the matching strategy
object is built once by make_strategy and then asked for every slot.
"""
import logging
from abc import ABC, abstractmethod

from enums import SelectionMode
from framework import PoolExhausted, NoFilter
from power_level import PowerLevelBandSelector

logger = logging.getLogger(__name__)


class Selection:
    """Everything one replacement decision needs to know."""

    def __init__(self, pool, original=None, banned=(), used=(), type_filter=None, level_cap=100,
                 exclude_same_species=False, use_fairness=False, path=()):
        self.pool = pool
        self.original = original
        self.banned = set(banned)
        self.used = set(used)
        self.type_filter = type_filter
        self.level_cap = level_cap
        self.exclude_same_species = exclude_same_species
        self.use_fairness = use_fairness
        self.path = path

    def candidates(self, for_band=False):
        """Legal picks.  ``for_band`` leaves the used and same-species exclusions to the band search."""
        return [s for s in self.pool
                if not s.is_cosmetic_variant
                and s not in self.banned
                and (self.type_filter is None or s.has_type(self.type_filter))
                and (for_band or s not in self.used)
                and (for_band or not (self.exclude_same_species and s == self.original))]

    def require_candidates(self, for_band=False):
        pool = self.candidates(for_band)
        if not pool:
            what = getattr(self.original, "name", "slot")
            raise PoolExhausted(f"/{'/'.join(str(p) for p in self.path)}: no legal replacement for {what}")
        return pool


class SelectionStrategy(ABC):
    mode = None

    @abstractmethod
    def select_replacement(self, context, sel: Selection):
        pass

    def _decide(self, context, sel, candidates):
        return context.decide(sel.path, sel.original, candidates, NoFilter())


class RandomStrategy(SelectionStrategy):
    mode = SelectionMode.RANDOM

    def select_replacement(self, context, sel):
        return self._decide(context, sel, sel.require_candidates())


class TypeThemedStrategy(SelectionStrategy):
    """Uniform over species carrying the selection's theme type."""
    mode = SelectionMode.TYPE_THEMED

    def select_replacement(self, context, sel):
        return self._decide(context, sel, sel.require_candidates())


class PowerLevelStrategy(SelectionStrategy):
    mode = SelectionMode.POWER_LEVEL

    def select_replacement(self, context, sel):
        pool = sel.require_candidates(for_band=True)
        selector = PowerLevelBandSelector(context.random)
        history = context.placement_history if sel.use_fairness else None
        return context.decide(sel.path, sel.original, pool, NoFilter(),
                              selector=lambda candidates: selector.select(
                                  candidates, sel.original, sel.exclude_same_species, sel.used,
                                  level_cap=sel.level_cap, history=history))


class CatchEmAllStrategy(SelectionStrategy):
    """Prefers species not yet placed this run; the remaining set refills once everything is out."""
    mode = SelectionMode.CATCH_EM_ALL

    def __init__(self, roster):
        self.roster = [s for s in roster if not s.is_cosmetic_variant]
        self.remaining = set(self.roster)

    def select_replacement(self, context, sel):
        pool = sel.require_candidates()
        fresh = [s for s in pool if s in self.remaining]
        chosen = self._decide(context, sel, fresh or pool)
        self.remaining.discard(chosen)
        if not self.remaining:
            logger.info("Every species has been placed, starting over")
            self.remaining = set(self.roster)
        return chosen


def make_strategy(mode, roster=()):
    if mode == SelectionMode.RANDOM:
        return RandomStrategy()
    if mode == SelectionMode.POWER_LEVEL:
        return PowerLevelStrategy()
    if mode == SelectionMode.TYPE_THEMED:
        return TypeThemedStrategy()
    if mode == SelectionMode.CATCH_EM_ALL:
        return CatchEmAllStrategy(roster)
    raise ValueError(f"Unknown selection mode: {mode}")
