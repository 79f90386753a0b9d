"""
Run-scoped placement counters used to spread trainer picks across the pool.
"""
import logging
from collections import Counter

from enums import FairnessMode

logger = logging.getLogger(__name__)


class PlacementHistory:
    """Species -> number of times it has been placed this run."""

    def __init__(self):
        self._counts = Counter()

    def __len__(self):
        return len(self._counts)

    def count(self, species):
        return self._counts.get(species, 0)

    def average(self):
        if not self._counts:
            return 0
        return sum(self._counts.values()) / len(self._counts)

    def commit(self, species):
        """Record one finalized placement."""
        self._counts[species] += 1

    def filter_for_fairness(self, pool, mode=FairnessMode.LOOSE):
        """Drop overused species from ``pool``; returns the pool unchanged rather than empty."""
        average = self.average()
        limit = average * 2 if mode == FairnessMode.LOOSE else average
        filtered = [s for s in pool if self.count(s) < limit]
        if not filtered:
            return list(pool)
        return filtered

    def report(self, name_of=None):
        """[(name, count)] most placed first."""
        name_of = name_of or (lambda s: s.name)
        rows = [(name_of(s), n) for s, n in self._counts.items()]
        rows.sort(key=lambda row: (-row[1], row[0]))
        return rows

    def log_report(self):
        for name, n in self.report():
            logger.debug(f"{name}: {n}")
