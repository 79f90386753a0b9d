"""
Similar-strength replacement search.

Starts with species within 10% of the reference power level and widens the
window by 5% per side until at least three candidates turn up or the round
cap is hit.
"""
import logging
import random

from enums import FairnessMode
from framework import POWER_BAND_ROUNDS, PoolExhausted

logger = logging.getLogger(__name__)

MIN_BAND_CANDIDATES = 3


def balanced_power_level(level_cap):
    """Power level a species at ``level_cap`` is expected to have at most."""
    return level_cap * 10 + 250


class BandResult:
    def __init__(self, candidates, band, rounds):
        self.candidates = candidates
        self.band = band
        self.rounds = rounds

    def __repr__(self):
        return f"BandResult({len(self.candidates)} in [{self.band[0]}, {self.band[1]}] after {self.rounds})"


class PowerLevelBandSelector:
    def __init__(self, rng=None):
        self.rng = rng or random.Random()

    def candidates(self, pool, reference, exclude_same_species=False, already_used=None, level_cap=100):
        """Species in the final band, along with that band."""
        used = set(already_used or ())
        eligible = [s for s in pool
                    if s not in used and not (exclude_same_species and s == reference)]
        if not eligible:
            raise PoolExhausted(f"No candidates to replace {getattr(reference, 'name', reference)}")

        power = getattr(reference, "power_level", reference)
        capped = min(power, balanced_power_level(level_cap))
        step = max(1, capped // 20)
        low, high = capped - capped // 10, capped + capped // 10

        rounds = 0
        while True:
            found = [s for s in eligible if low <= s.power_level <= high]
            rounds += 1
            if found and (len(found) >= MIN_BAND_CANDIDATES or rounds >= POWER_BAND_ROUNDS):
                return BandResult(found, (low, high), rounds)
            low -= step
            high += step

    def select(self, pool, reference, exclude_same_species=False, already_used=None, level_cap=100,
               history=None):
        """Uniform pick from the band.

        With ``history`` the pick is restricted to species placed fewer times
        than average, unless that leaves nothing.
        """
        result = self.candidates(pool, reference, exclude_same_species, already_used, level_cap)
        choices = result.candidates
        if history is not None:
            choices = history.filter_for_fairness(choices, FairnessMode.STRICT)
        chosen = self.rng.choice(choices)
        logger.debug(f"{getattr(reference, 'name', reference)} -> {chosen.name} {result}")
        return chosen
