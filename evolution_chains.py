"""
Evolution graph queries.

Every walk keeps its own visited set keyed by species id, so corrupted data
with evolution cycles degrades to "stop at the first repeat".
"""

from framework import InvalidEvolutionQuery


class EvolutionChainAnalyzer:

    def __init__(self, run_seed=0):
        self.run_seed = run_seed

    def fully_evolve(self, species, deterministic_index):
        """Follow evolutions to the end of the chain.

        Split evolutions take branch ``(run_seed + deterministic_index) % branches``
        so linked decisions in one run (same trainer index) agree while
        different seeds disagree.
        """
        seen = {species.id}
        current = species
        while current.evolves_to:
            branches = current.evolves_to
            target = branches[(self.run_seed + deterministic_index) % len(branches)].target
            if target.id in seen:
                break
            seen.add(target.id)
            current = target
        return current

    def mark_chain_illegal(self, species, illegal, also_mark_descendants=False):
        """Add every ancestor (and optionally every descendant) of ``species`` to ``illegal``."""
        for ancestor in self.ancestors(species):
            illegal.add(ancestor)
        if also_mark_descendants:
            for descendant in self.descendants(species):
                illegal.add(descendant)
        return illegal

    def ancestors(self, species):
        return self._walk(species, lambda s: [e.source for e in s.evolves_from])

    def descendants(self, species):
        return self._walk(species, lambda s: [e.target for e in s.evolves_to])

    def related_species(self, species):
        """The whole evolutionary family of ``species``, itself included."""
        family = self._walk(species, lambda s: [e.source for e in s.evolves_from] +
                            [e.target for e in s.evolves_to])
        return [species] + family

    def _walk(self, start, neighbours):
        visited = {start.id}
        found = []
        stack = list(reversed(neighbours(start)))
        while stack:
            current = stack.pop()
            if current.id in visited:
                continue
            visited.add(current.id)
            found.append(current)
            stack.extend(reversed(neighbours(current)))
        return found

    def get_final_forms(self, species):
        """Every terminal form reachable from ``species`` (itself if it does not evolve)."""
        finals = []

        def walk(current, on_path):
            # An evolution back onto the current path ends the chain here
            onward = [e.target for e in current.evolves_to if e.target.id not in on_path]
            if not onward:
                if current not in finals:
                    finals.append(current)
                return
            for target in onward:
                walk(target, on_path | {target.id})

        walk(species, frozenset([species.id]))
        return finals

    def pick_random_evolution(self, species, must_evolve_itself, rng):
        """Uniformly chosen direct evolution.

        With ``must_evolve_itself`` only evolutions that evolve further are eligible.
        """
        candidates = [e.target for e in species.evolves_to
                      if not must_evolve_itself or e.target.evolves_to]
        if not candidates:
            raise InvalidEvolutionQuery(
                f"Random evolution called on {species.name}, which has no usable evolutions.")
        return rng.choice(candidates)

    def evolution_depth(self, species, max_interested=None):
        """Length of the longest evolution chain starting at ``species``."""
        return self._depth(species, lambda s: [e.target for e in s.evolves_to], max_interested)

    def pre_evolution_depth(self, species, max_interested=None):
        return self._depth(species, lambda s: [e.source for e in s.evolves_from], max_interested)

    def _depth(self, species, neighbours, max_interested):
        def go(current, on_path):
            best = 0
            for nxt in neighbours(current):
                if nxt.id in on_path:
                    continue
                best = max(best, 1 + go(nxt, on_path | {nxt.id}))
                if max_interested is not None and best >= max_interested:
                    return max_interested
            return best

        return go(species, frozenset([species.id]))

    def is_three_stage_base(self, species):
        """Unevolved species with at least two evolution stages ahead (classic starters)."""
        return not species.evolves_from and self.evolution_depth(species, 2) >= 2
