"""
Candidate pools and the ban rules that shape them.

Pools are always fresh lists; callers may consume from them freely without
touching the roster they were built from.
"""
import logging

from enums import BanContext, FormCategory
from framework import AllFilters, NotCosmetic, NotInSet, NotLegendary, PoolExhausted, TypeMatches

logger = logging.getLogger(__name__)

# Formes that revert outside battle or when holding the wrong item
PLAYER_UNSTABLE_FORMES = {FormCategory.BATTLE_ONLY, FormCategory.HELD_ITEM, FormCategory.OUT_OF_BATTLE_CHANGE}
# Trainer Pokemon never leave battle, so only formes that need their item stay banned
TRAINER_UNSTABLE_FORMES = {FormCategory.BATTLE_ONLY, FormCategory.HELD_ITEM}


class PoolSpec:
    """Arguments for one ReplacementPoolBuilder.build call."""

    def __init__(self, base_roster, exclude_legendary=False, exclude_used=(), banned=(), type_filter=None):
        self.base_roster = base_roster
        self.exclude_legendary = exclude_legendary
        self.exclude_used = exclude_used
        self.banned = banned
        self.type_filter = type_filter


class ReplacementPoolBuilder:

    def filters(self, exclude_legendary, exclude_used, banned, type_filter):
        filters = [NotCosmetic(), NotInSet(banned), NotInSet(exclude_used)]
        if exclude_legendary:
            filters.append(NotLegendary())
        if type_filter is not None:
            filters.append(TypeMatches([type_filter]))
        return AllFilters(filters)

    def build(self, base_roster, exclude_legendary=False, exclude_used=(), banned=(), type_filter=None):
        roster = [s for s in base_roster if s is not None]
        return self.filters(exclude_legendary, exclude_used, banned, type_filter).filter_all(None, None, roster)

    def require(self, base_roster, exclude_legendary=False, exclude_used=(), banned=(), type_filter=None):
        pool = self.build(base_roster, exclude_legendary, exclude_used, banned, type_filter)
        if not pool:
            detail = f" of type {type_filter.name}" if type_filter is not None else ""
            raise PoolExhausted(f"No legal species{detail} left to choose from")
        return pool

    def build_with_fallback(self, *specs):
        """First non-empty pool among progressively wider ``PoolSpec``s."""
        for i, spec in enumerate(specs):
            pool = self.build(spec.base_roster, spec.exclude_legendary, spec.exclude_used,
                              spec.banned, spec.type_filter)
            if pool:
                if i > 0:
                    logger.info(f"Pool empty, fell back to wider pool #{i} ({len(pool)} species)")
                return pool
        raise PoolExhausted(f"All {len(specs)} candidate pools were empty")


class BanRules:
    """Species banned per selection context."""

    def __init__(self, catalog, evolution, abilities_randomized=False, ban_irregular_formes=False,
                 protected_species=(), static_species=(), extra_banned=()):
        self.catalog = catalog
        self.evolution = evolution
        self.abilities_randomized = abilities_randomized
        self.ban_irregular_formes = ban_irregular_formes
        self.protected_species = list(protected_species)
        self.static_species = list(static_species)
        self.extra_banned = list(extra_banned)

    def unstable_formes(self, context):
        categories = TRAINER_UNSTABLE_FORMES if context == BanContext.TRAINER else PLAYER_UNSTABLE_FORMES
        return {s for s in self.catalog if s.form_category in categories}

    def ability_dependent_formes(self):
        return {s for s in self.catalog if s.form_category == FormCategory.ABILITY_DEPENDENT}

    def irregular_formes(self):
        return {s for s in self.catalog if s.is_irregular_forme}

    def relatives_of_protected(self):
        banned = set()
        for species in self.protected_species:
            banned.update(self.evolution.related_species(species))
        return banned

    def banned_for(self, context):
        banned = self.unstable_formes(context)
        if not self.abilities_randomized:
            banned |= self.ability_dependent_formes()
        if self.ban_irregular_formes:
            banned |= self.irregular_formes()
        if context == BanContext.WILD:
            banned |= self.relatives_of_protected()
            banned.update(self.static_species)
        banned.update(self.catalog.get(getattr(s, "id", s)) for s in self.extra_banned)
        logger.debug(f"{len(banned)} species banned for {context.value} selection")
        return banned
