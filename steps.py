import logging
import math
import re

from framework import *
from enums import *
from TypeEffectiveness import types_in_generation
from replacement_pool import BanRules, PoolSpec, ReplacementPoolBuilder
from strategies import Selection, make_strategy
from type_triangles import TypeTriangleFinder

logger = logging.getLogger(__name__)


class SharesNoTypeWith(SimpleFilter):
    def __init__(self, picked):
        self.picked = list(picked)

    def check(self, context, original, candidate) -> bool:
        return not candidate.shares_any_types(self.picked)

    def __repr__(self):
        return f"SharesNoTypeWith({len(self.picked)})"


class OnlyOneTriangleType(SimpleFilter):
    """Candidate carries ``slot_type`` and no other type of the triangle."""
    def __init__(self, triangle, slot_type):
        self.triangle = triangle
        self.slot_type = slot_type

    def check(self, context, original, candidate) -> bool:
        return candidate.has_type(self.slot_type) and self.triangle.matches_only_one_type(candidate)

    def __repr__(self):
        return f"OnlyOneTriangleType({self.slot_type.name} of {self.triangle})"


def select_cosmetic_variant(context, species, decision_path):
    """Select a random cosmetic variant (including base form) for the given Pokemon."""
    variants = context.catalog.cosmetic_variants_of(species)
    if not variants:
        return species
    return context.decide(path=decision_path, original=species, candidates=[species] + variants)


def pick_theme_type(context, pool, path, exclude=(), min_count=1):
    """Random type with at least ``min_count`` candidates in ``pool``, drawn until one fits."""
    types = types_in_generation(context.generation)
    for _ in range(MAX_THEME_ATTEMPTS):
        theme = context.random.choice(types)
        if theme in exclude:
            continue
        if sum(1 for s in pool if s.has_type(theme)) >= min_count:
            if context.verbosity(path) >= 2:
                logger.info(f"{'/' + '/'.join(str(p) for p in path):50} theme {theme.name}")
            return theme
    raise RetryBudgetExceeded(f"/{'/'.join(str(p) for p in path)}: no usable theme type "
                              f"after {MAX_THEME_ATTEMPTS} attempts")


def _round_half_up(value):
    """Round to nearest integer, with .5 always rounding up."""
    return int(math.floor(value + 0.5))


def apply_level_modifier(level, percent):
    if percent == 0:
        return level
    return max(1, min(100, _round_half_up(level * (1 + percent / 100.0))))


class RandomizeStartersStep(Step):
    """Pick new starters, optionally forming a type triangle or using unique types."""

    def __init__(self, three_stage_only=True, restriction=None, no_legendaries=True,
                 abilities_randomized=False, ban_irregular_formes=False, monotype_only=False):
        # restriction: None, "unique_types" or a TriangleStrictness
        self.three_stage_only = three_stage_only
        self.restriction = restriction
        self.no_legendaries = no_legendaries
        self.abilities_randomized = abilities_randomized
        self.ban_irregular_formes = ban_irregular_formes
        self.monotype_only = monotype_only

    def candidates(self, context):
        catalog = context.catalog
        roster = catalog.all_species()
        if self.three_stage_only:
            roster = [s for s in roster if context.evolution.is_three_stage_base(s)]
        banned = BanRules(catalog, context.evolution, self.abilities_randomized,
                          self.ban_irregular_formes).banned_for(BanContext.STARTER)
        if self.monotype_only:
            banned.update(s for s in roster if s.secondary_type is not None)
        return ReplacementPoolBuilder().require(roster, self.no_legendaries, banned=banned)

    def run(self, context):
        game = context.game
        pool = self.candidates(context)

        triangle = None
        if isinstance(self.restriction, TriangleStrictness) and len(game.starters) == 3:
            present = set()
            for s in pool:
                present.update(s.types)
            # Backported types (Fairy in a gen 4 game) have no row in that generation's chart
            universe = present & set(types_in_generation(context.generation))
            if present - universe:
                logger.info(f"Leaving {', '.join(sorted(t.name for t in present - universe))} out of the "
                            f"type triangle, not in the generation {context.generation} chart")
            finder = TypeTriangleFinder(generation=context.generation)
            selection = finder.find_valid(universe, self.restriction, context.random)
            triangle = selection.triangle
            context.results["starter_triangle"] = {
                "types": [t.name for t in triangle.as_list()],
                "requested": selection.requested.name,
                "achieved": selection.achieved.name,
                "downgraded": selection.downgraded,
            }

        picked = []
        for i, original in enumerate(game.starters):
            filters = [NotInSet(picked)]
            if triangle is not None:
                filters.append(OnlyOneTriangleType(triangle, triangle.as_list()[i]))
            elif self.restriction == "unique_types":
                filters.append(SharesNoTypeWith(picked))
            new_starter = context.decide(
                path=["starters", f"starter_{i}"],
                original=original,
                candidates=pool,
                filter=AllFilters(filters),
            )
            picked.append(new_starter)

        game.starters = picked
        logger.info(f"Starters: {', '.join(s.name for s in picked)}")


class RandomizeEncountersStep(Step):
    """Replace wild encounters.

    ``scope`` sets how far one pick reaches: every slot on its own
    (``SLOT``), one replacement per species within an area with no two species
    of the area sharing one (``AREA``), or one replacement per species for the
    whole game (``GAME``).
    """

    def __init__(self, mode=SelectionMode.RANDOM, scope=EncounterScope.SLOT, no_legendaries=False,
                 abilities_randomized=False, ban_irregular_formes=False, no_wild_starters=False,
                 no_wild_statics=False, balance_levels=False, level_modifier=0):
        if scope == EncounterScope.GAME and mode == SelectionMode.TYPE_THEMED:
            raise ValueError("Type-themed encounters are themed per area and cannot use a game-wide map")
        self.mode = mode
        self.scope = scope
        self.no_legendaries = no_legendaries
        self.abilities_randomized = abilities_randomized
        self.ban_irregular_formes = ban_irregular_formes
        self.no_wild_starters = no_wild_starters
        self.no_wild_statics = no_wild_statics
        self.balance_levels = balance_levels
        self.level_modifier = level_modifier

    def banned(self, context):
        game = context.game
        rules = BanRules(context.catalog, context.evolution, self.abilities_randomized,
                         self.ban_irregular_formes,
                         protected_species=game.starters if self.no_wild_starters else (),
                         static_species=game.static_species if self.no_wild_statics else ())
        return rules.banned_for(BanContext.WILD)

    def level_cap(self, encounters):
        return max(e.average_level for e in encounters) if self.balance_levels else 100

    def run(self, context):
        game = context.game
        banned = self.banned(context)
        roster = ReplacementPoolBuilder().require(context.catalog.all_species(), self.no_legendaries,
                                                  banned=banned)
        strategy = make_strategy(self.mode, roster)
        context.results.setdefault("area_themes", {})

        if self.scope == EncounterScope.GAME:
            self.randomize_game(context, roster, banned, strategy)
        else:
            # Areas are visited in a shuffled order; slots keep their order
            for area in context.shuffled(game.encounter_areas):
                theme = self.area_theme(context, area, roster)
                if self.scope == EncounterScope.AREA:
                    self.randomize_area(context, area, roster, banned, strategy, theme)
                else:
                    self.randomize_slots(context, area, roster, banned, strategy, theme)

        if self.level_modifier:
            for area in game.encounter_areas:
                for encounter in area.encounters:
                    encounter.level = apply_level_modifier(encounter.level, self.level_modifier)
                    encounter.max_level = max(encounter.level,
                                              apply_level_modifier(encounter.max_level, self.level_modifier))

    def area_theme(self, context, area, roster):
        if self.mode != SelectionMode.TYPE_THEMED:
            return None
        usable = [s for s in roster if s not in area.banned]
        # A mapped area needs a different themed species for each of its own
        needed = len(area.species()) if self.scope == EncounterScope.AREA else 1
        theme = pick_theme_type(context, usable, ["encounters", area.name, "theme"], min_count=needed)
        context.results["area_themes"][area.name] = theme.name
        return theme

    def randomize_slots(self, context, area, roster, banned, strategy, theme):
        for i, encounter in enumerate(area.encounters):
            if self.mode == SelectionMode.CATCH_EM_ALL and encounter.species in banned:
                # Leave banned species where they are so they stay obtainable
                continue
            path = ["encounters", area.name, i]
            sel = Selection(roster, original=encounter.species, banned=area.banned, type_filter=theme,
                            level_cap=self.level_cap([encounter]), path=path)
            new_species = strategy.select_replacement(context, sel)
            encounter.species = select_cosmetic_variant(context, new_species, path + ["cosmetic_form"])

    def randomize_area(self, context, area, roster, banned, strategy, theme):
        by_species = group_by_species(area.encounters)
        area_map = {}
        used = set()
        for original in sorted(by_species, key=lambda s: s.id):
            if self.mode == SelectionMode.CATCH_EM_ALL and original in banned:
                continue
            sel = Selection(roster, original=original, banned=area.banned, used=used, type_filter=theme,
                            level_cap=self.level_cap(by_species[original]),
                            path=["encounters", area.name, original.name])
            area_map[original] = strategy.select_replacement(context, sel)
            used.add(area_map[original])

        for i, encounter in enumerate(area.encounters):
            if encounter.species in area_map:
                encounter.species = select_cosmetic_variant(context, area_map[encounter.species],
                                                            ["encounters", area.name, i, "cosmetic_form"])
        context.results.setdefault("area_maps", {})[area.name] = \
            {original.id: new.id for original, new in area_map.items()}

    def randomize_game(self, context, roster, banned, strategy):
        """Build one species map for every area.

        Replacements are drawn without putting them back, refilling from the
        roster once everything is drawn; a species only maps to itself when
        it is the last one left.  Banned species map to themselves.
        """
        game = context.game
        by_species = group_by_species(e for area in game.encounter_areas for e in area.encounters)
        game_map = {s: s for s in by_species if s in banned}
        remaining = []
        for original in context.shuffled(sorted(set(by_species) - set(game_map), key=lambda s: s.id)):
            if not remaining:
                remaining = list(roster)
            sel = Selection(remaining, original=original, exclude_same_species=len(remaining) > 1,
                            level_cap=self.level_cap(by_species[original]),
                            path=["encounters", "game", original.name])
            game_map[original] = strategy.select_replacement(context, sel)
            remaining.remove(game_map[original])

        for area in game.encounter_areas:
            for i, encounter in enumerate(area.encounters):
                original = encounter.species
                new_species = game_map[original]
                if new_species == original:
                    continue
                path = ["encounters", area.name, i]
                if new_species in area.banned:
                    # This area can't have the mapped species, so it picks its own
                    sel = Selection(roster, original=original, banned=area.banned,
                                    level_cap=self.level_cap([encounter]), path=path)
                    new_species = strategy.select_replacement(context, sel)
                encounter.species = select_cosmetic_variant(context, new_species, path + ["cosmetic_form"])
        context.results["encounter_map"] = {original.id: new.id for original, new in game_map.items()}


def group_by_species(encounters):
    grouped = {}
    for encounter in encounters:
        grouped.setdefault(encounter.species, []).append(encounter)
    return grouped


def theme_group(tag):
    """Trainers sharing a gym or elite four tag share a theme: 'GYM3-LEADER' -> 'GYM3'."""
    if tag and re.match(r"^(GYM|ELITE)\d+", tag):
        return tag.split("-")[0]
    return None


class RandomizeTrainersStep(Step):
    """Replace trainer Pokemon.

    Elite four trainers go first when ``elite_four_unique`` is set; their top
    ``elite_four_unique`` Pokemon (highest level first) are kept unique across
    the whole roster together with their evolutionary relatives.
    """

    def __init__(self, mode=SelectionMode.RANDOM, distribute=False, no_legendaries=False,
                 force_fully_evolved_level=None, elite_four_unique=0, rival_carries_starter=False,
                 abilities_randomized=False, ban_irregular_formes=False, level_modifier=0):
        self.mode = mode
        self.distribute = distribute
        self.no_legendaries = no_legendaries
        self.force_fully_evolved_level = force_fully_evolved_level
        self.elite_four_unique = elite_four_unique
        self.rival_carries_starter = rival_carries_starter
        self.abilities_randomized = abilities_randomized
        self.ban_irregular_formes = ban_irregular_formes
        self.level_modifier = level_modifier

    def will_force_evolve(self, level):
        return self.force_fully_evolved_level is not None and level >= self.force_fully_evolved_level

    def run(self, context):
        game = context.game
        evolution = context.evolution
        builder = ReplacementPoolBuilder()
        banned = BanRules(context.catalog, evolution, self.abilities_randomized,
                          self.ban_irregular_formes).banned_for(BanContext.TRAINER)
        roster = builder.require(context.catalog.all_species(), self.no_legendaries, banned=banned)
        strategy = make_strategy(self.mode, roster)

        for trainer in game.trainers:
            for tp in trainer.pokemon:
                tp.level = apply_level_modifier(tp.level, self.level_modifier)

        trainers = context.shuffled(game.trainers)
        unique_mode = self.elite_four_unique > 0
        illegal_chains = unique_mode and self.force_fully_evolved_level is not None
        used_as_unique = set()
        illegal_if_evolved = set()
        banned_from_unique = set()
        if unique_mode:
            trainers.sort(key=lambda t: not t.elite_four)
            if self.rival_carries_starter:
                # The rival's starter line turns up anyway, so it can never be unique
                for starter in game.starters[:3]:
                    banned_from_unique.add(starter)
                    evolution.mark_chain_illegal(starter, banned_from_unique, True)

        group_themes = {}
        champion_types = set()
        themes = context.results.setdefault("trainer_themes", {})

        for trainer in trainers:
            theme = None
            if self.mode == SelectionMode.TYPE_THEMED:
                group = theme_group(trainer.tag)
                theme = group_themes.get(group) if group else None
                if theme is None:
                    exclude = champion_types if trainer.tag == "CHAMPION" else ()
                    theme = pick_theme_type(context, roster, ["trainers", trainer.name, "theme"], exclude)
                    if trainer.tag == "CHAMPION":
                        champion_types.add(theme)
                    if group:
                        group_themes[group] = theme
                themes[trainer.index] = theme.name

            evolves_into_wrong_type = set()
            if theme is not None:
                evolves_into_wrong_type = {s for s in roster if s.has_type(theme)
                                           and not evolution.fully_evolve(s, trainer.index).has_type(theme)}

            slots = list(enumerate(trainer.pokemon))
            tracked = unique_mode and trainer.elite_four
            skip_unique_bookkeeping = False
            if tracked:
                # Highest level first, later slots winning ties
                slots.reverse()
                slots.sort(key=lambda slot: -slot[1].level)
                skip_unique_bookkeeping = self.rival_carries_starter and \
                    bool(trainer.tag) and ("RIVAL" in trainer.tag or "FRIEND" in trainer.tag)

            for rank, (slot, tp) in enumerate(slots):
                set_unique = tracked and rank < self.elite_four_unique
                will_evolve = self.will_force_evolve(tp.level)

                banned_here = set()
                if illegal_chains and will_evolve:
                    banned_here |= illegal_if_evolved
                if set_unique:
                    banned_here |= banned_from_unique
                if will_evolve:
                    banned_here |= evolves_into_wrong_type

                path = ["trainers", trainer.name, slot]
                pool = builder.build_with_fallback(
                    PoolSpec(roster, exclude_used=used_as_unique, banned=banned_here, type_filter=theme),
                    PoolSpec(roster, exclude_used=used_as_unique, banned=banned_here),
                )
                if self.distribute:
                    pool = context.placement_history.filter_for_fairness(pool, FairnessMode.LOOSE)
                sel = Selection(pool, original=tp.species, level_cap=100,
                                use_fairness=self.distribute, path=path)
                new_species = strategy.select_replacement(context, sel)

                # Locked in past here
                if self.distribute:
                    context.placement_history.commit(new_species)
                tp.species = new_species if will_evolve else \
                    select_cosmetic_variant(context, new_species, path + ["cosmetic_form"])

                if skip_unique_bookkeeping:
                    # A rival's first tracked Pokemon is the starter, already unique
                    skip_unique_bookkeeping = False
                    continue
                if set_unique:
                    actual = evolution.get_final_forms(new_species) if will_evolve else [new_species]
                    for species in actual:
                        used_as_unique.add(species)
                        if illegal_chains:
                            evolution.mark_chain_illegal(species, illegal_if_evolved, will_evolve)
                if tracked:
                    banned_from_unique.add(new_species)
                    if illegal_chains:
                        evolution.mark_chain_illegal(new_species, banned_from_unique, will_evolve)

        if self.distribute:
            context.placement_history.log_report()


class RivalCarriesStarterStep(Step):
    """Put the starters on rival teams, evolving them as the rival's levels go up.

    Rival battles are tagged ``<PREFIX><battle>-<group>`` (``RIVAL3-1``); group
    ``i`` gets starter ``(i + offset) % 3``.
    """

    PREFIX_OFFSETS = {"RIVAL": 1, "FRIEND": 2}

    def __init__(self, prefix_offsets=None):
        self.prefix_offsets = prefix_offsets or self.PREFIX_OFFSETS

    def run(self, context):
        starters = context.game.starters
        if len(starters) < 3:
            logger.warning("Rival carries starter needs three starters, skipping")
            return
        for prefix, offset in self.prefix_offsets.items():
            self._update(context, prefix, offset)

    def _tagged(self, trainers, tag):
        return [t for t in trainers if t.tag == tag]

    def _level_of_starter(self, trainers, tag):
        for trainer in self._tagged(trainers, tag):
            if trainer.pokemon:
                return trainer.pokemon[trainer.ace_slot()].level
        return 0

    def _change_starter(self, trainers, tag, starter):
        for trainer in self._tagged(trainers, tag):
            if trainer.pokemon:
                trainer.pokemon[trainer.ace_slot()].species = starter

    def _update(self, context, prefix, offset):
        trainers = context.game.trainers
        pattern = re.compile(rf"^{prefix}(\d+)-(\d+)$")
        highest = 0
        for trainer in trainers:
            match = pattern.match(trainer.tag or "")
            if match:
                highest = max(highest, int(match.group(1)))
        if highest == 0:
            return

        evolution = context.evolution
        for i in range(3):
            starter = context.game.starters[(i + offset) % 3]
            times_evolves = evolution.evolution_depth(starter, 2)

            def tag(j):
                return f"{prefix}{j}-{i}"

            battle = 1
            if times_evolves == 1:
                while battle <= highest // 2 and self._level_of_starter(trainers, tag(battle)) < 30:
                    self._change_starter(trainers, tag(battle), starter)
                    battle += 1
                starter = evolution.pick_random_evolution(starter, False, context.random)
            elif times_evolves == 2:
                while battle <= highest and self._level_of_starter(trainers, tag(battle)) < 16:
                    self._change_starter(trainers, tag(battle), starter)
                    battle += 1
                starter = evolution.pick_random_evolution(starter, True, context.random)
                while battle <= highest and self._level_of_starter(trainers, tag(battle)) < 36:
                    self._change_starter(trainers, tag(battle), starter)
                    battle += 1
                starter = evolution.pick_random_evolution(starter, False, context.random)
            while battle <= highest:
                self._change_starter(trainers, tag(battle), starter)
                battle += 1
            logger.info(f"{prefix} group {i} carries {context.game.starters[(i + offset) % 3].name}")


class ForceFullyEvolvedStep(Step):
    """Fully evolve every trainer Pokemon at or above ``min_level``."""

    def __init__(self, min_level):
        self.min_level = min_level

    def run(self, context):
        for trainer in context.game.trainers:
            for slot, tp in enumerate(trainer.pokemon):
                if tp.level < self.min_level:
                    continue
                evolved = context.evolution.fully_evolve(tp.species, trainer.index)
                if evolved != tp.species:
                    tp.species = select_cosmetic_variant(
                        context, evolved, ["trainers", trainer.name, slot, "cosmetic_form"])


class RandomizeTradesStep(Step):
    """New given (and optionally requested) species for in-game trades, never repeating one."""

    def __init__(self, randomize_requested=False, no_legendaries=False, abilities_randomized=False,
                 ban_irregular_formes=False):
        self.randomize_requested = randomize_requested
        self.no_legendaries = no_legendaries
        self.abilities_randomized = abilities_randomized
        self.ban_irregular_formes = ban_irregular_formes

    def run(self, context):
        banned = BanRules(context.catalog, context.evolution, self.abilities_randomized,
                          self.ban_irregular_formes).banned_for(BanContext.TRADE)
        pool = ReplacementPoolBuilder().require(context.catalog.all_species(), self.no_legendaries,
                                                banned=banned)
        used_given = set()
        used_requested = set()

        for i, trade in enumerate(context.game.trades):
            same_species_trade = trade.given == trade.requested
            excluded = set(used_given)
            if not same_species_trade and not self.randomize_requested and trade.requested is not None:
                excluded.add(trade.requested)
            given = context.decide(["trades", i, "given"], trade.given, pool, NotInSet(excluded))
            used_given.add(given)

            if same_species_trade:
                trade.requested = given
            elif self.randomize_requested and trade.requested is not None:
                trade.requested = context.decide(["trades", i, "requested"], trade.requested, pool,
                                                 NotInSet(used_requested | {given}))
                used_requested.add(trade.requested)
            trade.given = given
