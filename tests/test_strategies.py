"""
Tests for the per-mode replacement strategies.
"""
import pytest

from enums import SelectionMode, Type
from framework import PoolExhausted
from strategies import (Selection, RandomStrategy, PowerLevelStrategy, TypeThemedStrategy,
                        CatchEmAllStrategy, make_strategy)


def roster_of(catalog):
    return [s for s in catalog.all_species() if not s.is_cosmetic_variant]


class TestSelection:
    def test_candidates_respect_every_exclusion(self, catalog):
        roster = roster_of(catalog)
        pidgey = catalog.by_name("Pidgey")
        sel = Selection(roster + [catalog.by_name("Pikachu-Cap")], original=pidgey,
                        banned=[catalog.by_name("Pidgeotto")], used=[catalog.by_name("Pidgeot")],
                        type_filter=Type.FLYING, exclude_same_species=True)
        assert {s.name for s in sel.candidates()} == {"Charizard", "Dragonite"}

    def test_band_candidates_keep_used_and_original(self, catalog):
        pidgey, pidgeot = catalog.by_name("Pidgey"), catalog.by_name("Pidgeot")
        sel = Selection([pidgey, pidgeot], original=pidgey, used=[pidgeot], exclude_same_species=True)
        assert sel.candidates() == []
        assert sel.candidates(for_band=True) == [pidgey, pidgeot]

    def test_require_candidates_raises(self, catalog):
        sel = Selection(roster_of(catalog), type_filter=Type.ICE, path=["encounters", "Route 1", 0])
        with pytest.raises(PoolExhausted, match="Route 1"):
            sel.require_candidates()


class TestStrategies:
    def test_make_strategy(self, catalog):
        assert isinstance(make_strategy(SelectionMode.RANDOM), RandomStrategy)
        assert isinstance(make_strategy(SelectionMode.POWER_LEVEL), PowerLevelStrategy)
        assert isinstance(make_strategy(SelectionMode.TYPE_THEMED), TypeThemedStrategy)
        assert isinstance(make_strategy(SelectionMode.CATCH_EM_ALL, roster_of(catalog)), CatchEmAllStrategy)
        with pytest.raises(ValueError):
            make_strategy("sideways")

    def test_random_stays_in_pool(self, context, catalog):
        roster = roster_of(catalog)
        strategy = RandomStrategy()
        for _ in range(50):
            assert strategy.select_replacement(context, Selection(roster, banned=roster[:10])) in roster[10:]

    def test_type_themed(self, context, catalog):
        strategy = TypeThemedStrategy()
        for _ in range(30):
            picked = strategy.select_replacement(context, Selection(roster_of(catalog), type_filter=Type.GHOST))
            assert picked.has_type(Type.GHOST)

    def test_power_level_picks_similar_strength(self, context, catalog):
        strategy = PowerLevelStrategy()
        original = catalog.by_name("Charmeleon")
        for _ in range(30):
            picked = strategy.select_replacement(context, Selection(roster_of(catalog), original=original))
            assert 360 <= picked.power_level <= 450

    def test_power_level_skips_used_and_original(self, context, catalog):
        strategy = PowerLevelStrategy()
        original = catalog.by_name("Charmeleon")
        used = [catalog.by_name(n) for n in ("Ivysaur", "Wartortle", "Haunter", "Machoke")]
        for _ in range(30):
            picked = strategy.select_replacement(context, Selection(
                roster_of(catalog), original=original, used=used, exclude_same_species=True))
            assert picked.name in {"Graveler", "Dragonair", "Castform-Sunny"}

    def test_power_level_with_fairness(self, context, catalog):
        strategy = PowerLevelStrategy()
        original = catalog.by_name("Charmeleon")
        history = context.placement_history
        for name in ("Ivysaur", "Wartortle", "Haunter", "Machoke", "Charmeleon", "Dragonair", "Castform-Sunny"):
            history.commit(catalog.by_name(name))
            history.commit(catalog.by_name(name))
        history.commit(catalog.by_name("Graveler"))
        picked = strategy.select_replacement(
            context, Selection(roster_of(catalog), original=original, use_fairness=True))
        assert picked.name == "Graveler"

    def test_empty_pool_raises(self, context, catalog):
        roster = roster_of(catalog)
        for strategy in (RandomStrategy(), PowerLevelStrategy(), CatchEmAllStrategy(roster)):
            with pytest.raises(PoolExhausted):
                strategy.select_replacement(context, Selection(roster, banned=roster))


class TestCatchEmAll:
    def test_places_everything_before_repeating(self, context, catalog):
        roster = roster_of(catalog)
        strategy = CatchEmAllStrategy(roster)
        first_round = [strategy.select_replacement(context, Selection(roster)) for _ in roster]
        assert sorted(first_round) == sorted(roster)

    def test_refills_when_exhausted(self, context, catalog):
        roster = roster_of(catalog)[:4]
        strategy = CatchEmAllStrategy(roster)
        for _ in range(4):
            strategy.select_replacement(context, Selection(roster))
        assert strategy.remaining == set(roster)
        second_round = [strategy.select_replacement(context, Selection(roster)) for _ in range(4)]
        assert sorted(second_round) == sorted(roster)

    def test_falls_back_when_only_placed_species_fit(self, context, catalog):
        roster = roster_of(catalog)
        strategy = CatchEmAllStrategy(roster)
        charmander = catalog.by_name("Charmander")
        strategy.remaining.discard(charmander)
        picked = strategy.select_replacement(context, Selection([charmander]))
        assert picked == charmander
