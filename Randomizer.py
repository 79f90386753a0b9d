import argparse
import json
import logging
import os
import sys
from datetime import datetime

from framework import RandomizationContext, RandomizationError, NarcSource
from enums import EncounterScope, SelectionMode, TriangleStrictness
from extractors import NarcContext, PokemonNames, build_catalog_from_narcs
from game_data import load_game_data
from steps import (RandomizeStartersStep, RandomizeEncountersStep, RandomizeTrainersStep,
                   RivalCarriesStarterStep, ForceFullyEvolvedStep, RandomizeTradesStep)

logger = logging.getLogger(__name__)

SELECTION_MODES = {
    "random": SelectionMode.RANDOM,
    "power-level": SelectionMode.POWER_LEVEL,
    "type-themed": SelectionMode.TYPE_THEMED,
    "catch-em-all": SelectionMode.CATCH_EM_ALL,
}

STARTER_RESTRICTIONS = {
    "none": None,
    "unique": "unique_types",
    "weak": TriangleStrictness.WEAK,
    "strong": TriangleStrictness.STRONG,
    "perfect": TriangleStrictness.PERFECT,
}


def setup_logging(debug=False, log_file=None):
    """Set up logging configuration"""
    log_level = logging.DEBUG if debug else logging.INFO
    log_format = '%(asctime)s - %(levelname)s - %(message)s'

    root = logging.getLogger()
    root.setLevel(log_level)

    # Clear any existing handlers
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(log_format))
    root.addHandler(console_handler)

    if log_file:
        if log_file == "auto":
            log_dir = os.path.join(os.getcwd(), 'logs')
            os.makedirs(log_dir, exist_ok=True)
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            log_file = os.path.join(log_dir, f"randomizer_{timestamp}.log")
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(log_level)
        file_handler.setFormatter(logging.Formatter(log_format))
        root.addHandler(file_handler)
        logger.info(f"Logging to {log_file}")


def parse_verbosity_overrides(verbosity_args):
    """Parse -v arguments into list of (path_list, level) tuples."""
    overrides = []
    for arg in verbosity_args:
        if '=' in arg:
            path_str, level = arg.split('=', 1)
            path_list = [p.lower() for p in path_str.split('/') if p]
            overrides.append((path_list, int(level)))
        else:
            # Global verbosity - empty path prefix
            overrides.append(([], int(arg)))
    return overrides


def build_parser():
    parser = argparse.ArgumentParser(description="Randomize species across encounters, trainers, starters and trades")
    parser.add_argument("game", help="Game description JSON")
    parser.add_argument("--output", "-o", default="randomized.json", help="Where to write the results (default: randomized.json)")
    parser.add_argument("--rom", help="ROM image or extracted file tree to read species and evolutions from")
    parser.add_argument("--names", help="Species name table for --rom (default: build/rawtext/237.txt)")
    parser.add_argument("--seed", "-s", type=int, help="Random seed")
    parser.add_argument("--quiet", "-q", action="store_true", help="Don't output details")
    parser.add_argument("--verbosity", "-v", action="append", type=str,
                        help="Verbosity: level (global) or path=level (path-specific)")
    parser.add_argument("--debug", action="store_true", help="Debug logging")
    parser.add_argument("--log-file", nargs="?", const="auto", help="Also log to a file (timestamped under logs/ if no name given)")

    parser.add_argument("--starters", choices=["none", "random", "two-evolutions"], default="none",
                        help="Starter randomization (default: none)")
    parser.add_argument("--starter-types", choices=sorted(STARTER_RESTRICTIONS), default="none",
                        help="Type restriction for starters: unique types or a type triangle strictness")
    parser.add_argument("--monotype-starters", action="store_true", help="Only single-typed starters")

    parser.add_argument("--wild", choices=["none"] + sorted(SELECTION_MODES), default="none",
                        help="Wild encounter randomization (default: none)")
    parser.add_argument("--wild-mapping", choices=[s.value for s in EncounterScope], default="slot",
                        help="slot: each slot on its own; area: one replacement per species in an area; "
                             "game: one replacement per species everywhere (default: slot)")
    parser.add_argument("--wild-no-legendaries",action="store_true", help="No legendary wild Pokémon")
    parser.add_argument("--no-wild-starters", action="store_true", help="Keep starter evolution lines out of the wild")
    parser.add_argument("--no-wild-statics", action="store_true", help="Keep static encounter species out of the wild")
    parser.add_argument("--balance-wild-levels", action="store_true",
                        help="Cap power level matching by the encounter's level")
    parser.add_argument("--wild-level-modifier", type=int, default=0, help="Percent change to wild levels")

    parser.add_argument("--trainers", choices=["none", "random", "power-level", "type-themed"], default="none",
                        help="Trainer Pokémon randomization (default: none)")
    parser.add_argument("--distribute", action="store_true", help="Spread trainer picks evenly across species")
    parser.add_argument("--trainer-no-legendaries", action="store_true", help="No legendary trainer Pokémon")
    parser.add_argument("--force-fully-evolved", type=int, metavar="LEVEL",
                        help="Fully evolve trainer Pokémon at or above LEVEL")
    parser.add_argument("--elite-four-unique", type=int, default=0, metavar="N",
                        help="Each elite four member's top N Pokémon appear nowhere else")
    parser.add_argument("--rival-carries-starter", action="store_true", help="Rivals use the starters throughout")
    parser.add_argument("--trainer-level-modifier", type=int, default=0, help="Percent change to trainer levels")

    parser.add_argument("--trades", choices=["none", "given", "both"], default="none",
                        help="In-game trade randomization (default: none)")

    parser.add_argument("--randomized-abilities", action="store_true",
                        help="Abilities are randomized elsewhere, so ability-dependent formes are allowed")
    parser.add_argument("--ban-irregular-formes", action="store_true", help="Never pick irregular alternate formes")
    return parser


def build_pipeline(args):
    shared = dict(abilities_randomized=args.randomized_abilities, ban_irregular_formes=args.ban_irregular_formes)
    steps = []
    if args.starters != "none":
        steps.append(RandomizeStartersStep(three_stage_only=args.starters == "two-evolutions",
                                           restriction=STARTER_RESTRICTIONS[args.starter_types],
                                           monotype_only=args.monotype_starters, **shared))
    if args.wild != "none":
        steps.append(RandomizeEncountersStep(SELECTION_MODES[args.wild], EncounterScope(args.wild_mapping),
                                             no_legendaries=args.wild_no_legendaries,
                                             no_wild_starters=args.no_wild_starters,
                                             no_wild_statics=args.no_wild_statics,
                                             balance_levels=args.balance_wild_levels,
                                             level_modifier=args.wild_level_modifier, **shared))
    if args.trainers != "none":
        steps.append(RandomizeTrainersStep(SELECTION_MODES[args.trainers],
                                           distribute=args.distribute,
                                           no_legendaries=args.trainer_no_legendaries,
                                           force_fully_evolved_level=args.force_fully_evolved,
                                           elite_four_unique=args.elite_four_unique,
                                           rival_carries_starter=args.rival_carries_starter,
                                           level_modifier=args.trainer_level_modifier, **shared))
    if args.rival_carries_starter:
        steps.append(RivalCarriesStarterStep())
    if args.force_fully_evolved is not None:
        steps.append(ForceFullyEvolvedStep(args.force_fully_evolved))
    if args.trades != "none":
        steps.append(RandomizeTradesStep(randomize_requested=args.trades == "both", **shared))
    return steps


def snapshot(game):
    """Species ids before randomization, in the layout of the output."""
    return {
        "starters": [s.id for s in game.starters],
        "encounters": {a.name: [e.species.id for e in a.encounters] for a in game.encounter_areas},
        "trainers": {t.index: [tp.species.id for tp in t.pokemon] for t in game.trainers},
        "trades": [(t.given.id, t.requested.id if t.requested else None) for t in game.trades],
    }


def build_output(context, before):
    game = context.game
    return {
        "seed": context.seed,
        "starters": [{"original": o, "replacement": s.id} for o, s in zip(before["starters"], game.starters)],
        "encounters": {
            area.name: [{"original": o, "replacement": e.species.id, "level": e.level, "max_level": e.max_level}
                        for o, e in zip(before["encounters"][area.name], area.encounters)]
            for area in game.encounter_areas
        },
        "trainers": [
            {"index": t.index, "name": t.name,
             "pokemon": [{"original": o, "replacement": tp.species.id, "level": tp.level}
                         for o, tp in zip(before["trainers"][t.index], t.pokemon)]}
            for t in game.trainers
        ],
        "trades": [
            {"given": {"original": g, "replacement": t.given.id},
             "requested": {"original": r, "replacement": t.requested.id if t.requested else None}}
            for (g, r), t in zip(before["trades"], game.trades)
        ],
        **context.results,
        "placement_report": [{"name": n, "count": c} for n, c in context.placement_history.report()],
    }


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.wild == "type-themed" and args.wild_mapping == "game":
        parser.error("--wild type-themed needs --wild-mapping slot or area")
    setup_logging(args.debug, args.log_file)

    # Parse verbosity overrides
    vbase = 0 if args.quiet else 1
    verbosity_overrides = [([], vbase)] + parse_verbosity_overrides(args.verbosity or [])

    catalog = None
    if args.rom:
        narcs = NarcContext(NarcSource.from_path(args.rom),
                            {PokemonNames.__name__: args.names} if args.names else None)
        catalog = build_catalog_from_narcs(narcs)

    game = load_game_data(args.game, catalog)
    ctx = RandomizationContext(game, seed=args.seed, verbosity_overrides=verbosity_overrides)
    before = snapshot(game)

    try:
        ctx.run_pipeline(build_pipeline(args), log_function=logger.info)
    except RandomizationError as e:
        logger.error(f"Randomization failed: {e}")
        return 1

    with open(args.output, "w", encoding="utf-8") as f:
        json.dump(build_output(ctx, before), f, indent=2)
    print(f"Wrote {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
