#!/usr/bin/env python3
"""
TypeEffectiveness.py

Type effectiveness data keyed by attacking type.  Each table maps an attacking
Type to the defending types it hits for a given multiplier:
- SUPER_EFFECTIVE: 2x
- NOT_VERY_EFFECTIVE: 0.5x
- NO_EFFECT: 0x

The tables describe the Gen 6+ chart.  Older generations are derived from it in
_generation_overrides() (no Fairy before Gen 6, no Dark/Steel in Gen 1, Steel
resisting Ghost and Dark in Gens 2-5, and the Gen 1 oddities).
"""

from functools import lru_cache

from enums import Type, Effectiveness

LATEST_GENERATION = 9

SUPER_EFFECTIVE = {
    Type.NORMAL: (),
    Type.FIGHTING: (Type.NORMAL, Type.ROCK, Type.STEEL, Type.ICE, Type.DARK),
    Type.FLYING: (Type.FIGHTING, Type.BUG, Type.GRASS),
    Type.POISON: (Type.GRASS, Type.FAIRY),
    Type.GROUND: (Type.POISON, Type.ROCK, Type.STEEL, Type.FIRE, Type.ELECTRIC),
    Type.ROCK: (Type.FLYING, Type.BUG, Type.FIRE, Type.ICE),
    Type.BUG: (Type.GRASS, Type.PSYCHIC, Type.DARK),
    Type.GHOST: (Type.GHOST, Type.PSYCHIC),
    Type.STEEL: (Type.ROCK, Type.ICE, Type.FAIRY),
    Type.FAIRY: (Type.FIGHTING, Type.DRAGON, Type.DARK),
    Type.FIRE: (Type.BUG, Type.STEEL, Type.GRASS, Type.ICE),
    Type.WATER: (Type.GROUND, Type.ROCK, Type.FIRE),
    Type.GRASS: (Type.GROUND, Type.ROCK, Type.WATER),
    Type.ELECTRIC: (Type.FLYING, Type.WATER),
    Type.PSYCHIC: (Type.FIGHTING, Type.POISON),
    Type.ICE: (Type.FLYING, Type.GROUND, Type.GRASS, Type.DRAGON),
    Type.DRAGON: (Type.DRAGON,),
    Type.DARK: (Type.GHOST, Type.PSYCHIC),
}

NOT_VERY_EFFECTIVE = {
    Type.NORMAL: (Type.ROCK, Type.STEEL),
    Type.FIGHTING: (Type.FLYING, Type.POISON, Type.BUG, Type.PSYCHIC, Type.FAIRY),
    Type.FLYING: (Type.ROCK, Type.STEEL, Type.ELECTRIC),
    Type.POISON: (Type.POISON, Type.GROUND, Type.ROCK, Type.GHOST),
    Type.GROUND: (Type.BUG, Type.GRASS),
    Type.ROCK: (Type.FIGHTING, Type.GROUND, Type.STEEL),
    Type.BUG: (Type.FIGHTING, Type.FLYING, Type.POISON, Type.GHOST, Type.STEEL, Type.FIRE, Type.FAIRY),
    Type.GHOST: (Type.DARK,),
    Type.STEEL: (Type.STEEL, Type.FIRE, Type.WATER, Type.ELECTRIC),
    Type.FAIRY: (Type.POISON, Type.STEEL, Type.FIRE),
    Type.FIRE: (Type.ROCK, Type.FIRE, Type.WATER, Type.DRAGON),
    Type.WATER: (Type.WATER, Type.GRASS, Type.DRAGON),
    Type.GRASS: (Type.FLYING, Type.POISON, Type.BUG, Type.STEEL, Type.FIRE, Type.GRASS, Type.DRAGON),
    Type.ELECTRIC: (Type.GRASS, Type.ELECTRIC, Type.DRAGON),
    Type.PSYCHIC: (Type.STEEL, Type.PSYCHIC),
    Type.ICE: (Type.STEEL, Type.FIRE, Type.WATER, Type.ICE),
    Type.DRAGON: (Type.STEEL,),
    Type.DARK: (Type.FIGHTING, Type.DARK, Type.FAIRY),
}

NO_EFFECT = {
    Type.NORMAL: (Type.GHOST,),
    Type.FIGHTING: (Type.GHOST,),
    Type.POISON: (Type.STEEL,),
    Type.GROUND: (Type.FLYING,),
    Type.GHOST: (Type.NORMAL,),
    Type.ELECTRIC: (Type.GROUND,),
    Type.PSYCHIC: (Type.DARK,),
    Type.DRAGON: (Type.FAIRY,),
}


def types_in_generation(generation=LATEST_GENERATION):
    """Types that exist in the given generation, in enum order."""
    missing = set()
    if generation < 6:
        missing.add(Type.FAIRY)
    if generation < 2:
        missing.update((Type.DARK, Type.STEEL))
    return [t for t in Type if t not in missing]


def _generation_overrides(generation):
    """(attacker, defender) -> multiplier pairs that differ from the modern chart."""
    overrides = {}
    if generation < 6:
        overrides[(Type.GHOST, Type.STEEL)] = 0.5
        overrides[(Type.DARK, Type.STEEL)] = 0.5
    if generation < 2:
        overrides[(Type.BUG, Type.POISON)] = 2.0
        overrides[(Type.POISON, Type.BUG)] = 2.0
        overrides[(Type.GHOST, Type.PSYCHIC)] = 0.0
        overrides[(Type.ICE, Type.FIRE)] = 1.0
    return overrides


@lru_cache(maxsize=None)
def _chart(generation):
    valid = set(types_in_generation(generation))
    chart = {}
    for attack_type in valid:
        for defend_type in valid:
            if defend_type in NO_EFFECT.get(attack_type, ()):
                multiplier = 0.0
            elif defend_type in NOT_VERY_EFFECTIVE[attack_type]:
                multiplier = 0.5
            elif defend_type in SUPER_EFFECTIVE[attack_type]:
                multiplier = 2.0
            else:
                multiplier = 1.0
            chart[(attack_type, defend_type)] = multiplier
    for pair, multiplier in _generation_overrides(generation).items():
        if pair in chart:
            chart[pair] = multiplier
    return chart


def get_type_effectiveness(attack_type, defend_type, generation=LATEST_GENERATION):
    """
    Calculate effectiveness multiplier of an attack type against a defending type.

    Args:
        attack_type: Type enum of the attacking move
        defend_type: Type enum of the defending Pokémon
        generation: Game generation whose chart applies

    Returns:
        float: Effectiveness multiplier (0.0, 0.5, 1.0, or 2.0)

    Raises:
        KeyError: If either type does not exist in that generation
    """
    return _chart(generation)[(Type(attack_type), Type(defend_type))]


def effectiveness(attack_type, defend_type, generation=LATEST_GENERATION):
    """Same lookup as get_type_effectiveness, bucketed into an Effectiveness value."""
    return Effectiveness.from_multiplier(get_type_effectiveness(attack_type, defend_type, generation))


def super_effective_types(attack_type, generation=LATEST_GENERATION):
    """Defending types the attacker hits for 2x, in enum order."""
    return [t for t in types_in_generation(generation)
            if get_type_effectiveness(attack_type, t, generation) == 2.0]
