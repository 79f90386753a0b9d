import enum

class Type(enum.IntEnum):
    NORMAL = 0
    FIGHTING = 1
    FLYING = 2
    POISON = 3
    GROUND = 4
    ROCK = 5
    BUG = 6
    GHOST = 7
    STEEL = 8
    FAIRY = 9
    FIRE = 10
    WATER = 11
    GRASS = 12
    ELECTRIC = 13
    PSYCHIC = 14
    ICE = 15
    DRAGON = 16
    DARK = 17


class Effectiveness(enum.IntEnum):
    """Attack effectiveness, strongest first."""
    DOUBLE = 0
    NEUTRAL = 1
    HALF = 2
    ZERO = 3

    @classmethod
    def from_multiplier(cls, multiplier):
        if multiplier == 0:
            return cls.ZERO
        if multiplier < 1:
            return cls.HALF
        if multiplier > 1:
            return cls.DOUBLE
        return cls.NEUTRAL


class EvolutionMethod(enum.IntEnum):
    """Evolution table method ids (``EVO_*`` in constants.s)."""
    NONE = 0
    FRIENDSHIP = 1
    FRIENDSHIP_DAY = 2
    FRIENDSHIP_NIGHT = 3
    LEVEL = 4
    TRADE = 5
    TRADE_ITEM = 6
    STONE = 7
    LEVEL_ATK_GT_DEF = 8
    LEVEL_ATK_EQ_DEF = 9
    LEVEL_ATK_LT_DEF = 10
    LEVEL_PID_LO = 11
    LEVEL_PID_HI = 12
    LEVEL_NINJASK = 13
    LEVEL_SHEDINJA = 14
    BEAUTY = 15
    STONE_MALE = 16
    STONE_FEMALE = 17
    ITEM_DAY = 18
    ITEM_NIGHT = 19
    HAS_MOVE = 20
    OTHER_PARTY_MON = 21
    LEVEL_MALE = 22
    LEVEL_FEMALE = 23

    @classmethod
    def parse(cls, value):
        """Unknown method ids (custom builds) are treated as plain level-ups."""
        try:
            return cls(value)
        except ValueError:
            return cls.LEVEL

    @property
    def carries_base_stats(self):
        # Shedinja appears beside Ninjask instead of replacing Nincada
        return self != EvolutionMethod.LEVEL_SHEDINJA


class FormCategory(enum.Enum):
    """How a species variant relates to its base form."""
    DISCRETE = "discrete"
    COSMETIC = "cosmetic"
    BATTLE_ONLY = "battle_only"
    OUT_OF_BATTLE_CHANGE = "out_of_battle_change"
    # reverts without its item (Giratina-Origin, Shaymin-Sky)
    HELD_ITEM = "held_item"
    # needs its ability to exist (Castform forms, Darmanitan-Zen)
    ABILITY_DEPENDENT = "ability_dependent"
    GENDER_DIMORPHISM = "gender_dimorphism"
    INVALID = "invalid"


class TriangleStrictness(enum.IntEnum):
    """Type triangle requirements, weakest first."""
    WEAK = 0
    STRONG = 1
    PERFECT = 2

    def weaker(self):
        return TriangleStrictness(self - 1) if self > TriangleStrictness.WEAK else None


class FairnessMode(enum.Enum):
    STRICT = "strict"  # count < average
    LOOSE = "loose"    # count < 2 * average


class SelectionMode(enum.Enum):
    RANDOM = "random"
    POWER_LEVEL = "power_level"
    TYPE_THEMED = "type_themed"
    CATCH_EM_ALL = "catch_em_all"


class BanContext(enum.Enum):
    WILD = "wild"
    TRAINER = "trainer"
    STARTER = "starter"
    TRADE = "trade"


class EncounterScope(enum.Enum):
    SLOT = "slot"  # every encounter slot on its own
    AREA = "area"  # one replacement per species within an area
    GAME = "game"  # one replacement per species across all areas
