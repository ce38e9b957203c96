"""Game enumerations and constants."""
from enum import Enum, IntEnum


class Terrain(IntEnum):
    """Per-cell terrain types."""
    PLAIN = 0
    ROCK = 1    # Impassable, blocks line of sight
    WATER = 2   # Costs 2 movement to enter
    BUSH = 3    # Hides occupant from non-piercing ranged skills
    HILL = 4    # +1 skill range for the occupant


class Team(str, Enum):
    """Which side a unit fights for."""
    PLAYER = "player"
    ENEMY = "enemy"

    @property
    def opponent(self) -> "Team":
        return Team.ENEMY if self is Team.PLAYER else Team.PLAYER


class Tribe(str, Enum):
    """Species tribe (flavour only, no rules attached)."""
    BEAST = "beast"
    ROCK = "rock"
    SPIRIT = "spirit"
    DRAGON = "dragon"


class Rarity(str, Enum):
    """Species rarity (flavour only, no rules attached)."""
    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"
    UNIQUE = "unique"
    LEGEND = "legend"


class Phase(str, Enum):
    """Top-level battle phase."""
    PLACEMENT = "placement"
    BATTLE = "battle"
    RESULT = "result"


class MatchResult(str, Enum):
    """Battle outcome from the player's point of view."""
    NONE = "none"
    WIN = "win"
    LOSE = "lose"


class OutcomeKind(str, Enum):
    """Result of a single skill execution."""
    HEAL = "heal"
    EVADED = "evaded"
    DAMAGE = "damage"
    KILL = "kill"


class LogKind(str, Enum):
    """Battle log / popup categories."""
    DAMAGE = "damage"
    HEAL = "heal"
    MISS = "miss"
    KILL = "kill"
    INFO = "info"


# Single-character glyphs used by text renderers
TERRAIN_GLYPHS = {
    Terrain.PLAIN: ".",
    Terrain.ROCK: "#",
    Terrain.WATER: "~",
    Terrain.BUSH: "\"",
    Terrain.HILL: "^",
}

OUTCOME_LOG_KINDS = {
    OutcomeKind.HEAL: LogKind.HEAL,
    OutcomeKind.EVADED: LogKind.MISS,
    OutcomeKind.DAMAGE: LogKind.DAMAGE,
    OutcomeKind.KILL: LogKind.KILL,
}
