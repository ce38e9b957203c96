"""Fixed rule constants and logging setup for the battle engine."""
from __future__ import annotations
from dataclasses import dataclass
import logging
import sys

from .enums import Team, Terrain


@dataclass(frozen=True)
class RulesConfig:
    """Constants used by the battle rules.

    These are the fixed formulas of the game; tests may pass a modified
    instance (e.g. a smaller board) but nothing reads them from the
    environment at runtime.
    """
    # Board
    grid_rows: int = 4
    grid_cols: int = 6

    # Random terrain generation
    min_terrain_cells: int = 3
    max_terrain_cells: int = 5
    terrain_kinds: tuple[Terrain, ...] = (
        Terrain.ROCK, Terrain.WATER, Terrain.BUSH, Terrain.HILL
    )

    # Terrain effects
    water_move_cost: int = 2
    hill_range_bonus: int = 1
    bush_min_range: int = 2

    # Decision engine scoring
    lethal_bonus: float = 500.0
    missing_hp_weight: float = 100.0

    # Placement
    auto_place_attempts: int = 100

    # Presentation
    max_log_entries: int = 100
    battle_speeds: tuple[int, ...] = (1, 2, 3)

    # Turn order ties on speed resolve in this team order
    team_priority: tuple[Team, ...] = (Team.PLAYER, Team.ENEMY)

    @property
    def player_cols(self) -> int:
        """Number of columns (from the left) that form the player's half."""
        return self.grid_cols // 2


DEFAULT_RULES = RulesConfig()


LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def configure_logging(level: int | str = logging.INFO) -> None:
    """Attach a single stream handler to the ``src.arena`` logger tree."""
    logger = logging.getLogger("src.arena")
    logger.setLevel(level)
    if not any(getattr(h, "_arena_handler", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._arena_handler = True
        logger.addHandler(handler)
