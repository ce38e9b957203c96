"""Board creation, enemy deployment and player placement."""
from __future__ import annotations
from dataclasses import replace
from typing import Optional, Sequence
import logging

from .config import DEFAULT_RULES, RulesConfig
from .enums import Team, Terrain
from .models import Grid, Position, Species, Unit
from .rng import RandomSource, ensure_rng
from .state import BattleState, PlacementEntry

logger = logging.getLogger(__name__)


def create_grid(rules: RulesConfig = DEFAULT_RULES) -> Grid:
    """Create an all-plain board of the configured size."""
    return Grid.empty(rules.grid_rows, rules.grid_cols)


def place_random_terrain(
    grid: Grid,
    rng: RandomSource,
    rules: RulesConfig = DEFAULT_RULES
) -> Grid:
    """Scatter 3-5 (configurable) non-plain cells over the board."""
    count = rules.min_terrain_cells + rng.randrange(
        rules.max_terrain_cells - rules.min_terrain_cells + 1
    )
    count = min(count, grid.rows * grid.cols)

    placed = 0
    while placed < count:
        pos = Position(rng.randrange(grid.rows), rng.randrange(grid.cols))
        if grid.terrain_at(pos) != Terrain.PLAIN:
            continue
        grid = grid.with_terrain(pos, rng.choice(rules.terrain_kinds))
        placed += 1

    return grid


def in_team_zone(pos: Position, team: Team, rules: RulesConfig = DEFAULT_RULES) -> bool:
    """Players deploy on the left half, enemies on the right half."""
    if team == Team.PLAYER:
        return 0 <= pos.col < rules.player_cols
    return rules.player_cols <= pos.col < rules.grid_cols


def can_place_at(
    grid: Grid,
    pos: Position,
    team: Team = Team.PLAYER,
    rules: RulesConfig = DEFAULT_RULES
) -> bool:
    """Check that ``pos`` is an empty, non-rock cell in the team's half."""
    if not grid.in_bounds(pos) or not in_team_zone(pos, team, rules):
        return False
    cell = grid.cell(pos)
    return cell.terrain != Terrain.ROCK and not cell.is_occupied


def _open_cells(grid: Grid, team: Team, rules: RulesConfig) -> list[Position]:
    return [pos for pos in grid.positions() if can_place_at(grid, pos, team, rules)]


def place_enemy_units(
    roster: Sequence[Species],
    grid: Grid,
    rng: RandomSource,
    rules: RulesConfig = DEFAULT_RULES
) -> tuple[Grid, list[Unit]]:
    """Deploy the enemy roster on random open cells of the right half."""
    units = []
    for index, species in enumerate(roster):
        if not _open_cells(grid, Team.ENEMY, rules):
            logger.warning("No room left for enemy %s; %d not deployed",
                           species.id, len(roster) - index)
            break

        while True:
            pos = Position(
                rng.randrange(grid.rows),
                rules.player_cols + rng.randrange(rules.grid_cols - rules.player_cols)
            )
            if can_place_at(grid, pos, Team.ENEMY, rules):
                break

        unit = Unit.from_species(species, Team.ENEMY, pos, index)
        grid = grid.with_occupant(pos, unit.id)
        units.append(unit)

    return grid, units


def initialize(
    player_roster: Sequence[Species],
    enemy_roster: Sequence[Species],
    rng: Optional[RandomSource] = None,
    rules: RulesConfig = DEFAULT_RULES
) -> BattleState:
    """
    Set up a battle in the placement phase.

    Builds the board and its terrain, deploys the enemy roster and queues
    the player roster for placement.
    """
    rng = ensure_rng(rng)
    grid = place_random_terrain(create_grid(rules), rng, rules)
    grid, enemy_units = place_enemy_units(enemy_roster, grid, rng, rules)

    queue = tuple(PlacementEntry(species, index) for index, species in enumerate(player_roster))
    logger.debug("Initialized battle: %d enemies deployed, %d players queued",
                 len(enemy_units), len(queue))

    return BattleState(
        grid=grid,
        units=tuple(enemy_units),
        placement_queue=queue,
        player_roster=tuple(player_roster),
    )


def place_next(
    state: BattleState,
    pos: Position,
    rules: RulesConfig = DEFAULT_RULES
) -> Optional[BattleState]:
    """Seat the head of the placement queue at ``pos``; None if illegal."""
    if not state.placement_queue or not can_place_at(state.grid, pos, Team.PLAYER, rules):
        return None

    entry = state.placement_queue[0]
    unit = Unit.from_species(entry.species, Team.PLAYER, pos, entry.index)
    return replace(
        state,
        grid=state.grid.with_occupant(pos, unit.id),
        units=state.units + (unit,),
        placement_queue=state.placement_queue[1:],
    )


def auto_place_remaining(
    state: BattleState,
    rng: RandomSource,
    rules: RulesConfig = DEFAULT_RULES
) -> BattleState:
    """
    Place every queued unit on a random open cell of the player's half.

    Each unit gets a bounded number of random attempts; the first unit that
    cannot be seated stops the run and stays queued with everything
    behind it.
    """
    while state.placement_queue:
        placed = None
        for _ in range(rules.auto_place_attempts):
            pos = Position(rng.randrange(rules.grid_rows), rng.randrange(rules.player_cols))
            placed = place_next(state, pos, rules)
            if placed is not None:
                break

        if placed is None:
            logger.debug("Auto-place gave up with %d unit(s) queued", len(state.placement_queue))
            break
        state = placed

    return state


def remove_placed(state: BattleState, pos: Position) -> Optional[BattleState]:
    """Take a placed player unit off the board and back into the queue."""
    unit = state.unit_at(pos)
    if unit is None or unit.team != Team.PLAYER:
        return None

    if not 0 <= unit.index < len(state.player_roster):
        return None

    entry = PlacementEntry(state.player_roster[unit.index], unit.index)
    queue = tuple(sorted(state.placement_queue + (entry,), key=lambda e: e.index))
    return replace(
        state,
        grid=state.grid.without_occupant(pos),
        units=tuple(u for u in state.units if u.id != unit.id),
        placement_queue=queue,
    )
