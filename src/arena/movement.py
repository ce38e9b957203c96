"""Movement range computation."""
from __future__ import annotations
from collections import deque

from .config import DEFAULT_RULES, RulesConfig
from .enums import Terrain
from .models import Grid, Position, Unit


def move_cost(terrain: Terrain, rules: RulesConfig = DEFAULT_RULES) -> int:
    """Movement points needed to enter a cell of the given terrain."""
    return rules.water_move_cost if terrain == Terrain.WATER else 1


def reachable_positions(
    unit: Unit,
    grid: Grid,
    rules: RulesConfig = DEFAULT_RULES
) -> list[Position]:
    """
    Get every cell the unit can move to this turn.

    Breadth-first search over the 4-connected board, spending one movement
    point per cell (two for water). Rock and occupied cells cannot be
    entered. A cell is expanded again only when it is reached with more
    remaining movement than before, so a cheap detour around water still
    extends the frontier.

    Returns:
        Distinct positions in discovery order, excluding the start cell.
    """
    start = unit.position
    best_remaining: dict[Position, int] = {start: unit.movement}
    queue = deque([(start, unit.movement)])
    result: list[Position] = []
    seen: set[Position] = set()

    while queue:
        pos, remaining = queue.popleft()

        for nxt in pos.neighbors():
            if not grid.in_bounds(nxt):
                continue

            cell = grid.cell(nxt)
            if cell.terrain == Terrain.ROCK or cell.is_occupied:
                continue

            left = remaining - move_cost(cell.terrain, rules)
            if left < 0:
                continue

            previous = best_remaining.get(nxt)
            if previous is not None and previous >= left:
                continue

            best_remaining[nxt] = left
            if nxt not in seen:
                seen.add(nxt)
                result.append(nxt)
            queue.append((nxt, left))

    return result


def can_reach(
    unit: Unit,
    destination: Position,
    grid: Grid,
    rules: RulesConfig = DEFAULT_RULES
) -> bool:
    """Check whether ``destination`` is within the unit's movement range."""
    return destination in reachable_positions(unit, grid, rules)
