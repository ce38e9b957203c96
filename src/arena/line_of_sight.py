"""Line of sight between grid cells."""
from __future__ import annotations

from .enums import Terrain
from .models import Grid, Position


def line_cells(origin: Position, target: Position) -> list[Position]:
    """
    Get the cells strictly between two positions.

    Uses Bresenham's integer line algorithm; both endpoints are excluded.
    """
    cells = []

    row, col = origin.row, origin.col
    d_row = abs(target.row - row)
    d_col = abs(target.col - col)
    step_row = 1 if row < target.row else -1
    step_col = 1 if col < target.col else -1
    err = d_row - d_col

    while True:
        current = Position(row, col)
        if current != origin and current != target:
            cells.append(current)

        if current == target:
            break

        e2 = 2 * err
        if e2 > -d_col:
            err -= d_col
            row += step_row
        if e2 < d_row:
            err += d_row
            col += step_col

    return cells


def has_line_of_sight(
    origin: Position,
    target: Position,
    grid: Grid,
    piercing: bool
) -> bool:
    """
    Check if there's a clear line of sight.

    Piercing skills always see their target. Otherwise any rock or unit
    (either team) on an intermediate cell blocks.
    """
    if piercing:
        return True

    for pos in line_cells(origin, target):
        cell = grid.cell(pos)
        if cell.terrain == Terrain.ROCK or cell.is_occupied:
            return False

    return True
