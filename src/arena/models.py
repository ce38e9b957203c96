"""Data models for the battle simulator."""
from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Iterator, Optional
import numpy as np

from .enums import Team, Terrain, Tribe, Rarity


@dataclass(frozen=True, order=True)
class Position:
    """Grid position (row from the top, col from the left)."""
    row: int
    col: int

    def neighbors(self) -> tuple["Position", ...]:
        """4-connected neighbours in up, down, left, right order."""
        return (
            Position(self.row - 1, self.col),
            Position(self.row + 1, self.col),
            Position(self.row, self.col - 1),
            Position(self.row, self.col + 1),
        )


@dataclass(frozen=True)
class Skill:
    """A combat skill, shared by every unit of a species."""
    id: str
    name: str
    range: int = 1
    piercing: bool = False
    defense_penetration: float = 0.0  # 0.0 - 1.0
    cost: int = 0                     # MP cost (0 = basic attack)
    power: float = 1.0
    is_heal: bool = False
    heal_amount: int = 0


@dataclass(frozen=True)
class Species:
    """Template for a monster type (from the species catalog)."""
    id: str
    name: str
    hp: int
    attack: int
    defense: int
    speed: int
    mp: int
    evasion: int
    movement: int
    skills: tuple[Skill, ...] = ()
    tribe: Tribe = Tribe.BEAST
    rarity: Rarity = Rarity.COMMON


@dataclass(frozen=True)
class Unit:
    """A unit instance in battle."""
    id: str
    species_id: str
    name: str
    team: Team
    position: Position

    hp: int
    max_hp: int
    mp: int
    max_mp: int
    attack: int
    defense: int
    speed: int
    evasion: int
    movement: int

    skills: tuple[Skill, ...] = ()
    alive: bool = True
    index: int = 0  # Slot in the team's roster

    @classmethod
    def from_species(
        cls,
        species: Species,
        team: Team,
        position: Position,
        index: int
    ) -> "Unit":
        """Create a fresh unit at full HP/MP from a species template."""
        return cls(
            id=f"{team.value}-{index}-{species.id}",
            species_id=species.id,
            name=species.name,
            team=team,
            position=position,
            hp=species.hp,
            max_hp=species.hp,
            mp=species.mp,
            max_mp=species.mp,
            attack=species.attack,
            defense=species.defense,
            speed=species.speed,
            evasion=species.evasion,
            movement=species.movement,
            skills=tuple(species.skills),
            index=index,
        )

    @property
    def missing_hp_fraction(self) -> float:
        return 1 - self.hp / self.max_hp if self.max_hp > 0 else 0.0

    def can_afford(self, skill: Skill) -> bool:
        return self.mp >= skill.cost


@dataclass(frozen=True)
class Cell:
    """A single board cell."""
    terrain: Terrain = Terrain.PLAIN
    unit_id: Optional[str] = None

    @property
    def is_occupied(self) -> bool:
        return self.unit_id is not None


@dataclass(frozen=True)
class Grid:
    """Battle board: terrain plus unit occupancy.

    Grids are immutable; every mutator returns a new grid sharing the
    untouched rows with the old one.
    """
    cells: tuple[tuple[Cell, ...], ...] = field(default_factory=tuple)

    @classmethod
    def empty(cls, rows: int, cols: int) -> "Grid":
        """Create an all-plain, unoccupied grid."""
        row = tuple(Cell() for _ in range(cols))
        return cls(cells=tuple(row for _ in range(rows)))

    @property
    def rows(self) -> int:
        return len(self.cells)

    @property
    def cols(self) -> int:
        return len(self.cells[0]) if self.cells else 0

    def in_bounds(self, pos: Position) -> bool:
        return 0 <= pos.row < self.rows and 0 <= pos.col < self.cols

    def cell(self, pos: Position) -> Cell:
        return self.cells[pos.row][pos.col]

    def terrain_at(self, pos: Position) -> Terrain:
        return self.cells[pos.row][pos.col].terrain

    def occupant_at(self, pos: Position) -> Optional[str]:
        return self.cells[pos.row][pos.col].unit_id

    def positions(self) -> Iterator[Position]:
        """Iterate every position in row-major order."""
        for row in range(self.rows):
            for col in range(self.cols):
                yield Position(row, col)

    def _with_cell(self, pos: Position, cell: Cell) -> "Grid":
        row = self.cells[pos.row]
        new_row = row[:pos.col] + (cell,) + row[pos.col + 1:]
        return Grid(cells=self.cells[:pos.row] + (new_row,) + self.cells[pos.row + 1:])

    def with_terrain(self, pos: Position, terrain: Terrain) -> "Grid":
        return self._with_cell(pos, replace(self.cell(pos), terrain=terrain))

    def with_occupant(self, pos: Position, unit_id: str) -> "Grid":
        return self._with_cell(pos, replace(self.cell(pos), unit_id=unit_id))

    def without_occupant(self, pos: Position) -> "Grid":
        return self._with_cell(pos, replace(self.cell(pos), unit_id=None))

    def move_occupant(self, origin: Position, destination: Position) -> "Grid":
        """Move whatever occupies ``origin`` onto ``destination``."""
        unit_id = self.occupant_at(origin)
        return self.without_occupant(origin).with_occupant(destination, unit_id)

    def terrain_codes(self) -> np.ndarray:
        """Terrain as a 2D int8 array (rows x cols) for vectorization."""
        return np.array(
            [[int(cell.terrain) for cell in row] for row in self.cells],
            dtype=np.int8
        )
