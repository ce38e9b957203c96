"""Shared fixtures for the battle engine tests."""
from typing import Optional
import pytest

from src.arena.config import DEFAULT_RULES
from src.arena.enums import Phase, Team
from src.arena.models import Grid, Position, Skill, Unit
from src.arena.state import BattleState


class ScriptedRandom:
    """Deterministic RandomSource: replays queued floats, lowest choices."""

    def __init__(self, values=(), default: float = 0.5):
        self._values = list(values)
        self.default = default
        self.calls = 0

    def random(self) -> float:
        self.calls += 1
        if self._values:
            return self._values.pop(0)
        return self.default

    def randrange(self, start: int, stop: Optional[int] = None) -> int:
        if stop is None:
            return 0
        return start

    def choice(self, seq):
        return seq[0]


STRIKE = Skill(id="strike", name="Strike", range=1, power=1.0)


@pytest.fixture
def rules():
    return DEFAULT_RULES


@pytest.fixture
def scripted_rng():
    """Factory for a ScriptedRandom."""
    return ScriptedRandom


@pytest.fixture
def make_skill():
    """Factory for skills with sensible defaults."""
    def _make(skill_id: str = "strike", **kwargs) -> Skill:
        kwargs.setdefault("name", skill_id.title())
        return Skill(id=skill_id, **kwargs)
    return _make


@pytest.fixture
def make_unit():
    """Factory for units; stats default to a plain melee fighter."""
    def _make(
        unit_id: str,
        team: Team,
        position: Position,
        hp: int = 100,
        max_hp: Optional[int] = None,
        mp: int = 20,
        attack: int = 30,
        defense: int = 15,
        speed: int = 10,
        evasion: int = 0,
        movement: int = 2,
        skills=(STRIKE,),
        alive: bool = True,
        index: int = 0
    ) -> Unit:
        return Unit(
            id=unit_id,
            species_id=unit_id,
            name=unit_id.title(),
            team=team,
            position=position,
            hp=hp,
            max_hp=max_hp if max_hp is not None else max(hp, 1),
            mp=mp,
            max_mp=mp,
            attack=attack,
            defense=defense,
            speed=speed,
            evasion=evasion,
            movement=movement,
            skills=tuple(skills),
            alive=alive,
            index=index,
        )
    return _make


@pytest.fixture
def make_grid():
    """Factory for a board with terrain and the given units seated."""
    def _make(units=(), terrain: Optional[dict] = None, rows: int = 4, cols: int = 6) -> Grid:
        grid = Grid.empty(rows, cols)
        for pos, kind in (terrain or {}).items():
            grid = grid.with_terrain(pos, kind)
        for unit in units:
            if unit.alive:
                grid = grid.with_occupant(unit.position, unit.id)
        return grid
    return _make


@pytest.fixture
def build_state(make_grid):
    """Factory for a battle-phase state acting in the given unit order."""
    def _make(units, terrain: Optional[dict] = None, phase: Phase = Phase.BATTLE, **kwargs) -> BattleState:
        units = tuple(units)
        kwargs.setdefault("turn_order", tuple(u.id for u in units if u.alive))
        return BattleState(
            grid=make_grid(units, terrain),
            units=units,
            phase=phase,
            **kwargs
        )
    return _make
