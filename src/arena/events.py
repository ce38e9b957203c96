"""Events accepted by :func:`src.arena.battle.dispatch`."""
from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Union

from .models import Position

if TYPE_CHECKING:
    from .decision import Decision


@dataclass(frozen=True)
class PlaceUnit:
    """Seat the next queued player unit at ``position``."""
    position: Position


@dataclass(frozen=True)
class AutoPlace:
    """Seat all remaining queued units on random cells."""


@dataclass(frozen=True)
class RemoveUnit:
    """Return the placed player unit at ``position`` to the queue."""
    position: Position


@dataclass(frozen=True)
class StartBattle:
    pass


@dataclass(frozen=True)
class Tick:
    """Advance the battle by one animation phase.

    ``plan`` optionally overrides the acting unit's decision when the tick
    lands on the idle phase (e.g. a learning agent driving the player side).
    """
    plan: Optional["Decision"] = None


@dataclass(frozen=True)
class SetSpeed:
    speed: int


@dataclass(frozen=True)
class TogglePause:
    pass


@dataclass(frozen=True)
class ClearPopups:
    pass


BattleEvent = Union[
    PlaceUnit, AutoPlace, RemoveUnit, StartBattle,
    Tick, SetSpeed, TogglePause, ClearPopups,
]
