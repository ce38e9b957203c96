"""Battle state snapshot and animation phases."""
from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Optional, Union
import numpy as np

from .config import DEFAULT_RULES, RulesConfig
from .enums import LogKind, MatchResult, OutcomeKind, Phase, Team, TERRAIN_GLYPHS
from .models import Grid, Position, Species, Unit

if TYPE_CHECKING:
    from .decision import Decision


# --- Animation phases --------------------------------------------------------
# One case per step of a unit's turn. Each tick moves the machine from one
# case to the next; see battle.py for the transition table.


@dataclass(frozen=True)
class Idle:
    """Between turns; the next tick picks the acting unit."""


@dataclass(frozen=True)
class TurnStart:
    unit_id: str


@dataclass(frozen=True)
class Moving:
    unit_id: str
    origin: Position
    destination: Position


@dataclass(frozen=True)
class Attacking:
    attacker_id: str
    target_id: str
    skill_name: str


@dataclass(frozen=True)
class Damaged:
    target_id: str
    amount: int
    kind: OutcomeKind


AnimationPhase = Union[Idle, TurnStart, Moving, Attacking, Damaged]

IDLE = Idle()


# --- Presentation records ----------------------------------------------------


@dataclass(frozen=True)
class LogEntry:
    """A single battle log line."""
    id: int
    message: str
    kind: LogKind = LogKind.INFO
    team: Optional[Team] = None


@dataclass(frozen=True)
class DamagePopup:
    """Transient floating number shown over a cell."""
    id: int
    position: Position
    text: str
    kind: LogKind


@dataclass(frozen=True)
class PlacementEntry:
    """A player species waiting to be placed (index = roster slot)."""
    species: Species
    index: int


# --- Aggregate root ----------------------------------------------------------

UNIT_FEATURES = 10
GLOBAL_FEATURES = 6
MAX_UNITS_PER_TEAM = 6


def state_vector_size(rules: RulesConfig = DEFAULT_RULES) -> int:
    """Length of :meth:`BattleState.get_state_vector` for a board size."""
    return (
        MAX_UNITS_PER_TEAM * UNIT_FEATURES * 2
        + rules.grid_rows * rules.grid_cols
        + GLOBAL_FEATURES
    )


@dataclass(frozen=True)
class BattleState:
    """Complete state of a battle.

    Snapshots are never mutated; ``battle.dispatch`` returns a new one for
    every accepted event and the very same object for rejected ones.
    """
    grid: Grid
    units: tuple[Unit, ...] = ()

    # Turn tracking
    turn_order: tuple[str, ...] = ()
    current_turn_index: int = 0
    round: int = 1

    phase: Phase = Phase.PLACEMENT
    animation: AnimationPhase = IDLE
    pending: Optional["Decision"] = None
    result: MatchResult = MatchResult.NONE

    # Presentation
    log: tuple[LogEntry, ...] = ()
    log_counter: int = 0
    popups: tuple[DamagePopup, ...] = ()
    popup_counter: int = 0
    is_paused: bool = False
    battle_speed: int = 1

    # Player units still waiting to be placed
    placement_queue: tuple[PlacementEntry, ...] = field(default_factory=tuple)
    player_roster: tuple[Species, ...] = ()

    # --- Read-only projections ---

    @property
    def placement_ready(self) -> bool:
        return not self.placement_queue

    @property
    def is_finished(self) -> bool:
        return self.phase == Phase.RESULT

    def unit_by_id(self, unit_id: Optional[str]) -> Optional[Unit]:
        """Look up a unit; unknown or empty ids resolve to None."""
        if not unit_id:
            return None
        for unit in self.units:
            if unit.id == unit_id:
                return unit
        return None

    def unit_at(self, pos: Position) -> Optional[Unit]:
        if not self.grid.in_bounds(pos):
            return None
        return self.unit_by_id(self.grid.occupant_at(pos))

    def current_unit(self) -> Optional[Unit]:
        """Unit whose turn it is, if the index points anywhere."""
        if 0 <= self.current_turn_index < len(self.turn_order):
            return self.unit_by_id(self.turn_order[self.current_turn_index])
        return None

    def units_of(self, team: Team) -> list[Unit]:
        return [u for u in self.units if u.team == team]

    def living_units(self, team: Optional[Team] = None) -> list[Unit]:
        return [
            u for u in self.units
            if u.alive and (team is None or u.team == team)
        ]

    # --- Snapshot builders (used by the transition functions) ---

    def with_unit(self, unit: Unit) -> "BattleState":
        """Replace the unit with the same id."""
        units = tuple(unit if u.id == unit.id else u for u in self.units)
        return replace(self, units=units)

    def with_log(
        self,
        message: str,
        kind: LogKind = LogKind.INFO,
        team: Optional[Team] = None,
        rules: RulesConfig = DEFAULT_RULES
    ) -> "BattleState":
        """Append a log line, keeping only the newest entries."""
        entry_id = self.log_counter + 1
        entries = self.log[-(rules.max_log_entries - 1):] if rules.max_log_entries > 1 else ()
        return replace(
            self,
            log=entries + (LogEntry(entry_id, message, kind, team),),
            log_counter=entry_id,
        )

    def with_popup(self, position: Position, text: str, kind: LogKind) -> "BattleState":
        popup_id = self.popup_counter + 1
        return replace(
            self,
            popups=self.popups + (DamagePopup(popup_id, position, text, kind),),
            popup_counter=popup_id,
        )

    # --- Vectorization ---

    def get_state_vector(self, rules: RulesConfig = DEFAULT_RULES) -> np.ndarray:
        """Get a numerical representation of the battle state for ML."""
        state = np.zeros(state_vector_size(rules), dtype=np.float32)
        rows = max(1, self.grid.rows - 1)
        cols = max(1, self.grid.cols - 1)
        actor = self.current_unit()

        for team_slot, team in enumerate((Team.PLAYER, Team.ENEMY)):
            base = team_slot * MAX_UNITS_PER_TEAM * UNIT_FEATURES
            for i, unit in enumerate(self.units_of(team)[:MAX_UNITS_PER_TEAM]):
                idx = base + i * UNIT_FEATURES
                state[idx] = unit.hp / max(1, unit.max_hp)
                state[idx + 1] = unit.mp / max(1, unit.max_mp)
                state[idx + 2] = unit.position.row / rows
                state[idx + 3] = unit.position.col / cols
                state[idx + 4] = 1.0 if unit.alive else 0.0
                state[idx + 5] = min(1.0, unit.attack / 100)
                state[idx + 6] = min(1.0, unit.defense / 100)
                state[idx + 7] = min(1.0, unit.speed / 50)
                state[idx + 8] = min(1.0, unit.evasion / 100)
                state[idx + 9] = 1.0 if actor is not None and actor.id == unit.id else 0.0

        idx = MAX_UNITS_PER_TEAM * UNIT_FEATURES * 2
        terrain = self.grid.terrain_codes().astype(np.float32).flatten() / 4.0
        n_cells = rules.grid_rows * rules.grid_cols
        state[idx:idx + min(n_cells, terrain.size)] = terrain[:n_cells]

        # Global state
        idx += n_cells
        players = self.units_of(Team.PLAYER)
        enemies = self.units_of(Team.ENEMY)
        state[idx] = min(1.0, self.round / 50)
        state[idx + 1] = sum(1 for u in players if u.alive) / MAX_UNITS_PER_TEAM
        state[idx + 2] = sum(1 for u in enemies if u.alive) / MAX_UNITS_PER_TEAM
        state[idx + 3] = sum(u.hp for u in players) / max(1, sum(u.max_hp for u in players))
        state[idx + 4] = sum(u.hp for u in enemies) / max(1, sum(u.max_hp for u in enemies))
        state[idx + 5] = 1.0 if actor is not None and actor.team == Team.PLAYER else 0.0

        return state

    def render_text(self) -> str:
        """Plain-text board: terrain glyphs, units as P0/E1 (lowercase if acting)."""
        labels = {}
        for team in (Team.PLAYER, Team.ENEMY):
            for i, unit in enumerate(self.units_of(team)):
                labels[unit.id] = f"{team.value[0].upper()}{i}"

        actor = self.current_unit()
        lines = [f"Round {self.round}  Phase {self.phase.value}  Result {self.result.value}"]
        for row in self.grid.cells:
            parts = []
            for cell in row:
                if cell.unit_id is not None:
                    label = labels.get(cell.unit_id, "??")
                    if actor is not None and actor.id == cell.unit_id:
                        label = label.lower()
                    parts.append(f"{label:>3}")
                else:
                    parts.append(f"{TERRAIN_GLYPHS[cell.terrain]:>3}")
            lines.append("".join(parts))
        return "\n".join(lines)
