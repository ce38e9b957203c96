"""Core battle state machine."""
from __future__ import annotations
from dataclasses import replace
from typing import Callable, Optional, Sequence
import logging

from .battle_setup import auto_place_remaining, initialize, place_next, remove_placed
from .combat import apply_outcome, resolve_attack
from .config import DEFAULT_RULES, RulesConfig
from .decision import Decision, decide_action, is_legal_decision
from .enums import LogKind, OUTCOME_LOG_KINDS, OutcomeKind, Phase
from .events import (
    AutoPlace, BattleEvent, ClearPopups, PlaceUnit, RemoveUnit,
    SetSpeed, StartBattle, Tick, TogglePause
)
from .models import Species, Unit
from .movement import can_reach
from .rng import RandomSource, ensure_rng, make_rng
from .state import (
    IDLE, Attacking, BattleState, Damaged, Idle, Moving, TurnStart
)
from .turns import advance_turn, commit_result, first_turn

logger = logging.getLogger(__name__)

Handler = Callable[[BattleState, BattleEvent, RandomSource, RulesConfig], BattleState]


def dispatch(
    state: BattleState,
    event: BattleEvent,
    *,
    rng: Optional[RandomSource] = None,
    rules: RulesConfig = DEFAULT_RULES
) -> BattleState:
    """
    Apply one event and return the next snapshot.

    Illegal events are ignored: the input state is returned unchanged (the
    same object), so callers can detect a rejection with ``is``.
    """
    handler = _EVENT_HANDLERS.get(type(event))
    if handler is None:
        logger.debug("Ignoring unknown event %r", event)
        return state
    return handler(state, event, ensure_rng(rng), rules)


def _reject(state: BattleState, event: BattleEvent, reason: str) -> BattleState:
    logger.debug("Rejected %s: %s", type(event).__name__, reason)
    return state


# --- Placement ---------------------------------------------------------------


def _handle_place_unit(state, event: PlaceUnit, rng, rules):
    if state.phase != Phase.PLACEMENT:
        return _reject(state, event, "not in placement phase")
    placed = place_next(state, event.position, rules)
    if placed is None:
        return _reject(state, event, f"cannot place at {event.position}")
    return placed


def _handle_auto_place(state, event: AutoPlace, rng, rules):
    if state.phase != Phase.PLACEMENT:
        return _reject(state, event, "not in placement phase")
    if state.placement_ready:
        return _reject(state, event, "nothing left to place")
    return auto_place_remaining(state, rng, rules)


def _handle_remove_unit(state, event: RemoveUnit, rng, rules):
    if state.phase != Phase.PLACEMENT:
        return _reject(state, event, "not in placement phase")
    removed = remove_placed(state, event.position)
    if removed is None:
        return _reject(state, event, f"no player unit at {event.position}")
    return removed


def _handle_start_battle(state, event: StartBattle, rng, rules):
    if state.phase != Phase.PLACEMENT:
        return _reject(state, event, "not in placement phase")
    if not state.placement_ready:
        return _reject(state, event, f"{len(state.placement_queue)} unit(s) still unplaced")

    state = first_turn(state, rng, rules)
    state = replace(state, phase=Phase.BATTLE, animation=IDLE, pending=None)
    state = state.with_log("Battle start!", LogKind.INFO, rules=rules)
    logger.info("Battle started with %d units", len(state.units))
    return commit_result(state)


# --- Battle ticks ------------------------------------------------------------


def _handle_tick(state, event: Tick, rng, rules):
    if state.phase != Phase.BATTLE:
        return _reject(state, event, "not in battle phase")
    if state.is_paused:
        return _reject(state, event, "paused")

    # A wiped-out side ends the battle before any cached plan runs
    finished = commit_result(state)
    if finished is not state:
        return finished

    return _PHASE_HANDLERS[type(state.animation)](state, event, rng, rules)


def _end_turn(state: BattleState, rng: RandomSource, rules: RulesConfig) -> BattleState:
    state = advance_turn(state, rng, rules)
    return replace(state, animation=IDLE, pending=None)


def _wait(state: BattleState, unit: Optional[Unit], rng, rules) -> BattleState:
    if unit is not None:
        state = state.with_log(f"{unit.name} waits.", LogKind.INFO, unit.team, rules)
    return _end_turn(state, rng, rules)


def _tick_idle(state, event: Tick, rng, rules):
    """Pick the acting unit and freeze its plan for the rest of the turn."""
    state = replace(state, pending=None)
    unit = state.current_unit()
    if unit is None or not unit.alive:
        return advance_turn(state, rng, rules)

    plan = None
    if event.plan is not None:
        if is_legal_decision(unit, state, event.plan, rules):
            plan = event.plan
        else:
            logger.debug("Ignoring illegal external plan for %s: %r", unit.id, event.plan)
    if plan is None:
        plan = decide_action(unit, state, rules)

    return replace(state, pending=plan, animation=TurnStart(unit.id))


def _tick_turn_start(state, event: Tick, rng, rules):
    unit = state.unit_by_id(state.animation.unit_id)
    plan: Optional[Decision] = state.pending
    if unit is None or not unit.alive or plan is None:
        return _wait(state, unit, rng, rules)

    if plan.has_move:
        if not can_reach(unit, plan.move_to, state.grid, rules):
            return _wait(state, unit, rng, rules)
        moved = replace(unit, position=plan.move_to)
        state = replace(state, grid=state.grid.move_occupant(unit.position, plan.move_to))
        state = state.with_unit(moved)
        return replace(state, animation=Moving(unit.id, unit.position, plan.move_to))

    if plan.has_attack:
        return replace(state, animation=Attacking(unit.id, plan.target_id, plan.skill.name))

    return _wait(state, unit, rng, rules)


def _tick_moving(state, event: Tick, rng, rules):
    unit = state.unit_by_id(state.animation.unit_id)
    plan: Optional[Decision] = state.pending
    if unit is not None and plan is not None and plan.has_attack:
        return replace(state, animation=Attacking(unit.id, plan.target_id, plan.skill.name))

    if unit is not None:
        state = state.with_log(f"{unit.name} moves.", LogKind.INFO, unit.team, rules)
    return _end_turn(state, rng, rules)


def _tick_attacking(state, event: Tick, rng, rules):
    """Resolve the cached skill and commit HP/MP/grid changes."""
    anim = state.animation
    attacker = state.unit_by_id(anim.attacker_id)
    target = state.unit_by_id(anim.target_id)
    plan: Optional[Decision] = state.pending

    if (
        attacker is None or not attacker.alive
        or target is None or not target.alive
        or plan is None or plan.skill is None
        or not attacker.can_afford(plan.skill)
    ):
        return _wait(state, attacker, rng, rules)

    skill = plan.skill
    outcome = resolve_attack(attacker, target, skill, rng)

    state = state.with_unit(replace(attacker, mp=attacker.mp - skill.cost))
    target = state.unit_by_id(target.id)
    hit = apply_outcome(target, outcome)
    state = state.with_unit(hit)

    message = f"{attacker.name} uses {skill.name}! "
    if outcome.kind == OutcomeKind.HEAL:
        message += f"{target.name} recovers {outcome.amount} HP!"
        popup = f"+{outcome.amount}"
    elif outcome.kind == OutcomeKind.EVADED:
        message += f"{target.name} evaded!"
        popup = "MISS"
    else:
        message += f"{target.name} takes {outcome.amount} damage!"
        popup = f"-{outcome.amount}"

    log_kind = LogKind.DAMAGE if outcome.kind == OutcomeKind.KILL else OUTCOME_LOG_KINDS[outcome.kind]
    state = state.with_log(message, log_kind, attacker.team, rules)

    if not hit.alive:
        state = replace(state, grid=state.grid.without_occupant(hit.position))
        state = state.with_log(f"{hit.name} is defeated!", LogKind.KILL, attacker.team, rules)

    state = state.with_popup(hit.position, popup, OUTCOME_LOG_KINDS[outcome.kind])
    state = replace(state, animation=Damaged(hit.id, outcome.amount, outcome.kind))
    return commit_result(state)


def _tick_damaged(state, event: Tick, rng, rules):
    return _end_turn(state, rng, rules)


_PHASE_HANDLERS: dict[type, Handler] = {
    Idle: _tick_idle,
    TurnStart: _tick_turn_start,
    Moving: _tick_moving,
    Attacking: _tick_attacking,
    Damaged: _tick_damaged,
}


# --- Pacing and presentation -------------------------------------------------


def _handle_set_speed(state, event: SetSpeed, rng, rules):
    if event.speed not in rules.battle_speeds:
        return _reject(state, event, f"invalid speed {event.speed}")
    if event.speed == state.battle_speed:
        return state
    return replace(state, battle_speed=event.speed)


def _handle_toggle_pause(state, event: TogglePause, rng, rules):
    if state.is_finished:
        return _reject(state, event, "battle is over")
    return replace(state, is_paused=not state.is_paused)


def _handle_clear_popups(state, event: ClearPopups, rng, rules):
    if not state.popups:
        return state
    return replace(state, popups=())


_EVENT_HANDLERS: dict[type, Handler] = {
    PlaceUnit: _handle_place_unit,
    AutoPlace: _handle_auto_place,
    RemoveUnit: _handle_remove_unit,
    StartBattle: _handle_start_battle,
    Tick: _handle_tick,
    SetSpeed: _handle_set_speed,
    TogglePause: _handle_toggle_pause,
    ClearPopups: _handle_clear_popups,
}


class BattleSimulator:
    """High-level battle runner that drives the state machine headless."""

    def __init__(
        self,
        catalog=None,
        rules: RulesConfig = DEFAULT_RULES,
        seed: Optional[int] = None
    ):
        self.catalog = catalog
        self.rules = rules
        self.rng = make_rng(seed)

    def seed(self, seed: int) -> None:
        """Set RNG seed for reproducibility."""
        self.rng.seed(seed)

    def create_battle(
        self,
        player_roster: Sequence[Species],
        enemy_roster: Sequence[Species]
    ) -> BattleState:
        """Create a battle in the placement phase."""
        return initialize(player_roster, enemy_roster, self.rng, self.rules)

    def create_battle_from_ids(
        self,
        player_species_ids: Sequence[str],
        enemy_species_ids: Sequence[str]
    ) -> Optional[BattleState]:
        """Create a battle from catalog ids; None if any id is unknown."""
        if self.catalog is None:
            return None
        players = self.catalog.get_roster(player_species_ids)
        enemies = self.catalog.get_roster(enemy_species_ids)
        if players is None or enemies is None:
            return None
        return self.create_battle(players, enemies)

    def step(self, state: BattleState, event: BattleEvent) -> BattleState:
        return dispatch(state, event, rng=self.rng, rules=self.rules)

    def run_battle(self, state: BattleState, max_ticks: int = 5000) -> BattleState:
        """
        Run a battle to completion.

        Places any queued units, starts the battle and ticks until a result
        is reached or ``max_ticks`` ticks have been delivered.
        """
        if state.phase == Phase.PLACEMENT:
            if not state.placement_ready:
                state = self.step(state, AutoPlace())
            state = self.step(state, StartBattle())
            if state.phase == Phase.PLACEMENT:
                logger.warning("Battle could not start: %d unit(s) unplaced",
                               len(state.placement_queue))
                return state

        if state.is_paused:
            state = self.step(state, TogglePause())

        ticks = 0
        while state.phase == Phase.BATTLE and ticks < max_ticks:
            state = self.step(state, Tick())
            ticks += 1

        if not state.is_finished:
            logger.warning("Battle stopped after %d ticks without a result", ticks)
        return state
