"""Turn order and match end detection."""
from __future__ import annotations
from dataclasses import replace
from typing import Iterable
import logging

from .config import DEFAULT_RULES, RulesConfig
from .enums import MatchResult, Phase, Team
from .models import Unit
from .rng import RandomSource
from .state import BattleState

logger = logging.getLogger(__name__)


def calc_turn_order(
    units: Iterable[Unit],
    rng: RandomSource,
    rules: RulesConfig = DEFAULT_RULES
) -> tuple[str, ...]:
    """
    Order living units for a round.

    Speed descending; equal speeds go by team priority (player first by
    default), then by a random key drawn once per unit so every permutation
    of a remaining tie is equally likely.
    """
    priority = {team: i for i, team in enumerate(rules.team_priority)}
    keyed = [
        (-unit.speed, priority.get(unit.team, len(priority)), rng.random(), unit.id)
        for unit in units if unit.alive
    ]
    keyed.sort()
    return tuple(unit_id for *_, unit_id in keyed)


def check_result(state: BattleState) -> MatchResult:
    """WIN when no enemy is alive, LOSE when no player unit is alive."""
    if not state.living_units(Team.ENEMY):
        return MatchResult.WIN
    if not state.living_units(Team.PLAYER):
        return MatchResult.LOSE
    return MatchResult.NONE


def commit_result(state: BattleState) -> BattleState:
    """Move to the result phase if one side has been wiped out."""
    if state.phase == Phase.RESULT:
        return state

    result = check_result(state)
    if result == MatchResult.NONE:
        return state

    logger.info("Battle over in round %d: %s", state.round, result.value)
    return replace(state, phase=Phase.RESULT, result=result, pending=None)


def advance_turn(
    state: BattleState,
    rng: RandomSource,
    rules: RulesConfig = DEFAULT_RULES
) -> BattleState:
    """
    Move to the next living unit's turn.

    Checks for a finished match first. When the order runs out, a new one is
    computed from the living roster and the round counter goes up. Dead
    units left in the current order are skipped.
    """
    state = commit_result(state)
    if state.phase == Phase.RESULT:
        return state

    index = state.current_turn_index
    order = state.turn_order
    round_number = state.round

    # Each pass either lands on a living unit or burns one dead entry, and
    # a fresh order contains only living units, so this terminates.
    for _ in range(len(order) + len(state.units) + 1):
        index += 1
        if index >= len(order):
            order = calc_turn_order(state.units, rng, rules)
            index = 0
            round_number += 1
            logger.debug("Round %d order: %s", round_number, ", ".join(order))

        unit = state.unit_by_id(order[index]) if order else None
        if unit is not None and unit.alive:
            break

    return replace(
        state,
        turn_order=order,
        current_turn_index=index,
        round=round_number,
    )


def first_turn(
    state: BattleState,
    rng: RandomSource,
    rules: RulesConfig = DEFAULT_RULES
) -> BattleState:
    """Compute the opening order (round 1, index 0)."""
    order = calc_turn_order(state.units, rng, rules)
    logger.debug("Round 1 order: %s", ", ".join(order))
    return replace(state, turn_order=order, current_turn_index=0, round=1)
