"""Autonomous decision making shared by both teams."""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional
import logging

from .combat import DamageCalculator, TargetingSystem, manhattan_distance
from .config import DEFAULT_RULES, RulesConfig
from .models import Grid, Position, Skill, Unit
from .movement import reachable_positions
from .state import BattleState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Decision:
    """A unit's plan for its turn.

    Any part may be missing: a pure move has no skill/target, an attack
    from the current cell has no ``move_to``.
    """
    move_to: Optional[Position] = None
    skill: Optional[Skill] = None
    target_id: Optional[str] = None

    @property
    def has_move(self) -> bool:
        return self.move_to is not None

    @property
    def has_attack(self) -> bool:
        return self.skill is not None and self.target_id is not None


@dataclass(frozen=True)
class Candidate:
    """A scored (position, skill, target) option."""
    score: float
    decision: Decision


def score_attack(
    attacker: Unit,
    target: Unit,
    skill: Skill,
    rules: RulesConfig = DEFAULT_RULES
) -> tuple[float, int]:
    """
    Score hitting ``target`` with ``skill``.

    Score = damage + lethal bonus (if the hit would kill)
            + missing HP fraction * weight
    Evasion is ignored: the agent assumes every hit lands.

    Returns: (score, estimated_damage)
    """
    damage = DamageCalculator.estimate(attacker, target, skill)
    lethal = rules.lethal_bonus if target.hp <= damage else 0.0
    return damage + lethal + target.missing_hp_fraction * rules.missing_hp_weight, damage


def _grid_with_unit_at(grid: Grid, unit: Unit, pos: Position) -> Grid:
    """The board as it would look after ``unit`` moved to ``pos``."""
    if pos == unit.position:
        return grid
    return grid.move_occupant(unit.position, pos)


def rank_candidates(
    unit: Unit,
    state: BattleState,
    rules: RulesConfig = DEFAULT_RULES
) -> list[Candidate]:
    """
    Score every attack the unit could make this turn, best first.

    Positions are evaluated current cell first, then the movement range in
    discovery order; skills in list order; targets in roster order. The sort
    is stable, so equal scores keep that evaluation order.
    """
    targeting = TargetingSystem(rules)
    positions = [unit.position] + reachable_positions(unit, state.grid, rules)
    skills = [s for s in unit.skills if not s.is_heal and unit.can_afford(s)]

    candidates = []
    for pos in positions:
        grid = _grid_with_unit_at(state.grid, unit, pos)
        move_to = None if pos == unit.position else pos
        for skill in skills:
            for target in targeting.get_attack_targets(unit, skill, state.units, grid, origin=pos):
                score, _ = score_attack(unit, target, skill, rules)
                candidates.append(Candidate(
                    score=score,
                    decision=Decision(move_to=move_to, skill=skill, target_id=target.id),
                ))

    candidates.sort(key=lambda c: -c.score)
    return candidates


def approach_move(
    unit: Unit,
    state: BattleState,
    rules: RulesConfig = DEFAULT_RULES
) -> Optional[Decision]:
    """
    Move towards the nearest living opponent.

    Picks the reachable cell closest to that opponent by Manhattan distance,
    even when it is no closer than the current cell. Earlier cells in
    discovery order win ties. None only when the unit cannot move at all.
    """
    opponents = state.living_units(unit.team.opponent)
    if not opponents:
        return None

    closest = min(opponents, key=lambda o: manhattan_distance(unit.position, o.position))

    best_pos = None
    best_dist = float("inf")
    for pos in reachable_positions(unit, state.grid, rules):
        dist = manhattan_distance(pos, closest.position)
        if dist < best_dist:
            best_dist = dist
            best_pos = pos

    if best_pos is None:
        return None
    return Decision(move_to=best_pos)


def decide_action(
    unit: Unit,
    state: BattleState,
    rules: RulesConfig = DEFAULT_RULES
) -> Optional[Decision]:
    """
    Pick one action for the unit.

    The highest scoring attack over all reachable positions wins; with no
    attack available the unit walks towards the nearest opponent. Returns
    None when neither is possible (the unit waits).
    """
    if not unit.alive:
        return None

    candidates = rank_candidates(unit, state, rules)
    if candidates:
        best = candidates[0]
        logger.debug(
            "%s plans %s on %s from %s (score %.1f)",
            unit.id, best.decision.skill.name, best.decision.target_id,
            best.decision.move_to or unit.position, best.score
        )
        return best.decision

    decision = approach_move(unit, state, rules)
    if decision is None:
        logger.debug("%s has nothing to do", unit.id)
    return decision


def is_legal_decision(
    unit: Unit,
    state: BattleState,
    decision: Decision,
    rules: RulesConfig = DEFAULT_RULES
) -> bool:
    """
    Check an externally supplied plan against what the engine would consider.

    Attack plans must be one of the ranked candidates. Heal plans, which the
    engine never picks itself, are checked directly against the targeting
    rules from the planned cell.
    """
    if decision.has_attack and decision.skill.is_heal:
        return _is_legal_heal(unit, state, decision, rules)
    if decision.has_attack:
        return any(c.decision == decision for c in rank_candidates(unit, state, rules))
    if decision.skill is not None or decision.target_id is not None:
        return False
    if decision.move_to is None:
        return True  # explicit wait
    return decision.move_to in reachable_positions(unit, state.grid, rules)


def _is_legal_heal(
    unit: Unit,
    state: BattleState,
    decision: Decision,
    rules: RulesConfig
) -> bool:
    if decision.skill not in unit.skills or not unit.can_afford(decision.skill):
        return False

    pos = unit.position
    if decision.move_to is not None:
        if decision.move_to not in reachable_positions(unit, state.grid, rules):
            return False
        pos = decision.move_to

    target = state.unit_by_id(decision.target_id)
    if target is None:
        return False
    grid = _grid_with_unit_at(state.grid, unit, pos)
    return TargetingSystem(rules).is_valid_target(unit, target, decision.skill, grid, origin=pos)
