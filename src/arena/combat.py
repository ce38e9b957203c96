"""Combat mechanics for battle simulator - targeting, damage, and evasion."""
from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Iterable, Optional
import math

from .config import DEFAULT_RULES, RulesConfig
from .enums import OutcomeKind, Terrain
from .line_of_sight import has_line_of_sight
from .models import Grid, Position, Skill, Unit
from .rng import RandomSource


@dataclass(frozen=True)
class AttackOutcome:
    """Result of one skill execution."""
    kind: OutcomeKind
    attacker_id: str
    target_id: str
    skill_name: str
    amount: int = 0

    @property
    def is_hit(self) -> bool:
        return self.kind in (OutcomeKind.DAMAGE, OutcomeKind.KILL)


def manhattan_distance(a: Position, b: Position) -> int:
    """Grid distance ignoring terrain."""
    return abs(a.row - b.row) + abs(a.col - b.col)


def _round_half_up(value: float) -> int:
    # Python's round() is banker's rounding; damage rounds .5 upwards
    return int(math.floor(value + 0.5))


class DamageCalculator:
    """Damage and evasion formulas."""

    @staticmethod
    def effective_defense(defense: float, defense_penetration: float) -> float:
        """Defense left after penetration: Defense * (1 - Penetration)."""
        return defense * (1 - defense_penetration)

    @staticmethod
    def calculate_damage(
        attack: float,
        defense: float,
        power: float,
        defense_penetration: float = 0.0
    ) -> int:
        """
        Damage = max(1, round(Attack * Power * 100 / (100 + EffectiveDefense)))

        Defense has diminishing returns: it never fully negates a hit, and
        penetration scales it down linearly.
        """
        effective_def = DamageCalculator.effective_defense(defense, defense_penetration)
        damage = attack * power * 100 / (100 + effective_def)
        return max(1, _round_half_up(damage))

    @staticmethod
    def check_evasion(evasion: float, rng: RandomSource) -> bool:
        """Roll evasion: the stat is read as a percentage chance."""
        return rng.random() * 100 < evasion

    @staticmethod
    def estimate(attacker: Unit, target: Unit, skill: Skill) -> int:
        """Expected damage assuming the hit lands; heals estimate to 0."""
        if skill.is_heal:
            return 0
        return DamageCalculator.calculate_damage(
            attacker.attack, target.defense, skill.power, skill.defense_penetration
        )


class TargetingSystem:
    """Handles target selection and validation."""

    def __init__(self, rules: RulesConfig = DEFAULT_RULES):
        self.rules = rules

    def effective_range(self, skill: Skill, origin: Position, grid: Grid) -> int:
        """Skill range, +1 when the attacker stands on a hill."""
        bonus = self.rules.hill_range_bonus if grid.terrain_at(origin) == Terrain.HILL else 0
        return skill.range + bonus

    def is_concealed(self, target: Unit, skill: Skill, grid: Grid) -> bool:
        """Bush hides its occupant from non-piercing ranged skills."""
        return (
            not skill.piercing
            and skill.range >= self.rules.bush_min_range
            and grid.terrain_at(target.position) == Terrain.BUSH
        )

    def is_valid_target(
        self,
        attacker: Unit,
        target: Unit,
        skill: Skill,
        grid: Grid,
        origin: Optional[Position] = None
    ) -> bool:
        """
        Check if ``attacker`` standing on ``origin`` can use ``skill`` on ``target``.

        Args:
            origin: Hypothetical attacker position; defaults to its current cell.
                The grid is read as given, so callers evaluating a move should
                pass a grid with the attacker already relocated.
        """
        if not target.alive:
            return False

        same_team = target.team == attacker.team
        if skill.is_heal != same_team:
            return False

        origin = origin if origin is not None else attacker.position
        distance = manhattan_distance(origin, target.position)
        if distance <= 0 or distance > self.effective_range(skill, origin, grid):
            return False

        if self.is_concealed(target, skill, grid):
            return False

        if not skill.is_heal:
            if not has_line_of_sight(origin, target.position, grid, skill.piercing):
                return False

        return True

    def get_attack_targets(
        self,
        attacker: Unit,
        skill: Skill,
        units: Iterable[Unit],
        grid: Grid,
        origin: Optional[Position] = None
    ) -> list[Unit]:
        """Get all legal targets for a skill, in roster order."""
        return [
            target for target in units
            if self.is_valid_target(attacker, target, skill, grid, origin)
        ]

    def usable_skills(
        self,
        attacker: Unit,
        units: Iterable[Unit],
        grid: Grid
    ) -> list[tuple[Skill, list[Unit]]]:
        """Get affordable skills that have at least one target in range."""
        units = list(units)
        usable = []
        for skill in attacker.skills:
            if not attacker.can_afford(skill):
                continue
            targets = self.get_attack_targets(attacker, skill, units, grid)
            if targets:
                usable.append((skill, targets))
        return usable


def resolve_attack(
    attacker: Unit,
    target: Unit,
    skill: Skill,
    rng: RandomSource
) -> AttackOutcome:
    """
    Execute a skill against a target and describe what happened.

    Heals never miss. Attacks roll evasion first and only compute damage
    when the roll fails. Nothing is mutated; MP cost is the caller's job.
    """
    if skill.is_heal:
        return AttackOutcome(
            kind=OutcomeKind.HEAL,
            attacker_id=attacker.id,
            target_id=target.id,
            skill_name=skill.name,
            amount=skill.heal_amount,
        )

    if DamageCalculator.check_evasion(target.evasion, rng):
        return AttackOutcome(
            kind=OutcomeKind.EVADED,
            attacker_id=attacker.id,
            target_id=target.id,
            skill_name=skill.name,
        )

    damage = DamageCalculator.estimate(attacker, target, skill)
    kind = OutcomeKind.KILL if target.hp - damage <= 0 else OutcomeKind.DAMAGE
    return AttackOutcome(
        kind=kind,
        attacker_id=attacker.id,
        target_id=target.id,
        skill_name=skill.name,
        amount=damage,
    )


def apply_outcome(target: Unit, outcome: AttackOutcome) -> Unit:
    """Return the target after the outcome's HP change."""
    if not target.alive:
        return target

    if outcome.kind == OutcomeKind.HEAL:
        return replace(target, hp=min(target.max_hp, target.hp + outcome.amount))

    if outcome.is_hit:
        hp = max(0, target.hp - outcome.amount)
        return replace(target, hp=hp, alive=hp > 0)

    return target
