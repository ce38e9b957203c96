"""Monster arena battle simulator package."""
from .enums import (
    Terrain, Team, Tribe, Rarity, Phase, MatchResult, OutcomeKind, LogKind,
    TERRAIN_GLYPHS, OUTCOME_LOG_KINDS
)
from .config import RulesConfig, DEFAULT_RULES, configure_logging
from .rng import RandomSource, make_rng
from .models import Position, Skill, Species, Unit, Cell, Grid
from .movement import move_cost, reachable_positions, can_reach
from .line_of_sight import line_cells, has_line_of_sight
from .combat import (
    AttackOutcome, DamageCalculator, TargetingSystem,
    manhattan_distance, resolve_attack, apply_outcome
)
from .state import (
    Idle, TurnStart, Moving, Attacking, Damaged, AnimationPhase,
    LogEntry, DamagePopup, PlacementEntry, BattleState, state_vector_size
)
from .decision import Decision, Candidate, decide_action, rank_candidates
from .turns import calc_turn_order, check_result, advance_turn
from .battle_setup import initialize, can_place_at
from .events import (
    PlaceUnit, AutoPlace, RemoveUnit, StartBattle, Tick,
    SetSpeed, TogglePause, ClearPopups, BattleEvent
)
from .battle import dispatch, BattleSimulator
from .data_loader import SpeciesCatalog, load_catalog
from .gym_env import MonsterBattleEnv, register_envs

__all__ = [
    # Enums
    "Terrain", "Team", "Tribe", "Rarity", "Phase", "MatchResult",
    "OutcomeKind", "LogKind",
    # Enum name mappings
    "TERRAIN_GLYPHS", "OUTCOME_LOG_KINDS",
    # Config
    "RulesConfig", "DEFAULT_RULES", "configure_logging",
    "RandomSource", "make_rng",
    # Models
    "Position", "Skill", "Species", "Unit", "Cell", "Grid",
    # Rules
    "move_cost", "reachable_positions", "can_reach",
    "line_cells", "has_line_of_sight",
    "AttackOutcome", "DamageCalculator", "TargetingSystem",
    "manhattan_distance", "resolve_attack", "apply_outcome",
    "Decision", "Candidate", "decide_action", "rank_candidates",
    "calc_turn_order", "check_result", "advance_turn",
    # Battle
    "Idle", "TurnStart", "Moving", "Attacking", "Damaged", "AnimationPhase",
    "LogEntry", "DamagePopup", "PlacementEntry", "BattleState", "state_vector_size",
    "initialize", "can_place_at",
    "PlaceUnit", "AutoPlace", "RemoveUnit", "StartBattle", "Tick",
    "SetSpeed", "TogglePause", "ClearPopups", "BattleEvent",
    "dispatch", "BattleSimulator",
    # Data loader
    "SpeciesCatalog", "load_catalog",
    # Gym
    "MonsterBattleEnv", "register_envs"
]
