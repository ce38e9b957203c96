"""Gymnasium environment wrapper for the monster battle simulator."""
from __future__ import annotations
from typing import Optional
import numpy as np
import gymnasium as gym
from gymnasium import spaces

from .battle import dispatch
from .battle_setup import initialize
from .config import DEFAULT_RULES, RulesConfig
from .data_loader import DEFAULT_CATALOG_PATH, SpeciesCatalog
from .decision import Candidate, rank_candidates
from .enums import MatchResult, Phase, Team
from .events import AutoPlace, StartBattle, Tick
from .rng import make_rng
from .state import BattleState, Idle, state_vector_size


class MonsterBattleEnv(gym.Env):
    """
    Gymnasium environment where an agent steers the player team.

    Observation Space:
        - ``BattleState.get_state_vector()``: unit stats, terrain codes and
          global counters, all normalized to [0, 1]

    Action Space:
        - Discrete index into the ranked attack plans of the acting player
          unit (best first), plus a final "engine default" action
        - Action masking used to filter out missing candidates

    Each step resolves one player decision; enemy turns and the animation
    ticks in between are driven by the engine.

    Rewards:
        - +1.0 for winning the battle
        - -1.0 for losing the battle
        - Small negative reward per decision (encourages efficiency)
        - Small positive reward for dealing damage
        - Penalty for losing units
    """

    metadata = {"render_modes": ["ansi"], "render_fps": 1}

    MAX_CANDIDATES = 16

    def __init__(
        self,
        catalog_path: Optional[str] = None,
        player_species_ids: Optional[list[str]] = None,
        enemy_species_ids: Optional[list[str]] = None,
        render_mode: Optional[str] = None,
        max_rounds: int = 100,
        max_ticks_per_step: int = 2000,
        reward_config: Optional[dict] = None,
        rules: RulesConfig = DEFAULT_RULES
    ):
        super().__init__()

        self.catalog = SpeciesCatalog(catalog_path or DEFAULT_CATALOG_PATH).load_all()
        self.player_species_ids = player_species_ids or self.catalog.parties.get("player", [])
        self.enemy_species_ids = enemy_species_ids or self.catalog.parties.get("enemy", [])
        self.render_mode = render_mode
        self.max_rounds = max_rounds
        self.max_ticks_per_step = max_ticks_per_step
        self.rules = rules

        # Reward configuration
        self.reward_config = reward_config or {
            "win": 1.0,
            "lose": -1.0,
            "turn_penalty": -0.01,
            "damage_dealt": 0.001,
            "damage_taken": -0.002,
            "unit_killed": 0.1,
            "unit_lost": -0.2,
        }

        self.battle: Optional[BattleState] = None
        self.rng = make_rng()
        self._candidates: list[Candidate] = []

        self.state_size = state_vector_size(rules)
        self.observation_space = spaces.Box(
            low=0.0,
            high=1.0,
            shape=(self.state_size,),
            dtype=np.float32
        )

        # Last action = let the engine pick
        self.action_size = self.MAX_CANDIDATES + 1
        self.action_space = spaces.Discrete(self.action_size)

        # Track previous state for reward calculation
        self._prev_player_hp = 0
        self._prev_enemy_hp = 0
        self._prev_player_count = 0
        self._prev_enemy_count = 0

    @property
    def default_action(self) -> int:
        return self.MAX_CANDIDATES

    def _at_player_decision(self) -> bool:
        """True when the next tick would freeze a plan for a player unit."""
        if self.battle is None or self.battle.phase != Phase.BATTLE:
            return False
        if not isinstance(self.battle.animation, Idle):
            return False
        unit = self.battle.current_unit()
        return unit is not None and unit.alive and unit.team == Team.PLAYER

    def _run_until_player_decision(self) -> int:
        """Tick the engine until a player unit must decide or the battle ends."""
        ticks = 0
        while (
            self.battle.phase == Phase.BATTLE
            and not self._at_player_decision()
            and ticks < self.max_ticks_per_step
        ):
            self.battle = dispatch(self.battle, Tick(), rng=self.rng, rules=self.rules)
            ticks += 1
        return ticks

    def _refresh_candidates(self) -> None:
        if self._at_player_decision():
            unit = self.battle.current_unit()
            self._candidates = rank_candidates(unit, self.battle, self.rules)[:self.MAX_CANDIDATES]
        else:
            self._candidates = []

    def _get_action_mask(self) -> np.ndarray:
        """Get mask of valid actions."""
        mask = np.zeros(self.action_size, dtype=np.int8)
        if not self._at_player_decision():
            return mask

        mask[:len(self._candidates)] = 1
        mask[self.default_action] = 1
        return mask

    def _team_totals(self) -> tuple[int, int, int, int]:
        players = self.battle.units_of(Team.PLAYER)
        enemies = self.battle.units_of(Team.ENEMY)
        return (
            sum(u.hp for u in players),
            sum(u.hp for u in enemies),
            sum(1 for u in players if u.alive),
            sum(1 for u in enemies if u.alive),
        )

    def _calculate_reward(self) -> float:
        """Calculate reward for the current step."""
        reward = 0.0

        if self.battle is None:
            return reward

        # Check terminal conditions
        if self.battle.result == MatchResult.WIN:
            return self.reward_config["win"]
        elif self.battle.result == MatchResult.LOSE:
            return self.reward_config["lose"]

        reward += self.reward_config["turn_penalty"]

        player_hp, enemy_hp, player_count, enemy_count = self._team_totals()

        damage_dealt = max(0, self._prev_enemy_hp - enemy_hp)
        damage_taken = max(0, self._prev_player_hp - player_hp)
        reward += damage_dealt * self.reward_config["damage_dealt"]
        reward += damage_taken * self.reward_config["damage_taken"]

        units_killed = self._prev_enemy_count - enemy_count
        units_lost = self._prev_player_count - player_count
        reward += units_killed * self.reward_config["unit_killed"]
        reward += units_lost * self.reward_config["unit_lost"]

        # Update previous state
        self._prev_player_hp = player_hp
        self._prev_enemy_hp = enemy_hp
        self._prev_player_count = player_count
        self._prev_enemy_count = enemy_count

        return reward

    def _get_info(self) -> dict:
        player_hp, enemy_hp, player_count, enemy_count = self._team_totals()
        return {
            "action_mask": self._get_action_mask(),
            "round": self.battle.round,
            "player_units_alive": player_count,
            "enemy_units_alive": enemy_count,
            "result": self.battle.result.value,
        }

    def reset(
        self,
        *,
        seed: Optional[int] = None,
        options: Optional[dict] = None
    ) -> tuple[np.ndarray, dict]:
        """Reset the environment for a new episode."""
        super().reset(seed=seed)
        self.rng = make_rng(int(self.np_random.integers(2**31 - 1)))

        players = self.catalog.get_roster(self.player_species_ids)
        enemies = self.catalog.get_roster(self.enemy_species_ids)
        if players is None or enemies is None:
            raise RuntimeError("Failed to create battle: unknown species id")

        battle = initialize(players, enemies, self.rng, self.rules)
        battle = dispatch(battle, AutoPlace(), rng=self.rng, rules=self.rules)
        battle = dispatch(battle, StartBattle(), rng=self.rng, rules=self.rules)
        if battle.phase == Phase.PLACEMENT:
            raise RuntimeError("Failed to create battle: player units could not be placed")
        self.battle = battle

        self._run_until_player_decision()
        self._refresh_candidates()

        (self._prev_player_hp, self._prev_enemy_hp,
         self._prev_player_count, self._prev_enemy_count) = self._team_totals()

        return self.battle.get_state_vector(self.rules), self._get_info()

    def step(self, action: int) -> tuple[np.ndarray, float, bool, bool, dict]:
        """Resolve one player decision, then run the engine to the next one."""
        if self.battle is None:
            raise RuntimeError("Environment not initialized. Call reset() first.")

        terminated = False
        truncated = False

        # Check if battle already ended
        if self.battle.is_finished:
            obs = self.battle.get_state_vector(self.rules)
            return obs, 0.0, True, truncated, self._get_info()

        if self._at_player_decision():
            action = int(action)
            plan = None
            if 0 <= action < len(self._candidates):
                plan = self._candidates[action].decision
            self.battle = dispatch(self.battle, Tick(plan=plan), rng=self.rng, rules=self.rules)

        ticks = self._run_until_player_decision()
        self._refresh_candidates()

        reward = self._calculate_reward()

        if self.battle.is_finished:
            terminated = True
        elif self.battle.round >= self.max_rounds or ticks >= self.max_ticks_per_step:
            truncated = True

        return self.battle.get_state_vector(self.rules), reward, terminated, truncated, self._get_info()

    def render(self) -> Optional[str]:
        """Render the current battle state."""
        if self.render_mode != "ansi" or self.battle is None:
            return None

        lines = [self.battle.render_text(), ""]
        for unit in self.battle.units:
            status = f"{unit.hp:3d}/{unit.max_hp:<3d} MP {unit.mp:2d}" if unit.alive else "defeated"
            lines.append(f"{unit.id:<28} {status}")
        return "\n".join(lines)

    def close(self) -> None:
        """Clean up resources."""
        self.battle = None


# Register environments with gymnasium
def register_envs():
    """Register custom environments with gymnasium."""
    gym.register(
        id="MonsterArena-v0",
        entry_point="src.arena.gym_env:MonsterBattleEnv",
    )
