"""Tests for Gymnasium environment wrapper."""
import pytest
import numpy as np
import gymnasium as gym

from src.arena.gym_env import MonsterBattleEnv, register_envs
from src.arena.enums import Phase
from src.arena.state import state_vector_size


@pytest.fixture
def battle_env():
    """Create a battle environment."""
    env = MonsterBattleEnv(render_mode="ansi")
    yield env
    env.close()


class TestMonsterBattleEnv:
    """Tests for MonsterBattleEnv."""

    def test_spaces(self, battle_env):
        assert battle_env.observation_space.shape == (state_vector_size(),)
        assert battle_env.action_space.n == MonsterBattleEnv.MAX_CANDIDATES + 1

    def test_reset(self, battle_env):
        obs, info = battle_env.reset(seed=42)

        assert obs.shape == battle_env.observation_space.shape
        assert obs.dtype == np.float32
        assert battle_env.observation_space.contains(obs)
        assert "action_mask" in info
        assert info["action_mask"].shape == (battle_env.action_size,)

    def test_reset_is_reproducible(self, battle_env):
        first, _ = battle_env.reset(seed=3)
        second, _ = battle_env.reset(seed=3)
        np.testing.assert_array_equal(first, second)

    def test_mask_allows_default_action_at_decisions(self, battle_env):
        _, info = battle_env.reset(seed=0)
        mask = info["action_mask"]

        if battle_env.battle.phase == Phase.BATTLE:
            assert mask[battle_env.default_action] == 1
            assert mask[:len(battle_env._candidates)].all()

    def test_step_before_reset(self, battle_env):
        with pytest.raises(RuntimeError):
            battle_env.step(0)

    def test_step(self, battle_env):
        battle_env.reset(seed=1)
        obs, reward, terminated, truncated, info = battle_env.step(battle_env.default_action)

        assert obs.shape == battle_env.observation_space.shape
        assert isinstance(reward, float)
        assert isinstance(terminated, bool)
        assert isinstance(truncated, bool)
        assert "result" in info

    def test_episode_ends(self, battle_env):
        _, info = battle_env.reset(seed=5)
        terminated = truncated = False

        for _ in range(1000):
            valid = np.flatnonzero(info["action_mask"])
            action = int(valid[0]) if len(valid) else battle_env.default_action
            _, _, terminated, truncated, info = battle_env.step(action)
            if terminated or truncated:
                break

        assert terminated or truncated

    def test_out_of_range_action_uses_engine_plan(self, battle_env):
        battle_env.reset(seed=2)
        obs, _, _, _, _ = battle_env.step(battle_env.MAX_CANDIDATES - 1 + 50)
        assert obs.shape == battle_env.observation_space.shape

    def test_render(self, battle_env):
        battle_env.reset(seed=4)
        text = battle_env.render()

        assert isinstance(text, str)
        assert "Round" in text

    def test_custom_rosters(self):
        env = MonsterBattleEnv(
            player_species_ids=["gale-wolf"],
            enemy_species_ids=["ironwall-turtle"]
        )
        env.reset(seed=0)
        assert len(env.battle.units) == 2

    def test_unknown_species_fails_reset(self):
        env = MonsterBattleEnv(player_species_ids=["missingno"])
        with pytest.raises(RuntimeError):
            env.reset(seed=0)


def test_register_envs():
    register_envs()
    env = gym.make("MonsterArena-v0")
    obs, info = env.reset(seed=0)
    assert obs.shape == (state_vector_size(),)
    env.close()
