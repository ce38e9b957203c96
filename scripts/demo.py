#!/usr/bin/env python3
"""Demo script: run a seeded headless battle and print the result."""
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.arena import (
    BattleSimulator, MatchResult, MonsterBattleEnv, configure_logging, load_catalog
)


def show_catalog(catalog):
    """Print the loaded species."""
    print("=" * 50)
    print("Species Catalog")
    print("=" * 50)
    for side in ("player", "enemy"):
        print(f"\n{side.title()} party:")
        for species in catalog.get_roster(catalog.parties.get(side, [])) or []:
            skills = ", ".join(s.name for s in species.skills)
            print(f"  {species.name:<16} HP {species.hp:3d} ATK {species.attack:2d} "
                  f"DEF {species.defense:2d} SPD {species.speed:2d} MOV {species.movement}")
            print(f"      Skills: {skills}")


def run_headless_battle(catalog, seed: int):
    """Run one autonomous battle and print its log and final board."""
    print("\n" + "=" * 50)
    print(f"Headless Battle (seed {seed})")
    print("=" * 50)

    simulator = BattleSimulator(catalog, seed=seed)
    battle = simulator.create_battle(catalog.player_roster(), catalog.enemy_roster())
    print("\nInitial board (before placement):")
    print(battle.render_text())

    battle = simulator.run_battle(battle)

    print("\nBattle log:")
    for entry in battle.log:
        print(f"  [{entry.kind.value:>6}] {entry.message}")

    print("\nFinal board:")
    print(battle.render_text())
    for unit in battle.units:
        status = f"{unit.hp}/{unit.max_hp} HP" if unit.alive else "defeated"
        print(f"  {unit.id:<28} {status}")

    if battle.result == MatchResult.WIN:
        print("\nPlayer team wins!")
    elif battle.result == MatchResult.LOSE:
        print("\nEnemy team wins!")
    else:
        print("\nBattle did not finish")
    return battle


def run_gym_episode(seed: int):
    """Play one episode of the Gymnasium wrapper with the engine default action."""
    print("\n" + "=" * 50)
    print("Gymnasium Episode")
    print("=" * 50)

    env = MonsterBattleEnv(render_mode="ansi")
    obs, info = env.reset(seed=seed)
    print(f"Observation size: {obs.shape[0]}")

    total_reward = 0.0
    steps = 0
    terminated = truncated = False
    while not (terminated or truncated):
        obs, reward, terminated, truncated, info = env.step(env.default_action)
        total_reward += reward
        steps += 1

    print(env.render())
    print(f"\nSteps: {steps}  Total reward: {total_reward:.3f}  Result: {info['result']}")
    env.close()


def main():
    seed = int(sys.argv[1]) if len(sys.argv) > 1 else 42
    configure_logging("WARNING")

    catalog = load_catalog()
    show_catalog(catalog)
    run_headless_battle(catalog, seed)
    run_gym_episode(seed)


if __name__ == "__main__":
    main()
