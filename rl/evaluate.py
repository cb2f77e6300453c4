"""
Evaluation script for harvest agents: random, autopilot, or a trained model
"""

import argparse
import time
from typing import Callable, Optional

import numpy as np

from stable_baselines3 import PPO, DQN

from game.harvest import HarvestEnv, load_difficulty
from rl.configs.harvest_config import DIFFICULTY_PATH, ENV_CONFIG


def run_episodes(
    env: HarvestEnv,
    choose_action: Callable[[np.ndarray], int],
    n_episodes: int = 10,
    seed: Optional[int] = None,
    frame_delay: float = 0.0,
):
    """Roll out ``n_episodes`` and summarise rewards, scores and levels reached"""
    episode_rewards = []
    episode_lengths = []
    final_levels = []
    wins = 0

    for episode in range(n_episodes):
        obs, info = env.reset(seed=seed + episode if seed is not None else None)

        terminated = False
        truncated = False
        total_reward = 0.0
        steps = 0

        while not (terminated or truncated):
            obs, reward, terminated, truncated, info = env.step(choose_action(obs))
            total_reward += reward
            steps += 1
            if frame_delay:
                time.sleep(frame_delay)

        episode_rewards.append(total_reward)
        episode_lengths.append(steps)
        final_levels.append(info["level"])
        wins += info["state"] == "WON"

        print(f"Episode {episode + 1}/{n_episodes}: "
              f"Reward = {total_reward:.2f}, Length = {steps}, "
              f"Level = {info['level']}, State = {info['state']}")

    results = {
        "mean_reward": float(np.mean(episode_rewards)),
        "std_reward": float(np.std(episode_rewards)),
        "mean_length": float(np.mean(episode_lengths)),
        "mean_level": float(np.mean(final_levels)),
        "win_rate": wins / max(1, n_episodes),
        "episode_rewards": episode_rewards,
    }

    print("\n" + "="*50)
    print(f"Evaluation Results ({n_episodes} episodes):")
    print(f"Mean Reward: {results['mean_reward']:.2f} ± {results['std_reward']:.2f}")
    print(f"Mean Episode Length: {results['mean_length']:.1f}")
    print(f"Mean Final Level: {results['mean_level']:.2f}")
    print(f"Win Rate: {results['win_rate']:.0%}")
    print("="*50)

    return results


def main():
    parser = argparse.ArgumentParser(description="Evaluate a harvest agent")
    parser.add_argument(
        "--policy",
        type=str,
        default="autopilot",
        choices=["random", "autopilot", "ppo", "dqn"],
        help="Policy to evaluate (default: autopilot)",
    )
    parser.add_argument("--model-path", type=str, default=None,
                        help="Path to the trained model (ppo/dqn)")
    parser.add_argument("--episodes", type=int, default=10,
                        help="Number of evaluation episodes (default: 10)")
    parser.add_argument("--render", action="store_true", help="Open a window")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    parser.add_argument("--difficulty", type=str, default=DIFFICULTY_PATH)

    args = parser.parse_args()

    env = HarvestEnv(
        render_mode="human" if args.render else None,
        difficulty=load_difficulty(args.difficulty),
        autopilot=args.policy == "autopilot",
        **ENV_CONFIG,
    )

    if args.policy in ("ppo", "dqn"):
        if args.model_path is None:
            parser.error("--model-path is required for ppo/dqn")
        model = (PPO if args.policy == "ppo" else DQN).load(args.model_path)

        def choose_action(obs):
            action, _ = model.predict(obs, deterministic=True)
            return int(action)
    elif args.policy == "random":
        def choose_action(obs):
            return env.action_space.sample()
    else:
        # Actions are ignored under autopilot
        def choose_action(obs):
            return 0

    try:
        run_episodes(env, choose_action, n_episodes=args.episodes, seed=args.seed,
                     frame_delay=0.03 if args.render else 0.0)
    finally:
        env.close()


if __name__ == "__main__":
    main()
