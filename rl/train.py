"""
Training script for the harvest environment using Stable-Baselines3
Supports PPO and DQN (the action space is already Discrete).
"""

import os
import argparse
from typing import Optional

from stable_baselines3 import PPO, DQN
from stable_baselines3.common.vec_env import DummyVecEnv
from stable_baselines3.common.callbacks import CheckpointCallback
from stable_baselines3.common.monitor import Monitor

from game.harvest import HarvestEnv, load_difficulty
from rl.configs.harvest_config import (
    DIFFICULTY_PATH,
    DQN_CONFIG,
    ENV_CONFIG,
    PPO_CONFIG,
    TRAINING_CONFIG,
)

ALGOS = {
    "ppo": (PPO, PPO_CONFIG),
    "dqn": (DQN, DQN_CONFIG),
}


def make_env(seed: Optional[int] = None, difficulty_path: Optional[str] = DIFFICULTY_PATH):
    """Factory function to create the environment"""
    def _init():
        env = HarvestEnv(difficulty=load_difficulty(difficulty_path), **ENV_CONFIG)
        env = Monitor(env)
        if seed is not None:
            env.reset(seed=seed)
        return env
    return _init


def train(
    algo: str = "ppo",
    total_timesteps: Optional[int] = None,
    n_envs: int = 4,
    save_dir: Optional[str] = None,
):
    """Train an agent and save the final model"""

    if total_timesteps is None:
        total_timesteps = TRAINING_CONFIG["total_timesteps"]
    if save_dir is None:
        save_dir = os.path.join(TRAINING_CONFIG["model_dir"], algo)
    os.makedirs(save_dir, exist_ok=True)

    model_cls, model_config = ALGOS[algo]
    # DQN learns from a single env
    if algo == "dqn":
        n_envs = 1

    print(f"\n{'='*60}")
    print(f"Training {algo.upper()} for {total_timesteps:,} timesteps...")
    print(f"Using {n_envs} environment(s)")
    print(f"{'='*60}\n")

    env = DummyVecEnv([make_env(seed=i) for i in range(n_envs)])

    checkpoint_callback = CheckpointCallback(
        save_freq=max(1, TRAINING_CONFIG["save_freq"] // n_envs),
        save_path=save_dir,
        name_prefix=f"{algo}_harvest",
    )

    model = model_cls(
        env=env,
        tensorboard_log=os.path.join(TRAINING_CONFIG["tensorboard_log"], algo),
        **model_config
    )
    model.learn(total_timesteps=total_timesteps, callback=checkpoint_callback)

    final_path = os.path.join(save_dir, f"{algo}_harvest_final")
    model.save(final_path)
    env.close()

    print(f"\n{'='*60}")
    print(f"{algo.upper()} training complete! Model saved to {final_path}")
    print(f"{'='*60}\n")

    return model


def main():
    parser = argparse.ArgumentParser(description="Train RL agent on the harvest environment")
    parser.add_argument(
        "--algo",
        type=str,
        default="ppo",
        choices=sorted(ALGOS),
        help="RL algorithm to use (default: ppo)",
    )
    parser.add_argument(
        "--timesteps",
        type=int,
        default=None,
        help=f"Total timesteps to train (default: {TRAINING_CONFIG['total_timesteps']})",
    )
    parser.add_argument(
        "--n-envs",
        type=int,
        default=4,
        help="Number of parallel environments for PPO (default: 4)",
    )

    args = parser.parse_args()
    train(algo=args.algo, total_timesteps=args.timesteps, n_envs=args.n_envs)


if __name__ == "__main__":
    main()
