#!/usr/bin/env python3
"""Train DQN on a registered environment via CLI.

Usage::

    python scripts/train_dqn.py --help
    python scripts/train_dqn.py --env-id CartPole-v1
    python scripts/train_dqn.py --env-id FrozenLake-v1 --flatten-obs
    python scripts/train_dqn.py --dqn.lr 5e-4 --dqn.batch-size 128 --runner.seed 123
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import tyro

from gymnazo.algorithms.dqn.config import DQNConfig
from gymnazo.envs import make
from gymnazo.metrics import setup_logging
from gymnazo.runner import RunnerConfig, train_dqn
from gymnazo.wrappers import FlattenObservation

logger = logging.getLogger("gymnazo.scripts.train_dqn")


@dataclass(frozen=True)
class TrainDQNArgs:
    """DQN training configuration."""

    # Environment
    env_id: str = "CartPole-v1"
    # One-hot / flatten non-tensor observations (e.g. FrozenLake)
    flatten_obs: bool = False

    # Algorithm hyperparameters
    dqn: DQNConfig = DQNConfig()

    # Runner / outer-loop settings
    runner: RunnerConfig = RunnerConfig()


def main(args: TrainDQNArgs) -> None:
    setup_logging()

    def _make():
        env = make(args.env_id)
        return FlattenObservation(env) if args.flatten_obs else env

    env = _make()
    eval_env = _make() if args.runner.eval_every > 0 else None
    logger.info("Training DQN on %s", env)

    result = train_dqn(
        env,
        dqn_config=args.dqn,
        runner_config=args.runner,
        eval_env=eval_env,
    )

    last_returns = result.episode_returns[-10:]
    mean_return = sum(last_returns) / len(last_returns) if last_returns else 0.0
    logger.info(
        "Training complete | episodes=%d | mean_return(last 10)=%.1f",
        len(result.episode_returns),
        mean_return,
    )


if __name__ == "__main__":
    main(tyro.cli(TrainDQNArgs))
