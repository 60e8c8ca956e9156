#!/usr/bin/env python3
"""Train a Q-table (Q-learning or SARSA) on a registered environment via CLI.

Usage::

    python scripts/train_tabular.py --help
    python scripts/train_tabular.py --env-id Taxi-v3
    python scripts/train_tabular.py --env-id CliffWalking-v1 --max-episode-steps 200 --tabular.update-rule sarsa
    python scripts/train_tabular.py --env-id Blackjack-v1 --runner.total-timesteps 500000
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import tyro

from gymnazo.algorithms.tabular.config import TabularConfig
from gymnazo.envs import make
from gymnazo.metrics import setup_logging
from gymnazo.runner import RunnerConfig, train_tabular

logger = logging.getLogger("gymnazo.scripts.train_tabular")


@dataclass(frozen=True)
class TrainTabularArgs:
    """Tabular TD training configuration."""

    # Environment
    env_id: str = "Taxi-v3"
    # Override the registered step limit
    max_episode_steps: int | None = None

    # Algorithm hyperparameters
    tabular: TabularConfig = TabularConfig()

    # Runner / outer-loop settings
    runner: RunnerConfig = RunnerConfig()


def main(args: TrainTabularArgs) -> None:
    setup_logging()

    def _make():
        return make(args.env_id, max_episode_steps=args.max_episode_steps)

    env = _make()
    eval_env = _make() if args.runner.eval_every > 0 else None
    logger.info("Training %s on %s", args.tabular.update_rule, env)

    result = train_tabular(
        env,
        tabular_config=args.tabular,
        runner_config=args.runner,
        eval_env=eval_env,
    )

    last_returns = result.episode_returns[-100:]
    mean_return = sum(last_returns) / len(last_returns) if last_returns else 0.0
    logger.info(
        "Training complete | episodes=%d | mean_return(last 100)=%.2f",
        len(result.episode_returns),
        mean_return,
    )


if __name__ == "__main__":
    main(tyro.cli(TrainTabularArgs))
