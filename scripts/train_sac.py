#!/usr/bin/env python3
"""Train SAC on a registered continuous-action environment via CLI.

Usage::

    python scripts/train_sac.py --help
    python scripts/train_sac.py --env-id Pendulum-v1
    python scripts/train_sac.py --env-id MountainCarContinuous-v0 --sac.actor-lr 1e-3
    python scripts/train_sac.py --runner.total-timesteps 200000 --runner.seed 123
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import tyro

from gymnazo.algorithms.sac.config import SACConfig
from gymnazo.envs import make
from gymnazo.metrics import setup_logging
from gymnazo.runner import RunnerConfig, train_sac

logger = logging.getLogger("gymnazo.scripts.train_sac")


@dataclass(frozen=True)
class TrainSACArgs:
    """SAC training configuration."""

    # Environment
    env_id: str = "Pendulum-v1"

    # Algorithm hyperparameters
    sac: SACConfig = SACConfig()

    # Runner / outer-loop settings
    runner: RunnerConfig = RunnerConfig()


def main(args: TrainSACArgs) -> None:
    setup_logging()
    env = make(args.env_id)
    eval_env = make(args.env_id) if args.runner.eval_every > 0 else None
    logger.info("Training SAC on %s", env)

    result = train_sac(
        env,
        sac_config=args.sac,
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
    main(tyro.cli(TrainSACArgs))
