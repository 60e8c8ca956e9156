"""Episode-level evaluation of a fixed policy on a stateful environment.

Usage::

    env = make("CartPole-v1")
    metrics = evaluate(env, lambda obs: greedy_action(obs), n_episodes=10, seed=99)
    # metrics.mean_return, metrics.std_return, metrics.mean_length
"""

from __future__ import annotations

from typing import Any, Callable, NamedTuple

import numpy as np

from gymnazo.core import Env


class EvalMetrics(NamedTuple):
    """Aggregated evaluation results."""

    mean_return: float
    std_return: float
    mean_length: float
    episode_returns: tuple[float, ...]


def evaluate(
    env: Env,
    policy: Callable[[Any], Any],
    *,
    n_episodes: int,
    seed: int | None = None,
    max_steps: int | None = None,
) -> EvalMetrics:
    """Roll out ``policy`` for ``n_episodes`` complete episodes.

    The first reset is seeded with *seed*; later episodes continue the
    environment's generator, so the whole evaluation is reproducible.
    An episode ends on ``terminated`` or ``truncated`` (wrap the env in a
    ``TimeLimit`` for envs that never terminate) or after *max_steps*.

    Args:
        env: Environment; it is not closed.
        policy: ``obs -> action``, typically a greedy agent.
        n_episodes: Number of episodes to run.
        seed: Seed for the first reset.
        max_steps: Optional hard cap on episode length.
    """
    if n_episodes <= 0:
        raise ValueError(f"n_episodes must be positive, got {n_episodes}")

    returns: list[float] = []
    lengths: list[int] = []
    for episode in range(n_episodes):
        obs, _ = env.reset(seed=seed if episode == 0 else None)
        total, length = 0.0, 0
        while True:
            obs, reward, terminated, truncated, _ = env.step(policy(obs))
            total += float(reward)
            length += 1
            if terminated or truncated:
                break
            if max_steps is not None and length >= max_steps:
                break
        returns.append(total)
        lengths.append(length)

    return EvalMetrics(
        mean_return=float(np.mean(returns)),
        std_return=float(np.std(returns)),
        mean_length=float(np.mean(lengths)),
        episode_returns=tuple(returns),
    )
