"""Hybrid DQN training loop.

Off-policy algorithms keep a mutable replay buffer, so the outer loop is
plain Python over a stateful environment while action selection and
gradient updates are ``jax.jit``-compiled:

1. ``DQN.act`` picks an epsilon-greedy action.
2. The environment (wrapped in ``AutoReset(SAME_STEP)``) steps.
3. The transition goes into the numpy replay buffer; on episode end the
   true last observation comes from ``info["final_observation"]``.
4. After warmup, every ``train_freq`` steps ``DQN.update`` runs on a
   sampled batch.

Usage::

    from gymnazo.algorithms.dqn import DQNConfig
    from gymnazo.envs import make
    from gymnazo.runner import RunnerConfig, train_dqn

    result = train_dqn(
        make("CartPole-v1"),
        dqn_config=DQNConfig(),
        runner_config=RunnerConfig(total_timesteps=50_000),
    )
"""

from __future__ import annotations

import logging
from typing import Any, Callable, NamedTuple

import jax
import jax.numpy as jnp
import numpy as np

from gymnazo.algorithms.dqn.agent import DQN
from gymnazo.algorithms.dqn.config import DQNConfig
from gymnazo.algorithms.dqn.types import DQNState
from gymnazo.checkpoint import save_checkpoint
from gymnazo.core import Env
from gymnazo.dataprotocol.replay_buffer import ReplayBuffer
from gymnazo.error import InvalidSpace
from gymnazo.metrics import MetricsLogger, log_step_progress
from gymnazo.runner.config import RunnerConfig
from gymnazo.runner.evaluator import EvalMetrics, evaluate
from gymnazo.spaces import Discrete
from gymnazo.wrappers import AutoReset, AutoresetMode

logger = logging.getLogger(__name__)


class DQNTrainResult(NamedTuple):
    """Return value from ``train_dqn``."""

    agent_state: DQNState
    episode_returns: list[float]
    metrics_log: list[dict[str, float]]
    eval_log: list[tuple[int, EvalMetrics]]


def greedy_policy(agent_state: DQNState, config: DQNConfig, start: int = 0) -> Callable[[Any], int]:
    """``obs -> action`` closure taking the arg-max Q action."""

    def _policy(obs: Any) -> int:
        action, _ = DQN.act(agent_state, jnp.asarray(obs, jnp.float32), config=config, explore=False)
        return int(action) + start

    return _policy


def train_dqn(
    env: Env,
    *,
    dqn_config: DQNConfig,
    runner_config: RunnerConfig,
    eval_env: Env | None = None,
    callback: Callable[[int, DQNState, dict[str, float]], None] | None = None,
) -> DQNTrainResult:
    """Train DQN on an environment with a ``Discrete`` action space.

    Args:
        env: Stateful environment; it is wrapped in ``AutoReset(SAME_STEP)``.
        dqn_config: DQN hyperparameters.
        runner_config: Outer-loop settings.
        eval_env: Environment for periodic greedy evaluation
            (``runner_config.eval_every > 0``).
        callback: Optional ``callback(step, agent_state, record)`` called
            whenever training metrics are logged.

    Returns:
        ``DQNTrainResult`` with the final agent state, completed episode
        returns, logged training metrics and evaluation results.
    """
    if not isinstance(env.action_space, Discrete):
        raise InvalidSpace(f"DQN needs a Discrete action space, got {env.action_space}")
    obs_shape = env.observation_space.shape
    if obs_shape is None:
        raise InvalidSpace(
            f"DQN needs a tensor observation space, got {env.observation_space}; "
            "wrap the env in FlattenObservation"
        )
    n_actions = int(env.action_space.n)
    start = int(env.action_space.start)

    rng = jax.random.PRNGKey(runner_config.seed)
    agent_state = DQN.init(rng, obs_shape, n_actions, dqn_config)
    buffer = ReplayBuffer(runner_config.buffer_size, obs_shape, seed=runner_config.seed)

    env = AutoReset(env, AutoresetMode.SAME_STEP)
    obs, _ = env.reset(seed=runner_config.seed)

    metrics_logger = (
        MetricsLogger(runner_config.metrics_path) if runner_config.metrics_path else None
    )

    episode_returns: list[float] = []
    metrics_log: list[dict[str, float]] = []
    eval_log: list[tuple[int, EvalMetrics]] = []
    ep_return = 0.0
    ep_length = 0

    try:
        for step in range(1, runner_config.total_timesteps + 1):
            action, agent_state = DQN.act(
                agent_state, jnp.asarray(obs, jnp.float32), config=dqn_config, explore=True
            )
            action = int(action)
            next_obs, reward, terminated, truncated, info = env.step(action + start)
            done = terminated or truncated

            real_next_obs = info["final_observation"] if done else next_obs
            buffer.push(obs, action, float(reward), real_next_obs, bool(terminated))
            ep_return += float(reward)
            ep_length += 1
            obs = next_obs

            if done:
                episode_returns.append(ep_return)
                if metrics_logger is not None:
                    metrics_logger.write(
                        {"step": step, "episode_return": ep_return, "episode_length": ep_length}
                    )
                ep_return = 0.0
                ep_length = 0

            if len(buffer) >= runner_config.warmup_steps and step % runner_config.train_freq == 0:
                batch = buffer.sample(dqn_config.batch_size)
                agent_state, metrics = DQN.update(agent_state, batch, config=dqn_config)

                if step % runner_config.log_interval == 0:
                    record = {
                        "step": step,
                        "loss": float(metrics.loss),
                        "q_mean": float(metrics.q_mean),
                        "epsilon": float(metrics.epsilon),
                    }
                    if episode_returns:
                        record["episode_return"] = float(np.mean(episode_returns[-10:]))
                    metrics_log.append(record)
                    log_step_progress(step, runner_config.total_timesteps, record)
                    if metrics_logger is not None:
                        metrics_logger.write(record)
                    if callback is not None:
                        callback(step, agent_state, record)

            if (
                eval_env is not None
                and runner_config.eval_every > 0
                and step % runner_config.eval_every == 0
            ):
                result = evaluate(
                    eval_env,
                    greedy_policy(agent_state, dqn_config, start),
                    n_episodes=runner_config.eval_episodes,
                    seed=runner_config.seed + step,
                )
                eval_log.append((step, result))
                logger.info(
                    "eval @ step %d: return %.2f +/- %.2f", step, result.mean_return, result.std_return
                )
                if metrics_logger is not None:
                    metrics_logger.write(
                        {"step": step, "eval_return": result.mean_return, "eval_length": result.mean_length}
                    )

            if (
                runner_config.checkpoint_dir is not None
                and step % runner_config.checkpoint_interval == 0
            ):
                save_checkpoint(
                    runner_config.checkpoint_dir,
                    agent_state,
                    step=step,
                    metadata={"algorithm": "dqn", "step": step, "episodes": len(episode_returns)},
                )
    finally:
        if metrics_logger is not None:
            metrics_logger.close()

    return DQNTrainResult(
        agent_state=agent_state,
        episode_returns=episode_returns,
        metrics_log=metrics_log,
        eval_log=eval_log,
    )
