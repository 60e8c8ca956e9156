"""Hybrid SAC training loop.

Same design as the DQN runner (Python outer loop over a stateful env,
jitted action selection and updates) since SAC is off-policy too.  The
actor's tanh output is rescaled to the bounds of the env's ``Box``
action space.

Usage::

    from gymnazo.algorithms.sac import SACConfig
    from gymnazo.envs import make
    from gymnazo.runner import RunnerConfig, train_sac

    result = train_sac(
        make("Pendulum-v1"),
        sac_config=SACConfig(),
        runner_config=RunnerConfig(total_timesteps=20_000),
    )
"""

from __future__ import annotations

import logging
import math
from typing import Any, Callable, NamedTuple

import jax
import jax.numpy as jnp
import numpy as np

from gymnazo.algorithms.sac.agent import SAC
from gymnazo.algorithms.sac.config import SACConfig
from gymnazo.algorithms.sac.types import SACState
from gymnazo.checkpoint import save_checkpoint
from gymnazo.core import Env
from gymnazo.dataprotocol.replay_buffer import ReplayBuffer
from gymnazo.error import InvalidSpace
from gymnazo.metrics import MetricsLogger, log_step_progress
from gymnazo.runner.config import RunnerConfig
from gymnazo.runner.evaluator import EvalMetrics, evaluate
from gymnazo.spaces import Box
from gymnazo.wrappers import AutoReset, AutoresetMode

logger = logging.getLogger(__name__)


class SACTrainResult(NamedTuple):
    """Return value from ``train_sac``."""

    agent_state: SACState
    episode_returns: list[float]
    metrics_log: list[dict[str, float]]
    eval_log: list[tuple[int, EvalMetrics]]


def deterministic_policy(
    agent_state: SACState, config: SACConfig, action_shape: tuple[int, ...]
) -> Callable[[Any], np.ndarray]:
    """``obs -> action`` closure returning the squashed policy mean."""

    def _policy(obs: Any) -> np.ndarray:
        action, _ = SAC.act(agent_state, jnp.asarray(obs, jnp.float32), config=config, explore=False)
        return np.asarray(action, dtype=np.float32).reshape(action_shape)

    return _policy


def train_sac(
    env: Env,
    *,
    sac_config: SACConfig,
    runner_config: RunnerConfig,
    eval_env: Env | None = None,
    callback: Callable[[int, SACState, dict[str, float]], None] | None = None,
) -> SACTrainResult:
    """Train SAC on an environment with a ``Box`` action space.

    Action bounds in ``sac_config`` are replaced by the env's
    ``action_space.low`` / ``high``.

    Args:
        env: Stateful environment; it is wrapped in ``AutoReset(SAME_STEP)``.
        sac_config: SAC hyperparameters.
        runner_config: Outer-loop settings.
        eval_env: Environment for periodic deterministic evaluation.
        callback: Optional ``callback(step, agent_state, record)``.

    Returns:
        ``SACTrainResult`` with the final agent state, completed episode
        returns, logged training metrics and evaluation results.
    """
    act_space = env.action_space
    if not isinstance(act_space, Box):
        raise InvalidSpace(f"SAC needs a Box action space, got {act_space}")
    obs_shape = env.observation_space.shape
    if obs_shape is None:
        raise InvalidSpace(
            f"SAC needs a tensor observation space, got {env.observation_space}; "
            "wrap the env in FlattenObservation"
        )
    action_shape = tuple(act_space.shape)
    action_dim = math.prod(action_shape)
    sac_config = sac_config.with_action_bounds(act_space.low, act_space.high)

    rng = jax.random.PRNGKey(runner_config.seed)
    agent_state = SAC.init(rng, obs_shape, action_dim, sac_config)
    buffer = ReplayBuffer(
        runner_config.buffer_size,
        obs_shape,
        action_shape=(action_dim,),
        action_dtype=np.float32,
        seed=runner_config.seed,
    )

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
            action, agent_state = SAC.act(
                agent_state, jnp.asarray(obs, jnp.float32), config=sac_config, explore=True
            )
            action = np.asarray(action, dtype=np.float32)
            next_obs, reward, terminated, truncated, info = env.step(action.reshape(action_shape))
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
                batch = buffer.sample(sac_config.batch_size)
                agent_state, metrics = SAC.update(agent_state, batch, config=sac_config)

                if step % runner_config.log_interval == 0:
                    record = {
                        "step": step,
                        "actor_loss": float(metrics.actor_loss),
                        "critic_loss": float(metrics.critic_loss),
                        "alpha": float(metrics.alpha),
                        "entropy": float(metrics.entropy),
                        "q_mean": float(metrics.q_mean),
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
                    deterministic_policy(agent_state, sac_config, action_shape),
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
                    metadata={"algorithm": "sac", "step": step, "episodes": len(episode_returns)},
                )
    finally:
        if metrics_logger is not None:
            metrics_logger.close()

    return SACTrainResult(
        agent_state=agent_state,
        episode_returns=episode_returns,
        metrics_log=metrics_log,
        eval_log=eval_log,
    )
