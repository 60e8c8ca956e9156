"""Tabular Q-learning / SARSA training loop.

One TD update per environment step, no replay:

1. ``Tabular.act`` picks an epsilon-greedy action for the current state.
2. The environment (wrapped in ``AutoReset(SAME_STEP)``) steps; on
   episode end the true next state comes from ``info["final_observation"]``.
3. The next action is chosen from the next state and ``Tabular.update``
   bootstraps from it (SARSA) or from the greedy value (Q-learning).
4. At episode end the exploration rate decays.

Usage::

    from gymnazo.algorithms.tabular import TabularConfig
    from gymnazo.envs import make
    from gymnazo.runner import RunnerConfig, train_tabular

    result = train_tabular(
        make("CliffWalking-v1", max_episode_steps=200),
        tabular_config=TabularConfig(update_rule="sarsa"),
        runner_config=RunnerConfig(total_timesteps=20_000),
    )
"""

from __future__ import annotations

import logging
from typing import Any, Callable, NamedTuple

import jax
import jax.numpy as jnp
import numpy as np

from gymnazo.algorithms.tabular.agent import Tabular, num_states, state_index
from gymnazo.algorithms.tabular.config import TabularConfig
from gymnazo.algorithms.tabular.types import TabularState
from gymnazo.checkpoint import save_checkpoint
from gymnazo.core import Env
from gymnazo.error import InvalidSpace
from gymnazo.metrics import MetricsLogger, log_step_progress
from gymnazo.runner.config import RunnerConfig
from gymnazo.runner.evaluator import EvalMetrics, evaluate
from gymnazo.spaces import Discrete, Space
from gymnazo.wrappers import AutoReset, AutoresetMode

logger = logging.getLogger(__name__)


class TabularTrainResult(NamedTuple):
    """Return value from ``train_tabular``."""

    agent_state: TabularState
    episode_returns: list[float]
    metrics_log: list[dict[str, float]]
    eval_log: list[tuple[int, EvalMetrics]]


def table_policy(
    agent_state: TabularState,
    observation_space: Space,
    config: TabularConfig,
    start: int = 0,
) -> Callable[[Any], int]:
    """``obs -> action`` closure taking the arg-max action of the Q-table row."""

    def _policy(obs: Any) -> int:
        s = jnp.int32(state_index(observation_space, obs))
        action, _ = Tabular.act(agent_state, s, config=config, explore=False)
        return int(action) + start

    return _policy


def train_tabular(
    env: Env,
    *,
    tabular_config: TabularConfig,
    runner_config: RunnerConfig,
    eval_env: Env | None = None,
    callback: Callable[[int, TabularState, dict[str, float]], None] | None = None,
) -> TabularTrainResult:
    """Train a Q-table on an environment with discrete states and actions.

    Args:
        env: Stateful environment with a ``Discrete`` action space and a
            ``Discrete`` or ``Tuple(Discrete, ...)`` observation space; it
            is wrapped in ``AutoReset(SAME_STEP)``.
        tabular_config: Update rule and TD hyperparameters.
        runner_config: Outer-loop settings; the replay fields are unused.
        eval_env: Environment for periodic greedy evaluation
            (``runner_config.eval_every > 0``).
        callback: Optional ``callback(step, agent_state, record)`` called
            whenever training metrics are logged.

    Returns:
        ``TabularTrainResult`` with the final Q-table state, completed
        episode returns, logged training metrics and evaluation results.
    """
    if not isinstance(env.action_space, Discrete):
        raise InvalidSpace(f"Tabular methods need a Discrete action space, got {env.action_space}")
    observation_space = env.observation_space
    n_states = num_states(observation_space)
    n_actions = int(env.action_space.n)
    start = int(env.action_space.start)

    agent_state = Tabular.init(
        jax.random.PRNGKey(runner_config.seed), n_states, n_actions, tabular_config
    )

    def _index(obs: Any) -> jax.Array:
        return jnp.int32(state_index(observation_space, obs))

    env = AutoReset(env, AutoresetMode.SAME_STEP)
    obs, _ = env.reset(seed=runner_config.seed)
    s = _index(obs)
    action, agent_state = Tabular.act(agent_state, s, config=tabular_config, explore=True)

    metrics_logger = (
        MetricsLogger(runner_config.metrics_path) if runner_config.metrics_path else None
    )

    episode_returns: list[float] = []
    metrics_log: list[dict[str, float]] = []
    eval_log: list[tuple[int, EvalMetrics]] = []
    td_errors: list[float] = []
    ep_return = 0.0
    ep_length = 0

    try:
        for step in range(1, runner_config.total_timesteps + 1):
            next_obs, reward, terminated, truncated, info = env.step(int(action) + start)
            done = terminated or truncated

            next_s = _index(info["final_observation"] if done else next_obs)
            next_action, agent_state = Tabular.act(
                agent_state, next_s, config=tabular_config, explore=True
            )
            agent_state, metrics = Tabular.update(
                agent_state,
                s,
                action,
                jnp.float32(reward),
                next_s,
                next_action,
                jnp.bool_(terminated),
                config=tabular_config,
            )
            td_errors.append(abs(float(metrics.td_error)))
            ep_return += float(reward)
            ep_length += 1

            if done:
                episode_returns.append(ep_return)
                if metrics_logger is not None:
                    metrics_logger.write(
                        {"step": step, "episode_return": ep_return, "episode_length": ep_length}
                    )
                ep_return = 0.0
                ep_length = 0
                agent_state = Tabular.end_episode(agent_state, tabular_config)
                s = _index(next_obs)
                action, agent_state = Tabular.act(agent_state, s, config=tabular_config, explore=True)
            else:
                s, action = next_s, next_action

            if step % runner_config.log_interval == 0:
                record = {
                    "step": step,
                    "td_error": float(np.mean(td_errors)),
                    "epsilon": float(agent_state.epsilon),
                }
                td_errors.clear()
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
                    table_policy(agent_state, observation_space, tabular_config, start),
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
                    metadata={
                        "algorithm": tabular_config.update_rule,
                        "step": step,
                        "episodes": len(episode_returns),
                    },
                )
    finally:
        if metrics_logger is not None:
            metrics_logger.close()

    return TabularTrainResult(
        agent_state=agent_state,
        episode_returns=episode_returns,
        metrics_log=metrics_log,
        eval_log=eval_log,
    )
