"""Pure-functional tabular Q-learning and SARSA.

Observations from a ``Discrete`` space, or a ``Tuple`` of ``Discrete``
spaces (e.g. Blackjack), are mapped to a row of the Q-table with
:func:`state_index`.

Usage::

    config = TabularConfig(update_rule="sarsa")
    state = Tabular.init(rng, num_states(env.observation_space), 4, config)
    s = state_index(env.observation_space, obs)
    action, state = Tabular.act(state, s, config=config, explore=True)
    state, metrics = Tabular.update(state, s, action, reward, s2, a2, terminated, config=config)
"""

from __future__ import annotations

import math
from functools import partial
from typing import Any, NamedTuple

import chex
import jax
import jax.numpy as jnp
import numpy as np

from gymnazo.algorithms.tabular.config import TabularConfig
from gymnazo.algorithms.tabular.types import TabularState
from gymnazo.error import InvalidSpace
from gymnazo.spaces import Discrete, Space, Tuple


class TabularMetrics(NamedTuple):
    td_error: chex.Array
    q_value: chex.Array


def _discrete_parts(space: Space) -> tuple[Discrete, ...]:
    if isinstance(space, Discrete):
        return (space,)
    if isinstance(space, Tuple) and all(isinstance(s, Discrete) for s in space.spaces):
        return tuple(space.spaces)
    raise InvalidSpace(
        f"Tabular methods need a Discrete or Tuple(Discrete, ...) observation space, got {space}"
    )


def num_states(space: Space) -> int:
    """Number of Q-table rows needed for ``space``."""
    return math.prod(s.n for s in _discrete_parts(space))


def state_index(space: Space, obs: Any) -> int:
    """Row-major index of ``obs`` among all states of ``space``."""
    parts = _discrete_parts(space)
    values = (obs,) if isinstance(space, Discrete) else tuple(obs)
    index = 0
    for sub, value in zip(parts, values, strict=True):
        index = index * sub.n + int(np.asarray(value)) - sub.start
    return index


class Tabular:
    """Namespace for tabular TD pure functions. Not instantiated."""

    @staticmethod
    def init(
        rng: chex.PRNGKey,
        n_states: int,
        n_actions: int,
        config: TabularConfig,
    ) -> TabularState:
        """Zero-initialised Q-table with ``epsilon_start`` exploration."""
        return TabularState(
            q_table=jnp.zeros((n_states, n_actions), dtype=jnp.float32),
            epsilon=jnp.asarray(config.epsilon_start, dtype=jnp.float32),
            step=jnp.zeros((), dtype=jnp.int32),
            rng=rng,
        )

    @staticmethod
    @partial(jax.jit, static_argnames=("config", "explore"))
    def act(
        state: TabularState,
        s: chex.Array,
        *,
        config: TabularConfig,
        explore: bool = True,
    ) -> tuple[chex.Array, TabularState]:
        """Epsilon-greedy (``explore=True``) or greedy action for state index ``s``."""
        greedy = jnp.argmax(state.q_table[s]).astype(jnp.int32)
        if not explore:
            return greedy, state

        rng, explore_key, action_key = jax.random.split(state.rng, 3)
        n_actions = state.q_table.shape[1]
        random_action = jax.random.randint(action_key, (), 0, n_actions, dtype=jnp.int32)
        action = jnp.where(jax.random.uniform(explore_key) < state.epsilon, random_action, greedy)
        return action, state._replace(rng=rng)

    @staticmethod
    @partial(jax.jit, static_argnames=("config",))
    def update(
        state: TabularState,
        s: chex.Array,
        action: chex.Array,
        reward: chex.Array,
        next_s: chex.Array,
        next_action: chex.Array,
        terminated: chex.Array,
        *,
        config: TabularConfig,
    ) -> tuple[TabularState, TabularMetrics]:
        """One TD(0) update of ``Q[s, action]``.

        Q-learning bootstraps from ``max Q[next_s]``, SARSA from
        ``Q[next_s, next_action]``; terminal transitions do not bootstrap.
        """
        q = state.q_table
        if config.update_rule == "sarsa":
            future = q[next_s, next_action]
        else:
            future = jnp.max(q[next_s])
        future = jnp.where(terminated, 0.0, future)

        current = q[s, action]
        td_error = reward + config.gamma * future - current
        q_table = q.at[s, action].add(config.lr * td_error)

        new_state = state._replace(q_table=q_table, step=state.step + 1)
        return new_state, TabularMetrics(td_error=td_error, q_value=q_table[s, action])

    @staticmethod
    def end_episode(state: TabularState, config: TabularConfig) -> TabularState:
        """Decay the exploration rate, floored at ``epsilon_min``."""
        epsilon = jnp.maximum(config.epsilon_min, state.epsilon * config.epsilon_decay)
        return state._replace(epsilon=epsilon)
