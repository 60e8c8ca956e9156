"""Pure-functional DQN agent.

All methods are static pure functions; state is threaded explicitly
through ``DQNState``.

Usage::

    config = DQNConfig()
    state = DQN.init(rng, obs_shape=(4,), n_actions=2, config=config)
    action, state = DQN.act(state, obs, config=config, explore=True)
    state, metrics = DQN.update(state, batch, config=config)
"""

from __future__ import annotations

import math
from functools import partial
from typing import NamedTuple

import chex
import equinox as eqx
import jax
import jax.numpy as jnp
import optax

from gymnazo.algorithms.dqn.config import DQNConfig
from gymnazo.algorithms.dqn.network import QNetwork
from gymnazo.algorithms.dqn.types import DQNState
from gymnazo.types import Transition


class DQNMetrics(NamedTuple):
    loss: chex.Array
    q_mean: chex.Array
    epsilon: chex.Array


def make_optimizer(config: DQNConfig) -> optax.GradientTransformation:
    return optax.chain(
        optax.clip_by_global_norm(config.max_grad_norm),
        optax.adam(config.lr),
    )


def epsilon_at(step: chex.Array, config: DQNConfig) -> chex.Array:
    """Linearly decayed exploration rate after ``step`` updates."""
    frac = jnp.clip(step / config.epsilon_decay_steps, 0.0, 1.0)
    return config.epsilon_start + frac * (config.epsilon_end - config.epsilon_start)


class DQN:
    """Namespace for DQN pure functions. Not instantiated."""

    @staticmethod
    def init(
        rng: chex.PRNGKey,
        obs_shape: tuple[int, ...],
        n_actions: int,
        config: DQNConfig,
    ) -> DQNState:
        """Create initial DQN state; the target network starts as a copy."""
        obs_dim = math.prod(obs_shape)
        k1, k2 = jax.random.split(rng)

        q_net = QNetwork(obs_dim, n_actions, config.hidden_sizes, key=k1)
        opt_state = make_optimizer(config).init(eqx.filter(q_net, eqx.is_array))

        return DQNState(
            params=q_net,
            target_params=q_net,
            opt_state=opt_state,
            step=jnp.zeros((), dtype=jnp.int32),
            rng=k2,
        )

    @staticmethod
    @partial(jax.jit, static_argnames=("config", "explore"))
    def act(
        state: DQNState,
        obs: chex.Array,
        *,
        config: DQNConfig,
        explore: bool = True,
    ) -> tuple[chex.Array, DQNState]:
        """Epsilon-greedy action for a single observation.

        Returns ``(action, new_state)``; ``action`` is a scalar int array.
        With ``explore=False`` the greedy action is always taken.
        """
        rng, key_eps, key_rand = jax.random.split(state.rng, 3)

        q_values = state.params(obs)
        greedy_action = jnp.argmax(q_values)

        if not explore:
            return greedy_action, state._replace(rng=rng)

        n_actions = q_values.shape[-1]
        random_action = jax.random.randint(key_rand, (), 0, n_actions)
        use_random = jax.random.uniform(key_eps) < epsilon_at(state.step, config)
        action = jnp.where(use_random, random_action, greedy_action)
        return action, state._replace(rng=rng)

    @staticmethod
    @partial(jax.jit, static_argnames=("config",))
    def update(
        state: DQNState,
        batch: Transition,
        *,
        config: DQNConfig,
    ) -> tuple[DQNState, DQNMetrics]:
        """One gradient step on a batch of transitions.

        TD targets bootstrap through ``1 - terminated``: truncated
        transitions still use the target network's value of ``next_obs``.
        """
        optimizer = make_optimizer(config)

        def loss_fn(params):
            q_all = jax.vmap(params)(batch.obs)  # (B, n_actions)
            q_values = q_all[jnp.arange(q_all.shape[0]), batch.action.astype(jnp.int32)]

            next_q_all = jax.vmap(state.target_params)(batch.next_obs)
            next_q_max = jnp.max(next_q_all, axis=-1)
            not_terminal = 1.0 - batch.terminated.astype(jnp.float32)
            targets = batch.reward + config.gamma * next_q_max * not_terminal

            loss = jnp.mean((q_values - jax.lax.stop_gradient(targets)) ** 2)
            return loss, q_values

        (loss, q_values), grads = eqx.filter_value_and_grad(loss_fn, has_aux=True)(
            state.params
        )

        updates, new_opt_state = optimizer.update(
            grads, state.opt_state, eqx.filter(state.params, eqx.is_array)
        )
        new_params = eqx.apply_updates(state.params, updates)

        # Periodic (soft) target update
        new_step = state.step + 1
        tau = jnp.where(new_step % config.target_update_freq == 0, config.tau, 0.0)
        new_target_params = optax.incremental_update(
            eqx.filter(new_params, eqx.is_array),
            eqx.filter(state.target_params, eqx.is_array),
            tau,
        )
        new_target_params = eqx.combine(new_target_params, state.target_params)

        new_state = DQNState(
            params=new_params,
            target_params=new_target_params,
            opt_state=new_opt_state,
            step=new_step,
            rng=state.rng,
        )
        metrics = DQNMetrics(
            loss=loss,
            q_mean=jnp.mean(q_values),
            epsilon=epsilon_at(new_step, config),
        )
        return new_state, metrics
