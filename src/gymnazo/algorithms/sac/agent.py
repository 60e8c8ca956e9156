"""Pure-functional SAC (Soft Actor-Critic) agent.

Implements:
  - Reparameterised Gaussian policy with tanh squashing, rescaled to the
    environment's action bounds
  - Clipped double-Q learning (twin critics)
  - Optional automatic temperature tuning
  - Polyak-averaged target critics

Usage::

    config = SACConfig().with_action_bounds(env.action_space.low, env.action_space.high)
    state = SAC.init(rng, obs_shape=(3,), action_dim=1, config=config)
    action, state = SAC.act(state, obs, config=config, explore=True)
    state, metrics = SAC.update(state, batch, config=config)
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

from gymnazo.algorithms.sac.config import SACConfig
from gymnazo.algorithms.sac.network import GaussianActor, TwinQNetwork
from gymnazo.algorithms.sac.types import SACState
from gymnazo.types import Transition

# Keeps log(1 - tanh^2) finite at the action bounds.
_LOG_EPS = 1e-6


class SACMetrics(NamedTuple):
    actor_loss: chex.Array
    critic_loss: chex.Array
    alpha_loss: chex.Array
    alpha: chex.Array
    entropy: chex.Array
    q_mean: chex.Array


def _rescale(action_tanh: jax.Array, config: SACConfig) -> jax.Array:
    low = jnp.asarray(config.action_low, dtype=jnp.float32)
    high = jnp.asarray(config.action_high, dtype=jnp.float32)
    return low + 0.5 * (action_tanh + 1.0) * (high - low)


def _sample_action(
    actor: GaussianActor,
    obs: jax.Array,
    key: chex.PRNGKey,
    config: SACConfig,
) -> tuple[jax.Array, jax.Array]:
    """Reparameterised sample and its tanh-corrected log-probability."""
    mean, log_std = actor(obs)
    log_std = jnp.clip(log_std, config.log_std_min, config.log_std_max)
    eps = jax.random.normal(key, shape=mean.shape)
    z = mean + jnp.exp(log_std) * eps
    action_tanh = jnp.tanh(z)

    # log pi(a|s) = log N(z) - sum log(1 - tanh(z)^2)
    log_prob = jnp.sum(-0.5 * (jnp.log(2 * jnp.pi) + 2 * log_std + eps ** 2), axis=-1)
    log_prob = log_prob - jnp.sum(jnp.log(1 - action_tanh ** 2 + _LOG_EPS), axis=-1)
    return _rescale(action_tanh, config), log_prob


def _deterministic_action(actor: GaussianActor, obs: jax.Array, config: SACConfig) -> jax.Array:
    mean, _ = actor(obs)
    return _rescale(jnp.tanh(mean), config)


def _apply(optimizer: optax.GradientTransformation, grads, opt_state, model):
    updates, new_opt_state = optimizer.update(grads, opt_state, eqx.filter(model, eqx.is_array))
    return eqx.apply_updates(model, updates), new_opt_state


def _critic_step(state: SACState, batch: Transition, key: chex.PRNGKey, config: SACConfig):
    alpha = jnp.exp(state.log_alpha)
    next_keys = jax.random.split(key, batch.obs.shape[0])

    def _next_value(next_obs, k):
        next_action, next_log_prob = _sample_action(state.actor_params, next_obs, k, config)
        next_q1, next_q2 = state.target_critic_params(next_obs, next_action)
        return jnp.minimum(next_q1, next_q2) - alpha * next_log_prob

    next_v = jax.vmap(_next_value)(batch.next_obs, next_keys)
    not_terminal = 1.0 - batch.terminated.astype(jnp.float32)
    targets = jax.lax.stop_gradient(batch.reward + config.gamma * next_v * not_terminal)

    def loss_fn(critic):
        q1, q2 = jax.vmap(critic)(batch.obs, batch.action)
        loss = 0.5 * (jnp.mean((q1 - targets) ** 2) + jnp.mean((q2 - targets) ** 2))
        return loss, 0.5 * (jnp.mean(q1) + jnp.mean(q2))

    (loss, q_mean), grads = eqx.filter_value_and_grad(loss_fn, has_aux=True)(state.critic_params)
    critic, opt_state = _apply(
        config.make_critic_optimizer(), grads, state.critic_opt_state, state.critic_params
    )
    return critic, opt_state, loss, q_mean


def _actor_step(
    state: SACState,
    critic: TwinQNetwork,
    batch: Transition,
    key: chex.PRNGKey,
    config: SACConfig,
):
    alpha = jnp.exp(state.log_alpha)
    keys = jax.random.split(key, batch.obs.shape[0])

    def loss_fn(actor):
        def _per_sample(obs, k):
            action, log_prob = _sample_action(actor, obs, k, config)
            q1, q2 = critic(obs, action)
            return alpha * log_prob - jnp.minimum(q1, q2), log_prob

        losses, log_probs = jax.vmap(_per_sample)(batch.obs, keys)
        return jnp.mean(losses), jnp.mean(-log_probs)

    (loss, entropy), grads = eqx.filter_value_and_grad(loss_fn, has_aux=True)(state.actor_params)
    actor, opt_state = _apply(
        config.make_actor_optimizer(), grads, state.actor_opt_state, state.actor_params
    )
    return actor, opt_state, loss, entropy


def _alpha_step(
    state: SACState,
    actor: GaussianActor,
    batch: Transition,
    key: chex.PRNGKey,
    config: SACConfig,
):
    action_dim = batch.action.shape[-1]
    target_entropy = -config.target_entropy_scale * action_dim
    keys = jax.random.split(key, batch.obs.shape[0])
    log_probs = jax.vmap(lambda o, k: _sample_action(actor, o, k, config)[1])(batch.obs, keys)
    log_probs = jax.lax.stop_gradient(log_probs)

    def loss_fn(log_alpha):
        # Eq. 18 of arXiv:1812.05905
        return -jnp.exp(log_alpha) * jnp.mean(log_probs + target_entropy)

    loss, grad = jax.value_and_grad(loss_fn)(state.log_alpha)
    updates, opt_state = config.make_alpha_optimizer().update(grad, state.alpha_opt_state)
    return optax.apply_updates(state.log_alpha, updates), opt_state, loss


class SAC:
    """Namespace for SAC pure functions. Not instantiated."""

    @staticmethod
    def init(
        rng: chex.PRNGKey,
        obs_shape: tuple[int, ...],
        action_dim: int,
        config: SACConfig,
    ) -> SACState:
        """Create initial SAC state; the target critic starts as a copy."""
        obs_dim = math.prod(obs_shape)
        k_actor, k_critic, k_state = jax.random.split(rng, 3)

        actor = GaussianActor(obs_dim, action_dim, config.hidden_sizes, key=k_actor)
        critic = TwinQNetwork(obs_dim, action_dim, config.hidden_sizes, key=k_critic)
        log_alpha = jnp.log(jnp.array(config.init_alpha, dtype=jnp.float32))

        return SACState(
            actor_params=actor,
            critic_params=critic,
            target_critic_params=critic,
            actor_opt_state=config.make_actor_optimizer().init(eqx.filter(actor, eqx.is_array)),
            critic_opt_state=config.make_critic_optimizer().init(eqx.filter(critic, eqx.is_array)),
            log_alpha=log_alpha,
            alpha_opt_state=config.make_alpha_optimizer().init(log_alpha),
            step=jnp.zeros((), dtype=jnp.int32),
            rng=k_state,
        )

    @staticmethod
    @partial(jax.jit, static_argnames=("config", "explore"))
    def act(
        state: SACState,
        obs: chex.Array,
        *,
        config: SACConfig,
        explore: bool = True,
    ) -> tuple[chex.Array, SACState]:
        """Sample an action (``explore=True``) or take the policy mean.

        Returns ``(action, new_state)`` with ``action`` of shape ``(action_dim,)``.
        """
        rng, key = jax.random.split(state.rng)
        if explore:
            action = _sample_action(state.actor_params, obs, key, config)[0]
        else:
            action = _deterministic_action(state.actor_params, obs, config)
        return action, state._replace(rng=rng)

    @staticmethod
    @partial(jax.jit, static_argnames=("config",))
    def update(
        state: SACState,
        batch: Transition,
        *,
        config: SACConfig,
    ) -> tuple[SACState, SACMetrics]:
        """Critic, actor and (optionally) temperature updates on one batch.

        Targets bootstrap through ``1 - terminated`` only.
        """
        rng, key_critic, key_actor, key_alpha = jax.random.split(state.rng, 4)

        critic, critic_opt_state, critic_loss, q_mean = _critic_step(
            state, batch, key_critic, config
        )
        actor, actor_opt_state, actor_loss, entropy = _actor_step(
            state, critic, batch, key_actor, config
        )
        if config.autotune_alpha:
            log_alpha, alpha_opt_state, alpha_loss = _alpha_step(
                state, actor, batch, key_alpha, config
            )
        else:
            log_alpha, alpha_opt_state = state.log_alpha, state.alpha_opt_state
            alpha_loss = jnp.array(0.0)

        target = optax.incremental_update(
            eqx.filter(critic, eqx.is_array),
            eqx.filter(state.target_critic_params, eqx.is_array),
            config.tau,
        )
        target = eqx.combine(target, state.target_critic_params)

        new_state = SACState(
            actor_params=actor,
            critic_params=critic,
            target_critic_params=target,
            actor_opt_state=actor_opt_state,
            critic_opt_state=critic_opt_state,
            log_alpha=log_alpha,
            alpha_opt_state=alpha_opt_state,
            step=state.step + 1,
            rng=rng,
        )
        metrics = SACMetrics(
            actor_loss=actor_loss,
            critic_loss=critic_loss,
            alpha_loss=alpha_loss,
            alpha=jnp.exp(log_alpha),
            entropy=entropy,
            q_mean=q_mean,
        )
        return new_state, metrics
