"""CartPole balancing task.

Physics match the classic Barto, Sutton & Anderson (1983) formulation
and Gymnasium's CartPole-v1 defaults.
"""

from __future__ import annotations

from typing import Any

import equinox as eqx
import jax
import jax.numpy as jnp
import numpy as np

from gymnazo.envs.base import EnvParams, EnvState, FunctionalEnv, reset_bounds
from gymnazo.spaces import Box, Discrete


class CartPoleState(EnvState):
    x: jax.Array
    x_dot: jax.Array
    theta: jax.Array
    theta_dot: jax.Array


class CartPoleParams(EnvParams):
    gravity: float = eqx.field(static=True, default=9.8)
    masscart: float = eqx.field(static=True, default=1.0)
    masspole: float = eqx.field(static=True, default=0.1)
    length: float = eqx.field(static=True, default=0.5)
    force_mag: float = eqx.field(static=True, default=10.0)
    tau: float = eqx.field(static=True, default=0.02)
    theta_threshold: float = eqx.field(static=True, default=0.2094395)  # 12 degrees
    x_threshold: float = eqx.field(static=True, default=2.4)


class CartPole(FunctionalEnv):
    """Classic CartPole balancing task.

    Observation: ``[x, x_dot, theta, theta_dot]``
    Actions: ``0`` (push left) or ``1`` (push right)
    Reward: ``+1`` per step, including the terminating step.

    The episode terminates when the pole angle exceeds ±12° or the cart
    leaves ±2.4 from center.  Truncation is left to ``TimeLimit``.

    ``reset(options={"low": ..., "high": ...})`` changes the uniform
    range of the initial state (default ``±0.05``).
    """

    def default_params(self) -> CartPoleParams:
        return CartPoleParams()

    def reset_state(
        self,
        key: jax.Array,
        params: CartPoleParams,
        options: dict[str, Any] | None,
    ) -> CartPoleState:
        low, high = reset_bounds(options, -0.05, 0.05)
        init = jax.random.uniform(key, shape=(4,), minval=low, maxval=high)
        return CartPoleState(x=init[0], x_dot=init[1], theta=init[2], theta_dot=init[3])

    def transition(
        self,
        key: jax.Array,
        state: CartPoleState,
        action: jax.Array,
        params: CartPoleParams,
    ) -> tuple[CartPoleState, jax.Array, jax.Array]:
        force = jnp.where(action == 1, params.force_mag, -params.force_mag)

        total_mass = params.masscart + params.masspole
        polemass_length = params.masspole * params.length

        cos_th = jnp.cos(state.theta)
        sin_th = jnp.sin(state.theta)

        temp = (force + polemass_length * state.theta_dot ** 2 * sin_th) / total_mass
        theta_acc = (params.gravity * sin_th - cos_th * temp) / (
            params.length * (4.0 / 3.0 - params.masspole * cos_th ** 2 / total_mass)
        )
        x_acc = temp - polemass_length * theta_acc * cos_th / total_mass

        # Euler integration
        x = state.x + params.tau * state.x_dot
        x_dot = state.x_dot + params.tau * x_acc
        theta = state.theta + params.tau * state.theta_dot
        theta_dot = state.theta_dot + params.tau * theta_acc

        new_state = CartPoleState(x=x, x_dot=x_dot, theta=theta, theta_dot=theta_dot)
        terminated = (
            (x < -params.x_threshold)
            | (x > params.x_threshold)
            | (theta < -params.theta_threshold)
            | (theta > params.theta_threshold)
        )
        return new_state, jnp.float32(1.0), terminated

    def observe(self, state: CartPoleState, params: CartPoleParams) -> jax.Array:
        return jnp.array([state.x, state.x_dot, state.theta, state.theta_dot], dtype=jnp.float32)

    def make_observation_space(self, params: CartPoleParams) -> Box:
        big = np.finfo(np.float32).max
        high = np.array(
            [params.x_threshold * 2, big, params.theta_threshold * 2, big],
            dtype=np.float32,
        )
        return Box(low=-high, high=high)

    def make_action_space(self, params: CartPoleParams) -> Discrete:
        return Discrete(2)
