"""Inverted pendulum swing-up task with a continuous torque action.

Matches the Gymnasium Pendulum-v1 dynamics and reward function.
"""

from __future__ import annotations

from typing import Any

import equinox as eqx
import jax
import jax.numpy as jnp
import numpy as np

from gymnazo.envs.base import EnvParams, EnvState, FunctionalEnv
from gymnazo.spaces import Box


class PendulumState(EnvState):
    theta: jax.Array  # angle (radians)
    theta_dot: jax.Array  # angular velocity


class PendulumParams(EnvParams):
    max_speed: float = eqx.field(static=True, default=8.0)
    max_torque: float = eqx.field(static=True, default=2.0)
    dt: float = eqx.field(static=True, default=0.05)
    g: float = eqx.field(static=True, default=10.0)
    m: float = eqx.field(static=True, default=1.0)
    l: float = eqx.field(static=True, default=1.0)


class Pendulum(FunctionalEnv):
    """Pendulum swing-up.

    Observation: ``[cos(theta), sin(theta), theta_dot]``
    Actions: torque in ``[-max_torque, max_torque]``, shape ``(1,)``
    Reward: ``-(theta^2 + 0.1 * theta_dot^2 + 0.001 * torque^2)``

    The episode never terminates; ``Pendulum-v1`` is truncated at 200
    steps by ``TimeLimit``.  ``reset(options={"x_init": ..., "y_init": ...})``
    sets the half-widths of the initial angle and velocity ranges
    (default ``pi`` and ``1.0``).
    """

    def default_params(self) -> PendulumParams:
        return PendulumParams()

    def reset_state(
        self,
        key: jax.Array,
        params: PendulumParams,
        options: dict[str, Any] | None,
    ) -> PendulumState:
        options = options or {}
        x_init = float(options.get("x_init", np.pi))
        y_init = float(options.get("y_init", 1.0))
        k1, k2 = jax.random.split(key)
        theta = jax.random.uniform(k1, shape=(), minval=-x_init, maxval=x_init)
        theta_dot = jax.random.uniform(k2, shape=(), minval=-y_init, maxval=y_init)
        return PendulumState(theta=theta, theta_dot=theta_dot)

    def transition(
        self,
        key: jax.Array,
        state: PendulumState,
        action: jax.Array,
        params: PendulumParams,
    ) -> tuple[PendulumState, jax.Array, jax.Array]:
        u = jnp.clip(action.reshape(()), -params.max_torque, params.max_torque)
        theta = state.theta
        theta_dot = state.theta_dot

        cost = _angle_normalize(theta) ** 2 + 0.1 * theta_dot ** 2 + 0.001 * u ** 2

        new_theta_dot = (
            theta_dot
            + (3.0 * params.g / (2.0 * params.l) * jnp.sin(theta)
               + 3.0 / (params.m * params.l ** 2) * u)
            * params.dt
        )
        new_theta_dot = jnp.clip(new_theta_dot, -params.max_speed, params.max_speed)
        new_theta = theta + new_theta_dot * params.dt

        new_state = PendulumState(theta=new_theta, theta_dot=new_theta_dot)
        return new_state, -cost.astype(jnp.float32), jnp.bool_(False)

    def observe(self, state: PendulumState, params: PendulumParams) -> jax.Array:
        return jnp.array(
            [jnp.cos(state.theta), jnp.sin(state.theta), state.theta_dot],
            dtype=jnp.float32,
        )

    def make_observation_space(self, params: PendulumParams) -> Box:
        high = np.array([1.0, 1.0, params.max_speed], dtype=np.float32)
        return Box(low=-high, high=high)

    def make_action_space(self, params: PendulumParams) -> Box:
        return Box(low=-params.max_torque, high=params.max_torque, shape=(1,))


def _angle_normalize(x: jax.Array) -> jax.Array:
    """Normalize angle to [-pi, pi]."""
    return ((x + jnp.pi) % (2 * jnp.pi)) - jnp.pi
