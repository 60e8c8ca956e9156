"""Acrobot: a two-link pendulum actuated at the joint between the links.

Dynamics follow Sutton & Barto's book formulation, integrated with one
fourth-order Runge-Kutta step per environment step.
"""

from __future__ import annotations

from typing import Any

import equinox as eqx
import jax
import jax.numpy as jnp
import numpy as np

from gymnazo.envs.base import EnvParams, EnvState, FunctionalEnv, reset_bounds
from gymnazo.spaces import Box, Discrete

# Torques applied for actions 0, 1 and 2.
AVAILABLE_TORQUES = (-1.0, 0.0, 1.0)


class AcrobotState(EnvState):
    theta1: jax.Array
    theta2: jax.Array
    dtheta1: jax.Array
    dtheta2: jax.Array


class AcrobotParams(EnvParams):
    dt: float = eqx.field(static=True, default=0.2)
    link_length_1: float = eqx.field(static=True, default=1.0)
    link_mass_1: float = eqx.field(static=True, default=1.0)
    link_mass_2: float = eqx.field(static=True, default=1.0)
    link_com_pos_1: float = eqx.field(static=True, default=0.5)
    link_com_pos_2: float = eqx.field(static=True, default=0.5)
    link_moi: float = eqx.field(static=True, default=1.0)
    gravity: float = eqx.field(static=True, default=9.8)
    max_vel_1: float = eqx.field(static=True, default=4 * np.pi)
    max_vel_2: float = eqx.field(static=True, default=9 * np.pi)
    torque_noise_max: float = eqx.field(static=True, default=0.0)


def _dsdt(s: jax.Array, params: AcrobotParams) -> jax.Array:
    m1, m2 = params.link_mass_1, params.link_mass_2
    l1 = params.link_length_1
    lc1, lc2 = params.link_com_pos_1, params.link_com_pos_2
    i1 = i2 = params.link_moi
    g = params.gravity
    theta1, theta2, dtheta1, dtheta2, a = s[0], s[1], s[2], s[3], s[4]

    d1 = m1 * lc1 ** 2 + m2 * (l1 ** 2 + lc2 ** 2 + 2 * l1 * lc2 * jnp.cos(theta2)) + i1 + i2
    d2 = m2 * (lc2 ** 2 + l1 * lc2 * jnp.cos(theta2)) + i2
    phi2 = m2 * lc2 * g * jnp.cos(theta1 + theta2 - jnp.pi / 2.0)
    phi1 = (
        -m2 * l1 * lc2 * dtheta2 ** 2 * jnp.sin(theta2)
        - 2 * m2 * l1 * lc2 * dtheta2 * dtheta1 * jnp.sin(theta2)
        + (m1 * lc1 + m2 * l1) * g * jnp.cos(theta1 - jnp.pi / 2.0)
        + phi2
    )
    ddtheta2 = (
        a + d2 / d1 * phi1 - m2 * l1 * lc2 * dtheta1 ** 2 * jnp.sin(theta2) - phi2
    ) / (m2 * lc2 ** 2 + i2 - d2 ** 2 / d1)
    ddtheta1 = -(d2 * ddtheta2 + phi1) / d1
    return jnp.stack([dtheta1, dtheta2, ddtheta1, ddtheta2, jnp.zeros_like(a)])


def _rk4(y0: jax.Array, dt: float, params: AcrobotParams) -> jax.Array:
    k1 = _dsdt(y0, params)
    k2 = _dsdt(y0 + dt / 2.0 * k1, params)
    k3 = _dsdt(y0 + dt / 2.0 * k2, params)
    k4 = _dsdt(y0 + dt * k3, params)
    return y0 + dt / 6.0 * (k1 + 2 * k2 + 2 * k3 + k4)


def _wrap(x: jax.Array, low: float, high: float) -> jax.Array:
    """Wrap ``x`` into ``[low, high)``."""
    return (x - low) % (high - low) + low


class Acrobot(FunctionalEnv):
    """Swing the free end of a two-link pendulum above a target height.

    Observation: ``[cos(t1), sin(t1), cos(t2), sin(t2), dt1, dt2]``
    Actions: ``0``, ``1``, ``2`` apply torque ``-1``, ``0``, ``+1``
    Reward: ``-1`` per step, ``0`` on the terminating step.

    The episode terminates when ``-cos(t1) - cos(t1 + t2) > 1``.  All four
    state variables start uniform in ``[-0.1, 0.1]`` (override with
    ``options={"low": ..., "high": ...}``).
    """

    def default_params(self) -> AcrobotParams:
        return AcrobotParams()

    def reset_state(
        self,
        key: jax.Array,
        params: AcrobotParams,
        options: dict[str, Any] | None,
    ) -> AcrobotState:
        low, high = reset_bounds(options, -0.1, 0.1)
        init = jax.random.uniform(key, shape=(4,), minval=low, maxval=high)
        return AcrobotState(theta1=init[0], theta2=init[1], dtheta1=init[2], dtheta2=init[3])

    def transition(
        self,
        key: jax.Array,
        state: AcrobotState,
        action: jax.Array,
        params: AcrobotParams,
    ) -> tuple[AcrobotState, jax.Array, jax.Array]:
        torque = jnp.asarray(AVAILABLE_TORQUES, dtype=jnp.float32)[action]
        if params.torque_noise_max > 0:
            torque = torque + jax.random.uniform(
                key, minval=-params.torque_noise_max, maxval=params.torque_noise_max
            )

        s = jnp.stack([state.theta1, state.theta2, state.dtheta1, state.dtheta2, torque])
        ns = _rk4(s, params.dt, params)
        new_state = AcrobotState(
            theta1=_wrap(ns[0], -jnp.pi, jnp.pi),
            theta2=_wrap(ns[1], -jnp.pi, jnp.pi),
            dtheta1=jnp.clip(ns[2], -params.max_vel_1, params.max_vel_1),
            dtheta2=jnp.clip(ns[3], -params.max_vel_2, params.max_vel_2),
        )
        terminated = -jnp.cos(new_state.theta1) - jnp.cos(new_state.theta1 + new_state.theta2) > 1.0
        reward = jnp.where(terminated, 0.0, -1.0).astype(jnp.float32)
        return new_state, reward, terminated

    def observe(self, state: AcrobotState, params: AcrobotParams) -> jax.Array:
        return jnp.array(
            [
                jnp.cos(state.theta1),
                jnp.sin(state.theta1),
                jnp.cos(state.theta2),
                jnp.sin(state.theta2),
                state.dtheta1,
                state.dtheta2,
            ],
            dtype=jnp.float32,
        )

    def make_observation_space(self, params: AcrobotParams) -> Box:
        high = np.array(
            [1.0, 1.0, 1.0, 1.0, params.max_vel_1, params.max_vel_2], dtype=np.float32
        )
        return Box(low=-high, high=high)

    def make_action_space(self, params: AcrobotParams) -> Discrete:
        return Discrete(3)
