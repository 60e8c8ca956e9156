"""Mountain car with three discrete actions.

An under-powered car in a valley must rock back and forth to build the
momentum needed to climb the right hill.
"""

from __future__ import annotations

from typing import Any

import equinox as eqx
import jax
import jax.numpy as jnp
import numpy as np

from gymnazo.envs.base import EnvParams, EnvState, FunctionalEnv, reset_bounds
from gymnazo.spaces import Box, Discrete


class MountainCarState(EnvState):
    position: jax.Array
    velocity: jax.Array


class MountainCarParams(EnvParams):
    min_position: float = eqx.field(static=True, default=-1.2)
    max_position: float = eqx.field(static=True, default=0.6)
    max_speed: float = eqx.field(static=True, default=0.07)
    goal_position: float = eqx.field(static=True, default=0.5)
    goal_velocity: float = eqx.field(static=True, default=0.0)
    force: float = eqx.field(static=True, default=0.001)
    gravity: float = eqx.field(static=True, default=0.0025)


def integrate(
    state: MountainCarState,
    thrust: jax.Array,
    params: MountainCarParams,
) -> tuple[MountainCarState, jax.Array]:
    """One Euler step shared by the discrete and continuous variants.

    ``thrust`` is the velocity change applied by the engine this step.
    Returns the new state and whether the goal was reached.
    """
    velocity = state.velocity + thrust - jnp.cos(3 * state.position) * params.gravity
    velocity = jnp.clip(velocity, -params.max_speed, params.max_speed)
    position = jnp.clip(state.position + velocity, params.min_position, params.max_position)
    # Inelastic collision with the left wall.
    velocity = jnp.where((position == params.min_position) & (velocity < 0), 0.0, velocity)
    reached = (position >= params.goal_position) & (velocity >= params.goal_velocity)
    return MountainCarState(position=position, velocity=velocity), reached


class MountainCar(FunctionalEnv):
    """Mountain car with discrete actions.

    Observation: ``[position, velocity]``
    Actions: ``0`` accelerate left, ``1`` coast, ``2`` accelerate right
    Reward: ``-1`` per step.

    The episode terminates when the car reaches ``position >= 0.5``.
    The initial position is uniform in ``[-0.6, -0.4]`` (override with
    ``options={"low": ..., "high": ...}``) and the initial velocity is 0.
    """

    def default_params(self) -> MountainCarParams:
        return MountainCarParams()

    def reset_state(
        self,
        key: jax.Array,
        params: MountainCarParams,
        options: dict[str, Any] | None,
    ) -> MountainCarState:
        low, high = reset_bounds(options, -0.6, -0.4)
        position = jax.random.uniform(key, shape=(), minval=low, maxval=high)
        return MountainCarState(position=position, velocity=jnp.float32(0.0))

    def transition(
        self,
        key: jax.Array,
        state: MountainCarState,
        action: jax.Array,
        params: MountainCarParams,
    ) -> tuple[MountainCarState, jax.Array, jax.Array]:
        thrust = (action.astype(jnp.float32) - 1.0) * params.force
        new_state, reached = integrate(state, thrust, params)
        return new_state, jnp.float32(-1.0), reached

    def observe(self, state: MountainCarState, params: MountainCarParams) -> jax.Array:
        return jnp.array([state.position, state.velocity], dtype=jnp.float32)

    def make_observation_space(self, params: MountainCarParams) -> Box:
        low = np.array([params.min_position, -params.max_speed], dtype=np.float32)
        high = np.array([params.max_position, params.max_speed], dtype=np.float32)
        return Box(low, high)

    def make_action_space(self, params: MountainCarParams) -> Discrete:
        return Discrete(3)

