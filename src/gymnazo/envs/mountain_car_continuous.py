"""Mountain car with a continuous engine force."""

from __future__ import annotations

from typing import Any

import equinox as eqx
import jax
import jax.numpy as jnp
import numpy as np

from gymnazo.envs.base import FunctionalEnv, reset_bounds
from gymnazo.envs.mountain_car import MountainCarParams, MountainCarState, integrate
from gymnazo.spaces import Box


class MountainCarContinuousParams(MountainCarParams):
    goal_position: float = eqx.field(static=True, default=0.45)
    power: float = eqx.field(static=True, default=0.0015)
    min_action: float = eqx.field(static=True, default=-1.0)
    max_action: float = eqx.field(static=True, default=1.0)


class MountainCarContinuous(FunctionalEnv):
    """Mountain car with a continuous action.

    Observation: ``[position, velocity]``
    Actions: force in ``[-1, 1]``, shape ``(1,)``, scaled by ``power``
    Reward: ``-0.1 * force^2`` per step, plus ``100`` on reaching the goal.

    The episode terminates when ``position >= 0.45`` with non-negative
    velocity.
    """

    def default_params(self) -> MountainCarContinuousParams:
        return MountainCarContinuousParams()

    def reset_state(
        self,
        key: jax.Array,
        params: MountainCarContinuousParams,
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
        params: MountainCarContinuousParams,
    ) -> tuple[MountainCarState, jax.Array, jax.Array]:
        force = jnp.clip(action.reshape(-1)[0], params.min_action, params.max_action)
        new_state, reached = integrate(state, force * params.power, params)
        reward = jnp.where(reached, 100.0, 0.0) - 0.1 * force ** 2
        return new_state, reward.astype(jnp.float32), reached

    def observe(self, state: MountainCarState, params: MountainCarContinuousParams) -> jax.Array:
        return jnp.array([state.position, state.velocity], dtype=jnp.float32)

    def make_observation_space(self, params: MountainCarContinuousParams) -> Box:
        low = np.array([params.min_position, -params.max_speed], dtype=np.float32)
        high = np.array([params.max_position, params.max_speed], dtype=np.float32)
        return Box(low, high)

    def make_action_space(self, params: MountainCarContinuousParams) -> Box:
        return Box(params.min_action, params.max_action, shape=(1,))
