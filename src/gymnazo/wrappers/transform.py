"""Stateless observation, reward and action transforms."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import jax
import jax.numpy as jnp
import numpy as np

from gymnazo import spaces
from gymnazo.core import ActionWrapper, Env, ObservationWrapper, RewardWrapper, StepResult, Wrapper
from gymnazo.error import InvalidConfiguration, InvalidSpace

# ---------------------------------------------------------------------------
# Caller-supplied functions
# ---------------------------------------------------------------------------


class TransformObservation(ObservationWrapper):
    """Applies ``func`` to every observation.

    Pass ``observation_space`` when ``func`` changes the shape or range of
    observations; otherwise the inner space is kept.

    Example::

        env = TransformObservation(env, lambda obs: obs * 2.0)
    """

    def __init__(
        self,
        env: Env,
        func: Callable[[Any], Any],
        observation_space: spaces.Space | None = None,
    ) -> None:
        super().__init__(env)
        self.func = func
        if observation_space is not None:
            self.observation_space = observation_space

    def observation(self, observation: Any) -> Any:
        return self.func(observation)


class TransformReward(RewardWrapper):
    """Applies ``func`` to every reward."""

    def __init__(self, env: Env, func: Callable[[float], float]) -> None:
        super().__init__(env)
        self.func = func

    def reward(self, reward: float) -> float:
        return self.func(reward)


class ShapeReward(Wrapper):
    """Replaces the reward with ``shaper(reward, observation, terminated)``.

    Useful for potential-based shaping, where the bonus depends on the
    state reached by the step.
    """

    def __init__(self, env: Env, shaper: Callable[[float, Any, bool], float]) -> None:
        super().__init__(env)
        self.shaper = shaper

    def step(self, action: Any) -> StepResult:
        obs, reward, terminated, truncated, info = self.env.step(action)
        return obs, self.shaper(reward, obs, terminated), terminated, truncated, info


class TransformAction(ActionWrapper):
    """Applies ``func`` to every action before it reaches the inner env."""

    def __init__(
        self,
        env: Env,
        func: Callable[[Any], Any],
        action_space: spaces.Space | None = None,
    ) -> None:
        super().__init__(env)
        self.func = func
        if action_space is not None:
            self.action_space = action_space

    def action(self, action: Any) -> Any:
        return self.func(action)


# ---------------------------------------------------------------------------
# Flattening
# ---------------------------------------------------------------------------


class FlattenObservation(ObservationWrapper):
    """Flattens structured observations into a 1-D vector.

    The inner observation space must flatten to a ``Box``
    (see :func:`gymnazo.spaces.flatten_space`).
    """

    def __init__(self, env: Env) -> None:
        super().__init__(env)
        if not env.observation_space.is_np_flattenable:
            raise InvalidSpace(
                f"FlattenObservation requires an observation space that flattens to a Box, "
                f"got {env.observation_space!r}"
            )
        self.observation_space = spaces.flatten_space(env.observation_space)

    def observation(self, observation: Any) -> jax.Array:
        return spaces.flatten(self.env.observation_space, observation)


# ---------------------------------------------------------------------------
# Box actions
# ---------------------------------------------------------------------------


def _require_box_actions(env: Env, wrapper: str) -> spaces.Box:
    if not isinstance(env.action_space, spaces.Box):
        raise InvalidSpace(f"{wrapper} requires a Box action space, got {env.action_space!r}")
    return env.action_space


class ClipAction(ActionWrapper):
    """Clips continuous actions into the inner action space's bounds.

    The wrapper accepts any real-valued action of the right shape, so its
    own action space is unbounded.

    Example::

        env = ClipAction(env)          # inner Box(-1, 1, (2,))
        env.step(jnp.array([5.0, -5.0]))  # inner env receives [1.0, -1.0]
    """

    def __init__(self, env: Env) -> None:
        super().__init__(env)
        box = _require_box_actions(env, "ClipAction")
        self.action_space = spaces.Box(-np.inf, np.inf, box.shape, dtype=box.dtype)

    def action(self, action: Any) -> jax.Array:
        box = self.env.action_space
        return jnp.clip(jnp.asarray(action, dtype=box.dtype), box.low, box.high)


class RescaleAction(ActionWrapper):
    """Affinely maps actions from ``[min_action, max_action]`` onto the inner bounds.

    The rescaled action is clipped afterwards, so actions outside the
    source range still land inside the inner space.
    """

    def __init__(
        self,
        env: Env,
        min_action: float | Any = -1.0,
        max_action: float | Any = 1.0,
    ) -> None:
        super().__init__(env)
        box = _require_box_actions(env, "RescaleAction")
        if not box.is_bounded("both"):
            raise InvalidSpace(f"RescaleAction requires a bounded action space, got {box!r}")
        min_arr = np.broadcast_to(np.asarray(min_action, dtype=np.float64), box.shape)
        max_arr = np.broadcast_to(np.asarray(max_action, dtype=np.float64), box.shape)
        if np.any(min_arr >= max_arr):
            raise InvalidConfiguration(
                f"RescaleAction requires min_action < max_action, got {min_action}, {max_action}"
            )
        self.min_action = jnp.asarray(min_arr, dtype=box.dtype)
        self.max_action = jnp.asarray(max_arr, dtype=box.dtype)
        self.action_space = spaces.Box(min_arr, max_arr, box.shape, dtype=box.dtype)

    def action(self, action: Any) -> jax.Array:
        box = self.env.action_space
        action = jnp.asarray(action, dtype=box.dtype)
        fraction = (action - self.min_action) / (self.max_action - self.min_action)
        rescaled = box.low + (box.high - box.low) * fraction
        return jnp.clip(rescaled, box.low, box.high)
