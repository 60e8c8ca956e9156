"""Wrappers that carry state across steps: normalisation, frame stacking, frame skipping."""

from __future__ import annotations

import enum
from collections import deque
from typing import Any

import jax
import jax.numpy as jnp
import numpy as np

from gymnazo import spaces
from gymnazo.core import Env, ResetResult, StepResult, Wrapper
from gymnazo.error import InvalidConfiguration, InvalidSpace

# ---------------------------------------------------------------------------
# Running statistics
# ---------------------------------------------------------------------------


class RunningMeanStd:
    """Running mean and unbiased variance via Welford's online algorithm.

    The variance reads as ``1`` until at least two samples have been seen,
    so early normalisation is a plain mean shift.
    """

    def __init__(self, shape: tuple[int, ...] = ()) -> None:
        self.count = 0
        self.mean = np.zeros(shape, dtype=np.float64)
        self._m2 = np.zeros(shape, dtype=np.float64)

    def update(self, x: Any) -> None:
        x = np.asarray(x, dtype=np.float64)
        self.count += 1
        delta = x - self.mean
        self.mean = self.mean + delta / self.count
        self._m2 = self._m2 + delta * (x - self.mean)

    @property
    def var(self) -> np.ndarray:
        if self.count < 2:
            return np.ones_like(self.mean)
        return self._m2 / (self.count - 1)

    @property
    def std(self) -> np.ndarray:
        return np.sqrt(self.var)


# ---------------------------------------------------------------------------
# Observation normalisation
# ---------------------------------------------------------------------------


class NormalizeObservation(Wrapper):
    """Normalises observations to ``(obs - mean) / (std + epsilon)``.

    Statistics are updated with every observation from ``reset`` and
    ``step``.  Set ``update_running_mean = False`` to freeze them, e.g.
    for evaluation.
    """

    def __init__(self, env: Env, epsilon: float = 1e-8) -> None:
        super().__init__(env)
        space = env.observation_space
        if not isinstance(space, spaces.TensorSpace):
            raise InvalidSpace(
                f"NormalizeObservation requires a tensor observation space, got {space!r}"
            )
        self.epsilon = epsilon
        self.obs_rms = RunningMeanStd(space.shape)
        self.update_running_mean = True
        self.observation_space = spaces.Box(-np.inf, np.inf, space.shape, dtype=jnp.float32)

    def _normalize(self, obs: Any) -> jax.Array:
        if self.update_running_mean:
            self.obs_rms.update(obs)
        normed = (np.asarray(obs, dtype=np.float64) - self.obs_rms.mean) / (
            self.obs_rms.std + self.epsilon
        )
        return jnp.asarray(normed, dtype=jnp.float32)

    def reset(
        self,
        *,
        seed: int | None = None,
        options: dict[str, Any] | None = None,
    ) -> ResetResult:
        obs, info = self.env.reset(seed=seed, options=options)
        return self._normalize(obs), info

    def step(self, action: Any) -> StepResult:
        obs, reward, terminated, truncated, info = self.env.step(action)
        return self._normalize(obs), reward, terminated, truncated, info


# ---------------------------------------------------------------------------
# Reward normalisation
# ---------------------------------------------------------------------------


class NormalizeReward(Wrapper):
    """Scales rewards by the running standard deviation of the discounted return.

    The discounted return ``G <- gamma * G + r`` is tracked per episode and
    fed to a :class:`RunningMeanStd`; each reward is divided by
    ``sqrt(var(G) + epsilon)``.
    """

    def __init__(self, env: Env, gamma: float = 0.99, epsilon: float = 1e-8) -> None:
        super().__init__(env)
        if not 0.0 <= gamma <= 1.0:
            raise InvalidConfiguration(f"gamma must be in [0, 1], got {gamma}")
        self.gamma = gamma
        self.epsilon = epsilon
        self.return_rms = RunningMeanStd(())
        self.update_running_mean = True
        self._discounted_return = 0.0

    def reset(
        self,
        *,
        seed: int | None = None,
        options: dict[str, Any] | None = None,
    ) -> ResetResult:
        self._discounted_return = 0.0
        return self.env.reset(seed=seed, options=options)

    def step(self, action: Any) -> StepResult:
        obs, reward, terminated, truncated, info = self.env.step(action)
        self._discounted_return = self.gamma * self._discounted_return + float(reward)
        if self.update_running_mean:
            self.return_rms.update(self._discounted_return)
        normalized = float(reward) / float(np.sqrt(self.return_rms.var + self.epsilon))
        if terminated or truncated:
            self._discounted_return = 0.0
        return obs, normalized, terminated, truncated, info


# ---------------------------------------------------------------------------
# Frame stacking
# ---------------------------------------------------------------------------


class FramePadding(str, enum.Enum):
    """How :class:`FrameStackObservation` fills the stack on reset."""

    RESET = "reset"  # repeat the reset observation
    ZERO = "zero"  # zeros, reset observation in the last slot


class FrameStackObservation(Wrapper):
    """Stacks the last ``stack_size`` observations along a new leading axis.

    An inner ``Box`` of shape ``(H, W, C)`` becomes ``(stack_size, H, W, C)``;
    the newest frame is last.
    """

    def __init__(
        self,
        env: Env,
        stack_size: int,
        padding: FramePadding | str = FramePadding.RESET,
    ) -> None:
        super().__init__(env)
        if stack_size < 1:
            raise InvalidConfiguration(f"stack_size must be >= 1, got {stack_size}")
        box = env.observation_space
        if not isinstance(box, spaces.Box):
            raise InvalidSpace(f"FrameStackObservation requires a Box observation space, got {box!r}")
        try:
            self.padding = FramePadding(padding)
        except ValueError:
            raise InvalidConfiguration(f"Unknown frame padding {padding!r}") from None

        self.stack_size = int(stack_size)
        self.observation_space = spaces.Box(
            np.repeat(box._np_low()[None], self.stack_size, axis=0),
            np.repeat(box._np_high()[None], self.stack_size, axis=0),
            dtype=box.dtype,
        )
        self._frames: deque[jax.Array] = deque(maxlen=self.stack_size)

    def reset(
        self,
        *,
        seed: int | None = None,
        options: dict[str, Any] | None = None,
    ) -> ResetResult:
        obs, info = self.env.reset(seed=seed, options=options)
        obs = jnp.asarray(obs)
        pad = obs if self.padding is FramePadding.RESET else jnp.zeros_like(obs)
        self._frames.clear()
        self._frames.extend([pad] * (self.stack_size - 1))
        self._frames.append(obs)
        return jnp.stack(list(self._frames)), info

    def step(self, action: Any) -> StepResult:
        obs, reward, terminated, truncated, info = self.env.step(action)
        self._frames.append(jnp.asarray(obs))
        return jnp.stack(list(self._frames)), reward, terminated, truncated, info


# ---------------------------------------------------------------------------
# Frame skipping
# ---------------------------------------------------------------------------


class FrameSkip(Wrapper):
    """Repeats each action ``skip`` times and sums the rewards.

    Stops early when an inner step terminates or truncates; the returned
    observation, flags and info are those of the last inner step taken.
    """

    def __init__(self, env: Env, skip: int = 2) -> None:
        super().__init__(env)
        if skip < 1:
            raise InvalidConfiguration(f"skip must be >= 1, got {skip}")
        self.skip = int(skip)

    def step(self, action: Any) -> StepResult:
        total_reward = 0.0
        for _ in range(self.skip):
            obs, reward, terminated, truncated, info = self.env.step(action)
            total_reward += float(reward)
            if terminated or truncated:
                break
        return obs, total_reward, terminated, truncated, info
