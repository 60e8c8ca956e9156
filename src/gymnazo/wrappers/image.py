"""Image observation wrappers: grayscale conversion and resizing."""

from __future__ import annotations

from typing import Any

import jax
import jax.numpy as jnp
import numpy as np

from gymnazo import spaces
from gymnazo.core import Env, ObservationWrapper
from gymnazo.error import InvalidConfiguration, InvalidSpace

# ITU-R 601-2 luma weights.
_LUMA = jnp.array([0.299, 0.587, 0.114], dtype=jnp.float32)


class GrayscaleObservation(ObservationWrapper):
    """Converts ``(H, W, C)`` RGB(A) frames to ``uint8`` grayscale.

    The output shape is ``(H, W)``, or ``(H, W, 1)`` with ``keep_dim=True``.
    Only the first three channels contribute.
    """

    def __init__(self, env: Env, keep_dim: bool = False) -> None:
        super().__init__(env)
        box = env.observation_space
        if not isinstance(box, spaces.Box) or len(box.shape) != 3 or box.shape[-1] < 3:
            raise InvalidSpace(
                f"GrayscaleObservation requires a Box of shape (H, W, C>=3), got {box!r}"
            )
        self.keep_dim = keep_dim
        h, w, _ = box.shape
        shape = (h, w, 1) if keep_dim else (h, w)
        self.observation_space = spaces.Box(0, 255, shape, dtype=jnp.uint8)

    def observation(self, observation: Any) -> jax.Array:
        rgb = jnp.asarray(observation, dtype=jnp.float32)[..., :3]
        gray = jnp.clip(jnp.round(rgb @ _LUMA), 0, 255).astype(jnp.uint8)
        if self.keep_dim:
            gray = gray[..., None]
        return gray


def _nearest_indices(src: int, dst: int) -> np.ndarray:
    scale = src / dst
    return np.minimum((np.arange(dst) * scale).astype(np.int64), src - 1)


class ResizeObservation(ObservationWrapper):
    """Resizes the leading two axes of image observations (nearest neighbour).

    Output pixel ``i`` along an axis reads input pixel
    ``min(int(i * in_size / out_size), in_size - 1)``; trailing axes
    (e.g. channels) are untouched.
    """

    def __init__(self, env: Env, shape: tuple[int, int]) -> None:
        super().__init__(env)
        box = env.observation_space
        if not isinstance(box, spaces.Box) or len(box.shape) < 2:
            raise InvalidSpace(
                f"ResizeObservation requires a Box with at least 2 dimensions, got {box!r}"
            )
        shape = tuple(int(d) for d in shape)
        if len(shape) != 2 or min(shape) <= 0:
            raise InvalidConfiguration(f"shape must be two positive integers, got {shape}")
        self.shape = shape

        self._rows = _nearest_indices(box.shape[0], shape[0])
        self._cols = _nearest_indices(box.shape[1], shape[1])
        low = box._np_low()[self._rows][:, self._cols]
        high = box._np_high()[self._rows][:, self._cols]
        self.observation_space = spaces.Box(low, high, dtype=box.dtype)

    def observation(self, observation: Any) -> jax.Array:
        obs = jnp.asarray(observation)
        return obs[self._rows][:, self._cols]
