"""Bounded or unbounded n-dimensional box."""

from __future__ import annotations

from typing import Any

import equinox as eqx
import jax
import jax.numpy as jnp
import numpy as np

from gymnazo.error import InvalidConfiguration
from gymnazo.spaces.space import TensorSpace, as_array

# Half-width of the window used to sample unbounded dimensions.
SAMPLE_WINDOW = 1e6


class Box(TensorSpace):
    """Cartesian product of closed intervals ``[low[i], high[i]]``.

    Bounds may be ``-inf``/``inf``.  Bounds are stored as static tuples
    so the space is hashable and can be used as a jit-static argument.

    Sampling:

    - bounded dimensions: uniform in ``[low, high]``
    - bounded below only: uniform in ``[low, low + 1e6]``
    - bounded above only: uniform in ``[high - 1e6, high]``
    - unbounded: uniform in ``[-1e6, 1e6]``

    Integer dtypes draw integers from the same windows, inclusive of
    ``high``.

    Example::

        >>> Box(low=-1.0, high=1.0, shape=(2,))
        Box(-1.0, 1.0, (2,), float32)
    """

    _low: tuple[float, ...] = eqx.field(static=True)
    _high: tuple[float, ...] = eqx.field(static=True)
    _shape: tuple[int, ...] = eqx.field(static=True)
    _dtype: np.dtype = eqx.field(static=True)
    bounded_below: tuple[bool, ...] = eqx.field(static=True)
    bounded_above: tuple[bool, ...] = eqx.field(static=True)

    def __init__(
        self,
        low: float | Any,
        high: float | Any,
        shape: tuple[int, ...] | None = None,
        dtype: Any = jnp.float32,
    ) -> None:
        dtype = np.dtype(dtype)
        low_arr = np.asarray(low, dtype=np.float64)
        high_arr = np.asarray(high, dtype=np.float64)

        if shape is None:
            if low_arr.ndim > 0 and high_arr.ndim > 0 and low_arr.shape != high_arr.shape:
                raise InvalidConfiguration(
                    f"Box low and high shapes differ: {low_arr.shape} vs {high_arr.shape}"
                )
            shape = low_arr.shape if low_arr.ndim > 0 else high_arr.shape
        shape = tuple(int(d) for d in shape)
        try:
            low_arr = np.broadcast_to(low_arr, shape)
            high_arr = np.broadcast_to(high_arr, shape)
        except ValueError:
            raise InvalidConfiguration(
                f"Box bounds of shape {np.shape(low)} / {np.shape(high)} "
                f"do not fit shape {shape}"
            ) from None

        if np.isnan(low_arr).any() or np.isnan(high_arr).any():
            raise InvalidConfiguration("Box bounds must not be NaN")

        if np.issubdtype(dtype, np.integer):
            info = np.iinfo(dtype)
            low_arr = np.clip(low_arr, info.min, info.max)
            high_arr = np.clip(high_arr, info.min, info.max)
        else:
            # Round the bounds through the target dtype so that samples and
            # bounds compare consistently.
            low_arr = low_arr.astype(dtype).astype(np.float64)
            high_arr = high_arr.astype(dtype).astype(np.float64)

        if np.any(high_arr < low_arr):
            raise InvalidConfiguration("Box requires high >= low elementwise")

        self._low = tuple(float(x) for x in low_arr.ravel())
        self._high = tuple(float(x) for x in high_arr.ravel())
        self._shape = shape
        self._dtype = dtype
        self.bounded_below = tuple(bool(x) for x in np.isfinite(low_arr).ravel())
        self.bounded_above = tuple(bool(x) for x in np.isfinite(high_arr).ravel())

    # ------------------------------------------------------------------
    # Bounds
    # ------------------------------------------------------------------

    @property
    def low(self) -> jax.Array:
        return jnp.asarray(self._np_low(), dtype=self._dtype)

    @property
    def high(self) -> jax.Array:
        return jnp.asarray(self._np_high(), dtype=self._dtype)

    def _np_low(self) -> np.ndarray:
        return np.array(self._low, dtype=np.float64).reshape(self._shape)

    def _np_high(self) -> np.ndarray:
        return np.array(self._high, dtype=np.float64).reshape(self._shape)

    def is_bounded(self, manner: str = "both") -> bool:
        """Whether every dimension is bounded ``"below"``, ``"above"`` or ``"both"``."""
        below = all(self.bounded_below)
        above = all(self.bounded_above)
        if manner == "both":
            return below and above
        if manner == "below":
            return below
        if manner == "above":
            return above
        raise ValueError(f"manner must be 'both', 'below' or 'above', got {manner!r}")

    # ------------------------------------------------------------------
    # Space API
    # ------------------------------------------------------------------

    @property
    def shape(self) -> tuple[int, ...]:
        return self._shape

    @property
    def dtype(self) -> np.dtype:
        return self._dtype

    def sample(
        self,
        key: jax.Array,
        mask: Any | None = None,
        probability: Any | None = None,
    ) -> jax.Array:
        self._reject_sampling_args(mask, probability)
        return self._draw(key, ())

    def sample_batch(self, key: jax.Array, count: int) -> jax.Array:
        return self._draw(key, (count,))

    def _draw(self, key: jax.Array, batch_shape: tuple[int, ...]) -> jax.Array:
        low, high = self._np_low(), self._np_high()
        below = np.array(self.bounded_below, dtype=bool).reshape(self._shape)
        above = np.array(self.bounded_above, dtype=bool).reshape(self._shape)

        lo = np.where(below, low, np.where(above, high - SAMPLE_WINDOW, -SAMPLE_WINDOW))
        hi = np.where(above, high, np.where(below, low + SAMPLE_WINDOW, SAMPLE_WINDOW))
        full_shape = (*batch_shape, *self._shape)

        if np.issubdtype(self._dtype, np.integer):
            int_max = np.iinfo(np.int32).max
            lo = np.clip(lo, np.iinfo(np.int32).min, int_max)
            hi = np.clip(hi + 1, np.iinfo(np.int32).min, int_max)
            draw = jax.random.randint(
                key, full_shape, jnp.asarray(lo, jnp.int32), jnp.asarray(hi, jnp.int32)
            )
            return draw.astype(self._dtype)

        lo = jnp.asarray(lo, self._dtype)
        hi = jnp.asarray(hi, self._dtype)
        draw = jax.random.uniform(key, full_shape, dtype=self._dtype, minval=lo, maxval=hi)
        # Rounding in ``u * (hi - lo) + lo`` may step past ``hi``.
        return jnp.clip(draw, lo, hi)

    def contains(self, x: Any) -> bool:
        arr = as_array(x)
        if arr is None or arr.shape != self._shape:
            return False
        return bool(np.all((arr >= self._np_low()) & (arr <= self._np_high())))

    def __repr__(self) -> str:
        low, high = self._np_low(), self._np_high()
        low_repr = low.min() if low.size and np.all(low == low.min()) else low
        high_repr = high.max() if high.size and np.all(high == high.max()) else high
        return f"Box({low_repr}, {high_repr}, {self._shape}, {self._dtype})"
