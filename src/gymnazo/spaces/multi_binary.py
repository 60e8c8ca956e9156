"""Fixed-shape binary arrays."""

from __future__ import annotations

from typing import Any

import equinox as eqx
import jax
import jax.numpy as jnp
import numpy as np

from gymnazo.error import InvalidConfiguration
from gymnazo.spaces.space import TensorSpace, as_array


class MultiBinary(TensorSpace):
    """Arrays of 0/1 entries with a fixed shape.

    ``MultiBinary(5)`` holds vectors of length 5, ``MultiBinary((2, 3))``
    holds 2x3 matrices.  Entries are drawn independently with
    probability 0.5.
    """

    n: int | tuple[int, ...] = eqx.field(static=True)
    _shape: tuple[int, ...] = eqx.field(static=True)

    def __init__(self, n: int | tuple[int, ...]) -> None:
        shape = (int(n),) if np.isscalar(n) else tuple(int(d) for d in n)
        if any(d < 0 for d in shape):
            raise InvalidConfiguration(f"MultiBinary dimensions must be >= 0, got {n}")
        self.n = shape[0] if np.isscalar(n) else shape
        self._shape = shape

    @property
    def shape(self) -> tuple[int, ...]:
        return self._shape

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(np.int8)

    def sample(
        self,
        key: jax.Array,
        mask: Any | None = None,
        probability: Any | None = None,
    ) -> jax.Array:
        self._reject_sampling_args(mask, probability)
        return self.sample_batch(key, 1)[0]

    def sample_batch(self, key: jax.Array, count: int) -> jax.Array:
        draw = jax.random.bernoulli(key, 0.5, shape=(count, *self._shape))
        return draw.astype(jnp.int8)

    def contains(self, x: Any) -> bool:
        arr = as_array(x)
        if arr is None or arr.shape != self._shape:
            return False
        return bool(np.all((arr == 0) | (arr == 1)))

    def __repr__(self) -> str:
        return f"MultiBinary({self.n})"
