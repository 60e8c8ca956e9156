"""Finite integer range ``{start, ..., start + n - 1}``."""

from __future__ import annotations

from typing import Any

import equinox as eqx
import jax
import jax.numpy as jnp
import numpy as np

from gymnazo.error import InvalidConfiguration
from gymnazo.spaces.space import TensorSpace, as_array

# Added to probabilities before taking the log so zero entries stay finite.
_PROB_EPS = 1e-9


class Discrete(TensorSpace):
    """Space of integers ``{start, start + 1, ..., start + n - 1}``.

    Samples are int32 scalars.  :meth:`sample` accepts either a ``mask``
    (1 = allowed, 0 = forbidden) or a ``probability`` vector of length
    ``n``, never both.

    Example::

        >>> space = Discrete(4)
        >>> int(space.sample(key, mask=jnp.array([0, 1, 0, 1], jnp.int8))) in (1, 3)
        True
    """

    n: int = eqx.field(static=True)
    start: int = eqx.field(static=True)

    def __init__(self, n: int, start: int = 0) -> None:
        if int(n) <= 0:
            raise InvalidConfiguration(f"Discrete requires n > 0, got {n}")
        self.n = int(n)
        self.start = int(start)

    @property
    def shape(self) -> tuple[int, ...]:
        return ()

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(np.int32)

    def sample(
        self,
        key: jax.Array,
        mask: Any | None = None,
        probability: Any | None = None,
    ) -> jax.Array:
        if mask is not None and probability is not None:
            raise ValueError("Only one of mask or probability can be provided")

        if mask is not None:
            mask = _check_vector(mask, self.n, "mask")
            if not np.all((mask == 0) | (mask == 1)):
                raise ValueError(f"Discrete mask entries must be 0 or 1, got {mask}")
            allowed = mask.astype(bool)
            if not allowed.any():
                return jnp.asarray(self.start, dtype=jnp.int32)
            logits = jnp.where(jnp.asarray(allowed), 0.0, -jnp.inf)
            return (self.start + jax.random.categorical(key, logits)).astype(jnp.int32)

        if probability is not None:
            probability = _check_vector(probability, self.n, "probability")
            if np.any(probability < 0) or not np.isclose(probability.sum(), 1.0, atol=1e-4):
                raise ValueError(
                    f"Discrete probability must be non-negative and sum to 1, got {probability}"
                )
            logits = jnp.log(jnp.asarray(probability, dtype=jnp.float32) + _PROB_EPS)
            return (self.start + jax.random.categorical(key, logits)).astype(jnp.int32)

        return jax.random.randint(key, (), self.start, self.start + self.n, dtype=jnp.int32)

    def sample_batch(self, key: jax.Array, count: int) -> jax.Array:
        return jax.random.randint(
            key, (count,), self.start, self.start + self.n, dtype=jnp.int32
        )

    def contains(self, x: Any) -> bool:
        arr = as_array(x)
        if arr is None or arr.shape != () or not np.issubdtype(arr.dtype, np.integer):
            return False
        return self.start <= int(arr) < self.start + self.n

    def __repr__(self) -> str:
        if self.start != 0:
            return f"Discrete({self.n}, start={self.start})"
        return f"Discrete({self.n})"


def _check_vector(values: Any, n: int, name: str) -> np.ndarray:
    arr = np.asarray(values)
    if arr.shape != (n,):
        raise ValueError(f"Discrete {name} must have shape ({n},), got {arr.shape}")
    return arr
