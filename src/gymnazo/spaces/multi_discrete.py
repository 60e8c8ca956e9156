"""Product of independent discrete ranges."""

from __future__ import annotations

from typing import Any

import equinox as eqx
import jax
import jax.numpy as jnp
import numpy as np

from gymnazo.error import InvalidConfiguration
from gymnazo.spaces.space import TensorSpace, as_array


class MultiDiscrete(TensorSpace):
    """Integer arrays where entry ``i`` lies in ``[0, nvec[i])``.

    Typical use is a game controller: ``MultiDiscrete([5, 2, 2])`` is an
    arrow pad plus two buttons.  ``nvec`` may be multi-dimensional.

    ``sample`` accepts a ``mask`` for one-dimensional spaces: a sequence
    with one 0/1 vector per entry.  An entry whose mask forbids
    everything samples ``0``.
    """

    _nvec: tuple[int, ...] = eqx.field(static=True)
    _shape: tuple[int, ...] = eqx.field(static=True)

    def __init__(self, nvec: Any) -> None:
        arr = np.asarray(nvec, dtype=np.int64)
        if arr.size == 0 or np.any(arr <= 0):
            raise InvalidConfiguration(f"MultiDiscrete requires positive nvec entries, got {nvec}")
        self._nvec = tuple(int(v) for v in arr.ravel())
        self._shape = tuple(int(d) for d in arr.shape)

    @property
    def nvec(self) -> np.ndarray:
        return np.array(self._nvec, dtype=np.int64).reshape(self._shape)

    @property
    def shape(self) -> tuple[int, ...]:
        return self._shape

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(np.int32)

    def sample(
        self,
        key: jax.Array,
        mask: Any | None = None,
        probability: Any | None = None,
    ) -> jax.Array:
        if mask is None:
            self._reject_sampling_args(None, probability)
            return self.sample_batch(key, 1)[0]
        if probability is not None:
            raise ValueError("Only one of mask or probability can be provided")
        if len(self._shape) != 1 or len(mask) != len(self._nvec):
            raise ValueError(
                f"MultiDiscrete mask must be a sequence of {len(self._nvec)} vectors "
                "for a one-dimensional nvec"
            )

        keys = jax.random.split(key, len(self._nvec))
        values = []
        for k, n, entry_mask in zip(keys, self._nvec, mask, strict=True):
            entry_mask = np.asarray(entry_mask)
            if entry_mask.shape != (n,):
                raise ValueError(f"Mask entry must have shape ({n},), got {entry_mask.shape}")
            allowed = entry_mask.astype(bool)
            if not allowed.any():
                values.append(jnp.int32(0))
                continue
            logits = jnp.where(jnp.asarray(allowed), 0.0, -jnp.inf)
            values.append(jax.random.categorical(k, logits).astype(jnp.int32))
        return jnp.stack(values)

    def sample_batch(self, key: jax.Array, count: int) -> jax.Array:
        nvec = jnp.asarray(self.nvec, dtype=jnp.int32)
        return jax.random.randint(key, (count, *self._shape), 0, nvec, dtype=jnp.int32)

    def contains(self, x: Any) -> bool:
        arr = as_array(x)
        if arr is None or arr.shape != self._shape or not np.issubdtype(arr.dtype, np.integer):
            return False
        return bool(np.all((arr >= 0) & (arr < self.nvec)))

    def __repr__(self) -> str:
        return f"MultiDiscrete({self.nvec.tolist()})"
