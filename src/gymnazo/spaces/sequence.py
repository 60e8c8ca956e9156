"""Variable-length sequences stored in a fixed, masked buffer."""

from __future__ import annotations

from typing import Any, NamedTuple

import equinox as eqx
import jax
import jax.numpy as jnp
import numpy as np

from gymnazo.error import InvalidConfiguration
from gymnazo.spaces.space import Space, TensorSpace


class SequenceSample(NamedTuple):
    """Padded sequence: ``values[i]`` is valid where ``mask[i]`` is ``True``.

    The mask is always a prefix mask, so ``mask.sum()`` is the length.
    """

    values: jax.Array
    mask: jax.Array


class Sequence(Space):
    """Sequences of ``min_length`` to ``max_length`` elements of one tensor space.

    A sample holds ``max_length`` rows drawn from the element space; rows
    past the sampled length are masked out but still hold valid element
    values.
    """

    space: TensorSpace
    max_length: int = eqx.field(static=True)
    min_length: int = eqx.field(static=True)

    def __init__(self, space: TensorSpace, max_length: int, *, min_length: int = 0) -> None:
        if not isinstance(space, TensorSpace):
            raise InvalidConfiguration(
                f"Sequence elements must come from a tensor space, got {type(space).__name__}"
            )
        if min_length < 0 or max_length < min_length:
            raise InvalidConfiguration(
                f"Sequence requires 0 <= min_length <= max_length, got {min_length}, {max_length}"
            )
        self.space = space
        self.max_length = int(max_length)
        self.min_length = int(min_length)

    @property
    def is_np_flattenable(self) -> bool:
        return False

    def sample(
        self,
        key: jax.Array,
        mask: Any | None = None,
        probability: Any | None = None,
    ) -> SequenceSample:
        self._reject_sampling_args(mask, probability)
        length_key, values_key = jax.random.split(key)
        length = jax.random.randint(length_key, (), self.min_length, self.max_length + 1)
        values = self.space.sample_batch(values_key, self.max_length)
        return SequenceSample(values=values, mask=jnp.arange(self.max_length) < length)

    def contains(self, x: Any) -> bool:
        if not isinstance(x, tuple) or len(x) != 2:
            return False
        values, mask = (np.asarray(part) for part in x)
        if mask.shape != (self.max_length,) or values.shape != (
            self.max_length,
            *self.space.shape,
        ):
            return False
        length = prefix_length(mask)
        if length is None or not self.min_length <= length <= self.max_length:
            return False
        return all(self.space.contains(values[i]) for i in range(length))

    def __repr__(self) -> str:
        return f"Sequence({self.space!r}, min_length={self.min_length}, max_length={self.max_length})"


def prefix_length(mask: np.ndarray) -> int | None:
    """Length of a prefix mask, or ``None`` if a ``True`` follows a ``False``."""
    mask = np.asarray(mask).astype(bool)
    length = int(mask.sum())
    if not mask[:length].all():
        return None
    return length
