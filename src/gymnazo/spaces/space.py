"""Base classes for observation and action spaces.

Spaces are immutable ``equinox`` modules: every field is static, so a
space is hashable, comparable, and carries no JAX leaves.  Sampling is a
pure function of the key it is given; no space owns a random stream.
"""

from __future__ import annotations

import abc
from typing import Any

import equinox as eqx
import jax
import numpy as np


class Space(eqx.Module):
    """A domain of valid values supporting sampling and membership tests."""

    @abc.abstractmethod
    def sample(
        self,
        key: jax.Array,
        mask: Any | None = None,
        probability: Any | None = None,
    ) -> Any:
        """Draw one element using *key*.

        ``mask`` restricts which values may be drawn and ``probability``
        weights them.  Only some spaces understand either argument.
        """

    @abc.abstractmethod
    def contains(self, x: Any) -> bool:
        """Return ``True`` if *x* is a member of this space."""

    def __contains__(self, x: Any) -> bool:
        return self.contains(x)

    @property
    def shape(self) -> tuple[int, ...] | None:
        """Shape of a sample, or ``None`` for non-tensor spaces."""
        return None

    @property
    def dtype(self) -> np.dtype | None:
        """Dtype of a sample, or ``None`` for non-tensor spaces."""
        return None

    @property
    def is_np_flattenable(self) -> bool:
        """Whether :func:`~gymnazo.spaces.flatten_space` yields a ``Box``."""
        return True

    def _reject_sampling_args(self, mask: Any, probability: Any) -> None:
        if mask is not None or probability is not None:
            raise ValueError(
                f"{type(self).__name__} does not support masked or weighted sampling"
            )


class TensorSpace(Space):
    """A space whose samples are single arrays of fixed shape and dtype.

    Tensor spaces can be sampled in batches, which is what lets them act
    as the element space of :class:`~gymnazo.spaces.Sequence` and the
    node/edge spaces of :class:`~gymnazo.spaces.Graph`.
    """

    @abc.abstractmethod
    def sample_batch(self, key: jax.Array, count: int) -> jax.Array:
        """Draw *count* independent samples stacked along a new leading axis."""

    @property
    @abc.abstractmethod
    def shape(self) -> tuple[int, ...]: ...

    @property
    @abc.abstractmethod
    def dtype(self) -> np.dtype: ...


def as_array(x: Any) -> np.ndarray | None:
    """Best-effort conversion of a candidate member to a host array.

    Returns ``None`` when *x* cannot be interpreted as a numeric array,
    which every ``contains`` treats as "not a member".
    """
    try:
        arr = np.asarray(x)
    except (TypeError, ValueError):
        return None
    if arr.dtype == object or not (
        np.issubdtype(arr.dtype, np.number) or np.issubdtype(arr.dtype, np.bool_)
    ):
        return None
    return arr
