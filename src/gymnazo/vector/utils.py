"""Helpers for batching spaces and infos across sub-environments."""

from __future__ import annotations

import functools
import numbers
from typing import Any

import numpy as np

from gymnazo.spaces import Box, Discrete, MultiBinary, MultiDiscrete, Space, Tuple


@functools.singledispatch
def batch_space(space: Space, n: int) -> Space:
    """Space of ``n`` stacked samples from ``space``.

    Tensor spaces gain a leading axis of size ``n``; other spaces become a
    ``Tuple`` of ``n`` copies.
    """
    return Tuple([space] * n)


@batch_space.register
def _(space: Box, n: int) -> Box:
    low = np.repeat(space._np_low()[None], n, axis=0)
    high = np.repeat(space._np_high()[None], n, axis=0)
    return Box(low, high, dtype=space.dtype)


@batch_space.register
def _(space: Discrete, n: int) -> Space:
    if space.start == 0:
        return MultiDiscrete(np.full(n, space.n))
    return Box(space.start, space.start + space.n - 1, (n,), dtype=space.dtype)


@batch_space.register
def _(space: MultiDiscrete, n: int) -> MultiDiscrete:
    return MultiDiscrete(np.repeat(space.nvec[None], n, axis=0))


@batch_space.register
def _(space: MultiBinary, n: int) -> MultiBinary:
    return MultiBinary((n, *space.shape))


def _empty_info_array(value: Any, n: int) -> np.ndarray:
    if isinstance(value, (bool, np.bool_)):
        return np.zeros(n, dtype=np.bool_)
    if isinstance(value, numbers.Integral):
        return np.zeros(n, dtype=np.int64)
    if isinstance(value, numbers.Real):
        return np.zeros(n, dtype=np.float64)
    return np.full(n, None, dtype=object)


def add_info(infos: dict[str, Any], info: dict[str, Any], index: int, n: int) -> dict[str, Any]:
    """Merge sub-env ``info`` into the batched ``infos`` at ``index``.

    Every key becomes an array of length ``n`` with a boolean ``"_key"``
    mask marking which sub-envs reported it.  Nested dicts are merged
    recursively::

        {"prob": np.array([1.0, 0.0]), "_prob": np.array([True, False])}
    """
    for key, value in info.items():
        if isinstance(value, dict):
            infos[key] = add_info(infos.get(key, {}), value, index, n)
        else:
            if key not in infos:
                infos[key] = _empty_info_array(value, n)
            infos[key][index] = value
        mask_key = f"_{key}"
        if mask_key not in infos:
            infos[mask_key] = np.zeros(n, dtype=np.bool_)
        infos[mask_key][index] = True
    return infos
