"""Ordered product of spaces."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Any

import jax

from gymnazo.error import InvalidConfiguration
from gymnazo.spaces.space import Space


class Tuple(Space):
    """Fixed-length tuple of samples, one per sub-space.

    ``mask`` and ``probability`` are forwarded element-wise: pass a tuple
    with one entry (or ``None``) per sub-space.

    Example::

        >>> space = Tuple((Discrete(2), Box(-1.0, 1.0, (3,))))
        >>> action, force = space.sample(key)
    """

    spaces: tuple[Space, ...]

    def __init__(self, spaces: Iterable[Space]) -> None:
        spaces = tuple(spaces)
        for s in spaces:
            if not isinstance(s, Space):
                raise InvalidConfiguration(f"Tuple entries must be Space instances, got {s!r}")
        self.spaces = spaces

    @property
    def is_np_flattenable(self) -> bool:
        return all(s.is_np_flattenable for s in self.spaces)

    def sample(
        self,
        key: jax.Array,
        mask: tuple[Any, ...] | None = None,
        probability: tuple[Any, ...] | None = None,
    ) -> tuple[Any, ...]:
        masks = _per_element(mask, len(self.spaces), "mask")
        probs = _per_element(probability, len(self.spaces), "probability")
        keys = jax.random.split(key, len(self.spaces))
        return tuple(
            space.sample(k, mask=m, probability=p)
            for space, k, m, p in zip(self.spaces, keys, masks, probs, strict=True)
        )

    def contains(self, x: Any) -> bool:
        if not isinstance(x, (tuple, list)) or len(x) != len(self.spaces):
            return False
        return all(space.contains(part) for space, part in zip(self.spaces, x, strict=True))

    def __getitem__(self, index: int) -> Space:
        return self.spaces[index]

    def __len__(self) -> int:
        return len(self.spaces)

    def __iter__(self) -> Iterator[Space]:
        return iter(self.spaces)

    def __repr__(self) -> str:
        return "Tuple(" + ", ".join(repr(s) for s in self.spaces) + ")"


def _per_element(value: tuple[Any, ...] | None, n: int, name: str) -> tuple[Any, ...]:
    if value is None:
        return (None,) * n
    if not isinstance(value, tuple) or len(value) != n:
        raise ValueError(f"Tuple {name} must be a tuple of {n} entries")
    return value
