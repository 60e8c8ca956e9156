"""Keyed product of spaces."""

from __future__ import annotations

from collections.abc import Iterator, KeysView, Mapping
from typing import Any

import jax

from gymnazo.error import InvalidConfiguration
from gymnazo.spaces.space import Space


class Dict(Space):
    """Dictionary of samples keyed by sub-space name.

    Keys are kept in sorted order; samples and flattened vectors follow
    that order regardless of how the space was declared.

    Example::

        >>> space = Dict({"position": Box(-1.0, 1.0, (2,)), "gear": Discrete(3)})
        >>> sorted(space.sample(key))
        ['gear', 'position']
    """

    spaces: dict[str, Space]

    def __init__(self, spaces: Mapping[str, Space] | None = None, **kwargs: Space) -> None:
        merged = dict(spaces or {})
        merged.update(kwargs)
        for name, s in merged.items():
            if not isinstance(s, Space):
                raise InvalidConfiguration(f"Dict entry {name!r} is not a Space: {s!r}")
        self.spaces = {name: merged[name] for name in sorted(merged)}

    @property
    def is_np_flattenable(self) -> bool:
        return all(s.is_np_flattenable for s in self.spaces.values())

    def sample(
        self,
        key: jax.Array,
        mask: Mapping[str, Any] | None = None,
        probability: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        for name, value in (("mask", mask), ("probability", probability)):
            if value is not None and set(value) != set(self.spaces):
                raise ValueError(f"Dict {name} keys must match the space keys {list(self.spaces)}")
        keys = jax.random.split(key, len(self.spaces))
        return {
            name: space.sample(
                k,
                mask=None if mask is None else mask[name],
                probability=None if probability is None else probability[name],
            )
            for (name, space), k in zip(self.spaces.items(), keys, strict=True)
        }

    def contains(self, x: Any) -> bool:
        if not isinstance(x, Mapping) or set(x) != set(self.spaces):
            return False
        return all(space.contains(x[name]) for name, space in self.spaces.items())

    def __getitem__(self, name: str) -> Space:
        return self.spaces[name]

    def __len__(self) -> int:
        return len(self.spaces)

    def __iter__(self) -> Iterator[str]:
        return iter(self.spaces)

    def keys(self) -> KeysView[str]:
        return self.spaces.keys()

    def __repr__(self) -> str:
        return "Dict(" + ", ".join(f"{k!r}: {s!r}" for k, s in self.spaces.items()) + ")"
